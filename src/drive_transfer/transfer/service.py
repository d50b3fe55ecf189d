"""Ownership transfer between Google accounts.

Drive only lets a principal become owner of a file once it already holds a
permission on it, so a transfer is a two-step sequence run with the source
account's client:

    1. grant the new owner writer access (skipped if any permission exists)
    2. promote that permission to owner with transferOwnership

Every lookup re-queries the API; ownership can change between calls.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from drive_transfer.drive import DriveAPIError, DriveClient, Permission, Principal
from drive_transfer.transfer.exceptions import (
    InvalidInput,
    InvalidTarget,
    NotFound,
    PermissionGrantFailed,
    PermissionLookupFailed,
    PromotionFailed,
    TransferError,
)
from drive_transfer.transfer.validation import is_basic_email

ALREADY_OWNER = "already owner"
TRANSFERRED = "Ownership transferred successfully"

DEFAULT_DELAY_MS = 1000
# Below this, Drive's sharing quota starts rejecting permission changes
SAFE_MIN_DELAY_MS = 500


@dataclass
class TransferOptions:
    """Options for a single-file transfer.

    Attributes:
        send_notification_email: Let Drive email the new owner when the writer
            permission is granted. Drive always notifies on the ownership change.
    """

    send_notification_email: bool = False


@dataclass
class BatchConfig:
    """Configuration for a batch transfer.

    Attributes:
        delay_between_transfers_ms: Fixed pause after each processed file except
            the last. Default: 1000 ms.
        continue_on_error: Record a failed file and move on (True) or stop the
            batch at the first failure (False).
        send_notification_email: Forwarded to each transfer.
    """

    delay_between_transfers_ms: int = DEFAULT_DELAY_MS
    continue_on_error: bool = True
    send_notification_email: bool = False

    def __post_init__(self) -> None:
        if (
            isinstance(self.delay_between_transfers_ms, bool)
            or not isinstance(self.delay_between_transfers_ms, int)
            or self.delay_between_transfers_ms < 0
        ):
            raise ValueError(
                "delay_between_transfers_ms must be a non-negative integer, "
                f"got {self.delay_between_transfers_ms!r}"
            )

    @property
    def delay_seconds(self) -> float:
        return self.delay_between_transfers_ms / 1000

    def transfer_options(self) -> TransferOptions:
        return TransferOptions(send_notification_email=self.send_notification_email)


@dataclass
class TransferOutcome:
    """Result of transferring one file."""

    file_id: str
    success: bool
    message: str = ""
    error: str | None = None
    error_type: str | None = None
    file_name: str | None = None
    new_owner: Principal | None = None

    @classmethod
    def failure(cls, file_id: str, exc: Exception) -> TransferOutcome:
        return cls(
            file_id=file_id,
            success=False,
            error=str(exc),
            error_type=type(exc).__name__,
        )


@dataclass
class BatchSummary:
    """Result of a batch transfer.

    Attributes:
        total: Number of file IDs submitted.
        successful: Files whose transfer succeeded.
        failed: Files whose transfer failed.
        outcomes: One outcome per processed file, in input order.
        halted: True when the batch stopped at a failure before the end.
    """

    total: int = 0
    successful: int = 0
    failed: int = 0
    outcomes: list[TransferOutcome] = field(default_factory=list)
    halted: bool = False

    @property
    def unprocessed(self) -> int:
        """Files never attempted because the batch halted."""
        return self.total - len(self.outcomes)

    @property
    def failures(self) -> list[TransferOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]

    @property
    def success_rate(self) -> float:
        """Success rate as a percentage of submitted files."""
        if self.total == 0:
            return 0.0
        return (self.successful / self.total) * 100

    def record(self, outcome: TransferOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.success:
            self.successful += 1
        else:
            self.failed += 1

    def as_dict(self) -> dict:
        return {"successful": self.successful, "failed": self.failed, "total": self.total}


@dataclass
class PreconditionResult:
    """Read-only check run before asking the user to confirm a transfer."""

    valid: bool
    current_owner_email: str | None = None
    file_name: str | None = None
    error: str | None = None


class TransferService:
    """Transfers file ownership from the account behind ``drive`` to another account.

    Usage:
        service = TransferService(source_client)

        check = service.validate_preconditions(file_id, "new-owner@example.com")
        if check.valid:
            outcome = service.transfer(file_id, "new-owner@example.com")

        summary = service.run_batch(file_ids, "new-owner@example.com", BatchConfig())
        print(f"{summary.successful}/{summary.total} transferred")
    """

    def __init__(
        self,
        drive: DriveClient,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the service.

        Args:
            drive: Client authenticated as the current owner of the files.
            logger: Logger for progress and audit messages.
            sleep: Pause function used for batch pacing (seconds).
        """
        self.drive = drive
        self.logger = logger or logging.getLogger(__name__)
        self._sleep = sleep

    # =========================================================================
    # Single file
    # =========================================================================

    def transfer(
        self,
        file_id: str,
        target_email: str,
        options: TransferOptions | None = None,
    ) -> TransferOutcome:
        """Make ``target_email`` the owner of a file.

        Idempotent: if the target already owns the file, returns success
        without issuing any write call.

        Raises:
            InvalidInput: Empty file ID.
            InvalidTarget: Malformed target email.
            NotFound: File missing or not accessible.
            PermissionLookupFailed: Permissions could not be listed.
            PermissionGrantFailed: Writer permission could not be created.
            PromotionFailed: Permission missing after the grant, or the update failed.
        """
        options = options or TransferOptions()
        self._check_inputs(file_id, target_email)

        self.logger.info(f"Starting ownership transfer for file {file_id} to {target_email}")

        record = self._get_file(file_id)
        self.logger.debug(f"File: {record.name}")

        existing = self._find_permission(file_id, target_email)
        if existing is not None and existing.is_owner:
            self.logger.info(f"{target_email} is already the owner of {record.name}")
            return TransferOutcome(
                file_id=file_id,
                success=True,
                message=ALREADY_OWNER,
                file_name=record.name,
                new_owner=Principal(target_email, existing.display_name or ""),
            )

        if existing is None:
            self._grant_writer(file_id, target_email, options.send_notification_email)
            self.logger.info(f"Added writer permission for {target_email}")

        permission = self._promote(file_id, target_email)
        self.logger.info(f"Transferred ownership of {record.name} to {target_email}")

        return TransferOutcome(
            file_id=file_id,
            success=True,
            message=TRANSFERRED,
            file_name=record.name,
            new_owner=Principal(target_email, permission.display_name or ""),
        )

    def validate_preconditions(self, file_id: str, target_email: str) -> PreconditionResult:
        """Check a transfer can be attempted, without changing anything."""
        try:
            self._check_inputs(file_id, target_email)
            record = self._get_file(file_id)
        except TransferError as e:
            return PreconditionResult(valid=False, error=str(e))

        owner = record.primary_owner
        if owner is None:
            return PreconditionResult(valid=False, error="Could not determine current file owner")

        return PreconditionResult(
            valid=True,
            current_owner_email=owner.email_address,
            file_name=record.name,
        )

    # =========================================================================
    # Batch
    # =========================================================================

    def run_batch(
        self,
        file_ids: Sequence[str],
        target_email: str,
        config: BatchConfig | None = None,
        on_progress: Callable[[int, int, TransferOutcome], None] | None = None,
    ) -> BatchSummary:
        """Transfer files one at a time, in order, pausing between them.

        Args:
            file_ids: Files to transfer, processed strictly in this order.
            target_email: New owner for every file.
            config: Pacing and failure policy. Defaults to BatchConfig().
            on_progress: Optional callback(index, total, outcome) after each file.

        Returns:
            BatchSummary. When the batch halts, the files after the failing one
            produce no outcome and count as neither successful nor failed.
        """
        config = config or BatchConfig()
        options = config.transfer_options()
        summary = BatchSummary(total=len(file_ids))

        if 0 < config.delay_between_transfers_ms < SAFE_MIN_DELAY_MS:
            self.logger.warning(
                f"delay_between_transfers_ms={config.delay_between_transfers_ms} is below "
                f"{SAFE_MIN_DELAY_MS} ms; Drive may reject permission changes with "
                "sharingRateLimitExceeded."
            )

        self.logger.info(f"Starting batch transfer of {summary.total} files to {target_email}")

        for index, file_id in enumerate(file_ids):
            self.logger.info(f"Processing file {index + 1} of {summary.total}")
            try:
                outcome = self.transfer(file_id, target_email, options)
            except TransferError as e:
                outcome = TransferOutcome.failure(file_id, e)

            summary.record(outcome)
            if on_progress:
                on_progress(index, summary.total, outcome)

            if not outcome.success:
                if not config.continue_on_error:
                    self.logger.error(f"Stopping batch transfer due to error: {outcome.error}")
                    summary.halted = index < summary.total - 1
                    break
                self.logger.warning(f"Error with file {file_id}, continuing: {outcome.error}")

            if index < summary.total - 1:
                self._sleep(config.delay_seconds)

        self.logger.info(
            f"Batch transfer completed: {summary.successful} successful, "
            f"{summary.failed} failed, {summary.unprocessed} not processed"
        )
        return summary

    # =========================================================================
    # Steps
    # =========================================================================

    def _check_inputs(self, file_id: str, target_email: str) -> None:
        if not file_id or not isinstance(file_id, str) or not file_id.strip():
            raise InvalidInput("File ID must be a non-empty string", file_id=file_id)
        if not is_basic_email(target_email):
            raise InvalidTarget(f"Invalid new owner email address: {target_email!r}", file_id)

    def _get_file(self, file_id: str):
        try:
            return self.drive.get_file(file_id)
        except DriveAPIError as e:
            raise NotFound(f"File {file_id} not found or not accessible: {e}", file_id) from e

    def _find_permission(self, file_id: str, email: str) -> Permission | None:
        try:
            permissions = self.drive.list_permissions(file_id)
        except DriveAPIError as e:
            raise PermissionLookupFailed(
                f"Failed to get permissions for {file_id}: {e}", file_id
            ) from e
        return next((p for p in permissions if p.matches(email)), None)

    def _grant_writer(self, file_id: str, email: str, notify: bool) -> None:
        try:
            self.drive.create_permission(
                file_id, email, "writer", send_notification_email=notify
            )
        except DriveAPIError as e:
            raise PermissionGrantFailed(
                f"Failed to add writer permission for {email}: {e}", file_id
            ) from e

    def _promote(self, file_id: str, email: str) -> Permission:
        try:
            permission = self._find_permission(file_id, email)
        except PermissionLookupFailed as e:
            raise PromotionFailed(f"Failed to promote to owner: {e}", file_id) from e
        if permission is None:
            raise PromotionFailed(
                f"Failed to promote to owner: {email} does not have permission to this file",
                file_id,
            )

        try:
            return self.drive.update_permission(
                file_id, permission.id, "owner", transfer_ownership=True
            )
        except DriveAPIError as e:
            raise PromotionFailed(f"Failed to promote to owner: {e}", file_id) from e
