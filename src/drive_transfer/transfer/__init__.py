"""Drive ownership transfer.

Usage:
    from drive_transfer.transfer import BatchConfig, TransferService

    service = TransferService(source_client)

    # Single file
    outcome = service.transfer(file_id, "new-owner@example.com")

    # Several files, one at a time with a pause in between
    summary = service.run_batch(
        file_ids,
        "new-owner@example.com",
        BatchConfig(delay_between_transfers_ms=1500, continue_on_error=True),
    )
    print(f"Transferred: {summary.successful}/{summary.total}")
"""

from __future__ import annotations

from drive_transfer.transfer.exceptions import (
    InvalidInput,
    InvalidTarget,
    NotFound,
    PermissionGrantFailed,
    PermissionLookupFailed,
    PromotionFailed,
    TransferError,
)
from drive_transfer.transfer.service import (
    ALREADY_OWNER,
    BatchConfig,
    BatchSummary,
    PreconditionResult,
    TransferOptions,
    TransferOutcome,
    TransferService,
)

__all__ = [
    "TransferService",
    "TransferOptions",
    "TransferOutcome",
    "BatchConfig",
    "BatchSummary",
    "PreconditionResult",
    "ALREADY_OWNER",
    "TransferError",
    "InvalidInput",
    "InvalidTarget",
    "NotFound",
    "PermissionLookupFailed",
    "PermissionGrantFailed",
    "PromotionFailed",
]
