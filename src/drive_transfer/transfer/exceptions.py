"""Ownership transfer exceptions."""


class TransferError(Exception):
    """Base exception for a failed ownership transfer step."""

    def __init__(self, message: str, file_id: str | None = None):
        self.file_id = file_id
        super().__init__(message)


class InvalidInput(TransferError):
    """Malformed file ID or email address."""


class InvalidTarget(InvalidInput):
    """The new owner's email address is malformed."""


class NotFound(TransferError):
    """File is missing or not accessible to the source account."""


class PermissionLookupFailed(TransferError):
    """The file's permissions could not be listed."""


class PermissionGrantFailed(TransferError):
    """The writer permission for the new owner could not be created."""


class PromotionFailed(TransferError):
    """The new owner's permission could not be located or promoted to owner."""
