"""Drive API exceptions."""


class DriveAPIError(Exception):
    """Raised when the Drive API rejects or fails a request."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404
