"""Error taxonomy for the upload admin panel.

Every error carries the HTTP status it maps to and a human-readable message.
`main` turns any of them into a `{"success": false, "error": ..., "detail": ...}`
JSON response.
"""
from typing import Optional


class AdminPanelError(Exception):
    """Base class for all errors surfaced to API clients."""

    status_code = 500
    message = "Internal error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message if detail is None else f"{self.message}: {detail}")


class SetupError(AdminPanelError):
    """Storage directory or log file could not be created."""
    status_code = 500
    message = "Storage initialization failed"


class NoFilesError(AdminPanelError):
    status_code = 400
    message = "No files received"


class UploadLimitError(AdminPanelError):
    status_code = 413
    message = "Upload exceeds the allowed limits"


class LockTimeoutError(AdminPanelError):
    """The upload lock stayed busy for the whole retry budget. Clients may retry."""
    status_code = 503
    message = "Upload lock is busy, please try again later"


class AllocationError(AdminPanelError):
    status_code = 500
    message = "Failed to allocate an ID"


class NotFoundError(AdminPanelError):
    status_code = 404
    message = "File not found"


class PersistenceError(AdminPanelError):
    status_code = 500
    message = "Failed to save data"


class InvalidImageError(AdminPanelError):
    status_code = 400
    message = "Unsupported image type. Only jpg, png, gif and svg are allowed."


class UploadFailedError(AdminPanelError):
    """Wraps anything unexpected that escaped the upload handler."""
    status_code = 500
    message = "Upload failed"


def safe_error_message(e: Exception, fallback: str = "Unexpected error") -> str:
    """Extract a meaningful error message from an exception.

    Some exceptions produce an empty str(e). This helper falls back to the
    exception class name.
    """
    msg = str(e).strip()
    if not msg:
        msg = f"{type(e).__name__}: {fallback}"
    return msg
