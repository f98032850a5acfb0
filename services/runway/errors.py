"""Exceptions raised by the Runway client."""

from typing import Optional


class RunwayError(Exception):
    """Base class for all Runway client failures."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code
        super().__init__(message)


class InvalidInputError(RunwayError):
    """Raised when caller input cannot be used, e.g. an image URL without a filename."""

    def __init__(self, message: str):
        super().__init__(message, error_code="INVALID_INPUT")


class AuthMismatchError(RunwayError):
    """Raised when the active credential does not own the requested task."""

    def __init__(self, message: str):
        super().__init__(message, error_code="PERMISSION_DENIED")


class TaskFailureError(RunwayError):
    """Raised when a remote job reached the FAILED state."""

    def __init__(self, message: str, progress_text: Optional[str] = None):
        self.progress_text = progress_text
        super().__init__(message, error_code="TASK_FAILED")


class UploadError(RunwayError):
    """Raised when one of the reserve / transfer / commit phases fails."""

    def __init__(self, message: str, phase: str, source_url: str):
        self.phase = phase
        self.source_url = source_url
        super().__init__(message, error_code=f"UPLOAD_{phase.upper()}")


class GenerationError(RunwayError):
    """Raised when a generation job could not be submitted."""

    def __init__(self, message: str):
        super().__init__(message, error_code="GENERATION_FAILED")


class NetworkError(RunwayError):
    """Raised on transport failures and unexpected HTTP status codes."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        code = f"HTTP_{status_code}" if status_code else "REQUEST_ERROR"
        super().__init__(message, error_code=code)
