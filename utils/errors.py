"""Error taxonomy shared by capture, inference and the learning backend."""

from typing import Optional


class VocabaryError(Exception):
    """Base class for all service errors."""


class CaptureError(VocabaryError):
    """Raised when the camera stream cannot be acquired."""


class PermissionDenied(CaptureError):
    """Camera access was refused by the platform.

    Terminal until the user re-grants access; never retried automatically.
    """


class AcquisitionFailed(CaptureError):
    """Transient capture failure that survived every retry attempt."""

    def __init__(self, message: str, attempts: int = 1):
        super().__init__(message)
        self.attempts = attempts


class ModelLoadFailed(VocabaryError):
    """Both the primary and the fallback detector configurations failed."""

    def __init__(
        self,
        message: str,
        primary_error: Optional[BaseException] = None,
        fallback_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.primary_error = primary_error
        self.fallback_error = fallback_error


class InferenceError(VocabaryError):
    """A single inference call failed; recovered locally by the session."""


class LearningApiError(VocabaryError):
    """The learning backend rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(VocabaryError):
    """A user, list or list entry id does not exist."""


class ConflictError(VocabaryError):
    """The record already exists (e.g. a taken username)."""


__all__ = [
    "VocabaryError",
    "CaptureError",
    "PermissionDenied",
    "AcquisitionFailed",
    "ModelLoadFailed",
    "InferenceError",
    "LearningApiError",
    "NotFoundError",
    "ConflictError",
]
