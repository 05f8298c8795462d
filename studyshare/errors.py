"""
studyshare/errors.py — failures the client reports to the user.

Nothing in the client retries; each of these ends the one-shot sequence
that raised it and its message is shown as-is.
"""
from typing import Optional

GENERIC_ACCESS_ERROR = "Failed to get download URL"


class StudyShareError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AccessError(StudyShareError):
    """The broker refused (its message verbatim) or could not be reached."""


class NetworkFailure(StudyShareError):
    """Fetching bytes from a signed URL failed."""
