"""
api/services/validation.py — request body checks that never raise.

Each validator is a pure function returning a Result: either a value or
a field → message map. Routers decide how to render the errors.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

from api.services.moderation import STATUSES
from api.services.records import BUCKETS

T = TypeVar("T")

MISSING_PARAMS = "Missing required parameters: bucket, filePath, itemId"
INVALID_BUCKET = "Invalid bucket. Must be 'papers' or 'notes'"
INVALID_BODY = "Invalid request body"


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    errors: Dict[str, str] = field(default_factory=dict)
    message: str = ""

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, errors: Dict[str, str], message: str) -> "Result[T]":
        return cls(errors=errors, message=message)


@dataclass(frozen=True)
class AccessRequest:
    bucket: str
    file_path: str
    item_id: str


def _text(body: dict, key: str) -> str:
    value = body.get(key)
    return value if isinstance(value, str) else ""


def validate_access_request(body: Any) -> Result[AccessRequest]:
    """
    Check a `{bucket, filePath, itemId}` body.

    Missing parameters are reported before an unknown bucket, so a body
    with both problems gets the missing-parameters message.
    """
    if not isinstance(body, dict):
        return Result.failure({"body": INVALID_BODY}, INVALID_BODY)

    bucket = _text(body, "bucket")
    file_path = body.get("filePath") if isinstance(body.get("filePath"), str) else ""
    item_id = _text(body, "itemId")

    missing = {
        name: "This field is required."
        for name, value in (("bucket", bucket), ("filePath", file_path), ("itemId", item_id))
        if not value
    }
    if missing:
        return Result.failure(missing, MISSING_PARAMS)

    if bucket not in BUCKETS:
        return Result.failure({"bucket": INVALID_BUCKET}, INVALID_BUCKET)

    return Result.success(AccessRequest(bucket=bucket, file_path=file_path, item_id=item_id))


def validate_status_update(body: Any) -> Result[str]:
    """Check a `{status}` moderation body."""
    if not isinstance(body, dict):
        return Result.failure({"body": INVALID_BODY}, INVALID_BODY)
    status = _text(body, "status")
    if status not in STATUSES:
        message = f"Invalid status. Must be one of: {', '.join(STATUSES)}"
        return Result.failure({"status": message}, message)
    return Result.success(status)
