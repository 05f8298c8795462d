"""
studyshare/objects.py — temporary in-memory byte objects.

A fetched PDF is held in the registry under an opaque reference
("blob:study-share/<uuid>") for as long as something is showing or
saving it. Whoever creates a reference revokes it; `temporary()` does
both around a block so every exit path releases it.

`outstanding` counts live references. It must return to zero once every
preview is closed and every download has finished.
"""
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, Tuple

log = logging.getLogger("study_share.objects")

PDF = "application/pdf"


@dataclass(frozen=True)
class ObjectRef:
    ref: str
    content_type: str
    size: int


class ObjectRegistry:
    def __init__(self) -> None:
        self._objects: Dict[str, Tuple[bytes, str]] = {}

    def create(self, data: bytes, content_type: str = PDF) -> ObjectRef:
        ref = f"blob:study-share/{uuid.uuid4()}"
        self._objects[ref] = (data, content_type)
        log.debug("created %s (%d KB)", ref, len(data) // 1024)
        return ObjectRef(ref=ref, content_type=content_type, size=len(data))

    def read(self, obj: ObjectRef) -> bytes:
        """Bytes behind a live reference. Raises LookupError once revoked."""
        try:
            return self._objects[obj.ref][0]
        except KeyError:
            raise LookupError(f"{obj.ref} has been revoked") from None

    def revoke(self, obj: ObjectRef) -> None:
        """Release a reference. Revoking twice is a no-op."""
        if self._objects.pop(obj.ref, None) is not None:
            log.debug("revoked %s", obj.ref)

    def is_live(self, obj: ObjectRef) -> bool:
        return obj.ref in self._objects

    @property
    def outstanding(self) -> int:
        return len(self._objects)

    @contextmanager
    def temporary(self, data: bytes, content_type: str = PDF) -> Iterator[ObjectRef]:
        """Create a reference for the duration of the block."""
        obj = self.create(data, content_type)
        try:
            yield obj
        finally:
            self.revoke(obj)


# Process-wide registry used when callers don't pass their own
registry = ObjectRegistry()
