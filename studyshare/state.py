"""
studyshare/state.py — observable phase of a one-shot request.

loading → (success | error). A new begin() clears the previous outcome.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class RequestState:
    loading: bool = False
    error: Optional[str] = None
    succeeded: bool = False
    received: int = 0
    total: Optional[int] = None

    def begin(self) -> None:
        self.loading = True
        self.error = None
        self.succeeded = False
        self.received = 0
        self.total = None

    def progress(self, received: int, total: Optional[int]) -> None:
        self.received = received
        self.total = total

    def succeed(self) -> None:
        self.loading = False
        self.succeeded = True

    def fail(self, message: str) -> None:
        self.loading = False
        self.succeeded = False
        self.error = message

    def reset(self) -> None:
        self.begin()
        self.loading = False

    @property
    def percent(self) -> Optional[int]:
        if not self.total:
            return None
        return min(100, round(self.received * 100 / self.total))
