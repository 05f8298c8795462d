"""
api/services/moderation.py — record status transitions.

    pending  → approved
    pending  → rejected
    approved → pending     (admin reset)
    rejected → pending     (admin reset)

Every transition is an admin action; there are no automatic ones.
Concurrent moderators resolve as last-write-wins on the status column.
"""
from typing import Optional

STATUSES = ("pending", "approved", "rejected")

_TRANSITIONS = {
    "pending":  {"approved", "rejected"},
    "approved": {"pending"},
    "rejected": {"pending"},
}


class IllegalTransition(Exception):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move a {current} item to {target}")
        self.current = current
        self.target = target


def can_transition(current: str, target: str) -> bool:
    return target in _TRANSITIONS.get(current, set())


def check_transition(current: str, target: str) -> None:
    """Raise IllegalTransition unless current → target is allowed."""
    if not can_transition(current, target):
        raise IllegalTransition(current, target)


def is_publicly_visible(status: Optional[str]) -> bool:
    """Only approved items are served to callers who do not own them."""
    return status == "approved"
