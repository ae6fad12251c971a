"""
Trip status transition policy.

Every status change goes through ``TransitionPolicy.check``.  The default
policy is permissive (any status may move to any other, manual override is
always possible); an allow-list can be supplied without touching callers.
"""

from __future__ import annotations

from typing import Mapping, Optional

from .errors import InvalidStateTransition


class TransitionPolicy:
    def __init__(self, allowed: Optional[Mapping[str, set[str]]] = None):
        # None means unrestricted
        self.allowed = allowed

    def is_allowed(self, current: str, new: str) -> bool:
        if self.allowed is None or current == new:
            return True
        return new in self.allowed.get(current, set())

    def check(self, current: str, new: str) -> None:
        """Raise if *current* -> *new* is not a legal move."""
        if not self.is_allowed(current, new):
            raise InvalidStateTransition(
                f"Cannot transition from {current} to {new}"
            )


PERMISSIVE = TransitionPolicy()
