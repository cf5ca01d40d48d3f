"""Lock request and handle types.

A ``LockHandle`` tracks one resource through its acquisition lifecycle::

    UNACQUIRED -> ENQUEUED -> WAITING -> ACQUIRED | ABANDONED
    ACQUIRED -> RELEASED | ABANDONED

Only a handle that reached ACQUIRED is ever released. A handle abandoned
while waiting was never granted, so nothing is released for it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from sfp_build_domain.core.exceptions import InvalidLockTransitionError


class LockState(Enum):
    """Lifecycle states of a lock handle."""

    UNACQUIRED = "unacquired"
    ENQUEUED = "enqueued"
    WAITING = "waiting"
    ACQUIRED = "acquired"
    RELEASED = "released"
    ABANDONED = "abandoned"  # Terminal: wait failed, or release failed and the lease will expire

    @property
    def is_terminal(self) -> bool:
        return self in (LockState.RELEASED, LockState.ABANDONED)


_TRANSITIONS: dict[LockState, frozenset[LockState]] = {
    LockState.UNACQUIRED: frozenset({LockState.ENQUEUED}),
    LockState.ENQUEUED: frozenset({LockState.WAITING}),
    LockState.WAITING: frozenset({LockState.ACQUIRED, LockState.ABANDONED}),
    LockState.ACQUIRED: frozenset({LockState.RELEASED, LockState.ABANDONED}),
    LockState.RELEASED: frozenset(),
    LockState.ABANDONED: frozenset(),
}


@dataclass(frozen=True)
class LockRequest:
    """Input to an enqueue call."""

    resource: str
    repository: str
    lease_seconds: int

    def __post_init__(self) -> None:
        if not self.resource:
            raise ValueError("resource must be non-empty")
        if not self.repository:
            raise ValueError("repository must be non-empty")
        if self.lease_seconds <= 0:
            raise ValueError("lease_seconds must be positive")


@dataclass
class LockHandle:
    """Everything needed to release one resource's lock.

    A ticket is only meaningful together with the (resource, repository)
    pair it was issued for, so the three always travel together.
    """

    resource: str
    repository: str
    ticket: str | None = None
    state: LockState = field(default=LockState.UNACQUIRED)

    @classmethod
    def for_request(cls, request: LockRequest) -> LockHandle:
        return cls(resource=request.resource, repository=request.repository)

    @property
    def acquired(self) -> bool:
        return self.state is LockState.ACQUIRED

    @property
    def should_release(self) -> bool:
        return self.state is LockState.ACQUIRED and bool(self.ticket)

    def _transition(self, target: LockState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidLockTransitionError(self.state.value, target.value)
        self.state = target

    def mark_enqueued(self, ticket: str) -> None:
        if not ticket:
            raise ValueError("ticket must be non-empty")
        self._transition(LockState.ENQUEUED)
        self.ticket = ticket

    def mark_waiting(self) -> None:
        self._transition(LockState.WAITING)

    def mark_acquired(self) -> None:
        self._transition(LockState.ACQUIRED)

    def mark_released(self) -> None:
        self._transition(LockState.RELEASED)

    def mark_abandoned(self) -> None:
        self._transition(LockState.ABANDONED)
