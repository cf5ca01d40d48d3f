"""Locking subsystem for cross-run build serialization.

This package wraps the sfp server lock service behind a coordinator that
guarantees an acquired lock is released, either in-process or by the
separately scheduled cleanup step.
"""

from sfp_build_domain.core.locks.client import LockServiceClient, WaitOutcome, is_wait_timeout
from sfp_build_domain.core.locks.handle import LockHandle, LockRequest, LockState
from sfp_build_domain.core.locks.manager import LockCoordinator
from sfp_build_domain.core.locks.state import (
    CrossInvocationStateStore,
    MemoryStateStore,
    PersistedLockState,
    ReleaseDecision,
    StateStore,
)
from sfp_build_domain.core.locks.ticket import extract_ticket_id

__all__ = [
    "CrossInvocationStateStore",
    "LockCoordinator",
    "LockHandle",
    "LockRequest",
    "LockServiceClient",
    "LockState",
    "MemoryStateStore",
    "PersistedLockState",
    "ReleaseDecision",
    "StateStore",
    "WaitOutcome",
    "extract_ticket_id",
    "is_wait_timeout",
]
