"""Lock handoff between the acquiring run and the cleanup run.

The step that acquires a lock and the step that finally releases it run as
separate processes. The runner schedules the cleanup step whenever the main
step started, even if it later failed or crashed, so a handle persisted right
after acquisition is always seen by a process able to release it.

The record is a flat string map, written once after acquisition and read
once by the cleanup step.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from sfp_build_domain.core.config import ServerConfig
from sfp_build_domain.core.constants import (
    BUILD_STATE_SCOPE,
    STATE_REPOSITORY,
    STATE_RESOURCE,
    STATE_SERIALIZE,
    STATE_SERVER_TOKEN,
    STATE_SERVER_URL,
    STATE_TICKET_ID,
)
from sfp_build_domain.core.exceptions import ReleaseError, StateError
from sfp_build_domain.core.locks.client import LockServiceClient
from sfp_build_domain.core.locks.handle import LockHandle
from sfp_build_domain.core.logging import register_secret

_TRUE = "true"


class StateStore(Protocol):
    """Job-scoped string key/value store."""

    def save(self, name: str, value: str) -> None:
        """Record ``value`` for later steps of the same job."""

    def get(self, name: str) -> str:
        """Return the recorded value, or an empty string."""


class MemoryStateStore:
    """Dict-backed store for tests and local runs."""

    def __init__(self, values: dict[str, str] | None = None):
        self.values: dict[str, str] = dict(values or {})

    def save(self, name: str, value: str) -> None:
        self.values[name] = value

    def get(self, name: str) -> str:
        return self.values.get(name, "")


@dataclass
class PersistedLockState:
    """Everything the cleanup step needs to release one lock."""

    serialize: bool
    ticket: str
    resource: str
    repository: str
    server_url: str
    server_token: str

    def missing_fields(self) -> list[str]:
        required = {
            "resource": self.resource,
            "repository": self.repository,
            "server_url": self.server_url,
            "server_token": self.server_token,
        }
        return [name for name, value in required.items() if not value]

    def require_complete(self) -> None:
        """Raise StateError unless every field needed for a release is present."""
        missing = self.missing_fields()
        if missing:
            raise StateError("Missing required state for dequeue", missing_fields=missing)

    @property
    def server(self) -> ServerConfig:
        return ServerConfig(url=self.server_url, token=self.server_token)


class ReleaseDecision(Enum):
    """What the cleanup step did with a handoff record."""

    NOT_SERIALIZED = "not_serialized"
    NO_TICKET = "no_ticket"
    INCOMPLETE_STATE = "incomplete_state"
    RELEASED = "released"
    RELEASE_FAILED = "release_failed"


class CrossInvocationStateStore:
    """Reads and writes one lock's handoff record.

    Args:
        store: Backing job-state store
        scope: Key prefix separating records of different locks in one job
    """

    def __init__(self, store: StateStore, scope: str = BUILD_STATE_SCOPE, logger: logging.Logger | None = None):
        self.store = store
        self.scope = scope
        self.logger = logger or logging.getLogger(__name__)

    def _key(self, name: str) -> str:
        return f"{self.scope}{name}"

    def persist(self, handle: LockHandle, server_url: str, server_token: str) -> None:
        """Record an acquired handle so the cleanup step can release it."""
        if not handle.acquired or not handle.ticket:
            raise StateError(f"Refusing to persist lock for {handle.resource} in state '{handle.state.value}'")
        register_secret(server_token)
        self.store.save(self._key(STATE_TICKET_ID), handle.ticket)
        self.store.save(self._key(STATE_RESOURCE), handle.resource)
        self.store.save(self._key(STATE_REPOSITORY), handle.repository)
        self.store.save(self._key(STATE_SERVER_URL), server_url)
        self.store.save(self._key(STATE_SERVER_TOKEN), server_token)
        self.store.save(self._key(STATE_SERIALIZE), _TRUE)

    def discard(self) -> None:
        """Mark the record consumed once the release was attempted in-process."""
        self.store.save(self._key(STATE_TICKET_ID), "")

    def load(self) -> PersistedLockState | None:
        state = PersistedLockState(
            serialize=self.store.get(self._key(STATE_SERIALIZE)) == _TRUE,
            ticket=self.store.get(self._key(STATE_TICKET_ID)),
            resource=self.store.get(self._key(STATE_RESOURCE)),
            repository=self.store.get(self._key(STATE_REPOSITORY)),
            server_url=self.store.get(self._key(STATE_SERVER_URL)),
            server_token=self.store.get(self._key(STATE_SERVER_TOKEN)),
        )
        if not state.serialize and not state.ticket:
            return None
        return state

    def release_from_state(
        self,
        client_factory: Callable[[ServerConfig], LockServiceClient],
        *,
        mask_secret: Callable[[str], None] | None = None,
    ) -> ReleaseDecision:
        """Release the lock described by the record, if it is safe to do so.

        Never raises for release or state problems; those are logged as
        warnings and the lease expiry frees the resource.
        """
        state = self.load()

        if state is None or not state.serialize:
            self.logger.info("Serialization was not enabled, skipping cleanup")
            return ReleaseDecision.NOT_SERIALIZED

        if not state.ticket:
            self.logger.info("No ticket ID found in state, skipping cleanup")
            return ReleaseDecision.NO_TICKET

        try:
            state.require_complete()
        except StateError as e:
            self.logger.warning(f"{e.message}. The lock may need to be manually released.")
            for name in ("ticket", "resource", "repository", "server_url", "server_token"):
                presence = "present" if getattr(state, name) else "missing"
                self.logger.debug(f"{name}: {presence}")
            return ReleaseDecision.INCOMPLETE_STATE

        register_secret(state.server_token)
        if mask_secret is not None:
            mask_secret(state.server_token)

        client = client_factory(state.server)
        try:
            client.release(state.resource, state.repository, state.ticket)
        except ReleaseError as e:
            self.logger.warning(f"Cleanup failed: {e}")
            self.logger.warning("The lock may need to be manually released or will expire after lease duration.")
            return ReleaseDecision.RELEASE_FAILED

        return ReleaseDecision.RELEASED
