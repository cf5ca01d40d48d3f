"""Lock coordinator driving the enqueue, wait, hold, release protocol."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from sfp_build_domain.core.config import ServerConfig
from sfp_build_domain.core.exceptions import AcquisitionError, LockTimeoutError, ReleaseError
from sfp_build_domain.core.locks.client import LockServiceClient, WaitOutcome
from sfp_build_domain.core.locks.handle import LockHandle, LockRequest
from sfp_build_domain.core.locks.state import CrossInvocationStateStore

T = TypeVar("T")


class LockCoordinator:
    """Runs one resource's lock cycle against the lock service.

    Acquisition failures (enqueue, ticket extraction, wait error, timeout)
    are raised to the caller. Release failures are logged and swallowed:
    the lease expiry is what ultimately frees the resource.

    Args:
        client: Lock service client
        server: Server connection recorded in the handoff record
        state_store: Where acquired handles are persisted for the cleanup
            step. ``None`` disables the handoff.
    """

    def __init__(
        self,
        client: LockServiceClient,
        server: ServerConfig,
        *,
        state_store: CrossInvocationStateStore | None = None,
        logger: logging.Logger | None = None,
    ):
        self.client = client
        self.server = server
        self.state_store = state_store
        self.logger = logger or logging.getLogger(__name__)

    def acquire(self, request: LockRequest, timeout_seconds: int) -> LockHandle:
        """Enqueue for ``request.resource`` and wait until it is granted.

        Returns:
            A handle in the ACQUIRED state, already persisted for cleanup.

        Raises:
            AcquisitionError: Enqueue or wait failed.
            ExtractionError: No ticket ID in the enqueue response.
            LockTimeoutError: The wait expired before the lock was granted.
        """
        handle = LockHandle.for_request(request)

        ticket = self.client.enqueue(request.resource, request.repository, request.lease_seconds)
        handle.mark_enqueued(ticket)

        handle.mark_waiting()
        try:
            outcome = self.client.wait(request.resource, request.repository, ticket, timeout_seconds)
        except AcquisitionError:
            handle.mark_abandoned()
            raise

        if outcome is WaitOutcome.TIMED_OUT:
            handle.mark_abandoned()
            raise LockTimeoutError(request.resource, timeout_seconds, repository=request.repository)

        handle.mark_acquired()
        if self.state_store is not None:
            try:
                self.state_store.persist(handle, self.server.url, self.server.token)
            except OSError:
                # Without a handoff record the cleanup step cannot release; do it now.
                self._release_handle(handle)
                raise
        return handle

    def release(self, handle: LockHandle) -> bool:
        """Release an acquired handle.

        Handles that never reached ACQUIRED are ignored. Returns True only
        when the service confirmed the release.
        """
        if not handle.should_release:
            self.logger.debug(f"Lock for {handle.resource} is {handle.state.value}; nothing to release")
            return False

        try:
            return self._release_handle(handle)
        finally:
            # One release attempt per acquisition; the cleanup step must not repeat it.
            if self.state_store is not None:
                self._discard_handoff(handle)

    def _discard_handoff(self, handle: LockHandle) -> None:
        try:
            self.state_store.discard()
        except OSError as e:
            # The record still names the ticket; cleanup will retry the release.
            self.logger.warning(f"Could not clear lock state for resource {handle.resource}: {e}")

    def _release_handle(self, handle: LockHandle) -> bool:
        try:
            self.client.release(handle.resource, handle.repository, handle.ticket)
        except ReleaseError as e:
            handle.mark_abandoned()
            self.logger.warning(f"Failed to release lock for resource {handle.resource}: {e}")
            self.logger.warning("The lock may need to be manually released or will expire after lease duration.")
            return False
        handle.mark_released()
        return True

    @contextmanager
    def hold(self, request: LockRequest, timeout_seconds: int) -> Iterator[LockHandle]:
        """Hold the lock for the duration of the block.

        The release is attempted on every exit path of the block, including
        exceptions raised inside it.
        """
        handle = self.acquire(request, timeout_seconds)
        try:
            yield handle
        finally:
            self.release(handle)

    def run_protected(self, request: LockRequest, timeout_seconds: int, operation: Callable[[], T]) -> T:
        """Run ``operation`` while holding the lock and return its result."""
        with self.hold(request, timeout_seconds):
            return operation()
