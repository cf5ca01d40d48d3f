"""Client for the sfp server resource lock service.

The service is reached through the ``sfp server resource`` command family.
Its responses are unstructured text on stdout/stderr plus an exit status;
the only things read from them are the ticket ID (see ``ticket.py``) and
the wait timeout marker.
"""

from __future__ import annotations

import logging
import subprocess
from enum import Enum

from sfp_build_domain.core.config import ServerConfig
from sfp_build_domain.core.constants import (
    ENQUEUE_COMMAND_TIMEOUT,
    RELEASE_COMMAND_TIMEOUT,
    SFP_EXECUTABLE,
    WAIT_COMMAND_GRACE,
    WAIT_TIMEOUT_MARKER,
)
from sfp_build_domain.core.exceptions import AcquisitionError, ExtractionError, ReleaseError
from sfp_build_domain.core.locks.ticket import extract_ticket_id
from sfp_build_domain.core.process import CommandResult, run_captured


class WaitOutcome(Enum):
    """Result of waiting on a ticket."""

    ACQUIRED = "acquired"
    TIMED_OUT = "timed_out"


def is_wait_timeout(result: CommandResult) -> bool:
    """Whether a wait response reports an expired wait.

    The marker is searched on both channels before the exit status is
    looked at, because the service can exit 0 after timing out.
    """
    return WAIT_TIMEOUT_MARKER in result.stdout or WAIT_TIMEOUT_MARKER in result.stderr


class LockServiceClient:
    """Issues enqueue, wait and release requests to the lock service."""

    def __init__(
        self,
        server: ServerConfig,
        *,
        executable: str = SFP_EXECUTABLE,
        logger: logging.Logger | None = None,
    ):
        self.server = server
        self.executable = executable
        self.logger = logger or logging.getLogger(__name__)

    def _resource_args(self, action: str, resource: str, repository: str) -> list[str]:
        return ["server", "resource", action, "--repository", repository, "--resource", resource]

    def _server_args(self) -> list[str]:
        return ["--sfp-server-url", self.server.url, "--application-token", self.server.token]

    def _run(self, args: list[str], timeout: float, silent: bool) -> CommandResult:
        return run_captured(self.executable, args, timeout=timeout, silent=silent, logger=self.logger)

    def enqueue(self, resource: str, repository: str, lease_seconds: int) -> str:
        """Request a place in the resource's queue.

        Returns:
            The ticket ID issued for this (resource, repository).

        Raises:
            AcquisitionError: The service rejected the request or could not be reached.
            ExtractionError: The response did not contain a recognisable ticket ID.
        """
        args = [
            *self._resource_args("enqueue", resource, repository),
            "--leasefor",
            str(lease_seconds),
            *self._server_args(),
        ]

        self.logger.info(f"Serializing on resource: {resource}")
        self.logger.info(f"Lease duration: {lease_seconds} seconds")

        try:
            result = self._run(args, timeout=ENQUEUE_COMMAND_TIMEOUT, silent=True)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise AcquisitionError(
                "Failed to enqueue", resource=resource, repository=repository, details=str(e)
            ) from e

        if not result.ok:
            raise AcquisitionError(
                "Failed to enqueue", resource=resource, repository=repository, details=result.diagnostics()
            )

        try:
            ticket = extract_ticket_id(result.stdout)
        except ExtractionError as e:
            raise ExtractionError(e.message, output=e.output, resource=resource, repository=repository) from e
        self.logger.info(f"Enqueued with ticket ID: {ticket}")
        return ticket

    def wait(self, resource: str, repository: str, ticket: str, timeout_seconds: int) -> WaitOutcome:
        """Block until the ticket is granted or the wait times out.

        Raises:
            AcquisitionError: The service reported a failure other than a timeout.
        """
        args = [
            *self._resource_args("wait", resource, repository),
            "--ticketid",
            ticket,
            "--wait",
            str(timeout_seconds),
            *self._server_args(),
        ]

        self.logger.info(f"Waiting for lock acquisition on resource: {resource}")
        self.logger.info(f"Timeout: {timeout_seconds} seconds")

        try:
            result = self._run(args, timeout=timeout_seconds + WAIT_COMMAND_GRACE, silent=False)
        except subprocess.TimeoutExpired:
            self.logger.warning(f"Timeout waiting for lock on resource: {resource}")
            return WaitOutcome.TIMED_OUT
        except OSError as e:
            raise AcquisitionError(
                "Failed to acquire lock", resource=resource, repository=repository, details=str(e)
            ) from e

        if is_wait_timeout(result):
            self.logger.warning(f"Timeout waiting for lock on resource: {resource}")
            return WaitOutcome.TIMED_OUT

        if not result.ok:
            raise AcquisitionError(
                "Failed to acquire lock", resource=resource, repository=repository, details=result.diagnostics()
            )

        self.logger.info(f"Lock acquired for resource: {resource}")
        return WaitOutcome.ACQUIRED

    def release(self, resource: str, repository: str, ticket: str) -> None:
        """Give a granted ticket back to the service.

        Raises:
            ReleaseError: The service did not confirm the release.
        """
        args = [
            *self._resource_args("dequeue", resource, repository),
            "--ticketid",
            ticket,
            *self._server_args(),
        ]

        self.logger.info(f"Releasing lock for resource: {resource}")
        self.logger.info(f"Ticket ID: {ticket}")

        try:
            result = self._run(args, timeout=RELEASE_COMMAND_TIMEOUT, silent=True)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ReleaseError(
                "Failed to release lock", resource=resource, repository=repository, details=str(e)
            ) from e

        if not result.ok:
            if result.stderr:
                self.logger.debug(f"sfp stderr: {result.stderr}")
            raise ReleaseError(
                "Failed to release lock", resource=resource, repository=repository, details=result.diagnostics()
            )

        self.logger.info(f"Lock released for resource: {resource}")
