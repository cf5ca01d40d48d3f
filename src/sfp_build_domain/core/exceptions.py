"""Custom exceptions for SFP Build Domain.

All exception classes are designed to provide clear, actionable error messages
with context about what went wrong and how to fix it.

Exception hierarchy:
    BuildDomainError (base)
    ├── ConfigurationError
    ├── StepError
    └── LockError
        ├── AcquisitionError
        ├── ExtractionError
        ├── LockTimeoutError
        ├── ReleaseError
        └── StateError
            └── InvalidLockTransitionError

Acquisition-path errors (AcquisitionError, ExtractionError, LockTimeoutError)
abort the phase they occur in. ReleaseError and StateError are recovered
where they are raised and only ever surface as warnings.
"""


class BuildDomainError(Exception):
    """Base exception for all SFP Build Domain errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(BuildDomainError):
    """Exception raised for configuration-related errors.

    Examples:
        - Required action input not provided
        - Repository not specified and GITHUB_REPOSITORY not set
        - Release config file missing or without releaseName
    """

    def __init__(
        self, message: str, config_file: str | None = None, field: str | None = None, details: str | None = None
    ):
        self.config_file = config_file
        self.field = field
        super().__init__(message, details)


class StepError(BuildDomainError):
    """Exception raised when an external pipeline step fails.

    Wraps the sfp/git commands that build, publish and tag artifacts.
    The lock coordinator treats these as opaque: a failed step never
    changes how a held lock is released.
    """

    def __init__(self, message: str, step: str | None = None, exit_code: int | None = None, details: str | None = None):
        self.step = step
        self.exit_code = exit_code
        super().__init__(message, details)


class LockError(BuildDomainError):
    """Base exception for lock service protocol failures.

    Attributes:
        resource: Resource name the operation targeted
        repository: Repository identifier the resource is scoped to
    """

    def __init__(
        self,
        message: str,
        resource: str | None = None,
        repository: str | None = None,
        details: str | None = None,
    ):
        self.resource = resource
        self.repository = repository
        super().__init__(message, details)

    def __str__(self) -> str:
        text = self.message
        if self.resource and self.resource not in self.message:
            text = f"{text} for resource {self.resource}"
        if self.details:
            return f"{text}: {self.details}"
        return text


class AcquisitionError(LockError):
    """Raised when the lock service rejects an enqueue or wait request.

    The captured command output is kept in ``details`` for diagnosis.
    """


class ExtractionError(LockError):
    """Raised when no ticket ID can be recovered from an enqueue response.

    Attributes:
        output: The complete response text that was searched
    """

    def __init__(self, message: str, output: str = "", resource: str | None = None, repository: str | None = None):
        self.output = output
        super().__init__(message, resource=resource, repository=repository, details=output or "<empty response>")


class LockTimeoutError(LockError, TimeoutError):
    """Raised when a lock was not granted within the wait timeout.

    Nothing was acquired, so no release follows this error.
    """

    def __init__(self, resource: str, timeout_seconds: int, repository: str | None = None):
        self.timeout_seconds = timeout_seconds
        message = f"Failed to acquire lock for resource: {resource} within timeout ({timeout_seconds}s)"
        super().__init__(message, resource=resource, repository=repository)


class ReleaseError(LockError):
    """Raised when the lock service fails to release a ticket.

    Callers on the cleanup path log this as a warning; the lease expiry
    eventually frees the resource.
    """


class StateError(LockError):
    """Raised when a persisted lock handoff record cannot be used.

    Attributes:
        missing_fields: Names of the required fields that were empty
    """

    def __init__(self, message: str, missing_fields: list[str] | None = None, details: str | None = None):
        self.missing_fields = missing_fields or []
        if details is None and self.missing_fields:
            details = f"missing {', '.join(self.missing_fields)}"
        super().__init__(message, details=details)


class InvalidLockTransitionError(StateError):
    """Raised when a lock handle is moved along an edge its lifecycle does not allow.

    Valid transitions:
        - unacquired → enqueued
        - enqueued → waiting
        - waiting → acquired | abandoned
        - acquired → released | abandoned
    """

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Invalid lock transition: {current} → {target}")
