"""Core module - Foundation components with no internal dependencies.

This module provides the basic building blocks used throughout the application:
- Version information
- Custom exceptions
- Configuration dataclasses
- Constants and resource naming
- Console colors
"""

from sfp_build_domain.core.version import __version__

from sfp_build_domain.core.exceptions import (
    BuildDomainError,
    ConfigurationError,
    StepError,
    LockError,
    AcquisitionError,
    ExtractionError,
    LockTimeoutError,
    ReleaseError,
    StateError,
    InvalidLockTransitionError,
)

from sfp_build_domain.core.config import (
    ServerConfig,
    SerializeConfig,
    PublishConfig,
    LogConfig,
    ActionConfig,
)

from sfp_build_domain.core.constants import (
    build_resource_name,
    global_resource_name,
)

from sfp_build_domain.core.colors import ConsoleColors

__all__ = [
    # Version
    '__version__',
    # Exceptions
    'BuildDomainError',
    'ConfigurationError',
    'StepError',
    'LockError',
    'AcquisitionError',
    'ExtractionError',
    'LockTimeoutError',
    'ReleaseError',
    'StateError',
    'InvalidLockTransitionError',
    # Config dataclasses
    'ServerConfig',
    'SerializeConfig',
    'PublishConfig',
    'LogConfig',
    'ActionConfig',
    # Naming
    'build_resource_name',
    'global_resource_name',
    # Colors
    'ConsoleColors',
]
