"""Constants and default values for SFP Build Domain.

This module centralizes all magic numbers, default configurations,
and naming rules used throughout the application.
"""

import re

ACTION_NAME = "build-domain"
CLEANUP_ACTION_NAME = "build-domain (cleanup)"

# ==================== DISPLAY CONSTANTS ====================

# Width of banner separator lines (used across CLI output)
BANNER_WIDTH: int = 90

# ==================== LOCK SERVICE ====================

SFP_EXECUTABLE: str = "sfp"

DEFAULT_SERIALIZE_TIMEOUT: int = 900  # Seconds to wait for a lock before failing
DEFAULT_SERIALIZE_LEASE: int = 1800  # Seconds the service holds a granted lock

# Enqueue and dequeue return promptly; these bound a hung CLI process.
ENQUEUE_COMMAND_TIMEOUT: int = 300
RELEASE_COMMAND_TIMEOUT: int = 300
# Extra seconds granted to the wait process beyond the lock wait timeout.
WAIT_COMMAND_GRACE: int = 120

# Marker the lock service prints when a wait expires. It may appear with
# exit status 0, so it is checked before the exit status.
WAIT_TIMEOUT_MARKER: str = "Timeout"

BUILD_RESOURCE_PREFIX: str = "build-"
GLOBAL_RESOURCE_PREFIX: str = "publish-"
RESOURCE_SEPARATOR: str = "-"
_RESOURCE_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]+")

# ==================== HANDOFF STATE KEYS ====================

STATE_SERIALIZE = "SERIALIZE"
STATE_TICKET_ID = "TICKET_ID"
STATE_RESOURCE = "RESOURCE"
STATE_REPOSITORY = "REPOSITORY"
STATE_SERVER_URL = "SFP_SERVER_URL"
STATE_SERVER_TOKEN = "SFP_SERVER_TOKEN"

# Scope prefixes so the build lock and the global publish lock keep
# separate handoff records within one job.
BUILD_STATE_SCOPE = ""
PUBLISH_STATE_SCOPE = "PUBLISH_"

# ==================== PIPELINE ====================

ARTIFACTS_DIR: str = "artifacts"
ARTIFACT_SUFFIX: str = ".zip"
DEVHUB_ALIAS: str = "devhub"
DEFAULT_BRANCH: str = "main"
DEFAULT_BUILD_NUMBER: str = "1"

# ==================== LOGGING DEFAULTS ====================

LOG_FORMATS = ("text", "json", "actions")


def build_resource_name(release_name: str) -> str:
    """Resource serializing builds of one release domain."""
    return f"{BUILD_RESOURCE_PREFIX}{release_name}"


def global_resource_name(repository: str) -> str:
    """Derive the repository-wide publish lock name.

    Every run of characters outside ``[A-Za-z0-9]`` becomes a single
    separator, so ``org/app`` maps to ``publish-org-app``.
    """
    normalized = _RESOURCE_UNSAFE_CHARS.sub(RESOURCE_SEPARATOR, repository.strip()).strip(RESOURCE_SEPARATOR)
    return f"{GLOBAL_RESOURCE_PREFIX}{normalized}"
