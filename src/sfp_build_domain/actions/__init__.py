"""Actions module - GitHub Actions runner I/O and the sfp/git pipeline steps."""

from sfp_build_domain.actions.platform import (
    ActionsStateStore,
    get_bool_input,
    get_input,
    get_int_input,
    get_state,
    save_state,
    set_failed,
    set_output,
    set_secret,
)
from sfp_build_domain.actions.steps import ArtifactReport, ReleaseConfig, read_release_config

__all__ = [
    "ActionsStateStore",
    "ArtifactReport",
    "ReleaseConfig",
    "get_bool_input",
    "get_input",
    "get_int_input",
    "get_state",
    "read_release_config",
    "save_state",
    "set_failed",
    "set_output",
    "set_secret",
]
