"""
SFP Build Domain - serialized build and publish for sfp-managed repositories

Coordinates builds of a release domain across concurrent CI runs by holding
ticketed leases on the sfp server lock service, and hands the lock over to a
separately scheduled cleanup step so it is always released.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

__all__ = ["__version__", "main", "cleanup"]

if TYPE_CHECKING:
    from sfp_build_domain.cli.main import cleanup, main
    from sfp_build_domain.core.version import __version__


def __getattr__(name: str) -> Any:
    if name == "__version__":
        from sfp_build_domain.core.version import __version__

        return __version__
    if name in __all__:
        import importlib

        return getattr(importlib.import_module("sfp_build_domain.cli.main"), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
