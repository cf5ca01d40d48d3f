"""Configuration dataclasses for SFP Build Domain.

These dataclasses centralize all configuration options for type safety
and easy testing. They can be created from command-line arguments or
used directly in code.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field


@dataclass
class ServerConfig:
    """Connection settings for the sfp server.

    Attributes:
        url: Base URL of the sfp server hosting the lock service
        token: Application token sent with every request
    """

    url: str
    token: str

    def __repr__(self) -> str:
        return f"ServerConfig(url={self.url!r}, token='***')"


@dataclass
class SerializeConfig:
    """Configuration for build and publish serialization.

    Attributes:
        enabled: Whether builds take a lock at all (default: True)
        timeout_seconds: How long to wait for a lock (default: 900)
        lease_seconds: How long the service holds a granted lock (default: 1800)
        publish_lock: Also take the repository-wide lock around publish (default: True)
    """

    enabled: bool = True
    timeout_seconds: int = 900
    lease_seconds: int = 1800
    publish_lock: bool = True


@dataclass
class PublishConfig:
    """Configuration for artifact publishing.

    Attributes:
        npm_scope: Package scope for npm publishing (default: repository owner)
        npm: Publish to npm instead of internal-only (default: False)
        git_tag: Create git tags for published packages (default: True)
        push_git_tag: Push created tags to the remote (default: True)
    """

    npm_scope: str = ""
    npm: bool = False
    git_tag: bool = True
    push_git_tag: bool = True


@dataclass
class LogConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level string (default: "INFO")
        format: "text", "json" or "actions". None picks "actions" inside
            GitHub Actions and "text" elsewhere (default: None)
    """

    level: str = "INFO"
    format: str | None = None


@dataclass
class ActionConfig:
    """Master configuration for one build-domain run.

    Attributes:
        server: sfp server connection
        repository: Repository identifier (owner/name) the locks are scoped to
        release_config: Path to the release config YAML
        branch: Branch being built
        build_number: Build number passed to sfp
        release_name: Release candidate name override (default: branch-buildnumber)
        diff_check: Only build packages changed since the last tag
        serialize: Serialization configuration
        publish: Publishing configuration
        log: Logging configuration
    """

    server: ServerConfig
    repository: str
    release_config: str
    branch: str = "main"
    build_number: str = "1"
    release_name: str = ""
    diff_check: bool = True
    serialize: SerializeConfig = field(default_factory=SerializeConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> ActionConfig:
        """Create configuration from parsed command-line arguments."""
        return cls(
            server=ServerConfig(
                url=getattr(args, "sfp_server_url", ""),
                token=getattr(args, "sfp_server_token", ""),
            ),
            repository=getattr(args, "repository", ""),
            release_config=getattr(args, "release_config", ""),
            branch=getattr(args, "branch", "main"),
            build_number=getattr(args, "build_number", "1"),
            release_name=getattr(args, "release_name", ""),
            diff_check=getattr(args, "diff_check", True),
            serialize=SerializeConfig(
                enabled=getattr(args, "serialize", True),
                timeout_seconds=getattr(args, "serialize_timeout", 900),
                lease_seconds=getattr(args, "serialize_lease", 1800),
                publish_lock=getattr(args, "publish_lock", True),
            ),
            publish=PublishConfig(
                npm_scope=getattr(args, "npm_scope", ""),
                npm=getattr(args, "npm", False),
                git_tag=getattr(args, "git_tag", True),
                push_git_tag=getattr(args, "push_git_tag", True),
            ),
            log=LogConfig(
                level=getattr(args, "log_level", "INFO"),
                format=getattr(args, "log_format", None),
            ),
        )
