"""Types for the package table."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class PackageInfo:
    """One publishable unit of the monorepo.

    snapshot_repo is the mirror in ``owner/name`` form and snapshot_hash
    the tag applied to the snapshot commit (normally a source commit hash).
    """

    name: str
    dist: Path
    snapshot: bool = False
    snapshot_repo: str = ""
    snapshot_hash: str = ""


@dataclass(frozen=True)
class BuildCommands:
    """Shell commands for the external build collaborators.

    Empty strings mean "not configured" and the step is skipped.
    """

    staging: str = ""
    build: str = ""
    help: str = ""


@dataclass(frozen=True)
class SnapshotConfig:
    """Everything read from the snapshot config file."""

    packages: tuple[PackageInfo, ...] = ()
    commands: BuildCommands = field(default_factory=BuildCommands)
    upstream_repo_url: Optional[str] = None


class PackageConfigError(Exception):
    """Raised when the package table is missing, malformed or inconsistent."""
