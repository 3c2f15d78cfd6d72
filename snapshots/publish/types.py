"""Types for a snapshot publishing run."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class SnapshotOptions:
    """Invocation options. Unset values fall back to settings."""

    force: bool = False
    github_token: Optional[str] = None
    branch: Optional[str] = None


@dataclass(frozen=True)
class RunContext:
    """State read once per invocation and shared by every package.

    workdir is the temporary root every mirror is cloned under. An empty
    github_token means nothing is cloned or pushed.
    """

    workdir: Path
    branch: str
    github_token: str
    message: str
    upstream_repo_url: str
    git_host_url: str = "https://github.com"
    command_timeout: int = 600

    @property
    def can_publish(self) -> bool:
        return bool(self.github_token)
