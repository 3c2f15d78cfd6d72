from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _normalise_host_url(url: str) -> str:
    """Strip trailing slashes so repo paths can be joined with a single '/'."""
    return url.strip().rstrip("/")


class Settings(BaseSettings):
    """Publisher settings loaded from environment variables.

    Two variables keep their historical CI names and take no prefix:

    SNAPSHOT_BUILDS_GITHUB_TOKEN: credential used to push snapshots
    CIRCLE_BRANCH: branch the CI job is building

    Everything else reads ``SNAPSHOTS_<FIELD>`` (e.g. ``SNAPSHOTS_BUILD_COMMAND``).
    """

    model_config = SettingsConfigDict(
        env_prefix="SNAPSHOTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Credential and branch, both optional. An empty token means dry run.
    github_token: str = Field(
        default="",
        validation_alias=AliasChoices(
            "SNAPSHOT_BUILDS_GITHUB_TOKEN", "SNAPSHOTS_GITHUB_TOKEN", "github_token"
        ),
    )
    ci_branch: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CIRCLE_BRANCH", "SNAPSHOTS_CI_BRANCH", "ci_branch"),
    )
    default_branch: str = "main"

    # Package table and the repository the snapshots are cut from.
    config_path: Path = Path("snapshots.yaml")
    source_root: Path = Path(".")

    # Global git identity, written only when a token is present.
    git_user_name: str = "Snapshot Builds"
    git_user_email: str = "snapshot-builds@users.noreply.github.com"

    # Mirror hosting. Tokens are embedded only for http(s) hosts.
    git_host_url: str = "https://github.com"
    upstream_repo_url: str = "https://github.com/example/monorepo"

    @field_validator("git_host_url", "upstream_repo_url", mode="before")
    @classmethod
    def normalise_host_url(cls, v: str) -> str:
        return _normalise_host_url(v)

    # External collaborators. Empty commands are skipped.
    staging_command: str = ""
    build_command: str = ""
    help_command: str = ""

    # Wall-clock limit for every external command (seconds).
    command_timeout: int = 600

    # Preflight check of mirror permissions through the GitHub API.
    verify_mirrors: bool = False
    github_api_url: str = "https://api.github.com"

    # Leave the temporary clone root on disk after the run (debugging aid).
    keep_workdir: bool = False

    # Sentry: leave blank to disable error capture.
    sentry_dsn: str = ""

    # Logging
    debug: bool = False
    json_logs: bool = False


def get_settings() -> Settings:
    return Settings()
