"""Command line entry for snapshot publishing.

Usage:
    snapshot-publish [--force] [--github-token TOKEN] [--branch BRANCH]
    snapshot-publish --config tools/snapshots.yaml --verify-mirrors
    python -m snapshots --log-level DEBUG --json-logs

Every option also has an environment form (see `Settings`); flags win.
"""

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

import httpx
import sentry_sdk

from snapshots.build.types import BuildStepError
from snapshots.core import exit_codes
from snapshots.core.config import Settings, get_settings
from snapshots.core.logging import configure_structlog
from snapshots.core.sentry import init_sentry
from snapshots.git.commands import GitCommandError
from snapshots.git.repo import short_head_hash
from snapshots.github.client import MirrorCheckError
from snapshots.packages.loader import load_snapshot_config
from snapshots.packages.types import BuildCommands, PackageConfigError, SnapshotConfig
from snapshots.publish.publisher import run_snapshots
from snapshots.publish.types import SnapshotOptions

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snapshot-publish",
        description="Build all packages and publish snapshots to their mirror repositories.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Publish even if the working tree has uncommitted changes.",
    )
    parser.add_argument(
        "--github-token",
        dest="github_token",
        default=None,
        help="Token used to push snapshots (default: $SNAPSHOT_BUILDS_GITHUB_TOKEN).",
    )
    parser.add_argument(
        "--branch",
        default=None,
        help="Mirror branch to publish to (default: $CIRCLE_BRANCH, then 'main').",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the snapshot config YAML (default: snapshots.yaml).",
    )
    parser.add_argument(
        "--source-root",
        dest="source_root",
        type=Path,
        default=None,
        help="Repository the snapshots are built from (default: current directory).",
    )
    parser.add_argument(
        "--verify-mirrors",
        dest="verify_mirrors",
        action="store_true",
        default=None,
        help="Check mirror push access through the GitHub API before publishing.",
    )
    parser.add_argument(
        "--keep-workdir",
        dest="keep_workdir",
        action="store_true",
        default=None,
        help="Leave the temporary clone directory on disk.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        choices=["DEBUG", "INFO"],
        help="Logging verbosity.",
    )
    parser.add_argument(
        "--json-logs",
        dest="json_logs",
        action="store_true",
        default=None,
        help="Emit JSON log lines instead of console output.",
    )
    return parser


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return settings with any command line flag layered on top."""
    updates: dict = {}
    if args.config is not None:
        updates["config_path"] = args.config
    if args.source_root is not None:
        updates["source_root"] = args.source_root
    if args.verify_mirrors is not None:
        updates["verify_mirrors"] = args.verify_mirrors
    if args.keep_workdir is not None:
        updates["keep_workdir"] = args.keep_workdir
    if args.json_logs is not None:
        updates["json_logs"] = args.json_logs
    if args.log_level is not None:
        updates["debug"] = args.log_level == "DEBUG"
    return settings.model_copy(update=updates) if updates else settings


def _resolve_config_path(settings: Settings) -> Path:
    path = Path(settings.config_path)
    if path.is_absolute():
        return path
    return Path(settings.source_root) / path


def _merge_commands(settings: Settings, config: SnapshotConfig) -> BuildCommands:
    """Environment commands override the ones in the config file."""
    return BuildCommands(
        staging=settings.staging_command or config.commands.staging,
        build=settings.build_command or config.commands.build,
        help=settings.help_command or config.commands.help,
    )


def _failed_command(exc: Exception) -> Optional[dict]:
    """Details of the command behind ``exc``, for the Sentry event."""
    if isinstance(exc, GitCommandError):
        return exc.result.to_dict()
    if isinstance(exc, BuildStepError):
        return exc.step_result.to_dict()
    return None


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = _apply_overrides(get_settings(), args)

    configure_structlog(debug=settings.debug, json_logs=settings.json_logs)
    init_sentry(settings.sentry_dsn)

    options = SnapshotOptions(
        force=args.force,
        github_token=args.github_token,
        branch=args.branch,
    )

    try:
        default_hash = short_head_hash(Path(settings.source_root), settings.command_timeout)
        config = load_snapshot_config(_resolve_config_path(settings), default_hash=default_hash)
    except PackageConfigError as exc:
        logger.error("Invalid snapshot config: %s", exc)
        return exit_codes.CONFIG_ERROR
    except GitCommandError as exc:
        logger.error("Cannot read the source repository: %s", exc)
        return exit_codes.CONFIG_ERROR

    try:
        return run_snapshots(
            options,
            config.packages,
            settings=settings,
            commands=_merge_commands(settings, config),
            upstream_repo_url=config.upstream_repo_url,
        )
    except (GitCommandError, BuildStepError, MirrorCheckError, httpx.HTTPError, OSError) as exc:
        logger.error("Snapshot publishing failed: %s", exc)
        failed_command = _failed_command(exc)
        if failed_command is not None:
            sentry_sdk.set_context("failed_command", failed_command)
        sentry_sdk.capture_exception(exc)
        return exit_codes.RUNTIME_ERROR
