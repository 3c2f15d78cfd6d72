"""Snapshot publisher.

Builds every package in snapshot mode, then pushes one commit and one tag
per package to its mirror repository:

1. refuse to run from a dirty working tree unless forced
2. resolve branch and token, set the global git identity if publishing
3. staging project -> snapshot build -> help generation
4. for each package with ``snapshot`` set: clone the mirror, switch to the
   branch, replace its contents with the dist output, prepend the README
   header, write ``uniqueId``, commit, tag and push

Packages are processed one at a time in table order. The first failure
aborts the run; mirrors pushed before it are not rolled back.
"""

import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Sequence

from snapshots.build.executor import (
    prepare_staging_project,
    run_help_generation,
    run_snapshot_build,
)
from snapshots.core import exit_codes
from snapshots.core.config import Settings, get_settings
from snapshots.core.logging import package_context
from snapshots.git.repo import (
    checkout_or_create_branch,
    clear_tracked_files,
    clone_mirror,
    commit_all,
    configure_global_identity,
    disable_commit_signing,
    latest_commit_message,
    push_branch_and_tags,
    tag_head,
    working_tree_is_dirty,
)
from snapshots.git.urls import build_clone_url, repo_basename
from snapshots.github.client import verify_mirrors
from snapshots.packages.types import BuildCommands, PackageInfo
from snapshots.publish.files import copy_tree, write_unique_id
from snapshots.publish.readme import prepend_readme_header
from snapshots.publish.types import RunContext, SnapshotOptions

logger = logging.getLogger(__name__)


def resolve_branch(
    explicit: Optional[str],
    ci_branch: Optional[str],
    default: str = "main",
) -> str:
    """Explicit option, then the CI branch, then ``default``."""
    return explicit or ci_branch or default


def resolve_github_token(explicit: Optional[str], env_token: Optional[str]) -> str:
    """Explicit option, then the environment token, then empty (dry run)."""
    return (explicit or env_token or "").strip()


def publish_snapshot(pkg: PackageInfo, context: RunContext) -> bool:
    """Publish one package to its mirror. Returns False if it was skipped.

    Skipped packages run no git commands at all.
    """
    if not pkg.snapshot:
        logger.warning("Skipping %s.", pkg.name)
        return False

    logger.info("Publishing %s to repo %s.", pkg.name, json.dumps(pkg.snapshot_repo))
    timeout = context.command_timeout

    url = build_clone_url(pkg.snapshot_repo, context.github_token, context.git_host_url)
    repo_dir = clone_mirror(url, context.workdir, repo_basename(pkg.snapshot_repo), timeout)

    if context.branch:
        checkout_or_create_branch(repo_dir, context.branch, timeout)

    # Drop files deleted from the build since the previous snapshot.
    clear_tracked_files(repo_dir, timeout)
    copy_tree(pkg.dist, repo_dir)

    if context.github_token:
        disable_commit_signing(repo_dir, timeout)

    prepend_readme_header(repo_dir, pkg, context.upstream_repo_url, context.git_host_url)
    write_unique_id(repo_dir)

    commit_all(repo_dir, context.message, timeout)
    tag_head(repo_dir, pkg.snapshot_hash, timeout)
    push_branch_and_tags(repo_dir, context.branch, timeout)

    logger.info("Published %s at tag %s.", pkg.name, pkg.snapshot_hash)
    return True


def run_snapshots(
    options: SnapshotOptions,
    packages: Sequence[PackageInfo],
    settings: Optional[Settings] = None,
    commands: Optional[BuildCommands] = None,
    upstream_repo_url: Optional[str] = None,
) -> int:
    """Build all packages and publish snapshots. Returns a process exit code.

    Exit code 1 means the working tree was dirty and ``force`` was not
    set; nothing was created or run in that case. Command failures raise.
    """
    settings = settings or get_settings()
    commands = commands or BuildCommands(
        staging=settings.staging_command,
        build=settings.build_command,
        help=settings.help_command,
    )
    source_root = Path(settings.source_root)
    timeout = settings.command_timeout

    if working_tree_is_dirty(source_root, timeout):
        if not options.force:
            logger.error("You cannot run snapshots with local changes.")
            return exit_codes.DIRTY_WORKING_TREE
        logger.warning("Working tree has local changes; continuing because of --force.")

    workdir = Path(tempfile.mkdtemp(prefix="snapshot-publish-"))
    staging_dir: Optional[Path] = None
    logger.debug("Temporary directory: %s", workdir)

    try:
        context = RunContext(
            workdir=workdir,
            branch=resolve_branch(options.branch, settings.ci_branch, settings.default_branch),
            github_token=resolve_github_token(options.github_token, settings.github_token),
            message=latest_commit_message(source_root, timeout),
            upstream_repo_url=upstream_repo_url or settings.upstream_repo_url,
            git_host_url=settings.git_host_url,
            command_timeout=timeout,
        )

        if context.can_publish:
            logger.info("Setting up global git name.")
            configure_global_identity(settings.git_user_name, settings.git_user_email, timeout)

        # Scaffolding happens in its own directory so it cannot overwrite dist.
        staging_dir = prepare_staging_project(commands.staging, timeout)

        logger.info("Building...")
        run_snapshot_build(commands.build, source_root, timeout)
        run_help_generation(commands.help, source_root, staging_dir, timeout)

        if not context.can_publish:
            logger.info("No token given, skipping actual publishing...")
            return exit_codes.SUCCESS

        if settings.verify_mirrors:
            verify_mirrors(packages, context.github_token, settings.github_api_url)

        published = 0
        for pkg in packages:
            with package_context(pkg.name):
                if publish_snapshot(pkg, context):
                    published += 1

        logger.info(
            "Published %d of %d packages to branch %s.",
            published, len(packages), context.branch,
        )
        return exit_codes.SUCCESS

    finally:
        if settings.keep_workdir:
            logger.info("Keeping temporary directory %s", workdir)
        else:
            shutil.rmtree(workdir, ignore_errors=True)
            if staging_dir is not None:
                shutil.rmtree(staging_dir, ignore_errors=True)
