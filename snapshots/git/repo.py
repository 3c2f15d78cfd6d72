"""Git operations used by the snapshot publisher.

All operations take the working directory explicitly; the process current
directory is never changed.
"""

import logging
from pathlib import Path

from snapshots.git.commands import (
    DEFAULT_TIMEOUT,
    GitFailureReason,
    check_git,
    classify_git_failure,
    raise_command_error,
    run_git,
)
from snapshots.git.urls import redact_repo_url

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Source repository inspection
# ---------------------------------------------------------------------------


def working_tree_is_dirty(source_root: Path, timeout: int = DEFAULT_TIMEOUT) -> bool:
    """True when ``git status --porcelain`` reports any change."""
    result = check_git(["status", "--porcelain"], cwd=source_root, timeout=timeout)
    return bool(result.stdout.strip())


def latest_commit_message(source_root: Path, timeout: int = DEFAULT_TIMEOUT) -> str:
    """Short hash and subject of the latest commit, e.g. ``"1a2b3c4 fix: thing"``."""
    result = check_git(
        ["log", "--format=%h %s", "-n1"], cwd=source_root, timeout=timeout
    )
    return result.stdout.strip()


def short_head_hash(source_root: Path, timeout: int = DEFAULT_TIMEOUT) -> str:
    result = check_git(["rev-parse", "--short", "HEAD"], cwd=source_root, timeout=timeout)
    return result.stdout.strip()


def configure_global_identity(
    user_name: str,
    user_email: str,
    timeout: int = DEFAULT_TIMEOUT,
) -> None:
    """Set the global committer identity. Re-running writes the same values."""
    check_git(["config", "--global", "user.email", user_email], timeout=timeout)
    check_git(["config", "--global", "user.name", user_name], timeout=timeout)
    check_git(["config", "--global", "push.default", "simple"], timeout=timeout)


# ---------------------------------------------------------------------------
# Mirror clone operations
# ---------------------------------------------------------------------------


def clone_mirror(
    clone_url: str,
    workdir: Path,
    dest_name: str,
    timeout: int = DEFAULT_TIMEOUT,
) -> Path:
    """Clone ``clone_url`` into ``workdir/dest_name`` and return that path."""
    logger.info("Cloning %s into %s", redact_repo_url(clone_url), workdir / dest_name)
    check_git(["clone", clone_url, dest_name], cwd=workdir, timeout=timeout)
    return workdir / dest_name


def checkout_or_create_branch(
    repo_dir: Path,
    branch: str,
    timeout: int = DEFAULT_TIMEOUT,
) -> bool:
    """Check out ``branch``, creating it when it does not exist yet.

    Returns True if the branch was created. Only a "branch not found"
    outcome falls through to creation; any other failure is raised.
    """
    result = run_git(["checkout", branch], cwd=repo_dir, timeout=timeout)
    if result.is_success:
        return False

    if classify_git_failure(result) != GitFailureReason.BRANCH_NOT_FOUND:
        raise_command_error(result)

    logger.info("Branch %s does not exist in %s, creating it", branch, repo_dir.name)
    check_git(["checkout", "-b", branch], cwd=repo_dir, timeout=timeout)
    return True


def clear_tracked_files(repo_dir: Path, timeout: int = DEFAULT_TIMEOUT) -> bool:
    """Remove every tracked file from the working tree and index.

    Returns False when there was nothing to remove (first snapshot into an
    empty mirror). Any other failure is raised.
    """
    result = run_git(["rm", "-rf", "./"], cwd=repo_dir, timeout=timeout)
    if result.is_success:
        return True

    if classify_git_failure(result) != GitFailureReason.NOTHING_TO_REMOVE:
        raise_command_error(result)

    logger.debug("Nothing to remove in %s", repo_dir.name)
    return False


def disable_commit_signing(repo_dir: Path, timeout: int = DEFAULT_TIMEOUT) -> None:
    check_git(["config", "commit.gpgSign", "false"], cwd=repo_dir, timeout=timeout)


def commit_all(repo_dir: Path, message: str, timeout: int = DEFAULT_TIMEOUT) -> None:
    """Stage everything (including deletions) and commit."""
    check_git(["add", "."], cwd=repo_dir, timeout=timeout)
    check_git(["commit", "-a", "-m", message], cwd=repo_dir, timeout=timeout)


def tag_head(repo_dir: Path, tag: str, timeout: int = DEFAULT_TIMEOUT) -> None:
    check_git(["tag", tag], cwd=repo_dir, timeout=timeout)


def push_branch_and_tags(
    repo_dir: Path,
    branch: str,
    timeout: int = DEFAULT_TIMEOUT,
) -> None:
    """Push ``branch`` and then all tags to ``origin``."""
    ref = branch or "HEAD"
    check_git(["push", "origin", ref], cwd=repo_dir, timeout=timeout)
    check_git(["push", "--tags", "origin", ref], cwd=repo_dir, timeout=timeout)
