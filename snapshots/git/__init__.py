"""Git CLI wrapper for snapshot publishing.

Public API:
    run_git(args, cwd) -> CommandResult
    classify_git_failure(result) -> GitFailureReason
    build_clone_url(snapshot_repo, github_token, host_url) -> str
"""

from snapshots.git.commands import (
    CommandResult,
    GitCommandError,
    GitFailureReason,
    check_git,
    classify_git_failure,
    run_git,
)
from snapshots.git.urls import build_clone_url, redact_repo_url, redact_text, repo_basename

__all__ = [
    "CommandResult",
    "GitCommandError",
    "GitFailureReason",
    "build_clone_url",
    "check_git",
    "classify_git_failure",
    "redact_repo_url",
    "redact_text",
    "repo_basename",
    "run_git",
]
