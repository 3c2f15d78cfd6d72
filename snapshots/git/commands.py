"""Git subprocess runner with typed failure outcomes.

Every git invocation goes through `run_git`, which never raises on a
non-zero exit. Callers decide whether a failure is tolerable by looking at
`classify_git_failure(result)`; anything they do not expect goes through
`raise_command_error`, which logs the command and raises `GitCommandError`.
"""

import json
import logging
import subprocess
import time
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Optional

from snapshots.git.urls import redact_repo_url, redact_text

logger = logging.getLogger(__name__)

# Default timeout per git command (seconds)
DEFAULT_TIMEOUT = 600

# stderr lines kept in CommandResult.to_dict()
STDERR_TAIL_LINES = 10


class GitFailureReason(StrEnum):
    """Normalized reasons a git command can fail."""

    UNKNOWN = "unknown"
    TIMEOUT = "timeout"
    SPAWN_FAILED = "spawn_failed"
    NETWORK = "network"
    AUTH_FAILED = "auth_failed"
    REPO_NOT_FOUND = "repo_not_found"
    NOT_A_REPOSITORY = "not_a_repository"
    BRANCH_NOT_FOUND = "branch_not_found"
    NOTHING_TO_REMOVE = "nothing_to_remove"


@dataclass
class CommandResult:
    """Result of one external command.

    A command is successful if exit_code == 0. Timeouts are recorded as
    exit code -1 and spawn failures (missing executable) as -2.
    """

    args: list[str]
    cwd: Optional[Path]
    exit_code: int
    duration_seconds: float = 0.0
    stdout: str = ""
    stderr: str = ""

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0

    @property
    def safe_args(self) -> list[str]:
        """Arguments with credentials stripped from any embedded URL."""
        return [redact_repo_url(arg) for arg in self.args]

    def to_dict(self) -> dict:
        return {
            "args": self.safe_args,
            "cwd": str(self.cwd) if self.cwd else None,
            "exit_code": self.exit_code,
            "duration_seconds": round(self.duration_seconds, 3),
            "stderr_tail": [
                redact_text(line) for line in self.stderr.splitlines()[-STDERR_TAIL_LINES:]
            ],
        }


class GitCommandError(Exception):
    """Raised when a git command fails in a way the caller does not tolerate.

    Carries the command result and its classified reason.
    """

    def __init__(self, result: CommandResult, reason: GitFailureReason):
        self.result = result
        self.reason = reason
        command = " ".join(result.safe_args)
        detail = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else ""
        message = f"Command failed ({reason}, exit {result.exit_code}): {command}"
        if detail:
            message = f"{message}: {redact_text(detail)}"
        super().__init__(message)


# Substrings (lowercase) checked against stdout+stderr of a failed command.
_NETWORK_PATTERNS = (
    "could not resolve host",
    "failed to connect",
    "connection timed out",
    "connection refused",
    "connection reset",
    "the remote end hung up unexpectedly",
    "early eof",
    "operation timed out",
    "ssl_error",
    "gnutls",
)
_AUTH_PATTERNS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "permission denied",
    "the requested url returned error: 403",
    "invalid username or password",
)
_REPO_NOT_FOUND_PATTERNS = (
    "repository not found",
    "does not appear to be a git repository",
    "the requested url returned error: 404",
)
_BRANCH_NOT_FOUND_PATTERNS = (
    "did not match any file(s) known to git",
    "invalid reference",
    "is not a commit",
)
_NOTHING_TO_REMOVE_PATTERNS = ("did not match any files",)


def classify_git_failure(result: CommandResult) -> GitFailureReason:
    """Classify a failed git command.

    Transport and authentication failures win over the subcommand-specific
    outcomes so a network error during checkout is never mistaken for a
    missing branch.
    """
    if result.exit_code == -1:
        return GitFailureReason.TIMEOUT
    if result.exit_code == -2:
        return GitFailureReason.SPAWN_FAILED

    text = f"{result.stdout}\n{result.stderr}".lower()
    subcommand = result.args[1] if len(result.args) > 1 else ""

    if _contains_any(text, _NETWORK_PATTERNS):
        return GitFailureReason.NETWORK
    if _contains_any(text, _AUTH_PATTERNS):
        return GitFailureReason.AUTH_FAILED
    if _contains_any(text, _REPO_NOT_FOUND_PATTERNS):
        return GitFailureReason.REPO_NOT_FOUND
    if "not a git repository" in text:
        return GitFailureReason.NOT_A_REPOSITORY

    if subcommand == "checkout" and _contains_any(text, _BRANCH_NOT_FOUND_PATTERNS):
        return GitFailureReason.BRANCH_NOT_FOUND
    if subcommand == "rm" and _contains_any(text, _NOTHING_TO_REMOVE_PATTERNS):
        return GitFailureReason.NOTHING_TO_REMOVE

    return GitFailureReason.UNKNOWN


def _contains_any(text: str, patterns: tuple[str, ...]) -> bool:
    return any(p in text for p in patterns)


def run_git(
    args: list[str],
    cwd: Optional[Path] = None,
    timeout: int = DEFAULT_TIMEOUT,
    env: Optional[dict] = None,
) -> CommandResult:
    """Run ``git <args>`` and capture its output.

    Raises no exceptions. Always returns a CommandResult.
    """
    cmd = ["git", *args]
    logger.debug("Running %s (cwd=%s)", " ".join(redact_repo_url(a) for a in cmd), cwd)
    start = time.monotonic()

    try:
        completed = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
        )
        return CommandResult(
            args=cmd,
            cwd=cwd,
            exit_code=completed.returncode,
            duration_seconds=time.monotonic() - start,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
    except subprocess.TimeoutExpired:
        return CommandResult(
            args=cmd,
            cwd=cwd,
            exit_code=-1,
            duration_seconds=time.monotonic() - start,
            stderr=f"Timed out after {timeout} seconds",
        )
    except OSError as exc:
        return CommandResult(
            args=cmd,
            cwd=cwd,
            exit_code=-2,
            duration_seconds=time.monotonic() - start,
            stderr=str(exc),
        )


def raise_command_error(result: CommandResult) -> None:
    """Log a failed command with its arguments and raise GitCommandError."""
    reason = classify_git_failure(result)
    logger.error(
        "Command failed: %s %s",
        result.args[0],
        ", ".join(json.dumps(a) for a in result.safe_args[1:]),
    )
    if result.stderr.strip():
        logger.error("stderr: %s", redact_text(result.stderr.strip()))
    raise GitCommandError(result, reason)


def check_git(
    args: list[str],
    cwd: Optional[Path] = None,
    timeout: int = DEFAULT_TIMEOUT,
    env: Optional[dict] = None,
) -> CommandResult:
    """Run a git command that must succeed."""
    result = run_git(args, cwd=cwd, timeout=timeout, env=env)
    if not result.is_success:
        raise_command_error(result)
    return result
