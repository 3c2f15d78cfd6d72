"""Build step execution.

Runs staging -> build -> help in sequence before any package is published.
The commands themselves are opaque shell strings from the snapshot config
(or SNAPSHOTS_*_COMMAND settings). Every configured step is critical: a
non-zero exit raises BuildStepError and the run stops.

The staging project lives in its own temporary directory so scaffolding
output never lands in the packages' dist directories.
"""

import logging
import os
import shutil
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Optional

from snapshots.build.types import BuildStepError, StepResult

logger = logging.getLogger(__name__)

# Default timeout per step (seconds), same as Settings.command_timeout
DEFAULT_TIMEOUT = 600

# Placeholder replaced with the staging directory in the help command
STAGING_DIR_PLACEHOLDER = "{staging_dir}"


def run_step(
    name: str,
    command: str,
    cwd: Path,
    timeout: int = DEFAULT_TIMEOUT,
    env: Optional[dict] = None,
) -> StepResult:
    """Execute a single build step as a subprocess.

    Captures stdout, stderr, exit code, and duration.
    Raises no exceptions. Always returns a StepResult.
    """
    logger.info("Running step '%s': %s (cwd=%s)", name, command, cwd)
    start = time.monotonic()

    try:
        result = subprocess.run(
            command,
            shell=True,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
        )
        step_result = StepResult(
            name=name,
            command=command,
            exit_code=result.returncode,
            duration_seconds=time.monotonic() - start,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    except subprocess.TimeoutExpired:
        step_result = StepResult(
            name=name,
            command=command,
            exit_code=-1,
            duration_seconds=time.monotonic() - start,
            stderr=f"Timed out after {timeout} seconds",
        )

    except OSError as exc:
        step_result = StepResult(
            name=name,
            command=command,
            exit_code=-2,
            duration_seconds=time.monotonic() - start,
            stderr=str(exc),
        )

    status = "OK" if step_result.is_success else "FAILED"
    logger.info(
        "Step '%s' %s (exit=%d, %.1fs)",
        name, status, step_result.exit_code, step_result.duration_seconds,
    )
    if not step_result.is_success and step_result.stderr:
        logger.warning(
            "Step '%s' stderr (tail):\n%s",
            name,
            _truncate_output(step_result.stderr),
        )

    return step_result


def _truncate_output(text: str, max_lines: int = 60, max_chars: int = 4000) -> str:
    """Return a concise tail of command output for logs."""
    if not text:
        return ""
    lines = text.splitlines()
    joined = "\n".join(lines[-max_lines:])
    if len(joined) > max_chars:
        joined = joined[-max_chars:]
    return joined


def _run_required_step(
    name: str,
    command: str,
    cwd: Path,
    timeout: int,
    env: Optional[dict] = None,
) -> StepResult:
    result = run_step(name, command, cwd, timeout=timeout, env=env)
    if not result.is_success:
        logger.error("Command failed: %s", command)
        raise BuildStepError(result)
    return result


def prepare_staging_project(command: str, timeout: int = DEFAULT_TIMEOUT) -> Path:
    """Create a throwaway staging directory and scaffold the project in it.

    Returns the staging directory, even when no staging command is set.
    The directory is removed again if the staging command fails.
    """
    staging_dir = Path(tempfile.mkdtemp(prefix="snapshot-staging-"))
    if not command:
        logger.info("No staging command configured; using empty %s", staging_dir)
        return staging_dir

    try:
        _run_required_step("staging", command, staging_dir, timeout)
    except BuildStepError:
        shutil.rmtree(staging_dir, ignore_errors=True)
        raise
    return staging_dir


def run_snapshot_build(
    command: str,
    source_root: Path,
    timeout: int = DEFAULT_TIMEOUT,
) -> Optional[StepResult]:
    """Build all packages in snapshot mode (``SNAPSHOT_BUILD=true``)."""
    if not command:
        logger.warning("No build command configured; publishing existing dist output")
        return None

    env = dict(os.environ)
    env["SNAPSHOT_BUILD"] = "true"
    return _run_required_step("build", command, source_root, timeout, env=env)


def run_help_generation(
    command: str,
    source_root: Path,
    staging_dir: Path,
    timeout: int = DEFAULT_TIMEOUT,
) -> Optional[StepResult]:
    """Generate help/docs output against the staging project."""
    if not command:
        logger.info("No help command configured; skipping help generation")
        return None

    env = dict(os.environ)
    env["SNAPSHOT_STAGING_DIR"] = str(staging_dir)
    resolved = command.replace(STAGING_DIR_PLACEHOLDER, str(staging_dir))
    return _run_required_step("help", resolved, source_root, timeout, env=env)
