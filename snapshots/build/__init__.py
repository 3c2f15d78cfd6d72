"""External build collaborators: staging project, snapshot build, help generation."""

from snapshots.build.executor import (
    prepare_staging_project,
    run_help_generation,
    run_snapshot_build,
    run_step,
)
from snapshots.build.types import BuildStepError, StepResult

__all__ = [
    "prepare_staging_project",
    "run_help_generation",
    "run_snapshot_build",
    "run_step",
    "BuildStepError",
    "StepResult",
]
