"""Types for the external build steps."""

from dataclasses import dataclass

from snapshots.git.urls import redact_text

STDERR_TAIL_LINES = 10


@dataclass
class StepResult:
    """Result of a single build step (staging, build, help).

    Captures exit code, timing, and output for evidence.
    A step is successful if exit_code == 0.
    """

    name: str
    command: str
    exit_code: int
    duration_seconds: float
    stdout: str = ""
    stderr: str = ""

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> dict:
        """Summary attached to error reports; output is cut to its last lines."""
        return {
            "step": self.name,
            "command": redact_text(self.command),
            "exit_code": self.exit_code,
            "duration_seconds": round(self.duration_seconds, 3),
            "stderr_tail": [
                redact_text(line) for line in self.stderr.splitlines()[-STDERR_TAIL_LINES:]
            ],
        }


class BuildStepError(Exception):
    """Raised when a build step fails.

    Carries the step result for detailed error reporting.
    """

    def __init__(self, step_result: StepResult, message: str = ""):
        self.step_result = step_result
        super().__init__(
            message or f"Step '{step_result.name}' failed with exit code {step_result.exit_code}"
        )
