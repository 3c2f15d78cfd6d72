"""Tests for the external build steps.

Subprocesses are mocked; no build command really runs.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from snapshots.build.executor import (
    prepare_staging_project,
    run_help_generation,
    run_snapshot_build,
    run_step,
)
from snapshots.build.types import BuildStepError, StepResult
from snapshots.core.config import Settings


class TestRunStep:
    @patch("snapshots.build.executor.subprocess.run")
    def test_success(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="built", stderr="")

        result = run_step("build", "make", tmp_path)

        assert result.is_success
        assert result.stdout == "built"
        assert mock_run.call_args.kwargs["shell"] is True
        assert mock_run.call_args.kwargs["cwd"] == str(tmp_path)

    @patch("snapshots.build.executor.subprocess.run")
    def test_timeout(self, mock_run, tmp_path):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="make", timeout=3)

        result = run_step("build", "make", tmp_path, timeout=3)

        assert result.exit_code == -1
        assert "Timed out" in result.stderr


class TestPrepareStagingProject:
    @patch("snapshots.build.executor.subprocess.run")
    def test_runs_in_fresh_directory(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        staging_dir = prepare_staging_project("scaffold new demo")

        assert staging_dir.is_dir()
        assert "snapshot-staging-" in staging_dir.name
        assert mock_run.call_args.kwargs["cwd"] == str(staging_dir)

    @patch("snapshots.build.executor.subprocess.run")
    def test_no_command_still_returns_directory(self, mock_run):
        staging_dir = prepare_staging_project("")

        assert staging_dir.is_dir()
        mock_run.assert_not_called()

    @patch("snapshots.build.executor.subprocess.run")
    def test_failure_raises(self, mock_run):
        mock_run.return_value = MagicMock(returncode=2, stdout="", stderr="scaffold: not found")

        with pytest.raises(BuildStepError, match="staging"):
            prepare_staging_project("scaffold new demo")


class TestRunSnapshotBuild:
    @patch("snapshots.build.executor.subprocess.run")
    def test_sets_snapshot_mode(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        result = run_snapshot_build("npm run build", tmp_path)

        assert isinstance(result, StepResult)
        assert mock_run.call_args.kwargs["env"]["SNAPSHOT_BUILD"] == "true"

    @patch("snapshots.build.executor.subprocess.run")
    def test_skipped_without_command(self, mock_run, tmp_path):
        assert run_snapshot_build("", tmp_path) is None
        mock_run.assert_not_called()

    @patch("snapshots.build.executor.subprocess.run")
    def test_failure_raises_with_step_result(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="TS2304")

        with pytest.raises(BuildStepError) as excinfo:
            run_snapshot_build("npm run build", tmp_path)

        assert excinfo.value.step_result.name == "build"
        assert excinfo.value.step_result.exit_code == 1


class TestRunHelpGeneration:
    @patch("snapshots.build.executor.subprocess.run")
    def test_substitutes_staging_dir(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        staging = tmp_path / "staging"

        run_help_generation("gen-help --project {staging_dir}", tmp_path, staging)

        command = mock_run.call_args[0][0]
        assert command == f"gen-help --project {staging}"
        assert mock_run.call_args.kwargs["env"]["SNAPSHOT_STAGING_DIR"] == str(staging)

    @patch("snapshots.build.executor.subprocess.run")
    def test_skipped_without_command(self, mock_run, tmp_path):
        assert run_help_generation("", tmp_path, tmp_path) is None
        mock_run.assert_not_called()


class TestStepResult:
    def test_to_dict_keeps_stderr_tail(self):
        stderr = "\n".join(f"line {i}" for i in range(25))
        step = StepResult(
            name="build", command="make", exit_code=2,
            duration_seconds=2.0004, stderr=stderr,
        )
        data = step.to_dict()
        assert data["step"] == "build"
        assert data["duration_seconds"] == 2.0
        assert data["stderr_tail"] == [f"line {i}" for i in range(15, 25)]

    def test_to_dict_redacts_credentials(self):
        step = StepResult(
            name="build", command="fetch https://tok@example.com/x", exit_code=1,
            duration_seconds=0.1, stderr="fatal: https://tok@example.com/x refused",
        )
        data = step.to_dict()
        assert data["command"] == "fetch https://***@example.com/x"
        assert data["stderr_tail"] == ["fatal: https://***@example.com/x refused"]


class TestStagingCleanup:
    @patch("snapshots.build.executor.subprocess.run")
    def test_failed_staging_removes_directory(self, mock_run, tmp_path):
        staging = tmp_path / "snapshot-staging-x"
        staging.mkdir()
        mock_run.return_value = MagicMock(returncode=3, stdout="", stderr="")

        with patch("snapshots.build.executor.tempfile.mkdtemp", return_value=str(staging)):
            with pytest.raises(BuildStepError):
                prepare_staging_project("exit 3")

        assert not staging.exists()


class TestDefaultTimeout:
    @patch("snapshots.build.executor.subprocess.run")
    def test_matches_command_timeout_setting(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        run_step("build", "make", tmp_path)

        assert mock_run.call_args.kwargs["timeout"] == Settings(_env_file=None).command_timeout
