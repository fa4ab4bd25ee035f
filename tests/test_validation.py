"""Tests for taskflow.runner.validation module."""

import subprocess
from unittest.mock import patch

from taskflow.runner import validation
from taskflow.runner.validation import NO_COMMANDS_OUTPUT, ValidationSummary


class TestRunCommand:
    def test_passing_command(self, tmp_path):
        passed, output = validation.run_command("echo hello", tmp_path)
        assert passed
        assert output == "hello"

    def test_stderr_is_combined(self, tmp_path):
        passed, output = validation.run_command("echo oops 1>&2; exit 3", tmp_path)
        assert not passed
        assert "oops" in output

    @patch("taskflow.runner.validation.subprocess.run")
    def test_timeout_is_a_failure(self, mock_run, tmp_path):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="npm test", timeout=5)
        passed, output = validation.run_command("npm test", tmp_path, timeout=5)
        assert not passed
        assert "timed out after 5s" in output

    def test_undecodable_output_is_replaced(self, tmp_path):
        """Bytes that aren't UTF-8 don't abort the check."""
        passed, output = validation.run_command("printf 'bad \\377 byte error\\n'; exit 1", tmp_path)
        assert not passed
        assert output == "bad \ufffd byte error"


class TestRunAll:
    def test_undecodable_output_still_summarised(self, tmp_path):
        summary = validation.run_all(
            {"lint": "printf 'bad \\377 byte error\\n'; exit 1", "test": "true"},
            "1.1.1", tmp_path, tmp_path / "logs",
        )
        assert summary.failed_checks == ["lint"]
        assert "bad \ufffd byte error" in summary.results[0].summary

    def test_skips_unconfigured_commands(self, tmp_path):
        """Commands mapped to None or '' are skipped, not failed."""
        summary = validation.run_all({"lint": None, "test": "true", "build": ""}, "1.1.1", tmp_path, tmp_path / "logs")
        assert summary.passed
        assert [r.label for r in summary.results] == ["test"]

    def test_nothing_configured_passes(self, tmp_path):
        summary = validation.run_all({"lint": None}, "1.1.1", tmp_path, tmp_path / "logs")
        assert summary.passed
        assert summary.results == []
        assert summary.all_output == NO_COMMANDS_OUTPUT

    def test_runs_every_command_after_a_failure(self, tmp_path):
        summary = validation.run_all(
            {"lint": "echo 'error: bad style'; exit 1", "test": "echo ok"},
            "1.1.1", tmp_path, tmp_path / "logs",
        )
        assert not summary.passed
        assert summary.failed_checks == ["lint"]
        assert [r.passed for r in summary.results] == [False, True]
        assert "--- LINT ---" in summary.all_output
        assert "--- TEST ---" in summary.all_output

    def test_failed_check_has_summary_and_log(self, tmp_path):
        logs = tmp_path / "logs"
        summary = validation.run_all({"test": "echo 'FAIL src/a.test.ts'; exit 1"}, "1.2.3", tmp_path, logs)
        result = summary.results[0]

        assert "FAIL src/a.test.ts" in result.summary
        assert result.log_file.parent == logs
        assert result.log_file.name.startswith("T1-2-3-test-")
        content = result.log_file.read_text()
        assert content.startswith("Command: echo")
        assert "FAIL src/a.test.ts" in content

    def test_passing_check_summary(self, tmp_path):
        summary = validation.run_all({"build": "true"}, "1.1.1", tmp_path, tmp_path / "logs")
        assert summary.results[0].summary == "Passed"


class TestValidationStatus:
    def test_save_and_read(self, tmp_path):
        summary = ValidationSummary(passed=False, failed_checks=["lint"])
        saved = validation.save_validation_status(tmp_path, "1.1.1", summary)

        last = validation.get_last_validation_status(tmp_path, "1.1.1")
        assert last == saved
        assert last.failed_checks == ["lint"]
        assert not last.passed

    def test_never_ran(self, tmp_path):
        assert validation.get_last_validation_status(tmp_path, "1.1.1") is None

    def test_unreadable_snapshot(self, tmp_path, caplog):
        validation.get_status_path(tmp_path, "1.1.1").write_text("{")
        assert validation.get_last_validation_status(tmp_path, "1.1.1") is None
        assert "Ignoring unreadable validation status" in caplog.text
