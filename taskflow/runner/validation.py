"""
Validation runner: execute configured checks for the active task.

Each configured command runs to completion in the project root with stdout
and stderr combined. Its full output goes to a log file under
.taskflow/logs/ and a short summary is extracted for display.
"""

import json
import logging
import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from taskflow.lib.log_parser import extract_error_summary
from taskflow.lib.store import write_text_atomic

logger = logging.getLogger(__name__)

NO_COMMANDS_OUTPUT = "No validation commands configured."
STATUS_LABEL = "validation-status"


@dataclass
class CheckResult:
    """Outcome of one validation command."""
    label: str
    command: str
    passed: bool
    output: str = ""
    summary: str = ""
    log_file: Optional[Path] = None


@dataclass
class ValidationSummary:
    passed: bool
    results: list[CheckResult] = field(default_factory=list)
    failed_checks: list[str] = field(default_factory=list)
    all_output: str = ""


@dataclass
class ValidationStatus:
    """Last-run snapshot for a task, kept so 'did validation pass' can be
    answered without re-running every command."""
    task_id: str
    passed: bool
    timestamp: str
    failed_checks: list[str] = field(default_factory=list)


def get_log_file_path(logs_dir: Path, task_id: str, label: str) -> Path:
    """T1-2-3-lint-2026-01-31.log"""
    safe_id = task_id.replace(".", "-")
    safe_label = "-".join(label.split())
    date = datetime.now().strftime("%Y-%m-%d")
    return logs_dir / f"T{safe_id}-{safe_label}-{date}.log"


def save_log_file(log_path: Path, command: str, output: str) -> None:
    timestamp = datetime.now(timezone.utc).isoformat()
    write_text_atomic(log_path, f"Command: {command}\nTimestamp: {timestamp}\n\n{output}")


def run_command(command: str, cwd: Path, timeout: int | None = None) -> tuple[bool, str]:
    """Run one shell command. Returns (passed, combined output).

    A command that cannot be spawned or times out is a failed check whose
    output is the error text.
    """
    try:
        result = subprocess.run(
            command,
            shell=True,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return False, f"Command timed out after {timeout}s: {command}"
    except OSError as e:
        return False, f"Failed to run '{command}': {e}"
    return result.returncode == 0, (result.stdout or "").strip()


def run_check(label: str, command: str, task_id: str, cwd: Path, logs_dir: Path,
              timeout: int | None = None) -> CheckResult:
    passed, output = run_command(command, cwd, timeout)

    log_file = get_log_file_path(logs_dir, task_id, label)
    try:
        save_log_file(log_file, command, output)
    except OSError as e:
        logger.warning(f"Could not write log for {label}: {e}")
        log_file = None

    summary = "Passed" if passed else extract_error_summary(output, label)
    logger.info(f"[VALIDATE] {task_id} {label}: {'passed' if passed else 'failed'}")
    return CheckResult(label=label, command=command, passed=passed, output=output,
                       summary=summary, log_file=log_file)


def run_all(
    commands: dict[str, str | None],
    task_id: str,
    cwd: Path,
    logs_dir: Path,
    timeout: int | None = None,
) -> ValidationSummary:
    """
    Run every configured command in order.

    Commands mapped to None or an empty string are skipped, not failed.
    Every command runs even after an earlier one fails so the summary
    covers all checks. With nothing configured the run passes.
    """
    enabled = {label: cmd for label, cmd in commands.items() if cmd and cmd.strip()}
    for label in commands:
        if label not in enabled:
            logger.debug(f"[VALIDATE] {task_id} {label}: not configured, skipping")

    if not enabled:
        return ValidationSummary(passed=True, all_output=NO_COMMANDS_OUTPUT)

    results = []
    failed = []
    all_output = ""
    for label, command in enabled.items():
        result = run_check(label, command, task_id, cwd, logs_dir, timeout)
        results.append(result)
        if not result.passed:
            failed.append(label)
        all_output += f"\n--- {label.upper()} ---\n{result.output}\n"

    return ValidationSummary(passed=not failed, results=results, failed_checks=failed, all_output=all_output)


def get_status_path(logs_dir: Path, task_id: str) -> Path:
    return logs_dir / f"T{task_id.replace('.', '-')}-{STATUS_LABEL}.json"


def save_validation_status(logs_dir: Path, task_id: str, summary: ValidationSummary) -> ValidationStatus:
    status = ValidationStatus(
        task_id=task_id,
        passed=summary.passed,
        timestamp=datetime.now(timezone.utc).isoformat(),
        failed_checks=list(summary.failed_checks),
    )
    data = {
        "taskId": status.task_id,
        "passed": status.passed,
        "timestamp": status.timestamp,
        "failedChecks": status.failed_checks,
    }
    write_text_atomic(get_status_path(logs_dir, task_id), json.dumps(data, indent=2) + "\n")
    return status


def get_last_validation_status(logs_dir: Path, task_id: str) -> Optional[ValidationStatus]:
    """Read the snapshot. Missing or unreadable snapshots mean 'never ran'."""
    path = get_status_path(logs_dir, task_id)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text())
        return ValidationStatus(
            task_id=data["taskId"],
            passed=data["passed"],
            timestamp=data["timestamp"],
            failed_checks=data.get("failedChecks", []),
        )
    except (json.JSONDecodeError, KeyError, OSError) as e:
        logger.warning(f"Ignoring unreadable validation status {path}: {e}")
        return None
