"""
Error types for TaskFlow.

Two families matter at the CLI boundary:
- PreconditionError: the user asked for something the workflow does not allow
  right now. Converted into a failure CommandResult, exit code 0.
- Everything else derived from TaskflowError: on-disk invariants were violated
  or a collaborator (git, LLM) failed. Printed, nonzero exit.
"""


class TaskflowError(Exception):
    """Base error with a machine-readable code and a recovery hint."""

    exit_code = 1

    def __init__(self, message: str, code: str = "TASKFLOW_ERROR", recovery_hint: str = ""):
        self.message = message
        self.code = code
        self.recovery_hint = recovery_hint
        super().__init__(message)


# Precondition errors: reported as structured results, never crash the CLI


class PreconditionError(TaskflowError):
    """The requested operation is not allowed in the current state."""

    exit_code = 0


class NoActiveSessionError(PreconditionError):
    def __init__(self):
        super().__init__(
            "No active task session",
            "NO_ACTIVE_SESSION",
            "Run 'taskflow start <id>' to start a new task session.",
        )


class ActiveTaskExistsError(PreconditionError):
    def __init__(self, active_id: str):
        self.active_id = active_id
        super().__init__(
            f"Another task is already active ({active_id})",
            "ACTIVE_SESSION_EXISTS",
            "Complete the current task with 'taskflow commit' (or 'taskflow skip <reason>') "
            "before starting a new one.",
        )


class DependencyNotSatisfiedError(PreconditionError):
    def __init__(self, task_id: str, unmet: list[str]):
        self.task_id = task_id
        self.unmet = unmet
        super().__init__(
            f"Task {task_id} has unmet dependencies: {', '.join(unmet)}",
            "DEPENDENCY_NOT_MET",
            f"Complete {', '.join(unmet)} first, or run 'taskflow next' to find an available task.",
        )


class TaskAlreadyCompletedError(PreconditionError):
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(
            f"Task {task_id} is already completed",
            "TASK_ALREADY_COMPLETED",
            "Run 'taskflow next' to find the next available task.",
        )


class InvalidWorkflowStateError(PreconditionError):
    def __init__(self, current_status: str, required_status: str, action: str):
        self.current_status = current_status
        self.required_status = required_status
        super().__init__(
            f"Cannot {action} in status '{current_status}'. Required status: '{required_status}'",
            "INVALID_STATUS",
            "Run 'taskflow check' to advance to the required status.",
        )


# Data integrity errors: the files on disk are not what the workflow expects


class TaskNotFoundError(TaskflowError):
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(
            f"Task {task_id} not found",
            "TASK_NOT_FOUND",
            "Run 'taskflow next' to find available tasks.",
        )


class MultipleActiveTasksError(TaskflowError):
    def __init__(self, task_ids: list[str]):
        self.task_ids = task_ids
        super().__init__(
            f"More than one task is active: {', '.join(task_ids)}",
            "MULTIPLE_ACTIVE_TASKS",
            "Task files were edited outside taskflow. Set all but one of them back to "
            "'not-started' or 'blocked'.",
        )


class InvalidFileFormatError(TaskflowError):
    def __init__(self, path, details: str):
        self.path = path
        super().__init__(
            f"Invalid file format in {path}: {details}",
            "INVALID_FILE_FORMAT",
            "Fix the JSON by hand or restore it from git history.",
        )


class LedgerNotFoundError(TaskflowError):
    def __init__(self, path):
        self.path = path
        super().__init__(
            f"Retrospective ledger not found: {path}",
            "LEDGER_NOT_FOUND",
            "Run 'taskflow retro add' to create .taskflow/ref/retrospective.md.",
        )


# Collaborator errors


class GitOperationError(TaskflowError):
    def __init__(self, operation: str, details: str = ""):
        self.operation = operation
        super().__init__(
            f"Git {operation} failed" + (f": {details}" if details else ""),
            "GIT_OPERATION_FAILED",
            "Check git status and resolve any issues before retrying.",
        )


class CommitError(TaskflowError):
    MESSAGES = {
        "no_changes": "No changes to commit",
        "hook_failed": "Pre-commit hook failed",
        "push_failed": "Push failed",
    }
    HINTS = {
        "no_changes": "Run 'git status' to check for changes.",
        "hook_failed": "Fix the issues reported by the hook and run 'taskflow commit' again.",
        "push_failed": "Commit succeeded but push failed. Push manually with 'git push'.",
    }

    def __init__(self, reason: str, details: str = ""):
        self.reason = reason
        message = self.MESSAGES.get(reason, "Commit failed")
        if details:
            message += f": {details}"
        super().__init__(message, "COMMIT_FAILED", self.HINTS.get(reason, ""))


class LLMError(TaskflowError):
    def __init__(self, message: str):
        super().__init__(message, "LLM_FAILED", "Disable AI in taskflow.config.json to use manual mode.")


class ConfigError(TaskflowError):
    exit_code = 2

    def __init__(self, message: str):
        super().__init__(message, "CONFIG_ERROR", "Fix taskflow.config.json and try again.")
