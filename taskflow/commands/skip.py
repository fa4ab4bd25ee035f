"""
taskflow skip - Mark the active task blocked with a reason.

The status it was blocked from is kept so 'taskflow resume' can restore it.
"""

from taskflow.lib import store
from taskflow.lib.models import TasksProgress
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext
from taskflow.workflow.state_machine import fire


def cmd_skip(args, ctx: CommandContext) -> CommandResult:
    reason = " ".join(args.reason or []).strip()
    if not reason:
        return CommandResult.failure(
            "A reason is required to block a task",
            next_steps=['taskflow skip "Blocked by external dependency"'],
        )

    progress, active = ctx.require_active()
    task = active.task
    previous = task.status

    fire(ctx.paths.tasks_dir, progress, active.file_path, task, "block", reason=reason)

    output = [
        f"Task {task.id} marked as BLOCKED",
        f"Reason: {reason}",
        f"Was: {previous.value}",
    ]
    return CommandResult.ok("\n".join(output), next_steps=parking_next_steps(progress, task.id))


def parking_next_steps(progress: TasksProgress, task_id: str) -> list[str]:
    steps = [f"taskflow resume --task {task_id}  # when the blocker is resolved"]
    nxt = store.find_next_available_task(progress, exclude_id=task_id)
    if nxt:
        steps.insert(0, f"taskflow start {nxt.task.id}  # next available: {nxt.task.title}")
    return steps
