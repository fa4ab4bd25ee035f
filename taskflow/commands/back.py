"""
taskflow back - Step the active task back one state.
"""

from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext
from taskflow.workflow.state_machine import can_revert, fire


def cmd_back(args, ctx: CommandContext) -> CommandResult:
    progress, active = ctx.require_active()
    task = active.task
    previous = task.status

    if not can_revert(task):
        return CommandResult.failure(
            f"Task {task.id} is already at its earliest state: {previous.value}",
            next_steps=["taskflow do  # instructions for the current state"],
        )

    fire(ctx.paths.tasks_dir, progress, active.file_path, task, "revert")

    return CommandResult.ok(
        f"Task {task.id}: {previous.value} -> {task.status.value}",
        next_steps=["taskflow do  # instructions for the current state"],
    )
