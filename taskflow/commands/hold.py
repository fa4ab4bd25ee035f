"""
taskflow hold - Put the active task on hold, freeing the active slot.
"""

from taskflow.commands.skip import parking_next_steps
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext
from taskflow.workflow.state_machine import fire


def cmd_hold(args, ctx: CommandContext) -> CommandResult:
    reason = " ".join(args.reason or []).strip()
    progress, active = ctx.require_active()
    task = active.task
    previous = task.status

    fire(ctx.paths.tasks_dir, progress, active.file_path, task, "hold", reason=reason)

    output = [f"Task {task.id} put ON HOLD (was: {previous.value})"]
    if reason:
        output.append(f"Reason: {reason}")
    return CommandResult.ok("\n".join(output), next_steps=parking_next_steps(progress, task.id))
