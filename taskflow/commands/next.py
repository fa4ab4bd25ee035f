"""
taskflow next - Find the next task whose dependencies are met.
"""

from taskflow.lib import store
from taskflow.lib.display import format_location
from taskflow.lib.models import TaskLocation, is_active_status
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext


def cmd_next(args, ctx: CommandContext) -> CommandResult:
    progress = ctx.load_progress()
    nxt = store.find_next_available_task(progress, include_intermittent=getattr(args, "intermittent", False))

    if nxt is None:
        stats = store.calculate_progress_stats(progress)
        if stats.total_tasks and stats.completed_tasks == stats.total_tasks:
            return CommandResult.ok("All tasks are completed")
        return CommandResult.ok(
            "No available tasks: remaining tasks are blocked, on hold or waiting on dependencies",
            next_steps=["taskflow status  # see what is blocking progress"],
        )

    task = nxt.task
    lines = [f"Next task: {task.id} - {task.title} [{task.status}]"]
    lines += format_location(TaskLocation(feature=nxt.feature, story=nxt.story, task=task))
    if nxt.is_intermittent:
        lines.append("(intermittent task)")

    if is_active_status(task.status):
        next_steps = ["taskflow do  # this task is already in progress"]
    else:
        next_steps = [f"taskflow start {task.id}"]
    return CommandResult.ok("\n".join(lines), next_steps=next_steps)
