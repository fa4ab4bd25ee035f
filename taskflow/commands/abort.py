"""
taskflow abort - Reset the active task to not-started.

Escape hatch for operator error: no preconditions beyond there being an
active task. Code changes in the worktree are left alone.
"""

from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext
from taskflow.workflow.state_machine import fire


def cmd_abort(args, ctx: CommandContext) -> CommandResult:
    progress, active = ctx.require_active()
    task = active.task
    previous = task.status

    fire(ctx.paths.tasks_dir, progress, active.file_path, task, "abort")

    return CommandResult.ok(
        f"Task {task.id} aborted ({previous.value} -> not-started). Uncommitted changes were not touched.",
        next_steps=[
            "git status  # review or discard leftover changes",
            f"taskflow start {task.id}  # start over",
        ],
    )
