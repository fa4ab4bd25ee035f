"""
taskflow subtask - Tick off (or reopen) a subtask of the active task.
"""

from taskflow.lib import store
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext


def cmd_subtask(args, ctx: CommandContext) -> CommandResult:
    _, active = ctx.require_active()
    status = "pending" if args.pending else "completed"

    if not store.update_subtask_status(active.file_path, args.subtask_id, status):
        known = ", ".join(s.id for s in active.task.subtasks) or "none"
        return CommandResult.failure(
            f"Task {active.task_id} has no subtask '{args.subtask_id}' (subtasks: {known})",
            next_steps=["taskflow do  # show the subtask checklist"],
        )

    task = store.load_task_file(active.file_path)
    done = sum(1 for s in task.subtasks if s.status == "completed")
    output = f"Subtask {args.subtask_id} marked {status} ({done}/{len(task.subtasks)} complete)"

    if done == len(task.subtasks):
        next_steps = ["taskflow check  # all subtasks are complete"]
    else:
        next_steps = ["taskflow do  # show the remaining subtasks"]
    return CommandResult.ok(output, next_steps=next_steps)
