"""
taskflow note - Append a timestamped note to the active task.
"""

from taskflow.lib import store
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext


def cmd_note(args, ctx: CommandContext) -> CommandResult:
    content = " ".join(args.text or []).strip()
    if not content:
        return CommandResult.failure(
            "Note text is required",
            next_steps=['taskflow note "Switched to the v2 API client"'],
        )

    _, active = ctx.require_active()
    note = store.add_note(active.file_path, content)
    return CommandResult.ok(
        f"Note added to task {active.task_id} at {note['timestamp']}",
        next_steps=[f"taskflow status {active.task_id}  # see all notes"],
    )
