"""
taskflow history - Notes and commits recorded for a task.
"""

import logging

from taskflow.git import find_task_commits
from taskflow.lib import store
from taskflow.lib.display import format_task
from taskflow.lib.errors import GitOperationError
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext

logger = logging.getLogger(__name__)


def cmd_history(args, ctx: CommandContext) -> CommandResult:
    progress = ctx.load_progress()
    location = store.find_task_location(progress, args.task_id)
    task = store.load_task(ctx.paths.tasks_dir, progress, args.task_id)

    lines = [format_task(task, location), "", "Notes:"]
    if task.notes:
        for note in task.notes:
            kind = note.get("type", "note").upper()
            lines.append(f"  [{note.get('timestamp', '')}] {kind}: {note.get('content', '')}")
    else:
        lines.append("  (none)")

    lines += ["", "Commits:"]
    try:
        commits = find_task_commits(ctx.root, task.id)
    except GitOperationError as e:
        logger.warning(f"[GIT] history for {task.id}: {e}")
        lines.append("  Could not retrieve commit history.")
    else:
        if commits:
            lines += [f"  {c.sha} {c.date} {c.subject}" for c in commits]
        else:
            lines.append("  (none)")

    return CommandResult.ok("\n".join(lines), next_steps=[f"taskflow status {task.id}"])
