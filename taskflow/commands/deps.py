"""
taskflow deps - Show what a task depends on and what depends on it.
"""

from taskflow.lib import store
from taskflow.lib.display import status_icon
from taskflow.lib.errors import TaskNotFoundError
from taskflow.lib.models import TaskStatus
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext


def cmd_deps(args, ctx: CommandContext) -> CommandResult:
    progress = ctx.load_progress()
    task = store.find_task_location(progress, args.task_id).task

    lines = [f"Dependencies for {task.id} - {task.title} [{task.status}]", ""]

    if task.dependencies:
        lines.append("Depends on:")
        for dep_id in task.dependencies:
            try:
                dep = store.find_task_location(progress, dep_id).task
                lines.append(f"  {status_icon(dep.status)} {dep.id} {dep.title} [{dep.status}]")
            except TaskNotFoundError:
                lines.append(f"  ? {dep_id} (not found)")
    else:
        lines.append("Depends on: nothing")

    dependents = [loc.task for loc in store.iter_task_refs(progress) if task.id in loc.task.dependencies]
    lines.append("")
    if dependents:
        lines.append("Required by:")
        lines += [f"  {status_icon(d.status)} {d.id} {d.title} [{d.status}]" for d in dependents]
    else:
        lines.append("Required by: nothing")

    unmet = store.get_unmet_dependencies(progress, task)
    lines.append("")
    if unmet:
        lines.append(f"Blocked by: {', '.join(unmet)}")
        next_steps = [f"taskflow start {unmet[0]}  # or finish whichever is in progress"]
    else:
        lines.append("All dependencies are met")
        next_steps = [f"taskflow start {task.id}"] if task.status == TaskStatus.NOT_STARTED.value else []

    return CommandResult.ok("\n".join(lines), next_steps=next_steps)
