"""
taskflow resume - Bring a blocked or on-hold task back into the workflow.

Without a status the task returns to the status it was parked from. An
explicit status must be one of the active workflow statuses.
"""

import logging

from taskflow.lib import store
from taskflow.lib.display import format_task
from taskflow.lib.errors import ActiveTaskExistsError, NoActiveSessionError, TaskAlreadyCompletedError
from taskflow.lib.models import ACTIVE_STATUSES, PARKED_STATUSES, TasksProgress, TaskStatus, parse_status
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext
from taskflow.workflow.state_machine import can_transition, fire

logger = logging.getLogger(__name__)

DEFAULT_RESUME_STATUS = TaskStatus.IMPLEMENTING


def cmd_resume(args, ctx: CommandContext) -> CommandResult:
    progress = ctx.load_progress()
    active = ctx.find_active(progress)
    requested_id = getattr(args, "task", None)

    if active is not None:
        if requested_id and requested_id != active.task_id:
            raise ActiveTaskExistsError(active.task_id)
        return CommandResult.ok(
            f"Task {active.task_id} is already active (status: {active.task.status.value})",
            next_steps=["taskflow do  # get instructions for the current status"],
        )

    task_id = requested_id or _single_parked_task(progress)
    if task_id is None:
        parked = _parked_task_ids(progress)
        if not parked:
            raise NoActiveSessionError()
        return CommandResult.failure(
            f"Several tasks are parked: {', '.join(parked)}",
            next_steps=[f"taskflow resume --task {parked[0]}  # pick one explicitly"],
        )

    file_path = store.get_task_file_path(ctx.paths.tasks_dir, progress, task_id)
    task = store.load_task_file(file_path)

    if task.status == TaskStatus.COMPLETED:
        raise TaskAlreadyCompletedError(task_id)
    if task.status not in PARKED_STATUSES:
        return CommandResult.failure(
            f"Task {task_id} is {task.status.value}, not blocked or on hold",
            next_steps=[f"taskflow start {task_id}  # begin the task"],
        )

    if args.status:
        target = parse_status(args.status)
        if target not in ACTIVE_STATUSES:
            valid = ", ".join(s.value for s in ACTIVE_STATUSES)
            return CommandResult.failure(
                f"Cannot resume into '{args.status}'",
                next_steps=[f"taskflow resume <status> --task {task_id}  # one of: {valid}"],
            )
    else:
        target = task.previous_status or DEFAULT_RESUME_STATUS

    if not can_transition(task.status, target):
        return CommandResult.failure(
            f"Task {task_id} cannot move from {task.status.value} to {target.value}",
            next_steps=["taskflow status  # inspect the task"],
        )

    parked_from = task.status
    fire(ctx.paths.tasks_dir, progress, file_path, task, "resume", target=target.value)

    location = store.find_task_location(progress, task_id)
    output = [
        f"Task {task_id} resumed from {parked_from.value} - status: {target.value.upper()}",
        "",
        format_task(task, location),
    ]
    return CommandResult.ok(
        "\n".join(output),
        next_steps=["taskflow do  # get instructions for the current status"],
    )


def _parked_task_ids(progress: TasksProgress) -> list[str]:
    parked = {s.value for s in PARKED_STATUSES}
    return [loc.task.id for loc in store.iter_task_refs(progress) if loc.task.status in parked]


def _single_parked_task(progress: TasksProgress) -> str | None:
    parked = _parked_task_ids(progress)
    return parked[0] if len(parked) == 1 else None
