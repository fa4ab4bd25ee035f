"""Task workflow transitions with persistence.

Thin wrapper around the FSM in fsm.py. All transition logic lives in fsm.py -
this module provides:
- fire(): run a trigger and persist the result through the task store
- InvalidTransition for triggers that are not legal from the current status
- Convenience queries (can_transition, available_commands, plan path, next status)

State changes are all-or-nothing: if writing the task or its parent
documents fails, the FSM and the in-memory Task are put back the way they
were and the error propagates.

Usage:
    from taskflow.workflow.state_machine import fire

    moved = fire(tasks_dir, progress, active.file_path, active.task, "advance")
"""

import copy
import logging
from dataclasses import fields
from pathlib import Path

from transitions import MachineError

from taskflow.lib import store
from taskflow.lib.errors import PreconditionError
from taskflow.lib.models import STATUS_TRANSITIONS, Task, TasksProgress, TaskStatus
from taskflow.workflow.fsm import TRIGGER_FOR, TaskFSM

logger = logging.getLogger(__name__)


class InvalidTransition(PreconditionError):
    """Raised when a trigger is not defined for the task's current status."""

    def __init__(self, from_state: str, trigger: str, task_id: str = ""):
        self.from_state = from_state
        self.trigger = trigger
        self.task_id = task_id
        super().__init__(
            f"Cannot {trigger} from status '{from_state}'" + (f" (task: {task_id})" if task_id else ""),
            "INVALID_TRANSITION",
            "Run 'taskflow status' to see the current task status.",
        )


def _restore(task: Task, snapshot: Task) -> None:
    for f in fields(task):
        setattr(task, f.name, getattr(snapshot, f.name))


def fire(
    tasks_dir: Path,
    progress: TasksProgress,
    file_path: Path,
    task: Task,
    trigger: str,
    **kwargs,
) -> bool:
    """Run one trigger against a task and persist it.

    Args:
        tasks_dir: Root of the task hierarchy
        progress: Loaded hierarchy; refs and aggregate statuses are updated in place
        file_path: Task document to write
        task: Task to transition; mutated in place on success
        trigger: FSM trigger name (start, advance, complete, block, hold, resume, abort)
        **kwargs: Passed to FSM conditions and callbacks

    Returns:
        True if the task moved, False if a condition held it in place

    Raises:
        InvalidTransition: If the trigger is not legal from the current status
    """
    snapshot = copy.deepcopy(task)
    fsm = TaskFSM(task)
    source = fsm.state

    try:
        moved = getattr(fsm, trigger)(**kwargs)
    except MachineError as e:
        _restore(task, snapshot)
        raise InvalidTransition(source, trigger, task.id) from e

    if not moved:
        logger.debug(f"[STATE] {task.id}: {trigger} held in {source}")
        return False

    try:
        store.persist_task(tasks_dir, progress, file_path, task)
    except Exception:
        logger.error(f"[STATE] {task.id}: could not persist {source} -> {fsm.state}, reverting")
        fsm.machine.set_state(source)
        _restore(task, snapshot)
        raise

    logger.info(f"[STATE] {task.id}: {source} -> {task.status.value} ({trigger})")
    return True


def can_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """Check if a transition to the given status is defined (conditions aside).

    Self-transition is always valid (no-op).
    """
    if from_status == to_status:
        return True
    return (from_status.value, to_status.value) in TRIGGER_FOR


def next_status(status: TaskStatus) -> TaskStatus | None:
    """The status a successful check leads to, or None at the end of the line."""
    return STATUS_TRANSITIONS.get(status)


# CLI command that fires each trigger
TRIGGER_COMMANDS = {
    "start": "taskflow start {id}",
    "advance": "taskflow check",
    "complete": 'taskflow commit "<bullet points>"',
    "revert": "taskflow back",
    "block": "taskflow skip <reason>",
    "hold": "taskflow hold [reason]",
    "resume": "taskflow resume --task {id}",
    "abort": "taskflow abort",
}


def available_commands(task: Task) -> list[str]:
    """Commands that are legal for the task's current status, in workflow order."""
    triggers = set(TaskFSM(task).get_available_triggers())
    return [cmd.format(id=task.id) for trigger, cmd in TRIGGER_COMMANDS.items() if trigger in triggers]


def can_revert(task: Task) -> bool:
    return TaskFSM(task).can("revert")


def get_plan_path(plans_dir: Path, task_id: str) -> Path:
    """.taskflow/plans/T1.2.3-plan.md"""
    return plans_dir / f"T{task_id}-plan.md"

