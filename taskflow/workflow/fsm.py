"""Task status state machine using transitions library.

One table holds every legal status change. Triggers become methods on the
FSM:

    fsm = TaskFSM(task)
    fsm.start()                          # not-started -> setup
    fsm.advance()                        # setup -> planning
    fsm.advance(plan_exists=True)        # planning -> implementing
    fsm.advance(validation_passed=True)  # validating -> committing
    fsm.block(reason="waiting on API")   # any active -> blocked
    fsm.resume(target="implementing")    # blocked/on-hold -> target
    fsm.revert()                         # implementing -> planning

A trigger whose condition is not met returns False and leaves the state
alone. A trigger that is not defined for the current state raises
transitions.MachineError.

The FSM only changes the Task object in memory. Persisting it is the job of
taskflow.workflow.state_machine.
"""

import logging
from typing import Callable

from transitions import Machine

from taskflow.lib.models import ACTIVE_STATUSES, PARKED_STATUSES, STATUS_TRANSITIONS, Task, TaskStatus

logger = logging.getLogger(__name__)


STATES = [s.value for s in TaskStatus]

ACTIVE = [s.value for s in ACTIVE_STATUSES]
PARKED = [s.value for s in PARKED_STATUSES]

# Conditions that gate a linear step, keyed by source state
ADVANCE_CONDITIONS = {
    TaskStatus.PLANNING.value: "plan_exists",
    TaskStatus.VALIDATING.value: "validation_passed",
}


def _build_transitions() -> list[dict]:
    transitions = [
        {"trigger": "start", "source": TaskStatus.NOT_STARTED.value, "dest": TaskStatus.SETUP.value},
    ]

    # Linear workflow; completion has its own trigger
    for source, dest in STATUS_TRANSITIONS.items():
        if dest == TaskStatus.COMPLETED:
            continue
        step = {"trigger": "advance", "source": source.value, "dest": dest.value}
        if source.value in ADVANCE_CONDITIONS:
            step["conditions"] = ADVANCE_CONDITIONS[source.value]
        transitions.append(step)

    transitions += [
        {"trigger": "complete", "source": TaskStatus.COMMITTING.value, "dest": TaskStatus.COMPLETED.value},

        # Leave the active set
        {"trigger": "block", "source": ACTIVE, "dest": TaskStatus.BLOCKED.value, "before": "park"},
        {"trigger": "hold", "source": ACTIVE, "dest": TaskStatus.ON_HOLD.value, "before": "park"},
        {"trigger": "abort", "source": ACTIVE, "dest": TaskStatus.NOT_STARTED.value, "before": "unpark"},
    ]

    # One step back along the linear workflow; setup has nowhere to go
    for source, dest in STATUS_TRANSITIONS.items():
        if dest == TaskStatus.COMPLETED:
            continue
        transitions.append({"trigger": "revert", "source": dest.value, "dest": source.value})

    # Back into the active set; the requested target picks the transition
    for dest in ACTIVE:
        transitions.append({
            "trigger": "resume",
            "source": PARKED,
            "dest": dest,
            "conditions": "is_resume_target",
            "before": "unpark",
        })

    return transitions


TRANSITIONS = _build_transitions()


# Pre-computed lookup: (source, dest) -> trigger name
def _build_trigger_lookup() -> dict[tuple[str, str], str]:
    """Build lookup from (source, dest) -> trigger name."""
    lookup: dict[tuple[str, str], str] = {}
    for t in TRANSITIONS:
        sources = t["source"] if isinstance(t["source"], list) else [t["source"]]
        for source in sources:
            key = (source, t["dest"])
            if key not in lookup:  # First trigger wins for a given source->dest
                lookup[key] = t["trigger"]
    return lookup


TRIGGER_FOR = _build_trigger_lookup()


class TaskFSM:
    """State machine bound to one Task.

    Wraps the transitions library with task-specific logic:
    - Initial state comes from task.status
    - Every transition is mirrored onto task.status
    - Parking records the reason and the status to come back to
    """

    def __init__(self, task: Task, on_transition: Callable[[str, str, str], None] | None = None):
        """
        Args:
            task: Task to drive; mutated in place
            on_transition: Optional callback(from_state, to_state, trigger) called after transitions
        """
        self.task = task
        self.on_transition = on_transition

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=task.status.value,
            auto_transitions=False,  # Only explicit transitions
            send_event=True,  # Pass EventData to callbacks
            after_state_change="on_state_change",
        )

    # Conditions

    def plan_exists(self, event) -> bool:
        return bool(event.kwargs.get("plan_exists", False))

    def validation_passed(self, event) -> bool:
        return bool(event.kwargs.get("validation_passed", False))

    def is_resume_target(self, event) -> bool:
        return event.kwargs.get("target") == event.transition.dest

    # Callbacks

    def park(self, event) -> None:
        self.task.previous_status = TaskStatus(event.transition.source)
        self.task.blocked_reason = event.kwargs.get("reason") or None

    def unpark(self, event) -> None:
        self.task.previous_status = None
        self.task.blocked_reason = None

    def on_state_change(self, event) -> None:
        """Callback after any state transition. Mirrors the state onto the task."""
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name

        self.task.status = TaskStatus(to_state)
        logger.info(f"[FSM] {self.task.id}: {from_state} -> {to_state} ({trigger})")

        if self.on_transition:
            self.on_transition(from_state, to_state, trigger)

    def can(self, trigger: str) -> bool:
        """Check if a trigger is defined for the current state (conditions not evaluated)."""
        return trigger in self.machine.get_triggers(self.state)

    def get_available_triggers(self) -> list[str]:
        return self.machine.get_triggers(self.state)
