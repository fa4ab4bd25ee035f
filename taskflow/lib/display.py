"""Plain-text rendering of tasks and progress for command output."""

from pathlib import Path

from taskflow.lib.models import Task, TaskLocation, TaskStatus
from taskflow.lib.store import ProgressStats

STATUS_ICONS = {
    "completed": "✓",
    "blocked": "✗",
    "on-hold": "⏸",
    "not-started": "○",
    "in-progress": "●",
}


def status_icon(status: str) -> str:
    return STATUS_ICONS.get(status, "●")


def progress_bar(percent: int, width: int = 20) -> str:
    filled = round(width * percent / 100)
    return "[" + "#" * filled + "-" * (width - filled) + f"] {percent}%"


def format_location(location: TaskLocation) -> list[str]:
    return [
        f"Story:   {location.story.id} - {location.story.title}",
        f"Feature: {location.feature.id} - {location.feature.title}",
    ]


def format_task(task: Task, location: TaskLocation | None = None) -> str:
    """Task header, description, subtask checklist, context and criteria."""
    lines = [
        f"Task:    {task.id} - {task.title}",
        f"Status:  {task.status.value}",
        f"Skill:   {task.skill}",
    ]
    if location:
        lines += format_location(location)
    if task.blocked_reason:
        label = "Blocked" if task.status == TaskStatus.BLOCKED else "Reason"
        lines.append(f"{label}: {task.blocked_reason}")
    if task.dependencies:
        lines.append(f"Depends on: {', '.join(task.dependencies)}")

    lines += ["", task.description]

    if task.subtasks:
        lines += ["", "Subtasks:"]
        for subtask in task.subtasks:
            mark = "x" if subtask.status == "completed" else " "
            lines.append(f"  [{mark}] {subtask.id}. {subtask.description}")

    if task.acceptance_criteria:
        lines += ["", "Acceptance criteria:"]
        lines += [f"  - {c}" for c in task.acceptance_criteria]

    if task.context:
        lines += ["", "Context files:"]
        lines += [f"  - {c}" for c in task.context]

    return "\n".join(lines)


def format_stats(stats: ProgressStats) -> str:
    return "\n".join([
        f"Progress: {progress_bar(stats.percent_complete)}",
        f"Features: {stats.completed_features}/{stats.total_features}"
        f"  Stories: {stats.completed_stories}/{stats.total_stories}"
        f"  Tasks: {stats.completed_tasks}/{stats.total_tasks}",
    ])


def relative(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)
