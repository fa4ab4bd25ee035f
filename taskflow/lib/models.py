"""
Data models for TaskFlow.

Task hierarchy documents live on disk as JSON with camelCase keys. The
dataclasses here use snake_case and convert at the file boundary via
from_dict()/to_dict().
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class TaskStatus(Enum):
    """All valid task statuses. Values match the strings stored on disk."""

    NOT_STARTED = "not-started"

    # Workflow states (the active set)
    SETUP = "setup"
    PLANNING = "planning"
    IMPLEMENTING = "implementing"
    VERIFYING = "verifying"
    VALIDATING = "validating"
    COMMITTING = "committing"

    # Terminal / parked states
    COMPLETED = "completed"
    BLOCKED = "blocked"
    ON_HOLD = "on-hold"


ACTIVE_STATUSES = (
    TaskStatus.SETUP,
    TaskStatus.PLANNING,
    TaskStatus.IMPLEMENTING,
    TaskStatus.VERIFYING,
    TaskStatus.VALIDATING,
    TaskStatus.COMMITTING,
)

PARKED_STATUSES = (TaskStatus.BLOCKED, TaskStatus.ON_HOLD)

# Linear workflow progression
STATUS_TRANSITIONS = {
    TaskStatus.SETUP: TaskStatus.PLANNING,
    TaskStatus.PLANNING: TaskStatus.IMPLEMENTING,
    TaskStatus.IMPLEMENTING: TaskStatus.VERIFYING,
    TaskStatus.VERIFYING: TaskStatus.VALIDATING,
    TaskStatus.VALIDATING: TaskStatus.COMMITTING,
    TaskStatus.COMMITTING: TaskStatus.COMPLETED,
}

# Aggregate status used by stories and features
STORY_STATUSES = ["not-started", "in-progress", "completed", "blocked", "on-hold"]

SKILLS = ["backend", "frontend", "fullstack", "devops", "docs", "development", "mobile", "ai"]

TASK_ID_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")
STORY_ID_PATTERN = re.compile(r"^(\d+)\.(\d+)$")
FEATURE_ID_PATTERN = re.compile(r"^\d+$")

INTERMITTENT_FEATURE_ID = "0"


def parse_status(status_str: str | None) -> TaskStatus | None:
    """Parse a status string into TaskStatus. Returns None if unknown."""
    if status_str is None:
        return None
    for status in TaskStatus:
        if status.value == status_str:
            return status
    return None


def is_active_status(status: TaskStatus | str | None) -> bool:
    """Check if a status is one of the in-progress workflow states."""
    if isinstance(status, str):
        status = parse_status(status)
    return status in ACTIVE_STATUSES


def parse_task_id(task_id: str) -> tuple[str, str, str] | None:
    """Split 'F.S.T' into (feature_id, story_id, task_number).

    story_id is returned in its full dotted form ('F.S').
    """
    match = TASK_ID_PATTERN.match(task_id)
    if not match:
        return None
    feature_id, story_num, task_num = match.groups()
    return feature_id, f"{feature_id}.{story_num}", task_num


def slugify(title: str) -> str:
    """Lowercase, non-alphanumeric runs to '-', no leading/trailing dash."""
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


@dataclass
class Subtask:
    id: str
    description: str
    status: str = "pending"  # pending | completed

    @classmethod
    def from_dict(cls, data: dict) -> "Subtask":
        return cls(id=str(data["id"]), description=data["description"], status=data.get("status", "pending"))

    def to_dict(self) -> dict:
        return {"id": self.id, "description": self.description, "status": self.status}


@dataclass
class Task:
    """Full task document (T<id>-<slug>.json)."""
    id: str
    title: str
    description: str
    status: TaskStatus = TaskStatus.NOT_STARTED
    skill: str = "backend"
    subtasks: list[Subtask] = field(default_factory=list)
    context: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    blocked_reason: Optional[str] = None
    previous_status: Optional[TaskStatus] = None
    notes: list[dict] = field(default_factory=list)
    acceptance_criteria: list[str] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        previous = data.get("previousStatus")
        return cls(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            status=TaskStatus(data["status"]),
            skill=data.get("skill", "backend"),
            subtasks=[Subtask.from_dict(s) for s in data.get("subtasks", [])],
            context=list(data.get("context", [])),
            dependencies=list(data.get("dependencies", [])),
            blocked_reason=data.get("blockedReason"),
            previous_status=TaskStatus(previous) if previous else None,
            notes=list(data.get("notes", [])),
            acceptance_criteria=list(data.get("acceptanceCriteria", [])),
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "skill": self.skill,
            "subtasks": [s.to_dict() for s in self.subtasks],
            "context": self.context,
            "dependencies": self.dependencies,
        }
        # Optional keys are omitted rather than written as null
        if self.blocked_reason:
            data["blockedReason"] = self.blocked_reason
        if self.previous_status:
            data["previousStatus"] = self.previous_status.value
        if self.notes:
            data["notes"] = self.notes
        if self.acceptance_criteria:
            data["acceptanceCriteria"] = self.acceptance_criteria
        return data


@dataclass
class TaskRef:
    """A task entry inside a feature file."""
    id: str
    title: str
    status: str
    dependencies: list[str] = field(default_factory=list)
    is_intermittent: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "TaskRef":
        return cls(
            id=data["id"],
            title=data["title"],
            status=data["status"],
            dependencies=list(data.get("dependencies", [])),
            is_intermittent=data.get("isIntermittent", False),
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "dependencies": self.dependencies,
        }
        if self.is_intermittent:
            data["isIntermittent"] = True
        return data


@dataclass
class Story:
    id: str
    title: str
    status: str
    tasks: list[TaskRef] = field(default_factory=list)

    @property
    def is_intermittent(self) -> bool:
        return self.id.startswith(f"{INTERMITTENT_FEATURE_ID}.")

    @classmethod
    def from_dict(cls, data: dict) -> "Story":
        return cls(
            id=data["id"],
            title=data["title"],
            status=data["status"],
            tasks=[TaskRef.from_dict(t) for t in data.get("tasks", [])],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass
class Feature:
    id: str
    title: str
    status: str
    path: str = ""  # Directory name under tasks/, e.g. F1-user-auth
    stories: list[Story] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict, path: str = "") -> "Feature":
        return cls(
            id=data["id"],
            title=data["title"],
            status=data["status"],
            path=path or data.get("path", ""),
            stories=[Story.from_dict(s) for s in data.get("stories", [])],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "path": self.path,
            "stories": [s.to_dict() for s in self.stories],
        }


@dataclass
class TasksProgress:
    """Project index plus every loaded feature document."""
    project: str
    features: list[Feature] = field(default_factory=list)


@dataclass
class TaskLocation:
    feature: Feature
    story: Story
    task: TaskRef


@dataclass
class ActiveTask:
    task_id: str
    file_path: Path
    task: Task
