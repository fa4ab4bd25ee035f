"""
Task store: file-backed access to the feature/story/task hierarchy.

Layout under the project root:
  tasks/project-index.json
  tasks/F<N>-<slug>/F<N>-<slug>.json
  tasks/F<N>-<slug>/S<N.M>-<slug>/T<N.M.K>-<slug>.json

Pure data access. Workflow rules live in taskflow.workflow.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from taskflow.lib.errors import (
    InvalidFileFormatError,
    MultipleActiveTasksError,
    TaskNotFoundError,
)
from taskflow.lib.models import (
    INTERMITTENT_FEATURE_ID,
    ActiveTask,
    Feature,
    Story,
    Task,
    TaskLocation,
    TaskRef,
    TasksProgress,
    TaskStatus,
    is_active_status,
    slugify,
)
from taskflow.lib.validate import load_document, validate_before_write

logger = logging.getLogger(__name__)

INDEX_FILENAME = "project-index.json"


def write_text_atomic(path: Path, text: str) -> None:
    """Write via temp file + rename so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def write_json_atomic(path: Path, data: dict) -> None:
    write_text_atomic(path, json.dumps(data, indent=2) + "\n")


# Project index and feature documents


def get_index_path(tasks_dir: Path) -> Path:
    return tasks_dir / INDEX_FILENAME


def get_feature_file_path(tasks_dir: Path, feature_path: str) -> Path:
    return tasks_dir / feature_path / f"{feature_path}.json"


def load_project_index(tasks_dir: Path) -> dict:
    """Load project-index.json. A missing index is a format error."""
    return load_document(get_index_path(tasks_dir), "project_index")


def load_feature(tasks_dir: Path, feature_path: str) -> Feature:
    file_path = get_feature_file_path(tasks_dir, feature_path)
    return Feature.from_dict(load_document(file_path, "feature"), path=feature_path)


def save_feature(tasks_dir: Path, feature: Feature) -> None:
    if not feature.path:
        feature.path = f"F{feature.id}-{slugify(feature.title)}"
    file_path = get_feature_file_path(tasks_dir, feature.path)
    data = feature.to_dict()
    validate_before_write(data, "feature", file_path)
    write_json_atomic(file_path, data)


def save_project_index(tasks_dir: Path, progress: TasksProgress) -> None:
    index_path = get_index_path(tasks_dir)
    data = {
        "project": progress.project,
        "features": [
            {
                "id": f.id,
                "title": f.title,
                "status": f.status,
                "path": f.path or f"F{f.id}-{slugify(f.title)}",
            }
            for f in progress.features
        ],
    }
    validate_before_write(data, "project_index", index_path)
    write_json_atomic(index_path, data)


def load_progress(tasks_dir: Path) -> TasksProgress:
    """Load the project index plus every feature document.

    A feature file that cannot be loaded is replaced by an empty placeholder
    so one broken feature does not hide the rest of the project.
    """
    index = load_project_index(tasks_dir)
    features = []
    for ref in index["features"]:
        try:
            features.append(load_feature(tasks_dir, ref["path"]))
        except InvalidFileFormatError as e:
            logger.warning(f"Could not load feature {ref['title']}: {e}")
            features.append(Feature(id=ref["id"], title=ref["title"], status=ref["status"], path=ref["path"]))

    features.sort(key=lambda f: int(f.id))
    return TasksProgress(project=index["project"], features=features)


# Lookup


def find_task_location(progress: TasksProgress, task_id: str) -> TaskLocation:
    """Resolve feature/story/task ref for a task id.

    Raises:
        TaskNotFoundError: If no feature lists the task
    """
    for feature in progress.features:
        for story in feature.stories:
            for task in story.tasks:
                if task.id == task_id:
                    return TaskLocation(feature=feature, story=story, task=task)
    raise TaskNotFoundError(task_id)


def find_story_location(progress: TasksProgress, story_id: str) -> Optional[tuple[Feature, Story]]:
    for feature in progress.features:
        for story in feature.stories:
            if story.id == story_id:
                return feature, story
    return None


def find_feature(progress: TasksProgress, feature_id: str) -> Optional[Feature]:
    for feature in progress.features:
        if feature.id == feature_id:
            return feature
    return None


def iter_task_refs(progress: TasksProgress):
    """Yield every TaskLocation in document order."""
    for feature in progress.features:
        for story in feature.stories:
            for task in story.tasks:
                yield TaskLocation(feature=feature, story=story, task=task)


def find_tasks(
    tasks_dir: Path,
    progress: TasksProgress,
    status: Optional[str] = None,
    keyword: Optional[str] = None,
    story_id: Optional[str] = None,
    feature_id: Optional[str] = None,
    skill: Optional[str] = None,
) -> list[TaskLocation]:
    """Tasks matching every given filter, in document order.

    Keyword matches the title case-insensitively. Skill lives only in the
    task document, so it is checked last; tasks whose document can't be read
    are left out.
    """
    matches = []
    for location in iter_task_refs(progress):
        ref = location.task
        if status and ref.status != status:
            continue
        if keyword and keyword.lower() not in ref.title.lower():
            continue
        if story_id and location.story.id != story_id:
            continue
        if feature_id and location.feature.id != feature_id:
            continue
        if skill:
            try:
                task = load_task(tasks_dir, progress, ref.id)
            except (TaskNotFoundError, InvalidFileFormatError) as e:
                logger.warning(f"[STORE] Skipping {ref.id} in skill filter: {e}")
                continue
            if task.skill != skill:
                continue
        matches.append(location)
    return matches


# Task documents


def get_task_file_path(tasks_dir: Path, progress: TasksProgress, task_id: str) -> Path:
    """Find the task document on disk.

    Story directories and task files are matched by id prefix so that slug
    changes in titles don't break resolution.

    Raises:
        TaskNotFoundError: If the task or its file can't be found
    """
    location = find_task_location(progress, task_id)
    feature_dir = tasks_dir / (location.feature.path or "")
    if not feature_dir.is_dir():
        logger.debug(f"Feature dir not found: {feature_dir}")
        raise TaskNotFoundError(task_id)

    story_dirs = sorted(
        d for d in feature_dir.iterdir()
        if d.is_dir() and d.name.startswith(f"S{location.story.id}-")
    )
    if not story_dirs:
        logger.debug(f"No story dir in {feature_dir} starting with S{location.story.id}-")
        raise TaskNotFoundError(task_id)

    task_files = sorted(
        f for f in story_dirs[0].iterdir()
        if f.suffix == ".json" and (f.name.startswith(f"T{task_id}-") or f.name == f"T{task_id}.json")
    )
    if not task_files:
        logger.debug(f"No task file in {story_dirs[0]} for T{task_id}")
        raise TaskNotFoundError(task_id)

    return task_files[0]


def load_task_file(file_path: Path) -> Task:
    return Task.from_dict(load_document(file_path, "task"))


def load_task(tasks_dir: Path, progress: TasksProgress, task_id: str) -> Task:
    """Load a task document by id.

    Raises:
        TaskNotFoundError: If the id does not resolve to an existing file
    """
    return load_task_file(get_task_file_path(tasks_dir, progress, task_id))


def save_task(file_path: Path, task: Task) -> None:
    """Persist a task document with atomic replacement."""
    data = task.to_dict()
    validate_before_write(data, "task", file_path)
    write_json_atomic(file_path, data)


def find_active_task(tasks_dir: Path, progress: TasksProgress) -> Optional[ActiveTask]:
    """Find the single task whose document is in an active status.

    Every task document is read; the feature file ref status is not
    trusted on its own.

    Raises:
        MultipleActiveTasksError: If more than one task is active
    """
    active = []
    for location in iter_task_refs(progress):
        try:
            file_path = get_task_file_path(tasks_dir, progress, location.task.id)
        except TaskNotFoundError:
            continue
        task = load_task_file(file_path)
        if task.is_active:
            active.append(ActiveTask(task_id=task.id, file_path=file_path, task=task))

    if len(active) > 1:
        raise MultipleActiveTasksError([a.task_id for a in active])
    return active[0] if active else None


# Aggregate status


def calculate_story_status(story: Story) -> str:
    tasks = story.tasks
    if not tasks:
        return "not-started"

    completed = [t for t in tasks if t.status == TaskStatus.COMPLETED.value]
    blocked = [t for t in tasks if t.status == TaskStatus.BLOCKED.value]
    active = [t for t in tasks if is_active_status(t.status)]

    if len(completed) == len(tasks):
        return "completed"
    if len(blocked) == len(tasks):
        return "blocked"
    if active or completed:
        return "in-progress"
    return "not-started"


def calculate_feature_status(feature: Feature) -> str:
    stories = feature.stories
    if not stories:
        return "not-started"

    completed = [s for s in stories if s.status == "completed"]
    blocked = [s for s in stories if s.status == "blocked"]
    in_progress = [s for s in stories if s.status == "in-progress"]

    if len(completed) == len(stories):
        return "completed"
    if len(blocked) == len(stories):
        return "blocked"
    if in_progress or completed:
        return "in-progress"
    return "not-started"


# State updates


def _snapshot(path: Path) -> Optional[str]:
    return path.read_text() if path.exists() else None


def persist_task(tasks_dir: Path, progress: TasksProgress, file_path: Path, task: Task) -> None:
    """Write a task document and propagate its status up the hierarchy.

    Write order: task file, feature file, project index. If a later write
    fails, the task and feature files are restored to their previous bytes,
    in-memory refs are put back, and the error propagates.
    """
    location = find_task_location(progress, task.id)
    feature, story, ref = location.feature, location.story, location.task

    previous_text = _snapshot(file_path)
    feature_file = get_feature_file_path(tasks_dir, feature.path) if feature.path else None
    previous_feature_text = _snapshot(feature_file) if feature_file else None
    previous = (ref.status, story.status, feature.status)

    save_task(file_path, task)
    try:
        ref.status = task.status.value
        story.status = calculate_story_status(story)
        feature.status = calculate_feature_status(feature)
        save_feature(tasks_dir, feature)
        save_project_index(tasks_dir, progress)
    except Exception:
        logger.error(f"[STORE] {task.id}: hierarchy update failed, restoring task and feature files")
        ref.status, story.status, feature.status = previous
        if previous_text is not None:
            write_text_atomic(file_path, previous_text)
        if previous_feature_text is not None:
            write_text_atomic(feature_file, previous_feature_text)
        raise

    logger.debug(f"[STORE] {task.id}: saved as {task.status.value}")


def update_subtask_status(file_path: Path, subtask_id: str, status: str) -> bool:
    """Set one subtask's status. Returns False if the subtask doesn't exist."""
    task = load_task_file(file_path)
    for subtask in task.subtasks:
        if subtask.id == subtask_id:
            subtask.status = status
            save_task(file_path, task)
            return True
    return False


def add_note(file_path: Path, content: str) -> dict:
    task = load_task_file(file_path)
    note = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "type": "note",
        "content": content,
    }
    task.notes.append(note)
    save_task(file_path, task)
    return note


# Dependencies and scheduling


def get_unmet_dependencies(progress: TasksProgress, task: TaskRef | Task) -> list[str]:
    """Dependency ids that are missing or not completed."""
    unmet = []
    for dep_id in task.dependencies:
        try:
            dep = find_task_location(progress, dep_id).task
        except TaskNotFoundError:
            unmet.append(dep_id)
            continue
        if dep.status != TaskStatus.COMPLETED.value:
            unmet.append(dep_id)
    return unmet


def check_dependencies_met(progress: TasksProgress, task: TaskRef | Task) -> bool:
    return not get_unmet_dependencies(progress, task)


@dataclass
class NextTask:
    task: TaskRef
    story: Story
    feature: Feature
    is_intermittent: bool = False


def find_next_available_task(
    progress: TasksProgress,
    exclude_id: str | None = None,
    include_intermittent: bool = False,
) -> Optional[NextTask]:
    """Pick the next task to work on.

    Priority:
    1. Active tasks in in-progress stories
    2. Not-started tasks with met dependencies in in-progress stories
    3. Not-started tasks with met dependencies in not-started stories
    4. Any non-completed intermittent task in feature 0 (opt-in)
    """
    def candidates(story_status: str):
        for feature in progress.features:
            if feature.status == "completed":
                continue
            for story in feature.stories:
                if story.status != story_status:
                    continue
                for task in story.tasks:
                    if task.is_intermittent or task.id == exclude_id:
                        continue
                    yield feature, story, task

    for feature, story, task in candidates("in-progress"):
        if is_active_status(task.status):
            return NextTask(task=task, story=story, feature=feature)

    for story_status in ("in-progress", "not-started"):
        for feature, story, task in candidates(story_status):
            if task.status == TaskStatus.NOT_STARTED.value and check_dependencies_met(progress, task):
                return NextTask(task=task, story=story, feature=feature)

    if include_intermittent:
        feature = find_feature(progress, INTERMITTENT_FEATURE_ID)
        if feature and feature.status != "completed":
            for story in feature.stories:
                for task in story.tasks:
                    if not task.is_intermittent or task.id == exclude_id:
                        continue
                    if task.status != TaskStatus.COMPLETED.value:
                        return NextTask(task=task, story=story, feature=feature, is_intermittent=True)

    return None


@dataclass
class ProgressStats:
    total_features: int = 0
    completed_features: int = 0
    total_stories: int = 0
    completed_stories: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0

    @property
    def percent_complete(self) -> int:
        if not self.total_tasks:
            return 0
        return round(100 * self.completed_tasks / self.total_tasks)


def calculate_progress_stats(progress: TasksProgress) -> ProgressStats:
    stats = ProgressStats(total_features=len(progress.features))
    for feature in progress.features:
        if feature.status == "completed":
            stats.completed_features += 1
        for story in feature.stories:
            stats.total_stories += 1
            if story.status == "completed":
                stats.completed_stories += 1
            for task in story.tasks:
                stats.total_tasks += 1
                if task.status == TaskStatus.COMPLETED.value:
                    stats.completed_tasks += 1
    return stats
