"""Shared fixtures: a small on-disk TaskFlow project.

Layout:
  F1 Auth
    S1.1 User Login: T1.1.1 Login form, T1.1.2 Submit handler (depends on 1.1.1)
    S1.2 Profile:    T1.2.1 Profile page
"""

import json
from pathlib import Path

import pytest

from taskflow.lib.config import AIConfig, ProjectPaths, TaskflowConfig, ValidationConfig
from taskflow.runner.context import CommandContext

FEATURE_PATH = "F1-auth"

TASKS = {
    "1.1.1": {"title": "Login form", "story": "1.1", "dependencies": []},
    "1.1.2": {"title": "Submit handler", "story": "1.1", "dependencies": ["1.1.1"]},
    "1.2.1": {"title": "Profile page", "story": "1.2", "dependencies": []},
}

STORIES = {
    "1.1": "User Login",
    "1.2": "Profile",
}


def _slug(title: str) -> str:
    return title.lower().replace(" ", "-")


def write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n")


def task_file(root: Path, task_id: str) -> Path:
    info = TASKS[task_id]
    story_id = info["story"]
    return (root / "tasks" / FEATURE_PATH / f"S{story_id}-{_slug(STORIES[story_id])}"
            / f"T{task_id}-{_slug(info['title'])}.json")


def read_task(root: Path, task_id: str) -> dict:
    return json.loads(task_file(root, task_id).read_text())


def set_task_status(root: Path, task_id: str, status: str, **extra) -> None:
    """Edit a task file and its ref directly, the way a hand edit would."""
    path = task_file(root, task_id)
    data = json.loads(path.read_text())
    data["status"] = status
    data.update(extra)
    write_json(path, data)

    feature_path = root / "tasks" / FEATURE_PATH / f"{FEATURE_PATH}.json"
    feature = json.loads(feature_path.read_text())
    for story in feature["stories"]:
        for ref in story["tasks"]:
            if ref["id"] == task_id:
                ref["status"] = status
    write_json(feature_path, feature)


@pytest.fixture
def project(tmp_path):
    """Project root with one feature, two stories and three not-started tasks."""
    root = tmp_path / "demo"
    tasks_dir = root / "tasks"

    write_json(tasks_dir / "project-index.json", {
        "project": "demo",
        "features": [{"id": "1", "title": "Auth", "status": "not-started", "path": FEATURE_PATH}],
    })

    stories = []
    for story_id, story_title in STORIES.items():
        refs = []
        for task_id, info in TASKS.items():
            if info["story"] != story_id:
                continue
            refs.append({
                "id": task_id,
                "title": info["title"],
                "status": "not-started",
                "dependencies": info["dependencies"],
            })
            write_json(task_file(root, task_id), {
                "id": task_id,
                "title": info["title"],
                "description": f"Implement the {info['title'].lower()}",
                "status": "not-started",
                "skill": "frontend",
                "subtasks": [
                    {"id": "1", "description": "Build it", "status": "pending"},
                    {"id": "2", "description": "Test it", "status": "pending"},
                ],
                "context": ["src/app.py"],
                "dependencies": info["dependencies"],
            })
        stories.append({"id": story_id, "title": story_title, "status": "not-started", "tasks": refs})

    write_json(tasks_dir / FEATURE_PATH / f"{FEATURE_PATH}.json", {
        "id": "1",
        "title": "Auth",
        "status": "not-started",
        "path": FEATURE_PATH,
        "stories": stories,
    })
    return root


@pytest.fixture
def paths(project):
    return ProjectPaths(project)


@pytest.fixture
def ctx(project):
    """CommandContext with two passing validation commands and AI disabled."""
    config = TaskflowConfig(
        project_name="demo",
        validation=ValidationConfig(commands={"lint": "true", "test": "true", "build": None}),
        ai=AIConfig(enabled=False),
    )
    return CommandContext(paths=ProjectPaths(project), config=config, llm=None)
