"""Git commit operations and TaskFlow commit message format."""

import re
from pathlib import Path

from taskflow.git.runner import run_git, GitResult


def stage_all(worktree: Path) -> GitResult:
    """Stage all changes (new, modified, deleted)."""
    return run_git(["add", "-A"], worktree)


def commit(worktree: Path, message: str) -> GitResult:
    """Create a commit with the given message."""
    # Hooks can run formatters and test suites
    return run_git(["commit", "-m", message], worktree, timeout=300)


def parse_bullets(text: str) -> list[str]:
    """Split commit body text into '- ' bullet lines.

    Accepts real newlines and the two-character sequence backslash-n, which
    is what shells pass through from a quoted "a\\nb" argument.
    """
    lines = [line.strip() for line in re.split(r"\\n|\n", text)]
    return [line if line.startswith("-") else f"- {line}" for line in lines if line]


def build_commit_message(task_id: str, title: str, bullets: list[str], story_id: str,
                         commit_type: str = "feat") -> str:
    """
    Build the commit message for a completed task.

    feat(F1): T1.2.3 - Add login form

    - Added form component
    - Wired submit handler

    Story: S1.2
    """
    feature_id = task_id.split(".")[0]
    header = f"{commit_type}(F{feature_id}): T{task_id} - {title}"
    return "\n".join([header, "", *bullets, "", f"Story: S{story_id}"])
