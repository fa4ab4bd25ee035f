"""
Command context for TaskFlow.

Everything a command needs (layout, config, optional LLM client) is carried
explicitly in a CommandContext built once per CLI invocation.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from taskflow.agents.llm import LLMClient
from taskflow.lib import store
from taskflow.lib.config import ProjectPaths, TaskflowConfig, load_config
from taskflow.lib.errors import NoActiveSessionError
from taskflow.lib.models import ActiveTask, TasksProgress


@dataclass
class CommandContext:
    """Context for a single command invocation."""
    paths: ProjectPaths
    config: TaskflowConfig
    llm: Optional[LLMClient] = None

    @classmethod
    def create(cls, root: Path) -> "CommandContext":
        """Load config for a project root and build the LLM client if AI is enabled."""
        root = root.resolve()
        config = load_config(root)
        return cls(
            paths=ProjectPaths(root),
            config=config,
            llm=LLMClient.from_config(config.ai, cwd=root),
        )

    @property
    def root(self) -> Path:
        return self.paths.root

    def load_progress(self) -> TasksProgress:
        return store.load_progress(self.paths.tasks_dir)

    def find_active(self, progress: TasksProgress) -> Optional[ActiveTask]:
        return store.find_active_task(self.paths.tasks_dir, progress)

    def require_active(self) -> tuple[TasksProgress, ActiveTask]:
        """Load the hierarchy and the active task.

        Raises:
            NoActiveSessionError: If no task is active
        """
        progress = self.load_progress()
        active = self.find_active(progress)
        if active is None:
            raise NoActiveSessionError()
        return progress, active
