"""
Configuration loaders for TaskFlow.

Loads project configuration from taskflow.config.json and resolves the
on-disk layout relative to the project root.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from taskflow.lib import validate
from taskflow.lib.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "taskflow.config.json"

BRANCHING_STRATEGIES = ["per-story"]
DEFAULT_STRATEGY = "per-story"

DEFAULT_AI_COMMAND = "claude --print"


@dataclass
class BranchingConfig:
    """Git branch naming for task work."""
    strategy: str = DEFAULT_STRATEGY
    base: str = "main"
    prefix: str = "story/"
    intermittent_prefix: str = "intermittent/"


@dataclass
class ValidationConfig:
    """Named shell commands run while a task is validating.

    A name mapped to None (or an empty string) is configured-but-disabled
    and is skipped, not failed.
    """
    commands: dict[str, str | None] = field(default_factory=dict)

    def enabled_commands(self) -> dict[str, str]:
        return {name: cmd for name, cmd in self.commands.items() if cmd and cmd.strip()}


@dataclass
class AIConfig:
    enabled: bool = False
    command: str = DEFAULT_AI_COMMAND
    timeout: int = 120
    max_retries: int = 3


@dataclass
class TaskflowConfig:
    """Project-level configuration from taskflow.config.json"""
    project_name: str = ""
    branching: BranchingConfig = field(default_factory=BranchingConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    debug: bool = False


@dataclass
class ProjectPaths:
    """Resolved locations of everything TaskFlow reads and writes."""
    root: Path

    @property
    def tasks_dir(self) -> Path:
        return self.root / "tasks"

    @property
    def index_path(self) -> Path:
        return self.tasks_dir / "project-index.json"

    @property
    def taskflow_dir(self) -> Path:
        return self.root / ".taskflow"

    @property
    def ref_dir(self) -> Path:
        return self.taskflow_dir / "ref"

    @property
    def retrospective_path(self) -> Path:
        return self.ref_dir / "retrospective.md"

    @property
    def logs_dir(self) -> Path:
        return self.taskflow_dir / "logs"

    @property
    def plans_dir(self) -> Path:
        return self.taskflow_dir / "plans"

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME


def load_config(root: Path) -> TaskflowConfig:
    """Load taskflow.config.json and return TaskflowConfig.

    A missing file yields defaults so that commands which do not need
    validation commands or AI still work. Malformed JSON or a document that
    fails schema validation raises ConfigError.
    """
    config_path = ProjectPaths(root).config_path
    if not config_path.exists():
        logger.debug(f"No {CONFIG_FILENAME} in {root}, using defaults")
        return TaskflowConfig(project_name=root.name)

    try:
        data = json.loads(config_path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {config_path}: {e}") from None
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from None

    try:
        validate.validate(data, "config")
    except validate.SchemaValidationError as e:
        raise ConfigError(str(e)) from None

    return _from_dict(data, root)


def _from_dict(data: dict, root: Path) -> TaskflowConfig:
    project = data.get("project", {})
    branching = data.get("branching", {})
    ai = data.get("ai", {})

    strategy = branching.get("strategy", DEFAULT_STRATEGY)
    if strategy not in BRANCHING_STRATEGIES:
        logger.warning(f"Unknown branching strategy '{strategy}', using '{DEFAULT_STRATEGY}'")
        strategy = DEFAULT_STRATEGY

    return TaskflowConfig(
        project_name=project.get("name", root.name),
        branching=BranchingConfig(
            strategy=strategy,
            base=branching.get("base", "main"),
            prefix=branching.get("prefix", "story/"),
            intermittent_prefix=branching.get("intermittentPrefix", "intermittent/"),
        ),
        validation=ValidationConfig(
            commands=dict(data.get("validation", {}).get("commands", {})),
        ),
        ai=AIConfig(
            enabled=ai.get("enabled", False),
            command=ai.get("command", DEFAULT_AI_COMMAND),
            timeout=ai.get("timeout", 120),
            max_retries=ai.get("maxRetries", 3),
        ),
        debug=data.get("debug", False),
    )
