"""
Per-status guidance shown by `taskflow do` and after each transition.

Guidance is keyed by TaskStatus. Text may contain {task_id} and {plan_path}
placeholders, filled in by render().
"""

from dataclasses import dataclass
from pathlib import Path

from taskflow.lib.models import TaskStatus

# Static reference files under .taskflow/ref/
REF_RETROSPECTIVE = "retrospective.md"
REF_AI_PROTOCOL = "ai-protocol.md"
REF_ARCHITECTURE_RULES = "architecture-rules.md"
REF_CODING_STANDARDS = "coding-standards.md"
SKILLS_DIR = "skills"


@dataclass(frozen=True)
class Guidance:
    headline: str
    instructions: tuple[str, ...]
    next_steps: tuple[str, ...]
    references: tuple[str, ...] = ()


GUIDANCE: dict[TaskStatus, Guidance] = {
    TaskStatus.SETUP: Guidance(
        headline="SETUP - read and understand, do not write code yet",
        instructions=(
            "Read the retrospective to avoid known errors",
            "Read the AI protocol to understand the workflow rules",
            "Review the task details and subtasks below",
        ),
        next_steps=("taskflow check  # when you understand the task, advance to PLANNING",),
        references=(REF_RETROSPECTIVE, REF_AI_PROTOCOL, REF_ARCHITECTURE_RULES, REF_CODING_STANDARDS),
    ),
    TaskStatus.PLANNING: Guidance(
        headline="PLANNING - write the implementation plan",
        instructions=(
            "List the files you will change and why",
            "Order the subtasks and note any risks",
            "Save the plan to {plan_path}",
        ),
        next_steps=(
            "Write the plan to {plan_path}",
            "taskflow check  # advance to IMPLEMENTING once the plan exists",
        ),
        references=(REF_ARCHITECTURE_RULES,),
    ),
    TaskStatus.IMPLEMENTING: Guidance(
        headline="IMPLEMENTING - write code now",
        instructions=(
            "DO: Implement each subtask in the checklist",
            "DO: Follow the coding standards and architecture rules",
            "DO NOT: Modify files in .taskflow/ or tasks/ by hand",
            "DO NOT: Skip subtasks",
        ),
        next_steps=(
            "Implement each subtask in order (taskflow subtask <id> marks one done)",
            "Test your changes locally if possible",
            "taskflow check  # when ALL subtasks are complete, advance to VERIFYING",
        ),
        references=(REF_RETROSPECTIVE, REF_CODING_STANDARDS),
    ),
    TaskStatus.VERIFYING: Guidance(
        headline="VERIFYING - self-review your code",
        instructions=(
            "All subtasks completed?",
            "No hardcoded paths or magic values?",
            "Proper error handling?",
            "Following the architecture rules?",
            "None of the patterns from the retrospective?",
        ),
        next_steps=(
            "Review each item in the verification checklist",
            "Fix any issues found",
            "taskflow check  # when self-review is complete, start VALIDATION",
        ),
        references=(REF_RETROSPECTIVE,),
    ),
    TaskStatus.VALIDATING: Guidance(
        headline="VALIDATING - automated checks",
        instructions=(
            "ON SUCCESS: advances to COMMITTING",
            "ON FAILURE: stays in VALIDATING; fix the errors and run check again",
        ),
        next_steps=("taskflow check  # run the configured validation commands now",),
    ),
    TaskStatus.COMMITTING: Guidance(
        headline="COMMITTING - commit and push",
        instructions=(
            "Summarise the change as short bullet points",
            "The commit message header and story footer are generated",
        ),
        next_steps=('taskflow commit "- first change\\n- second change"',),
    ),
}


def render(text: str, task_id: str, plan_path: Path | str = "") -> str:
    return text.format(task_id=task_id, plan_path=plan_path)


def render_next_steps(status: TaskStatus, task_id: str, plan_path: Path | str = "") -> list[str]:
    guidance = GUIDANCE.get(status)
    if guidance is None:
        return []
    return [render(step, task_id, plan_path) for step in guidance.next_steps]


def reference_files(status: TaskStatus, ref_dir: Path, skill: str = "") -> list[Path]:
    """Reference files for a status that actually exist on disk.

    In SETUP the skill file (.taskflow/ref/skills/<skill>.md) is included too.
    """
    guidance = GUIDANCE.get(status)
    names = list(guidance.references) if guidance else []
    candidates = [ref_dir / name for name in names]
    if status == TaskStatus.SETUP and skill:
        candidates.append(ref_dir / SKILLS_DIR / f"{skill}.md")
    return [path for path in candidates if path.exists()]


def format_instructions(status: TaskStatus, task_id: str, plan_path: Path | str = "") -> str:
    """Headline plus numbered instructions, or an empty string for statuses without guidance."""
    guidance = GUIDANCE.get(status)
    if guidance is None:
        return ""
    lines = [guidance.headline]
    lines += [f"  {i}. {render(line, task_id, plan_path)}" for i, line in enumerate(guidance.instructions, 1)]
    return "\n".join(lines)
