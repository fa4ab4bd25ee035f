"""
taskflow start - Begin work on a task.

Refuses while another task is active or while dependencies are open, then
checks out the story branch and moves the task to setup.
"""

import logging

from taskflow.git import ensure_branch, expected_branch_name
from taskflow.agents.llm import guidance_or_fallback
from taskflow.lib import retrospective, store
from taskflow.lib.display import format_task, relative
from taskflow.lib.errors import (
    ActiveTaskExistsError,
    DependencyNotSatisfiedError,
    TaskAlreadyCompletedError,
)
from taskflow.lib.guidance import format_instructions, reference_files, render_next_steps
from taskflow.lib.models import PARKED_STATUSES, Task, TaskStatus
from taskflow.lib.prompts import build_section, render_prompt
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext
from taskflow.workflow.state_machine import fire

logger = logging.getLogger(__name__)


def cmd_start(args, ctx: CommandContext) -> CommandResult:
    task_id = args.task_id
    progress = ctx.load_progress()
    location = store.find_task_location(progress, task_id)
    file_path = store.get_task_file_path(ctx.paths.tasks_dir, progress, task_id)
    task = store.load_task_file(file_path)

    if task.status == TaskStatus.COMPLETED:
        raise TaskAlreadyCompletedError(task_id)

    active = ctx.find_active(progress)
    if active is not None:
        if active.task_id == task_id:
            return CommandResult.ok(
                f"Task {task_id} is already active (status: {task.status.value})",
                next_steps=["taskflow do  # get instructions for the current status"],
            )
        raise ActiveTaskExistsError(active.task_id)

    if task.status in PARKED_STATUSES:
        return CommandResult.failure(
            f"Task {task_id} is {task.status.value}",
            next_steps=[f"taskflow resume --task {task_id}  # pick it back up where it stopped"],
        )

    unmet = store.get_unmet_dependencies(progress, task)
    if unmet:
        raise DependencyNotSatisfiedError(task_id, unmet)

    branch = expected_branch_name(location.story.id, location.story.title, ctx.config.branching)
    switched = ensure_branch(ctx.root, branch, ctx.config.branching.base)

    fire(ctx.paths.tasks_dir, progress, file_path, task, "start")

    manual = format_instructions(TaskStatus.SETUP, task_id)
    text, from_llm = guidance_or_fallback(ctx.llm, _guidance_prompt(ctx, task), manual)

    output = [
        f"Started task {task_id} - status: SETUP",
        f"Branch: {branch}" + (" (switched)" if switched else ""),
        "",
        format_task(task, location),
        "",
        manual,
    ]

    return CommandResult.ok(
        "\n".join(output),
        next_steps=render_next_steps(TaskStatus.SETUP, task_id),
        ai_guidance=text if from_llm else "",
        context_files=[relative(p, ctx.root) for p in reference_files(TaskStatus.SETUP, ctx.paths.ref_dir, task.skill)],
    )


def _guidance_prompt(ctx: CommandContext, task: Task) -> str:
    entries = retrospective.load(ctx.paths.retrospective_path)
    known = "\n".join(f"- {e.pattern}: {e.solution}" for e in entries)
    return render_prompt(
        "task_guidance",
        task_id=task.id,
        title=task.title,
        skill=task.skill,
        description=task.description,
        subtasks_section=build_section("\n".join(f"- {s.description}" for s in task.subtasks), "## Subtasks"),
        acceptance_section=build_section("\n".join(f"- {c}" for c in task.acceptance_criteria),
                                         "## Acceptance criteria"),
        retrospective_section=build_section(known, "## Known error patterns"),
    )
