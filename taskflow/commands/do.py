"""
taskflow do - Instructions for the active task's current status.
"""

from taskflow.git.commit import build_commit_message
from taskflow.lib import store
from taskflow.lib.display import format_task, relative
from taskflow.lib.guidance import format_instructions, reference_files, render_next_steps
from taskflow.lib.models import TaskStatus
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext
from taskflow.workflow.state_machine import available_commands, get_plan_path


def cmd_do(args, ctx: CommandContext) -> CommandResult:
    progress, active = ctx.require_active()
    task = active.task
    location = store.find_task_location(progress, task.id)
    status = task.status
    plan_path = relative(get_plan_path(ctx.paths.plans_dir, task.id), ctx.root)

    sections = [
        f"Task {task.id} - state: {status.value.upper()}",
        "",
        format_task(task, location),
        "",
        format_instructions(status, task.id, plan_path),
    ]

    if status == TaskStatus.PLANNING:
        exists = get_plan_path(ctx.paths.plans_dir, task.id).exists()
        sections += ["", f"Plan file: {plan_path} ({'present' if exists else 'missing'})"]

    elif status == TaskStatus.VALIDATING:
        commands = ctx.config.validation.enabled_commands()
        sections += ["", "The following checks will run:"]
        if commands:
            sections += [f"  {i}. {label}: {cmd}" for i, (label, cmd) in enumerate(commands.items(), 1)]
        else:
            sections.append("  (none configured in taskflow.config.json)")

    elif status == TaskStatus.COMMITTING:
        example = build_commit_message(task.id, task.title, ["<your bullet points>"], location.story.id)
        sections += ["", "Commit message format:", ""] + [f"  {line}" for line in example.splitlines()]

    sections += ["", "Available commands:"] + [f"  {cmd}" for cmd in available_commands(task)]

    return CommandResult.ok(
        "\n".join(sections),
        next_steps=render_next_steps(status, task.id, plan_path),
        context_files=[relative(p, ctx.root) for p in reference_files(status, ctx.paths.ref_dir, task.skill)]
        + list(task.context),
    )
