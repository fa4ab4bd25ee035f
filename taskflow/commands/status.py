"""
taskflow status - Project overview, or details for one feature/story/task.
"""

from taskflow.lib import store
from taskflow.lib.display import format_stats, format_task, status_icon
from taskflow.lib.errors import TaskNotFoundError
from taskflow.lib.models import FEATURE_ID_PATTERN, STORY_ID_PATTERN, TASK_ID_PATTERN, Feature, Story, TasksProgress
from taskflow.lib.result import CommandResult
from taskflow.runner import validation
from taskflow.runner.context import CommandContext


def cmd_status(args, ctx: CommandContext) -> CommandResult:
    progress = ctx.load_progress()
    item_id = getattr(args, "id", None)

    if not item_id:
        return _project_status(ctx, progress)
    if TASK_ID_PATTERN.match(item_id):
        return _task_status(ctx, progress, item_id)
    if STORY_ID_PATTERN.match(item_id):
        found = store.find_story_location(progress, item_id)
        if found is None:
            raise TaskNotFoundError(item_id)
        return _story_status(*found)
    if FEATURE_ID_PATTERN.match(item_id):
        feature = store.find_feature(progress, item_id)
        if feature is None:
            raise TaskNotFoundError(item_id)
        return _feature_status(feature)

    return CommandResult.failure(
        f"'{item_id}' is not a feature (N), story (N.M) or task (N.M.K) id",
        next_steps=["taskflow status  # list everything"],
    )


def _project_status(ctx: CommandContext, progress: TasksProgress) -> CommandResult:
    lines = [f"Project: {progress.project}", format_stats(store.calculate_progress_stats(progress)), ""]
    for feature in progress.features:
        lines.append(f"{status_icon(feature.status)} F{feature.id} {feature.title} [{feature.status}]")
        for story in feature.stories:
            done = sum(1 for t in story.tasks if t.status == "completed")
            lines.append(f"    {status_icon(story.status)} S{story.id} {story.title} ({done}/{len(story.tasks)})")

    active = ctx.find_active(progress)
    lines.append("")
    if active:
        lines.append(f"Active task: {active.task_id} - {active.task.title} [{active.task.status.value}]")
        next_steps = ["taskflow do  # instructions for the active task"]
    else:
        lines.append("No active task")
        nxt = store.find_next_available_task(progress)
        next_steps = [f"taskflow start {nxt.task.id}  # {nxt.task.title}"] if nxt else []

    return CommandResult.ok("\n".join(lines), next_steps=next_steps)


def _task_status(ctx: CommandContext, progress: TasksProgress, task_id: str) -> CommandResult:
    location = store.find_task_location(progress, task_id)
    task = store.load_task(ctx.paths.tasks_dir, progress, task_id)
    lines = [format_task(task, location)]

    unmet = store.get_unmet_dependencies(progress, task)
    if unmet:
        lines += ["", f"Waiting on: {', '.join(unmet)}"]

    last = validation.get_last_validation_status(ctx.paths.logs_dir, task_id)
    if last:
        result = "passed" if last.passed else f"failed ({', '.join(last.failed_checks)})"
        lines += ["", f"Last validation: {result} at {last.timestamp}"]

    if task.notes:
        lines += ["", "Notes:"]
        lines += [f"  [{n.get('timestamp', '')}] {n.get('content', '')}" for n in task.notes]

    return CommandResult.ok("\n".join(lines))


def _story_status(feature: Feature, story: Story) -> CommandResult:
    lines = [
        f"Story:   {story.id} - {story.title} [{story.status}]",
        f"Feature: {feature.id} - {feature.title}",
        "",
    ]
    for task in story.tasks:
        deps = f" (depends on {', '.join(task.dependencies)})" if task.dependencies else ""
        lines.append(f"  {status_icon(task.status)} T{task.id} {task.title} [{task.status}]{deps}")
    return CommandResult.ok("\n".join(lines))


def _feature_status(feature: Feature) -> CommandResult:
    lines = [f"Feature: {feature.id} - {feature.title} [{feature.status}]", ""]
    for story in feature.stories:
        lines.append(f"  {status_icon(story.status)} S{story.id} {story.title} [{story.status}]")
        for task in story.tasks:
            lines.append(f"      {status_icon(task.status)} T{task.id} {task.title} [{task.status}]")
    return CommandResult.ok("\n".join(lines))
