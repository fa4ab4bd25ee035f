"""
taskflow find - Search tasks by status, skill, keyword, story or feature.
"""

from taskflow.lib import store
from taskflow.lib.display import status_icon
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext

EXAMPLES = [
    "taskflow find --status not-started",
    "taskflow find --skill frontend",
    "taskflow find --keyword login --story 1.1",
]


def cmd_find(args, ctx: CommandContext) -> CommandResult:
    filters = {
        "status": args.status,
        "keyword": args.keyword,
        "story_id": args.story,
        "feature_id": args.feature,
        "skill": args.skill,
    }
    if not any(filters.values()):
        return CommandResult.failure("No search criteria given", next_steps=EXAMPLES)

    progress = ctx.load_progress()
    matches = store.find_tasks(ctx.paths.tasks_dir, progress, **filters)
    criteria = ", ".join(f"{name.removesuffix('_id')}={value}" for name, value in filters.items() if value)

    if not matches:
        return CommandResult.ok(
            f"No tasks match {criteria}",
            next_steps=["taskflow status  # list everything"],
        )

    lines = [f"{len(matches)} task(s) match {criteria}", ""]
    for location in matches:
        ref = location.task
        lines += [
            f"{status_icon(ref.status)} T{ref.id} - {ref.title}",
            f"    Story:   {location.story.id} - {location.story.title}",
            f"    Feature: {location.feature.id} - {location.feature.title}",
            f"    Status:  {ref.status}",
        ]

    first = matches[0].task.id
    return CommandResult.ok(
        "\n".join(lines),
        next_steps=[f"taskflow status {first}  # details", f"taskflow start {first}"],
    )
