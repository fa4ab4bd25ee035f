"""
taskflow commit - Commit, push and complete the active task.

Requires status committing. The message is generated:

    feat(F1): T1.2.3 - Add login form

    - Added form component
    - Wired submit handler

    Story: S1.2

Once the commit exists the task is completed, even if the push that
follows fails; the push failure is then reported as an error.
"""

import logging

from taskflow import git
from taskflow.lib import store
from taskflow.lib.errors import CommitError, GitOperationError, InvalidWorkflowStateError
from taskflow.lib.models import TaskStatus
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext
from taskflow.workflow.state_machine import fire

logger = logging.getLogger(__name__)

DEFAULT_REMOTE = "origin"


def cmd_commit(args, ctx: CommandContext) -> CommandResult:
    progress, active = ctx.require_active()
    task = active.task

    if task.status != TaskStatus.COMMITTING:
        raise InvalidWorkflowStateError(task.status.value, TaskStatus.COMMITTING.value, "commit")

    bullets = git.parse_bullets(" ".join(args.message or []))
    if not bullets:
        return CommandResult.failure(
            "A commit summary with at least one bullet point is required",
            next_steps=['taskflow commit "- Added login form\\n- Wired submit handler"'],
        )

    repo = ctx.root
    if not git.is_git_repo(repo):
        raise GitOperationError("commit", f"{repo} is not a git repository")

    if not git.has_uncommitted_changes(repo):
        err = CommitError("no_changes")
        return CommandResult.failure(
            err.message,
            next_steps=[err.recovery_hint, "taskflow abort  # if the task needs no code changes"],
        )

    location = store.find_task_location(progress, task.id)
    message = git.build_commit_message(task.id, task.title, bullets, location.story.id)

    git.stage_all(repo).check("add")

    result = git.commit(repo, message)
    if not result.success:
        raise CommitError("hook_failed", result.output)
    logger.info(f"[GIT] Committed T{task.id}")

    fire(ctx.paths.tasks_dir, progress, active.file_path, task, "complete")

    pushed = _push(repo)

    output = [f"Task {task.id} committed and marked COMPLETED", "", message]
    if not pushed:
        output += ["", "No remote configured; commit is local only"]

    nxt = store.find_next_available_task(progress, exclude_id=task.id)
    if nxt:
        output += ["", f"Next available task: {nxt.task.id} - {nxt.task.title}"]
        next_steps = [f"taskflow start {nxt.task.id}"]
    else:
        next_steps = ["taskflow status  # no available tasks left; review the project"]

    return CommandResult.ok("\n".join(output), next_steps=next_steps)


def _push(repo) -> bool:
    """Push the current branch. Returns False when there is no remote.

    Raises:
        CommitError: push_failed
    """
    if not git.has_remote(repo):
        return False

    if git.has_upstream(repo):
        result = git.push(repo)
    else:
        branch = git.get_current_branch(repo)
        if branch is None:
            raise CommitError("push_failed", "detached HEAD")
        result = git.push_set_upstream(repo, DEFAULT_REMOTE, branch)

    if not result.success:
        raise CommitError("push_failed", result.output)
    return True
