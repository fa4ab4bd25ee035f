"""Git branch operations and per-story branch setup."""

import logging
from pathlib import Path

from taskflow.git.remote import (
    checkout_branch,
    create_branch,
    has_remote,
    pull_ff_only,
    stash_pop,
    stash_push,
)
from taskflow.git.runner import run_git
from taskflow.git.status import has_uncommitted_changes, is_git_repo
from taskflow.lib.config import BranchingConfig
from taskflow.lib.errors import GitOperationError
from taskflow.lib.models import INTERMITTENT_FEATURE_ID, slugify

logger = logging.getLogger(__name__)

AUTO_STASH_MESSAGE = "Auto-stash by taskflow before branch switch"


def get_current_branch(worktree: Path) -> str | None:
    """Get the current branch name, or None if detached HEAD."""
    result = run_git(["branch", "--show-current"], worktree)
    if result.success:
        return result.stdout.strip() or None
    return None


def branch_exists(repo: Path, branch: str) -> bool:
    """Check if a branch exists."""
    result = run_git(["show-ref", "--verify", f"refs/heads/{branch}"], repo)
    return result.success


def expected_branch_name(story_id: str, story_title: str, branching: BranchingConfig) -> str:
    """story/S1.2-user-login, or intermittent/S0.1-fixes for feature 0."""
    prefix = branching.prefix
    if story_id.startswith(f"{INTERMITTENT_FEATURE_ID}."):
        prefix = branching.intermittent_prefix
    return f"{prefix}S{story_id}-{slugify(story_title)}"


def ensure_branch(repo: Path, branch: str, base: str = "main") -> bool:
    """
    Make sure the story branch is checked out, creating it from base if needed.

    Uncommitted changes are stashed across the switch and restored after.

    Returns:
        True if the branch was switched or created, False if already on it

    Raises:
        GitOperationError: If the repo isn't a git repo or the switch fails
    """
    if not is_git_repo(repo):
        raise GitOperationError("init", f"{repo} is not a git repository")

    current = get_current_branch(repo)
    if current == branch:
        logger.debug(f"[GIT] Already on {branch}")
        return False

    stashed = False
    if has_uncommitted_changes(repo):
        stash_push(repo, AUTO_STASH_MESSAGE).check("stash")
        stashed = True
        logger.info("[GIT] Stashed uncommitted changes before branch switch")

    try:
        if branch_exists(repo, branch):
            checkout_branch(repo, branch).check("checkout")
        else:
            if current != base and branch_exists(repo, base):
                checkout_branch(repo, base).check("checkout")
            if has_remote(repo):
                pulled = pull_ff_only(repo)
                if not pulled.success:
                    logger.warning(f"[GIT] Pull failed, branching from local {base}: {pulled.output}")
            create_branch(repo, branch).check("checkout")
    except GitOperationError:
        if stashed:
            logger.warning("[GIT] Branch switch failed; changes remain stashed. Run 'git stash pop'.")
        raise

    if get_current_branch(repo) != branch:
        raise GitOperationError("checkout", f"Failed to switch to {branch}")

    if stashed:
        stash_pop(repo).check("stash pop")

    logger.info(f"[GIT] {current} -> {branch}")
    return True
