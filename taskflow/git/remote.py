"""Git remote and checkout operations."""

from pathlib import Path

from taskflow.git.runner import run_git, GitResult


def has_remote(repo: Path) -> bool:
    """Check if repo has any remotes configured."""
    result = run_git(["remote"], repo)
    return bool(result.stdout.strip())


def has_upstream(worktree: Path) -> bool:
    result = run_git(["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"], worktree)
    return result.success


def push(worktree: Path) -> GitResult:
    """Push to remote."""
    return run_git(["push"], worktree, timeout=60)


def push_set_upstream(worktree: Path, remote: str, branch: str) -> GitResult:
    """Push and set upstream tracking."""
    return run_git(["push", "-u", remote, branch], worktree, timeout=60)


def pull_ff_only(repo: Path) -> GitResult:
    """Pull with fast-forward only (no merge commits)."""
    return run_git(["pull", "--ff-only"], repo, timeout=60)


def checkout_branch(repo: Path, branch: str) -> GitResult:
    """Checkout a branch."""
    return run_git(["checkout", branch], repo)


def create_branch(repo: Path, branch: str) -> GitResult:
    """Create a branch from HEAD and check it out."""
    return run_git(["checkout", "-b", branch], repo)


def stash_push(repo: Path, message: str) -> GitResult:
    return run_git(["stash", "push", "-u", "-m", message], repo)


def stash_pop(repo: Path) -> GitResult:
    return run_git(["stash", "pop"], repo)
