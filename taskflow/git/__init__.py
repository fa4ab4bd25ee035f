"""Git operations for TaskFlow.

Return type conventions:
- Functions returning GitResult: Caller must check .success before using output.
  Examples: stage_all(), commit(), push()
- Functions returning bool: True on success/condition met, False otherwise.
  Examples: has_uncommitted_changes(), branch_exists()
- find_task_commits() raises GitOperationError when git log fails.
- ensure_branch() raises GitOperationError; branch setup has no fallback.
"""

from taskflow.git.status import (
    is_git_repo,
    has_uncommitted_changes,
)
from taskflow.git.branch import (
    get_current_branch,
    branch_exists,
    expected_branch_name,
    ensure_branch,
)
from taskflow.git.commit import (
    stage_all,
    commit,
    parse_bullets,
    build_commit_message,
)
from taskflow.git.log import (
    CommitInfo,
    find_task_commits,
)
from taskflow.git.remote import (
    has_remote,
    has_upstream,
    push,
    push_set_upstream,
    pull_ff_only,
    checkout_branch,
    create_branch,
)

__all__ = [
    # status
    "is_git_repo",
    "has_uncommitted_changes",
    # branch
    "get_current_branch",
    "branch_exists",
    "expected_branch_name",
    "ensure_branch",
    # commit
    "stage_all",
    "commit",
    "parse_bullets",
    "build_commit_message",
    # log
    "CommitInfo",
    "find_task_commits",
    # remote
    "has_remote",
    "has_upstream",
    "push",
    "push_set_upstream",
    "pull_ff_only",
    "checkout_branch",
    "create_branch",
]
