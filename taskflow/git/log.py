"""Git log queries for task history."""

import re
from dataclasses import dataclass
from pathlib import Path

from taskflow.git.runner import run_git

FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"


@dataclass
class CommitInfo:
    sha: str
    date: str
    subject: str
    body: str = ""


def parse_log(output: str) -> list[CommitInfo]:
    commits = []
    for record in output.split(RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        parts = record.split(FIELD_SEP)
        if len(parts) < 3:
            continue
        sha, date, subject = parts[:3]
        body = parts[3].strip() if len(parts) > 3 else ""
        commits.append(CommitInfo(sha=sha, date=date, subject=subject, body=body))
    return commits


def find_task_commits(repo: Path, task_id: str) -> list[CommitInfo]:
    """
    Commits on any branch whose message mentions T<task_id>, newest first.

    Raises GitOperationError if git log fails.
    """
    result = run_git(
        [
            "log",
            "--all",
            "--fixed-strings",
            f"--grep=T{task_id}",
            "--date=short",
            f"--pretty=format:%h{FIELD_SEP}%ad{FIELD_SEP}%s{FIELD_SEP}%b{RECORD_SEP}",
        ],
        repo,
    ).check("log")

    # --grep=T1.2 also matches T1.2.3
    exact = re.compile(rf"T{re.escape(task_id)}(?![\d.]*\d)")
    return [c for c in parse_log(result.stdout) if exact.search(c.subject) or exact.search(c.body)]
