"""Run git as a subprocess and capture the outcome as a GitResult."""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from taskflow.lib.errors import GitOperationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


@dataclass
class GitResult:
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False
    args: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """stderr if there is any, else stdout. For error messages."""
        return (self.stderr or self.stdout).strip()

    def check(self, operation: str) -> "GitResult":
        """Return self on success, else raise GitOperationError for operation."""
        if not self.success:
            raise GitOperationError(operation, self.output)
        return self


def run_git(args: list[str], cwd: Path, timeout: int = DEFAULT_TIMEOUT) -> GitResult:
    """
    Run `git -C cwd <args>`.

    Never raises: a timeout or a missing git binary comes back as a failed
    GitResult. Output bytes that aren't UTF-8 are replaced, not fatal.
    """
    logger.debug(f"[GIT] git {' '.join(args)}")
    try:
        result = subprocess.run(
            ["git", "-C", str(cwd), *args],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"[GIT] git {args[0]} timed out after {timeout}s")
        return GitResult(-1, "", f"Command timed out after {timeout}s", timed_out=True, args=args)
    except OSError as e:
        return GitResult(-1, "", str(e), args=args)

    if result.returncode != 0:
        logger.debug(f"[GIT] git {args[0]} exited {result.returncode}: {result.stderr.strip()}")
    return GitResult(result.returncode, result.stdout, result.stderr, args=args)
