"""
Retrospective ledger: known error patterns and their fixes.

Stored as a markdown table in .taskflow/ref/retrospective.md:

  | ID | Category | Pattern | Solution | Count | Criticality |
  |---|---|---|---|---|---|
  | 1 | Type Error | Cannot find module | Check the import path | 3 | High |

Patterns are regular expressions matched case-insensitively. A pattern that
does not compile is matched as a plain substring instead. Literal pipes in
a pattern or solution are stored escaped as "\\|".

Ids come from a high-water mark kept in an HTML comment at the top of the
file, so removing the highest row by hand never leads to id reuse.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path

from taskflow.lib.errors import LedgerNotFoundError
from taskflow.lib.log_parser import ParsedError
from taskflow.lib.store import write_text_atomic

logger = logging.getLogger(__name__)

VALID_CATEGORIES = ["Type Error", "Lint", "Architecture", "Runtime", "Build", "Test", "Formatting"]
VALID_CRITICALITIES = ["Low", "Medium", "High", "Critical"]

DEFAULT_SOLUTION = "Review error message and fix the underlying issue"

LEDGER_HEADER = """# Retrospective

Known error patterns. Add new ones with `taskflow retro add`.

| ID | Category | Pattern | Solution | Count | Criticality |
|---|---|---|---|---|---|
"""

TABLE_SEPARATOR = "|---|---|"
NEXT_ID_PATTERN = re.compile(r"<!--\s*next-id:\s*(\d+)\s*-->")

# Output with none of these is treated as clean even when nothing matched
ERROR_INDICATOR = re.compile(r"error|fail|TypeError|SyntaxError|Cannot find", re.IGNORECASE)

_UNESCAPED_PIPE = re.compile(r"(?<!\\)\|")


@dataclass
class RetrospectiveEntry:
    id: int
    category: str
    pattern: str
    solution: str
    count: int
    criticality: str

    @property
    def matcher(self) -> "Matcher":
        return compile_matcher(self.pattern)


# Matchers


class Matcher:
    """Something that can say whether a pattern occurs in text."""

    def __init__(self, pattern: str):
        self.pattern = pattern

    def search(self, text: str) -> bool:
        raise NotImplementedError


class RegexMatcher(Matcher):
    def __init__(self, pattern: str, compiled: re.Pattern):
        super().__init__(pattern)
        self.compiled = compiled

    def search(self, text: str) -> bool:
        return self.compiled.search(text) is not None


class SubstringMatcher(Matcher):
    """Case-insensitive literal match, used for patterns that aren't valid regex."""

    def search(self, text: str) -> bool:
        return self.pattern.lower() in text.lower()


def compile_matcher(pattern: str) -> Matcher:
    try:
        return RegexMatcher(pattern, re.compile(pattern, re.IGNORECASE))
    except re.error as e:
        logger.debug(f"Pattern {pattern!r} is not a valid regex ({e}), using substring match")
        return SubstringMatcher(pattern)


# Locking

_locks: dict[Path, threading.RLock] = {}
_locks_guard = threading.Lock()


def ledger_lock(path: Path) -> threading.RLock:
    """In-process lock for one ledger file.

    Guards read-match-increment and read-append sequences. Nothing
    coordinates separate processes.
    """
    key = path.resolve()
    with _locks_guard:
        if key not in _locks:
            _locks[key] = threading.RLock()
        return _locks[key]


# Parsing


def _escape(value: str) -> str:
    return _UNESCAPED_PIPE.sub(r"\\|", value.replace("\n", " "))


def _unescape(value: str) -> str:
    return value.replace("\\|", "|")


def _split_row(line: str) -> list[str]:
    """Split a table row on unescaped pipes, dropping the outer borders."""
    parts = _UNESCAPED_PIPE.split(line.strip())
    if parts and parts[0] == "":
        parts = parts[1:]
    if parts and parts[-1] == "":
        parts = parts[:-1]
    return [p.strip() for p in parts]


def parse_ledger(content: str) -> list[RetrospectiveEntry]:
    entries = []
    in_table = False
    for line in content.splitlines():
        if TABLE_SEPARATOR in line:
            in_table = True
            continue
        if not in_table or not line.strip().startswith("|"):
            continue
        cells = _split_row(line)
        if len(cells) < 6:
            continue
        try:
            entry_id = int(cells[0])
        except ValueError:
            logger.debug(f"Skipping ledger row with non-numeric id: {line!r}")
            continue
        try:
            count = int(cells[4])
        except ValueError:
            count = 0
        entries.append(RetrospectiveEntry(
            id=entry_id,
            category=cells[1],
            pattern=_unescape(cells[2]),
            solution=_unescape(cells[3]),
            count=count,
            criticality=cells[5],
        ))
    return entries


def load(path: Path) -> list[RetrospectiveEntry]:
    """Read all ledger entries. A missing ledger is just empty."""
    if not path.exists():
        return []
    with ledger_lock(path):
        return parse_ledger(path.read_text(encoding="utf-8"))


def ensure_ledger(path: Path) -> None:
    """Create the ledger with an empty table if it doesn't exist yet."""
    if path.exists():
        return
    write_text_atomic(path, LEDGER_HEADER)
    logger.info(f"Created retrospective ledger at {path}")


# Matching


def match(entries: list[RetrospectiveEntry], output: str) -> list[RetrospectiveEntry]:
    """Entries whose pattern occurs anywhere in output."""
    return [entry for entry in entries if entry.matcher.search(output)]


def increment_count(path: Path, entry_id: int) -> int | None:
    """Bump the count cell of one row. Returns the new count.

    Only the count cell of the matching row is rewritten; every other byte
    of the file is left alone.
    """
    if not path.exists():
        return None

    with ledger_lock(path):
        lines = path.read_text(encoding="utf-8").split("\n")
        new_count = None
        in_table = False
        for i, line in enumerate(lines):
            if TABLE_SEPARATOR in line:
                in_table = True
                continue
            if not in_table or not line.strip().startswith("|"):
                continue
            cells = _split_row(line)
            if len(cells) < 6 or cells[0] != str(entry_id):
                continue
            parts = _UNESCAPED_PIPE.split(line)
            # parts[0] is the text before the leading pipe, count is column 5
            try:
                current = int(parts[5].strip())
            except ValueError:
                current = 0
            new_count = current + 1
            parts[5] = f" {new_count} "
            lines[i] = "|".join(parts)
            break

        if new_count is None:
            logger.warning(f"Ledger entry {entry_id} not found in {path}")
            return None

        write_text_atomic(path, "\n".join(lines))
        logger.debug(f"Ledger entry {entry_id} count -> {new_count}")
        return new_count


def _next_id(content: str, entries: list[RetrospectiveEntry]) -> int:
    highest = max((e.id for e in entries), default=0)
    marker = NEXT_ID_PATTERN.search(content)
    recorded = int(marker.group(1)) if marker else 1
    return max(highest + 1, recorded)


def append(path: Path, category: str, pattern: str, solution: str, criticality: str) -> int:
    """Add a new row with count 1 and return its id.

    Does not de-duplicate; callers match first.

    Raises:
        LedgerNotFoundError: If the ledger file doesn't exist
    """
    if not path.exists():
        raise LedgerNotFoundError(path)

    with ledger_lock(path):
        content = path.read_text(encoding="utf-8")
        entry_id = _next_id(content, parse_ledger(content))

        marker = f"<!-- next-id: {entry_id + 1} -->"
        if NEXT_ID_PATTERN.search(content):
            content = NEXT_ID_PATTERN.sub(marker, content, count=1)
        else:
            content = f"{marker}\n{content}"

        row = f"| {entry_id} | {category} | {_escape(pattern)} | {_escape(solution)} | 1 | {criticality} |"
        write_text_atomic(path, f"{content.rstrip()}\n{row}\n")

    logger.info(f"Added retrospective entry #{entry_id} ({category})")
    return entry_id


# Validation flow


@dataclass
class MatchReport:
    known: list[RetrospectiveEntry] = field(default_factory=list)
    has_new_errors: bool = False


def process_output(path: Path, output: str) -> MatchReport:
    """Match output against the ledger and count every hit.

    has_new_errors is set when the output looks like it contains errors
    but no known pattern explains them.
    """
    with ledger_lock(path):
        known = match(load(path), output)
        for entry in known:
            new_count = increment_count(path, entry.id)
            if new_count is not None:
                entry.count = new_count

    has_indicators = ERROR_INDICATOR.search(output) is not None
    return MatchReport(known=known, has_new_errors=has_indicators and not known)


@dataclass
class NewPattern:
    """A candidate ledger row inferred from parsed errors."""
    category: str
    pattern: str
    solution: str
    criticality: str
    error_code: str = ""
    sample: str = ""
    affected_files: list[str] = field(default_factory=list)


def _infer_category(error: ParsedError) -> str:
    message = error.message.lower()
    if error.code.startswith("TS"):
        return "Type Error"
    if "eslint" in message or "lint" in message:
        return "Lint"
    if "test" in message:
        return "Test"
    return "Runtime"


def _infer_criticality(error: ParsedError) -> str:
    if error.severity == "error":
        return "High"
    if error.severity == "warning":
        return "Low"
    return "Medium"


def literal_pattern(text: str) -> str:
    """Regex that matches text literally. Pipes are written as [|] to survive the table format."""
    return re.escape(text).replace("\\ ", " ").replace(r"\|", "[|]")


def extract_new_patterns(errors: list[ParsedError], entries: list[RetrospectiveEntry]) -> list[NewPattern]:
    """Turn parsed errors into ledger candidates not already covered.

    Errors are grouped by code (or the first 50 characters of the message
    when there is no code); the first error of each group represents it.
    Messages are stored as literal patterns, codes as they are.
    """
    groups: dict[str, list[ParsedError]] = {}
    for error in errors:
        key = error.code or error.message[:50]
        groups.setdefault(key, []).append(error)

    new_patterns = []
    for group in groups.values():
        first = group[0]
        sample = first.code or first.message
        if not sample or match(entries, sample):
            continue
        new_patterns.append(NewPattern(
            category=_infer_category(first),
            pattern=first.code or literal_pattern(first.message),
            sample=sample,
            solution=DEFAULT_SOLUTION,
            criticality=_infer_criticality(first),
            error_code=first.code,
            affected_files=[e.file for e in group if e.file],
        ))
    return new_patterns


def record_new_patterns(path: Path, patterns: list[NewPattern]) -> list[tuple[int, NewPattern]]:
    """Append candidates that are still unknown. Returns (new id, candidate) pairs.

    Each candidate is re-matched against the current ledger under the lock,
    so a pattern added earlier in the same batch is not appended twice.
    """
    ids = []
    with ledger_lock(path):
        for candidate in patterns:
            if match(load(path), candidate.sample or candidate.pattern):
                continue
            entry_id = append(path, candidate.category, candidate.pattern,
                              candidate.solution, candidate.criticality)
            ids.append((entry_id, candidate))
    return ids
