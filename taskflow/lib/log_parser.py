"""
Parse validation command output.

Two views of the same raw text:
- extract_error_summary(): a short, deduplicated, human-readable excerpt
  for the terminal and for LLM prompts.
- parse_log(): structured ParsedError records used to grow the
  retrospective ledger.

Supports TypeScript (tsc), ESLint, jest/vitest FAIL lines, generic
compiler "file:line: error:" lines, pytest and mypy.
"""

import re
from dataclasses import dataclass, field

MAX_SUMMARY_LINES = 50
TRUNCATION_MARKER = "... output truncated (see full log)"

# Any line matching one of these is treated as an error line
ERROR_PATTERNS = [
    re.compile(r"error", re.IGNORECASE),
    re.compile(r"fail", re.IGNORECASE),
    re.compile(r"[✗✖×]"),
    re.compile(r"Error:"),
    re.compile(r"TypeError:"),
    re.compile(r"SyntaxError:"),
    re.compile(r"Cannot find"),
    re.compile(r"not found", re.IGNORECASE),
    re.compile(r"FAIL"),
    re.compile(r"ERR!"),
    re.compile(r"warning:", re.IGNORECASE),
]


def is_error_line(line: str) -> bool:
    return any(p.search(line) for p in ERROR_PATTERNS)


def extract_error_summary(output: str, label: str) -> str:
    """
    Pull the error lines (plus context) out of raw command output.

    Each matching line brings 1 line of leading and 2 lines of trailing
    context. Identical lines are kept once. At most MAX_SUMMARY_LINES lines
    are returned, followed by a single truncation marker when more exist.

    Never returns an empty string: with nothing to extract, a fallback
    naming the command label is returned.
    """
    lines = output.split("\n")
    collected: list[str] = []

    for i, line in enumerate(lines):
        if not line or not is_error_line(line):
            continue
        if i > 0 and lines[i - 1]:
            collected.append(lines[i - 1])
        collected.append(line)
        for j in (i + 1, i + 2):
            if j < len(lines) and lines[j]:
                collected.append(lines[j])

    # dict preserves first-seen order
    unique = list(dict.fromkeys(collected))
    if not unique:
        return f"No specific errors extracted for {label}. Check the full log."

    summary = unique[:MAX_SUMMARY_LINES]
    if len(unique) > MAX_SUMMARY_LINES:
        summary.append(TRUNCATION_MARKER)
    return "\n".join(summary)


@dataclass
class ParsedError:
    """A single error or warning recognized in tool output."""
    file: str = ""
    line: int = 0
    column: int = 0
    message: str = ""
    code: str = ""  # e.g. TS2322, no-unused-vars, assignment
    severity: str = "error"  # "error", "warning", "info"
    raw: str = ""


@dataclass
class ParsedLog:
    errors: list[ParsedError] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len([e for e in self.errors if e.severity == "error"])

    @property
    def warning_count(self) -> int:
        return len([e for e in self.errors if e.severity == "warning"])

    @property
    def success(self) -> bool:
        return self.error_count == 0


# Tried in order; the first pattern that matches a line wins so that a
# tsc line is not also reported as a generic "error ..." build line.
_TS_PATTERN = re.compile(r"^(.+?):(\d+):(\d+) - (error|warning) (TS\d+): (.+)$")
_MYPY_PATTERN = re.compile(r"^(\S+\.pyi?):(\d+):(?:(\d+):)? (error|warning|note): (.+?)(?:\s+\[([\w-]+)\])?$")
_COMPILE_PATTERN = re.compile(r"^(.+?):(\d+):(?:(\d+):)? error: (.+)$")
_ESLINT_PATTERN = re.compile(r"^(.+?):(\d+):(\d+):? (error|warning) (.+?)(?:\s{2,}([\w@/-]+))?$")
_PYTEST_PATTERN = re.compile(r"^FAILED\s+([^:\s]+)::(\S+)(?:\s+-\s+(.+))?$")
_FAIL_PATTERN = re.compile(r"^\s*FAIL\s+(\S+)")
_BUILD_PATTERN = re.compile(r"\berror\s+(.+)$")


def _parse_line(line: str) -> ParsedError | None:
    match = _TS_PATTERN.match(line)
    if match:
        file, ln, col, severity, code, message = match.groups()
        return ParsedError(file=file, line=int(ln), column=int(col), message=message,
                           code=code, severity=severity, raw=line)

    match = _MYPY_PATTERN.match(line)
    if match:
        file, ln, col, severity, message, code = match.groups()
        return ParsedError(file=file, line=int(ln), column=int(col or 0), message=message,
                           code=code or "", severity="info" if severity == "note" else severity, raw=line)

    match = _COMPILE_PATTERN.match(line)
    if match:
        file, ln, col, message = match.groups()
        return ParsedError(file=file, line=int(ln), column=int(col or 0), message=message, raw=line)

    match = _ESLINT_PATTERN.match(line)
    if match:
        file, ln, col, severity, message, rule = match.groups()
        return ParsedError(file=file, line=int(ln), column=int(col), message=message.strip(),
                           code=rule or "", severity=severity, raw=line)

    match = _PYTEST_PATTERN.match(line)
    if match:
        file, test_name, message = match.groups()
        return ParsedError(file=file, message=f"test failed: {test_name}" + (f" - {message}" if message else ""),
                           raw=line)

    match = _FAIL_PATTERN.match(line)
    if match:
        return ParsedError(file=match.group(1), message=f"test failed: {match.group(1)}", raw=line)

    match = _BUILD_PATTERN.search(line)
    if match:
        return ParsedError(message=match.group(1).strip(), raw=line)

    return None


def parse_log(text: str) -> ParsedLog:
    """Extract structured errors from raw output, one per matching line."""
    errors = []
    for line in text.splitlines():
        line = line.rstrip()
        if not line:
            continue
        parsed = _parse_line(line)
        if parsed:
            errors.append(parsed)
    return ParsedLog(errors=errors)


def group_by_file(errors: list[ParsedError]) -> dict[str, list[ParsedError]]:
    grouped: dict[str, list[ParsedError]] = {}
    for error in errors:
        grouped.setdefault(error.file or "(unknown)", []).append(error)
    return grouped


def format_errors(errors: list[ParsedError], limit: int = 10) -> str:
    """Format parsed errors for terminal display or an LLM prompt."""
    if not errors:
        return "No structured errors found."

    parts = []
    for file, file_errors in group_by_file(errors).items():
        parts.append(f"{file}:")
        for err in file_errors[:limit]:
            loc = f"{err.line}:{err.column}" if err.line else "-"
            code = f" [{err.code}]" if err.code else ""
            parts.append(f"  {loc} {err.severity}{code}: {err.message}")
        if len(file_errors) > limit:
            parts.append(f"  ... and {len(file_errors) - limit} more")
    return "\n".join(parts)
