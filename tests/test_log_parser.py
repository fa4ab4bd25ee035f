"""Tests for taskflow.lib.log_parser module."""

from taskflow.lib.log_parser import (
    MAX_SUMMARY_LINES,
    TRUNCATION_MARKER,
    ParsedError,
    extract_error_summary,
    format_errors,
    group_by_file,
    is_error_line,
    parse_log,
)


class TestIsErrorLine:
    def test_matches_indicators(self):
        assert is_error_line("src/app.ts: error TS2322")
        assert is_error_line("npm ERR! code 1")
        assert is_error_line("✖ 3 problems")
        assert is_error_line("Module not found")
        assert is_error_line("warning: unused variable")

    def test_ignores_clean_lines(self):
        assert not is_error_line("Compiled successfully in 2.1s")
        assert not is_error_line("12 passed in 0.4s")


class TestExtractErrorSummary:
    def test_clean_output_returns_fallback_with_label(self):
        """Output with no indicators always yields the fixed fallback."""
        summary = extract_error_summary("all good\nnothing to see\n", "lint")
        assert summary == "No specific errors extracted for lint. Check the full log."

    def test_empty_output_returns_fallback(self):
        assert "build" in extract_error_summary("", "build")

    def test_includes_leading_and_trailing_context(self):
        output = "line a\nbefore\nTypeError: x is undefined\nafter 1\nafter 2\nafter 3"
        summary = extract_error_summary(output, "test").split("\n")
        assert summary == ["before", "TypeError: x is undefined", "after 1", "after 2"]

    def test_deduplicates_identical_lines(self):
        """N identical error lines come out exactly once."""
        output = "\n".join(["error: disk full"] * 5)
        summary = extract_error_summary(output, "build")
        assert summary.split("\n").count("error: disk full") == 1

    def test_truncates_with_single_marker(self):
        """51+ distinct error lines give at most 51 lines with one marker."""
        output = "\n".join(f"error: problem {i}" for i in range(80))
        lines = extract_error_summary(output, "test").split("\n")
        assert len(lines) <= MAX_SUMMARY_LINES + 1
        assert lines.count(TRUNCATION_MARKER) == 1
        assert lines[-1] == TRUNCATION_MARKER

    def test_no_marker_at_exact_limit(self):
        output = "\n".join(f"error: problem {i}" for i in range(MAX_SUMMARY_LINES))
        lines = extract_error_summary(output, "test").split("\n")
        assert len(lines) == MAX_SUMMARY_LINES
        assert TRUNCATION_MARKER not in lines


class TestParseLog:
    def test_typescript_error(self):
        log = parse_log("src/app.ts:10:5 - error TS2322: Type 'string' is not assignable to type 'number'.")
        assert len(log.errors) == 1
        err = log.errors[0]
        assert (err.file, err.line, err.column, err.code, err.severity) == ("src/app.ts", 10, 5, "TS2322", "error")

    def test_mypy_error_with_code(self):
        log = parse_log('app/models.py:42: error: Incompatible types in assignment  [assignment]')
        err = log.errors[0]
        assert err.file == "app/models.py"
        assert err.line == 42
        assert err.code == "assignment"
        assert err.message == "Incompatible types in assignment"

    def test_mypy_note_is_info(self):
        log = parse_log("app/models.py:43: note: See docs")
        assert log.errors[0].severity == "info"
        assert log.success

    def test_compiler_error(self):
        log = parse_log("main.c:7:12: error: expected ';' before '}' token")
        err = log.errors[0]
        assert (err.file, err.line, err.column) == ("main.c", 7, 12)
        assert err.message == "expected ';' before '}' token"

    def test_eslint_warning(self):
        log = parse_log("src/index.js:3:1: warning Unexpected console statement  no-console")
        err = log.errors[0]
        assert err.severity == "warning"
        assert err.code == "no-console"
        assert log.warning_count == 1
        assert log.success

    def test_pytest_failure(self):
        log = parse_log("FAILED tests/test_store.py::test_load - AssertionError: boom")
        err = log.errors[0]
        assert err.file == "tests/test_store.py"
        assert "test_load" in err.message
        assert "AssertionError" in err.message

    def test_jest_fail_line(self):
        log = parse_log(" FAIL  src/button.test.tsx")
        assert log.errors[0].file == "src/button.test.tsx"

    def test_generic_build_error(self):
        log = parse_log("Build error Could not resolve entry module")
        assert log.errors[0].message == "Could not resolve entry module"

    def test_one_error_per_line(self):
        """A tsc line is not also reported as a generic build error."""
        log = parse_log("a.ts:1:1 - error TS1005: ';' expected.")
        assert len(log.errors) == 1

    def test_clean_output(self):
        log = parse_log("Compiled successfully\n3 passed")
        assert log.errors == []
        assert log.success


class TestFormatting:
    def test_group_by_file(self):
        errors = [ParsedError(file="a.py"), ParsedError(file="b.py"), ParsedError(file="a.py"), ParsedError()]
        grouped = group_by_file(errors)
        assert len(grouped["a.py"]) == 2
        assert "(unknown)" in grouped

    def test_format_errors_limit(self):
        errors = [ParsedError(file="a.py", line=i, message=f"bad {i}") for i in range(1, 15)]
        text = format_errors(errors, limit=10)
        assert "... and 4 more" in text

    def test_format_no_errors(self):
        assert format_errors([]) == "No structured errors found."
