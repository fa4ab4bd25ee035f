"""Tests for taskflow.lib.validate module."""

import json

import pytest

from taskflow.lib.errors import InvalidFileFormatError
from taskflow.lib.validate import (
    SchemaValidationError,
    load_document,
    validate,
    validate_before_write,
)


class TestValidate:
    def test_valid_task(self):
        validate({"id": "1.2.3", "title": "t", "description": "d", "status": "setup"}, "task")

    def test_bad_status_reports_path(self):
        with pytest.raises(SchemaValidationError) as exc:
            validate({"id": "1.2.3", "title": "t", "description": "d", "status": "done"}, "task")
        assert exc.value.schema_name == "task"
        assert exc.value.path == "status"

    def test_missing_required_field(self):
        with pytest.raises(SchemaValidationError) as exc:
            validate({"id": "1", "title": "Auth", "status": "not-started"}, "feature")
        assert "stories" in exc.value.message

    def test_unknown_schema(self):
        with pytest.raises(SchemaValidationError):
            validate({}, "nope")


class TestLoadDocument:
    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidFileFormatError) as exc:
            load_document(tmp_path / "missing.json", "task")
        assert "file not found" in exc.value.message

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "task.json"
        path.write_text("{")
        with pytest.raises(InvalidFileFormatError) as exc:
            load_document(path, "task")
        assert "invalid JSON" in exc.value.message
        assert exc.value.path == path

    def test_schema_mismatch_is_a_format_error(self, tmp_path):
        path = tmp_path / "task.json"
        path.write_text(json.dumps({"id": "1.1.1", "title": "t", "description": "d", "status": "done"}))
        with pytest.raises(InvalidFileFormatError) as exc:
            load_document(path, "task")
        assert "status" in exc.value.message

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "task.json"
        path.write_bytes(b"\xff\xfe{")
        with pytest.raises(InvalidFileFormatError) as exc:
            load_document(path, "task")
        assert "unreadable" in exc.value.message

    def test_valid_file(self, tmp_path):
        path = tmp_path / "index.json"
        path.write_text(json.dumps({"project": "demo", "features": []}))
        assert load_document(path, "project_index")["project"] == "demo"


class TestValidateBeforeWrite:
    def test_names_target(self, tmp_path):
        target = tmp_path / "T1.1.1.json"
        with pytest.raises(SchemaValidationError) as exc:
            validate_before_write({"id": "x"}, "task", target)
        assert "Refusing to write invalid data" in exc.value.message
        assert str(target) in exc.value.message
