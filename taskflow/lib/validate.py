"""
Schema validation for TaskFlow documents.

Enforces JSON Schema validation when task, feature, index and config files
cross the disk boundary. Fails hard with clear errors when data doesn't
match schema.
"""

import json
from pathlib import Path

import jsonschema

from taskflow.lib.errors import InvalidFileFormatError, TaskflowError


class SchemaValidationError(TaskflowError):
    """Schema validation failed."""

    def __init__(self, schema_name: str, message: str, path: str = None):
        self.schema_name = schema_name
        self.path = path
        super().__init__(
            f"[{schema_name}] {message}" + (f" at {path}" if path else ""),
            "SCHEMA_VALIDATION_FAILED",
            "Fix the document by hand or restore it from git history.",
        )


# Cache loaded schemas
_schema_cache: dict[str, dict] = {}


def _get_schemas_dir() -> Path:
    """Get path to schemas directory."""
    return Path(__file__).parent.parent / "schemas"


def _load_schema(schema_name: str) -> dict:
    """Load schema by name, with caching."""
    if schema_name not in _schema_cache:
        schema_path = _get_schemas_dir() / f"{schema_name}.schema.json"
        if not schema_path.exists():
            raise SchemaValidationError(schema_name, f"Schema file not found: {schema_path}")
        _schema_cache[schema_name] = json.loads(schema_path.read_text())
    return _schema_cache[schema_name]


def validate(data: dict, schema_name: str) -> None:
    """
    Validate data against named schema.

    Args:
        data: Dictionary to validate
        schema_name: Schema name (e.g., "task", "feature", "config")

    Raises:
        SchemaValidationError: If validation fails
    """
    schema = _load_schema(schema_name)

    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path) if e.absolute_path else "(root)"
        raise SchemaValidationError(schema_name, e.message, path) from None


def load_document(filepath: Path, schema_name: str) -> dict:
    """
    Read a JSON document from disk and check it against its schema.

    Returns:
        Parsed and validated data

    Raises:
        InvalidFileFormatError: If the file is missing, unreadable, not JSON,
            or doesn't match the schema
    """
    try:
        data = json.loads(filepath.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise InvalidFileFormatError(filepath, "file not found") from None
    except json.JSONDecodeError as e:
        raise InvalidFileFormatError(filepath, f"invalid JSON: {e}") from None
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidFileFormatError(filepath, f"unreadable: {e}") from None

    try:
        validate(data, schema_name)
    except SchemaValidationError as e:
        raise InvalidFileFormatError(filepath, e.message) from None
    return data


def validate_before_write(data: dict, schema_name: str, filepath: Path) -> None:
    """
    Validate data before writing to file. Ensures we never write invalid data.

    Raises:
        SchemaValidationError: If data doesn't match schema
    """
    try:
        validate(data, schema_name)
    except SchemaValidationError as e:
        raise SchemaValidationError(
            schema_name,
            f"Refusing to write invalid data to {filepath}: {e}"
        ) from None
