"""
Schema validation for SAFER records.

Every item and configuration write, and every item read, is checked
against a JSON Schema. Errors name the record (item id or config) and
the offending field so a bad file can be found and fixed by hand.
"""

import json
from pathlib import Path

import jsonschema

SCHEMA_NAMES = ("item", "config")


class ValidationError(Exception):
    """A SAFER record does not match its schema."""

    def __init__(self, schema_name: str, message: str, path: str = None, record: str = None):
        self.schema_name = schema_name
        self.path = path
        self.record = record
        label = f"{schema_name} {record}" if record else schema_name
        super().__init__(f"[{label}] {message}" + (f" at {path}" if path else ""))


_schema_cache: dict[str, dict] = {}


def _load_schema(schema_name: str) -> dict:
    if schema_name not in _schema_cache:
        schema_path = Path(__file__).parent.parent / "schemas" / f"{schema_name}.schema.json"
        if schema_name not in SCHEMA_NAMES or not schema_path.exists():
            raise ValidationError(schema_name, f"Schema file not found: {schema_path}")
        _schema_cache[schema_name] = json.loads(schema_path.read_text())
    return _schema_cache[schema_name]


def _record_label(data) -> str | None:
    """Item id when the record carries one."""
    if isinstance(data, dict) and isinstance(data.get("id"), str):
        return data["id"]
    return None


def validate(data: dict, schema_name: str) -> None:
    """
    Validate a record against the "item" or "config" schema.

    Only the first failing field is reported.

    Raises:
        ValidationError: If validation fails
    """
    schema = _load_schema(schema_name)

    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        field = ".".join(str(p) for p in e.absolute_path) if e.absolute_path else "(root)"
        raise ValidationError(schema_name, e.message, field, record=_record_label(data)) from None


def validate_before_write(data: dict, schema_name: str, filepath: Path) -> None:
    """Validate a record about to be written; the error names the target file."""
    try:
        validate(data, schema_name)
    except ValidationError as e:
        raise ValidationError(
            schema_name,
            f"Refusing to write invalid data to {filepath}: {e}",
            record=e.record,
        ) from None
