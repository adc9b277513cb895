"""JSON Schema definitions for workflow UI metadata.

Workflow authors embed UI metadata in a sticky note as free-form JSON. Before
anything is trusted, the annotation and each parameter descriptor inside it are
checked against the schemas below.

Design Decisions:
- **Structural checks only**: the schemas check what must be present for a
  field to be renderable (name, type, label, options for choice types).
  Everything else is optional and defaulted by the normalizer.
- **Per-descriptor validation**: descriptors are validated one by one so a
  single bad entry is dropped instead of rejecting the whole annotation.
- **'fields' alias**: older annotations use 'fields' instead of 'parameters';
  the annotation schema accepts either.

Example usage:
    >>> from stickyforms.core.metadata_schema import validate_parameter
    >>> validate_parameter({"name": "email", "type": "email", "label": "Email"})
    (True, '')
    >>> ok, error = validate_parameter({"name": "email", "type": "email"})
    >>> ok
    False
"""

from functools import lru_cache
from typing import Any

import jsonschema
from jsonschema import Draft7Validator
from jsonschema import ValidationError as JsonSchemaValidationError

from stickyforms.core.exceptions import MetadataSchemaError
from stickyforms.core.models import OPTION_TYPES, SUPPORTED_PARAMETER_TYPES

# JSON Schema for a single parameter descriptor
PARAMETER_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1, "description": "Unique field identifier"},
        "type": {
            "type": "string",
            "enum": SUPPORTED_PARAMETER_TYPES,
            "description": "Field kind rendered by the form",
        },
        "label": {"type": "string", "minLength": 1, "description": "Display label"},
    },
    "required": ["name", "type", "label"],
    "allOf": [
        {
            "if": {
                "properties": {"type": {"enum": sorted(t.value for t in OPTION_TYPES)}},
                "required": ["type"],
            },
            "then": {
                "properties": {"options": {"type": "array"}},
                "required": ["options"],
            },
        }
    ],
}

# JSON Schema for the annotation object found in a sticky note
ANNOTATION_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "anyOf": [
        {"properties": {"parameters": {"type": "array"}}, "required": ["parameters"]},
        {"properties": {"fields": {"type": "array"}}, "required": ["fields"]},
    ],
}


@lru_cache(maxsize=None)
def _get_validator(schema_name: str) -> Draft7Validator:
    schema = PARAMETER_SCHEMA if schema_name == "parameter" else ANNOTATION_SCHEMA
    try:
        Draft7Validator.check_schema(schema)
    except jsonschema.SchemaError as e:
        raise RuntimeError(f"Schema definition error: {e}") from e
    return Draft7Validator(schema)


def _format_path(path: list) -> str:
    """Format a jsonschema path into a readable string like "options[0]"."""
    formatted = ""
    for i, component in enumerate(path):
        if isinstance(component, int):
            formatted += f"[{component}]"
        else:
            if i > 0 and not formatted.endswith("]"):
                formatted += "."
            formatted += str(component)
    return formatted or "root"


def _get_suggestion(error: JsonSchemaValidationError) -> str:
    """Get a helpful suggestion based on the validation error."""
    if error.validator == "required":
        match = error.message.split("'")
        if len(match) >= 2:
            field_name = match[1]
            if field_name == "options":
                return "Choice fields (select, radio, checkboxGroup) need an 'options' array"
            return f"Add the required field '{field_name}'"
        return "Add the missing required field"
    elif error.validator == "enum":
        return f"Type must be one of: {', '.join(SUPPORTED_PARAMETER_TYPES)}"
    elif error.validator == "type":
        expected = error.validator_value
        actual = type(error.instance).__name__
        return f"Change type from '{actual}' to '{expected}'"
    elif error.validator == "minLength":
        return "Use a non-empty string"
    return ""


def _first_error(validator: Draft7Validator, data: Any) -> JsonSchemaValidationError | None:
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    return errors[0] if errors else None


def check_parameter(descriptor: Any, path_prefix: str = "") -> None:
    """Validate a parameter descriptor against PARAMETER_SCHEMA.

    Args:
        descriptor: One raw entry of the annotation's parameters array
        path_prefix: Prefix for error paths, e.g. "parameters[3]"

    Raises:
        MetadataSchemaError: If the descriptor is not a renderable parameter
    """
    error = _first_error(_get_validator("parameter"), descriptor)
    if error is None:
        return

    path = _format_path(list(error.absolute_path))
    if path_prefix:
        path = path_prefix if path == "root" else f"{path_prefix}.{path}"
    raise MetadataSchemaError(message=error.message, path=path, suggestion=_get_suggestion(error))


def validate_parameter(descriptor: Any, path_prefix: str = "") -> tuple[bool, str]:
    """Non-raising variant of check_parameter.

    Returns:
        Tuple of (is_valid, error_message); the message is empty when valid
    """
    try:
        check_parameter(descriptor, path_prefix)
    except MetadataSchemaError as e:
        return (False, str(e))
    return (True, "")


def is_valid_annotation(data: Any) -> bool:
    """Return True if data is an object carrying a parameters or fields array."""
    return _first_error(_get_validator("annotation"), data) is None
