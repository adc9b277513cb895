"""JSON parsing utilities for stickyforms.

Provides safe, consistent JSON parsing with:
- Quick rejection for strings that cannot hold a JSON object
- Size limits to prevent memory exhaustion from huge annotations
- Marker-based location of a JSON object inside free-form text
"""

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Annotation text is user-authored; refuse to parse anything absurdly large
DEFAULT_MAX_JSON_SIZE = 1024 * 1024  # 1MB

# Max chars to show in debug log previews
_LOG_PREVIEW_LENGTH = 100


def _preview(text: str) -> str:
    return text[:_LOG_PREVIEW_LENGTH] if len(text) > _LOG_PREVIEW_LENGTH else text


def try_parse_json_object(
    value: str,
    *,
    max_size: int = DEFAULT_MAX_JSON_SIZE,
) -> tuple[bool, Any]:
    """Attempt to parse a string as a JSON object.

    Returns a tuple of (success, result) where:
    - (True, parsed_dict) if parsing succeeded and produced an object
    - (False, error_message) if parsing failed or was skipped

    Args:
        value: String that may contain a JSON object
        max_size: Maximum string size to attempt parsing

    Examples:
        >>> try_parse_json_object('{"a": 1}')
        (True, {'a': 1})
        >>> try_parse_json_object('[1, 2]')
        (False, "Content does not start with '{'")
    """
    if not isinstance(value, str):
        return (False, f"Expected string, got {type(value).__name__}")

    text = value.strip()
    if not text:
        return (False, "Empty content")

    if len(text) > max_size:
        logger.warning(
            f"Skipping JSON parse: string exceeds size limit ({len(text):,} > {max_size:,} bytes)",
        )
        return (False, "Content exceeds size limit")

    if not text.startswith("{"):
        return (False, "Content does not start with '{'")

    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, ValueError) as e:
        logger.debug(
            f"String is not valid JSON: {type(e).__name__}",
            extra={"preview": _preview(text)},
        )
        return (False, f"Invalid JSON: {e}")

    if not isinstance(parsed, dict):
        return (False, f"JSON value is {type(parsed).__name__}, expected object")

    return (True, parsed)


def find_marked_json(content: str, marker: str) -> Optional[str]:
    """Locate the JSON object literal that follows a marker token.

    The object spans from the first '{' after the marker (whitespace allowed in
    between) to the last '}' in the content.

    Args:
        content: Free-form text, e.g. a sticky note body
        marker: Case-sensitive token that precedes the JSON object

    Returns:
        The candidate JSON text, or None when the marker is not followed by '{'
    """
    match = re.search(re.escape(marker) + r"\s*(\{[\s\S]*\})", content)
    if not match:
        return None
    return match.group(1)


def find_bare_json(content: str) -> Optional[str]:
    """Return the trimmed content if it looks like a whole JSON object."""
    trimmed = content.strip()
    if trimmed.startswith("{") and trimmed.endswith("}"):
        return trimmed
    return None
