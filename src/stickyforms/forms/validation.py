"""Per-field validation rules for dynamic forms.

Rules run in a fixed order and stop at the first failure, so a field reports
at most one message at a time:

1. required (selects also reject the placeholder option)
2. empty and optional: valid, nothing else is checked
3. type format and bounds (email, tel, url, numeric min/max, text length...)
4. custom ``validation.pattern``

Messages are in Spanish, the language of the forms' users.
"""

import logging
import math
import re
from typing import Any, Optional
from urllib.parse import urlparse

from stickyforms.core.models import NUMERIC_TYPES, TEXT_LENGTH_TYPES, NormalizedParameter, ParameterType

logger = logging.getLogger(__name__)

# Option label rendered as the first, empty choice of a select
SELECT_PLACEHOLDER = "-- Selecciona una opción --"

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
TEL_PATTERN = re.compile(r"[+]?[0-9 \-()]+")
# Decimal literals as a number input accepts them: no digit separators, no inf/nan
NUMBER_PATTERN = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)

MSG_REQUIRED = "Este campo es requerido"
MSG_SELECT_REQUIRED = "Debes seleccionar una opción"
MSG_INVALID_EMAIL = "Introduce un email válido"
MSG_INVALID_TEL = "Introduce un teléfono válido"
MSG_INVALID_URL = "Introduce una URL válida"
MSG_INVALID_NUMBER = "Debe ser un número válido"
MSG_MIN_VALUE = "El valor mínimo es {min}"
MSG_MAX_VALUE = "El valor máximo es {max}"
MSG_MIN_LENGTH = "Mínimo {n} caracteres"
MSG_MAX_LENGTH = "Máximo {n} caracteres"
MSG_MIN_SELECTED = "Selecciona al menos {n} opciones"
MSG_MAX_SELECTED = "Selecciona como máximo {n} opciones"
MSG_MAX_FILES = "Máximo {n} archivos"
MSG_INVALID_FORMAT = "Formato inválido"


def _format_number(value: float) -> str:
    """Render 5.0 as '5' and 2.5 as '2.5' in messages."""
    return str(int(value)) if float(value).is_integer() else str(value)


def is_empty(value: Any) -> bool:
    """Whether a value counts as 'not answered'."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def parse_number(value: Any) -> Optional[float]:
    """Parse a form value as a finite float, or return None.

    Booleans are not numbers here, and neither are NaN, infinities or
    strings with digit separators such as "1_000".
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not NUMBER_PATTERN.fullmatch(text):
            return None
        number = float(text)
    return number if math.isfinite(number) else None


def is_valid_url(value: str) -> bool:
    """Accept absolute URLs: a scheme plus a host (or a path, as in mailto:)."""
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    if not parsed.scheme or not re.match(r"^[A-Za-z][A-Za-z0-9+.\-]*$", parsed.scheme):
        return False
    if " " in value.strip():
        return False
    return bool(parsed.netloc or parsed.path)


def _check_required(parameter: NormalizedParameter, value: Any) -> Optional[str]:
    if parameter.type == ParameterType.SELECT:
        # The placeholder option never counts as an answer
        if parameter.required and (is_empty(value) or value == SELECT_PLACEHOLDER):
            return MSG_SELECT_REQUIRED
        return None
    if not parameter.required:
        return None
    if is_empty(value):
        return MSG_REQUIRED
    if parameter.type == ParameterType.CHECKBOX and value in (False, "false"):
        return MSG_REQUIRED
    return None


def _check_numeric(parameter: NormalizedParameter, value: Any) -> Optional[str]:
    number = parse_number(value)
    if number is None:
        return MSG_INVALID_NUMBER
    rules = parameter.validation
    if rules.min is not None and number < rules.min:
        return MSG_MIN_VALUE.format(min=_format_number(rules.min))
    if rules.max is not None and number > rules.max:
        return MSG_MAX_VALUE.format(max=_format_number(rules.max))
    return None


def _check_length(parameter: NormalizedParameter, value: Any) -> Optional[str]:
    text = str(value)
    rules = parameter.validation
    if rules.min_length is not None and len(text) < rules.min_length:
        return MSG_MIN_LENGTH.format(n=rules.min_length)
    if rules.max_length is not None and len(text) > rules.max_length:
        return MSG_MAX_LENGTH.format(n=rules.max_length)
    return None


def _check_selection(parameter: NormalizedParameter, value: Any) -> Optional[str]:
    selected = value if isinstance(value, (list, tuple, set)) else [value]
    rules = parameter.validation
    if rules.min_selected is not None and len(selected) < rules.min_selected:
        return MSG_MIN_SELECTED.format(n=rules.min_selected)
    if rules.max_selected is not None and len(selected) > rules.max_selected:
        return MSG_MAX_SELECTED.format(n=rules.max_selected)
    return None


def _check_files(parameter: NormalizedParameter, value: Any) -> Optional[str]:
    files = value if isinstance(value, (list, tuple)) else [value]
    max_files = parameter.validation.max_files
    if max_files is not None and len(files) > max_files:
        return MSG_MAX_FILES.format(n=max_files)
    return None


def _check_format(parameter: NormalizedParameter, value: Any) -> Optional[str]:
    custom_message = parameter.validation.message
    param_type = parameter.type

    if param_type == ParameterType.EMAIL:
        if not EMAIL_PATTERN.fullmatch(str(value)):
            return custom_message or MSG_INVALID_EMAIL
    elif param_type == ParameterType.TEL:
        if not TEL_PATTERN.fullmatch(str(value)):
            return custom_message or MSG_INVALID_TEL
    elif param_type == ParameterType.URL:
        if not is_valid_url(str(value)):
            return custom_message or MSG_INVALID_URL
    elif param_type in NUMERIC_TYPES:
        return _check_numeric(parameter, value)
    elif param_type in TEXT_LENGTH_TYPES:
        return _check_length(parameter, value)
    elif param_type == ParameterType.CHECKBOX_GROUP:
        return _check_selection(parameter, value)
    elif param_type == ParameterType.FILE:
        return _check_files(parameter, value)
    return None


def end_anchored(pattern: str) -> str:
    """Make ``$`` match only at the very end of input, as in browser regexes.

    Python's ``$`` also matches before a trailing newline. Escaped dollars and
    dollars inside character classes are left alone.
    """
    out = []
    in_class = False
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            out.append(pattern[i : i + 2])
            i += 2
            continue
        if in_class:
            in_class = char != "]"
        elif char == "[":
            in_class = True
        elif char == "$":
            char = r"\Z"
        out.append(char)
        i += 1
    return "".join(out)


def _check_pattern(parameter: NormalizedParameter, value: Any) -> Optional[str]:
    pattern = parameter.validation.pattern
    if not pattern:
        return None
    try:
        regex = re.compile(end_anchored(pattern))
    except re.error as e:
        logger.warning(
            f"Ignoring invalid validation pattern {pattern!r}: {e}",
            extra={"phase": "field_validation", "parameter_name": parameter.name},
        )
        return None
    # RegExp.test semantics: match anywhere unless the pattern is anchored
    if regex.search(str(value)) is None:
        return parameter.validation.message or MSG_INVALID_FORMAT
    return None


def validate_field(parameter: NormalizedParameter, value: Any) -> list[str]:
    """Validate one value against its parameter.

    Args:
        parameter: The field's normalized descriptor
        value: Current value from the form state

    Returns:
        An empty list when valid, otherwise a single error message
    """
    error = _check_required(parameter, value)
    if error:
        return [error]

    if is_empty(value) or (parameter.type == ParameterType.SELECT and value == SELECT_PLACEHOLDER):
        return []

    for check in (_check_format, _check_pattern):
        error = check(parameter, value)
        if error:
            return [error]
    return []
