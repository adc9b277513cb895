"""Submission payload builder.

Turns validated form values into the JSON body posted to the workflow
execution endpoint:

1. every schema field is coerced according to its type (numbers become floats,
   checkboxes strict booleans, files base64 entries);
2. keys the user entered outside the schema are kept as they are;
3. system metadata is added under ``_system`` so it can never overwrite a
   user field.

Coercion fails soft: a value that cannot be converted becomes None and is
logged, so a submission is never lost to a conversion error.
"""

import asyncio
import base64
import logging
import mimetypes
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from stickyforms.core.models import NUMERIC_TYPES, NormalizedParameter, ParameterType
from stickyforms.forms.validation import parse_number

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "dynamic-form"
SYSTEM_KEY = "_system"


@dataclass
class UploadedFile:
    """A file received from the form in memory."""

    name: str
    content: bytes
    content_type: Optional[str] = None
    last_modified: Optional[int] = None  # ms since epoch


FileRef = Union[UploadedFile, Path, str, bytes]


def utc_timestamp() -> str:
    """Current time as ISO-8601 UTC with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _read_file(ref: FileRef, index: int) -> dict[str, Any]:
    """Blocking read of one file reference into a FileEntry dict."""
    if isinstance(ref, UploadedFile):
        content = ref.content
        name = ref.name
        content_type = ref.content_type
        last_modified = ref.last_modified
    elif isinstance(ref, bytes):
        content = ref
        name = f"file-{index}"
        content_type = None
        last_modified = None
    else:
        path = Path(ref)
        content = path.read_bytes()
        name = path.name
        content_type = None
        last_modified = int(path.stat().st_mtime * 1000)

    if not content_type:
        content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"

    return {
        "name": name,
        "size": len(content),
        "type": content_type,
        "lastModified": last_modified,
        "data": base64.b64encode(content).decode("ascii"),
    }


def is_file_list(value: Any) -> bool:
    """Whether a form value is a non-empty collection of file references."""
    return (
        isinstance(value, (list, tuple))
        and len(value) > 0
        and all(isinstance(item, (UploadedFile, Path, str, bytes)) for item in value)
    )


async def materialize_files(files: Iterable[FileRef]) -> list[dict[str, Any]]:
    """Read every file concurrently and return base64 FileEntry dicts.

    Reads run in worker threads and are joined before returning. A file that
    cannot be read fails the whole call (OSError), since silently dropping an
    upload would submit an incomplete form.
    """
    refs = list(files)
    return list(await asyncio.gather(*(asyncio.to_thread(_read_file, ref, i) for i, ref in enumerate(refs))))


def coerce_value(parameter: NormalizedParameter, value: Any) -> Any:
    """Coerce a non-file form value to the shape the workflow expects."""
    if parameter.type in NUMERIC_TYPES:
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return None
        number = parse_number(value)
        if number is None:
            logger.warning(
                f"Cannot coerce {value!r} to number; sending null",
                extra={"phase": "payload", "parameter_name": parameter.name},
            )
        return number

    if parameter.type == ParameterType.CHECKBOX:
        return value is True or value == "true"

    if value is None:
        return ""
    return value


async def build_payload(
    form_values: dict[str, Any],
    parameters: Iterable[NormalizedParameter],
    *,
    source: str = DEFAULT_SOURCE,
    environment: Optional[str] = None,
) -> dict[str, Any]:
    """Build the submission payload for a form.

    Args:
        form_values: Current form values (FormState.values)
        parameters: The form schema
        source: Tag stored in ``_system.source``
        environment: Optional deployment environment stored in ``_system``

    Returns:
        The payload dict. Already n8n-formatted input is returned unchanged.
    """
    if is_n8n_formatted(form_values):
        logger.debug("Payload already n8n-formatted, passing through", extra={"phase": "payload"})
        return form_values

    data = dict(form_values)
    file_fields: dict[str, list[FileRef]] = {}

    for parameter in parameters:
        value = form_values.get(parameter.name)
        if parameter.type == ParameterType.FILE:
            if is_file_list(value):
                file_fields[parameter.name] = list(value)
            elif value is None:
                data[parameter.name] = ""
            else:
                data[parameter.name] = value
            continue
        data[parameter.name] = coerce_value(parameter, value)

    if file_fields:
        names = list(file_fields)
        materialized = await asyncio.gather(*(materialize_files(file_fields[name]) for name in names))
        data.update(zip(names, materialized))

    return wrap_with_system_metadata(data, source=source, environment=environment)


def is_n8n_formatted(data: Any) -> bool:
    """Detect payloads already shaped as n8n's ``{data: {main: ...}}`` envelope."""
    return isinstance(data, dict) and isinstance(data.get("data"), dict) and "main" in data["data"]


def _free_system_key(data: dict[str, Any]) -> str:
    if SYSTEM_KEY not in data:
        return SYSTEM_KEY
    suffix = 1
    while f"{SYSTEM_KEY}_{suffix}" in data:
        suffix += 1
    return f"{SYSTEM_KEY}_{suffix}"


def wrap_with_system_metadata(
    data: dict[str, Any],
    *,
    source: str = DEFAULT_SOURCE,
    environment: Optional[str] = None,
) -> dict[str, Any]:
    """Add system metadata to form data without touching user keys.

    - n8n-formatted input is returned unchanged
    - empty input becomes ``{timestamp, source, environment}``
    - otherwise the metadata goes under ``_system`` (or the first free
      ``_system_N`` key if the form itself defines ``_system``)
    """
    if is_n8n_formatted(data):
        return data

    system: dict[str, Any] = {"timestamp": utc_timestamp(), "source": source}
    if environment:
        system["environment"] = environment

    if not data:
        return system

    key = _free_system_key(data)
    if key != SYSTEM_KEY:
        logger.warning(
            f"Form data defines '{SYSTEM_KEY}'; system metadata stored under '{key}'",
            extra={"phase": "payload"},
        )
    return {**data, key: system}
