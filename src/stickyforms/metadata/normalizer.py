"""Normalize raw parameter descriptors into NormalizedParameter models.

Invalid descriptors are dropped with a warning rather than failing the batch:
a form with some fields missing is more useful than no form at all. Only the
required keys (name, type, label, and options for choice types) can drop a
descriptor; a bad optional hint falls back to its default.
"""

import logging
import math
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from stickyforms.core.exceptions import MetadataSchemaError
from stickyforms.core.metadata_schema import check_parameter
from stickyforms.core.models import (
    DEFAULT_GROUP,
    OPTION_TYPES,
    NormalizedParameter,
    ParameterOption,
    ParameterType,
    ParameterUI,
    ParameterValidation,
)

logger = logging.getLogger(__name__)


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def _warn_ignored(descriptor: dict[str, Any], key: str, value: Any, reason: str = "") -> None:
    message = f"Ignoring invalid '{key}' value {value!r} on parameter, using the default"
    logger.warning(
        f"{message}: {reason}" if reason else message,
        extra={"phase": "normalization", "parameter_name": descriptor.get("name")},
    )


def _sub_record(descriptor: dict[str, Any], key: str) -> dict[str, Any]:
    """Return the ui/validation sub-record, ignoring anything that is not an object."""
    value = descriptor.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning(
            f"Ignoring non-object '{key}' on parameter",
            extra={"phase": "normalization", "parameter_name": descriptor.get("name")},
        )
        return {}
    return _drop_none(value)


def _hints(model: type[BaseModel], descriptor: dict[str, Any], key: str) -> Any:
    """Validate a ui/validation sub-record one entry at a time.

    Entries that do not fit the model are logged and left out, so the model
    default applies to that attribute only.
    """
    record = _sub_record(descriptor, key)
    kept: dict[str, Any] = {}
    for entry, value in record.items():
        try:
            model.model_validate({entry: value})
        except ValidationError as e:
            _warn_ignored(descriptor, f"{key}.{entry}", value, e.errors()[0]["msg"])
            continue
        kept[entry] = value
    return model.model_validate(kept)


def _order(descriptor: dict[str, Any]) -> Union[int, float]:
    order = descriptor.get("order")
    if not order:
        return 0
    if isinstance(order, bool):
        _warn_ignored(descriptor, "order", order)
        return 0
    try:
        number = float(order)
    except (TypeError, ValueError):
        _warn_ignored(descriptor, "order", order)
        return 0
    if not math.isfinite(number):
        _warn_ignored(descriptor, "order", order)
        return 0
    return int(number) if number.is_integer() else number


def _group(descriptor: dict[str, Any]) -> str:
    group = descriptor.get("group")
    if not group:
        return DEFAULT_GROUP
    if isinstance(group, (dict, list)):
        _warn_ignored(descriptor, "group", group)
        return DEFAULT_GROUP
    return str(group)


def _options(descriptor: dict[str, Any], param_type: ParameterType) -> list[ParameterOption]:
    raw_options = descriptor.get("options")
    if not isinstance(raw_options, list):
        return []
    options = [ParameterOption.from_raw(raw) for raw in raw_options if raw is not None]
    if param_type in OPTION_TYPES and not options:
        logger.warning(
            f"{param_type.value} parameter has an empty options list",
            extra={"phase": "normalization", "parameter_name": descriptor.get("name")},
        )
    return options


def normalize_parameter(descriptor: dict[str, Any], index: int = 0) -> NormalizedParameter:
    """Normalize a single descriptor.

    Args:
        descriptor: Raw parameter dict from the annotation JSON
        index: Position in the parameters array, used in error paths

    Returns:
        NormalizedParameter with every optional attribute defaulted

    Raises:
        MetadataSchemaError: If a required key is missing or invalid
    """
    check_parameter(descriptor, path_prefix=f"parameters[{index}]")

    param_type = ParameterType(descriptor["type"])
    default_value = descriptor.get("defaultValue")

    try:
        return NormalizedParameter(
            name=descriptor["name"],
            type=param_type,
            label=descriptor["label"],
            # Falsy values take the default, as annotation authors write null/"" for "unset"
            required=bool(descriptor.get("required") or False),
            placeholder=str(descriptor.get("placeholder") or ""),
            default_value="" if default_value is None else default_value,
            group=_group(descriptor),
            order=_order(descriptor),
            ui=_hints(ParameterUI, descriptor, "ui"),
            validation=_hints(ParameterValidation, descriptor, "validation"),
            options=_options(descriptor, param_type),
            original=descriptor,
        )
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise MetadataSchemaError(
            message=first["msg"],
            path=f"parameters[{index}].{location}" if location else f"parameters[{index}]",
        ) from e


def normalize_parameters(raw_parameters: Any) -> list[NormalizedParameter]:
    """Validate and normalize the raw parameters array.

    Args:
        raw_parameters: The ``parameters`` list from RawMetadataResult

    Returns:
        Valid parameters in input order. Invalid entries and repeated names
        (after the first occurrence) are left out.
    """
    if not isinstance(raw_parameters, list):
        logger.warning(
            "Parameters must be a list",
            extra={"phase": "normalization", "received_type": type(raw_parameters).__name__},
        )
        return []

    normalized: list[NormalizedParameter] = []
    seen_names: set[str] = set()

    for index, descriptor in enumerate(raw_parameters):
        try:
            parameter = normalize_parameter(descriptor, index)
        except MetadataSchemaError as e:
            logger.warning(f"Dropping invalid parameter: {e}", extra={"phase": "normalization", "index": index})
            continue

        if parameter.name in seen_names:
            logger.warning(
                f"Dropping duplicate parameter '{parameter.name}'",
                extra={"phase": "normalization", "index": index, "parameter_name": parameter.name},
            )
            continue

        seen_names.add(parameter.name)
        normalized.append(parameter)

    logger.debug(
        "Parameters normalized",
        extra={"phase": "normalization", "received": len(raw_parameters), "kept": len(normalized)},
    )
    return normalized
