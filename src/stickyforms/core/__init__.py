"""Core stickyforms modules: data model, metadata schema, settings and errors."""

from .exceptions import MetadataSchemaError, N8nClientError, SettingsError, StickyFormsError
from .metadata_schema import ANNOTATION_SCHEMA, PARAMETER_SCHEMA, check_parameter, validate_parameter
from .models import (
    DEFAULT_GROUP,
    SUPPORTED_PARAMETER_TYPES,
    MetadataSource,
    NormalizedParameter,
    ParameterGroup,
    ParameterOption,
    ParameterType,
    ProcessedMetadata,
    RawMetadataResult,
)

__all__ = [
    "ANNOTATION_SCHEMA",
    "DEFAULT_GROUP",
    "PARAMETER_SCHEMA",
    "SUPPORTED_PARAMETER_TYPES",
    "MetadataSchemaError",
    "MetadataSource",
    "N8nClientError",
    "NormalizedParameter",
    "ParameterGroup",
    "ParameterOption",
    "ParameterType",
    "ProcessedMetadata",
    "RawMetadataResult",
    "SettingsError",
    "StickyFormsError",
    "check_parameter",
    "validate_parameter",
]
