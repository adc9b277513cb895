"""Extraction of form schemas from workflow annotation notes."""

from .cache import MetadataCache
from .extractor import METADATA_MARKER, extract_raw_metadata
from .grouping import group_and_sort
from .normalizer import normalize_parameter, normalize_parameters
from .pipeline import extract_and_process_metadata

__all__ = [
    "METADATA_MARKER",
    "MetadataCache",
    "extract_and_process_metadata",
    "extract_raw_metadata",
    "group_and_sort",
    "normalize_parameter",
    "normalize_parameters",
]
