"""Extraction, normalization and grouping in one call."""

import logging
from typing import Any

from stickyforms.core.models import ProcessedMetadata
from stickyforms.metadata.extractor import CacheArg, extract_raw_metadata
from stickyforms.metadata.grouping import group_and_sort, sorted_parameters
from stickyforms.metadata.normalizer import normalize_parameters

logger = logging.getLogger(__name__)


def extract_and_process_metadata(workflow: Any, cache: CacheArg = None) -> ProcessedMetadata:
    """Build the grouped form schema for a workflow.

    Args:
        workflow: Workflow JSON from the n8n API
        cache: Passed through to extract_raw_metadata

    Returns:
        ProcessedMetadata. ``success`` is False when the workflow carries no
        usable UI metadata, in which case no form should be rendered. A
        successful result may still have zero parameters if every descriptor
        was invalid.
    """
    raw = extract_raw_metadata(workflow, cache=cache)
    if not raw.success:
        return ProcessedMetadata(success=False, metadata=raw, message=raw.message, error=raw.error)

    parameters = normalize_parameters(raw.parameters)
    groups = group_and_sort(parameters)

    if len(parameters) < len(raw.parameters):
        logger.warning(
            f"{len(raw.parameters) - len(parameters)} of {len(raw.parameters)} parameters were dropped",
            extra={"phase": "pipeline", "workflow_id": workflow.get("id")},
        )

    return ProcessedMetadata(
        success=True,
        metadata=raw,
        parameters=sorted_parameters(parameters),
        groups=groups,
    )
