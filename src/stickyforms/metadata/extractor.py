"""
Metadata extractor for n8n workflows.

Workflow authors describe the form a workflow expects by placing a sticky note
in the workflow whose text contains ``UI_METADATA`` followed by a JSON object:

    UI_METADATA
    {
      "parameters": [
        {"name": "email", "type": "email", "label": "Email", "required": true}
      ]
    }

This module finds that JSON and returns it as a RawMetadataResult. It never
raises for workflows without metadata: absence is an ordinary result.
"""

import copy
import logging
from typing import Any, Optional, Union

from stickyforms.core.json_utils import find_bare_json, find_marked_json, try_parse_json_object
from stickyforms.core.metadata_schema import is_valid_annotation
from stickyforms.core.models import MetadataSource, RawMetadataResult
from stickyforms.metadata.cache import MetadataCache, make_cache_key

# Set up module logger
logger = logging.getLogger(__name__)

# Load-bearing: existing workflow annotations use exactly this token
METADATA_MARKER = "UI_METADATA"

STICKY_NOTE_NODE_TYPE = "n8n-nodes-base.stickyNote"

# Result keys owned by the extractor; annotation JSON cannot override them
_RESERVED_KEYS = frozenset({"success", "parameters", "message", "error", "_source"})

MSG_INVALID_WORKFLOW = "Invalid workflow JSON or workflow without nodes"
MSG_NO_STICKY_NOTES = "No sticky notes found"
MSG_NO_METADATA = "No valid UI_METADATA found"
MSG_EXTRACTION_ERROR = "Error extracting metadata"

_default_cache = MetadataCache()

CacheArg = Union[MetadataCache, bool, None]


def get_default_cache() -> MetadataCache:
    """Return the process-wide metadata cache."""
    return _default_cache


def configure_default_cache(max_entries: int) -> MetadataCache:
    """Replace the process-wide cache, e.g. after loading settings."""
    global _default_cache
    _default_cache = MetadataCache(max_entries=max_entries)
    return _default_cache


def _resolve_cache(cache: CacheArg) -> Optional[MetadataCache]:
    if cache is False:
        return None
    if cache is None or cache is True:
        return _default_cache
    return cache


def find_annotation_nodes(workflow: dict[str, Any]) -> list[dict[str, Any]]:
    """Return sticky-note nodes that carry text content, in workflow order."""
    nodes = workflow.get("nodes")
    if not isinstance(nodes, list):
        return []
    return [
        node
        for node in nodes
        if isinstance(node, dict)
        and node.get("type") == STICKY_NOTE_NODE_TYPE
        and isinstance(node.get("parameters"), dict)
        and isinstance(node["parameters"].get("content"), str)
        and node["parameters"]["content"]
    ]


def _candidate_json(content: str) -> Optional[str]:
    """Locate the JSON text in a note: after the marker, or the whole note."""
    candidate = find_marked_json(content, METADATA_MARKER)
    if candidate is not None:
        return candidate
    logger.debug("No UI_METADATA marker, trying whole content as JSON", extra={"phase": "candidate_search"})
    return find_bare_json(content)


def _parse_node(node: dict[str, Any], workflow_id: Optional[str]) -> Optional[RawMetadataResult]:
    """Try to read UI metadata from one annotation node."""
    content: str = node["parameters"]["content"]
    node_name = str(node.get("name") or "Sticky Note")
    log_context = {"workflow_id": workflow_id, "node_id": node.get("id"), "node_name": node_name}

    candidate = _candidate_json(content)
    if candidate is None:
        logger.debug("Sticky note holds no JSON candidate", extra={"phase": "candidate_search", **log_context})
        return None

    ok, parsed = try_parse_json_object(candidate)
    if not ok:
        logger.warning(
            f"Could not parse UI metadata JSON: {parsed}",
            extra={"phase": "json_parsing", "preview": candidate[:200], **log_context},
        )
        return None

    if not is_valid_annotation(parsed):
        logger.warning(
            "Invalid metadata structure - missing parameters or fields array",
            extra={"phase": "structure_validation", **log_context},
        )
        return None

    parameters = parsed.get("parameters")
    if not isinstance(parameters, list):
        # 'fields' is the older spelling of 'parameters'
        parameters = parsed["fields"]

    extras = {key: value for key, value in parsed.items() if key not in _RESERVED_KEYS}
    return RawMetadataResult(
        success=True,
        parameters=copy.deepcopy(parameters),
        source=MetadataSource(node_id=node.get("id"), node_name=node_name, raw_content=content),
        extra=copy.deepcopy(extras),
    )


def _extract(workflow: Any) -> RawMetadataResult:
    if not isinstance(workflow, dict) or not isinstance(workflow.get("nodes"), list) or not workflow["nodes"]:
        logger.warning("Invalid workflow JSON or workflow without nodes", extra={"phase": "validation"})
        return RawMetadataResult(success=False, message=MSG_INVALID_WORKFLOW)

    workflow_id = workflow.get("id")
    logger.debug(
        "Scanning workflow for UI metadata",
        extra={"phase": "init", "workflow_id": workflow_id, "node_count": len(workflow["nodes"])},
    )

    sticky_notes = find_annotation_nodes(workflow)
    if not sticky_notes:
        logger.debug("No sticky notes found", extra={"phase": "node_filtering", "workflow_id": workflow_id})
        return RawMetadataResult(success=False, message=MSG_NO_STICKY_NOTES)

    for node in sticky_notes:
        try:
            result = _parse_node(node, workflow_id)
        except Exception as e:
            logger.warning(
                f"Skipping sticky note that could not be read: {e}",
                exc_info=True,
                extra={"phase": "candidate_parsing", "workflow_id": workflow_id, "node_id": node.get("id")},
            )
            continue
        if result is not None:
            logger.info(
                "UI metadata extracted",
                extra={
                    "phase": "complete",
                    "workflow_id": workflow_id,
                    "node_id": node.get("id"),
                    "parameter_count": len(result.parameters),
                },
            )
            return result

    logger.debug("No valid UI_METADATA in sticky notes", extra={"phase": "complete", "workflow_id": workflow_id})
    return RawMetadataResult(success=False, message=MSG_NO_METADATA)


def extract_raw_metadata(workflow: Any, cache: CacheArg = None) -> RawMetadataResult:
    """
    Extract the raw UI metadata embedded in a workflow definition.

    Args:
        workflow: Workflow JSON as returned by the n8n API ({id, name, nodes, ...})
        cache: MetadataCache to use; None uses the process-wide cache and
            False disables caching for this call

    Returns:
        RawMetadataResult with success=True, the raw parameter list and the
        source node on success; success=False with a message otherwise. Never
        raises: unexpected failures come back as success=False with ``error``
        set, and those results are not cached so a later call can retry.
    """
    metadata_cache = _resolve_cache(cache)
    key = make_cache_key(workflow)
    # Without an id and a version there is nothing to tell two workflows apart
    if "no-id" in key or "no-version" in key:
        metadata_cache = None

    if metadata_cache is not None:
        cached = metadata_cache.get(key)
        if cached is not None:
            return cached

    try:
        result = _extract(workflow)
    except Exception as e:
        logger.exception("Error extracting metadata from workflow", extra={"phase": "error"})
        return RawMetadataResult(success=False, message=MSG_EXTRACTION_ERROR, error=str(e))

    if metadata_cache is not None:
        metadata_cache.put(key, result)
    return result
