"""Inspection, filtering and sorting of n8n workflow definitions.

These helpers work on workflow dicts as returned by the n8n API and never
raise on malformed input: a workflow without nodes is simply "unknown".
"""

import logging
from datetime import datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)

WEBHOOK_NODE_TYPES = (
    "n8n-nodes-base.webhook",
    "n8n-nodes-base.formTrigger",
    "n8n-nodes-base.chatTrigger",
)

EXECUTION_TYPES = ("webhook", "manual", "scheduled", "unknown")

SORT_KEYS = (
    "name",
    "name-desc",
    "created",
    "created-desc",
    "updated",
    "updated-desc",
    "id",
    "id-desc",
    "status",
    "status-desc",
    "execution-type",
)

STATUS_FILTERS = ("todos", "activos", "inactivos")
EXECUTION_TYPE_FILTERS = ("todos", "webhook", "manual", "scheduled", "ejecutables", "no-ejecutables")


def _nodes(workflow: Any) -> list[dict[str, Any]]:
    if not isinstance(workflow, dict) or not isinstance(workflow.get("nodes"), list):
        return []
    return [node for node in workflow["nodes"] if isinstance(node, dict)]


def find_webhook_node(workflow: Any) -> Optional[dict[str, Any]]:
    """Return the first webhook-style trigger node, if any."""
    for node in _nodes(workflow):
        if node.get("type") in WEBHOOK_NODE_TYPES:
            return node
    return None


def has_webhook_trigger(workflow: Any) -> bool:
    return find_webhook_node(workflow) is not None


def is_workflow_active(workflow: Any) -> bool:
    return isinstance(workflow, dict) and workflow.get("active") is True


def is_workflow_archived(workflow: Any) -> bool:
    return isinstance(workflow, dict) and workflow.get("isArchived") is True


def get_workflow_status(workflow: Any) -> str:
    """'activo' or 'inactivo', as shown in the workflow list."""
    return "activo" if is_workflow_active(workflow) else "inactivo"


def get_execution_type(workflow: Any) -> str:
    """Classify how a workflow can be started.

    Returns:
        'webhook' when it has a webhook-style trigger, otherwise 'scheduled' or
        'manual' based on the trigger node (the node at x=0, else the first
        node), or 'unknown'
    """
    nodes = _nodes(workflow)
    if not nodes:
        return "unknown"

    if has_webhook_trigger(workflow):
        return "webhook"

    trigger = next(
        (
            node
            for node in nodes
            if isinstance(node.get("position"), list) and node["position"] and node["position"][0] == 0
        ),
        nodes[0],
    )
    node_type = trigger.get("type")
    if not isinstance(node_type, str) or not node_type:
        return "unknown"

    node_type = node_type.lower()
    if any(word in node_type for word in ("cron", "schedule", "interval")):
        return "scheduled"
    if "manual" in node_type or "start" in node_type:
        return "manual"
    return "unknown"


def build_webhook_url(workflow: Any, base_url: str) -> Optional[str]:
    """Build the production webhook URL of a workflow.

    The path comes from the webhook node's ``path`` (or ``webhookPath``)
    parameter and falls back to the workflow id.

    Examples:
        >>> build_webhook_url({"id": "7", "nodes": [{"type": "n8n-nodes-base.webhook",
        ...     "parameters": {"path": "/grants"}}]}, "https://n8n.example.com/")
        'https://n8n.example.com/webhook/grants'
    """
    if not base_url:
        return None

    node = find_webhook_node(workflow)
    if node is None:
        return None

    parameters = node.get("parameters") if isinstance(node.get("parameters"), dict) else {}
    path = parameters.get("path") or parameters.get("webhookPath") or workflow.get("id")
    if not path:
        return None

    return f"{base_url.rstrip('/')}/webhook/{str(path).lstrip('/')}"


def _parse_date(value: Any) -> float:
    """Timestamp of an ISO date, 0 when missing or unparseable."""
    if not value:
        return 0.0
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


def _numeric_id(workflow: dict[str, Any]) -> int:
    try:
        return int(workflow.get("id") or 0)
    except (TypeError, ValueError):
        return 0


def _status_rank(workflow: dict[str, Any]) -> int:
    """Active 0, inactive 1, archived 2."""
    if is_workflow_archived(workflow):
        return 2
    return 0 if is_workflow_active(workflow) else 1


def sort_workflows(workflows: Any, sort_by: str = "name") -> list[dict[str, Any]]:
    """Return a sorted copy of the workflow list.

    Unknown sort keys return the list unchanged. 'created' and 'updated' put
    the most recent first; their '-desc' variants put the oldest first.
    """
    if not isinstance(workflows, list):
        return []

    items = list(workflows)
    created = lambda w: _parse_date(w.get("createdAt") or w.get("created_at"))  # noqa: E731
    updated = lambda w: _parse_date(w.get("updatedAt") or w.get("updated_at"))  # noqa: E731
    execution_order = {"webhook": 0, "manual": 1, "scheduled": 2}

    if sort_by == "name":
        return sorted(items, key=lambda w: (w.get("name") or "").lower())
    if sort_by == "name-desc":
        return sorted(items, key=lambda w: (w.get("name") or "").lower(), reverse=True)
    if sort_by == "created":
        return sorted(items, key=created, reverse=True)
    if sort_by == "created-desc":
        return sorted(items, key=created)
    if sort_by == "updated":
        return sorted(items, key=updated, reverse=True)
    if sort_by == "updated-desc":
        return sorted(items, key=updated)
    if sort_by == "id":
        return sorted(items, key=_numeric_id)
    if sort_by == "id-desc":
        return sorted(items, key=_numeric_id, reverse=True)
    if sort_by == "status":
        return sorted(items, key=_status_rank)
    if sort_by == "status-desc":
        return sorted(items, key=lambda w: 2 - _status_rank(w))
    if sort_by == "execution-type":
        return sorted(items, key=lambda w: execution_order.get(get_execution_type(w), 3))

    logger.debug(f"Unknown sort key '{sort_by}', keeping original order")
    return items


def _matches_execution_type(workflow: dict[str, Any], wanted: str) -> bool:
    execution_type = get_execution_type(workflow)
    if wanted == "ejecutables":
        return execution_type in ("webhook", "manual")
    if wanted == "no-ejecutables":
        return execution_type in ("scheduled", "unknown")
    if wanted in ("webhook", "manual", "scheduled"):
        return execution_type == wanted
    return True


def _matches_search(workflow: dict[str, Any], term: str) -> bool:
    name = workflow.get("name")
    if isinstance(name, str) and term in name.lower():
        return True
    workflow_id = workflow.get("id")
    if workflow_id is not None and term in str(workflow_id):
        return True
    tags = workflow.get("tags") or []
    return any(isinstance(tag, dict) and term in str(tag.get("name") or "").lower() for tag in tags)


def filter_workflows(workflows: Any, filters: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
    """Filter workflows for the list view.

    Args:
        workflows: Workflow dicts from the n8n API
        filters: Optional keys:
            - showArchived: include archived workflows (default False)
            - status: 'todos' | 'activos' | 'inactivos'
            - executionType: 'todos' | 'webhook' | 'manual' | 'scheduled' |
              'ejecutables' (webhook or manual) | 'no-ejecutables'
            - search: case-insensitive match on name, id or tag names

    Returns:
        The matching workflows, in input order
    """
    if not isinstance(workflows, list):
        return []
    filters = filters or {}

    filtered = [w for w in workflows if isinstance(w, dict)]

    if filters.get("showArchived") is not True:
        filtered = [w for w in filtered if not is_workflow_archived(w)]

    status = filters.get("status")
    if status == "activos":
        filtered = [w for w in filtered if is_workflow_active(w)]
    elif status == "inactivos":
        filtered = [w for w in filtered if not is_workflow_active(w)]

    execution_type = filters.get("executionType")
    if execution_type and execution_type != "todos":
        filtered = [w for w in filtered if _matches_execution_type(w, execution_type)]

    search = filters.get("search")
    if isinstance(search, str) and search.strip():
        term = search.strip().lower()
        filtered = [w for w in filtered if _matches_search(w, term)]

    return filtered


def get_workflow_stats(workflows: Any) -> dict[str, int]:
    """Count workflows by status and execution type."""
    stats = {"total": 0, "active": 0, "inactive": 0, "webhook": 0, "manual": 0, "scheduled": 0}
    if not isinstance(workflows, list):
        return stats

    stats["total"] = len(workflows)
    for workflow in workflows:
        if is_workflow_active(workflow):
            stats["active"] += 1
        else:
            stats["inactive"] += 1
        execution_type = get_execution_type(workflow)
        if execution_type in stats:
            stats[execution_type] += 1
    return stats
