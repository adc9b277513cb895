"""Tests for workflow classification, filtering and sorting."""

import pytest

from stickyforms.n8n.workflows import (
    build_webhook_url,
    filter_workflows,
    get_execution_type,
    get_workflow_stats,
    get_workflow_status,
    has_webhook_trigger,
    sort_workflows,
)
from tests.shared.workflows import make_workflow, sticky_note, trigger_node

WEBHOOK = "n8n-nodes-base.webhook"
SCHEDULE = "n8n-nodes-base.scheduleTrigger"
MANUAL = "n8n-nodes-base.manualTrigger"


def listed(workflow_id: str, name: str, trigger_type: str, **fields) -> dict:
    return make_workflow(trigger_node(trigger_type), workflow_id=workflow_id, name=name, **fields)


@pytest.fixture
def workflow_list() -> list[dict]:
    return [
        listed("3", "Onboarding", WEBHOOK, active=True, createdAt="2024-03-01T00:00:00.000Z", tags=[{"name": "RRHH"}]),
        listed("10", "alta de clientes", MANUAL, active=False, createdAt="2024-01-01T00:00:00.000Z"),
        listed("7", "Nightly sync", SCHEDULE, active=True, createdAt="2024-02-01T00:00:00.000Z"),
        listed("12", "Old form", WEBHOOK, active=False, isArchived=True, createdAt="2023-01-01T00:00:00.000Z"),
    ]


class TestClassification:
    @pytest.mark.parametrize(
        ("trigger_type", "expected"),
        [
            (WEBHOOK, "webhook"),
            ("n8n-nodes-base.formTrigger", "webhook"),
            ("n8n-nodes-base.chatTrigger", "webhook"),
            ("n8n-nodes-base.manualTrigger", "manual"),
            ("n8n-nodes-base.start", "manual"),
            ("n8n-nodes-base.cron", "scheduled"),
            ("n8n-nodes-base.scheduleTrigger", "scheduled"),
            ("n8n-nodes-base.httpRequest", "unknown"),
        ],
    )
    def test_execution_type(self, trigger_type: str, expected: str) -> None:
        assert get_execution_type(make_workflow(trigger_node(trigger_type))) == expected

    def test_webhook_anywhere_in_workflow(self) -> None:
        workflow = make_workflow(
            trigger_node("n8n-nodes-base.manualTrigger"),
            trigger_node(WEBHOOK, node_id="hook", position=[400, 0]),
        )

        assert has_webhook_trigger(workflow) is True
        assert get_execution_type(workflow) == "webhook"

    def test_trigger_is_node_at_origin(self) -> None:
        workflow = make_workflow(
            trigger_node("n8n-nodes-base.set", node_id="a", position=[200, 0]),
            trigger_node("n8n-nodes-base.cron", node_id="b", position=[0, 100]),
        )

        assert get_execution_type(workflow) == "scheduled"

    def test_no_nodes(self) -> None:
        assert get_execution_type({"nodes": []}) == "unknown"
        assert get_execution_type(None) == "unknown"

    def test_status(self) -> None:
        assert get_workflow_status({"active": True}) == "activo"
        assert get_workflow_status({"active": "yes"}) == "inactivo"


class TestBuildWebhookUrl:
    def test_path_from_node(self) -> None:
        workflow = make_workflow(trigger_node(WEBHOOK, path="/contact/"))
        assert build_webhook_url(workflow, "https://n8n.example.com/") == "https://n8n.example.com/webhook/contact/"

    def test_webhook_path_parameter(self) -> None:
        workflow = make_workflow(trigger_node(WEBHOOK, webhookPath="leads"))
        assert build_webhook_url(workflow, "http://localhost:5678") == "http://localhost:5678/webhook/leads"

    def test_falls_back_to_workflow_id(self) -> None:
        workflow = make_workflow(trigger_node(WEBHOOK), workflow_id="42")
        assert build_webhook_url(workflow, "http://localhost:5678") == "http://localhost:5678/webhook/42"

    def test_no_webhook_node(self) -> None:
        assert build_webhook_url(make_workflow(sticky_note("x")), "http://localhost:5678") is None

    def test_no_base_url(self) -> None:
        assert build_webhook_url(make_workflow(trigger_node(WEBHOOK, path="a")), "") is None


class TestFilterWorkflows:
    def test_archived_hidden_by_default(self, workflow_list) -> None:
        ids = [w["id"] for w in filter_workflows(workflow_list)]
        assert ids == ["3", "10", "7"]

    def test_show_archived(self, workflow_list) -> None:
        assert len(filter_workflows(workflow_list, {"showArchived": True})) == 4

    @pytest.mark.parametrize(
        ("status", "expected"),
        [("activos", ["3", "7"]), ("inactivos", ["10"]), ("todos", ["3", "10", "7"])],
    )
    def test_status(self, workflow_list, status, expected) -> None:
        assert [w["id"] for w in filter_workflows(workflow_list, {"status": status})] == expected

    @pytest.mark.parametrize(
        ("execution_type", "expected"),
        [("webhook", ["3"]), ("ejecutables", ["3", "10"]), ("no-ejecutables", ["7"]), ("scheduled", ["7"])],
    )
    def test_execution_type(self, workflow_list, execution_type, expected) -> None:
        result = filter_workflows(workflow_list, {"executionType": execution_type})
        assert [w["id"] for w in result] == expected

    @pytest.mark.parametrize(
        ("term", "expected"),
        [("ALTA", ["10"]), ("rrhh", ["3"]), ("7", ["7"]), ("  ", ["3", "10", "7"])],
    )
    def test_search(self, workflow_list, term, expected) -> None:
        assert [w["id"] for w in filter_workflows(workflow_list, {"search": term})] == expected

    def test_not_a_list(self) -> None:
        assert filter_workflows(None) == []


class TestSortWorkflows:
    @pytest.mark.parametrize(
        ("sort_by", "expected"),
        [
            ("name", ["10", "7", "12", "3"]),
            ("name-desc", ["3", "12", "7", "10"]),
            ("created", ["3", "7", "10", "12"]),
            ("created-desc", ["12", "10", "7", "3"]),
            ("id", ["3", "7", "10", "12"]),
            ("id-desc", ["12", "10", "7", "3"]),
            ("status", ["3", "7", "10", "12"]),
            ("status-desc", ["12", "10", "3", "7"]),
            ("execution-type", ["3", "12", "10", "7"]),
        ],
    )
    def test_sort_keys(self, workflow_list, sort_by: str, expected: list[str]) -> None:
        assert [w["id"] for w in sort_workflows(workflow_list, sort_by)] == expected

    def test_unknown_key_keeps_order(self, workflow_list) -> None:
        assert sort_workflows(workflow_list, "colour") == workflow_list

    def test_does_not_mutate_input(self, workflow_list) -> None:
        before = [w["id"] for w in workflow_list]
        sort_workflows(workflow_list, "id")
        assert [w["id"] for w in workflow_list] == before


class TestStats:
    def test_counts(self, workflow_list) -> None:
        assert get_workflow_stats(workflow_list) == {
            "total": 4,
            "active": 2,
            "inactive": 2,
            "webhook": 2,
            "manual": 1,
            "scheduled": 1,
        }
