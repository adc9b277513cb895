"""Root-level test configuration and fixtures."""

from typing import Any

import pytest

from stickyforms.metadata.extractor import configure_default_cache
from tests.shared.workflows import make_workflow, metadata_note, trigger_node


@pytest.fixture(autouse=True, scope="function")
def isolate_stickyforms_config(tmp_path, monkeypatch):
    """Keep tests away from the real ~/.stickyforms and from caller env overrides."""
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in (
        "STICKYFORMS_N8N_URL",
        "STICKYFORMS_N8N_API_KEY",
        "STICKYFORMS_BACKEND_URL",
        "STICKYFORMS_ENVIRONMENT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True, scope="function")
def fresh_metadata_cache():
    """Each test starts with an empty process-wide metadata cache."""
    return configure_default_cache(256)


@pytest.fixture
def contact_annotation() -> dict[str, Any]:
    """Annotation for a small contact form with one named group."""
    return {
        "title": "Contact",
        "parameters": [
            {"name": "email", "type": "email", "label": "Email", "required": True, "group": "Contacto", "order": 2},
            {"name": "name", "type": "text", "label": "Nombre", "required": True, "group": "Contacto", "order": 1},
            {
                "name": "plan",
                "type": "select",
                "label": "Plan",
                "required": True,
                "options": [{"value": "basic", "label": "Básico"}, {"value": "pro", "label": "Pro"}],
            },
            {"name": "seats", "type": "number", "label": "Puestos", "validation": {"min": 1, "max": 50}},
            {"name": "terms", "type": "checkbox", "label": "Acepto"},
        ],
    }


@pytest.fixture
def contact_workflow(contact_annotation) -> dict[str, Any]:
    """Workflow with a webhook trigger and the contact annotation."""
    return make_workflow(
        trigger_node("n8n-nodes-base.webhook", path="contact"),
        metadata_note(contact_annotation),
    )
