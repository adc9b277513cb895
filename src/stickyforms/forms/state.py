"""Form state and validation engine.

One FormState backs one displayed form. It holds the current values, the
per-field error lists and two visibility flags:

- a field's own errors become visible once the user leaves that field
  (``on_field_settled``), so problems surface progressively;
- the whole-form summary, and the errors of fields the user never touched,
  become visible after the first submit attempt (``validate_all``).

A pristine form therefore renders without any error text.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Optional

from stickyforms.core.models import NormalizedParameter
from stickyforms.forms.validation import validate_field

logger = logging.getLogger(__name__)


@dataclass
class FormValidationResult:
    """Aggregate outcome of validating every field."""

    valid: bool
    errors_by_field: dict[str, list[str]] = field(default_factory=dict)

    @property
    def invalid_fields(self) -> list[str]:
        return [name for name, errors in self.errors_by_field.items() if errors]


class FormState:
    """Values, errors and visibility state of one dynamic form."""

    def __init__(
        self,
        parameters: Iterable[NormalizedParameter],
        initial_values: Optional[dict[str, Any]] = None,
    ) -> None:
        self.parameters: list[NormalizedParameter] = list(parameters)
        self._by_name = {p.name: p for p in self.parameters}
        self._values: dict[str, Any] = {}
        self._errors: dict[str, list[str]] = {}
        self._settled: set[str] = set()
        self.has_been_validated = False
        self.reset(initial_values)

    # Values

    @property
    def values(self) -> dict[str, Any]:
        """Snapshot of the current values."""
        return dict(self._values)

    def get_value(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def set_value(self, name: str, value: Any) -> None:
        """Record a change without validating it."""
        if name not in self._by_name:
            logger.debug("Value set for field outside the schema", extra={"field": name})
        self._values[name] = value

    def update(self, values: dict[str, Any]) -> None:
        """Set several values at once, e.g. from a saved draft."""
        for name, value in values.items():
            self.set_value(name, value)

    def on_field_settled(self, name: str, value: Any) -> list[str]:
        """Handle the user leaving a field: store the value and validate it.

        Returns:
            The field's new error list
        """
        self.set_value(name, value)
        self._settled.add(name)

        parameter = self._by_name.get(name)
        if parameter is None:
            return []

        errors = validate_field(parameter, value)
        self._errors[name] = errors
        return list(errors)

    def reset(self, initial_values: Optional[dict[str, Any]] = None) -> None:
        """Restore defaults (overlaid with initial_values) and clear all errors."""
        self._values = {p.name: p.default_value for p in self.parameters}
        if initial_values:
            self._values.update(initial_values)
        self._errors = {}
        self._settled = set()
        self.has_been_validated = False

    # Validation

    def validate_all(self) -> FormValidationResult:
        """Validate every field against the current values.

        Replaces the whole error map and marks the form as validated, even if
        some fields were never touched.
        """
        self._errors = {p.name: validate_field(p, self._values.get(p.name)) for p in self.parameters}
        self.has_been_validated = True

        result = FormValidationResult(
            valid=all(not errors for errors in self._errors.values()),
            errors_by_field={name: list(errors) for name, errors in self._errors.items()},
        )
        logger.debug(
            "Form validated",
            extra={"phase": "form_validation", "valid": result.valid, "invalid_fields": result.invalid_fields},
        )
        return result

    @property
    def errors(self) -> dict[str, list[str]]:
        """All computed errors, visible or not."""
        return {name: list(errors) for name, errors in self._errors.items()}

    @property
    def is_valid(self) -> bool:
        """True when no computed error is pending (says nothing about unvalidated fields)."""
        return all(not errors for errors in self._errors.values())

    def is_settled(self, name: str) -> bool:
        return name in self._settled

    def visible_errors(self, name: str) -> list[str]:
        """Errors the UI should render for a field right now."""
        if not (self.has_been_validated or name in self._settled):
            return []
        return list(self._errors.get(name, []))

    def summary(self) -> list[dict[str, Any]]:
        """Whole-form error summary, shown only after a submit attempt.

        Returns:
            One ``{name, label, errors}`` entry per field with errors, in
            schema order
        """
        if not self.has_been_validated:
            return []
        return [
            {"name": p.name, "label": p.label, "errors": list(self._errors[p.name])}
            for p in self.parameters
            if self._errors.get(p.name)
        ]
