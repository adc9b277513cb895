"""Form state, field validation and submission payloads."""

from .payload import UploadedFile, build_payload, wrap_with_system_metadata
from .state import FormState, FormValidationResult
from .validation import validate_field

__all__ = [
    "FormState",
    "FormValidationResult",
    "UploadedFile",
    "build_payload",
    "validate_field",
    "wrap_with_system_metadata",
]
