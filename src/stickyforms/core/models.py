"""Pydantic models for workflow UI metadata and the form schema built from it.

Raw annotation JSON is untyped; these models are the typed shape every
parameter takes once it has passed the metadata schema check. Field names are
snake_case in Python and camelCase on the wire (``defaultValue``,
``helpText``, ``minLength``...), matching what workflow authors write in
their sticky notes.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_GROUP = "default"
DEFAULT_GROUP_LABEL = "Parámetros"


class ParameterType(str, Enum):
    """Field kinds a workflow annotation may declare."""

    TEXT = "text"
    TEXTAREA = "textarea"
    EMAIL = "email"
    TEL = "tel"
    URL = "url"
    PASSWORD = "password"
    NUMBER = "number"
    RANGE = "range"
    PERCENTAGE = "percentage"
    DATE = "date"
    DATETIME_LOCAL = "datetime-local"
    TIME = "time"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    CHECKBOX_GROUP = "checkboxGroup"
    FILE = "file"
    COLOR = "color"
    HIDDEN = "hidden"


SUPPORTED_PARAMETER_TYPES: list[str] = [t.value for t in ParameterType]

# Types that are meaningless without a list of options
OPTION_TYPES = frozenset({ParameterType.SELECT, ParameterType.RADIO, ParameterType.CHECKBOX_GROUP})

NUMERIC_TYPES = frozenset({ParameterType.NUMBER, ParameterType.RANGE, ParameterType.PERCENTAGE})

TEXT_LENGTH_TYPES = frozenset({ParameterType.TEXT, ParameterType.TEXTAREA})


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        """Dump with wire (camelCase) keys."""
        return self.model_dump(by_alias=True, mode="json")


class ParameterOption(_CamelModel):
    """One choice of a select, radio or checkbox group."""

    value: Any
    label: str

    @classmethod
    def from_raw(cls, raw: Any) -> "ParameterOption":
        """Build an option from either a ``{value, label}`` dict or a bare scalar."""
        if isinstance(raw, dict):
            value = raw.get("value", raw.get("label"))
            label = raw.get("label", value)
            return cls(value=value, label="" if label is None else str(label))
        return cls(value=raw, label=str(raw))


class ParameterUI(_CamelModel):
    """Rendering hints. Unknown keys are kept for the renderer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    width: str = "full"
    icon: Optional[str] = None
    rows: int = 3
    help_text: str = ""


class ParameterValidation(_CamelModel):
    """Validation rules. Every recognized key is present, possibly None."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    pattern: Optional[str] = None
    message: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min_selected: Optional[int] = None
    max_selected: Optional[int] = None
    max_files: Optional[int] = None
    max_size: Optional[int] = None


class NormalizedParameter(_CamelModel):
    """A parameter descriptor with every optional attribute filled in."""

    name: str = Field(..., min_length=1)
    type: ParameterType
    label: str = Field(..., min_length=1)
    required: bool = False
    placeholder: str = ""
    default_value: Any = ""
    group: str = DEFAULT_GROUP
    order: Union[int, float] = 0
    ui: ParameterUI = Field(default_factory=ParameterUI)
    validation: ParameterValidation = Field(default_factory=ParameterValidation)
    options: list[ParameterOption] = Field(default_factory=list)
    original: dict[str, Any] = Field(default_factory=dict, alias="_original")

    @field_validator("group")
    @classmethod
    def validate_group(cls, v: str) -> str:
        """Blank group names fall back to the default group."""
        return v.strip() or DEFAULT_GROUP

    @property
    def is_numeric(self) -> bool:
        return self.type in NUMERIC_TYPES

    @property
    def has_options(self) -> bool:
        return self.type in OPTION_TYPES


class ParameterGroup(BaseModel):
    """A named, ordered partition of the form's parameters."""

    name: str
    label: str
    parameters: list[NormalizedParameter] = Field(default_factory=list)

    @property
    def is_default(self) -> bool:
        """The default group is rendered without a heading."""
        return self.name == DEFAULT_GROUP

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "parameters": [p.to_dict() for p in self.parameters],
        }


class MetadataSource(_CamelModel):
    """Where in the workflow the UI metadata was found."""

    node_id: Any = None
    node_name: str = "Sticky Note"
    raw_content: str = ""


class RawMetadataResult(BaseModel):
    """Outcome of scanning a workflow definition for UI metadata.

    On success, any additional top-level keys of the annotation JSON
    (``groups``, ``ui``, ``title``...) are kept in ``extra``.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    parameters: list[Any] = Field(default_factory=list)
    message: Optional[str] = None
    error: Optional[str] = None
    source: Optional[MetadataSource] = Field(default=None, alias="_source")
    extra: dict[str, Any] = Field(default_factory=dict)

    @property
    def groups(self) -> Any:
        return self.extra.get("groups")

    @property
    def ui(self) -> Any:
        return self.extra.get("ui")

    def to_dict(self) -> dict[str, Any]:
        """Dump in wire form: annotation keys at top level, ``_source`` camelCased."""
        data: dict[str, Any] = {**self.extra, "success": self.success, "parameters": self.parameters}
        if self.message is not None:
            data["message"] = self.message
        if self.error is not None:
            data["error"] = self.error
        if self.source is not None:
            data["_source"] = self.source.to_dict()
        return data


class ProcessedMetadata(BaseModel):
    """Raw metadata plus the normalized, grouped form schema built from it."""

    success: bool
    metadata: Optional[RawMetadataResult] = None
    parameters: list[NormalizedParameter] = Field(default_factory=list)
    groups: list[ParameterGroup] = Field(default_factory=list)
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def source(self) -> Optional[MetadataSource]:
        return self.metadata.source if self.metadata else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "parameters": [p.to_dict() for p in self.parameters],
            "groups": [g.to_dict() for g in self.groups],
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
            if self.metadata.source is not None:
                data["_source"] = self.metadata.source.to_dict()
        if self.message:
            data["message"] = self.message
        if self.error:
            data["error"] = self.error
        return data
