"""Core types for the FormForge validation engine.

This module defines the foundational types shared by every layer:
- FieldValidator: the per-field contract (value, all_values) -> error or None
- ValidationSchema: field name -> validator(s)
- ValidationMode / SubmissionStatus: when the driver validates, and where a submit stands
- RuleDefinition: declarative rule description (from YAML or dicts)
- ExternalSchema / ParseResult / SchemaIssue: the boundary for third-party schema libraries
"""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, Union

# Values of the whole form, keyed by field name. Owned by the caller; never mutated.
FormValues = Mapping[str, Any]

# Result of a validator: an error message, or None when the value is valid.
ValidationOutcome = Union[str, None]

# A validator may answer synchronously or hand back an awaitable.
FieldValidator = Callable[
    [Any, FormValues], Union[ValidationOutcome, Awaitable[ValidationOutcome]]
]

# Message option accepted by every rule: a literal or a template called with rule params.
MessageTemplate = Callable[[dict[str, Any]], str]
MessageOption = Union[str, MessageTemplate, None]

# A schema entry is either one validator or an ordered list of them.
SchemaEntry = Union[FieldValidator, Sequence[FieldValidator]]
ValidationSchema = Mapping[str, SchemaEntry]


class ValidationMode(Enum):
    """When the driver runs a field's validators."""

    ON_CHANGE = "onChange"
    ON_BLUR = "onBlur"
    ON_SUBMIT = "onSubmit"


class SubmissionStatus(Enum):
    """Lifecycle of a form submission."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class FieldMeta:
    """Per-field state exposed to the UI layer.

    Attributes:
        error: Current error message, or None
        touched: Whether the field has been blurred
        is_dirty: Whether the value differs from its initial value
        is_validating: Whether a validation for this field is in flight
    """

    error: str | None
    touched: bool
    is_dirty: bool
    is_validating: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error,
            "touched": self.touched,
            "isDirty": self.is_dirty,
            "isValidating": self.is_validating,
        }


@dataclass
class RuleDefinition:
    """Declarative definition of a rule (from YAML or a dict).

    This is the declarative representation; it gets resolved to an actual
    FieldValidator through the RuleRegistry.

    Attributes:
        type: Rule type ("required", "minLength", "matches", ...)
        params: Type-specific parameters
        message: Custom error message (empty means use the message registry)
        when: Optional condition; the rule only runs when it holds
    """

    type: str
    params: dict[str, Any] = field(default_factory=dict)
    message: str = ""
    when: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuleDefinition":
        """Create RuleDefinition from YAML/JSON dict."""
        return cls(
            type=data["type"],
            params=dict(data.get("params") or {}),
            message=data.get("message", "") or "",
            when=data.get("when"),
        )


# =============================================================================
# External Schema Boundary
# =============================================================================


@dataclass(frozen=True)
class SchemaIssue:
    """A single problem reported by an external schema.

    Attributes:
        path: Location of the problem; the first segment is the field name.
            Empty for problems with the value as a whole.
        message: Human-readable message, if the library supplied one
    """

    path: tuple[str | int, ...] = ()
    message: str | None = None


@dataclass(frozen=True)
class ParseResult:
    """Outcome of running an external schema over some input."""

    success: bool
    output: Any = None
    issues: tuple[SchemaIssue, ...] = ()


class ExternalSchema(Protocol):
    """Protocol a third-party schema must be wrapped into.

    The library is wrapped once at the integration boundary rather than
    probed on every call.
    """

    def parse(self, data: Any) -> ParseResult:
        """Validate data and report every issue found.

        Args:
            data: The value (or the whole form values) to validate

        Returns:
            ParseResult; success is False when issues were found
        """
        ...
