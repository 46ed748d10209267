"""Error types for dynaform.

Two families live here:

- FieldError: a validation failure attached to one field. Validation failures
  are always returned as data inside a ValidationResult, never raised.
- DynaformError and its subclasses: exceptions for misuse that must halt the
  caller, such as an inconsistent schema or an edit while a submission is in
  flight.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from dynaform.types import FieldErrorCode


@dataclass(frozen=True)
class FieldError:
    """Per-field validation error details.

    Attributes:
        field: Name of the field the error is attached to
        code: Specific validation error code
        message: Human-readable error description, shown next to the field
        expected: Optional - what was expected (bound, pattern, options, etc.)
        received: Optional - what was actually received

    Examples:
        >>> err = FieldError(
        ...     field="email",
        ...     code=FieldErrorCode.INVALID_FORMAT,
        ...     message="Invalid email address",
        ...     expected="email",
        ...     received="not-an-email"
        ... )
        >>> err.field
        'email'
    """
    field: str
    code: FieldErrorCode
    message: str
    expected: Optional[Any] = None
    received: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "field": self.field,
            "code": self.code.value if isinstance(self.code, FieldErrorCode) else self.code,
            "message": self.message,
        }
        if self.expected is not None:
            result["expected"] = self.expected
        if self.received is not None:
            result["received"] = self.received
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldError":
        """Create FieldError from dict."""
        code = data["code"]
        if isinstance(code, str):
            code = FieldErrorCode(code)
        return cls(
            field=data["field"],
            code=code,
            message=data["message"],
            expected=data.get("expected"),
            received=data.get("received"),
        )


class DynaformError(Exception):
    """Root exception for the package."""


class SchemaDefinitionError(DynaformError):
    """Raised when a field specification or form schema is inconsistent.

    Schema-authoring errors are fatal: the engine refuses to build a schema
    rather than render a form that cannot be validated coherently.

    Attributes:
        field: Name of the offending field, when the error concerns one field
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        if field is not None:
            message = f"Field '{field}': {message}"
        super().__init__(message)


class FormBusyError(DynaformError):
    """Raised when a form is edited while its submission is in flight."""

    def __init__(self, form_id: str):
        self.form_id = form_id
        super().__init__(f"Form '{form_id}' is submitting; edits are disabled until it resolves")


__all__ = [
    "FieldError",
    "DynaformError",
    "SchemaDefinitionError",
    "FormBusyError",
]
