"""Core type definitions for dynaform.

This module defines the fundamental enumerations shared by every layer:
- FieldType: The closed set of input kinds a schema may declare
- FieldErrorCode: Validation error codes for individual fields
- FormState: Lifecycle states of a form controller
- SubmitStatus: Terminal outcome of one submit attempt
- EventType: Event types recorded by the controller's event stream

These types form the contract between schema authors, the embedding
application and the engine.
"""

from enum import Enum


class FieldType(str, Enum):
    """Kinds of input a FieldSpec may describe.

    The set is closed: the renderer holds exactly one render function per member
    and the validator one empty value per member.
    """
    TEXT = "text"
    EMAIL = "email"
    PASSWORD = "password"
    NUMBER = "number"
    TEL = "tel"
    URL = "url"
    DATE = "date"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    FILE = "file"


# Types rendered through the single-line input capability
SINGLE_LINE_TYPES = frozenset({
    FieldType.TEXT,
    FieldType.EMAIL,
    FieldType.PASSWORD,
    FieldType.NUMBER,
    FieldType.TEL,
    FieldType.URL,
    FieldType.DATE,
})

# Types whose value is free text with length bounds
TEXTUAL_TYPES = frozenset({
    FieldType.TEXT,
    FieldType.EMAIL,
    FieldType.PASSWORD,
    FieldType.TEL,
    FieldType.URL,
    FieldType.TEXTAREA,
})

# Types that choose among declared options
CHOICE_TYPES = frozenset({
    FieldType.SELECT,
    FieldType.RADIO,
    FieldType.CHECKBOX,
})


class FieldErrorCode(str, Enum):
    """Validation error codes for individual field failures."""
    REQUIRED = "required"
    INVALID_TYPE = "invalid_type"
    INVALID_FORMAT = "invalid_format"
    INVALID_VALUE = "invalid_value"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    TOO_SMALL = "too_small"
    TOO_LARGE = "too_large"
    PATTERN_MISMATCH = "pattern_mismatch"
    FILE_COUNT_EXCEEDED = "file_count_exceeded"
    FILE_TOO_LARGE = "file_too_large"
    FILE_WRONG_TYPE = "file_wrong_type"
    CUSTOM = "custom"


class FormState(str, Enum):
    """Form controller lifecycle states.

    A controller starts in EDITING and always settles back in EDITING once a
    validation pass or a submit attempt has finished.
    """
    EDITING = "editing"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SubmitStatus(str, Enum):
    """Terminal outcome of a submit attempt."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class EventType(str, Enum):
    """Event types recorded by a form controller."""
    FORM_OPENED = "form.opened"
    FORM_RESET = "form.reset"
    FIELD_UPDATED = "field.updated"
    EDITING_RESUMED = "editing.resumed"
    VALIDATION_STARTED = "validation.started"
    VALIDATION_PASSED = "validation.passed"
    VALIDATION_FAILED = "validation.failed"
    SUBMISSION_STARTED = "submission.started"
    SUBMISSION_SUCCEEDED = "submission.succeeded"
    SUBMISSION_FAILED = "submission.failed"


__all__ = [
    "FieldType",
    "SINGLE_LINE_TYPES",
    "TEXTUAL_TYPES",
    "CHOICE_TYPES",
    "FieldErrorCode",
    "FormState",
    "SubmitStatus",
    "EventType",
]
