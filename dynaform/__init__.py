"""dynaform: schema-driven form rendering and validation.

dynaform turns one declarative schema into one validated, submittable form:
- Field specifications describing each input's type, constraints and display text
- A validator built from those specifications, with cross-field rules layered on top
- A field renderer mapping each field type to a capability-typed widget
- A form controller running the edit / validate / submit cycle with a
  no-double-submit guarantee and structured outcomes

Basic usage:
    >>> import asyncio
    >>> from dynaform import FieldSpec, FieldType, FormController, FormSchema
    >>> schema = FormSchema([FieldSpec(name="name", type=FieldType.TEXT, label="Name", required=True)])
    >>> form = FormController(schema, submit=lambda record: None)
    >>> asyncio.run(form.submit()).validation.field_errors
    {'name': ['Name is required']}
"""

__version__ = "0.1.0"
__author__ = "dynaform Team"

# Version info
VERSION = (0, 1, 0)

# Core exports
from dynaform.controller import FormController, SubmitOutcome
from dynaform.errors import FieldError, FormBusyError, SchemaDefinitionError
from dynaform.fields import FieldSpec, FileHandle, Option
from dynaform.rendering import FieldRenderer, FieldView
from dynaform.schema import FormSchema
from dynaform.types import FieldType, FormState, SubmitStatus
from dynaform.validation import CrossFieldRule, ValidationEngine, ValidationResult, fields_match

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "CrossFieldRule",
    "FieldError",
    "FieldRenderer",
    "FieldSpec",
    "FieldType",
    "FieldView",
    "FileHandle",
    "FormBusyError",
    "FormController",
    "FormSchema",
    "FormState",
    "Option",
    "SchemaDefinitionError",
    "SubmitOutcome",
    "SubmitStatus",
    "ValidationEngine",
    "ValidationResult",
    "fields_match",
]
