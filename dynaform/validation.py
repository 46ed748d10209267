"""Validation engine for dynaform.

This module provides a ValidationEngine that checks a working record against the
field specifications of a schema and produces a structured ValidationResult.

Validation runs in two layers built once, when the schema is compiled:

1. Per-field rules. Each FieldSpec is compiled into a JSON Schema fragment
   (Draft 7) that carries its length, numeric, pattern, format, option and file
   constraints. A required field with an empty value reports only "required";
   an optional field with an empty value is not checked further.
2. Cross-field rules. Predicates over the whole record, each blaming one or more
   fields, evaluated after every per-field rule.

Validation failures are always returned as data; `validate` never raises for
invalid input.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urlparse

import jsonschema
from dateutil import parser as date_parser
from jsonschema import Draft7Validator, FormatChecker

from dynaform.errors import FieldError, SchemaDefinitionError
from dynaform.fields import FieldSpec, FileHandle
from dynaform.logging import get_logger
from dynaform.types import FieldErrorCode, FieldType

logger = get_logger(__name__)


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TEL_PATTERN = re.compile(r"^\+?[0-9 ().-]+$")
TEL_MIN_DIGITS = 7
TEL_MAX_DIGITS = 15
# Calendar date only, YYYY-MM-DD
DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

FORMAT_CHECKER = FormatChecker(formats=())


@FORMAT_CHECKER.checks("email")
def _is_email(instance: Any) -> bool:
    if not isinstance(instance, str):
        return True
    return EMAIL_PATTERN.match(instance) is not None


@FORMAT_CHECKER.checks("url")
def _is_url(instance: Any) -> bool:
    if not isinstance(instance, str):
        return True
    parsed = urlparse(instance)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@FORMAT_CHECKER.checks("tel")
def _is_tel(instance: Any) -> bool:
    if not isinstance(instance, str):
        return True
    digits = sum(ch.isdigit() for ch in instance)
    return TEL_PATTERN.match(instance) is not None and TEL_MIN_DIGITS <= digits <= TEL_MAX_DIGITS


@FORMAT_CHECKER.checks("date", raises=(ValueError, OverflowError))
def _is_date(instance: Any) -> bool:
    if not isinstance(instance, str):
        return True
    if DATE_PATTERN.match(instance) is None:
        return False
    date_parser.isoparse(instance)
    return True


# Field types checked by a named format
FORMATS: Dict[FieldType, str] = {
    FieldType.EMAIL: "email",
    FieldType.URL: "url",
    FieldType.TEL: "tel",
    FieldType.DATE: "date",
}

FORMAT_MESSAGES: Dict[str, str] = {
    "email": "Invalid email address",
    "url": "Invalid URL",
    "tel": "Invalid phone number",
    "date": "Invalid date",
}

# Report order of per-field rules; a field's errors always follow this order
RULE_ORDER: Tuple[str, ...] = (
    "type",
    "minLength",
    "maxLength",
    "minimum",
    "maximum",
    "pattern",
    "format",
    "enum",
    "maxItems",
    "fileSize",
    "fileType",
)


@dataclass(frozen=True)
class CrossFieldRule:
    """A validation predicate over the entire record.

    Attributes:
        check: Callable receiving a read-only view of the record; returns True
            when the record satisfies the rule
        message: Message attached to every blamed field on failure
        blame: Names of the fields the message is attached to

    Examples:
        >>> rule = CrossFieldRule(
        ...     check=lambda r: r.get("end", "") >= r.get("start", ""),
        ...     message="End date must not precede start date",
        ...     blame=("end",),
        ... )
        >>> rule.blame
        ('end',)
    """
    check: Callable[[Mapping[str, Any]], bool]
    message: str
    blame: Tuple[str, ...]

    def __post_init__(self):
        if isinstance(self.blame, str):
            object.__setattr__(self, "blame", (self.blame,))
        else:
            object.__setattr__(self, "blame", tuple(self.blame))
        if not self.blame:
            raise SchemaDefinitionError("cross-field rule must blame at least one field")


def fields_match(source: str, confirmation: str, message: str = "Passwords don't match") -> CrossFieldRule:
    """Build a rule requiring `confirmation` to equal `source`.

    Only the confirmation field is blamed, so the error surfaces next to the
    field the user is expected to fix.

    Examples:
        >>> rule = fields_match("password", "confirmPassword")
        >>> rule.blame
        ('confirmPassword',)
        >>> rule.check({"password": "a", "confirmPassword": "b"})
        False
    """
    return CrossFieldRule(
        check=lambda record: record.get(source) == record.get(confirmation),
        message=message,
        blame=(confirmation,),
    )


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating a working record.

    Either accepted (`is_valid` and no errors) or rejected with an ordered list
    of field errors. Results are recomputed from scratch on every validation,
    so two validations of an unchanged record compare equal.

    Attributes:
        is_valid: Whether the record passed every rule
        errors: Field-level errors, per-field rules first then cross-field rules

    Examples:
        >>> ValidationResult.accepted().field_errors
        {}
    """
    is_valid: bool
    errors: List[FieldError]

    @classmethod
    def accepted(cls) -> "ValidationResult":
        """Return the accepting result."""
        return cls(is_valid=True, errors=[])

    @classmethod
    def rejected(cls, errors: Sequence[FieldError]) -> "ValidationResult":
        """Return a rejecting result carrying `errors`."""
        return cls(is_valid=False, errors=list(errors))

    @property
    def field_errors(self) -> Dict[str, List[str]]:
        """Map of field name to its error messages, in report order."""
        result: Dict[str, List[str]] = {}
        for error in self.errors:
            result.setdefault(error.field, []).append(error.message)
        return result

    def errors_for(self, name: str) -> List[str]:
        """Messages attached to field `name`."""
        return [error.message for error in self.errors if error.field == name]

    @property
    def invalid_fields(self) -> List[str]:
        """Names of the fields carrying at least one error."""
        return list(self.field_errors)

    @property
    def missing_fields(self) -> List[str]:
        """Names of required fields left empty."""
        return [e.field for e in self.errors if e.code == FieldErrorCode.REQUIRED]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
        }


def is_empty(spec: FieldSpec, value: Any) -> bool:
    """Whether `value` counts as empty for `spec`'s type."""
    if value is None:
        return True
    if spec.type == FieldType.CHECKBOX and not spec.options:
        return value is False
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def build_field_schema(spec: FieldSpec) -> Dict[str, Any]:
    """Compile the per-field constraints of `spec` into a JSON Schema fragment.

    Examples:
        >>> spec = FieldSpec(name="age", type=FieldType.NUMBER, minimum=18)
        >>> build_field_schema(spec)
        {'type': 'number', 'minimum': 18}
    """
    if spec.type == FieldType.NUMBER:
        fragment: Dict[str, Any] = {"type": "number"}
        if spec.minimum is not None:
            fragment["minimum"] = spec.minimum
        if spec.maximum is not None:
            fragment["maximum"] = spec.maximum
        return fragment

    if spec.type == FieldType.FILE:
        item: Dict[str, Any] = {
            "type": "object",
            "properties": {"name": {"type": "string"}, "size": {"type": "integer", "minimum": 0}},
            "required": ["name", "size"],
        }
        fragment = {"type": "array", "items": item}
        if spec.file_limit is not None:
            fragment["maxItems"] = spec.file_limit
        if spec.max_size is not None:
            item["properties"]["size"]["maximum"] = spec.max_size
        return fragment

    if spec.type == FieldType.CHECKBOX and not spec.options:
        return {"type": "boolean"}

    if spec.is_multi_valued:
        return {"type": "array", "items": {"enum": list(spec.option_values)}}

    if spec.type in (FieldType.SELECT, FieldType.RADIO, FieldType.CHECKBOX):
        return {"type": "string", "enum": list(spec.option_values)}

    fragment = {"type": "string"}
    if spec.min_length is not None:
        fragment["minLength"] = spec.min_length
    if spec.max_length is not None:
        fragment["maxLength"] = spec.max_length
    if spec.pattern is not None:
        fragment["pattern"] = f"^(?:{spec.pattern})$"
    if spec.type in FORMATS:
        fragment["format"] = FORMATS[spec.type]
    return fragment


class ValidationEngine:
    """Validation engine for one form schema.

    Built once from the same FieldSpecs used for rendering, plus any
    cross-field rules. `validate` is a pure function of the engine and the
    record: no hidden state, no I/O.

    Attributes:
        fields: Field specifications in schema order
        rules: Cross-field rules in declaration order

    Examples:
        >>> engine = ValidationEngine([
        ...     FieldSpec(name="name", type=FieldType.TEXT, label="Name", required=True),
        ...     FieldSpec(name="age", type=FieldType.NUMBER, label="Age", minimum=0),
        ... ])
        >>> engine.validate({"name": "Alice", "age": 30}).is_valid
        True

        >>> result = engine.validate({"name": "", "age": -5})
        >>> result.field_errors
        {'name': ['Name is required'], 'age': ['Age must be at least 0']}
    """

    def __init__(self, fields: Sequence[FieldSpec], rules: Sequence[CrossFieldRule] = ()) -> None:
        """Compile per-field validators.

        Raises:
            SchemaDefinitionError: If a compiled fragment is not a valid JSON Schema
        """
        self.fields: Tuple[FieldSpec, ...] = tuple(fields)
        self.rules: Tuple[CrossFieldRule, ...] = tuple(rules)
        self._validators: Dict[str, Draft7Validator] = {}
        for spec in self.fields:
            fragment = build_field_schema(spec)
            try:
                Draft7Validator.check_schema(fragment)
            except jsonschema.SchemaError as exc:
                raise SchemaDefinitionError(f"invalid constraints: {exc.message}", spec.name) from exc
            self._validators[spec.name] = Draft7Validator(fragment, format_checker=FORMAT_CHECKER)

    def validate(self, record: Mapping[str, Any]) -> ValidationResult:
        """Validate the complete record.

        Args:
            record: Working record, field name -> current value. Missing names
                are treated as empty.

        Returns:
            ValidationResult; accepted when no rule fails
        """
        errors: List[FieldError] = []
        for spec in self.fields:
            errors.extend(self.validate_field(spec, record.get(spec.name)))

        view = MappingProxyType(dict(record))
        for rule in self.rules:
            if not rule.check(view):
                errors.extend(
                    FieldError(field=name, code=FieldErrorCode.CUSTOM, message=rule.message)
                    for name in rule.blame
                )

        if not errors:
            return ValidationResult.accepted()

        logger.debug("validation rejected record", fields=sorted({e.field for e in errors}))
        return ValidationResult.rejected(errors)

    def normalize(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a copy of `record` with numeric text in number fields converted.

        Values that are empty or not numeric are left as they are.

        Examples:
            >>> engine = ValidationEngine([FieldSpec(name="age", type=FieldType.NUMBER)])
            >>> engine.normalize({"age": " 42 "})
            {'age': 42}
        """
        normalized = dict(record)
        for spec in self.fields:
            value = normalized.get(spec.name)
            if spec.type != FieldType.NUMBER or not isinstance(value, str) or is_empty(spec, value):
                continue
            prepared, type_error = _prepare_value(spec, value)
            if type_error is None:
                normalized[spec.name] = prepared
        return normalized

    def validate_field(self, spec: FieldSpec, value: Any) -> List[FieldError]:
        """Apply the per-field rules of `spec` to `value`."""
        if is_empty(spec, value):
            if spec.required:
                return [FieldError(
                    field=spec.name,
                    code=FieldErrorCode.REQUIRED,
                    message=spec.message_for(FieldErrorCode.REQUIRED, f"{_label(spec)} is required"),
                    expected="required field",
                    received=None,
                )]
            return []

        prepared, type_error = _prepare_value(spec, value)
        if type_error is not None:
            return [type_error]

        found = sorted(
            self._validators[spec.name].iter_errors(prepared),
            key=lambda e: (_rank(e), tuple(e.relative_path)),
        )
        field_errors = [self._translate_error(spec, error, prepared) for error in found]
        if spec.type == FieldType.FILE and spec.accept:
            field_errors.extend(_check_accept(spec, prepared))
        return field_errors

    def _translate_error(
        self, spec: FieldSpec, error: jsonschema.ValidationError, value: Any
    ) -> FieldError:
        """Translate a jsonschema ValidationError into a FieldError.

        Error mapping:
            - 'type' errors -> INVALID_TYPE
            - 'minLength' / 'maxLength' -> TOO_SHORT / TOO_LONG
            - 'minimum' / 'maximum' -> TOO_SMALL / TOO_LARGE
            - 'pattern' -> PATTERN_MISMATCH
            - 'format' -> INVALID_FORMAT
            - 'enum' -> INVALID_VALUE
            - 'maxItems' on a file field -> FILE_COUNT_EXCEEDED
            - 'maximum' on a file size -> FILE_TOO_LARGE
            - anything else -> CUSTOM
        """
        label = _label(spec)

        if spec.type == FieldType.FILE and error.relative_path:
            index = error.relative_path[0]
            item = value[index] if isinstance(index, int) else None
            name = item.get("name", f"#{index + 1}") if isinstance(item, dict) else f"#{index + 1}"
            if error.validator == "maximum":
                return _error(
                    spec, FieldErrorCode.FILE_TOO_LARGE,
                    f"File '{name}' must be less than {format_bytes(error.validator_value)}",
                    expected=f"at most {error.validator_value} bytes",
                    received=error.instance,
                )
            return _error(
                spec, FieldErrorCode.INVALID_TYPE,
                f"{label} contains an unreadable file entry",
                expected="file handle",
                received=type(error.instance).__name__,
            )

        if error.validator == "type":
            expected = error.validator_value
            message = f"{label} must be a number" if expected == "number" else f"{label} has an invalid value"
            return _error(
                spec, FieldErrorCode.INVALID_TYPE, message,
                expected=expected, received=type(error.instance).__name__,
            )

        if error.validator == "minLength":
            return _error(
                spec, FieldErrorCode.TOO_SHORT,
                f"{label} must be at least {error.validator_value} characters",
                expected=f"minimum {error.validator_value} characters",
                received=f"{len(error.instance)} characters",
            )

        if error.validator == "maxLength":
            return _error(
                spec, FieldErrorCode.TOO_LONG,
                f"{label} must be at most {error.validator_value} characters",
                expected=f"maximum {error.validator_value} characters",
                received=f"{len(error.instance)} characters",
            )

        if error.validator == "minimum":
            return _error(
                spec, FieldErrorCode.TOO_SMALL,
                f"{label} must be at least {error.validator_value}",
                expected=f"minimum: {error.validator_value}",
                received=error.instance,
            )

        if error.validator == "maximum":
            return _error(
                spec, FieldErrorCode.TOO_LARGE,
                f"{label} must be at most {error.validator_value}",
                expected=f"maximum: {error.validator_value}",
                received=error.instance,
            )

        if error.validator == "pattern":
            return _error(
                spec, FieldErrorCode.PATTERN_MISMATCH,
                f"{label} has an invalid format",
                expected=f"pattern: {spec.pattern}",
                received=error.instance,
            )

        if error.validator == "format":
            return _error(
                spec, FieldErrorCode.INVALID_FORMAT,
                FORMAT_MESSAGES.get(error.validator_value, f"{label} has an invalid format"),
                expected=error.validator_value,
                received=error.instance,
            )

        if error.validator == "enum":
            allowed = ", ".join(str(v) for v in error.validator_value)
            return _error(
                spec, FieldErrorCode.INVALID_VALUE,
                f"{label} must be one of: {allowed}",
                expected=list(error.validator_value),
                received=error.instance,
            )

        if error.validator == "maxItems":
            limit = error.validator_value
            message = "Only one file allowed" if limit == 1 else f"Maximum of {limit} files allowed"
            return _error(
                spec, FieldErrorCode.FILE_COUNT_EXCEEDED, message,
                expected=f"at most {limit} files",
                received=f"{len(error.instance)} files",
            )

        return _error(
            spec, FieldErrorCode.CUSTOM,
            f"{label} validation failed: {error.message}",
            expected=error.validator_value,
            received=error.instance,
        )


def format_bytes(size: Union[int, float]) -> str:
    """Render a byte count the way limits are usually stated.

    Examples:
        >>> format_bytes(5 * 1024 * 1024)
        '5MB'
        >>> format_bytes(1536)
        '1.5KB'
    """
    for unit, factor in (("GB", 1024 ** 3), ("MB", 1024 ** 2), ("KB", 1024)):
        if size >= factor:
            return f"{size / factor:g}{unit}"
    return f"{size}B"


def _label(spec: FieldSpec) -> str:
    return spec.label or spec.name


def _error(
    spec: FieldSpec,
    code: FieldErrorCode,
    message: str,
    expected: Optional[Any] = None,
    received: Optional[Any] = None,
) -> FieldError:
    return FieldError(
        field=spec.name,
        code=code,
        message=spec.message_for(code, message),
        expected=expected,
        received=received,
    )


def _rank(error: jsonschema.ValidationError) -> int:
    validator = str(error.validator)
    if validator == "maximum" and error.relative_path:
        validator = "fileSize"
    try:
        return RULE_ORDER.index(validator)
    except ValueError:
        return len(RULE_ORDER)


def _prepare_value(spec: FieldSpec, value: Any) -> Tuple[Any, Optional[FieldError]]:
    """Bring `value` into the JSON shape its fragment expects.

    Returns the prepared value, or a type error when the value cannot be
    interpreted for the field's type at all.
    """
    if spec.type == FieldType.NUMBER:
        if isinstance(value, bool):
            return value, _number_error(spec, value)
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                return value, _number_error(spec, value)
        if isinstance(value, float):
            if not math.isfinite(value):
                return value, _number_error(spec, value)
            if value.is_integer():
                value = int(value)
        return value, None

    if spec.type == FieldType.DATE and isinstance(value, datetime):
        return value.date().isoformat(), None
    if spec.type == FieldType.DATE and isinstance(value, date):
        return value.isoformat(), None

    if spec.type == FieldType.FILE and isinstance(value, (list, tuple)):
        return [item.to_dict() if isinstance(item, FileHandle) else item for item in value], None

    if isinstance(value, tuple):
        return list(value), None

    return value, None


def _number_error(spec: FieldSpec, value: Any) -> FieldError:
    return _error(
        spec, FieldErrorCode.INVALID_TYPE,
        f"{_label(spec)} must be a number",
        expected="number",
        received=type(value).__name__,
    )


def _accept_tokens(accept: str) -> List[str]:
    return [token.strip().lower() for token in accept.split(",") if token.strip()]


def accepts_file(accept: Optional[str], name: str, content_type: Optional[str] = None) -> bool:
    """Whether a file passes an `accept` filter such as ".pdf,.doc,image/*".

    Extension tokens match the file name; MIME tokens match `content_type`
    when the picker reported one.

    Examples:
        >>> accepts_file(".pdf,.txt", "notes.TXT")
        True
        >>> accepts_file("image/*", "photo.png", "image/png")
        True
        >>> accepts_file(".pdf", "photo.png")
        False
    """
    if not accept:
        return True
    lowered = name.lower()
    mime = (content_type or "").lower()
    for token in _accept_tokens(accept):
        if token.startswith("."):
            if lowered.endswith(token):
                return True
        elif token.endswith("/*"):
            if mime.startswith(token[:-1]):
                return True
        elif mime == token:
            return True
    return False


def _check_accept(spec: FieldSpec, files: Any) -> List[FieldError]:
    if not isinstance(files, list):
        return []
    errors: List[FieldError] = []
    for item in files:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            continue
        if not accepts_file(spec.accept, item["name"], item.get("contentType")):
            errors.append(_error(
                spec, FieldErrorCode.FILE_WRONG_TYPE,
                f"File '{item['name']}' is not an accepted type ({spec.accept})",
                expected=spec.accept,
                received=item["name"],
            ))
    return errors


__all__ = [
    "CrossFieldRule",
    "ValidationEngine",
    "ValidationResult",
    "accepts_file",
    "build_field_schema",
    "fields_match",
    "format_bytes",
    "is_empty",
]
