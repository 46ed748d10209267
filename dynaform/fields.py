"""Field specifications for dynaform.

A FieldSpec is a data-only description of one form input: its type, its
constraints and its display text. FieldSpecs are immutable and check their own
consistency at construction time, so a schema built from them never carries a
constraint that is meaningless for its field type.

Usage:
    >>> from dynaform.fields import FieldSpec, Option
    >>> from dynaform.types import FieldType
    >>> role = FieldSpec(
    ...     name="role",
    ...     type=FieldType.SELECT,
    ...     label="Role",
    ...     required=True,
    ...     options=[Option("User", "user"), Option("Admin", "admin")],
    ... )
    >>> role.option_values
    ('user', 'admin')
    >>> role.empty_value()
    ''
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from dynaform.errors import SchemaDefinitionError
from dynaform.types import CHOICE_TYPES, TEXTUAL_TYPES, FieldErrorCode, FieldType


@dataclass(frozen=True)
class Option:
    """One choice of a select, radio or checkbox-group field."""
    label: str
    value: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {"label": self.label, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Option":
        """Create Option from dict."""
        return cls(label=data["label"], value=data["value"])


@dataclass(frozen=True)
class FileHandle:
    """Opaque metadata for one selected file.

    File contents never cross the engine boundary: validation looks at `name`,
    `size` and `content_type` only, and `content_ref` is forwarded untouched to
    the submit sink.

    Attributes:
        name: File name as reported by the picker (e.g., "cv.pdf")
        size: Size in bytes
        content_ref: Optional - toolkit-specific reference to the contents
        content_type: Optional - MIME type reported by the picker
    """
    name: str
    size: int
    content_ref: Optional[Any] = None
    content_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the metadata to dict; `content_ref` is never serialized."""
        result: Dict[str, Any] = {"name": self.name, "size": self.size}
        if self.content_type is not None:
            result["contentType"] = self.content_type
        return result


# Which constraint attributes are meaningful for which field types
CONSTRAINT_TYPES: Dict[str, frozenset] = {
    "min_length": TEXTUAL_TYPES,
    "max_length": TEXTUAL_TYPES,
    "pattern": frozenset(TEXTUAL_TYPES - {FieldType.TEXTAREA}),
    "minimum": frozenset({FieldType.NUMBER}),
    "maximum": frozenset({FieldType.NUMBER}),
    "multiple": frozenset({FieldType.SELECT, FieldType.FILE}),
    "rows": frozenset({FieldType.TEXTAREA}),
    "accept": frozenset({FieldType.FILE}),
    "max_files": frozenset({FieldType.FILE}),
    "max_size": frozenset({FieldType.FILE}),
}

# camelCase keys used by serialized field descriptions
_CAMEL_KEYS: Dict[str, str] = {
    "min_length": "minLength",
    "max_length": "maxLength",
    "pattern": "pattern",
    "pattern_message": "patternMessage",
    "minimum": "min",
    "maximum": "max",
    "multiple": "multiple",
    "rows": "rows",
    "accept": "accept",
    "max_files": "maxFiles",
    "max_size": "maxSize",
}


@dataclass(frozen=True)
class FieldSpec:
    """Immutable description of one form input.

    Attributes:
        name: Unique key within a schema; the slot in the working record
        type: Kind of input (see FieldType)
        label: Display label
        placeholder: Optional placeholder text
        description: Optional help text rendered below the control
        required: Whether an empty value fails validation
        min_length: Minimum string length (text-like types and textarea)
        max_length: Maximum string length (text-like types and textarea)
        pattern: Regular expression the whole value must match (single-line text types)
        pattern_message: Message reported on a pattern mismatch
        minimum: Lower numeric bound (number)
        maximum: Upper numeric bound (number)
        options: Enumerated choices (select, radio, checkbox group)
        multiple: Allow several values (select, file)
        rows: Visible row count (textarea)
        accept: Comma-separated extension / MIME filter (file)
        max_files: Maximum number of attached files (file)
        max_size: Maximum size in bytes of each attached file (file)
        messages: Message overrides keyed by FieldErrorCode value

    Raises:
        SchemaDefinitionError: If a constraint does not belong to the field
            type, bounds are inverted, options are missing or duplicated, or the
            pattern does not compile.
    """
    name: str
    type: FieldType
    label: str = ""
    placeholder: Optional[str] = None
    description: Optional[str] = None
    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    pattern_message: Optional[str] = None
    minimum: Optional[Union[int, float]] = None
    maximum: Optional[Union[int, float]] = None
    options: Tuple[Option, ...] = ()
    multiple: bool = False
    rows: Optional[int] = None
    accept: Optional[str] = None
    max_files: Optional[int] = None
    max_size: Optional[int] = None
    messages: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Normalize enum/option inputs and enforce construction-time invariants."""
        if isinstance(self.type, str) and not isinstance(self.type, FieldType):
            try:
                object.__setattr__(self, "type", FieldType(self.type))
            except ValueError:
                raise SchemaDefinitionError(f"unknown field type '{self.type}'", self.name) from None

        object.__setattr__(self, "options", tuple(_coerce_option(o) for o in self.options))
        object.__setattr__(self, "messages", dict(self.messages))

        if not self.name:
            raise SchemaDefinitionError("field name must be a non-empty string")

        self._check_constraint_types()
        self._check_bounds()
        self._check_options()

        if self.pattern is not None:
            try:
                re.compile(self.pattern)
            except re.error as exc:
                raise SchemaDefinitionError(f"pattern does not compile: {exc}", self.name) from exc

        known_codes = {code.value for code in FieldErrorCode}
        for code in self.messages:
            if code not in known_codes:
                raise SchemaDefinitionError(f"message override for unknown error code '{code}'", self.name)

    def _check_constraint_types(self) -> None:
        for attr, allowed in CONSTRAINT_TYPES.items():
            value = getattr(self, attr)
            if value is None or value is False:
                continue
            if self.type not in allowed:
                raise SchemaDefinitionError(
                    f"'{attr}' is not meaningful for {self.type.value} fields", self.name
                )
        if self.options and self.type not in CHOICE_TYPES:
            raise SchemaDefinitionError(f"'options' is not meaningful for {self.type.value} fields", self.name)

    def _check_bounds(self) -> None:
        for attr in ("min_length", "max_length", "rows"):
            value = getattr(self, attr)
            if value is not None and value < 0:
                raise SchemaDefinitionError(f"'{attr}' must not be negative", self.name)
        for attr in ("max_files", "max_size"):
            value = getattr(self, attr)
            if value is not None and value < 1:
                raise SchemaDefinitionError(f"'{attr}' must be at least 1", self.name)
        if self.min_length is not None and self.max_length is not None and self.min_length > self.max_length:
            raise SchemaDefinitionError("'min_length' exceeds 'max_length'", self.name)
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise SchemaDefinitionError("'minimum' exceeds 'maximum'", self.name)
        if self.max_files is not None and self.max_files > 1 and not self.multiple:
            raise SchemaDefinitionError("'max_files' above 1 requires 'multiple'", self.name)

    def _check_options(self) -> None:
        if self.type in (FieldType.SELECT, FieldType.RADIO) and not self.options:
            raise SchemaDefinitionError(f"{self.type.value} fields require at least one option", self.name)
        values = [option.value for option in self.options]
        duplicates = sorted({v for v in values if values.count(v) > 1})
        if duplicates:
            raise SchemaDefinitionError(f"duplicate option values: {', '.join(duplicates)}", self.name)

    @property
    def option_values(self) -> Tuple[str, ...]:
        """Declared option values, in display order."""
        return tuple(option.value for option in self.options)

    @property
    def is_multi_valued(self) -> bool:
        """Whether the working-record value is a list."""
        if self.type == FieldType.FILE:
            return True
        if self.type == FieldType.SELECT:
            return self.multiple
        if self.type == FieldType.CHECKBOX:
            return bool(self.options)
        return False

    @property
    def file_limit(self) -> Optional[int]:
        """Maximum number of files, or None when unbounded."""
        if self.max_files is not None:
            return self.max_files
        return None if self.multiple else 1

    def empty_value(self) -> Any:
        """Return the empty value for this field's type.

        Multi-valued fields start as an empty list, a boolean checkbox as
        False, everything else as an empty string.
        """
        if self.is_multi_valued:
            return []
        if self.type == FieldType.CHECKBOX:
            return False
        return ""

    def message_for(self, code: FieldErrorCode, default: str) -> str:
        """Return the author's override for `code`, or `default`."""
        if code == FieldErrorCode.PATTERN_MISMATCH and self.pattern_message:
            return self.messages.get(code.value, self.pattern_message)
        return self.messages.get(code.value, default)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a camelCase dict for serialization."""
        result: Dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "label": self.label,
        }
        if self.placeholder is not None:
            result["placeholder"] = self.placeholder
        if self.description is not None:
            result["description"] = self.description
        if self.required:
            result["required"] = True
        for attr, key in _CAMEL_KEYS.items():
            value = getattr(self, attr)
            if value is not None and value is not False:
                result[key] = value
        if self.options:
            result["options"] = [option.to_dict() for option in self.options]
        if self.messages:
            result["messages"] = dict(self.messages)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldSpec":
        """Create FieldSpec from a camelCase dict.

        Examples:
            >>> spec = FieldSpec.from_dict({"name": "age", "type": "number", "min": 18})
            >>> spec.minimum
            18
        """
        kwargs: Dict[str, Any] = {
            "name": data["name"],
            "type": data["type"],
            "label": data.get("label", ""),
            "placeholder": data.get("placeholder"),
            "description": data.get("description"),
            "required": bool(data.get("required", False)),
            "options": tuple(Option.from_dict(o) for o in data.get("options", [])),
            "messages": data.get("messages", {}),
        }
        for attr, key in _CAMEL_KEYS.items():
            if key in data:
                kwargs[attr] = data[key]
        return cls(**kwargs)


def _coerce_option(option: Union[Option, Dict[str, Any], Tuple[str, str]]) -> Option:
    if isinstance(option, Option):
        return option
    if isinstance(option, dict):
        return Option.from_dict(option)
    label, value = option
    return Option(label=label, value=value)


__all__ = [
    "Option",
    "FileHandle",
    "FieldSpec",
    "CONSTRAINT_TYPES",
]
