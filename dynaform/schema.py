"""Form schemas for dynaform.

A FormSchema is an ordered collection of FieldSpecs (order = display and tab
order) plus the ValidationEngine compiled from them and from any cross-field
rules. Construction refuses inconsistent schemas: duplicate field names and
rules blaming unknown fields raise SchemaDefinitionError.

Keeping the cross-field rules consistent with each field's declared `required`
flag and type is the schema author's responsibility; the engine does not
cross-check the two.

Usage:
    >>> from dynaform.fields import FieldSpec
    >>> from dynaform.schema import FormSchema
    >>> from dynaform.types import FieldType
    >>> from dynaform.validation import fields_match
    >>> schema = FormSchema(
    ...     fields=[
    ...         FieldSpec(name="password", type=FieldType.PASSWORD, required=True),
    ...         FieldSpec(name="confirmPassword", type=FieldType.PASSWORD, required=True),
    ...     ],
    ...     rules=[fields_match("password", "confirmPassword")],
    ... )
    >>> schema.field_names
    ('password', 'confirmPassword')
    >>> schema.validate({"password": "a", "confirmPassword": "b"}).field_errors
    {'confirmPassword': ["Passwords don't match"]}
"""

from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Tuple

from dynaform.errors import SchemaDefinitionError
from dynaform.fields import FieldSpec
from dynaform.logging import get_logger
from dynaform.validation import CrossFieldRule, ValidationEngine, ValidationResult

logger = get_logger(__name__)


class FormSchema:
    """Ordered field specifications plus their compiled validator.

    Attributes:
        fields: Field specifications in display order
        rules: Cross-field rules in declaration order
        validator: ValidationEngine compiled from `fields` and `rules`
        title: Optional display title of the form

    Raises:
        SchemaDefinitionError: On duplicate field names or rules blaming
            fields that are not part of the schema
    """

    def __init__(
        self,
        fields: Sequence[FieldSpec],
        rules: Sequence[CrossFieldRule] = (),
        title: Optional[str] = None,
    ):
        self.fields: Tuple[FieldSpec, ...] = tuple(fields)
        self.rules: Tuple[CrossFieldRule, ...] = tuple(rules)
        self.title = title

        self._by_name: Dict[str, FieldSpec] = {}
        for spec in self.fields:
            if spec.name in self._by_name:
                raise SchemaDefinitionError("duplicate field name", spec.name)
            self._by_name[spec.name] = spec

        for rule in self.rules:
            unknown = [name for name in rule.blame if name not in self._by_name]
            if unknown:
                raise SchemaDefinitionError(
                    f"cross-field rule '{rule.message}' blames unknown fields: {', '.join(unknown)}"
                )

        self.validator = ValidationEngine(self.fields, self.rules)
        logger.debug("form schema compiled", title=title, fields=len(self.fields), rules=len(self.rules))

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def field_names(self) -> Tuple[str, ...]:
        """Field names in display order."""
        return tuple(spec.name for spec in self.fields)

    def field(self, name: str) -> FieldSpec:
        """Return the FieldSpec named `name`.

        Raises:
            KeyError: If no such field exists
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Form schema has no field named '{name}'") from None

    def initial_record(self, defaults: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Build a working record from `defaults` and each type's empty value.

        List defaults are copied so the record never aliases caller data.

        Raises:
            SchemaDefinitionError: If `defaults` names a field the schema lacks

        Examples:
            >>> from dynaform.types import FieldType
            >>> schema = FormSchema([
            ...     FieldSpec(name="name", type=FieldType.TEXT),
            ...     FieldSpec(name="terms", type=FieldType.CHECKBOX),
            ... ])
            >>> schema.initial_record({"name": "Ada"})
            {'name': 'Ada', 'terms': False}
        """
        defaults = defaults or {}
        unknown = sorted(name for name in defaults if name not in self._by_name)
        if unknown:
            raise SchemaDefinitionError(f"defaults name unknown fields: {', '.join(unknown)}")

        record: Dict[str, Any] = {}
        for spec in self.fields:
            value = defaults.get(spec.name, spec.empty_value())
            record[spec.name] = list(value) if isinstance(value, (list, tuple)) else value
        return record

    def validate(self, record: Mapping[str, Any]) -> ValidationResult:
        """Validate `record` with the compiled validator."""
        return self.validator.validate(record)

    def normalize(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Copy of `record` with typed values, as handed to a submit sink."""
        return self.validator.normalize(record)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the field specifications; cross-field rules are code and are omitted."""
        result: Dict[str, Any] = {"fields": [spec.to_dict() for spec in self.fields]}
        if self.title is not None:
            result["title"] = self.title
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rules: Sequence[CrossFieldRule] = ()) -> "FormSchema":
        """Build a schema from serialized field descriptions and in-code rules."""
        return cls(
            fields=[FieldSpec.from_dict(f) for f in data["fields"]],
            rules=rules,
            title=data.get("title"),
        )


__all__ = [
    "FormSchema",
]
