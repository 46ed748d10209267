"""Unit tests for field specifications and form schemas.

Tests cover:
- Construction-time invariants of FieldSpec
- Type/constraint consistency
- FormSchema construction (unique names, cross-field rule references)
- Working record initialization from defaults
- Serialization from camelCase field descriptions
"""

import pytest

from dynaform.errors import SchemaDefinitionError
from dynaform.fields import FieldSpec, FileHandle, Option
from dynaform.schema import FormSchema
from dynaform.types import FieldType
from dynaform.validation import CrossFieldRule, fields_match


class TestFieldSpecConstruction:
    """Test FieldSpec normalization and defaults."""

    def test_minimal_field(self):
        """Should build a field from name and type only."""
        spec = FieldSpec(name="name", type=FieldType.TEXT)
        assert spec.name == "name"
        assert spec.type == FieldType.TEXT
        assert spec.label == ""
        assert spec.required is False
        assert spec.options == ()

    def test_type_given_as_string(self):
        """Should coerce a string type to FieldType."""
        spec = FieldSpec(name="email", type="email")
        assert spec.type == FieldType.EMAIL

    def test_unknown_type_string(self):
        """Should refuse a type outside the closed set."""
        with pytest.raises(SchemaDefinitionError, match="unknown field type 'color'"):
            FieldSpec(name="favourite", type="color")

    def test_options_from_dicts_and_tuples(self):
        """Should normalize option dicts and (label, value) pairs to Option."""
        spec = FieldSpec(
            name="role",
            type=FieldType.RADIO,
            options=[{"label": "User", "value": "user"}, ("Admin", "admin")],
        )
        assert spec.options == (Option("User", "user"), Option("Admin", "admin"))
        assert spec.option_values == ("user", "admin")

    def test_empty_name_rejected(self):
        """Should refuse an empty field name."""
        with pytest.raises(SchemaDefinitionError):
            FieldSpec(name="", type=FieldType.TEXT)

    def test_field_spec_is_immutable(self):
        """Should not allow attribute assignment after construction."""
        spec = FieldSpec(name="name", type=FieldType.TEXT)
        with pytest.raises(AttributeError):
            spec.required = True


class TestConstraintConsistency:
    """Test that constraints only appear on the types they belong to."""

    def test_length_bounds_on_number_rejected(self):
        """Should refuse string length bounds on a number field."""
        with pytest.raises(SchemaDefinitionError, match="'min_length' is not meaningful for number fields"):
            FieldSpec(name="age", type=FieldType.NUMBER, min_length=1)

    def test_numeric_bounds_on_text_rejected(self):
        """Should refuse numeric bounds on a text field."""
        with pytest.raises(SchemaDefinitionError, match="'maximum'"):
            FieldSpec(name="name", type=FieldType.TEXT, maximum=10)

    def test_options_on_text_rejected(self):
        """Should refuse options on a field without select semantics."""
        with pytest.raises(SchemaDefinitionError, match="'options'"):
            FieldSpec(name="name", type=FieldType.TEXT, options=[Option("A", "a")])

    def test_file_constraints_on_text_rejected(self):
        """Should refuse file constraints outside file fields."""
        with pytest.raises(SchemaDefinitionError, match="'max_size'"):
            FieldSpec(name="name", type=FieldType.TEXT, max_size=1024)

    def test_rows_only_on_textarea(self):
        """Should accept rows on textarea and refuse it elsewhere."""
        assert FieldSpec(name="message", type=FieldType.TEXTAREA, rows=4).rows == 4
        with pytest.raises(SchemaDefinitionError, match="'rows'"):
            FieldSpec(name="subject", type=FieldType.TEXT, rows=4)

    def test_pattern_not_on_textarea(self):
        """Should refuse a pattern on a multi-line field."""
        with pytest.raises(SchemaDefinitionError, match="'pattern'"):
            FieldSpec(name="message", type=FieldType.TEXTAREA, pattern="[a-z]+")

    @pytest.mark.parametrize("field_type", [FieldType.SELECT, FieldType.RADIO])
    def test_choice_fields_require_options(self, field_type):
        """Should refuse select and radio fields without options."""
        with pytest.raises(SchemaDefinitionError, match="at least one option"):
            FieldSpec(name="role", type=field_type)

    def test_checkbox_without_options_allowed(self):
        """Should accept a plain boolean checkbox."""
        spec = FieldSpec(name="terms", type=FieldType.CHECKBOX, required=True)
        assert spec.is_multi_valued is False

    def test_duplicate_option_values_rejected(self):
        """Should refuse option values that are not unique within the field."""
        with pytest.raises(SchemaDefinitionError, match="duplicate option values: a"):
            FieldSpec(
                name="letter",
                type=FieldType.SELECT,
                options=[Option("A", "a"), Option("Also A", "a")],
            )

    def test_inverted_length_bounds_rejected(self):
        """Should refuse min_length greater than max_length."""
        with pytest.raises(SchemaDefinitionError, match="'min_length' exceeds 'max_length'"):
            FieldSpec(name="name", type=FieldType.TEXT, min_length=10, max_length=2)

    def test_inverted_numeric_bounds_rejected(self):
        """Should refuse minimum greater than maximum."""
        with pytest.raises(SchemaDefinitionError, match="'minimum' exceeds 'maximum'"):
            FieldSpec(name="age", type=FieldType.NUMBER, minimum=10, maximum=1)

    def test_invalid_pattern_rejected(self):
        """Should refuse a pattern that does not compile."""
        with pytest.raises(SchemaDefinitionError, match="pattern does not compile"):
            FieldSpec(name="code", type=FieldType.TEXT, pattern="[a-")

    def test_max_files_above_one_requires_multiple(self):
        """Should refuse a multi-file limit on a single-file field."""
        with pytest.raises(SchemaDefinitionError, match="requires 'multiple'"):
            FieldSpec(name="attachment", type=FieldType.FILE, max_files=3)

    def test_non_positive_max_size_rejected(self):
        """Should refuse a zero file size limit."""
        with pytest.raises(SchemaDefinitionError, match="'max_size' must be at least 1"):
            FieldSpec(name="attachment", type=FieldType.FILE, max_size=0)

    def test_unknown_message_code_rejected(self):
        """Should refuse message overrides for codes that do not exist."""
        with pytest.raises(SchemaDefinitionError, match="unknown error code 'too_blue'"):
            FieldSpec(name="name", type=FieldType.TEXT, messages={"too_blue": "?"})

    def test_error_names_the_field(self):
        """Should carry the offending field name on the exception."""
        with pytest.raises(SchemaDefinitionError) as exc_info:
            FieldSpec(name="age", type=FieldType.NUMBER, pattern="[0-9]+")
        assert exc_info.value.field == "age"
        assert str(exc_info.value).startswith("Field 'age':")


class TestEmptyValues:
    """Test the per-type empty value used for new working records."""

    @pytest.mark.parametrize(
        "spec, expected",
        [
            (FieldSpec(name="t", type=FieldType.TEXT), ""),
            (FieldSpec(name="n", type=FieldType.NUMBER), ""),
            (FieldSpec(name="d", type=FieldType.DATE), ""),
            (FieldSpec(name="s", type=FieldType.SELECT, options=[Option("A", "a")]), ""),
            (FieldSpec(name="m", type=FieldType.SELECT, options=[Option("A", "a")], multiple=True), []),
            (FieldSpec(name="c", type=FieldType.CHECKBOX), False),
            (FieldSpec(name="g", type=FieldType.CHECKBOX, options=[Option("A", "a")]), []),
            (FieldSpec(name="f", type=FieldType.FILE), []),
        ],
    )
    def test_empty_value(self, spec, expected):
        """Should start each field type at its empty value."""
        assert spec.empty_value() == expected

    def test_file_limit(self):
        """Should derive the file count limit from max_files and multiple."""
        assert FieldSpec(name="f", type=FieldType.FILE).file_limit == 1
        assert FieldSpec(name="f", type=FieldType.FILE, multiple=True).file_limit is None
        assert FieldSpec(name="f", type=FieldType.FILE, multiple=True, max_files=3).file_limit == 3


class TestFieldSpecSerialization:
    """Test camelCase field descriptions."""

    def test_from_dict_camel_case(self):
        """Should read camelCase constraint keys."""
        spec = FieldSpec.from_dict({
            "name": "attachment",
            "type": "file",
            "label": "Attachments",
            "accept": ".pdf",
            "multiple": True,
            "maxFiles": 3,
            "maxSize": 5 * 1024 * 1024,
        })
        assert spec.type == FieldType.FILE
        assert spec.max_files == 3
        assert spec.max_size == 5 * 1024 * 1024
        assert spec.accept == ".pdf"

    def test_to_dict_omits_unset_constraints(self):
        """Should only serialize constraints that are set."""
        spec = FieldSpec(name="age", type=FieldType.NUMBER, label="Age", required=True, minimum=18)
        assert spec.to_dict() == {
            "name": "age",
            "type": "number",
            "label": "Age",
            "required": True,
            "min": 18,
        }

    def test_file_handle_to_dict_omits_content(self):
        """Should never serialize the content reference of a file."""
        handle = FileHandle(name="cv.pdf", size=1024, content_ref=object(), content_type="application/pdf")
        assert handle.to_dict() == {"name": "cv.pdf", "size": 1024, "contentType": "application/pdf"}


class TestFormSchemaConstruction:
    """Test FormSchema invariants."""

    def test_fields_keep_declaration_order(self):
        """Should preserve field order for display and tab order."""
        schema = FormSchema([
            FieldSpec(name="b", type=FieldType.TEXT),
            FieldSpec(name="a", type=FieldType.TEXT),
        ])
        assert schema.field_names == ("b", "a")
        assert [spec.name for spec in schema] == ["b", "a"]
        assert len(schema) == 2
        assert "a" in schema

    def test_duplicate_field_names_rejected(self):
        """Should refuse to build a schema with duplicate names."""
        with pytest.raises(SchemaDefinitionError, match="duplicate field name"):
            FormSchema([
                FieldSpec(name="email", type=FieldType.EMAIL),
                FieldSpec(name="email", type=FieldType.TEXT),
            ])

    def test_rule_blaming_unknown_field_rejected(self):
        """Should refuse cross-field rules that blame fields not in the schema."""
        with pytest.raises(SchemaDefinitionError, match="unknown fields: confirmPassword"):
            FormSchema(
                [FieldSpec(name="password", type=FieldType.PASSWORD)],
                rules=[fields_match("password", "confirmPassword")],
            )

    def test_rule_without_blame_rejected(self):
        """Should refuse a cross-field rule that blames nobody."""
        with pytest.raises(SchemaDefinitionError, match="at least one field"):
            CrossFieldRule(check=lambda record: True, message="never", blame=())

    def test_rule_blame_given_as_string(self):
        """Should accept a single blamed field name."""
        rule = CrossFieldRule(check=lambda record: True, message="ok", blame="end")
        assert rule.blame == ("end",)

    def test_field_lookup(self):
        """Should return fields by name and raise KeyError otherwise."""
        schema = FormSchema([FieldSpec(name="name", type=FieldType.TEXT)])
        assert schema.field("name").type == FieldType.TEXT
        with pytest.raises(KeyError):
            schema.field("missing")

    def test_schema_to_dict_and_back(self):
        """Should rebuild an equivalent schema from its serialized fields."""
        schema = FormSchema(
            [FieldSpec(name="role", type=FieldType.SELECT, options=[Option("User", "user")])],
            title="Roles",
        )
        rebuilt = FormSchema.from_dict(schema.to_dict())
        assert rebuilt.title == "Roles"
        assert rebuilt.fields == schema.fields


class TestInitialRecord:
    """Test working record initialization."""

    def _schema(self):
        return FormSchema([
            FieldSpec(name="name", type=FieldType.TEXT),
            FieldSpec(name="terms", type=FieldType.CHECKBOX),
            FieldSpec(name="tags", type=FieldType.CHECKBOX, options=[Option("A", "a"), Option("B", "b")]),
            FieldSpec(name="attachment", type=FieldType.FILE, multiple=True),
        ])

    def test_empty_values_without_defaults(self):
        """Should start every field at its type's empty value."""
        assert self._schema().initial_record() == {
            "name": "",
            "terms": False,
            "tags": [],
            "attachment": [],
        }

    def test_partial_defaults_applied(self):
        """Should apply defaults for the fields they name only."""
        record = self._schema().initial_record({"name": "Ada", "tags": ["b"]})
        assert record["name"] == "Ada"
        assert record["tags"] == ["b"]
        assert record["terms"] is False

    def test_list_defaults_are_copied(self):
        """Should not alias list defaults supplied by the caller."""
        tags = ["a"]
        record = self._schema().initial_record({"tags": tags})
        record["tags"].append("b")
        assert tags == ["a"]

    def test_unknown_default_rejected(self):
        """Should refuse defaults for fields the schema lacks."""
        with pytest.raises(SchemaDefinitionError, match="unknown fields: nickname"):
            self._schema().initial_record({"nickname": "Ada"})
