"""Tests for the ready-made login, registration and contact forms."""

import asyncio

import pytest

from dynaform.controller import FormController
from dynaform.fields import FileHandle
from dynaform.presets import (
    ATTACHMENT_MAX_SIZE,
    PRESETS,
    STRONG_PASSWORD_MESSAGE,
    contact_form_schema,
    login_form_schema,
    registration_form_schema,
)
from dynaform.settings import Settings
from dynaform.types import FieldErrorCode

MB = 1024 * 1024

REGISTRATION = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "ada@example.com",
    "password": "Abcdef1!",
    "confirmPassword": "Abcdef1!",
    "role": "user",
    "terms": True,
}

CONTACT = {
    "name": "Ada",
    "email": "ada@example.com",
    "subject": "Engines",
    "message": "Notes on the analytical engine.",
    "attachment": [FileHandle(name="notes.pdf", size=1024)],
}


class TestLoginForm:
    """Test the login form."""

    def test_fields(self):
        schema = login_form_schema()
        assert schema.field_names == ("email", "password")
        assert schema.field("email").placeholder == "Enter your email"

    def test_accepts_valid_credentials(self):
        result = login_form_schema().validate({"email": "ada@example.com", "password": "Abcdef1!"})
        assert result.is_valid is True

    def test_messages(self):
        result = login_form_schema().validate({"email": "not-an-email", "password": "abc"})
        assert result.field_errors == {
            "email": ["Invalid email address"],
            "password": ["Password must be at least 8 characters", STRONG_PASSWORD_MESSAGE],
        }

    def test_required(self):
        result = login_form_schema().validate({})
        assert result.field_errors["email"] == ["Email is required"]
        assert result.missing_fields == ["email", "password"]


class TestRegistrationForm:
    """Test the registration form."""

    def test_accepts_valid_registration(self):
        assert registration_form_schema().validate(REGISTRATION).is_valid is True

    def test_name_messages(self):
        result = registration_form_schema().validate(dict(REGISTRATION, firstName="A", lastName="L" * 51))
        assert result.field_errors == {
            "firstName": ["First name must be at least 2 characters"],
            "lastName": ["Last name must be less than 50 characters"],
        }

    def test_password_mismatch(self):
        result = registration_form_schema().validate(dict(REGISTRATION, confirmPassword="Abcdef1?"))
        assert result.field_errors == {"confirmPassword": ["Passwords don't match"]}

    @pytest.mark.parametrize(
        "name,empty,message",
        [
            ("confirmPassword", "", "Please confirm your password"),
            ("role", "", "Please select a role"),
            ("terms", False, "You must accept the terms and conditions"),
        ],
    )
    def test_required_messages(self, name, empty, message):
        result = registration_form_schema().validate(dict(REGISTRATION, **{name: empty}))
        assert result.errors_for(name)[0] == message
        assert result.missing_fields == [name]

    def test_unknown_role(self):
        result = registration_form_schema().validate(dict(REGISTRATION, role="root"))
        assert result.errors[0].code == FieldErrorCode.INVALID_VALUE

    def test_submit_through_controller(self):
        """Should submit a valid registration exactly once."""
        received = []
        form = FormController(
            registration_form_schema(), submit=received.append, defaults=REGISTRATION, settings=Settings()
        )
        assert asyncio.run(form.submit()).succeeded is True
        assert received == [REGISTRATION]


class TestContactForm:
    """Test the contact form."""

    def test_accepts_valid_message(self):
        assert contact_form_schema().validate(CONTACT).is_valid is True

    def test_attachment_optional(self):
        assert contact_form_schema().validate(dict(CONTACT, attachment=[])).is_valid is True

    def test_message_rows(self):
        assert contact_form_schema().field("message").rows == 4

    def test_short_message(self):
        result = contact_form_schema().validate(dict(CONTACT, message="Hi"))
        assert result.field_errors == {"message": ["Message must be at least 10 characters"]}

    def test_too_many_attachments(self):
        files = [FileHandle(name=f"doc{i}.pdf", size=1024) for i in range(4)]
        result = contact_form_schema().validate(dict(CONTACT, attachment=files))
        assert result.field_errors == {"attachment": ["Maximum of 3 files allowed"]}

    def test_attachment_too_large(self):
        files = [FileHandle(name="scan.pdf", size=ATTACHMENT_MAX_SIZE + MB)]
        result = contact_form_schema().validate(dict(CONTACT, attachment=files))
        assert result.field_errors == {"attachment": ["Files must be less than 5MB"]}

    def test_attachment_type(self):
        files = [FileHandle(name="setup.exe", size=1024)]
        result = contact_form_schema().validate(dict(CONTACT, attachment=files))
        assert result.field_errors == {
            "attachment": ["File 'setup.exe' is not an accepted type (.pdf,.doc,.docx,.txt)"]
        }


class TestPresetRegistry:
    """Test the preset lookup table."""

    def test_presets_build_fresh_schemas(self):
        for name, factory in PRESETS.items():
            assert factory() is not factory()
        assert set(PRESETS) == {"login", "register", "contact"}
