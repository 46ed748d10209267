"""Ready-made form schemas: login, registration and contact.

Each factory returns a fresh FormSchema so callers may hold several
independent sessions of the same form.
"""

from typing import Optional

from dynaform.fields import FieldSpec, Option
from dynaform.schema import FormSchema
from dynaform.types import FieldType
from dynaform.validation import fields_match

# At least one lowercase, uppercase, digit and special character; 8+ characters
STRONG_PASSWORD_PATTERN = r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}"
STRONG_PASSWORD_MESSAGE = (
    "Password must contain at least one uppercase letter, one lowercase letter, "
    "one number, and one special character"
)

ATTACHMENT_MAX_FILES = 3
ATTACHMENT_MAX_SIZE = 5 * 1024 * 1024


def _strong_password(name: str, label: str, description: Optional[str] = None) -> FieldSpec:
    return FieldSpec(
        name=name,
        type=FieldType.PASSWORD,
        label=label,
        required=True,
        min_length=8,
        pattern=STRONG_PASSWORD_PATTERN,
        pattern_message=STRONG_PASSWORD_MESSAGE,
        description=description,
        messages={"too_short": "Password must be at least 8 characters"},
    )


def _email(label: str, placeholder: Optional[str] = None) -> FieldSpec:
    return FieldSpec(
        name="email",
        type=FieldType.EMAIL,
        label=label,
        placeholder=placeholder,
        required=True,
        messages={"required": "Email is required", "invalid_format": "Invalid email address"},
    )


def login_form_schema() -> FormSchema:
    """Email and strong password."""
    return FormSchema(
        title="Login",
        fields=[
            _email("Email Address", placeholder="Enter your email"),
            _strong_password(
                "password",
                "Password",
                description=(
                    "Must be at least 8 characters with 1 uppercase, 1 lowercase, "
                    "1 number, and 1 special character"
                ),
            ),
        ],
    )


def registration_form_schema() -> FormSchema:
    """Names, email, password with confirmation, role and accepted terms."""
    name_messages = {
        "too_short": "{label} must be at least 2 characters",
        "too_long": "{label} must be less than 50 characters",
    }
    return FormSchema(
        title="Register",
        fields=[
            FieldSpec(
                name=name,
                type=FieldType.TEXT,
                label=label,
                required=True,
                min_length=2,
                max_length=50,
                messages={code: text.format(label=label) for code, text in name_messages.items()},
            )
            for name, label in (("firstName", "First name"), ("lastName", "Last name"))
        ] + [
            _email("Email"),
            _strong_password("password", "Password"),
            FieldSpec(
                name="confirmPassword",
                type=FieldType.PASSWORD,
                label="Confirm Password",
                required=True,
                messages={"required": "Please confirm your password"},
            ),
            FieldSpec(
                name="role",
                type=FieldType.SELECT,
                label="Role",
                required=True,
                options=[Option("User", "user"), Option("Admin", "admin")],
                messages={"required": "Please select a role"},
            ),
            FieldSpec(
                name="terms",
                type=FieldType.CHECKBOX,
                label="I accept the terms and conditions",
                required=True,
                messages={"required": "You must accept the terms and conditions"},
            ),
        ],
        rules=[fields_match("password", "confirmPassword")],
    )


def contact_form_schema() -> FormSchema:
    """Name, email, subject, message and up to three 5MB attachments."""
    return FormSchema(
        title="Contact Us",
        fields=[
            FieldSpec(
                name="name",
                type=FieldType.TEXT,
                label="Name",
                required=True,
                min_length=2,
                max_length=100,
                messages={
                    "too_short": "Name must be at least 2 characters",
                    "too_long": "Name must be less than 100 characters",
                },
            ),
            _email("Email"),
            FieldSpec(
                name="subject",
                type=FieldType.TEXT,
                label="Subject",
                required=True,
                max_length=200,
                messages={
                    "required": "Subject is required",
                    "too_long": "Subject must be less than 200 characters",
                },
            ),
            FieldSpec(
                name="message",
                type=FieldType.TEXTAREA,
                label="Message",
                required=True,
                rows=4,
                min_length=10,
                max_length=1000,
                messages={
                    "too_short": "Message must be at least 10 characters",
                    "too_long": "Message must be less than 1000 characters",
                },
            ),
            FieldSpec(
                name="attachment",
                type=FieldType.FILE,
                label="Attachments",
                accept=".pdf,.doc,.docx,.txt",
                multiple=True,
                max_files=ATTACHMENT_MAX_FILES,
                max_size=ATTACHMENT_MAX_SIZE,
                description="Maximum 3 files, 5MB each. Accepted formats: PDF, DOC, DOCX, TXT",
                messages={
                    "file_count_exceeded": "Maximum of 3 files allowed",
                    "file_too_large": "Files must be less than 5MB",
                },
            ),
        ],
    )


PRESETS = {
    "login": login_form_schema,
    "register": registration_form_schema,
    "contact": contact_form_schema,
}


__all__ = [
    "PRESETS",
    "login_form_schema",
    "registration_form_schema",
    "contact_form_schema",
]
