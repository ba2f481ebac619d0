import re

from flask_wtf import FlaskForm
from flask_wtf.file import FileField
from wtforms import (
    Form,
    StringField,
    PasswordField,
    SubmitField,
    BooleanField,
    HiddenField,
    IntegerField,
)
from wtforms.validators import (
    DataRequired,
    Email,
    EqualTo,
    Length,
    NumberRange,
    Optional,
    Regexp,
    URL,
)

from todoapp.utils.avatar_storage import MAX_AVATAR_BYTES

EMAIL_MAX_LENGTH = 120
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
DISPLAY_NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6
AVATAR_URL_MAX_LENGTH = 500


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def normalize_email(value):
    return value.strip().lower() if isinstance(value, str) else value


# Rules forms: run by the services on plain values, messages are catalog keys.


class NewPasswordFields(Form):
    password = PasswordField(validators=[
        Length(min=PASSWORD_MIN_LENGTH, message="auth.errors.password_min"),
    ])
    confirm_password = PasswordField(validators=[
        EqualTo("password", message="auth.errors.passwords_no_match"),
    ])


class RegistrationFields(NewPasswordFields):
    email = StringField(filters=[normalize_email], validators=[
        Length(max=EMAIL_MAX_LENGTH, message="auth.errors.email_too_long"),
        Email(message="auth.errors.email_invalid"),
    ])
    username = StringField(filters=[_strip], validators=[
        Length(min=USERNAME_MIN_LENGTH, message="auth.errors.username_min"),
        Length(max=USERNAME_MAX_LENGTH, message="auth.errors.username_max"),
    ])
    display_name = StringField(filters=[_strip], validators=[
        DataRequired(message="auth.errors.display_name_required"),
        Length(max=DISPLAY_NAME_MAX_LENGTH, message="auth.errors.display_name_max"),
    ])


class LoginFields(Form):
    identifier = StringField(filters=[_strip], validators=[DataRequired()])
    password = PasswordField(validators=[Length(min=PASSWORD_MIN_LENGTH)])


class AccountLookupFields(Form):
    identifier = StringField(filters=[_strip], validators=[
        DataRequired(message="auth.errors.identifier_required"),
    ])


class ProfileFields(Form):
    """Only the avatar source that is in use gets a value; the others stay empty."""

    display_name = StringField(filters=[_strip], validators=[
        Length(max=DISPLAY_NAME_MAX_LENGTH, message="profile.errors.display_name_max"),
    ])
    avatar_type = StringField(validators=[
        Optional(),
        Regexp(r"image/", message="profile.errors.invalid_file_type"),
    ])
    avatar_size = IntegerField(validators=[
        Optional(),
        NumberRange(max=MAX_AVATAR_BYTES, message="profile.errors.file_too_large"),
    ])
    avatar_url = StringField(filters=[_strip], validators=[
        Optional(),
        Length(max=AVATAR_URL_MAX_LENGTH, message="profile.errors.url_too_long"),
        URL(message="profile.errors.invalid_url"),
        Regexp(r"https?://", flags=re.IGNORECASE, message="profile.errors.invalid_url"),
    ])


# Page forms: render the inputs and carry the CSRF token.


class RegistrationForm(FlaskForm):
    email = StringField("Email", render_kw={"type": "email", "autocomplete": "email"})
    username = StringField("Username", render_kw={"autocomplete": "username"})
    display_name = StringField("Display name")
    password = PasswordField("Password", render_kw={"autocomplete": "new-password"})
    confirm_password = PasswordField(
        "Confirm password", render_kw={"autocomplete": "new-password"}
    )
    submit = SubmitField("Register")


class LoginForm(FlaskForm):
    identifier = StringField("Email or username", render_kw={"autocomplete": "username"})
    password = PasswordField("Password", render_kw={"autocomplete": "current-password"})
    submit = SubmitField("Log in")


class FindAccountForm(FlaskForm):
    """Step 1 of the password reset: locate the account."""

    step = HiddenField(default="find")
    identifier = StringField("Email or username", render_kw={"autocomplete": "username"})
    submit = SubmitField("Find account")


class ResetPasswordForm(FlaskForm):
    """Step 2 of the password reset: choose the new password."""

    step = HiddenField(default="reset")
    identifier = HiddenField()
    password = PasswordField("New password", render_kw={"autocomplete": "new-password"})
    confirm_password = PasswordField(
        "Confirm new password", render_kw={"autocomplete": "new-password"}
    )
    submit = SubmitField("Set new password")


class ProfileForm(FlaskForm):
    """Form for editing user profile"""

    display_name = StringField("Display name")
    avatar_file = FileField("Upload avatar", render_kw={"accept": "image/*"})
    avatar_url = StringField("Avatar URL", render_kw={"type": "url"})
    remove_avatar = BooleanField("Remove avatar", default=False)
    submit = SubmitField("Save changes")
