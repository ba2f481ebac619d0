"""
Error types shared by the services, and the result shape every validated
mutation hands back to the routes.

Services return an ActionResult instead of raising for anything a user can
fix (bad field values, taken usernames). Exceptions are kept for conditions
the boundary has to react to: no session (AuthenticationRequired) and file
storage problems (StorageFailure).
"""
import logging

from flask import jsonify, redirect, request, url_for
from werkzeug.datastructures import MultiDict

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors raised by the application services."""


class ValidationError(AppError):
    """One or more inputs failed validation.

    Args:
        field_errors (dict): Field name -> list of messages
        form_error (str, optional): A message not tied to a single field
    """

    def __init__(self, field_errors=None, form_error=None):
        self.field_errors = field_errors or {}
        self.form_error = form_error
        super().__init__(form_error or ', '.join(self.field_errors))


class UniquenessConflict(ValidationError):
    """An email or username is already taken."""

    def __init__(self, field, message):
        self.field = field
        super().__init__(form_error=message)


class AuthenticationRequired(AppError):
    """The operation needs a signed-in user and there is none."""


class StorageFailure(AppError):
    """Writing an avatar file failed."""


class ActionResult:
    """Outcome of a validated mutation.

    ``ActionResult.success(**data)`` carries arbitrary data for the caller,
    ``ActionResult.failure(...)`` carries per-field messages and/or a general
    message.
    """

    def __init__(self, ok, data=None, field_errors=None, form_error=None):
        self.ok = ok
        self.data = data or {}
        self.field_errors = field_errors or {}
        self.form_error = form_error

    @classmethod
    def success(cls, **data):
        return cls(True, data=data)

    @classmethod
    def failure(cls, field_errors=None, form_error=None):
        return cls(False, field_errors=field_errors, form_error=form_error)

    @classmethod
    def from_error(cls, error):
        return cls.failure(field_errors=error.field_errors, form_error=error.form_error)

    def __getitem__(self, key):
        return self.data[key]

    def get(self, key, default=None):
        return self.data.get(key, default)

    def errors_for(self, field):
        return self.field_errors.get(field, [])

    def to_dict(self):
        if self.ok:
            return {'ok': True, **self.data}
        result = {'ok': False}
        if self.field_errors:
            result['field_errors'] = self.field_errors
        if self.form_error:
            result['form_error'] = self.form_error
        return result

    def __repr__(self):
        return f'<ActionResult ok={self.ok} {self.to_dict()}>'


def add_field_error(field_errors, field, message):
    field_errors.setdefault(field, []).append(message)


def form_field_errors(form, locale, rename=None):
    """
    Translate a validated rules form's errors into ``field_errors``.

    Validator messages on the rules forms are catalog keys. Errors can be
    moved to another field name through ``rename``; repeated messages on one
    field are reported once.
    """
    from todoapp.core.i18n import translate

    field_errors = {}
    for name, keys in form.errors.items():
        field = (rename or {}).get(name, name)
        for key in keys:
            message = translate(locale, key)
            if message not in field_errors.get(field, []):
                add_field_error(field_errors, field, message)
    return field_errors


def as_formdata(**values):
    """Plain values as the formdata a rules form expects; None becomes ''."""
    return MultiDict({name: '' if value is None else str(value) for name, value in values.items()})


def _wants_json():
    if request.is_json:
        return True
    best = request.accept_mimetypes.best_match(['application/json', 'text/html'])
    return best == 'application/json' and \
        request.accept_mimetypes[best] > request.accept_mimetypes['text/html']


def register_error_handlers(app):
    """Translate service exceptions that escape a view into HTTP responses."""
    from todoapp.core.i18n import get_locale, translate

    @app.errorhandler(AuthenticationRequired)
    def handle_authentication_required(error):
        if _wants_json():
            message = translate(get_locale(), 'errors.login_required')
            return jsonify({'ok': False, 'form_error': message}), 401
        return redirect(url_for('auth.login', next=request.path))

    @app.errorhandler(StorageFailure)
    def handle_storage_failure(error):
        logger.error(f"Unhandled storage failure: {error}")
        message = translate(get_locale(), 'errors.unexpected')
        if _wants_json():
            return jsonify({'ok': False, 'form_error': message}), 500
        return message, 500
