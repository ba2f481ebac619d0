"""
Identity service: registration, credential checks, the two-step password
reset and the identity payload kept in the session cookie.

Field rules are the WTForms classes in ``todoapp.forms``; this module runs
them on plain values and handles lookups and persistence.
"""
import logging

from flask import session
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from todoapp import db
from todoapp.core.errors import ActionResult, UniquenessConflict, as_formdata, form_field_errors
from todoapp.core.i18n import DEFAULT_LOCALE, translate
from todoapp.forms import (
    AccountLookupFields,
    LoginFields,
    NewPasswordFields,
    RegistrationFields,
)
from todoapp.models import User

logger = logging.getLogger(__name__)

SESSION_IDENTITY_KEY = 'identity'


def find_user_by_identifier(identifier):
    """
    Look up a user by email (case-insensitive) or exact username.

    Returns:
        User: The matching user, or None
    """
    identifier = (identifier or '').strip()
    if not identifier:
        return None
    return User.query.filter(
        or_(User.email == identifier.lower(), User.username == identifier)
    ).first()


def _check_unique(email, username, locale):
    if User.query.filter_by(email=email).first():
        raise UniquenessConflict('email', translate(locale, 'auth.errors.email_exists'))
    if User.query.filter_by(username=username).first():
        raise UniquenessConflict('username', translate(locale, 'auth.errors.username_exists'))


def register_user(email, username, display_name, password, confirm_password,
                  locale=DEFAULT_LOCALE):
    """
    Create a new account. Does not sign the user in.

    Returns:
        ActionResult: ok with 'user_id' on success; field errors for invalid
                      input; a form error if the email or username is taken
    """
    form = RegistrationFields(as_formdata(
        email=email,
        username=username,
        display_name=display_name,
        password=password,
        confirm_password=confirm_password,
    ))
    if not form.validate():
        return ActionResult.failure(field_errors=form_field_errors(form, locale))

    email = form.email.data
    username = form.username.data

    try:
        _check_unique(email, username, locale)
    except UniquenessConflict as e:
        return ActionResult.from_error(e)

    user = User(email=email, username=username, display_name=form.display_name.data)
    user.set_password(form.password.data)

    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email/username
        db.session.rollback()
        try:
            _check_unique(email, username, locale)
        except UniquenessConflict as e:
            return ActionResult.from_error(e)
        logger.exception(f"Failed to register user {email}")
        return ActionResult.failure(form_error=translate(locale, 'errors.unexpected'))
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(f"Failed to register user {email}")
        return ActionResult.failure(form_error=translate(locale, 'errors.unexpected'))

    logger.info(f"Registered user {user.id} ({user.email})")
    return ActionResult.success(user_id=user.id)


def authenticate(identifier, password):
    """
    Check credentials.

    Returns:
        User: The authenticated user, or None. Callers cannot tell an unknown
              identifier from a wrong password.
    """
    form = LoginFields(as_formdata(identifier=identifier, password=password))
    if not form.validate():
        return None

    user = find_user_by_identifier(form.identifier.data)
    if user is None or not user.check_password(password):
        return None
    return user


def find_user_for_reset(identifier, locale=DEFAULT_LOCALE):
    """
    Step 1 of the password reset: confirm an account exists.

    The response never says whether the email or the username matched.
    """
    form = AccountLookupFields(as_formdata(identifier=identifier))
    if not form.validate():
        return ActionResult.failure(field_errors=form_field_errors(form, locale))

    if find_user_by_identifier(form.identifier.data) is None:
        return ActionResult.failure(form_error=translate(locale, 'auth.errors.account_not_found'))

    return ActionResult.success(step='user_found')


def reset_password(identifier, password, confirm_password, locale=DEFAULT_LOCALE):
    """
    Step 2 of the password reset: set a new password.

    Nothing ties this call to a successful step 1; the identifier is resolved
    again and the same generic error is returned if it does not match.
    """
    user = find_user_by_identifier(identifier)
    if user is None:
        return ActionResult.failure(form_error=translate(locale, 'auth.errors.account_not_found'))

    form = NewPasswordFields(as_formdata(password=password, confirm_password=confirm_password))
    if not form.validate():
        return ActionResult.failure(field_errors=form_field_errors(form, locale))

    try:
        user.set_password(form.password.data)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(f"Failed to reset password for user {user.id}")
        return ActionResult.failure(form_error=translate(locale, 'errors.unexpected'))

    logger.info(f"Password reset for user {user.id}")
    return ActionResult.success(step='password_changed', user_id=user.id)


def build_session_identity(user):
    return {
        'id': user.id,
        'email': user.email,
        'username': user.username,
        'display_name': user.display_name,
        'avatar_url': user.avatar_url,
    }


def store_session_identity(user):
    """Write (or refresh) the signed-in user's identity payload in the session."""
    identity = build_session_identity(user)
    session[SESSION_IDENTITY_KEY] = identity
    return identity


def get_session_identity():
    return session.get(SESSION_IDENTITY_KEY)


def clear_session_identity():
    session.pop(SESSION_IDENTITY_KEY, None)
