"""
Profile service: display name and avatar changes for the signed-in user.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from todoapp import db
from todoapp.core.errors import (
    ActionResult,
    AuthenticationRequired,
    StorageFailure,
    as_formdata,
    form_field_errors,
)
from todoapp.core.i18n import DEFAULT_LOCALE, translate
from todoapp.forms import ProfileFields
from todoapp.models import User
from todoapp.utils.avatar_storage import save_avatar, delete_avatar, is_local_avatar

logger = logging.getLogger(__name__)

# Both checks on an upload are reported against the file input
_AVATAR_FILE_FIELDS = {'avatar_type': 'avatar_file', 'avatar_size': 'avatar_file'}

_UNCHANGED = object()


def update_profile(user_id, display_name=None, avatar_data=None, avatar_mimetype=None,
                   avatar_filename=None, avatar_url=None, remove_avatar=False,
                   locale=DEFAULT_LOCALE):
    """
    Apply optional display name and avatar changes.

    Only one avatar source is used per call: an uploaded file wins over a URL,
    and a URL wins over remove_avatar. An upload with no bytes counts as no
    upload. All inputs are validated before any file is written.

    Args:
        user_id (int): Signed-in user id
        display_name (str, optional): New display name; blank means unchanged
        avatar_data (bytes, optional): Uploaded image content
        avatar_mimetype (str, optional): Content type of the upload
        avatar_filename (str, optional): Original filename of the upload
        avatar_url (str, optional): External avatar URL
        remove_avatar (bool): Clear the current avatar
        locale (str): Language for error messages

    Returns:
        ActionResult: ok with 'display_name', 'avatar_url' and 'changed';
                      field errors on invalid input; a form error if the
                      upload or the database write failed
    """
    if user_id is None:
        raise AuthenticationRequired()

    user = db.session.get(User, user_id)
    if user is None:
        raise AuthenticationRequired()

    has_upload = bool(avatar_data)

    # An upload without a content type is checked as an unknown binary type
    form = ProfileFields(as_formdata(
        display_name=display_name,
        avatar_type=(avatar_mimetype or 'application/octet-stream') if has_upload else None,
        avatar_size=len(avatar_data) if has_upload else None,
        avatar_url=None if has_upload else avatar_url,
    ))
    if not form.validate():
        field_errors = form_field_errors(form, locale, rename=_AVATAR_FILE_FIELDS)
        return ActionResult.failure(field_errors=field_errors)

    display_name = form.display_name.data
    avatar_url = form.avatar_url.data

    new_avatar = _UNCHANGED
    if has_upload:
        try:
            new_avatar = save_avatar(user.id, avatar_data, avatar_filename, avatar_mimetype)
        except StorageFailure:
            return ActionResult.failure(form_error=translate(locale, 'profile.errors.upload_failed'))
    elif avatar_url:
        new_avatar = avatar_url
    elif remove_avatar and user.avatar_url is not None:
        new_avatar = None

    if not display_name and new_avatar is _UNCHANGED:
        return ActionResult.success(
            display_name=user.display_name,
            avatar_url=user.avatar_url,
            changed=False
        )

    old_avatar = user.avatar_url
    if display_name:
        user.display_name = display_name
    if new_avatar is not _UNCHANGED:
        user.avatar_url = new_avatar

    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(f"Failed to update profile for user {user_id}")
        if has_upload:
            delete_avatar(new_avatar)
        return ActionResult.failure(form_error=translate(locale, 'errors.unexpected'))

    if new_avatar is not _UNCHANGED and old_avatar != new_avatar and is_local_avatar(old_avatar):
        delete_avatar(old_avatar)

    return ActionResult.success(
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        changed=True
    )
