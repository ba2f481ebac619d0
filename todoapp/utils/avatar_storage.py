"""
Avatar file storage.

Uploaded avatars are written to AVATAR_UPLOAD_FOLDER and served from
AVATAR_URL_PREFIX. A user's avatar_url is "local" when it starts with that
prefix; any other value is an external URL we never touch.
"""
import logging
import os
import time

from flask import current_app

from todoapp.core.errors import StorageFailure

logger = logging.getLogger(__name__)

MAX_AVATAR_BYTES = 2 * 1024 * 1024

ALLOWED_EXTENSIONS = ('jpg', 'jpeg', 'png', 'gif', 'webp', 'svg')

MIME_EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/jpg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
    'image/webp': 'webp',
    'image/svg+xml': 'svg',
}

DEFAULT_EXTENSION = 'jpg'


def get_file_extension(filename, mimetype=None):
    """
    Pick the extension for a stored avatar.

    Uses the original filename's suffix when it is a known image type,
    otherwise maps the mime type, otherwise 'jpg'.
    """
    if filename and '.' in filename:
        suffix = filename.rsplit('.', 1)[1].lower()
        if suffix in ALLOWED_EXTENSIONS:
            return suffix
    if mimetype:
        return MIME_EXTENSIONS.get(mimetype.lower(), DEFAULT_EXTENSION)
    return DEFAULT_EXTENSION


def build_avatar_filename(user_id, extension, timestamp_ms=None):
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{user_id}-{timestamp_ms}.{extension}"


def _upload_folder():
    return current_app.config['AVATAR_UPLOAD_FOLDER']


def _url_prefix():
    return current_app.config.get('AVATAR_URL_PREFIX', '/static/avatars/')


def is_local_avatar(url):
    return bool(url) and url.startswith(_url_prefix())


def avatar_path(url):
    """Filesystem path of a local avatar URL, or None for external URLs."""
    if not is_local_avatar(url):
        return None
    filename = os.path.basename(url[len(_url_prefix()):])
    if not filename:
        return None
    return os.path.join(_upload_folder(), filename)


def save_avatar(user_id, data, filename, mimetype=None):
    """
    Write avatar bytes to the upload folder.

    Args:
        user_id (int): Owner of the avatar, used in the stored filename
        data (bytes): Image content
        filename (str): Original filename, used only for its extension
        mimetype (str, optional): Content type of the upload

    Returns:
        str: Public URL of the stored file

    Raises:
        StorageFailure: If the file could not be written
    """
    extension = get_file_extension(filename, mimetype)
    stored_name = build_avatar_filename(user_id, extension)
    folder = _upload_folder()

    try:
        os.makedirs(folder, exist_ok=True)
        with open(os.path.join(folder, stored_name), 'wb') as f:
            f.write(data)
    except OSError as e:
        logger.error(f"Failed to save avatar file for user {user_id}: {e}")
        raise StorageFailure(f"Could not write avatar {stored_name}") from e

    logger.info(f"Saved avatar {stored_name} for user {user_id}")
    return _url_prefix() + stored_name


def delete_avatar(url):
    """
    Remove a local avatar file. Best effort: failures are logged, never raised.

    Returns:
        bool: True if a file was removed
    """
    path = avatar_path(url)
    if path is None:
        return False

    try:
        if os.path.exists(path):
            os.remove(path)
            logger.info(f"Deleted avatar file {path}")
            return True
    except OSError as e:
        logger.error(f"Failed to delete old avatar file {path}: {e}")
    return False


def list_avatar_files():
    folder = _upload_folder()
    if not os.path.isdir(folder):
        return []
    return sorted(
        name for name in os.listdir(folder)
        if os.path.isfile(os.path.join(folder, name)) and not name.startswith('.')
    )
