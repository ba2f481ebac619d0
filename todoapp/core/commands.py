"""Flask CLI commands"""

import os
import time

import click
import logging
from flask import current_app

from todoapp.models import User
from todoapp.utils.avatar_storage import avatar_path, list_avatar_files, delete_avatar

logger = logging.getLogger(__name__)

# Files younger than this may belong to an upload whose user row is not committed yet
DEFAULT_MIN_AGE_SECONDS = 600


def find_orphaned_avatars(min_age_seconds=DEFAULT_MIN_AGE_SECONDS, now=None):
    """Files in the avatar folder that no avatar_url points at, at least min_age_seconds old."""
    referenced = set()
    for (url,) in User.query.with_entities(User.avatar_url).filter(User.avatar_url.isnot(None)):
        path = avatar_path(url)
        if path:
            referenced.add(os.path.basename(path))

    cutoff = (now if now is not None else time.time()) - min_age_seconds
    folder = current_app.config['AVATAR_UPLOAD_FOLDER']
    return [
        name for name in list_avatar_files()
        if name not in referenced and os.path.getmtime(os.path.join(folder, name)) <= cutoff
    ]


def init_app(app):
    """Register CLI commands with the Flask app"""

    @app.cli.command("prune-avatars")
    @click.option("--dry-run", is_flag=True, help="List orphaned files without deleting them.")
    @click.option("--min-age", default=DEFAULT_MIN_AGE_SECONDS, show_default=True,
                  help="Only consider files at least this many seconds old.")
    def prune_avatars(dry_run, min_age):
        """
        Delete avatar files that no user references.

        Uploads and old-file cleanup are not locked against each other, so a
        replaced avatar can occasionally be left behind. Files newer than
        --min-age are skipped so an upload still being saved is never removed.
        """
        prefix = app.config.get('AVATAR_URL_PREFIX', '/static/avatars/')
        orphans = find_orphaned_avatars(min_age)

        if not orphans:
            click.echo("No orphaned avatar files found.")
            return

        removed = 0
        for name in orphans:
            if dry_run:
                click.echo(f"  - {name}")
            elif delete_avatar(prefix + name):
                removed += 1

        if dry_run:
            click.echo(f"{len(orphans)} orphaned avatar file(s) would be deleted.")
        else:
            logger.info(f"Pruned {removed} orphaned avatar file(s)")
            click.echo(f"Deleted {removed} of {len(orphans)} orphaned avatar file(s).")
