"""
Logging utilities for tracking user activity across the site.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from todoapp.models import LogEntry
from todoapp import db

logger = logging.getLogger(__name__)


def log_activity(project, category, description, actor_id=None):
    """
    Record an activity log entry.

    A failure to write the entry is logged and swallowed; the action being
    logged has already happened and must not be reported as failed.

    Args:
        project (str): Area of the site (e.g., 'auth', 'todo', 'profile')
        category (str): Kind of event (e.g., 'Login', 'Add')
        description (str): Human-readable description
        actor_id (int, optional): Id of the user who acted, None for anonymous
    """
    try:
        log_entry = LogEntry(
            project=project,
            category=category,
            actor_id=actor_id,
            description=description
        )
        db.session.add(log_entry)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(f"Failed to write activity log entry {project}/{category}")
