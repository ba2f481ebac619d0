"""
Todo service - validation and owner-scoped persistence for todo items.

Every operation takes the id of the signed-in user explicitly and filters all
reads and writes by it. A mutation aimed at an id the owner does not have
touches zero rows and still returns a successful result with ``affected=0``;
the route decides how to present that.
"""
import logging
from datetime import date, datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from todoapp import db
from todoapp.core.errors import ActionResult, AuthenticationRequired, as_formdata, form_field_errors
from todoapp.core.i18n import DEFAULT_LOCALE, translate
from todoapp.projects.todo.forms import TodoFields
from todoapp.projects.todo.models import Todo

logger = logging.getLogger(__name__)

FILTERS = ('all', 'active', 'completed')


def utc_today():
    """Current calendar day in UTC."""
    return datetime.now(timezone.utc).date()


def _require_owner(owner_id):
    if owner_id is None:
        raise AuthenticationRequired()


def validate_todo_fields(text, due_date, priority, locale=DEFAULT_LOCALE, today=None):
    """
    Validate the editable fields of a todo against TodoFields.

    Args:
        text (str): Task text, trimmed before checking
        due_date (str|date): Due date, exactly 'YYYY-MM-DD' when given as a string
        priority (str): One of PRIORITIES; None or '' means DEFAULT_PRIORITY
        locale (str): Language for error messages
        today (date, optional): Reference day, defaults to today in UTC

    Returns:
        tuple: (cleaned_values, field_errors) - cleaned_values is None if any field failed
    """
    if isinstance(due_date, datetime):
        due_date = due_date.date()
    if isinstance(due_date, date):
        due_date = due_date.isoformat()

    form = TodoFields(as_formdata(text=text, due_date=due_date, priority=priority),
                      today=today or utc_today())
    if not form.validate():
        return None, form_field_errors(form, locale)

    return {
        'text': form.text.data,
        'due_date': form.due_date.data,
        'priority': form.priority.data,
    }, {}


def _storage_failure(locale, action):
    db.session.rollback()
    logger.exception(f"Failed to {action}")
    return ActionResult.failure(form_error=translate(locale, 'errors.unexpected'))


def add_todo(owner_id, text, due_date, priority=None, locale=DEFAULT_LOCALE, today=None):
    """
    Create a todo for owner_id.

    Returns:
        ActionResult: ok with 'todo' (dict) and 'affected' on success,
                      field errors on invalid input
    """
    _require_owner(owner_id)

    values, field_errors = validate_todo_fields(text, due_date, priority, locale, today)
    if field_errors:
        return ActionResult.failure(field_errors=field_errors)

    todo = Todo(
        user_id=owner_id,
        text=values['text'],
        due_date=values['due_date'],
        priority=values['priority'],
        completed=False,
        created_at=datetime.utcnow()
    )
    try:
        db.session.add(todo)
        db.session.commit()
    except SQLAlchemyError:
        return _storage_failure(locale, f"add todo for user {owner_id}")

    return ActionResult.success(todo=todo.to_dict(), affected=1)


def update_todo(owner_id, todo_id, text, due_date, priority=None, locale=DEFAULT_LOCALE, today=None):
    """
    Replace text, due date and priority of one of owner_id's todos.

    Returns:
        ActionResult: ok with 'affected' (0 when todo_id is not owner_id's),
                      field errors on invalid input
    """
    _require_owner(owner_id)

    values, field_errors = validate_todo_fields(text, due_date, priority, locale, today)
    if field_errors:
        return ActionResult.failure(field_errors=field_errors)

    try:
        affected = Todo.query.filter_by(id=todo_id, user_id=owner_id).update(
            values, synchronize_session=False
        )
        db.session.commit()
    except SQLAlchemyError:
        return _storage_failure(locale, f"update todo {todo_id} for user {owner_id}")

    if not affected:
        logger.info(f"Update of todo {todo_id} by user {owner_id} matched no rows")
    return ActionResult.success(affected=affected)


def toggle_completed(owner_id, todo_id, completed, locale=DEFAULT_LOCALE):
    """Set the completed flag on one of owner_id's todos."""
    _require_owner(owner_id)

    try:
        affected = Todo.query.filter_by(id=todo_id, user_id=owner_id).update(
            {'completed': bool(completed)}, synchronize_session=False
        )
        db.session.commit()
    except SQLAlchemyError:
        return _storage_failure(locale, f"toggle todo {todo_id} for user {owner_id}")

    if not affected:
        logger.info(f"Toggle of todo {todo_id} by user {owner_id} matched no rows")
    return ActionResult.success(affected=affected, completed=bool(completed))


def delete_todo(owner_id, todo_id, locale=DEFAULT_LOCALE):
    """Delete one of owner_id's todos."""
    _require_owner(owner_id)

    try:
        affected = Todo.query.filter_by(id=todo_id, user_id=owner_id).delete(
            synchronize_session=False
        )
        db.session.commit()
    except SQLAlchemyError:
        return _storage_failure(locale, f"delete todo {todo_id} for user {owner_id}")

    if not affected:
        logger.info(f"Delete of todo {todo_id} by user {owner_id} matched no rows")
    return ActionResult.success(affected=affected)


def get_todo(owner_id, todo_id):
    """owner_id's todo with this id, or None (also when it belongs to someone else)."""
    _require_owner(owner_id)
    return Todo.query.filter_by(id=todo_id, user_id=owner_id).first()


def list_todos(owner_id, filter_type='all'):
    """
    Get owner_id's todos, newest first.

    Args:
        owner_id (int): Signed-in user id
        filter_type (str): 'all', 'active' or 'completed'; anything else means 'all'
    """
    _require_owner(owner_id)

    query = Todo.query.filter_by(user_id=owner_id)
    if filter_type == 'active':
        query = query.filter_by(completed=False)
    elif filter_type == 'completed':
        query = query.filter_by(completed=True)

    return query.order_by(Todo.created_at.desc(), Todo.id.desc()).all()


def todo_counts(owner_id):
    _require_owner(owner_id)

    total = Todo.query.filter_by(user_id=owner_id).count()
    completed = Todo.query.filter_by(user_id=owner_id, completed=True).count()
    return {
        'total': total,
        'active': total - completed,
        'completed': completed,
    }
