from flask import Blueprint, render_template, redirect, url_for, flash, request, jsonify
from flask_login import login_required, current_user

from todoapp.core.i18n import get_locale, translate
from todoapp.projects.todo.forms import TodoForm
from todoapp.projects.todo.models import PRIORITIES
from todoapp.projects.todo.services import todo_service
from todoapp.utils.logging import log_activity

todo_bp = Blueprint('todo', __name__,
                    template_folder='templates',
                    static_folder='static',
                    static_url_path='/static')


def _current_filter():
    filter_type = request.args.get('filter', 'all')
    return filter_type if filter_type in todo_service.FILTERS else 'all'


def _render_index(form, errors=None, form_error=None, status=200):
    filter_type = _current_filter()
    todos = todo_service.list_todos(current_user.id, filter_type)
    counts = todo_service.todo_counts(current_user.id)

    return render_template('todo/index.html',
                           form=form,
                           todos=todos,
                           priorities=PRIORITIES,
                           filter_type=filter_type,
                           counts=counts,
                           today=todo_service.utc_today().isoformat(),
                           errors=errors or {},
                           form_error=form_error), status


def _flash_failure(result):
    for messages in result.field_errors.values():
        for message in messages:
            flash(message, 'error')
    if result.form_error:
        flash(result.form_error, 'error')


def _back_to_index():
    return redirect(url_for('todo.index', filter=_current_filter()))


@todo_bp.route('/')
@login_required
def index():
    """Display the todo list for the current user"""
    form = TodoForm()
    return _render_index(form)


@todo_bp.route('/add', methods=['POST'])
@login_required
def add():
    """Add a new todo item"""
    form = TodoForm()
    locale = get_locale()

    if not form.validate_on_submit():
        flash(translate(locale, 'errors.invalid_form'), 'error')
        return _back_to_index()

    result = todo_service.add_todo(
        current_user.id,
        form.text.data,
        form.due_date.data,
        form.priority.data,
        locale=locale
    )
    if not result.ok:
        return _render_index(form, errors=result.field_errors,
                             form_error=result.form_error, status=400)

    todo = result['todo']
    log_activity('todo', 'Add',
                 f"{current_user.email} added todo: '{todo['text']}'",
                 actor_id=current_user.id)
    flash(translate(locale, 'todo.flash.added'), 'success')
    return _back_to_index()


@todo_bp.route('/<int:todo_id>/edit', methods=['POST'])
@login_required
def edit(todo_id):
    """Replace a todo's text, due date and priority"""
    form = TodoForm()
    locale = get_locale()

    if not form.validate_on_submit():
        flash(translate(locale, 'errors.invalid_form'), 'error')
        return _back_to_index()

    result = todo_service.update_todo(
        current_user.id,
        todo_id,
        form.text.data,
        form.due_date.data,
        form.priority.data,
        locale=locale
    )
    if not result.ok:
        _flash_failure(result)
    elif not result['affected']:
        flash(translate(locale, 'todo.errors.not_found'), 'error')
    else:
        log_activity('todo', 'Update',
                     f"{current_user.email} updated todo {todo_id}",
                     actor_id=current_user.id)
        flash(translate(locale, 'todo.flash.updated'), 'success')

    return _back_to_index()


@todo_bp.route('/<int:todo_id>/complete', methods=['POST'])
@login_required
def complete(todo_id):
    """Set or toggle task completion status"""
    locale = get_locale()

    completed = request.form.get('completed')
    if completed is None:
        # No explicit value: flip whatever is stored
        todo = todo_service.get_todo(current_user.id, todo_id)
        if todo is None:
            flash(translate(locale, 'todo.errors.not_found'), 'error')
            return _back_to_index()
        completed = not todo.completed
    else:
        completed = completed.lower() in ('1', 'true', 'on', 'yes')

    result = todo_service.toggle_completed(current_user.id, todo_id, completed, locale=locale)
    if not result.ok:
        _flash_failure(result)
    elif not result['affected']:
        flash(translate(locale, 'todo.errors.not_found'), 'error')
    else:
        log_activity('todo', 'Complete' if completed else 'Reactivate',
                     f"{current_user.email} {'completed' if completed else 'reactivated'} todo {todo_id}",
                     actor_id=current_user.id)
        flash(translate(locale, 'todo.flash.completed' if completed else 'todo.flash.reactivated'),
              'success')

    return _back_to_index()


@todo_bp.route('/<int:todo_id>/delete', methods=['POST'])
@login_required
def delete(todo_id):
    """Delete a todo item"""
    locale = get_locale()

    result = todo_service.delete_todo(current_user.id, todo_id, locale=locale)
    if not result.ok:
        _flash_failure(result)
    elif not result['affected']:
        flash(translate(locale, 'todo.errors.not_found'), 'error')
    else:
        log_activity('todo', 'Delete',
                     f"{current_user.email} deleted todo {todo_id}",
                     actor_id=current_user.id)
        flash(translate(locale, 'todo.flash.deleted'), 'success')

    return _back_to_index()


@todo_bp.route('/api/<int:todo_id>/toggle', methods=['POST'])
@login_required
def api_toggle(todo_id):
    """JSON endpoint used by the list page for optimistic toggling."""
    locale = get_locale()
    data = request.get_json(silent=True) or {}

    completed = data.get('completed')
    if not isinstance(completed, bool):
        return jsonify({'ok': False, 'form_error': translate(locale, 'errors.invalid_form')}), 400

    result = todo_service.toggle_completed(current_user.id, todo_id, completed, locale=locale)
    if not result.ok:
        return jsonify(result.to_dict()), 500
    if not result['affected']:
        return jsonify({'ok': False, 'form_error': translate(locale, 'todo.errors.not_found')}), 404

    log_activity('todo', 'Complete' if completed else 'Reactivate',
                 f"{current_user.email} {'completed' if completed else 'reactivated'} todo {todo_id}",
                 actor_id=current_user.id)
    return jsonify(result.to_dict())
