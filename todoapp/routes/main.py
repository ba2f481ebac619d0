from flask import Blueprint, render_template, redirect, url_for, request
from flask_login import current_user
from urllib.parse import urlparse

from todoapp.core.i18n import set_locale

main_bp = Blueprint('main', __name__)

@main_bp.route('/')
def index():
    if current_user.is_authenticated:
        return redirect(url_for('todo.index'))
    return redirect(url_for('auth.login'))

@main_bp.route('/language/<code>')
def set_language(code):
    """Switch the interface language and go back to where the user was."""
    set_locale(code)

    referrer = request.referrer
    if referrer and urlparse(referrer).netloc == request.host:
        return redirect(referrer)
    return redirect(url_for('main.index'))

@main_bp.app_errorhandler(404)
def page_not_found(e):
    return render_template('404.html'), 404
