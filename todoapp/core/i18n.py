"""
Message catalog and locale selection.

Messages are looked up by dotted key, e.g. ``translate('ru', 'todo.errors.text_required')``.
A key missing from a locale falls back to the default locale, then to the key itself.
"""
import logging

from flask import current_app, has_app_context, has_request_context, request, session

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = 'en'
SUPPORTED_LOCALES = ('en', 'ru')

MESSAGES = {
    'en': {
        'app.title': 'Todo List',
        'nav.todos': 'My tasks',
        'nav.profile': 'Profile',
        'nav.login': 'Log in',
        'nav.register': 'Register',
        'nav.logout': 'Log out',
        'nav.language': 'Language',

        'errors.unexpected': 'Something went wrong. Please try again.',
        'errors.login_required': 'Please log in to continue.',
        'errors.invalid_form': 'The form has expired. Please try again.',
        'errors.page_not_found': 'Page not found.',

        'auth.login.title': 'Log in',
        'auth.login.submit': 'Log in',
        'auth.login.no_account': "Don't have an account?",
        'auth.login.forgot': 'Forgot your password?',
        'auth.register.title': 'Create an account',
        'auth.register.submit': 'Register',
        'auth.register.have_account': 'Already have an account?',
        'auth.forgot.title': 'Reset password',
        'auth.forgot.subtitle': 'Enter your email or username to find your account.',
        'auth.forgot.submit_find': 'Find account',
        'auth.forgot.submit_reset': 'Set new password',
        'auth.forgot.back_to_login': 'Back to log in',
        'auth.fields.email': 'Email',
        'auth.fields.username': 'Username',
        'auth.fields.display_name': 'Display name',
        'auth.fields.password': 'Password',
        'auth.fields.confirm_password': 'Confirm password',
        'auth.fields.identifier': 'Email or username',
        'auth.fields.new_password': 'New password',
        'auth.fields.confirm_new_password': 'Confirm new password',
        'auth.errors.email_invalid': 'Enter a valid email address.',
        'auth.errors.email_too_long': 'Email must be 120 characters or less.',
        'auth.errors.username_min': 'Username must be at least 3 characters.',
        'auth.errors.username_max': 'Username must be 50 characters or less.',
        'auth.errors.display_name_required': 'Display name is required.',
        'auth.errors.display_name_max': 'Display name must be 50 characters or less.',
        'auth.errors.password_min': 'Password must be at least 6 characters.',
        'auth.errors.passwords_no_match': 'Passwords do not match.',
        'auth.errors.email_exists': 'An account with this email already exists.',
        'auth.errors.username_exists': 'This username is already taken.',
        'auth.errors.invalid_credentials': 'Invalid email/username or password.',
        'auth.errors.identifier_required': 'Enter your email or username.',
        'auth.errors.account_not_found': 'No account found.',
        'auth.flash.registered': 'Registration successful! You can now log in.',
        'auth.flash.password_reset': 'Your password has been changed. You can now log in.',
        'auth.flash.logged_out': 'You have been logged out.',

        'todo.title': 'My tasks',
        'todo.greeting': 'Hello, {name}!',
        'todo.fields.text': 'Task',
        'todo.fields.text_placeholder': 'What needs to be done?',
        'todo.fields.due_date': 'Due date',
        'todo.fields.priority': 'Priority',
        'todo.add': 'Add task',
        'todo.save': 'Save',
        'todo.edit': 'Edit',
        'todo.delete': 'Delete',
        'todo.empty': 'No tasks yet.',
        'todo.due': 'Due {date}',
        'todo.filter.all': 'All ({count})',
        'todo.filter.active': 'Active ({count})',
        'todo.filter.completed': 'Completed ({count})',
        'todo.priority.IMPORTANT': 'Important',
        'todo.priority.MEDIUM': 'Medium',
        'todo.priority.EASY': 'Easy',
        'todo.errors.text_required': 'Task text is required.',
        'todo.errors.text_too_long': 'Task must be 200 characters or less.',
        'todo.errors.due_date_invalid': 'Enter a due date in YYYY-MM-DD format.',
        'todo.errors.due_date_past': 'Due date cannot be in the past.',
        'todo.errors.priority_invalid': 'Choose a valid priority.',
        'todo.errors.not_found': 'Task not found.',
        'todo.flash.added': 'Task added.',
        'todo.flash.updated': 'Task updated.',
        'todo.flash.completed': 'Task completed!',
        'todo.flash.reactivated': 'Task reactivated!',
        'todo.flash.deleted': 'Task deleted.',

        'profile.title': 'Profile',
        'profile.fields.display_name': 'Display name',
        'profile.fields.avatar_file': 'Upload avatar',
        'profile.fields.avatar_url': 'Or avatar URL',
        'profile.fields.remove_avatar': 'Remove avatar',
        'profile.submit': 'Save changes',
        'profile.errors.display_name_max': 'Display name must be 50 characters or less.',
        'profile.errors.invalid_file_type': 'Please upload an image file.',
        'profile.errors.file_too_large': 'File is too large (max 2 MB).',
        'profile.errors.invalid_url': 'Enter a valid URL.',
        'profile.errors.url_too_long': 'URL must be 500 characters or less.',
        'profile.errors.upload_failed': 'Failed to save the avatar. Please try again.',
        'profile.flash.updated': 'Profile updated.',
        'profile.flash.no_changes': 'Nothing to update.',
    },
    'ru': {
        'app.title': 'Список дел',
        'nav.todos': 'Мои задачи',
        'nav.profile': 'Профиль',
        'nav.login': 'Войти',
        'nav.register': 'Регистрация',
        'nav.logout': 'Выйти',
        'nav.language': 'Язык',

        'errors.unexpected': 'Что-то пошло не так. Попробуйте ещё раз.',
        'errors.login_required': 'Войдите, чтобы продолжить.',
        'errors.invalid_form': 'Форма устарела. Попробуйте ещё раз.',
        'errors.page_not_found': 'Страница не найдена.',

        'auth.login.title': 'Вход',
        'auth.login.submit': 'Войти',
        'auth.login.no_account': 'Нет аккаунта?',
        'auth.login.forgot': 'Забыли пароль?',
        'auth.register.title': 'Создать аккаунт',
        'auth.register.submit': 'Зарегистрироваться',
        'auth.register.have_account': 'Уже есть аккаунт?',
        'auth.forgot.title': 'Сброс пароля',
        'auth.forgot.subtitle': 'Введите email или имя пользователя, чтобы найти аккаунт.',
        'auth.forgot.submit_find': 'Найти аккаунт',
        'auth.forgot.submit_reset': 'Сохранить новый пароль',
        'auth.forgot.back_to_login': 'Вернуться ко входу',
        'auth.fields.email': 'Email',
        'auth.fields.username': 'Имя пользователя',
        'auth.fields.display_name': 'Отображаемое имя',
        'auth.fields.password': 'Пароль',
        'auth.fields.confirm_password': 'Подтвердите пароль',
        'auth.fields.identifier': 'Email или имя пользователя',
        'auth.fields.new_password': 'Новый пароль',
        'auth.fields.confirm_new_password': 'Подтвердите новый пароль',
        'auth.errors.email_invalid': 'Введите корректный email.',
        'auth.errors.email_too_long': 'Email должен содержать не более 120 символов.',
        'auth.errors.username_min': 'Имя пользователя должно содержать не менее 3 символов.',
        'auth.errors.username_max': 'Имя пользователя должно содержать не более 50 символов.',
        'auth.errors.display_name_required': 'Укажите отображаемое имя.',
        'auth.errors.display_name_max': 'Отображаемое имя должно содержать не более 50 символов.',
        'auth.errors.password_min': 'Пароль должен содержать не менее 6 символов.',
        'auth.errors.passwords_no_match': 'Пароли не совпадают.',
        'auth.errors.email_exists': 'Аккаунт с таким email уже существует.',
        'auth.errors.username_exists': 'Это имя пользователя уже занято.',
        'auth.errors.invalid_credentials': 'Неверный email/имя пользователя или пароль.',
        'auth.errors.identifier_required': 'Введите email или имя пользователя.',
        'auth.errors.account_not_found': 'Аккаунт не найден.',
        'auth.flash.registered': 'Регистрация прошла успешно! Теперь вы можете войти.',
        'auth.flash.password_reset': 'Пароль изменён. Теперь вы можете войти.',
        'auth.flash.logged_out': 'Вы вышли из аккаунта.',

        'todo.title': 'Мои задачи',
        'todo.greeting': 'Привет, {name}!',
        'todo.fields.text': 'Задача',
        'todo.fields.text_placeholder': 'Что нужно сделать?',
        'todo.fields.due_date': 'Срок',
        'todo.fields.priority': 'Приоритет',
        'todo.add': 'Добавить',
        'todo.save': 'Сохранить',
        'todo.edit': 'Изменить',
        'todo.delete': 'Удалить',
        'todo.empty': 'Задач пока нет.',
        'todo.due': 'Срок: {date}',
        'todo.filter.all': 'Все ({count})',
        'todo.filter.active': 'Активные ({count})',
        'todo.filter.completed': 'Выполненные ({count})',
        'todo.priority.IMPORTANT': 'Важно',
        'todo.priority.MEDIUM': 'Средне',
        'todo.priority.EASY': 'Легко',
        'todo.errors.text_required': 'Введите текст задачи.',
        'todo.errors.text_too_long': 'Задача должна содержать не более 200 символов.',
        'todo.errors.due_date_invalid': 'Укажите срок в формате ГГГГ-ММ-ДД.',
        'todo.errors.due_date_past': 'Срок не может быть в прошлом.',
        'todo.errors.priority_invalid': 'Выберите корректный приоритет.',
        'todo.errors.not_found': 'Задача не найдена.',
        'todo.flash.added': 'Задача добавлена.',
        'todo.flash.updated': 'Задача обновлена.',
        'todo.flash.completed': 'Задача выполнена!',
        'todo.flash.reactivated': 'Задача снова активна!',
        'todo.flash.deleted': 'Задача удалена.',

        'profile.title': 'Профиль',
        'profile.fields.display_name': 'Отображаемое имя',
        'profile.fields.avatar_file': 'Загрузить аватар',
        'profile.fields.avatar_url': 'Или ссылка на аватар',
        'profile.fields.remove_avatar': 'Удалить аватар',
        'profile.submit': 'Сохранить',
        'profile.errors.display_name_max': 'Отображаемое имя должно содержать не более 50 символов.',
        'profile.errors.invalid_file_type': 'Загрузите изображение.',
        'profile.errors.file_too_large': 'Файл слишком большой (максимум 2 МБ).',
        'profile.errors.invalid_url': 'Введите корректную ссылку.',
        'profile.errors.url_too_long': 'Ссылка должна содержать не более 500 символов.',
        'profile.errors.upload_failed': 'Не удалось сохранить аватар. Попробуйте ещё раз.',
        'profile.flash.updated': 'Профиль обновлён.',
        'profile.flash.no_changes': 'Нет изменений.',
    },
}


def _supported_locales():
    if has_app_context():
        return tuple(current_app.config.get('LANGUAGES', SUPPORTED_LOCALES))
    return SUPPORTED_LOCALES


def _default_locale():
    if has_app_context():
        return current_app.config.get('DEFAULT_LOCALE', DEFAULT_LOCALE)
    return DEFAULT_LOCALE


def translate(locale, key, **params):
    """
    Look up a localized message.

    Args:
        locale (str): Locale code, e.g. 'en' or 'ru'
        key (str): Dotted message key
        **params: Values substituted into the message with str.format

    Returns:
        str: The localized message, or the key itself if no locale defines it
    """
    message = MESSAGES.get(locale, {}).get(key)
    if message is None:
        message = MESSAGES[DEFAULT_LOCALE].get(key)
    if message is None:
        logger.warning(f"Missing translation for key '{key}' (locale {locale})")
        return key
    if params:
        return message.format(**params)
    return message


def get_locale():
    """Locale for the current request: session choice, then Accept-Language, then default."""
    if not has_request_context():
        return _default_locale()

    supported = _supported_locales()
    chosen = session.get('locale')
    if chosen in supported:
        return chosen

    return request.accept_languages.best_match(supported) or _default_locale()


def set_locale(locale):
    """Remember the user's language choice. Unsupported codes are ignored."""
    if locale in _supported_locales():
        session['locale'] = locale
        return True
    return False


def init_app(app):
    """Expose translation helpers to templates."""

    @app.context_processor
    def inject_i18n():
        locale = get_locale()
        return {
            '_': lambda key, **params: translate(locale, key, **params),
            'current_locale': locale,
            'supported_locales': _supported_locales(),
        }
