from flask import Flask
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from dotenv import load_dotenv
import os
import logging

load_dotenv()

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()

def create_app(test_config=None):
    app = Flask(__name__)

    if test_config is None:
        # Validate required environment variables
        required_vars = ['DATABASE_URL', 'SECRET_KEY']
        for var in required_vars:
            if not os.getenv(var):
                raise ValueError(f"Required environment variable {var} is not set")
        app.config.from_object('config')
    else:
        app.config.update(
            LANGUAGES=['en', 'ru'],
            DEFAULT_LOCALE='en',
            AVATAR_URL_PREFIX='/static/avatars/',
            AVATAR_UPLOAD_FOLDER=os.path.join(app.static_folder, 'avatars'),
        )
        app.config.update(test_config)

    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'

    # Register blueprints
    from todoapp.routes.main import main_bp
    from todoapp.core.auth import auth_bp
    from todoapp.core.profile import profile_bp
    from todoapp.projects.todo.routes import todo_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(todo_bp, url_prefix='/todo')

    # Import models to ensure they're known to Flask-SQLAlchemy
    from todoapp.models import User, LogEntry
    from todoapp.projects.todo.models import Todo

    from todoapp.core import commands
    commands.init_app(app)

    from todoapp.core.errors import AuthenticationRequired, register_error_handlers
    register_error_handlers(app)

    # login_required failures go through the same handler as the services'
    @login_manager.unauthorized_handler
    def unauthorized():
        raise AuthenticationRequired()

    from todoapp.core.i18n import init_app as init_i18n
    init_i18n(app)

    # User loader for Flask-Login
    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    return app
