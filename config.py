import os

DATABASE_URL = os.getenv("DATABASE_URL").replace("postgres://", "postgresql://", 1)
SQLALCHEMY_DATABASE_URI = DATABASE_URL

SECRET_KEY = os.getenv("SECRET_KEY")

# Avatar uploads live under the static folder so they are web-servable as-is
AVATAR_UPLOAD_FOLDER = os.getenv(
    "AVATAR_UPLOAD_FOLDER",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "todoapp", "static", "avatars"),
)
AVATAR_URL_PREFIX = os.getenv("AVATAR_URL_PREFIX", "/static/avatars/")

# Above the 2 MiB avatar limit so oversized files get a field error instead of a 413
MAX_CONTENT_LENGTH = 8 * 1024 * 1024

LANGUAGES = ["en", "ru"]
DEFAULT_LOCALE = "en"

# Jinja2 whitespace control - prevents unwanted line breaks in rendered HTML
JINJA2_TRIM_BLOCKS = True
JINJA2_LSTRIP_BLOCKS = True
