# config/settings/prod.py
from .base import *  # noqa

DEBUG = False

ALLOWED_HOSTS = [h.strip() for h in os.environ["DJANGO_ALLOWED_HOSTS"].split(",") if h.strip()]  # noqa: F405
SECRET_KEY = os.environ["DJANGO_SECRET_KEY"]  # noqa: F405

CORS_ALLOW_ALL_ORIGINS = False
CORS_ALLOWED_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",") if o.strip()  # noqa: F405
]
CORS_ALLOW_CREDENTIALS = True

SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

JSON_LOGS = True
configure_logging(level=LOG_LEVEL, json_logs=JSON_LOGS)  # noqa: F405
