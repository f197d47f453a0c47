"""
Django settings for the token vault service.

Everything deployment-specific comes from the environment; a .env file in the
project root is loaded first if present.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def _env_bool(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "insecure-dev-key-change-me")
DEBUG = _env_bool("DJANGO_DEBUG")
ALLOWED_HOSTS = [host for host in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if host]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "drf_spectacular",
    "tokens.apps.TokensConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

# The tokens live in GitHub; there is no local database.
DATABASES = {}

USE_TZ = True
TIME_ZONE = "UTC"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "tokens.exceptions.api_exception_handler",
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Token Vault API",
    "DESCRIPTION": "Add, list, edit and delete token records stored as a file in a GitHub repository.",
    "VERSION": "1.0.0",
}

TOKEN_STORE = {
    "TOKEN": os.getenv("GITHUB_TOKEN", ""),
    "OWNER": os.getenv("GITHUB_OWNER", ""),
    "REPO": os.getenv("GITHUB_REPO", ""),
    "FILE_PATH": os.getenv("GITHUB_FILE_PATH", "tokens.json"),
    "BRANCH": os.getenv("GITHUB_BRANCH", ""),
    "API_URL": os.getenv("GITHUB_API_URL", "https://api.github.com"),
    "TIMEOUT": os.getenv("GITHUB_TIMEOUT", "10"),
    "PORT": os.getenv("PORT", "3000"),
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
    },
    "root": {"handlers": ["console"], "level": os.getenv("LOG_LEVEL", "INFO").upper()},
}
