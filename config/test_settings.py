from config.settings import *  # noqa: F401,F403

TOKEN_STORE = {
    "TOKEN": "test-credential",
    "OWNER": "octo",
    "REPO": "vault",
    "FILE_PATH": "tokens.json",
    "BRANCH": "",
    "API_URL": "https://api.github.test",
    "TIMEOUT": "5",
    "PORT": "3000",
}

ALLOWED_HOSTS = ["testserver", "localhost"]

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"null": {"class": "logging.NullHandler"}},
    "root": {"handlers": ["null"], "level": "WARNING"},
}
