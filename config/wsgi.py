"""WSGI entry point. Building the token store here makes a misconfigured deployment fail at start-up."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()

from tokens.services import get_token_store  # noqa: E402

get_token_store()
