from django.conf import settings
from django.core.management.commands.runserver import Command as RunserverCommand

DEFAULT_PORT = "3000"


class Command(RunserverCommand):
    """Development server that listens on TOKEN_STORE["PORT"] when no address is given."""

    @property
    def default_port(self):
        return str(getattr(settings, "TOKEN_STORE", {}).get("PORT") or DEFAULT_PORT)
