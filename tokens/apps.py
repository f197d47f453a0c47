from django.apps import AppConfig


class TokensConfig(AppConfig):
    name = "tokens"
    verbose_name = "Token vault"

    def ready(self):
        from tokens import checks  # noqa: F401
