from django.core.checks import Error, register

from tokens.services import missing_settings

SETTING_ENV_NAMES = {"TOKEN": "GITHUB_TOKEN", "OWNER": "GITHUB_OWNER", "REPO": "GITHUB_REPO"}


@register()
def check_token_store_settings(app_configs, **kwargs):
    """Refuse to start without the GitHub credential and target repository."""
    return [
        Error(
            f"TOKEN_STORE['{name}'] is not set.",
            hint=f"Set {SETTING_ENV_NAMES[name]} in the environment or the .env file.",
            id="tokens.E001",
        )
        for name in missing_settings()
    ]
