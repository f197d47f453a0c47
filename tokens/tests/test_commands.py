from django.core.management import load_command_class
from django.test import SimpleTestCase, override_settings

from tokens.management.commands.runserver import Command


class RunserverTests(SimpleTestCase):
    def test_tokens_app_provides_runserver(self):
        self.assertIsInstance(load_command_class("tokens", "runserver"), Command)

    @override_settings(TOKEN_STORE={"TOKEN": "t", "OWNER": "o", "REPO": "r", "PORT": "4100"})
    def test_listens_on_configured_port(self):
        self.assertEqual(Command().default_port, "4100")

    @override_settings(TOKEN_STORE={"TOKEN": "t", "OWNER": "o", "REPO": "r"})
    def test_port_defaults_to_3000(self):
        self.assertEqual(Command().default_port, "3000")
