import base64
from unittest import mock

import requests
from django.test import SimpleTestCase

from tokens.github import GITHUB_ACCEPT, GitHubContentsClient, RemoteConflictError, RemoteStoreError
from tokens.services import TokenStoreConfig

CONTENTS_URL = "https://api.github.test/repos/octo/vault/contents/data/tokens.json"


def _response(status_code: int, body=None):
    response = mock.Mock(status_code=status_code, text="")
    response.json.return_value = body if body is not None else {}
    return response


def _client(branch=None):
    config = TokenStoreConfig(
        token="test-credential",
        owner="octo",
        repo="vault",
        file_path="data/tokens.json",
        branch=branch,
        api_url="https://api.github.test/",
        timeout=5,
    )
    session = mock.Mock(spec=requests.Session)
    return GitHubContentsClient(config, session=session), session


class ReadTests(SimpleTestCase):
    def test_read_decodes_wrapped_base64_content(self):
        client, session = _client()
        encoded = base64.b64encode(b'[{"id": "1"}]').decode("ascii")
        wrapped = encoded[:8] + "\n" + encoded[8:] + "\n"
        session.get.return_value = _response(200, {"content": wrapped, "sha": "abc"})

        remote_file = client.read()

        self.assertEqual(remote_file.text, '[{"id": "1"}]')
        self.assertEqual(remote_file.sha, "abc")
        self.assertTrue(remote_file.exists)
        args, kwargs = session.get.call_args
        self.assertEqual(args[0], CONTENTS_URL)
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer test-credential")
        self.assertEqual(kwargs["headers"]["Accept"], GITHUB_ACCEPT)
        self.assertEqual(kwargs["timeout"], 5)
        self.assertIsNone(kwargs["params"])

    def test_missing_file_reads_as_empty(self):
        client, session = _client()
        session.get.return_value = _response(404, {"message": "Not Found"})

        remote_file = client.read()

        self.assertEqual(remote_file.text, "")
        self.assertIsNone(remote_file.sha)
        self.assertFalse(remote_file.exists)

    def test_branch_is_sent_as_ref(self):
        client, session = _client(branch="vault-data")
        session.get.return_value = _response(200, {"content": "", "sha": "abc"})
        client.read()
        self.assertEqual(session.get.call_args.kwargs["params"], {"ref": "vault-data"})

    def test_error_status_raises_remote_store_error(self):
        client, session = _client()
        session.get.return_value = _response(401, {"message": "Bad credentials"})

        with self.assertRaises(RemoteStoreError) as ctx:
            client.read()
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.detail, "Bad credentials")
        self.assertNotIsInstance(ctx.exception, RemoteConflictError)

    def test_file_too_large_for_contents_api_raises(self):
        client, session = _client()
        session.get.return_value = _response(200, {"content": "", "encoding": "none", "size": 2_000_000, "sha": "abc"})

        with self.assertRaises(RemoteStoreError) as ctx:
            client.read()
        self.assertIn("too large", str(ctx.exception))

    def test_non_json_success_body_raises_remote_store_error(self):
        client, session = _client()
        response = _response(200)
        response.json.side_effect = ValueError("not json")
        session.get.return_value = response

        with self.assertRaises(RemoteStoreError):
            client.read()

    def test_network_failure_raises_remote_store_error(self):
        client, session = _client()
        session.get.side_effect = requests.ConnectionError("connection refused")

        with self.assertRaises(RemoteStoreError):
            client.read()


class WriteTests(SimpleTestCase):
    def test_create_omits_sha(self):
        client, session = _client()
        session.put.return_value = _response(201, {"content": {"sha": "new"}})

        self.assertEqual(client.write("[]", None, "Add token: A"), "new")

        payload = session.put.call_args.kwargs["json"]
        self.assertNotIn("sha", payload)
        self.assertEqual(payload["message"], "Add token: A")
        self.assertEqual(base64.b64decode(payload["content"]).decode("utf-8"), "[]")

    def test_update_sends_sha_and_branch(self):
        client, session = _client(branch="vault-data")
        session.put.return_value = _response(200, {"content": {"sha": "def"}})

        client.write("Ключ\tvalue", "abc", "Update token: Ключ")

        args, kwargs = session.put.call_args
        self.assertEqual(args[0], CONTENTS_URL)
        self.assertEqual(kwargs["json"]["sha"], "abc")
        self.assertEqual(kwargs["json"]["branch"], "vault-data")
        self.assertEqual(base64.b64decode(kwargs["json"]["content"]).decode("utf-8"), "Ключ\tvalue")

    def test_stale_sha_raises_conflict(self):
        client, session = _client()
        session.put.return_value = _response(409, {"message": "tokens.json does not match abc"})

        with self.assertRaises(RemoteConflictError) as ctx:
            client.write("[]", "abc", "Add token: A")
        self.assertEqual(ctx.exception.status_code, 409)

    def test_missing_sha_for_existing_file_raises_conflict(self):
        client, session = _client()
        session.put.return_value = _response(422, {"message": "\"sha\" wasn't supplied."})

        with self.assertRaises(RemoteConflictError):
            client.write("[]", None, "Add token: A")

    def test_non_json_error_body_is_reported(self):
        client, session = _client()
        response = _response(502)
        response.json.side_effect = ValueError("not json")
        response.text = "Bad Gateway"
        session.put.return_value = response

        with self.assertRaises(RemoteStoreError) as ctx:
            client.write("[]", "abc", "Add token: A")
        self.assertIn("Bad Gateway", str(ctx.exception))

    def test_non_json_success_body_on_write_raises_remote_store_error(self):
        client, session = _client()
        response = _response(200)
        response.json.side_effect = ValueError("not json")
        session.put.return_value = response

        with self.assertRaises(RemoteStoreError):
            client.write("[]", "abc", "Add token: A")
