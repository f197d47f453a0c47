"""
GitHub Contents API client for the tokens file.

The repository file is treated as a versioned blob: a read returns its text
and ``sha``, a write must present the ``sha`` it last saw (or none, to create
the file). GitHub rejects a stale ``sha``, which is surfaced as
RemoteConflictError; nothing here retries.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github.v3+json"
CONFLICT_STATUSES = (409, 422)


class RemoteStoreError(Exception):
    """Any failure talking to the remote store."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class RemoteConflictError(RemoteStoreError):
    """The file changed since it was read (stale or missing sha)."""


@dataclass(frozen=True)
class RemoteFile:
    text: str
    sha: Optional[str]

    @property
    def exists(self) -> bool:
        return self.sha is not None


class GitHubContentsClient:
    """Reads and writes a single file through the GitHub Contents API."""

    def __init__(self, config, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        path = quote(self.config.file_path.lstrip("/"))
        return f"{self.config.api_url.rstrip('/')}/repos/{self.config.owner}/{self.config.repo}/contents/{path}"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.config.token}",
            "Accept": GITHUB_ACCEPT,
            "Content-Type": "application/json",
        }

    def _raise_for_status(self, response, action: str):
        try:
            body = response.json()
        except ValueError:
            body = None
        detail = body.get("message", "") if isinstance(body, dict) else response.text[:200]

        logger.error(f"GitHub {action} of {self.config.file_path} failed: {response.status_code} {detail}")
        error_class = RemoteConflictError if response.status_code in CONFLICT_STATUSES else RemoteStoreError
        raise error_class(
            f"GitHub {action} failed with status {response.status_code}: {detail or 'no details'}",
            status_code=response.status_code,
            detail=detail,
        )

    def _json_body(self, response, action: str) -> dict:
        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"GitHub {action} of {self.config.file_path} returned a non-JSON body")
            raise RemoteStoreError(f"GitHub {action} returned an unreadable response", status_code=response.status_code) from e
        if not isinstance(body, dict):
            raise RemoteStoreError(f"GitHub {action} returned an unexpected response", status_code=response.status_code)
        return body

    def read(self) -> RemoteFile:
        """
        Fetch the file text and its sha.

        Returns:
            RemoteFile; text is empty and sha is None when the file does not exist yet

        Raises:
            RemoteStoreError: On network failure or an unexpected status
        """
        params = {"ref": self.config.branch} if self.config.branch else None
        try:
            response = self.session.get(
                self.url,
                headers=self._headers(),
                params=params,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Error reading {self.config.file_path} from GitHub: {e}")
            raise RemoteStoreError(f"Could not reach GitHub: {e}") from e

        if response.status_code == 404:
            logger.info(f"{self.config.file_path} not found in {self.config.owner}/{self.config.repo}; starting empty")
            return RemoteFile(text="", sha=None)
        if response.status_code != 200:
            self._raise_for_status(response, "read")

        data = self._json_body(response, "read")
        if data.get("encoding") == "none":
            # files over 1 MB come back with encoding "none" and no content
            raise RemoteStoreError(
                f"{self.config.file_path} is too large for the GitHub Contents API ({data.get('size')} bytes)",
                status_code=response.status_code,
            )
        # GitHub wraps base64 content at 60 columns; b64decode skips the newlines.
        try:
            text = base64.b64decode(data.get("content") or "").decode("utf-8", errors="replace")
        except ValueError as e:
            raise RemoteStoreError(f"GitHub returned invalid base64 content for {self.config.file_path}") from e
        return RemoteFile(text=text, sha=data.get("sha"))

    def write(self, text: str, sha: Optional[str], message: str) -> str:
        """
        Commit new file text.

        Args:
            text: Full file contents
            sha: Sha returned by the read this write is based on (None to create)
            message: Commit message

        Returns:
            The sha of the new file revision

        Raises:
            RemoteConflictError: If the sha is stale
            RemoteStoreError: On any other failure
        """
        payload = {
            "message": message,
            "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
        }
        if sha:
            payload["sha"] = sha
        if self.config.branch:
            payload["branch"] = self.config.branch

        try:
            response = self.session.put(
                self.url,
                json=payload,
                headers=self._headers(),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Error writing {self.config.file_path} to GitHub: {e}")
            raise RemoteStoreError(f"Could not reach GitHub: {e}") from e

        if response.status_code not in (200, 201):
            self._raise_for_status(response, "write")

        new_sha = (self._json_body(response, "write").get("content") or {}).get("sha")
        logger.debug(f"Committed {self.config.file_path} at {new_sha}: {message}")
        return new_sha
