import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from tokens.codec import decode, encode, format_for_path
from tokens.github import GitHubContentsClient, RemoteFile
from tokens.models import Token, new_token_id, parse_timestamp, utc_timestamp

logger = logging.getLogger(__name__)

DEFAULT_FILE_PATH = "tokens.json"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 10  # seconds
REQUIRED_SETTINGS = ("TOKEN", "OWNER", "REPO")


class TokenStoreError(Exception):
    """Base class for token store outcomes the API reports to the caller."""


class TokenValidationError(TokenStoreError):
    """A required field is missing or malformed."""


class DuplicateTokenError(TokenStoreError):
    """The token value is already stored."""


class TokenNotFoundError(TokenStoreError):
    """No token has the requested id."""


@dataclass(frozen=True)
class TokenStoreConfig:
    """Remote target and credential, fixed at start-up."""

    token: str
    owner: str
    repo: str
    file_path: str = DEFAULT_FILE_PATH
    branch: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT

    @property
    def file_format(self) -> str:
        return format_for_path(self.file_path)


@dataclass
class ImportResult:
    created: List[Token] = field(default_factory=list)
    skipped: List[dict] = field(default_factory=list)


def missing_settings(options: Optional[dict] = None) -> List[str]:
    """Return the names of required TOKEN_STORE settings that are unset."""
    if options is None:
        options = getattr(settings, "TOKEN_STORE", {})
    return [name for name in REQUIRED_SETTINGS if not options.get(name)]


def load_store_config(options: Optional[dict] = None) -> TokenStoreConfig:
    """
    Build the store configuration from the TOKEN_STORE setting.

    Raises:
        ImproperlyConfigured: If the credential, owner or repo is missing
    """
    if options is None:
        options = getattr(settings, "TOKEN_STORE", {})

    missing = missing_settings(options)
    if missing:
        raise ImproperlyConfigured(
            f"Missing token store settings: {', '.join(missing)}. "
            f"Set GITHUB_TOKEN, GITHUB_OWNER and GITHUB_REPO in the environment or .env file."
        )

    return TokenStoreConfig(
        token=options["TOKEN"],
        owner=options["OWNER"],
        repo=options["REPO"],
        file_path=options.get("FILE_PATH") or DEFAULT_FILE_PATH,
        branch=options.get("BRANCH") or None,
        api_url=options.get("API_URL") or DEFAULT_API_URL,
        timeout=float(options.get("TIMEOUT") or DEFAULT_TIMEOUT),
    )


def _required_text(value, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise TokenValidationError(f"{label} cannot be empty")
    return text


def _created_at(value: Optional[str]) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    text = str(value).strip()
    try:
        parse_timestamp(text)
    except ValueError as exc:
        raise TokenValidationError(f"createdAt is not an ISO-8601 timestamp: {text}") from exc
    return text


class TokenStore:
    """
    Token CRUD on top of a single remote file.

    Every operation reads the whole file, changes the list in memory and writes
    the whole file back with the sha from that same read. Concurrent writers
    are not serialized here: the loser gets a RemoteConflictError.
    """

    def __init__(self, config: TokenStoreConfig, remote=None):
        self.config = config
        self.remote = remote or GitHubContentsClient(config)

    def _fetch(self) -> Tuple[List[Token], Optional[str]]:
        remote_file: RemoteFile = self.remote.read()
        return decode(remote_file.text), remote_file.sha

    def _commit(self, tokens: List[Token], sha: Optional[str], message: str) -> None:
        self.remote.write(encode(tokens, self.config.file_format), sha, message)
        logger.info(f"{message} ({len(tokens)} tokens in {self.config.file_path})")

    @staticmethod
    def _index_of(tokens: List[Token], token_id: str) -> int:
        for index, token in enumerate(tokens):
            if token.id == token_id:
                return index
        raise TokenNotFoundError("Token not found")

    def list(self) -> List[Token]:
        tokens, _ = self._fetch()
        return tokens

    def insert(self, name: str, value: str, tag: str = "", created_at: Optional[str] = None) -> Token:
        """
        Add a token unless its value is already stored.

        Raises:
            TokenValidationError: Empty name/value or bad createdAt (no remote call is made)
            DuplicateTokenError: The value exists in the current snapshot
            RemoteStoreError: Read or write failed
        """
        name = _required_text(name, "Name")
        value = _required_text(value, "Token")
        created_at = _created_at(created_at)

        tokens, sha = self._fetch()
        if any(token.value == value for token in tokens):
            raise DuplicateTokenError("Token already exists")

        token = Token(
            id=new_token_id(),
            name=name,
            value=value,
            tag=(tag or "").strip(),
            created_at=created_at or utc_timestamp(),
        )
        tokens.append(token)
        self._commit(tokens, sha, f"Add token: {token.name}")
        return token

    def update(
        self,
        token_id: str,
        name: str,
        value: str,
        tag: str = "",
        created_at: Optional[str] = None,
    ) -> Token:
        """
        Replace a token's editable fields. createdAt is kept unless supplied.

        Values are not checked for duplicates on update.
        """
        name = _required_text(name, "Name")
        value = _required_text(value, "Token")
        created_at = _created_at(created_at)

        tokens, sha = self._fetch()
        token = tokens[self._index_of(tokens, token_id)]
        token.name = name
        token.value = value
        token.tag = (tag or "").strip()
        if created_at:
            token.created_at = created_at

        self._commit(tokens, sha, f"Update token: {token.name}")
        return token

    def delete(self, token_id: str) -> Token:
        tokens, sha = self._fetch()
        removed = tokens.pop(self._index_of(tokens, token_id))
        self._commit(tokens, sha, f"Delete token: {token_id}")
        return removed

    def delete_many(self, token_ids: Iterable[str]) -> List[Token]:
        """Remove every listed token that exists, in one commit. Unknown ids are ignored."""
        wanted = set(token_ids)
        tokens, sha = self._fetch()

        kept = [token for token in tokens if token.id not in wanted]
        removed = [token for token in tokens if token.id in wanted]
        if not removed:
            raise TokenNotFoundError("None of the requested tokens were found")

        self._commit(kept, sha, f"Delete {len(removed)} tokens")
        return removed

    def import_tokens(self, items: Iterable[dict]) -> ImportResult:
        """
        Add many tokens in one commit.

        Items are dicts with name, value and optional tag/createdAt. Invalid
        items and values already present (in the store or earlier in the same
        batch) are skipped and reported, not raised. Nothing is written when
        every item is skipped.
        """
        tokens, sha = self._fetch()
        seen = {token.value for token in tokens}
        result = ImportResult()

        for position, item in enumerate(items):
            try:
                name = _required_text(item.get("name"), "Name")
                value = _required_text(item.get("value"), "Token")
                created_at = _created_at(item.get("createdAt"))
            except TokenValidationError as e:
                result.skipped.append({"index": position, "name": item.get("name") or "", "reason": str(e)})
                continue

            if value in seen:
                result.skipped.append({"index": position, "name": name, "reason": "Token already exists"})
                continue

            token = Token(
                id=new_token_id(),
                name=name,
                value=value,
                tag=(item.get("tag") or "").strip(),
                created_at=created_at or utc_timestamp(),
            )
            seen.add(value)
            tokens.append(token)
            result.created.append(token)

        if result.created:
            self._commit(tokens, sha, f"Import {len(result.created)} tokens")
        return result


@lru_cache(maxsize=None)
def get_token_store() -> TokenStore:
    """Process-wide store built from settings on first use."""
    return TokenStore(load_store_config())
