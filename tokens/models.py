import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-01T00:00:00.000Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string, accepting a trailing ``Z``. Raises ValueError."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


class _IdGenerator:
    """Millisecond-clock ids that never repeat within the process."""

    def __init__(self):
        self._lock = threading.Lock()
        self._last = 0

    def __call__(self) -> str:
        with self._lock:
            candidate = int(time.time() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return str(candidate)


new_token_id = _IdGenerator()


@dataclass
class Token:
    """A catalogued secret: one row of the remote tokens file."""

    id: str
    name: str
    value: str
    tag: str = ""
    created_at: str = ""

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "value": self.value,
            "tag": self.tag,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Token":
        def _text(key: str) -> str:
            raw = data.get(key)
            return "" if raw is None else str(raw)

        return cls(
            id=_text("id"),
            name=_text("name"),
            value=_text("value"),
            tag=_text("tag"),
            created_at=_text("createdAt") or utc_timestamp(),
        )
