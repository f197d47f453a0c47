"""
Parser for WhatsApp "Export chat" text files.

Each chat message becomes an import item whose createdAt is the time the
message was sent, so tokens pasted into a chat keep their original date.

Both export layouts are recognized:

    [21/03/2024, 14:05:09] Alice: ghp_abc123          (iOS)
    21/03/2024, 14:05 - Alice: ghp_abc123              (Android)

The date order follows the phone's locale, so it is decided once per export:
month-first when some header can only be read that way (3/21/24), day-first
otherwise. Exports carry no time zone, so times are stored as if they were UTC.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from tokens.models import utc_timestamp

_STAMP = (
    r"(?P<first>\d{1,2})/(?P<second>\d{1,2})/(?P<year>\d{2,4}),?\s"
    r"(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<seconds>\d{2}))?"
    r"(?:\s?(?P<ampm>[AaPp]\.?[Mm]\.?))?"
)
_IOS_HEADER_RE = re.compile(r"^\[" + _STAMP + r"\]\s(?P<rest>.*)$")
_ANDROID_HEADER_RE = re.compile(r"^" + _STAMP + r"\s-\s(?P<rest>.*)$")

# Left-to-right marks WhatsApp sprinkles into exports
_INVISIBLE_RE = re.compile("[\u200e\u200f\ufeff]")

SKIPPED_MESSAGES = {
    "<media omitted>",
    "image omitted",
    "video omitted",
    "audio omitted",
    "sticker omitted",
    "document omitted",
    "gif omitted",
    "contact card omitted",
    "this message was deleted",
    "you deleted this message",
    "null",
}
SKIPPED_PREFIXES = ("messages and calls are end-to-end encrypted",)


@dataclass
class ChatMessage:
    sender: str
    text: str
    sent_at: str


def _timestamp(match, day_first: bool = True) -> Optional[str]:
    year = int(match.group("year"))
    if year < 100:
        year += 2000
    first, second = int(match.group("first")), int(match.group("second"))
    day, month = (first, second) if day_first else (second, first)
    hour = int(match.group("hour"))
    ampm = (match.group("ampm") or "").replace(".", "").lower()
    if ampm == "pm" and hour < 12:
        hour += 12
    elif ampm == "am" and hour == 12:
        hour = 0

    try:
        moment = datetime(
            year,
            month,
            day,
            hour,
            int(match.group("minute")),
            int(match.group("seconds") or 0),
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None
    return utc_timestamp(moment)


def _match_header(line: str):
    return _IOS_HEADER_RE.match(line) or _ANDROID_HEADER_RE.match(line)


def _clean_lines(text: str) -> List[str]:
    lines = (_INVISIBLE_RE.sub("", raw_line).strip() for raw_line in text.splitlines())
    return [line for line in lines if line]


def _is_day_first(lines: List[str]) -> bool:
    """Month-first only when a header has a second field above 12 and none has a first field above 12."""
    month_first_seen = False
    for line in lines:
        match = _match_header(line)
        if not match:
            continue
        if int(match.group("first")) > 12:
            return True
        if int(match.group("second")) > 12:
            month_first_seen = True
    return not month_first_seen


def _keep(message: ChatMessage) -> bool:
    text = message.text.lower()
    return bool(text) and text not in SKIPPED_MESSAGES and not text.startswith(SKIPPED_PREFIXES)


def parse_chat(text: str) -> List[ChatMessage]:
    """
    Split an exported chat into messages.

    Lines without a timestamp header continue the previous message and are
    joined to it with a space. A header whose date cannot be read ends the
    current message and is dropped. System notices (no "Sender:" part), media
    placeholders and deleted messages are dropped too.
    """
    lines = _clean_lines(text)
    day_first = _is_day_first(lines)
    messages: List[ChatMessage] = []
    current: Optional[ChatMessage] = None

    for line in lines:
        match = _match_header(line)
        if not match:
            if current is not None:
                current.text = f"{current.text} {line}".strip()
            continue

        sent_at = _timestamp(match, day_first=day_first)
        sender, separator, body = match.group("rest").partition(": ")
        if sent_at is None or not separator:
            # unreadable dates and group notices: "Alice added Bob"
            current = None
            continue

        current = ChatMessage(sender=sender.strip(), text=body.strip(), sent_at=sent_at)
        messages.append(current)

    return [message for message in messages if _keep(message)]


def messages_to_items(messages: List[ChatMessage], tag: str = "") -> List[dict]:
    """Turn chat messages into items for TokenStore.import_tokens."""
    return [
        {
            "name": message.sender,
            "value": message.text,
            "tag": tag,
            "createdAt": message.sent_at,
        }
        for message in messages
    ]
