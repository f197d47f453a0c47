"""
Format codec for the remote tokens file.

The file is either a JSON array of token objects or a legacy tab-delimited
text file (``name<TAB>value<TAB>tag<TAB>createdAt``, trailing fields optional,
or just a bare value per line). Which one gets written is decided by the file
extension of the configured path; reading accepts both.
"""

import base64
import json
import logging
import re
from dataclasses import dataclass
from typing import List, Union

from tokens.models import Token, utc_timestamp

logger = logging.getLogger(__name__)

JSON_FORMAT = "json"
TEXT_FORMAT = "text"

FIELD_SEPARATOR = "\t"
LEGACY_ID_AFFIX = 10  # characters taken from each end of the value

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


@dataclass
class JsonRecords:
    items: list


@dataclass
class DelimitedLine:
    index: int
    fields: List[str]


@dataclass
class BareLine:
    index: int
    value: str


ParsedLine = Union[DelimitedLine, BareLine]


def format_for_path(path: str) -> str:
    """``.json`` files are stored as JSON, everything else as tab-delimited text."""
    return JSON_FORMAT if path.lower().endswith(".json") else TEXT_FORMAT


def legacy_id(value: str) -> str:
    """
    Derive a stable id for a record read from a legacy text line.

    Uses the first and last ten characters of the value, base64-encoded and
    reduced to alphanumerics. Not unique: two values sharing both affixes
    collide.
    """
    head = value[:LEGACY_ID_AFFIX]
    tail = value[max(0, len(value) - LEGACY_ID_AFFIX):]
    encoded = base64.b64encode((head + tail).encode("utf-8")).decode("ascii")
    return _NON_ALNUM_RE.sub("", encoded)


def _parse_structured(content: str) -> Union[JsonRecords, None]:
    try:
        data = json.loads(content)
    except ValueError:
        if content.lstrip()[:1] in ("[", "{"):
            logger.warning("Tokens file looks like JSON but does not parse; reading it as legacy text")
        return None

    if isinstance(data, list):
        return JsonRecords(items=data)
    if isinstance(data, dict) and isinstance(data.get("tokens"), list):
        return JsonRecords(items=data["tokens"])
    if isinstance(data, (int, float, str)) and not isinstance(data, bool):
        # a single bare value, e.g. a numeric token on its own line
        return None

    logger.warning(f"Tokens file holds a JSON {type(data).__name__}, not an array; treating it as empty")
    return JsonRecords(items=[])


def _parse_lines(content: str) -> List[ParsedLine]:
    lines = [line for line in content.split("\n") if line.strip()]
    parsed: List[ParsedLine] = []
    for index, line in enumerate(lines, start=1):
        if FIELD_SEPARATOR in line:
            parsed.append(DelimitedLine(index=index, fields=line.split(FIELD_SEPARATOR)))
        else:
            parsed.append(BareLine(index=index, value=line.strip()))
    return parsed


def _token_from_line(line: ParsedLine) -> Token:
    default_name = f"Token {line.index}"

    if isinstance(line, BareLine):
        return Token(
            id=legacy_id(line.value),
            name=default_name,
            value=line.value,
            tag="",
            created_at=utc_timestamp(),
        )

    fields = [field.strip() for field in line.fields[:4]]
    fields += [""] * (4 - len(fields))
    name, value, tag, created_at = fields
    return Token(
        id=legacy_id(value),
        name=name or default_name,
        value=value,
        tag=tag,
        created_at=created_at or utc_timestamp(),
    )


def decode(raw: Union[str, bytes]) -> List[Token]:
    """
    Decode the tokens file into records. Never raises on malformed content.

    JSON arrays are read as-is (non-object elements dropped); anything else
    falls back to the line-oriented legacy format.
    """
    content = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw

    structured = _parse_structured(content)
    if structured is not None:
        return [Token.from_dict(item) for item in structured.items if isinstance(item, dict)]

    lines = _parse_lines(content)
    if lines:
        logger.info(f"Read {len(lines)} records from legacy text format")
    return [_token_from_line(line) for line in lines]


def encode(tokens: List[Token], fmt: str = JSON_FORMAT) -> str:
    """
    Encode records for storage.

    Text output does not escape tabs or newlines inside fields, so such values
    do not survive a round trip.
    """
    if fmt == JSON_FORMAT:
        return json.dumps([token.to_dict() for token in tokens], indent=2, ensure_ascii=False)
    if fmt == TEXT_FORMAT:
        return "\n".join(
            FIELD_SEPARATOR.join([token.name, token.value, token.tag or "", token.created_at or utc_timestamp()])
            for token in tokens
        )
    raise ValueError(f"Unknown tokens file format: {fmt}")
