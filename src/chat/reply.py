"""Parsing of in-band directives embedded in model replies."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from src.llm.prompt import BURST_SEPARATOR

_PHOTO_DIRECTIVE = re.compile(r"\[SEND_PHOTO:\s*(.*?)\]", re.IGNORECASE | re.DOTALL)
_SPACES = re.compile(r" {2,}")


@dataclass
class ParsedReply:
    """A model reply split into delivery parts with directives removed.

    Attributes:
        text: All parts joined by spaces, photo directive stripped. This is
            what gets stored and shown.
        parts: Burst parts in order, each trimmed and non-empty.
        photo_request: Payload of the first ``[SEND_PHOTO: ...]`` tag, if any.
            Every tag is stripped; only the first is honoured.
    """

    text: str
    parts: list[str] = field(default_factory=list)
    photo_request: str | None = None


def split_bursts(raw: str) -> list[str]:
    """Split a reply on the burst separator, dropping empty parts."""
    return [part.strip() for part in raw.split(BURST_SEPARATOR) if part.strip()]


def parse_reply(raw: str) -> ParsedReply:
    """Pull out a photo directive, then split *raw* into bursts.

    Tags are stripped before splitting so a tag that straddles a burst
    separator leaves no fragments behind.
    """
    photo_request = None
    match = _PHOTO_DIRECTIVE.search(raw)
    if match:
        payload = " ".join(match.group(1).replace(BURST_SEPARATOR, " ").split())
        photo_request = payload or None
        raw = _PHOTO_DIRECTIVE.sub(" ", raw)

    parts = [_SPACES.sub(" ", part) for part in split_bursts(raw)]
    return ParsedReply(text=" ".join(parts), parts=parts, photo_request=photo_request)
