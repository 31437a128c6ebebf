from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from itertools import chain
from typing import Iterator, Optional


class TokenKind(Enum):
    OPEN_TAG = "open_tag"
    CLOSE_TAG = "close_tag"
    SELF_CLOSING_TAG = "self_closing_tag"
    ENTITY = "entity"
    TEXT = "text"


# Tags first, then entities. Everything between matches is literal text.
_TOKEN_RE = re.compile(
    r"(?P<tag></?(?P<name>[a-zA-Z][a-zA-Z0-9]*)[^>]*>)|(?P<entity>&#?[a-zA-Z0-9]+;)"
)
# No tag can start after the last ">", so only entities are looked for there.
_ENTITY_RE = re.compile(r"(?P<entity>&#?[a-zA-Z0-9]+;)")


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    name: Optional[str] = None

    @property
    def visible(self) -> bool:
        """True for tokens that count towards the printed length."""
        return self.kind in (TokenKind.TEXT, TokenKind.ENTITY)

    @property
    def width(self) -> int:
        if self.kind is TokenKind.TEXT:
            return len(self.text)
        if self.kind is TokenKind.ENTITY:
            return 1
        return 0


def _tag_kind(tag: str) -> TokenKind:
    if tag.startswith("</"):
        return TokenKind.CLOSE_TAG
    if tag.endswith("/>"):
        return TokenKind.SELF_CLOSING_TAG
    return TokenKind.OPEN_TAG


def tokenize(html: str) -> Iterator[Token]:
    """
    Split HTML into tags, entities and text runs.

    Malformed markup is never rejected: anything the pattern does not
    recognize as a tag or entity comes back as text.
    """
    position = 0
    end = html.rfind(">") + 1
    matches = chain(_TOKEN_RE.finditer(html, 0, end), _ENTITY_RE.finditer(html, end))
    for m in matches:
        if m.start() > position:
            yield Token(TokenKind.TEXT, html[position : m.start()])

        tag = m.groupdict().get("tag")
        if tag:
            yield Token(_tag_kind(tag), tag, m.group("name"))
        else:
            yield Token(TokenKind.ENTITY, m.group("entity"))

        position = m.end()

    if position < len(html):
        yield Token(TokenKind.TEXT, html[position:])
