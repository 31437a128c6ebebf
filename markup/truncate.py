from __future__ import annotations

from typing import List

from .tokens import Token, TokenKind, tokenize


def _has_visible(tokens: List[Token]) -> bool:
    return any(t.visible for t in tokens)


def limit(html: str, max_length: int, end: str = "...") -> str:
    """
    Truncate HTML to ``max_length`` visible characters, closing open tags.

    Text counts one per character and every entity counts as one; tags are
    free. When visible content is cut off, ``end`` is appended once at the
    cut. Tags still open at that point are closed in reverse order.
    """
    if not html or max_length <= 0:
        return ""

    tokens = list(tokenize(html))
    out: List[str] = []
    open_tags: List[str] = []
    printed = 0

    for index, token in enumerate(tokens):
        if token.kind is TokenKind.TEXT:
            room = max_length - printed
            if len(token.text) > room:
                out.append(token.text[:room])
                out.append(end)
                break
            out.append(token.text)
        elif token.kind is TokenKind.OPEN_TAG:
            out.append(token.text)
            open_tags.append(token.name)
        elif token.kind is TokenKind.CLOSE_TAG:
            out.append(token.text)
            if open_tags:
                open_tags.pop()
        else:
            out.append(token.text)

        printed += token.width

        # Budget used up exactly: only trailing tags may follow.
        if token.visible and printed >= max_length:
            if _has_visible(tokens[index + 1 :]):
                out.append(end)
                break

    while open_tags:
        out.append(f"</{open_tags.pop()}>")

    return "".join(out)
