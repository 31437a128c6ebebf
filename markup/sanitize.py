from __future__ import annotations

import logging
import re
from html import unescape
from typing import Callable, Tuple

logger = logging.getLogger("markup.sanitize")

# Control characters and space.
_BLANK = r"[\x00-\x20]"


# ----------------------------
# Entities
# ----------------------------

_ENCODED_SPECIALS = (
    ("&amp;", "&amp;amp;"),
    ("&lt;", "&amp;lt;"),
    ("&gt;", "&amp;gt;"),
)

_ENTITY_GAP_RE = re.compile(r"(&#*\w+)" + _BLANK + r"+;")
_NUMERIC_ENTITY_RE = re.compile(r"(&#x*)([0-9A-F]+);*", re.IGNORECASE)
_ENTITY_REF_RE = re.compile(r"&(?:#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);")


def escape_encoded_entities(html: str) -> str:
    """Double-escape &amp; &lt; &gt; so decoding leaves them encoded."""
    for needle, replacement in _ENCODED_SPECIALS:
        html = html.replace(needle, replacement)
    return html


def normalize_entities(html: str) -> str:
    """Fix ``&entity\\n;`` and missing/repeated semicolons on numeric refs."""
    html = _ENTITY_GAP_RE.sub(r"\1;", html)
    return _NUMERIC_ENTITY_RE.sub(r"\1\2;", html)


def _decode_entity(m: re.Match) -> str:
    decoded = unescape(m.group(0))
    # Single-quote references stay encoded.
    if decoded == "'":
        return m.group(0)
    return decoded


def decode_entities(html: str) -> str:
    return _ENTITY_REF_RE.sub(_decode_entity, html)


# ----------------------------
# Attributes
# ----------------------------

# Opening tags only; closing tags carry no attributes.
_OPEN_TAG_RE = re.compile(r"<(?!/)[^>]+>")

# Optional `= value`, where value is quoted (possibly unterminated) or bare.
_ATTR_VALUE = (
    r"(?:" + _BLANK + r"*=" + _BLANK + r"*"
    r"""(?:"[^"]*"?|'[^']*'?|`[^`]*`?|[^\x00-\x20>]*))?"""
)
# Attribute names start after a whole run of blanks (removed with the
# attribute), a quote or a slash.
_ATTR_START = r"""(?:(?<![\x00-\x20])[\x00-\x20]+|(?<=["'/]))"""

_EVENT_ATTR_RE = re.compile(
    _ATTR_START + r"(?:on|xmlns)[^\x00-\x20=>/]*" + _ATTR_VALUE,
    re.IGNORECASE,
)
_STYLE_ATTR_RE = re.compile(
    _ATTR_START + r"style(?=[\x00-\x20=>/])" + _ATTR_VALUE,
    re.IGNORECASE,
)


def _sub_tags(pattern: re.Pattern, repl, html: str) -> str:
    """
    ``pattern.sub`` for patterns ending in ``>``.

    No match can end past the last ``>``, so the tail is left unscanned.
    """
    end = html.rfind(">") + 1
    return pattern.sub(repl, html[:end]) + html[end:]


def _strip_attributes(html: str, attr_re: re.Pattern) -> str:
    return _sub_tags(_OPEN_TAG_RE, lambda m: attr_re.sub("", m.group(0)), html)


def strip_event_attributes(html: str) -> str:
    """Remove on* event handlers and xmlns declarations from every tag."""
    return _strip_attributes(html, _EVENT_ATTR_RE)


def strip_style_attributes(html: str) -> str:
    # IE evaluated CSS expressions: <span style="width: expression(alert(1));">
    return _strip_attributes(html, _STYLE_ATTR_RE)


# ----------------------------
# Protocols
# ----------------------------

_PROTOCOL_BODY = (
    r"([{letters}]*)[\x00-\x20/]*=[\x00-\x20/]*([`'\"]*)[\x00-\x20/|(&#\d+;)]*"
)


def _protocol_prefix(letters: str) -> str:
    """
    ``attr = "`` prefix; ``letters`` is the attribute-name character class.

    A match may only start where it cannot be extended to the left: not
    after a letter, and not after a blank or slash unless at a letter.
    """
    return (
        rf"(?<![{letters}])(?:(?<![\x00-\x20/])|(?=[{letters}]))"
        + _PROTOCOL_BODY.format(letters=letters)
    )


def _gapped(word: str) -> str:
    """Pattern for ``word`` with blanks allowed between its letters."""
    return (_BLANK + "*").join(re.escape(c) for c in word)


_PROTOCOL_RULES: Tuple[Tuple[re.Pattern, str], ...] = (
    (
        re.compile(
            _protocol_prefix("a-zA-Z") + _gapped("javascript") + _BLANK + "*:",
            re.IGNORECASE,
        ),
        r"\1=\2nojavascript...",
    ),
    (
        re.compile(
            _protocol_prefix("a-zA-Z") + _gapped("vbscript") + _BLANK + "*:",
            re.IGNORECASE,
        ),
        r"\1=\2novbscript...",
    ),
    (
        re.compile(_protocol_prefix("a-z") + r"-moz-binding" + _BLANK + "*:"),
        r"\1=\2nomozbinding...",
    ),
    (
        re.compile(_protocol_prefix("a-z") + r"data" + _BLANK + "*:"),
        r"\1=\2nodata...",
    ),
)


def neutralize_protocols(html: str) -> str:
    for pattern, replacement in _PROTOCOL_RULES:
        html = pattern.sub(replacement, html)
    return html


# ----------------------------
# Elements
# ----------------------------

_NAMESPACED_TAG_RE = re.compile(r"</*\w+:\w[^>]*>", re.IGNORECASE)

BLACKLISTED_TAGS = (
    "applet",
    "meta",
    "xml",
    "blink",
    "link",
    "style",
    "script",
    "embed",
    "object",
    "iframe",
    "frame",
    "frameset",
    "ilayer",
    "layer",
    "bgsound",
    "title",
    "base",
)

_BLACKLISTED_TAG_RE = re.compile(
    r"</*(?:" + "|".join(BLACKLISTED_TAGS) + r")[^>]*>", re.IGNORECASE
)


def strip_namespaced_tags(html: str) -> str:
    return _sub_tags(_NAMESPACED_TAG_RE, "", html)


def strip_blacklisted_tags(html: str) -> str:
    """
    Remove blacklisted tags until a pass changes nothing.

    Removing one tag can join the pieces around it into another one
    (``<scr<script>ipt>``), so a single pass is not enough.
    """
    passes = 0
    while True:
        cleaned = _sub_tags(_BLACKLISTED_TAG_RE, "", html)
        if cleaned == html:
            break
        html = cleaned
        passes += 1

    if passes > 1:
        logger.debug("blacklisted tags needed %d passes", passes, extra={"passes": passes})
    return html


# ----------------------------
# Pipeline
# ----------------------------

# Later stages rely on the normalization done by earlier ones.
STAGES: Tuple[Callable[[str], str], ...] = (
    escape_encoded_entities,
    normalize_entities,
    decode_entities,
    strip_event_attributes,
    neutralize_protocols,
    strip_style_attributes,
    strip_namespaced_tags,
    strip_blacklisted_tags,
)


def clean(html: str) -> str:
    """
    Rewrite HTML to neutralize common XSS vectors.

    This is a pattern filter, not a parser: it removes event handler and
    style attributes, defuses script-capable URL schemes and drops
    namespaced and blacklisted elements. Text content is kept.
    """
    if not html:
        return ""
    for stage in STAGES:
        html = stage(html)
    return html
