from __future__ import annotations

import re
from typing import List

_TAG_RE = re.compile(r"<[^>]+>")
_ARRAY_NAME_RE = re.compile(r"^([^\]]+)(?:\[(.+)\])+$")

_SPECIAL_ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#039;", "'"),
    ("&#39;", "'"),
    # Last, so "&amp;lt;" decodes to "&lt;" and not "<".
    ("&amp;", "&"),
)


def name_to_id(name: str) -> str:
    """
    Form field name to element id.
    user[location][city] -> user-location-city
    """
    s = name.replace("[", "-").replace("]", "-")
    return s.replace("--", "-").rstrip("-")


def name_to_array(name: str) -> List[str]:
    """
    Form field name to its path segments, empty segments dropped.
    user[location][city] -> ["user", "location", "city"]
    """
    result = [name]
    m = _ARRAY_NAME_RE.match(name) if "[" in name or "]" in name else None
    if m:
        result = [m.group(1)] + m.group(2).split("][")

    return [part for part in result if part]


def strip(html: str) -> str:
    """Remove tags, then decode the HTML special characters."""
    # No tag can end past the last ">".
    end = html.rfind(">") + 1
    text = _TAG_RE.sub("", html[:end]) + html[end:]
    for entity, char in _SPECIAL_ENTITIES:
        text = text.replace(entity, char)
    return text
