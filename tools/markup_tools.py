from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from logutils.formatters import Timer
from markup import clean, limit, name_to_array, name_to_id, strip
from models import AppState


logger = logging.getLogger("markup_mcp.tools")


def _check_size(state: AppState, field: str, value: str) -> None:
    max_chars = state.settings.max_input_chars
    if len(value) > max_chars:
        raise ValueError(
            f"'{field}' is {len(value)} characters; the limit is {max_chars}"
        )


def _log_call(
    tool: str, request_id: str, timer: Timer, input_chars: int, output_chars: int
) -> None:
    logger.info(
        "tool call",
        extra={
            "event": "tool_call",
            "tool": tool,
            "request_id": request_id,
            "input_chars": input_chars,
            "output_chars": output_chars,
            "duration_ms": round(timer.ms, 2),
        },
    )


def register_markup_tools(mcp: Any, state: AppState) -> None:
    @mcp.tool()
    def limit_html(
        html: str, max_length: int, end: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Truncate HTML to max_length visible characters.
        Open tags are closed; `end` is appended where content was cut
        (defaults to the server's configured end marker).
        """
        _check_size(state, "html", html)
        try:
            max_length = int(max_length)
        except (TypeError, ValueError):
            raise ValueError(
                f"Invalid max_length '{max_length}'. Expected an integer"
            ) from None

        marker = state.settings.end_marker if end is None else end
        rid = state.stamp_request()
        with Timer() as t:
            out = limit(html, max_length, marker)
        _log_call("limit_html", rid, t, len(html), len(out))

        return {
            "html": out,
            "max_length": max_length,
            "input_chars": len(html),
            "output_chars": len(out),
        }

    @mcp.tool()
    def clean_html(html: str) -> Dict[str, Any]:
        """
        Neutralize XSS vectors: event handler and style attributes,
        script-capable URL schemes, namespaced and blacklisted elements.
        """
        _check_size(state, "html", html)
        rid = state.stamp_request()
        with Timer() as t:
            out = clean(html)
        _log_call("clean_html", rid, t, len(html), len(out))

        return {
            "html": out,
            "input_chars": len(html),
            "output_chars": len(out),
            "changed": out != html,
        }

    @mcp.tool()
    def strip_html(html: str) -> Dict[str, Any]:
        """Remove tags and decode HTML special characters."""
        _check_size(state, "html", html)
        rid = state.stamp_request()
        with Timer() as t:
            text = strip(html)
        _log_call("strip_html", rid, t, len(html), len(text))
        return {"text": text}

    @mcp.tool()
    def field_name_to_id(name: str) -> Dict[str, Any]:
        """user[location][city] -> user-location-city"""
        _check_size(state, "name", name)
        return {"id": name_to_id(name)}

    @mcp.tool()
    def field_name_to_array(name: str) -> Dict[str, Any]:
        """user[location][city] -> ["user", "location", "city"]"""
        _check_size(state, "name", name)
        parts: List[str] = name_to_array(name)
        return {"parts": parts}

    @mcp.tool()
    def get_server_info() -> Dict[str, Any]:
        s = state.settings
        return {
            "end_marker": s.end_marker,
            "max_input_chars": s.max_input_chars,
            "http_path": s.http_path,
            "calls": state.calls,
            "started_at_epoch_s": state.started_at_epoch_s,
            "last_request_id": state.last_request_id,
        }
