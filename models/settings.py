from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    end_marker: str = "..."
    max_input_chars: int = 1_000_000
    host: str = "0.0.0.0"
    port: int = 3333
    http_path: str = "/mcp"
    log_level: str = "INFO"
    log_format: str = "json"
    log_color: Optional[bool] = None

    @staticmethod
    def from_env() -> "Settings":
        max_chars = int(os.getenv("MARKUP_MAX_INPUT_CHARS", "1000000"))
        if max_chars <= 0:
            raise ValueError("MARKUP_MAX_INPUT_CHARS must be positive")

        color_env = os.getenv("LOG_COLOR")
        log_color = None
        if color_env is not None:
            log_color = color_env.strip().lower() in ("1", "true", "yes", "on")

        return Settings(
            end_marker=os.getenv("MARKUP_END_MARKER", "..."),
            max_input_chars=max_chars,
            host=os.getenv("MCP_HOST", "0.0.0.0"),
            port=int(os.getenv("MCP_PORT", "3333")),
            http_path=os.getenv("MCP_HTTP_PATH", "/mcp"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "json").lower(),
            log_color=log_color,
        )
