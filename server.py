from __future__ import annotations

from dataclasses import replace

from fastmcp import FastMCP

from models import AppState, Settings
from tools.markup_tools import register_markup_tools

import argparse
import os
from typing import Optional, Sequence
from dotenv import load_dotenv
import uvicorn
import logging

from logutils.formatters import setup_logging


load_dotenv()


def build_app(settings: Optional[Settings] = None) -> tuple[FastMCP, AppState]:
    """Creates the MCP server instance and its state."""
    mcp = FastMCP("markup")
    state = AppState(settings=settings or Settings.from_env())

    register_markup_tools(mcp, state)

    return mcp, state


def parse_args(
    settings: Settings, argv: Optional[Sequence[str]] = None
) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="HTML truncation and sanitizing tools over MCP")

    # Network settings
    p.add_argument("--host", default=settings.host)
    p.add_argument("--port", type=int, default=settings.port)
    p.add_argument("--path", default=settings.http_path)

    # TLS settings
    p.add_argument("--https", action="store_true", help="Serve HTTPS using cert/key")
    p.add_argument("--cert", default=os.getenv("TLS_CERT", "certs/fullchain.pem"))
    p.add_argument("--key", default=os.getenv("TLS_KEY", "certs/privkey.pem"))
    p.add_argument("--client-ca", default=os.getenv("TLS_CLIENT_CA"))

    # Tool defaults
    p.add_argument(
        "--end-marker",
        default=settings.end_marker,
        help="Default text appended by limit_html where content is cut",
    )
    p.add_argument(
        "--max-input-chars",
        type=int,
        default=settings.max_input_chars,
        help="Reject tool inputs longer than this",
    )
    return p.parse_args(argv)


def main() -> None:
    settings = Settings.from_env()
    args = parse_args(settings)

    # Command line wins over the environment
    settings = replace(
        settings,
        host=args.host,
        port=args.port,
        http_path=args.path,
        end_marker=args.end_marker,
        max_input_chars=max(1, int(args.max_input_chars)),
    )
    mcp, state = build_app(settings)

    setup_logging(
        "markup_mcp.server",
        level_name=settings.log_level,
        log_format=settings.log_format,
        use_color=settings.log_color,
    )
    logger = logging.getLogger("markup_mcp.server")
    logger.info(
        "server/startup",
        extra={
            "host": settings.host,
            "port": settings.port,
            "path": settings.http_path,
            "https": bool(args.https),
            "end_marker": settings.end_marker,
            "max_input_chars": settings.max_input_chars,
        },
    )

    app = mcp.http_app(path=settings.http_path)
    uvicorn_kwargs = {"host": settings.host, "port": settings.port}

    # Optional TLS settings
    if args.https:
        uvicorn_kwargs.update({"ssl_certfile": args.cert, "ssl_keyfile": args.key})
        if args.client_ca:
            uvicorn_kwargs["ssl_ca_certs"] = args.client_ca

    # FastMCP's own runner does not take TLS options, so serve the ASGI app directly
    uvicorn.run(app, **uvicorn_kwargs)


if __name__ == "__main__":
    main()
