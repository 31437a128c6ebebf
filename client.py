import argparse
import json
import sys
import uuid
from typing import Any, Dict, Optional

import httpx
import logging

from logutils.formatters import setup_logging


logger = logging.getLogger("markup_client")


def _mk_id() -> str:
    return str(uuid.uuid4())


def _truncate(s: str, n: int = 6000) -> str:
    return s if len(s) <= n else s[:n] + "\n…(truncated)…"


def _summarize_response(resp: Dict[str, Any]) -> str:
    """Return a short one-line summary for a JSON-RPC response dict."""
    if not isinstance(resp, dict):
        return _truncate(str(resp), 200)

    if resp.get("error"):
        err = resp["error"]
        if isinstance(err, dict):
            return f"ERROR: {err.get('message') or err.get('code') or str(err)}"
        return f"ERROR: {str(err)}"

    if "result" in resp:
        r = resp["result"]
        if isinstance(r, dict):
            if "tools" in r and isinstance(r["tools"], list):
                names = [
                    t.get("name")
                    for t in r["tools"]
                    if isinstance(t, dict) and t.get("name")
                ]
                return f"tools: {len(names)} available ({', '.join(names[:8])}{'…' if len(names) > 8 else ''})"
            if r.get("isError"):
                return f"TOOL ERROR: {_truncate(_content_text(r), 400)}"
            parts = []
            for k, v in list((tool_output(resp) or r).items())[:6]:
                vs = _truncate(str(v), 120).replace("\n", " ")
                parts.append(f"{k}={vs}")
            return ", ".join(parts) if parts else "(empty result)"
        if isinstance(r, list):
            return f"result: list[{len(r)}]"
        return _truncate(str(r), 200)

    return _truncate(json.dumps(resp, separators=(",", ":"), ensure_ascii=False), 400)


def _content_text(result: Dict[str, Any]) -> str:
    blocks = result.get("content") or []
    return "".join(
        b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text"
    )


def tool_output(resp: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Pull the tool's return value out of a tools/call response.
    Prefers structuredContent; falls back to JSON in the text content.
    """
    r = resp.get("result") if isinstance(resp, dict) else None
    if not isinstance(r, dict) or r.get("isError"):
        return None

    structured = r.get("structuredContent")
    if isinstance(structured, dict):
        return structured

    text = _content_text(r)
    if not text:
        return None
    try:
        obj = json.loads(text)
    except json.JSONDecodeError:
        return None
    return obj if isinstance(obj, dict) else None


class McpGatewayError(Exception):
    pass


def _parse_sse_first_json(body_text: str) -> Dict[str, Any]:
    for line in body_text.splitlines():
        if line.startswith("data:"):
            data = line[len("data:") :].strip()
            if data:
                return json.loads(data)
    raise McpGatewayError(
        f"SSE response had no data: lines.\nBody:\n{_truncate(body_text)}"
    )


class McpHttpClient:
    def __init__(
        self,
        url: str,
        timeout_s: float = 20.0,
        http2: bool = False,
        verify_tls: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url
        self.session_id: Optional[str] = None

        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout_s, connect=timeout_s),
            http2=http2,
            verify=verify_tls,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json, text/event-stream",
            },
        )

    def close(self) -> None:
        self._client.close()

    def _headers(self) -> Dict[str, str]:
        h = {"X-Request-Id": _mk_id()}
        if self.session_id:
            h["Mcp-Session-Id"] = self.session_id
        return h

    def _decode(self, resp: httpx.Response, method: str) -> Dict[str, Any]:
        ct = (resp.headers.get("content-type") or "").lower()

        sid = resp.headers.get("mcp-session-id")
        if sid and not self.session_id:
            self.session_id = sid

        if resp.status_code >= 400:
            if "application/json" in ct:
                try:
                    msg = resp.json()
                except json.JSONDecodeError:
                    msg = None
                if isinstance(msg, dict) and msg.get("error"):
                    raise McpGatewayError(
                        f"[JSON-RPC ERROR] HTTP {resp.status_code} method={method}\n"
                        f"{json.dumps(msg['error'], indent=2)}"
                    )
            raise McpGatewayError(
                f"[HTTP ERROR] HTTP {resp.status_code} method={method}\n"
                f"Content-Type: {ct or '<none>'}\n"
                f"Body:\n{_truncate(resp.text)}"
            )

        if "application/json" in ct:
            return resp.json()

        if "text/event-stream" in ct:
            return _parse_sse_first_json(resp.text)

        raise McpGatewayError(
            f"Unexpected Content-Type for method={method}: {ct!r}\nBody:\n{_truncate(resp.text)}"
        )

    def call(
        self, method: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": _mk_id(),
            "method": method,
            "params": params or {},
        }
        resp = self._client.post(self.url, json=payload, headers=self._headers())
        return self._decode(resp, method)

    def notify(
        self, method: str, params: Optional[Dict[str, Any]] = None
    ) -> None:
        """Send a JSON-RPC notification (no 'id')."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or {},
        }
        resp = self._client.post(self.url, json=payload, headers=self._headers())
        if resp.status_code >= 400:
            raise McpGatewayError(
                f"[HTTP ERROR] HTTP {resp.status_code} method={method}\nBody:\n{_truncate(resp.text)}"
            )

    def initialize(self) -> Dict[str, Any]:
        msg = self.call(
            "initialize",
            {
                "protocolVersion": "2025-06-18",
                "capabilities": {"tools": {}},
                "clientInfo": {"name": "markup-client", "version": "0.1.0"},
            },
        )
        if not self.session_id:
            raise McpGatewayError(
                "Initialize succeeded but no Mcp-Session-Id header was provided."
            )
        self.notify("notifications/initialized", {})
        return msg

    def list_tools(self) -> Dict[str, Any]:
        return self.call("tools/list", {})

    def call_tool(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        return self.call("tools/call", {"name": name, "arguments": arguments})


def build_tool_args(args: argparse.Namespace) -> Dict[str, Any]:
    if args.tool_args:
        return json.loads(args.tool_args)

    if args.html_file:
        with open(args.html_file, encoding="utf-8") as fh:
            html = fh.read()
    elif args.html is not None:
        html = args.html
    else:
        html = sys.stdin.read()

    if args.tool in ("field_name_to_id", "field_name_to_array"):
        return {"name": html}

    tool_args: Dict[str, Any] = {"html": html}
    if args.tool == "limit_html":
        tool_args["max_length"] = args.max_length
        if args.end is not None:
            tool_args["end"] = args.end
    return tool_args


def main() -> None:
    ap = argparse.ArgumentParser(
        description="Call the markup MCP server's tools from the command line."
    )
    ap.add_argument("--url", default="http://127.0.0.1:3333/mcp")
    ap.add_argument("--http2", action="store_true", help="Enable HTTP/2")
    ap.add_argument("--timeout", type=float, default=20.0)
    ap.add_argument("--insecure", action="store_true", help="Disable TLS verification")

    ap.add_argument("--tool", default="clean_html", help="Tool name to call")
    ap.add_argument("--html", help="Input markup (default: read stdin)")
    ap.add_argument("--html-file", help="Read input markup from this file")
    ap.add_argument("--max-length", type=int, default=200, help="limit_html budget")
    ap.add_argument("--end", help="limit_html end marker")
    ap.add_argument(
        "--tool-args",
        help="Raw JSON string to use as tool arguments (overrides the options above)",
    )

    args = ap.parse_args()

    setup_logging("markup_client", log_format="human")

    c = McpHttpClient(
        args.url, timeout_s=args.timeout, http2=args.http2, verify_tls=not args.insecure
    )

    try:
        logger.info("Initializing…")
        c.initialize()
        logger.info("Session: %s", c.session_id)

        try:
            tools = c.list_tools()
            logger.info(_summarize_response(tools))
        except McpGatewayError:
            logger.warning("tools/list failed or blocked, continuing")

        tool_args = build_tool_args(args)
        logger.info("Calling tool: %s", args.tool)
        res = c.call_tool(args.tool, tool_args)
        logger.info(_summarize_response(res))

        out = tool_output(res)
        if out is not None:
            value = out.get("html", out.get("text"))
            print(value if isinstance(value, str) else json.dumps(out, ensure_ascii=False))

    except McpGatewayError as e:
        logger.error(str(e))
    finally:
        c.close()


if __name__ == "__main__":
    main()
