import json
import logging
import sys
from dataclasses import dataclass

from logutils.formatters import (
    HumanFormatter,
    JsonFormatter,
    Timer,
    build_formatter,
    setup_logging,
)


@dataclass
class _Point:
    x: int
    y: int


def _record(msg="hello %s", args=("world",), **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="markup_mcp.tools",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_json_formatter_includes_extras():
    out = JsonFormatter(pretty=False).format(
        _record(tool="clean_html", point=_Point(1, 2), obj=object)
    )
    data = json.loads(out)
    assert data["msg"] == "hello world"
    assert data["level"] == "INFO"
    assert data["logger"] == "markup_mcp.tools"
    assert data["tool"] == "clean_html"
    assert data["point"] == {"x": 1, "y": 2}
    assert data["obj"] == str(object)
    assert "lineno" not in data
    assert "\n" not in out


def test_json_formatter_pretty():
    out = JsonFormatter(pretty=True).format(_record())
    assert "\n" in out
    assert json.loads(out)["msg"] == "hello world"


def test_json_formatter_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()
    data = json.loads(JsonFormatter(pretty=False).format(record))
    assert "ValueError: boom" in data["exc_info"]


def test_human_formatter_without_color():
    out = HumanFormatter(use_color=False).format(_record(tool="limit_html"))
    assert "INFO" in out
    assert "markup_mcp.tools: hello world" in out
    assert '{"tool": "limit_html"}' in out
    assert "\x1b[" not in out


def test_human_formatter_with_color():
    out = HumanFormatter(use_color=True).format(_record())
    assert "\x1b[32m" in out
    assert HumanFormatter.RESET in out


def test_build_formatter():
    assert isinstance(build_formatter("json"), JsonFormatter)
    assert isinstance(build_formatter("human", use_color=False), HumanFormatter)
    assert isinstance(build_formatter("PRETTY", use_color=False), HumanFormatter)


def test_setup_logging_installs_single_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("markup_test", level_name="debug", log_format="human", use_color=False)
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, HumanFormatter)
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_timer_measures():
    with Timer() as t:
        sum(range(1000))
    assert t.ms >= 0.0
