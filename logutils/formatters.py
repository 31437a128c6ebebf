import json
import logging
import sys
import time
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Optional

# LogRecord attributes that are not caller-supplied `extra` fields.
_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        "asctime",
    }
)


def _json_safe(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool, list, dict)):
        return value
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return str(value)


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: _json_safe(v) for k, v in record.__dict__.items() if k not in _RECORD_ATTRS
    }


def _stderr_is_tty() -> bool:
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


class JsonFormatter(logging.Formatter):
    def __init__(self, pretty: Optional[bool] = None) -> None:
        super().__init__()
        self.pretty = _stderr_is_tty() if pretty is None else pretty

    def format(self, record: logging.LogRecord) -> str:
        base: Dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)

        base.update(_extras(record))

        # Indented for terminals, compact for files/aggregators
        if self.pretty:
            return json.dumps(base, ensure_ascii=False, indent=2)
        return json.dumps(base, ensure_ascii=False, separators=(",", ":"))


class HumanFormatter(logging.Formatter):
    LEVEL_COLORS = {
        "DEBUG": "\x1b[36m",
        "INFO": "\x1b[32m",
        "WARNING": "\x1b[33m",
        "ERROR": "\x1b[31m",
        "CRITICAL": "\x1b[41m",
    }
    RESET = "\x1b[0m"

    def __init__(self, use_color: bool = True) -> None:
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        ts = time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime(record.created))
        level = record.levelname
        color = self.LEVEL_COLORS.get(level, "") if self.use_color else ""
        reset = self.RESET if self.use_color else ""
        line = f"{ts} {color}{level:<8}{reset} {record.name}: {record.getMessage()}"

        extras = _extras(record)
        if extras:
            try:
                line = f"{line} {json.dumps(extras, ensure_ascii=False)}"
            except (TypeError, ValueError):
                line = f"{line} {extras}"

        if record.exc_info:
            line = line + "\n" + self.formatException(record.exc_info)

        return line


def build_formatter(log_format: str, use_color: Optional[bool] = None) -> logging.Formatter:
    if log_format.lower() in ("human", "pretty"):
        return HumanFormatter(use_color=_stderr_is_tty() if use_color is None else use_color)
    return JsonFormatter()


def setup_logging(
    service_name: str,
    level_name: str = "INFO",
    log_format: str = "json",
    use_color: Optional[bool] = None,
) -> None:
    level_name = level_name.upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(build_formatter(log_format, use_color))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger(service_name).info(
        "logging configured",
        extra={"service": service_name, "log_level": level_name, "log_format": log_format},
    )


class Timer:
    def __init__(self) -> None:
        self._start = 0.0
        self.ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.ms = (time.perf_counter() - self._start) * 1000.0
