from typing import Any, Callable, Dict

import pytest

from models import AppState, Settings


class FakeMcp:
    """Captures functions registered with ``@mcp.tool()``."""

    def __init__(self) -> None:
        self.tools: Dict[str, Callable[..., Any]] = {}

    def tool(self):
        def decorator(fn):
            self.tools[fn.__name__] = fn
            return fn

        return decorator


@pytest.fixture
def settings():
    return Settings(end_marker="…", max_input_chars=200)


@pytest.fixture
def state(settings):
    return AppState(settings=settings)


@pytest.fixture
def fake_mcp():
    return FakeMcp()
