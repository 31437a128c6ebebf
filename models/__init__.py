from .settings import Settings
from .app_state import AppState

__all__ = [
    "Settings",
    "AppState",
]
