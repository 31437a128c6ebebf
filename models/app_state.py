from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from .settings import Settings


@dataclass
class AppState:
    settings: Settings
    started_at_epoch_s: float = field(default_factory=lambda: time.time())
    calls: int = 0
    last_request_id: Optional[str] = None

    def stamp_request(self) -> str:
        rid = str(uuid.uuid4())
        self.last_request_id = rid
        self.calls += 1
        return rid
