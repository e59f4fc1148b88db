from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> int: ...


@dataclass(frozen=True)
class SystemClock:
    def now_ms(self) -> int:
        return int(time.time() * 1000)
