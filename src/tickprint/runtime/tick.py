from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Tick:
    """One firing of the timer."""

    seq: int            # 1-based firing index
    instant: datetime   # wall-clock time read at firing
    line: str           # rendered output, no trailing newline

    @property
    def millisecond(self) -> int:
        return self.instant.microsecond // 1000
