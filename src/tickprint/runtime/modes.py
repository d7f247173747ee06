from __future__ import annotations

from dataclasses import dataclass, field

from tickprint.utils.timer import LOGS_PER_SECOND, adv_ts, interval_ms_from_rate


@dataclass(frozen=True)
class TickerSpec:
    """
    Timer semantics.

    Responsibilities:
      - Hold the rate (ticks per second) and the derived period.
      - Provide the deadline advancement rule via `advance(deadline_ms)`.
    """

    rate: float = LOGS_PER_SECOND
    interval_ms: float = field(init=False)

    def __post_init__(self) -> None:
        # validates rate; raises ConfigError
        object.__setattr__(self, "interval_ms", interval_ms_from_rate(self.rate))

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000.0

    def advance(self, deadline_ms: float) -> float:
        return adv_ts(deadline_ms, self.interval_ms)
