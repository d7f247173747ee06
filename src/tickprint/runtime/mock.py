from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime
from typing import Iterable
import threading

from tickprint.runtime.driver import BaseDriver
from tickprint.runtime.modes import TickerSpec
from tickprint.runtime.sink import LineSink


class MockDriver(BaseDriver):
    """
    Synthetic tick driver.

    Intended for:
      - unit / integration tests
      - checking the line format against known instants

    Guarantees:
      - No sleeping, no system clock reads
      - Fully reproducible output
    """

    def __init__(
        self,
        *,
        instants: Iterable[datetime],
        spec: TickerSpec | None = None,
        sink: LineSink | None = None,
        stop_event: threading.Event | None = None,
        history: int = 64,
    ):
        super().__init__(spec=spec or TickerSpec(), sink=sink, stop_event=stop_event, history=history)
        self._instants = list(instants)

    async def iter_instants(self) -> AsyncIterator[datetime]:
        """Yield the pre-defined instants in order."""
        for instant in self._instants:
            yield instant
