from __future__ import annotations

import asyncio
import threading
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import datetime

from tickprint.exceptions.core import LifecycleError
from tickprint.runtime.driver import BaseDriver
from tickprint.runtime.lifecycle import RuntimePhase
from tickprint.runtime.modes import TickerSpec
from tickprint.runtime.sink import LineSink
from tickprint.utils.datefmt import local_now
from tickprint.utils.logger import log_pacing
from tickprint.utils.timer import LOGS_PER_SECOND, monotonic_ms


class TickerDriver(BaseDriver):
    """
    Wall-clock paced repeating action.

    Semantics:
      - The first tick fires one period after the loop starts.
      - Deadlines advance by a fixed period on a monotonic clock, so
        per-tick work does not accumulate drift.
      - A tick that overruns by a full period or more drops the missed
        deadlines instead of replaying them in a burst.
      - The loop is open-ended; it exits only on stop or cancellation.
    """

    def __init__(
        self,
        *,
        spec: TickerSpec,
        sink: LineSink | None = None,
        stop_event: threading.Event | None = None,
        clock: Callable[[], datetime] = local_now,
        monotonic: Callable[[], float] = monotonic_ms,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        history: int = 64,
    ):
        super().__init__(spec=spec, sink=sink, stop_event=stop_event, history=history)
        self._clock = clock
        self._monotonic = monotonic
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None
        self._skipped = 0

    @property
    def task(self) -> asyncio.Task[None] | None:
        return self._task

    @property
    def skipped(self) -> int:
        """Deadlines dropped because of overruns."""
        return self._skipped

    # -------------------------------------------------
    # Time progression
    # -------------------------------------------------

    async def iter_instants(self) -> AsyncIterator[datetime]:
        """Sleep until each deadline, then read the wall clock."""
        interval = self.spec.interval_ms
        deadline = self.spec.advance(self._monotonic())

        while True:
            delay_ms = deadline - self._monotonic()
            if delay_ms > 0:
                await self._sleep(delay_ms / 1000.0)
            else:
                # Late; still hand control back to the loop once.
                await self._sleep(0)

            if self._stop_event.is_set():
                return

            yield self._clock()

            deadline = self.spec.advance(deadline)
            late_ms = self._monotonic() - deadline
            if late_ms >= interval:
                skipped = int(late_ms // interval)
                deadline += skipped * interval
                self._skipped += skipped
                log_pacing(
                    self._logger,
                    "ticker.overrun",
                    seq=self.tick_count,
                    late_ms=round(late_ms, 3),
                    skipped=skipped,
                    interval_ms=interval,
                )

    # -------------------------------------------------
    # Scheduling
    # -------------------------------------------------

    def start(self) -> asyncio.Task[None]:
        """
        Schedule `run()` on the running event loop and return at once.

        Must be called from inside a running loop. A driver starts once.
        """
        if self._task is not None or self.phase is not RuntimePhase.STOPPED:
            raise LifecycleError(f"ticker already started (phase={self.phase.value})")
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self.run(), name=f"ticker-{self.spec.rate:g}hz")
        return self._task

    def stop(self) -> None:
        """
        Set the stop event and cancel the scheduled task.

        Safe to call from any thread; the cancel is handed to the task's loop.
        The stop-event checks in the loop cover callers that only set a shared
        `stop_event` (or drivers run via `run()` without `start()`); those stop
        at the next wake-up instead of immediately.
        """
        super().stop()
        task = self._task
        if task is not None and not task.done():
            task.get_loop().call_soon_threadsafe(task.cancel)


def start(
    rate: float = LOGS_PER_SECOND,
    *,
    sink: LineSink | None = None,
    stop_event: threading.Event | None = None,
) -> TickerDriver:
    """
    Begin printing a timestamp line every 1000/rate milliseconds.

    Returns immediately with the running driver; its `task` completes only
    when the driver is stopped or cancelled.
    """
    driver = TickerDriver(spec=TickerSpec(rate=rate), sink=sink, stop_event=stop_event)
    driver.start()
    return driver
