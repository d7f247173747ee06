from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime
from typing import AsyncIterator, Iterable, List
import asyncio
import threading
import traceback

from tickprint.exceptions.core import FatalError
from tickprint.runtime.lifecycle import LifecycleGuard, RuntimePhase
from tickprint.runtime.modes import TickerSpec
from tickprint.runtime.sink import LineSink
from tickprint.runtime.tick import Tick
from tickprint.utils.datefmt import render_tick_line
from tickprint.utils.logger import get_logger, log_debug, log_error, log_lifecycle
from tickprint.utils.timer import timed_block


class BaseDriver(ABC):
    """
    Base class for all tick drivers.

    Responsibilities:
      - Own runtime lifecycle ordering (STOPPED -> RUNNING -> FINISHED).
      - Own the per-tick action: render the instant, write one line.
      - Subclasses own time progression only.
    """

    def __init__(
        self,
        *,
        spec: TickerSpec,
        sink: LineSink | None = None,
        stop_event: threading.Event | None = None,
        history: int = 64,
    ):
        self.spec = spec
        self.sink = sink or LineSink()
        self.guard = LifecycleGuard()
        self._stop_event = stop_event or threading.Event()
        self._alerted = False
        self._seq = 0
        self._logger = get_logger(f"tickprint.runtime.{self.__class__.__name__}")

        # Most recent ticks, bounded since the loop is open-ended.
        self._ticks: deque[Tick] = deque(maxlen=history)

    @property
    def ticks(self) -> List[Tick]:
        return list(self._ticks)

    @property
    def tick_count(self) -> int:
        return self._seq

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    @property
    def phase(self) -> RuntimePhase:
        return self.guard.phase

    # -------------------------------------------------
    # Hooks for subclasses
    # -------------------------------------------------

    @abstractmethod
    def iter_instants(self) -> AsyncIterator[datetime]:
        """
        Yield the wall-clock instant of each firing, in firing order.

        Must be implemented as an async generator.
        """
        raise NotImplementedError

    # -------------------------------------------------
    # Canonical runtime loop
    # -------------------------------------------------

    def fire(self, instant: datetime) -> Tick:
        """Per-tick action: render `instant` and write it to the sink."""
        self._seq += 1
        with timed_block("tick.fire", logger=self._logger):
            line = render_tick_line(instant)
            self.sink.write(line)
        tick = Tick(seq=self._seq, instant=instant, line=line)
        self._ticks.append(tick)
        log_debug(self._logger, "tick.fired", seq=tick.seq, ms=tick.millisecond)
        return tick

    async def run(self) -> None:
        """
        STOPPED -> RUNNING -> (tick)* -> FINISHED

        Returns when the stop event is set or the instant stream ends.
        """
        self.guard.enter(RuntimePhase.RUNNING)
        log_lifecycle(
            self._logger,
            "ticker.start",
            phase=self.phase,
            rate=self.spec.rate,
            interval_ms=self.spec.interval_ms,
        )
        try:
            async for instant in self.iter_instants():
                if self._stop_event.is_set():
                    break
                self.fire(instant)
        except asyncio.CancelledError:
            self._shutdown_components()
            raise
        except Exception as exc:
            self._handle_fatal(exc)

        self._shutdown_components()

    def stop(self) -> None:
        """Ask the loop to exit at its next wake-up."""
        self._stop_event.set()

    def _shutdown_components(self) -> None:
        self._stop_event.set()

        for obj in self._iter_shutdown_objects():
            for method in ("close", "shutdown", "stop"):
                fn = getattr(obj, method, None)
                if callable(fn):
                    try:
                        fn()
                    except Exception as exc:
                        log_debug(self._logger, "runtime.shutdown.error", component=type(obj).__name__, err=repr(exc))

        if self.guard.can_enter(RuntimePhase.FINISHED):
            self.guard.enter(RuntimePhase.FINISHED)
            log_lifecycle(self._logger, "ticker.stop", phase=self.phase, ticks=self._seq)

    def _iter_shutdown_objects(self) -> Iterable[object]:
        yield self.sink

    def _alert_once(self, exc: BaseException) -> None:
        if self._alerted:
            return
        self._alerted = True
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        log_error(
            self._logger,
            "runtime.fatal_error",
            err_type=type(exc).__name__,
            err=str(exc),
            seq=self._seq,
            stack=stack,
        )

    def _handle_fatal(self, exc: BaseException) -> None:
        self._shutdown_components()
        self._alert_once(exc)
        if isinstance(exc, FatalError):
            raise exc
        raise FatalError(str(exc)) from exc
