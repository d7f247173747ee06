from __future__ import annotations

import asyncio
import io
import os
import re
import signal
import time

import pytest

from tickprint.runtime.lifecycle import RuntimePhase
from tickprint.runtime.modes import TickerSpec
from tickprint.runtime.sink import LineSink
from tickprint.runtime.ticker import TickerDriver, start
import tickprint.app as app

LINE_RE = re.compile(r"^\S.*\S, (\d{1,3})ms$")


async def _run_for(driver: TickerDriver, seconds: float) -> None:
    driver.start()
    await asyncio.sleep(seconds)
    driver.stop()
    await asyncio.gather(driver.task, return_exceptions=True)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_rate_one_for_three_seconds() -> None:
    stream = io.StringIO()
    driver = TickerDriver(spec=TickerSpec(rate=1), sink=LineSink(stream))

    await _run_for(driver, 3.2)

    lines = stream.getvalue().splitlines()
    assert 2 <= len(lines) <= 4
    for line in lines:
        m = LINE_RE.match(line)
        assert m is not None, line
        assert 0 <= int(m.group(1)) <= 999
    instants = [t.instant for t in driver.ticks]
    assert instants == sorted(instants)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_period_tracks_rate() -> None:
    stream = io.StringIO()
    driver = start(20, sink=LineSink(stream))
    await asyncio.sleep(1.05)
    driver.stop()
    await asyncio.gather(driver.task, return_exceptions=True)

    instants = [t.instant for t in driver.ticks]
    assert 15 <= len(instants) <= 21
    gaps = [(b - a).total_seconds() for a, b in zip(instants, instants[1:])]
    mean_gap = sum(gaps) / len(gaps)
    assert 0.04 <= mean_gap <= 0.07
    assert driver.skipped == 0


@pytest.mark.integration
@pytest.mark.asyncio
async def test_sigterm_stops_the_ticker() -> None:
    stream = io.StringIO()
    driver = TickerDriver(spec=TickerSpec(rate=10), sink=LineSink(stream))
    app._install_signal_handlers(asyncio.get_running_loop(), driver)
    try:
        driver.start()
        await asyncio.sleep(0.35)

        t0 = time.monotonic()
        os.kill(os.getpid(), signal.SIGTERM)
        await asyncio.gather(driver.task, return_exceptions=True)

        assert time.monotonic() - t0 < 0.5
        assert driver.phase is RuntimePhase.FINISHED
        assert driver.tick_count >= 1
    finally:
        loop = asyncio.get_running_loop()
        loop.remove_signal_handler(signal.SIGINT)
        loop.remove_signal_handler(signal.SIGTERM)
