import time
from contextlib import contextmanager

from tickprint.exceptions.core import ConfigError
from .logger import get_logger, log_debug

# Ticks per second when nothing overrides it.
LOGS_PER_SECOND = 1


@contextmanager
def timed_block(name: str, logger=None):
    """Profile execution time of a code block (emitted at debug level)."""
    logger = logger or get_logger()

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = (time.perf_counter() - start) * 1000  # ms
        log_debug(logger, f"[TIMER] {name}", elapsed_ms=round(elapsed, 3))


def interval_ms_from_rate(rate: float) -> float:
    """Period in milliseconds for `rate` ticks per second."""
    try:
        r = float(rate)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid rate: {rate!r}") from exc
    if not r > 0 or r == float("inf"):
        raise ConfigError(f"Rate must be a positive finite number, got {rate!r}")
    return 1000.0 / r


def adv_ts(ts: float, ms: float) -> float:
    """Advance a millisecond deadline by a given number of milliseconds."""
    return float(ts) + float(ms)


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0
