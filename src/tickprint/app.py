from __future__ import annotations

import argparse
import asyncio
import os
import signal
import sys
from typing import Sequence

from tickprint.exceptions.core import ConfigError, FatalError
from tickprint.runtime.modes import TickerSpec
from tickprint.runtime.ticker import TickerDriver
from tickprint.utils.config import TickerConfig
from tickprint.utils.logger import get_logger, init_logging, log_lifecycle


logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tickprint",
        description="Print a long-form en-US timestamp to stdout at a fixed rate, until terminated.",
    )
    parser.add_argument("--rate", type=float, default=None, help="ticks per second (default: 1)")
    parser.add_argument("--log-config", default=None, help="logging.json path (default: bundled)")
    parser.add_argument("--log-profile", default=None, help="profile name inside logging.json")
    return parser


def load_config(argv: Sequence[str] | None = None) -> TickerConfig:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return TickerConfig.from_options(
            rate=args.rate,
            log_config=args.log_config,
            log_profile=args.log_profile,
        )
    except ConfigError as exc:
        parser.error(str(exc))
        raise  # parser.error exits


def _configure_stdout() -> None:
    reconfigure = getattr(sys.stdout, "reconfigure", None)
    if callable(reconfigure):
        reconfigure(encoding="utf-8", line_buffering=True)


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, driver: TickerDriver) -> None:
    def _handle_stop(signum: int) -> None:
        log_lifecycle(logger, "app.signal", signal=signal.Signals(signum).name, ticks=driver.tick_count)
        driver.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _handle_stop, sig)
        except NotImplementedError:
            # No loop-level signal support (Windows); fall back to the process handler.
            signal.signal(sig, lambda signum, _frame: loop.call_soon_threadsafe(_handle_stop, signum))


async def run_ticker(cfg: TickerConfig) -> int:
    driver = TickerDriver(spec=TickerSpec(rate=cfg.rate))
    _install_signal_handlers(asyncio.get_running_loop(), driver)

    task = driver.start()
    (result,) = await asyncio.gather(task, return_exceptions=True)

    if isinstance(result, FatalError):
        return EXIT_FATAL
    if isinstance(result, BaseException) and not isinstance(result, asyncio.CancelledError):
        raise result
    return EXIT_OK


def _release_stdout() -> None:
    # A reader that went away leaves unflushed bytes behind; point stdout at
    # devnull so interpreter shutdown does not fail on them again.
    try:
        sys.stdout.flush()
    except BrokenPipeError:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        os.close(devnull)


def main(argv: Sequence[str] | None = None) -> int:
    cfg = load_config(argv)
    init_logging(cfg.log_config, run_id=str(os.getpid()), mode=cfg.log_profile)
    _configure_stdout()
    code = asyncio.run(run_ticker(cfg))
    if code == EXIT_FATAL:
        _release_stdout()
    return code


if __name__ == "__main__":
    sys.exit(main())
