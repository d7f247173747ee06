# Make `import tickprint...` and `tests.helpers` importable without installing.
from __future__ import annotations

import logging
import os
import sys

import pytest

ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, "src")

for p in (SRC, ROOT):
    if p not in sys.path:
        sys.path.insert(0, p)

import tickprint.utils.logger as logger_mod  # noqa: E402
from tests.helpers.fakes_runtime import FakeClock  # noqa: E402


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def reset_logging():
    yield
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    root.setLevel(logging.WARNING)
    logger_mod._CONFIGURED = False
    logger_mod._DEBUG_ENABLED = False
    logger_mod._DEBUG_MODULES = set()
    logger_mod._RUN_ID = None
    logger_mod._MODE = None
    logger_mod.get_logger.cache_clear()
