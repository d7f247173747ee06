from __future__ import annotations

import json
import os
import re
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
LINE_RE = re.compile(r"^\S.*\S, (\d{1,3})ms$")


def _spawn(*args: str) -> subprocess.Popen:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(SRC), env.get("PYTHONPATH", "")) if p)
    return subprocess.Popen(
        [sys.executable, "-m", "tickprint", *args],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env,
        text=True,
        encoding="utf-8",
    )


@pytest.mark.integration
@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_sigint_exits_zero_with_tick_lines() -> None:
    proc = _spawn("--rate", "5")
    try:
        # wait for output so the loop and its signal handlers are live
        first = proc.stdout.readline()
        assert first, proc.stderr.read()
        time.sleep(0.5)
        proc.send_signal(signal.SIGINT)
        rest, err = proc.communicate(timeout=5)
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()

    lines = [first.rstrip("\n"), *rest.splitlines()]
    assert proc.returncode == 0, err
    assert len(lines) >= 2
    for line in lines:
        m = LINE_RE.match(line)
        assert m is not None, line
        assert 0 <= int(m.group(1)) <= 999
    assert "runtime.fatal_error" not in err


@pytest.mark.integration
def test_reader_closing_early_exits_one() -> None:
    proc = _spawn("--rate", "20")
    try:
        first = proc.stdout.readline()
        assert LINE_RE.match(first.rstrip("\n")), first
        proc.stdout.close()
        proc.wait(timeout=5)
        err = proc.stderr.read()
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()

    assert proc.returncode == 1, err
    records = [json.loads(line) for line in err.splitlines() if line.startswith("{")]
    fatal = [r for r in records if r.get("event") == "runtime.fatal_error"]
    assert len(fatal) == 1
    assert fatal[0]["context"]["err_type"] == "BrokenPipeError"
