from __future__ import annotations

import io

from tickprint.runtime.sink import LineSink


class _CountingStream(io.StringIO):
    def __init__(self) -> None:
        super().__init__()
        self.flushes = 0

    def flush(self) -> None:
        self.flushes += 1
        super().flush()


def test_write_appends_newline_and_flushes() -> None:
    stream = _CountingStream()
    sink = LineSink(stream)
    sink.write("January 5, 2024 at 3:04:05 PM PST, 123ms")
    sink.write("January 5, 2024 at 3:04:06 PM PST, 124ms")

    assert stream.getvalue() == (
        "January 5, 2024 at 3:04:05 PM PST, 123ms\n"
        "January 5, 2024 at 3:04:06 PM PST, 124ms\n"
    )
    assert stream.flushes == 2
    assert sink.lines_written == 2


def test_default_stream_is_stdout(capsys) -> None:
    LineSink().write("hello, 1ms")
    captured = capsys.readouterr()
    assert captured.out == "hello, 1ms\n"
    assert captured.err == ""


def test_close_on_closed_stream_is_noop() -> None:
    stream = io.StringIO()
    stream.close()
    LineSink(stream).close()
