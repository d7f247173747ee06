from __future__ import annotations

import sys
from typing import TextIO


class LineSink:
    """
    Writes one line per tick to a text stream and flushes it.

    Flushing per line keeps the output usable through a pipe. Write
    errors propagate to the caller.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self.lines_written = 0

    @property
    def stream(self) -> TextIO:
        # resolved lazily so a replaced sys.stdout is honoured
        return self._stream if self._stream is not None else sys.stdout

    def write(self, line: str) -> None:
        stream = self.stream
        stream.write(line + "\n")
        stream.flush()
        self.lines_written += 1

    def close(self) -> None:
        stream = self.stream
        if not stream.closed:
            stream.flush()
