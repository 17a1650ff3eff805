from __future__ import annotations

import logging
import sys
from typing import Any, Sequence, TextIO


class Status:
    """User-facing messages go through the logger; data goes to stdout."""

    def __init__(self, logger: logging.Logger, stream: TextIO | None = None) -> None:
        self._logger = logger
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    def info(self, msg: str, *args: Any) -> None:
        self._logger.info(msg, *args)

    def success(self, msg: str, *args: Any) -> None:
        self._logger.info("✓ " + msg, *args)

    def warning(self, msg: str, *args: Any) -> None:
        self._logger.warning(msg, *args)

    def error(self, msg: str, *args: Any, hint: str | None = None) -> None:
        self._logger.error(msg, *args)
        if hint:
            self._logger.error("hint: %s", hint)

    def echo(self, text: str = "") -> None:
        print(text, file=self.stream)

    def table(self, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
        cells = [[str(c) for c in headers], *[[("" if c is None else str(c)) for c in row] for row in rows]]
        widths = [max(len(r[i]) for r in cells) for i in range(len(headers))]
        for n, row in enumerate(cells):
            self.echo("  ".join(c.ljust(w) for c, w in zip(row, widths)).rstrip())
            if n == 0:
                self.echo("  ".join("-" * w for w in widths))
