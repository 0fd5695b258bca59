"""Ordered line sink for execution transcripts."""

from __future__ import annotations

from collections.abc import Callable, Iterable

LineCallback = Callable[[str], None]


class Transcript:
    """Collects transcript lines in order.

    When an ``on_line`` callback is given every line is also forwarded
    the moment it is added, which is how streamed output reaches the
    caller before the command finishes.
    """

    def __init__(self, on_line: LineCallback | None = None) -> None:
        self._lines: list[str] = []
        self._on_line = on_line

    def add(self, line: str = "") -> None:
        self._lines.append(line)
        if self._on_line is not None:
            self._on_line(line)

    def extend(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.add(line)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)
