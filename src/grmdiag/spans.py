from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open span [start, end) in a single source text.

    Offsets are 0-based character offsets into the exact `str` the span was
    captured from; line/column are only computed when rendering.
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid span: {self.start}..{self.end}")

    def __len__(self) -> int:
        return self.end - self.start

    def format(self) -> str:
        return f"@{self.start}..{self.end}"


class NewlineCache:
    """Line-start offsets of one source text, for offset -> (line, column)."""

    __slots__ = ("text", "_starts")

    def __init__(self, text: str) -> None:
        self.text = text
        starts = [0]
        i = text.find("\n")
        while i != -1:
            starts.append(i + 1)
            i = text.find("\n", i + 1)
        self._starts = starts

    def line_col(self, offset: int) -> tuple[int, int] | None:
        """Return the 1-based (line, column) of `offset`, or None if outside the text."""
        if offset < 0 or offset > len(self.text):
            return None
        idx = bisect_right(self._starts, offset) - 1
        return idx + 1, offset - self._starts[idx] + 1

    def line_text(self, line: int) -> str:
        """Text of a 1-based line without its trailing newline."""
        if line < 1 or line > len(self._starts):
            return ""
        start = self._starts[line - 1]
        end = self._starts[line] - 1 if line < len(self._starts) else len(self.text)
        return self.text[start:end].rstrip("\r")


def resolve(span: Span, source_text: str, cache: NewlineCache | None = None) -> tuple[int, int] | None:
    """Resolve the start of `span` to (line, column) within `source_text`.

    A cache built for another text is ignored, so the result only ever depends
    on `span` and `source_text`.
    """
    if cache is None or cache.text != source_text:
        cache = NewlineCache(source_text)
    return cache.line_col(span.start)
