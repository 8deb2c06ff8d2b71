"""Source text representation and span tracking for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Span:
    """A range within a descriptor source."""

    file: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}:{self.start_col}"


class SourceText:
    """An in-memory descriptor with offset and line access for diagnostics."""

    def __init__(self, text: str, name: str = "<input>", first_line: int = 1) -> None:
        self.text = text
        self.name = name
        self.first_line = first_line
        self.lines = text.splitlines()
        # Offsets at which each line starts, 0-indexed.
        self._line_starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(i + 1)

    def line_at(self, n: int) -> str:
        """Return line ``n`` (numbered from ``first_line``), or empty string if out of range."""
        idx = n - self.first_line
        if 0 <= idx < len(self.lines):
            return self.lines[idx]
        return ""

    def position(self, offset: int) -> tuple[int, int]:
        """Convert a character offset to a (line, column) pair; columns are 1-indexed."""
        offset = max(0, min(offset, len(self.text)))
        line = 0
        lo, hi = 0, len(self._line_starts) - 1
        while lo <= hi:
            mid = (lo + hi) // 2
            if self._line_starts[mid] <= offset:
                line = mid
                lo = mid + 1
            else:
                hi = mid - 1
        return line + self.first_line, offset - self._line_starts[line] + 1

    def span_for(self, start: int, end: int | None = None) -> Span:
        """Build a Span covering offsets [start, end], inclusive."""
        if end is None or end < start:
            end = start
        start_line, start_col = self.position(start)
        end_line, end_col = self.position(end)
        return Span(self.name, start_line, start_col, end_line, end_col)

    def span_text(self, span: Span) -> str:
        """Extract the text covered by a span."""
        if span.start_line == span.end_line:
            line = self.line_at(span.start_line)
            return line[span.start_col - 1 : span.end_col]
        parts = []
        for ln in range(span.start_line, span.end_line + 1):
            line = self.line_at(ln)
            if ln == span.start_line:
                parts.append(line[span.start_col - 1 :])
            elif ln == span.end_line:
                parts.append(line[: span.end_col])
            else:
                parts.append(line)
        return "\n".join(parts)
