"""Character cursor for recursive-descent parsing.

Provides the low-level primitives the type grammar is built on: peeking and
consuming characters, word-class tokenization, word-boundary-aware keyword
matching and balanced delimiter extraction. Nothing in here knows about the
type grammar itself.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping

from sqltypetree.errors import StructuralSyntaxError
from sqltypetree.source import SourceText, Span

DEFAULT_DELIMITERS: Mapping[str, str] = {"(": ")", "<": ">"}


def _describe(ch: str | None) -> str:
    return "end of input" if ch is None else repr(ch)


class CharacterCursor:
    """Single-use cursor over an immutable input string."""

    def __init__(
        self,
        source: str,
        *,
        whitespace: str = r"\s",
        word: str = r"\w",
        delimiters: Mapping[str, str] = DEFAULT_DELIMITERS,
        name: str = "<input>",
        first_line: int = 1,
    ) -> None:
        self.source = source
        self.pos = 0
        self.text = SourceText(source, name, first_line)
        self._whitespace = re.compile(whitespace)
        self._word = re.compile(word)
        self._delimiters = dict(delimiters)

    # ── Character classes ────────────────────────────────────────

    def is_whitespace(self, ch: str | None) -> bool:
        return ch is not None and self._whitespace.fullmatch(ch) is not None

    def is_word_char(self, ch: str | None) -> bool:
        return ch is not None and self._word.fullmatch(ch) is not None

    # ── Navigation ───────────────────────────────────────────────

    def peek(self) -> str | None:
        if self.pos < len(self.source):
            return self.source[self.pos]
        return None

    def peek_at(self, offset: int) -> str | None:
        """Character at ``pos + offset``; ``None`` when out of bounds, including negative."""
        idx = self.pos + offset
        if 0 <= idx < len(self.source):
            return self.source[idx]
        return None

    def consume(self, n: int = 1) -> str:
        if n <= 0:
            raise ValueError(f"consume() needs a positive count, got {n}")
        if self.pos + n > len(self.source):
            raise IndexError(
                f"cannot consume {n} character(s) at offset {self.pos}: "
                f"only {len(self.source) - self.pos} remain"
            )
        text = self.source[self.pos : self.pos + n]
        self.pos += n
        return text

    def consume_while(self, predicate: Callable[[str], bool]) -> str:
        start = self.pos
        while self.pos < len(self.source) and predicate(self.source[self.pos]):
            self.pos += 1
        return self.source[start : self.pos]

    def skip_whitespace(self) -> str:
        return self.consume_while(self.is_whitespace)

    def is_eof(self) -> bool:
        return self.pos >= len(self.source)

    # ── Words ────────────────────────────────────────────────────

    def peek_word(self) -> str:
        """The word-class run starting at the cursor, without consuming it."""
        idx = 0
        while self.is_word_char(self.peek_at(idx)):
            idx += 1
        return self.source[self.pos : self.pos + idx]

    def peek_word_at(self, offset: int) -> str:
        """The word at ``pos + offset`` after skipping whitespace; empty if none."""
        idx = offset
        while self.is_whitespace(self.peek_at(idx)):
            idx += 1
        start = idx
        while self.is_word_char(self.peek_at(idx)):
            idx += 1
        if start == idx:
            return ""
        return self.source[self.pos + start : self.pos + idx]

    def parse_identifier(self) -> str:
        return self.consume_while(self.is_word_char)

    def parse_identifier_with_spaces(self, stop: Callable[[], bool]) -> str:
        """Consume space-separated words such as ``WITH LOCAL TIME ZONE``.

        Whitespace runs collapse to a single space. Stops when ``stop()`` is
        true or at a character that is neither a word nor whitespace.
        """
        if not self.is_word_char(self.peek()):
            raise StructuralSyntaxError(
                f"expected identifier, found {_describe(self.peek())}",
                self.span(self.pos),
                expected="identifier",
                found=self.peek(),
            )
        parts: list[str] = []
        last_was_space = False
        while not self.is_eof() and not stop():
            ch = self.peek()
            if self.is_whitespace(ch):
                self.skip_whitespace()
                if not last_was_space:
                    parts.append(" ")
                    last_was_space = True
            elif self.is_word_char(ch):
                parts.append(self.parse_identifier())
                last_was_space = False
            else:
                break
        return "".join(parts).strip()

    def parse_until_char(self, stop_char: str) -> str:
        return self.consume_while(lambda ch: ch != stop_char)

    # ── Delimiters and keywords ──────────────────────────────────

    def consume_until_matching_delimiter(self, open_char: str) -> str:
        """Consume ``open_char`` and return everything up to its matching closer.

        Only nesting of the same pair is tracked; other delimiter kinds inside
        are plain characters. The closer itself is left for the caller.
        """
        if open_char not in self._delimiters:
            raise ValueError(f"{open_char!r} is not a configured opening delimiter")
        if self.peek() != open_char:
            raise StructuralSyntaxError(
                f"expected {open_char!r}, found {_describe(self.peek())}",
                self.span(self.pos),
                expected=open_char,
                found=self.peek(),
            )
        close_char = self._delimiters[open_char]
        open_pos = self.pos
        self.consume()
        start = self.pos
        depth = 0
        while not self.is_eof():
            ch = self.source[self.pos]
            if ch == close_char:
                if depth == 0:
                    return self.source[start : self.pos]
                depth -= 1
            elif ch == open_char:
                depth += 1
            self.pos += 1
        raise StructuralSyntaxError(
            f"expected {close_char!r} to close {open_char!r}, found end of input",
            self.span(open_pos, self.pos),
            expected=close_char,
            found=None,
        )

    def try_consume(self, keyword: str, *, ignore_case: bool = False) -> bool:
        """Consume ``keyword`` if it is next; multi-character keywords need a word boundary."""
        end = self.pos + len(keyword)
        candidate = self.source[self.pos : end]
        if len(candidate) != len(keyword):
            return False
        if ignore_case:
            matched = candidate.upper() == keyword.upper()
        else:
            matched = candidate == keyword
        if not matched:
            return False
        if len(keyword) > 1 and self.is_word_char(self.peek_at(len(keyword))):
            return False
        self.pos = end
        return True

    # ── Diagnostics ──────────────────────────────────────────────

    def span(self, start: int, end: int | None = None) -> Span:
        return self.text.span_for(start, end)
