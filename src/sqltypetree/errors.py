"""Parse failures and Rust-style colored diagnostic rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqltypetree.source import Span


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """A caret marker under a span, with an optional inline message."""

    span: Span
    message: str = ""


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels and notes."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format, quoting registered descriptor text."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color
        self._sources: dict[str, list[str]] = {}

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def add_source(self, name: str, text: str) -> None:
        """Register source text so spans naming ``name`` can quote it."""
        self._sources[name] = text.splitlines()

    def _source_line(self, name: str, line_num: int) -> str | None:
        lines = self._sources.get(name, [])
        if 1 <= line_num <= len(lines):
            return lines[line_num - 1]
        return None

    def _gutter(self, prefix: str = "   ") -> str:
        return f"  {self._c(_BLUE)}{prefix} |{self._c(_RESET)}"

    def _render_label(self, label: DiagnosticLabel, color: str) -> list[str]:
        span = label.span
        out = [f"  {self._c(_BLUE)}-->{self._c(_RESET)} {span}", self._gutter()]
        line = self._source_line(span.file, span.start_line)
        if line is None:
            return out
        out.append(f"{self._gutter(f'{span.start_line:>3}')} {line}")
        # Spans running past the quoted line are underlined to its end.
        end_col = span.end_col if span.end_line == span.start_line else len(line)
        carets = "^" * max(1, end_col - span.start_col + 1)
        marker = " " * (span.start_col - 1) + carets
        if label.message:
            marker += f" {label.message}"
        out.append(f"{self._gutter()} {self._c(color)}{marker}{self._c(_RESET)}")
        return out

    def render(self, diag: Diagnostic) -> str:
        color = _COLORS[diag.severity]
        lines = [
            f"{self._c(color)}{diag.severity.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        ]
        for label in diag.labels:
            lines.extend(self._render_label(label, color))
        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")
        return "\n".join(lines)


# ── Exceptions ───────────────────────────────────────────────────


class TypeGrammarError(Exception):
    """Base class for every failure raised by this package."""

    code = "E000"

    def __init__(
        self,
        message: str,
        span: Span | None = None,
        *,
        label: str = "",
        notes: list[str] | None = None,
    ) -> None:
        self.message = message
        self.span = span
        labels = [DiagnosticLabel(span, label)] if span is not None else []
        self.diagnostic = Diagnostic(
            severity=Severity.ERROR,
            code=self.code,
            message=message,
            labels=labels,
            notes=notes or [],
        )
        super().__init__(message)


class TypeParseError(TypeGrammarError):
    """A descriptor could not be parsed.

    ``expected`` names the token or construct the parser was looking for and
    ``found`` the text at the failing position (``None`` at end of input).
    """

    def __init__(
        self,
        message: str,
        span: Span | None = None,
        *,
        expected: str | None = None,
        found: str | None = None,
    ) -> None:
        self.expected = expected
        self.found = found
        notes = []
        if expected is not None:
            notes.append("found end of input" if found is None else f"found {found!r}")
        super().__init__(
            message, span, label=f"expected {expected}" if expected else "", notes=notes,
        )


class StructuralSyntaxError(TypeParseError):
    """A required delimiter or keyword is missing."""

    code = "E101"


class UnterminatedTokenError(TypeParseError):
    """A backtick-quoted name or quoted comment runs to the end of input."""

    code = "E102"


class InvalidFieldSyntaxError(TypeParseError):
    """A ROW field name does not match the identifier grammar."""

    code = "E103"


class EmptyInputError(TypeParseError):
    code = "E104"


class NestingTooDeepError(TypeParseError):
    """Container nesting exceeds the parser's configured depth limit."""

    code = "E105"


class InvariantViolationError(TypeGrammarError):
    """A type tree is structurally malformed (e.g. a scalar with members)."""

    code = "E201"
