"""Pygments lexer for FULL_DATA_TYPE descriptors."""

from __future__ import annotations

import re

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexer import RegexLexer, bygroups, words
from pygments.token import (
    Keyword,
    Name,
    Number,
    Punctuation,
    String,
    Text,
)


class FullDataTypeLexer(RegexLexer):
    """Pygments lexer for SQL type descriptors such as ``ROW<`id` INT NOT NULL>``."""

    name = "FULL_DATA_TYPE"
    aliases = ["ftype", "full-data-type"]
    filenames = ["*.ftype"]
    mimetypes = ["text/x-ftype"]
    flags = re.IGNORECASE | re.MULTILINE

    tokens = {
        "root": [
            (r"\s+", Text),
            # Line comments in descriptor files
            (r"--.*$", String.Doc),
            # Field comments with doubled-quote escapes
            (r"'", String, "comment"),
            # Backtick-quoted field names
            (r"`", Name.Variable, "quoted_name"),
            (
                words(("ARRAY", "MULTISET", "ROW", "MAP"), prefix=r"\b", suffix=r"\b"),
                Keyword.Type,
            ),
            (words(("NOT", "NULL"), prefix=r"\b", suffix=r"\b"), Keyword.Constant),
            # Bare field name: first word of a ROW member, followed by its type
            (
                r"([<,])(\s*)([a-z_][a-z0-9_]*)(\s+)(?!(?:not|null)\b)(?=[a-z_`])",
                bygroups(Punctuation, Text, Name.Variable, Text),
            ),
            (r"[0-9]+", Number.Integer),
            (r"\w+", Name.Builtin),
            (r"[<>(),]", Punctuation),
        ],
        "comment": [
            (r"''", String.Escape),
            (r"[^']+", String),
            (r"'", String, "#pop"),
        ],
        "quoted_name": [
            (r"``", String.Escape),
            (r"[^`]+", Name.Variable),
            (r"`", Name.Variable, "#pop"),
        ],
    }


def highlight_type(text: str, *, color: bool = True) -> str:
    """Return ``text`` highlighted for a terminal, or unchanged when color is off."""
    if not color:
        return text
    return highlight(text, FullDataTypeLexer(), TerminalFormatter()).rstrip("\n")
