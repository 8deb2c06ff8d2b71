"""Parser for FULL_DATA_TYPE descriptors.

Recursive descent over a CharacterCursor, one method per grammar production:

    Type        := "ARRAY" "<" Type ">" Nullability
                 | "MULTISET" "<" Type ">" Nullability
                 | "ROW" "<" RowMember ("," RowMember)* ">" Nullability
                 | "MAP" "<" Type "," Type ">" Nullability
                 | ScalarType Nullability
    ScalarType  := Identifier ["(" Parameters ")"] [ExtraWords]
    RowMember   := (BacktickName | Identifier) Type [Comment]
    Nullability := "NOT" "NULL" | "NULL" | empty
    Comment     := "'" (AnyChar | "''")* "'"

Keywords are case-insensitive. Container nesting is bounded by ``max_depth``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace

from sqltypetree.cursor import CharacterCursor
from sqltypetree.errors import (
    EmptyInputError,
    InvalidFieldSyntaxError,
    NestingTooDeepError,
    StructuralSyntaxError,
    TypeParseError,
    UnterminatedTokenError,
)
from sqltypetree.type_nodes import (
    ArrayType,
    MapType,
    MultisetType,
    RowType,
    ScalarType,
    TypeTree,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64
# Each container level costs about three interpreter frames.
MAX_DEPTH_LIMIT = 200

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Characters that end a scalar's multi-word name.
_SCALAR_STOP_CHARS = frozenset("<>(),'")


class TypeGrammarParser:
    """Parses a single descriptor into a TypeTree. Instances are single use."""

    def __init__(
        self,
        source: str,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        name: str = "<input>",
        first_line: int = 1,
    ) -> None:
        if not 1 <= max_depth <= MAX_DEPTH_LIMIT:
            raise ValueError(
                f"max_depth must be between 1 and {MAX_DEPTH_LIMIT}, got {max_depth}"
            )
        self.source = source
        self.max_depth = max_depth
        self.cursor = CharacterCursor(source, name=name, first_line=first_line)
        self._depth = 0

    # ── Error helpers ────────────────────────────────────────────

    def _found(self) -> str | None:
        c = self.cursor
        if c.is_eof():
            return None
        if c.is_word_char(c.peek()):
            return c.peek_word()
        return c.peek()

    def _describe_found(self) -> str:
        found = self._found()
        return "end of input" if found is None else repr(found)

    def _fail(
        self,
        error: type[TypeParseError],
        message: str,
        expected: str,
        start: int | None = None,
    ) -> TypeParseError:
        c = self.cursor
        begin = c.pos if start is None else start
        return error(
            message,
            c.span(begin, max(begin, c.pos)),
            expected=expected,
            found=self._found(),
        )

    # ── Top-level parsing ────────────────────────────────────────

    def parse(self) -> TypeTree:
        """Parse the whole input as one type and return the root node."""
        c = self.cursor
        c.skip_whitespace()
        if c.is_eof():
            raise EmptyInputError(
                "input must be a non-empty type descriptor",
                c.span(0),
                expected="type",
                found=None,
            )
        logger.debug("parsing type descriptor %r", self.source)
        try:
            node = self._parse_type()
        except RecursionError:
            raise NestingTooDeepError(
                f"type nesting exhausted the interpreter stack at depth {self._depth}",
                c.span(c.pos),
                expected=f"at most {self.max_depth} nested types",
                found=self._found(),
            ) from None
        c.skip_whitespace()
        if not c.is_eof():
            raise self._fail(
                StructuralSyntaxError,
                f"expected end of input after type, found unexpected trailing input "
                f"{c.source[c.pos:]!r}",
                expected="end of input",
            )
        logger.debug("parsed %r as %s", self.source, node.kind.name)
        return node

    def _parse_type(self) -> TypeTree:
        c = self.cursor
        c.skip_whitespace()
        word = c.peek_word().upper()
        if word == "ARRAY":
            return self._parse_collection(ArrayType, "ARRAY")
        if word == "MULTISET":
            return self._parse_collection(MultisetType, "MULTISET")
        if word == "ROW":
            return self._parse_row()
        if word == "MAP":
            return self._parse_map()
        return self._parse_scalar()

    # ── Containers ───────────────────────────────────────────────

    def _open_container(self, keyword: str) -> None:
        c = self.cursor
        start = c.pos
        c.try_consume(keyword, ignore_case=True)
        self._depth += 1
        if self._depth > self.max_depth:
            raise NestingTooDeepError(
                f"type nesting exceeds the maximum depth of {self.max_depth} at {keyword}",
                c.span(start, c.pos - 1),
                expected=f"at most {self.max_depth} nested types",
                found=keyword,
            )
        c.skip_whitespace()
        if not c.try_consume("<"):
            raise self._fail(
                StructuralSyntaxError,
                f"expected '<' after {keyword}, found {self._describe_found()}",
                expected="<",
            )

    def _close_container(self, keyword: str) -> None:
        c = self.cursor
        c.skip_whitespace()
        if not c.try_consume(">"):
            raise self._fail(
                StructuralSyntaxError,
                f"expected '>' to close {keyword}<...>, found {self._describe_found()}",
                expected=">",
            )
        self._depth -= 1

    def _parse_collection(
        self, node_type: type[ArrayType] | type[MultisetType], keyword: str,
    ) -> TypeTree:
        self._open_container(keyword)
        element = self._parse_type()
        self._close_container(keyword)
        nullable = self._parse_nullability()
        return node_type(members=(element,), is_field_nullable=nullable)

    def _parse_map(self) -> MapType:
        c = self.cursor
        self._open_container("MAP")
        key = self._parse_type()
        c.skip_whitespace()
        if not c.try_consume(","):
            raise self._fail(
                StructuralSyntaxError,
                f"expected ',' between MAP key and value types, found {self._describe_found()}",
                expected=",",
            )
        value = self._parse_type()
        self._close_container("MAP")
        nullable = self._parse_nullability()
        return MapType(
            members=(replace(key, field_name="key"), replace(value, field_name="value")),
            is_field_nullable=nullable,
        )

    def _parse_row(self) -> RowType:
        c = self.cursor
        self._open_container("ROW")
        c.skip_whitespace()
        if c.peek() == ">":
            raise self._fail(
                StructuralSyntaxError,
                "expected a field name, found '>': ROW must declare at least one field",
                expected="field name",
            )
        members: list[TypeTree] = []
        while True:
            member = self._parse_row_member()
            members.append(member)
            c.skip_whitespace()
            if c.try_consume(","):
                c.skip_whitespace()
                if c.peek() == ">":
                    raise self._fail(
                        StructuralSyntaxError,
                        "expected a field name after ',', found '>'",
                        expected="field name",
                    )
                continue
            if c.peek() == ">":
                break
            raise self._fail(
                StructuralSyntaxError,
                f"expected ',' or '>' after ROW field {member.field_name!r}, "
                f"found {self._describe_found()}",
                expected="',' or '>'",
            )
        self._close_container("ROW")
        nullable = self._parse_nullability()
        return RowType(members=tuple(members), is_field_nullable=nullable)

    def _parse_row_member(self) -> TypeTree:
        c = self.cursor
        c.skip_whitespace()
        if c.peek() == "`":
            name = self._parse_backtick_name()
        else:
            name = self._parse_bare_field_name()
        member = self._parse_type()
        c.skip_whitespace()
        comment = self._parse_comment() if c.peek() == "'" else None
        return replace(member, field_name=name, comment=comment)

    def _parse_backtick_name(self) -> str:
        c = self.cursor
        start = c.pos
        c.consume()
        parts: list[str] = []
        while True:
            parts.append(c.parse_until_char("`"))
            if c.is_eof():
                raise UnterminatedTokenError(
                    "unterminated backtick-quoted field name: expected closing '`'",
                    c.span(start, c.pos),
                    expected="`",
                    found=None,
                )
            c.consume()
            # A doubled backtick is a literal backtick inside the name.
            if c.peek() == "`":
                parts.append(c.consume())
                continue
            break
        name = "".join(parts)
        if not name:
            raise InvalidFieldSyntaxError(
                "invalid ROW field syntax: empty backtick-quoted field name",
                c.span(start, c.pos - 1),
                expected="field name",
                found="``",
            )
        return name

    def _parse_bare_field_name(self) -> str:
        c = self.cursor
        if c.is_eof():
            raise self._fail(
                StructuralSyntaxError,
                "expected a ROW field name, found end of input",
                expected="field name",
            )
        match = _IDENTIFIER.match(c.source, c.pos)
        if match is None:
            raise self._fail(
                InvalidFieldSyntaxError,
                f"invalid ROW field syntax: expected an identifier or backtick-quoted "
                f"name, found {self._describe_found()}",
                expected="field name",
            )
        start = c.pos
        name = c.consume(match.end() - start)
        nxt = c.peek()
        if c.is_whitespace(nxt):
            return name
        if nxt is None or nxt in ",>":
            raise self._fail(
                StructuralSyntaxError,
                f"expected a type after ROW field {name!r}, found {self._describe_found()}",
                expected="type",
            )
        raise InvalidFieldSyntaxError(
            f"invalid ROW field syntax: unexpected {nxt!r} in field name {name!r}",
            c.span(start, c.pos),
            expected="whitespace",
            found=nxt,
        )

    def _parse_comment(self) -> str | None:
        c = self.cursor
        start = c.pos
        c.consume()
        parts: list[str] = []
        while True:
            parts.append(c.parse_until_char("'"))
            if c.is_eof():
                raise UnterminatedTokenError(
                    "unterminated comment: expected closing quote",
                    c.span(start, c.pos),
                    expected="'",
                    found=None,
                )
            c.consume()
            if c.peek() == "'":
                parts.append(c.consume())
                continue
            break
        comment = "".join(parts).strip()
        return comment or None

    # ── Scalars ──────────────────────────────────────────────────

    def _at_nullability(self) -> bool:
        return self.cursor.peek_word().upper() in ("NOT", "NULL")

    def _at_scalar_stop(self) -> bool:
        c = self.cursor
        ch = c.peek()
        if ch is None or ch in _SCALAR_STOP_CHARS:
            return True
        return c.is_word_char(ch) and self._at_nullability()

    def _parse_scalar(self) -> ScalarType:
        c = self.cursor
        if _IDENTIFIER.match(c.source, c.pos) is None:
            raise self._fail(
                StructuralSyntaxError,
                f"expected a type name, found {self._describe_found()}",
                expected="type name",
            )
        word = c.peek_word().upper()
        if word == "NULL" or (word == "NOT" and c.peek_word_at(3).upper() == "NULL"):
            raise self._fail(
                StructuralSyntaxError,
                f"no base type found: expected a type name before nullability marker "
                f"{c.source[c.pos:].strip()!r}",
                expected="type name",
            )

        parts = [c.parse_identifier().upper()]
        while True:
            save = c.pos
            c.skip_whitespace()
            if c.peek() == "(":
                start = c.pos
                params = c.consume_until_matching_delimiter("(").strip()
                if not params:
                    raise self._fail(
                        StructuralSyntaxError,
                        "expected type parameters between '(' and ')'",
                        expected="type parameters",
                        start=start,
                    )
                c.consume()
                parts.append(f"({params})")
            elif c.is_word_char(c.peek()) and not self._at_nullability():
                words = c.parse_identifier_with_spaces(self._at_scalar_stop)
                parts.append(" " + words.upper())
            else:
                c.pos = save
                break

        nullable = self._parse_nullability()
        return ScalarType(data_type="".join(parts), is_field_nullable=nullable)

    # ── Nullability ──────────────────────────────────────────────

    def _parse_nullability(self) -> bool:
        """Consume an optional NULL / NOT NULL marker; absent means nullable."""
        c = self.cursor
        save = c.pos
        c.skip_whitespace()
        if c.try_consume("NOT", ignore_case=True):
            c.skip_whitespace()
            if c.try_consume("NULL", ignore_case=True):
                return False
            c.pos = save
            return True
        if c.try_consume("NULL", ignore_case=True):
            return True
        c.pos = save
        return True


def parse(text: str, *, max_depth: int = DEFAULT_MAX_DEPTH, name: str = "<input>") -> TypeTree:
    """Parse a FULL_DATA_TYPE descriptor into a TypeTree.

    Raises a TypeParseError subclass describing the first unmet expectation.
    """
    if not isinstance(text, str):
        raise TypeError(f"expected a str descriptor, got {type(text).__name__}")
    return TypeGrammarParser(text, max_depth=max_depth, name=name).parse()
