"""Display labels and canonical re-rendering for type trees.

``format_type_for_display`` and ``describe`` produce the short labels shown
next to columns; ``render_type`` walks a tree and emits descriptor text that
parses back to an equal tree.
"""

from __future__ import annotations

import logging
import re

from sqltypetree.errors import TypeParseError
from sqltypetree.parser import DEFAULT_MAX_DEPTH, parse
from sqltypetree.type_nodes import (
    ArrayType,
    MapType,
    MultisetType,
    RowType,
    ScalarType,
    TypeTree,
)

logger = logging.getLogger(__name__)

# The engine renders unbounded VARCHAR / VARBINARY as their maximum length.
MAX_LENGTH = 2147483647
_MAX_LENGTH_RE = re.compile(rf"\(\s*{MAX_LENGTH}\s*\)")


def format_sql_type(data_type: str, *, strip_max_length: bool = True) -> str:
    """Drop backtick quoting and, optionally, the maximum-length decoration."""
    text = data_type.replace("`", "")
    if strip_max_length:
        text = _MAX_LENGTH_RE.sub("", text)
    return text


def format_type_for_display(node: TypeTree, *, strip_max_length: bool = True) -> str:
    """Short label: ``INT[]`` for arrays, ``INT MULTISET`` for multisets."""
    if isinstance(node, ArrayType):
        return format_type_for_display(node.element, strip_max_length=strip_max_length) + "[]"
    if isinstance(node, MultisetType):
        element = format_type_for_display(node.element, strip_max_length=strip_max_length)
        return f"{element} MULTISET"
    return format_sql_type(node.data_type, strip_max_length=strip_max_length)


def describe(node: TypeTree, *, strip_max_length: bool = True) -> str:
    desc = format_sql_type(node.data_type, strip_max_length=strip_max_length)
    if not node.is_field_nullable:
        desc += " NOT NULL"
    return desc


def _quote_name(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def _quote_comment(comment: str) -> str:
    return "'" + comment.replace("'", "''") + "'"


def render_type(node: TypeTree) -> str:
    """Emit canonical descriptor text for ``node``."""
    if isinstance(node, ScalarType):
        text = node.data_type
    elif isinstance(node, ArrayType):
        text = f"ARRAY<{render_type(node.element)}>"
    elif isinstance(node, MultisetType):
        text = f"MULTISET<{render_type(node.element)}>"
    elif isinstance(node, MapType):
        text = f"MAP<{render_type(node.key)}, {render_type(node.value)}>"
    elif isinstance(node, RowType):
        fields = []
        for member in node.members:
            field = f"{_quote_name(member.field_name or '')} {render_type(member)}"
            if member.comment:
                field += f" {_quote_comment(member.comment)}"
            fields.append(field)
        text = f"ROW<{', '.join(fields)}>"
    else:
        raise TypeError(f"not a type tree node: {type(node).__name__}")
    if not node.is_field_nullable:
        text += " NOT NULL"
    return text


def format_raw_or_label(
    text: str, *, max_depth: int = DEFAULT_MAX_DEPTH, strip_max_length: bool = True,
) -> str:
    """Display label for ``text``, or ``text`` itself when it does not parse."""
    try:
        node = parse(text, max_depth=max_depth)
    except TypeParseError as e:
        logger.warning("could not parse type %r, showing it verbatim: %s", text, e.message)
        return text
    return format_type_for_display(node, strip_max_length=strip_max_length)
