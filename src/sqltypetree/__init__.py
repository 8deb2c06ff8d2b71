"""Parser for Flink-style FULL_DATA_TYPE descriptors.

    >>> from sqltypetree import parse
    >>> tree = parse("ROW<`id` BIGINT NOT NULL, `tags` ARRAY<STRING>>")
    >>> tree.members[0].field_name
    'id'
"""

__version__ = "0.1.0"

from sqltypetree.cursor import CharacterCursor
from sqltypetree.errors import (
    EmptyInputError,
    InvalidFieldSyntaxError,
    InvariantViolationError,
    NestingTooDeepError,
    StructuralSyntaxError,
    TypeGrammarError,
    TypeParseError,
    UnterminatedTokenError,
)
from sqltypetree.formatter import (
    describe,
    format_raw_or_label,
    format_sql_type,
    format_type_for_display,
    render_type,
)
from sqltypetree.parser import DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT, TypeGrammarParser, parse
from sqltypetree.type_nodes import (
    ArrayType,
    MapType,
    MultisetType,
    RowType,
    ScalarType,
    TypeKind,
    TypeTree,
    is_compound_type,
    iter_nodes,
    tree_from_dict,
    tree_to_dict,
)

__all__ = [
    "ArrayType",
    "CharacterCursor",
    "DEFAULT_MAX_DEPTH",
    "EmptyInputError",
    "InvalidFieldSyntaxError",
    "InvariantViolationError",
    "MAX_DEPTH_LIMIT",
    "MapType",
    "MultisetType",
    "NestingTooDeepError",
    "RowType",
    "ScalarType",
    "StructuralSyntaxError",
    "TypeGrammarError",
    "TypeGrammarParser",
    "TypeKind",
    "TypeParseError",
    "TypeTree",
    "UnterminatedTokenError",
    "__version__",
    "describe",
    "format_raw_or_label",
    "format_sql_type",
    "format_type_for_display",
    "is_compound_type",
    "iter_nodes",
    "parse",
    "render_type",
    "tree_from_dict",
    "tree_to_dict",
]
