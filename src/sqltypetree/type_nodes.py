"""Type tree node definitions for parsed FULL_DATA_TYPE descriptors."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union

from sqltypetree.errors import InvariantViolationError


class TypeKind(Enum):
    SCALAR = "SCALAR"
    ROW = "ROW"
    MAP = "MAP"
    ARRAY = "ARRAY"
    MULTISET = "MULTISET"


COMPOUND_KINDS = frozenset({TypeKind.ROW, TypeKind.MAP, TypeKind.ARRAY, TypeKind.MULTISET})


# ── Nodes ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ScalarType:
    data_type: str
    is_field_nullable: bool = True
    field_name: str | None = None
    comment: str | None = None

    kind: ClassVar[TypeKind] = TypeKind.SCALAR


@dataclass(frozen=True)
class RowType:
    members: tuple[TypeTree, ...]
    is_field_nullable: bool = True
    field_name: str | None = None
    comment: str | None = None

    kind: ClassVar[TypeKind] = TypeKind.ROW

    def __post_init__(self) -> None:
        _check_member_count(self, len(self.members) >= 1, "at least 1")
        for member in self.members:
            if not member.field_name:
                raise InvariantViolationError(
                    f"ROW member {member.data_type} has no field name"
                )

    @property
    def data_type(self) -> str:
        return self.kind.value

    def field(self, name: str) -> TypeTree | None:
        """The member named ``name``, or None."""
        for member in self.members:
            if member.field_name == name:
                return member
        return None


@dataclass(frozen=True)
class MapType:
    members: tuple[TypeTree, TypeTree]
    is_field_nullable: bool = True
    field_name: str | None = None
    comment: str | None = None

    kind: ClassVar[TypeKind] = TypeKind.MAP

    def __post_init__(self) -> None:
        _check_member_count(self, len(self.members) == 2, "exactly 2")

    @property
    def data_type(self) -> str:
        return self.kind.value

    @property
    def key(self) -> TypeTree:
        return self.members[0]

    @property
    def value(self) -> TypeTree:
        return self.members[1]


@dataclass(frozen=True)
class ArrayType:
    members: tuple[TypeTree]
    is_field_nullable: bool = True
    field_name: str | None = None
    comment: str | None = None

    kind: ClassVar[TypeKind] = TypeKind.ARRAY

    def __post_init__(self) -> None:
        _check_member_count(self, len(self.members) == 1, "exactly 1")

    @property
    def data_type(self) -> str:
        return self.kind.value

    @property
    def element(self) -> TypeTree:
        return self.members[0]


@dataclass(frozen=True)
class MultisetType:
    members: tuple[TypeTree]
    is_field_nullable: bool = True
    field_name: str | None = None
    comment: str | None = None

    kind: ClassVar[TypeKind] = TypeKind.MULTISET

    def __post_init__(self) -> None:
        _check_member_count(self, len(self.members) == 1, "exactly 1")

    @property
    def data_type(self) -> str:
        return self.kind.value

    @property
    def element(self) -> TypeTree:
        return self.members[0]


TypeTree = Union[ScalarType, RowType, MapType, ArrayType, MultisetType]
CompoundType = Union[RowType, MapType, ArrayType, MultisetType]

_NODE_CLASSES: dict[TypeKind, type] = {
    TypeKind.SCALAR: ScalarType,
    TypeKind.ROW: RowType,
    TypeKind.MAP: MapType,
    TypeKind.ARRAY: ArrayType,
    TypeKind.MULTISET: MultisetType,
}


def _check_member_count(node: CompoundType, ok: bool, wanted: str) -> None:
    if not isinstance(node.members, tuple):
        raise InvariantViolationError(
            f"{node.kind.value} members must be a tuple, got {type(node.members).__name__}"
        )
    if not ok:
        raise InvariantViolationError(
            f"{node.kind.value} requires {wanted} member(s), got {len(node.members)}"
        )


# ── Invariant guard ──────────────────────────────────────────────


def _get(node: Any, name: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(name)
    return getattr(node, name, None)


def _kind_of(node: Any) -> TypeKind:
    kind = _get(node, "kind")
    if isinstance(kind, TypeKind):
        return kind
    try:
        return TypeKind(str(kind).upper())
    except ValueError:
        raise InvariantViolationError(f"unknown type kind {kind!r}") from None


def is_compound_type(node: Any) -> bool:
    """Whether ``node`` is a ROW, MAP, ARRAY or MULTISET with members.

    Accepts tree nodes as well as duck-typed objects and mappings (for
    example deserialized JSON). A scalar carrying members is malformed and
    raises InvariantViolationError.
    """
    kind = _kind_of(node)
    members = _get(node, "members")
    if kind is TypeKind.SCALAR:
        if members:
            raise InvariantViolationError(
                f"SCALAR node {_get(node, 'dataType') or _get(node, 'data_type')!r} "
                f"carries {len(members)} member(s)"
            )
        return False
    return bool(members)


def iter_nodes(node: TypeTree) -> Iterator[TypeTree]:
    """Yield ``node`` and all of its descendants, depth-first, pre-order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if is_compound_type(current):
            stack.extend(reversed(current.members))


# ── Dict conversion ──────────────────────────────────────────────


def tree_to_dict(node: TypeTree) -> dict[str, Any]:
    """Convert a tree into a JSON-ready dict using the external key names."""
    data: dict[str, Any] = {
        "kind": node.kind.value,
        "dataType": node.data_type,
        "isFieldNullable": node.is_field_nullable,
    }
    if is_compound_type(node):
        data["members"] = [tree_to_dict(m) for m in node.members]
    if node.field_name is not None:
        data["fieldName"] = node.field_name
    if node.comment is not None:
        data["comment"] = node.comment
    return data


def tree_from_dict(data: Mapping[str, Any]) -> TypeTree:
    """Rebuild a tree from ``tree_to_dict`` output, validating every node."""
    if not isinstance(data, Mapping):
        raise InvariantViolationError(f"expected a mapping, got {type(data).__name__}")
    kind = _kind_of(data)
    compound = is_compound_type(data)
    common = {
        "is_field_nullable": bool(data.get("isFieldNullable", True)),
        "field_name": data.get("fieldName"),
        "comment": data.get("comment"),
    }
    if kind is TypeKind.SCALAR:
        data_type = data.get("dataType")
        if not data_type:
            raise InvariantViolationError("SCALAR node has no dataType")
        return ScalarType(data_type=data_type, **common)
    if not compound:
        raise InvariantViolationError(f"{kind.value} node has no members")
    members = tuple(tree_from_dict(m) for m in data["members"])
    return _NODE_CLASSES[kind](members=members, **common)
