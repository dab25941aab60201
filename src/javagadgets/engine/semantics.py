from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal, Protocol

from javagadgets.engine.tree import NodeRef

MemberKind = Literal["field", "method", "constructor", "local", "parameter", "class"]

# Primitive kind -> boxed class simple name. Fixed by the language; never mutated.
BOXED_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "int": "Integer",
        "short": "Short",
        "boolean": "Boolean",
        "long": "Long",
        "byte": "Byte",
        "float": "Float",
        "double": "Double",
        "char": "Character",
    }
)
UNBOXED_NAMES: Mapping[str, str] = MappingProxyType(
    {
        **{boxed: primitive for primitive, boxed in BOXED_NAMES.items()},
        **{f"java.lang.{boxed}": primitive for primitive, boxed in BOXED_NAMES.items()},
    }
)

_NUMERIC_RANK = {"byte": 1, "short": 2, "char": 2, "int": 3, "long": 4, "float": 5, "double": 6}


@dataclass(frozen=True, slots=True)
class ResolvedType:
    """A semantic type, identified by its presentable text (e.g. `int`, `List<String>`)."""

    name: str

    @property
    def is_primitive(self) -> bool:
        return self.name in BOXED_NAMES

    @property
    def is_void(self) -> bool:
        return self.name == "void"

    @property
    def is_numeric(self) -> bool:
        return self.name in _NUMERIC_RANK

    @property
    def is_boxed(self) -> bool:
        return self.name in UNBOXED_NAMES

    @property
    def is_null(self) -> bool:
        return self.name == "null"

    @property
    def is_array(self) -> bool:
        return self.name.endswith("[]")

    def boxed(self) -> ResolvedType:
        boxed = BOXED_NAMES.get(self.name)
        return ResolvedType(boxed) if boxed is not None else self

    def unboxed(self) -> ResolvedType:
        primitive = UNBOXED_NAMES.get(self.name)
        return ResolvedType(primitive) if primitive is not None else self

    def component(self) -> ResolvedType | None:
        if not self.is_array:
            return None
        return ResolvedType(self.name[:-2])

    def __str__(self) -> str:
        return self.name


BOOLEAN = ResolvedType("boolean")
BYTE = ResolvedType("byte")
SHORT = ResolvedType("short")
CHAR = ResolvedType("char")
INT = ResolvedType("int")
LONG = ResolvedType("long")
FLOAT = ResolvedType("float")
DOUBLE = ResolvedType("double")
VOID = ResolvedType("void")
NULL = ResolvedType("null")
STRING = ResolvedType("String")


def unary_promotion(t: ResolvedType) -> ResolvedType | None:
    t = t.unboxed()
    if not t.is_numeric:
        return None
    if _NUMERIC_RANK[t.name] < _NUMERIC_RANK["int"]:
        return INT
    return t


def binary_promotion(left: ResolvedType, right: ResolvedType) -> ResolvedType | None:
    a, b = left.unboxed(), right.unboxed()
    if not (a.is_numeric and b.is_numeric):
        return None
    rank = max(_NUMERIC_RANK[a.name], _NUMERIC_RANK[b.name], _NUMERIC_RANK["int"])
    return {3: INT, 4: LONG, 5: FLOAT, 6: DOUBLE}[rank]


@dataclass(frozen=True, slots=True)
class DeclaredMember:
    """What a reference resolves to."""

    name: str
    kind: MemberKind
    type: ResolvedType | None = None
    declaring_type: str | None = None
    is_static: bool = False
    is_final: bool = False
    parameter_types: tuple[ResolvedType, ...] = ()
    is_varargs: bool = False
    declaration: NodeRef | None = None


class Oracle(Protocol):
    """
    Semantic queries answered by the host.

    Every method returns None (or False) for "unknown"; callers treat that as
    a negative answer.
    """

    def static_type_of(self, expression: NodeRef) -> ResolvedType | None: ...

    def resolve_reference(self, node: NodeRef) -> DeclaredMember | None: ...

    def declared_type(self, declaration: NodeRef) -> ResolvedType | None: ...

    def is_static_member(self, member: DeclaredMember) -> bool: ...

    def declaring_type(self, member: DeclaredMember) -> str | None: ...
