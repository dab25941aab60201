from __future__ import annotations

import itertools
from bisect import bisect_right
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, replace
from enum import Enum


class NodeKind(str, Enum):
    """Closed set of node kinds the engine dispatches on."""

    FILE = "file"

    # Leaves
    WHITESPACE = "whitespace"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    TOKEN = "token"
    IDENTIFIER = "identifier"
    LITERAL = "literal"
    TYPE = "type"

    # Declarations
    PACKAGE_DECLARATION = "package_declaration"
    IMPORT_DECLARATION = "import_declaration"
    CLASS_DECLARATION = "class_declaration"
    INTERFACE_DECLARATION = "interface_declaration"
    ENUM_DECLARATION = "enum_declaration"
    RECORD_DECLARATION = "record_declaration"
    ANNOTATION_TYPE_DECLARATION = "annotation_type_declaration"
    CLASS_BODY = "class_body"
    ENUM_BODY = "enum_body"
    ENUM_CONSTANT = "enum_constant"
    FIELD_DECLARATION = "field_declaration"
    METHOD_DECLARATION = "method_declaration"
    CONSTRUCTOR_DECLARATION = "constructor_declaration"
    INITIALIZER = "initializer"
    MODIFIERS = "modifiers"
    PARAMETER_LIST = "parameter_list"
    PARAMETER = "parameter"
    VARIABLE_DECLARATOR = "variable_declarator"
    LOCAL_VARIABLE_DECLARATION = "local_variable_declaration"

    # Statements
    BLOCK = "block"
    EMPTY_STATEMENT = "empty_statement"
    EXPRESSION_STATEMENT = "expression_statement"
    RETURN_STATEMENT = "return_statement"
    IF_STATEMENT = "if_statement"
    WHILE_STATEMENT = "while_statement"
    DO_STATEMENT = "do_statement"
    FOR_STATEMENT = "for_statement"
    FOREACH_STATEMENT = "foreach_statement"
    ASSERT_STATEMENT = "assert_statement"
    CATCH_PARAMETER = "catch_parameter"
    STATEMENT = "statement"

    # Expressions
    ASSIGNMENT_EXPRESSION = "assignment_expression"
    BINARY_EXPRESSION = "binary_expression"
    CONDITIONAL_EXPRESSION = "conditional_expression"
    PREFIX_EXPRESSION = "prefix_expression"
    POSTFIX_EXPRESSION = "postfix_expression"
    INSTANCEOF_EXPRESSION = "instanceof_expression"
    REFERENCE_EXPRESSION = "reference_expression"
    FIELD_ACCESS = "field_access"
    METHOD_CALL = "method_call"
    NEW_EXPRESSION = "new_expression"
    ARRAY_ACCESS = "array_access"
    TYPE_CAST = "type_cast"
    PARENTHESIZED_EXPRESSION = "parenthesized_expression"
    LAMBDA_EXPRESSION = "lambda_expression"
    METHOD_REFERENCE = "method_reference"
    THIS_EXPRESSION = "this_expression"
    CLASS_LITERAL = "class_literal"
    ARGUMENT_LIST = "argument_list"
    ARRAY_INITIALIZER = "array_initializer"

    OTHER = "other"
    ERROR = "error"


TRIVIA_KINDS = frozenset({NodeKind.WHITESPACE, NodeKind.LINE_COMMENT, NodeKind.BLOCK_COMMENT})
COMMENT_KINDS = frozenset({NodeKind.LINE_COMMENT, NodeKind.BLOCK_COMMENT})

TYPE_DECLARATION_KINDS = frozenset(
    {
        NodeKind.CLASS_DECLARATION,
        NodeKind.INTERFACE_DECLARATION,
        NodeKind.ENUM_DECLARATION,
        NodeKind.RECORD_DECLARATION,
        NodeKind.ANNOTATION_TYPE_DECLARATION,
    }
)

MEMBER_KINDS = TYPE_DECLARATION_KINDS | {
    NodeKind.FIELD_DECLARATION,
    NodeKind.METHOD_DECLARATION,
    NodeKind.CONSTRUCTOR_DECLARATION,
    NodeKind.INITIALIZER,
    NodeKind.ENUM_CONSTANT,
}

EXPRESSION_KINDS = frozenset(
    {
        NodeKind.LITERAL,
        NodeKind.ASSIGNMENT_EXPRESSION,
        NodeKind.BINARY_EXPRESSION,
        NodeKind.CONDITIONAL_EXPRESSION,
        NodeKind.PREFIX_EXPRESSION,
        NodeKind.POSTFIX_EXPRESSION,
        NodeKind.INSTANCEOF_EXPRESSION,
        NodeKind.REFERENCE_EXPRESSION,
        NodeKind.FIELD_ACCESS,
        NodeKind.METHOD_CALL,
        NodeKind.NEW_EXPRESSION,
        NodeKind.ARRAY_ACCESS,
        NodeKind.TYPE_CAST,
        NodeKind.PARENTHESIZED_EXPRESSION,
        NodeKind.LAMBDA_EXPRESSION,
        NodeKind.METHOD_REFERENCE,
        NodeKind.THIS_EXPRESSION,
        NodeKind.CLASS_LITERAL,
    }
)


class StaleNodeError(LookupError):
    """Raised when a NodeRef from another version of the tree is used."""


@dataclass(frozen=True, slots=True)
class Node:
    """
    One arena entry.

    Leaves carry `text`; composite nodes carry `children` (arena indices) and
    their text is the concatenation of their leaves. `raw` is the grammar's
    own type name, `role` the field name under the parent (e.g. "left").
    """

    kind: NodeKind
    raw: str = ""
    text: str = ""
    children: tuple[int, ...] = ()
    role: str | None = None


@dataclass(frozen=True, slots=True)
class NodeRef:
    index: int
    version: int


@dataclass(frozen=True, slots=True)
class NewNode:
    """A node that does not exist yet; children may reuse existing nodes."""

    kind: NodeKind
    raw: str = ""
    text: str = ""
    children: tuple[NewNode | NodeRef, ...] = ()
    role: str | None = None


_VERSIONS = itertools.count(1)

# Splice copies the edited path; once orphans outnumber live nodes the arena is rebuilt.
_COMPACT_RATIO = 2


class SyntaxTree:
    """
    Immutable, lossless syntax tree stored as an arena of nodes.

    Every edit (`splice`) returns a new tree with a fresh version; unchanged
    subtrees keep their indices until the arena is compacted, and `NodeRef`s
    minted by an older version raise `StaleNodeError` when used against the
    new one.
    """

    __slots__ = ("_nodes", "_root", "_parents", "_starts", "_ends", "_source", "_line_starts", "version")

    def __init__(self, nodes: Sequence[Node], root: int) -> None:
        self._nodes: tuple[Node, ...] = tuple(nodes)
        self._root = root
        self.version = next(_VERSIONS)

        parents: dict[int, int | None] = {root: None}
        starts: dict[int, int] = {}
        ends: dict[int, int] = {}
        order: list[int] = []
        pieces: list[str] = []
        offset = 0
        stack = [root]
        while stack:
            idx = stack.pop()
            order.append(idx)
            starts[idx] = offset
            node = self._nodes[idx]
            if node.children:
                for child in reversed(node.children):
                    if child in parents:
                        raise ValueError(f"node {child} is shared between two parents")
                    parents[child] = idx
                    stack.append(child)
            else:
                pieces.append(node.text)
                offset += len(node.text)
        for idx in reversed(order):
            node = self._nodes[idx]
            if node.children:
                ends[idx] = ends[node.children[-1]]
            else:
                ends[idx] = starts[idx] + len(node.text)

        self._parents = parents
        self._starts = starts
        self._ends = ends
        self._source = "".join(pieces)
        self._line_starts: list[int] | None = None

    # -- references -------------------------------------------------------

    @property
    def root(self) -> NodeRef:
        return NodeRef(self._root, self.version)

    def contains(self, ref: NodeRef) -> bool:
        return ref.version == self.version and ref.index in self._parents

    def _index(self, ref: NodeRef) -> int:
        if not self.contains(ref):
            raise StaleNodeError(f"node {ref.index} does not belong to tree version {self.version}")
        return ref.index

    def _ref(self, index: int) -> NodeRef:
        return NodeRef(index, self.version)

    # -- node attributes --------------------------------------------------

    def node(self, ref: NodeRef) -> Node:
        return self._nodes[self._index(ref)]

    def kind(self, ref: NodeRef) -> NodeKind:
        return self.node(ref).kind

    def raw(self, ref: NodeRef) -> str:
        return self.node(ref).raw

    def role(self, ref: NodeRef) -> str | None:
        return self.node(ref).role

    def token(self, ref: NodeRef) -> str | None:
        node = self.node(ref)
        return node.text if node.kind is NodeKind.TOKEN else None

    def is_token(self, ref: NodeRef, token: str) -> bool:
        return self.token(ref) == token

    def text(self, ref: NodeRef) -> str:
        start, end = self.span(ref)
        return self._source[start:end]

    def span(self, ref: NodeRef) -> tuple[int, int]:
        idx = self._index(ref)
        return self._starts[idx], self._ends[idx]

    @property
    def source(self) -> str:
        return self._source

    @property
    def arena_size(self) -> int:
        """Nodes held by the arena, including ones no longer reachable from the root."""

        return len(self._nodes)

    def line_col(self, offset: int) -> tuple[int, int]:
        """1-based (line, column) of a source offset."""

        if self._line_starts is None:
            starts = [0]
            for i, ch in enumerate(self._source):
                if ch == "\n":
                    starts.append(i + 1)
            self._line_starts = starts
        line = bisect_right(self._line_starts, offset)
        return line, offset - self._line_starts[line - 1] + 1

    # -- navigation -------------------------------------------------------

    def parent(self, ref: NodeRef) -> NodeRef | None:
        parent = self._parents[self._index(ref)]
        return None if parent is None else self._ref(parent)

    def children(self, ref: NodeRef) -> tuple[NodeRef, ...]:
        return tuple(self._ref(c) for c in self.node(ref).children)

    def child(self, ref: NodeRef, role: str) -> NodeRef | None:
        for child in self.node(ref).children:
            if self._nodes[child].role == role:
                return self._ref(child)
        return None

    def children_of_kind(self, ref: NodeRef, *kinds: NodeKind) -> list[NodeRef]:
        return [self._ref(c) for c in self.node(ref).children if self._nodes[c].kind in kinds]

    def first_child(self, ref: NodeRef) -> NodeRef | None:
        children = self.node(ref).children
        return self._ref(children[0]) if children else None

    def last_child(self, ref: NodeRef) -> NodeRef | None:
        children = self.node(ref).children
        return self._ref(children[-1]) if children else None

    def index_in_parent(self, ref: NodeRef) -> int:
        idx = self._index(ref)
        parent = self._parents[idx]
        if parent is None:
            raise ValueError("the root node has no parent")
        return self._nodes[parent].children.index(idx)

    def _sibling(self, ref: NodeRef, step: int) -> NodeRef | None:
        idx = self._index(ref)
        parent = self._parents[idx]
        if parent is None:
            return None
        siblings = self._nodes[parent].children
        pos = siblings.index(idx) + step
        if 0 <= pos < len(siblings):
            return self._ref(siblings[pos])
        return None

    def next_sibling(self, ref: NodeRef) -> NodeRef | None:
        return self._sibling(ref, 1)

    def prev_sibling(self, ref: NodeRef) -> NodeRef | None:
        return self._sibling(ref, -1)

    def ancestors(self, ref: NodeRef) -> Iterator[NodeRef]:
        """Strictly enclosing nodes, innermost first."""

        parent = self._parents[self._index(ref)]
        while parent is not None:
            yield self._ref(parent)
            parent = self._parents[parent]

    def walk(self, ref: NodeRef | None = None) -> Iterator[NodeRef]:
        """Pre-order traversal in source order."""

        stack = [self._index(ref) if ref is not None else self._root]
        while stack:
            idx = stack.pop()
            yield self._ref(idx)
            stack.extend(reversed(self._nodes[idx].children))

    def describe(self, ref: NodeRef) -> str:
        line, col = self.line_col(self.span(ref)[0])
        return f"{self.kind(ref).value} at {line}:{col}"

    # -- copy-on-write editing -------------------------------------------

    def splice(self, parent: NodeRef, start: int, stop: int, items: Sequence[NewNode | NodeRef]) -> SyntaxTree:
        """
        Replace `parent`'s children[start:stop] with `items` in a new tree.

        Existing nodes referenced from `items` are reused as-is; every
        ancestor of `parent` is copied so the original tree stays untouched.
        """

        p = self._index(parent)
        arena = list(self._nodes)
        old = arena[p]
        if not (0 <= start <= stop <= len(old.children)):
            raise IndexError(f"invalid child range {start}:{stop} for {len(old.children)} children")

        inserted = tuple(self._materialize(arena, item) for item in items)
        arena.append(replace(old, children=old.children[:start] + inserted + old.children[stop:]))

        child_old, child_new = p, len(arena) - 1
        ancestor = self._parents[p]
        while ancestor is not None:
            node = arena[ancestor]
            arena.append(replace(node, children=tuple(child_new if c == child_old else c for c in node.children)))
            child_old, child_new = ancestor, len(arena) - 1
            ancestor = self._parents[ancestor]

        if len(arena) > _COMPACT_RATIO * len(self._parents):
            arena, child_new = _compact(arena, child_new)
        return SyntaxTree(arena, child_new)

    def _materialize(self, arena: list[Node], item: NewNode | NodeRef) -> int:
        if isinstance(item, NodeRef):
            return self._index(item)
        children = tuple(self._materialize(arena, child) for child in item.children)
        arena.append(Node(kind=item.kind, raw=item.raw, text=item.text, children=children, role=item.role))
        return len(arena) - 1


def _compact(arena: Sequence[Node], root: int) -> tuple[list[Node], int]:
    """Copy the nodes reachable from `root` into a fresh arena, in pre-order."""

    order: list[int] = []
    stack = [root]
    while stack:
        idx = stack.pop()
        order.append(idx)
        stack.extend(reversed(arena[idx].children))
    remap = {old: new for new, old in enumerate(order)}
    nodes = [replace(arena[old], children=tuple(remap[c] for c in arena[old].children)) for old in order]
    return nodes, 0
