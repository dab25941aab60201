from __future__ import annotations

from typing import Any

from javagadgets.engine import tree_sitter
from javagadgets.engine.tree import Node, NodeKind, SyntaxTree


class SyntaxTreeError(RuntimeError):
    """Raised when Java source cannot be turned into a syntax tree."""


_RAW_KINDS: dict[str, NodeKind] = {
    "program": NodeKind.FILE,
    "package_declaration": NodeKind.PACKAGE_DECLARATION,
    "import_declaration": NodeKind.IMPORT_DECLARATION,
    "class_declaration": NodeKind.CLASS_DECLARATION,
    "interface_declaration": NodeKind.INTERFACE_DECLARATION,
    "enum_declaration": NodeKind.ENUM_DECLARATION,
    "record_declaration": NodeKind.RECORD_DECLARATION,
    "annotation_type_declaration": NodeKind.ANNOTATION_TYPE_DECLARATION,
    "class_body": NodeKind.CLASS_BODY,
    "interface_body": NodeKind.CLASS_BODY,
    "annotation_type_body": NodeKind.CLASS_BODY,
    "enum_body": NodeKind.ENUM_BODY,
    "enum_constant": NodeKind.ENUM_CONSTANT,
    "field_declaration": NodeKind.FIELD_DECLARATION,
    "constant_declaration": NodeKind.FIELD_DECLARATION,
    "method_declaration": NodeKind.METHOD_DECLARATION,
    "annotation_type_element_declaration": NodeKind.METHOD_DECLARATION,
    "constructor_declaration": NodeKind.CONSTRUCTOR_DECLARATION,
    "compact_constructor_declaration": NodeKind.CONSTRUCTOR_DECLARATION,
    "static_initializer": NodeKind.INITIALIZER,
    "modifiers": NodeKind.MODIFIERS,
    "formal_parameters": NodeKind.PARAMETER_LIST,
    "formal_parameter": NodeKind.PARAMETER,
    "spread_parameter": NodeKind.PARAMETER,
    "variable_declarator": NodeKind.VARIABLE_DECLARATOR,
    "local_variable_declaration": NodeKind.LOCAL_VARIABLE_DECLARATION,
    "block": NodeKind.BLOCK,
    "constructor_body": NodeKind.BLOCK,
    "expression_statement": NodeKind.EXPRESSION_STATEMENT,
    "return_statement": NodeKind.RETURN_STATEMENT,
    "if_statement": NodeKind.IF_STATEMENT,
    "while_statement": NodeKind.WHILE_STATEMENT,
    "do_statement": NodeKind.DO_STATEMENT,
    "for_statement": NodeKind.FOR_STATEMENT,
    "enhanced_for_statement": NodeKind.FOREACH_STATEMENT,
    "assert_statement": NodeKind.ASSERT_STATEMENT,
    "catch_formal_parameter": NodeKind.CATCH_PARAMETER,
    "assignment_expression": NodeKind.ASSIGNMENT_EXPRESSION,
    "binary_expression": NodeKind.BINARY_EXPRESSION,
    "ternary_expression": NodeKind.CONDITIONAL_EXPRESSION,
    "unary_expression": NodeKind.PREFIX_EXPRESSION,
    "instanceof_expression": NodeKind.INSTANCEOF_EXPRESSION,
    "field_access": NodeKind.FIELD_ACCESS,
    "method_invocation": NodeKind.METHOD_CALL,
    "object_creation_expression": NodeKind.NEW_EXPRESSION,
    "array_creation_expression": NodeKind.NEW_EXPRESSION,
    "array_access": NodeKind.ARRAY_ACCESS,
    "cast_expression": NodeKind.TYPE_CAST,
    "parenthesized_expression": NodeKind.PARENTHESIZED_EXPRESSION,
    "lambda_expression": NodeKind.LAMBDA_EXPRESSION,
    "method_reference": NodeKind.METHOD_REFERENCE,
    "this": NodeKind.THIS_EXPRESSION,
    "class_literal": NodeKind.CLASS_LITERAL,
    "argument_list": NodeKind.ARGUMENT_LIST,
    "array_initializer": NodeKind.ARRAY_INITIALIZER,
    "ERROR": NodeKind.ERROR,
}

# Flattened into a single leaf: the engine never looks inside them.
_LITERAL_TYPES = frozenset(
    {
        "decimal_integer_literal",
        "hex_integer_literal",
        "octal_integer_literal",
        "binary_integer_literal",
        "decimal_floating_point_literal",
        "hex_floating_point_literal",
        "character_literal",
        "string_literal",
        "text_block",
        "null_literal",
        "true",
        "false",
    }
)
_TYPE_TYPES = frozenset(
    {
        "integral_type",
        "floating_point_type",
        "boolean_type",
        "void_type",
        "type_identifier",
        "scoped_type_identifier",
        "generic_type",
        "array_type",
        "annotated_type",
    }
)
_COMMENT_TYPES = frozenset({"line_comment", "block_comment", "comment"})

# Field names under which an identifier names something instead of referring to it.
_NAMING_ROLES = frozenset({"name", "field", "parameters", "key", "label", "dimensions"})
_NAMING_PARENTS = frozenset(
    {
        "scoped_identifier",
        "package_declaration",
        "import_declaration",
        "labeled_statement",
        "break_statement",
        "continue_statement",
        "marker_annotation",
        "annotation",
        "inferred_parameters",
        "element_value_pair",
        "type_parameter",
        "module_declaration",
        "requires_module_directive",
        "exports_module_directive",
        "opens_module_directive",
        "uses_module_directive",
        "provides_module_directive",
    }
)

# Parents whose `;` children are statements in their own right.
_STATEMENT_CONTAINERS = frozenset({"block", "constructor_body", "switch_block_statement_group"})
_STATEMENT_ROLES = frozenset({"body", "consequence", "alternative"})
_TYPE_BODIES = frozenset({"class_body", "enum_body", "interface_body"})


def _ts_children(ts_node: Any) -> list[tuple[Any, str | None]]:
    cursor = ts_node.walk()
    if not cursor.goto_first_child():
        return []
    out: list[tuple[Any, str | None]] = []
    while True:
        out.append((cursor.node, cursor.field_name))
        if not cursor.goto_next_sibling():
            break
    return out


class _Builder:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self.nodes: list[Node] = []

    def _slice(self, start: int, end: int) -> str:
        return self._data[start:end].decode(tree_sitter.SOURCE_ENCODING, errors="replace")

    def _add(self, node: Node) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    def _leaf(self, kind: NodeKind, ts_node: Any, role: str | None) -> int:
        text = self._slice(ts_node.start_byte, ts_node.end_byte)
        return self._add(Node(kind, raw=ts_node.type, text=text, role=role))

    def _gap(self, start: int, end: int) -> int:
        text = self._slice(start, end)
        kind = NodeKind.WHITESPACE if text.isspace() else NodeKind.OTHER
        return self._add(Node(kind, raw="gap", text=text))

    def build_root(self, ts_root: Any) -> int:
        children = self._build_children(ts_root, "program", 0, len(self._data))
        return self._add(Node(NodeKind.FILE, raw="program", children=tuple(children)))

    def _build(self, ts_node: Any, parent_raw: str, role: str | None, after_colons: bool = False) -> int:
        raw = ts_node.type
        if not ts_node.is_named:
            return self._leaf(NodeKind.TOKEN, ts_node, role)
        if raw in _LITERAL_TYPES:
            return self._leaf(NodeKind.LITERAL, ts_node, role)
        if raw in _TYPE_TYPES:
            return self._leaf(NodeKind.TYPE, ts_node, role)
        if raw in _COMMENT_TYPES:
            text = self._slice(ts_node.start_byte, ts_node.end_byte)
            kind = NodeKind.LINE_COMMENT if text.startswith("//") else NodeKind.BLOCK_COMMENT
            return self._add(Node(kind, raw=raw, text=text, role=role))
        if raw == "identifier":
            if after_colons or role in _NAMING_ROLES or parent_raw in _NAMING_PARENTS:
                return self._leaf(NodeKind.IDENTIFIER, ts_node, role)
            return self._leaf(NodeKind.REFERENCE_EXPRESSION, ts_node, role)
        if ts_node.child_count == 0:
            return self._leaf(_RAW_KINDS.get(raw, NodeKind.OTHER), ts_node, role)

        kind = _RAW_KINDS.get(raw)
        if kind is None:
            kind = NodeKind.STATEMENT if raw.endswith("_statement") else NodeKind.OTHER
        if raw == "update_expression":
            first = ts_node.children[0]
            kind = NodeKind.POSTFIX_EXPRESSION if first.is_named else NodeKind.PREFIX_EXPRESSION

        children = self._build_children(ts_node, raw, ts_node.start_byte, ts_node.end_byte)
        if raw == "block" and parent_raw in _TYPE_BODIES:
            block = self._add(Node(kind, raw=raw, children=tuple(children)))
            return self._add(Node(NodeKind.INITIALIZER, raw="instance_initializer", children=(block,), role=role))
        return self._add(Node(kind, raw=raw, children=tuple(children), role=role))

    def _build_children(self, ts_node: Any, raw: str, start: int, end: int) -> list[int]:
        entries = _ts_children(ts_node)
        if raw == "enum_body":
            flattened: list[tuple[Any, str | None]] = []
            for child, field in entries:
                if child.type == "enum_body_declarations":
                    flattened.extend(_ts_children(child))
                else:
                    flattened.append((child, field))
            entries = flattened

        in_block = raw in _STATEMENT_CONTAINERS
        items: list[tuple[int, bool, str | None]] = []
        cursor = start
        seen_colons = False
        for child, field in entries:
            if child.end_byte <= child.start_byte:
                continue
            if child.start_byte > cursor:
                items.append((self._gap(cursor, child.start_byte), False, None))
            if not child.is_named and child.type == ";" and (in_block or field in _STATEMENT_ROLES):
                token = self._add(Node(NodeKind.TOKEN, raw=";", text=";"))
                items.append((token, True, field))
            else:
                items.append((self._build(child, raw, field, seen_colons), False, None))
            if raw == "method_reference" and child.type == "::":
                seen_colons = True
            cursor = max(cursor, child.end_byte)
        if end > cursor:
            items.append((self._gap(cursor, end), False, None))
        return self._wrap_empty_statements(items, absorb_comments=in_block)

    def _wrap_empty_statements(self, items: list[tuple[int, bool, str | None]], *, absorb_comments: bool) -> list[int]:
        out: list[int] = []
        i = 0
        while i < len(items):
            idx, is_empty, role = items[i]
            i += 1
            if not is_empty:
                out.append(idx)
                continue
            members = [idx]
            if absorb_comments:
                # `;  // note` on the same line belongs to the empty statement.
                j = i
                if j < len(items) and self._is_inline_space(items[j][0]):
                    j += 1
                if j < len(items) and self.nodes[items[j][0]].kind in (NodeKind.LINE_COMMENT, NodeKind.BLOCK_COMMENT):
                    members.extend(item[0] for item in items[i : j + 1])
                    i = j + 1
            out.append(self._add(Node(NodeKind.EMPTY_STATEMENT, raw="empty_statement", children=tuple(members), role=role)))
        return out

    def _is_inline_space(self, idx: int) -> bool:
        node = self.nodes[idx]
        return node.kind is NodeKind.WHITESPACE and "\n" not in node.text


def from_tree_sitter(ts_tree: Any, source: str) -> SyntaxTree:
    builder = _Builder(tree_sitter.encode_source(source))
    root = builder.build_root(ts_tree.root_node)
    return SyntaxTree(builder.nodes, root)


def build_tree(source: str) -> SyntaxTree:
    """Parse Java source into a lossless SyntaxTree."""

    if not tree_sitter.is_available():
        raise SyntaxTreeError("Java parsing requires `tree-sitter` and `tree-sitter-java`")
    ts_tree = tree_sitter.parse(source)
    if ts_tree is None:
        raise SyntaxTreeError("tree-sitter failed to parse the source")
    return from_tree_sitter(ts_tree, source)


def has_syntax_errors(tree: SyntaxTree) -> bool:
    return any(tree.kind(ref) is NodeKind.ERROR for ref in tree.walk())
