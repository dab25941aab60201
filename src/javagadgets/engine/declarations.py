from __future__ import annotations

from javagadgets.engine.tree import MEMBER_KINDS, TYPE_DECLARATION_KINDS, NodeKind, NodeRef, SyntaxTree
from javagadgets.engine.trivia import first_significant_child, significant_children

_IMPLICITLY_STATIC_TYPES = frozenset(
    {
        NodeKind.ENUM_DECLARATION,
        NodeKind.INTERFACE_DECLARATION,
        NodeKind.RECORD_DECLARATION,
        NodeKind.ANNOTATION_TYPE_DECLARATION,
    }
)
_INTERFACE_KINDS = frozenset({NodeKind.INTERFACE_DECLARATION, NodeKind.ANNOTATION_TYPE_DECLARATION})


def declaration_name(tree: SyntaxTree, decl: NodeRef) -> str | None:
    name = tree.child(decl, "name")
    return tree.text(name) if name is not None else None


def explicit_modifiers(tree: SyntaxTree, decl: NodeRef) -> set[str]:
    words: set[str] = set()
    for modifiers in tree.children_of_kind(decl, NodeKind.MODIFIERS):
        for child in tree.children(modifiers):
            token = tree.token(child)
            if token is not None:
                words.add(token)
    return words


def owner_of_body(tree: SyntaxTree, ref: NodeRef) -> NodeRef | None:
    """The declaration owning the class/enum body that directly contains `ref`."""

    body = tree.parent(ref)
    if body is None or tree.kind(body) not in (NodeKind.CLASS_BODY, NodeKind.ENUM_BODY):
        return None
    return tree.parent(body)


def _in_interface(tree: SyntaxTree, decl: NodeRef) -> bool:
    owner = owner_of_body(tree, decl)
    return owner is not None and tree.kind(owner) in _INTERFACE_KINDS


def is_static(tree: SyntaxTree, decl: NodeRef) -> bool:
    """Whether a member declaration is static, explicitly or implicitly."""

    kind = tree.kind(decl)
    if kind is NodeKind.ENUM_CONSTANT:
        return True
    if kind is NodeKind.INITIALIZER:
        first = first_significant_child(tree, decl)
        return first is not None and tree.is_token(first, "static")
    if "static" in explicit_modifiers(tree, decl):
        return True
    if kind is NodeKind.FIELD_DECLARATION:
        return _in_interface(tree, decl)
    if kind in TYPE_DECLARATION_KINDS:
        if owner_of_body(tree, decl) is None:
            return False
        return kind in _IMPLICITLY_STATIC_TYPES or _in_interface(tree, decl)
    return False


def is_final(tree: SyntaxTree, decl: NodeRef) -> bool:
    kind = tree.kind(decl)
    if kind is NodeKind.ENUM_CONSTANT:
        return True
    if "final" in explicit_modifiers(tree, decl):
        return True
    if kind is NodeKind.FIELD_DECLARATION:
        return _in_interface(tree, decl)
    return False


def enclosing_member(tree: SyntaxTree, ref: NodeRef) -> NodeRef | None:
    for ancestor in tree.ancestors(ref):
        if tree.kind(ancestor) in MEMBER_KINDS:
            return ancestor
    return None


def enclosing_type(tree: SyntaxTree, ref: NodeRef) -> NodeRef | None:
    for ancestor in tree.ancestors(ref):
        if tree.kind(ancestor) in TYPE_DECLARATION_KINDS:
            return ancestor
    return None


def enclosing_method(tree: SyntaxTree, ref: NodeRef) -> NodeRef | None:
    """Nearest method or constructor; None when a lambda or type body intervenes."""

    for ancestor in tree.ancestors(ref):
        kind = tree.kind(ancestor)
        if kind in (NodeKind.METHOD_DECLARATION, NodeKind.CONSTRUCTOR_DECLARATION):
            return ancestor
        if kind in (NodeKind.LAMBDA_EXPRESSION, NodeKind.CLASS_BODY, NodeKind.ENUM_BODY, NodeKind.INITIALIZER):
            return None
    return None


def call_arguments(tree: SyntaxTree, call: NodeRef) -> list[NodeRef]:
    """Argument expressions of a call or `new` expression, in order."""

    arguments = tree.child(call, "arguments")
    if arguments is None:
        found = tree.children_of_kind(call, NodeKind.ARGUMENT_LIST)
        if not found:
            return []
        arguments = found[0]
    return [child for child in significant_children(tree, arguments) if tree.kind(child) is not NodeKind.TOKEN]


def in_static_context(tree: SyntaxTree, ref: NodeRef) -> bool:
    """Whether the nearest enclosing member of `ref` is static."""

    inner = ref
    for ancestor in tree.ancestors(ref):
        kind = tree.kind(ancestor)
        if kind in MEMBER_KINDS:
            return is_static(tree, ancestor)
        if kind is NodeKind.NEW_EXPRESSION and tree.kind(inner) is NodeKind.CLASS_BODY:
            # anonymous classes are never static
            return False
        inner = ancestor
    return False


def is_assignment_target(tree: SyntaxTree, ref: NodeRef) -> bool:
    """`ref` (possibly parenthesized) is the left-hand side of an assignment."""

    current = ref
    parent = tree.parent(current)
    while parent is not None and tree.kind(parent) is NodeKind.PARENTHESIZED_EXPRESSION:
        current = parent
        parent = tree.parent(current)
    return parent is not None and tree.kind(parent) is NodeKind.ASSIGNMENT_EXPRESSION and tree.role(current) == "left"
