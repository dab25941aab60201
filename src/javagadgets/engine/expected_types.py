from __future__ import annotations

from javagadgets.engine import declarations
from javagadgets.engine.semantics import BOOLEAN, INT, STRING, Oracle, ResolvedType
from javagadgets.engine.tree import NodeKind, NodeRef, SyntaxTree
from javagadgets.engine.trivia import significant_children

_CONDITION_PARENTS = frozenset(
    {NodeKind.IF_STATEMENT, NodeKind.WHILE_STATEMENT, NodeKind.DO_STATEMENT, NodeKind.FOR_STATEMENT}
)


def expected_type(tree: SyntaxTree, oracle: Oracle, expression: NodeRef) -> ResolvedType | None:
    """
    The type `expression` must conform to where it is used.

    Derived from the parent node only; None means the context imposes no
    type (expression statements, operands of binary operators, lambda bodies
    and everything the oracle cannot resolve).
    """

    parent = tree.parent(expression)
    if parent is None:
        return None
    kind = tree.kind(parent)
    role = tree.role(expression)

    if kind is NodeKind.VARIABLE_DECLARATOR and role == "value":
        return oracle.declared_type(parent)
    if kind is NodeKind.ASSIGNMENT_EXPRESSION and role == "right":
        return _assignment_target_type(tree, oracle, parent)
    if kind is NodeKind.ARGUMENT_LIST:
        return _argument_type(tree, oracle, parent, expression)
    if kind is NodeKind.RETURN_STATEMENT:
        method = declarations.enclosing_method(tree, parent)
        if method is None or tree.kind(method) is not NodeKind.METHOD_DECLARATION:
            return None
        return oracle.declared_type(method)
    if kind is NodeKind.TYPE_CAST and role == "value":
        return oracle.declared_type(parent)
    if kind is NodeKind.CONDITIONAL_EXPRESSION:
        if role == "condition":
            return BOOLEAN
        if role in ("consequence", "alternative"):
            return oracle.static_type_of(parent)
        return None
    if kind in _CONDITION_PARENTS and role == "condition":
        return BOOLEAN
    if kind is NodeKind.ASSERT_STATEMENT:
        first = next((c for c in significant_children(tree, parent) if tree.kind(c) is not NodeKind.TOKEN), None)
        return BOOLEAN if first == expression else None
    if kind is NodeKind.ARRAY_ACCESS and role == "index":
        return INT
    if kind is NodeKind.ARRAY_INITIALIZER:
        array_type = _initializer_type(tree, oracle, parent)
        return array_type.component() if array_type is not None else None
    return None


def _assignment_target_type(tree: SyntaxTree, oracle: Oracle, assignment: NodeRef) -> ResolvedType | None:
    left = tree.child(assignment, "left")
    operator = tree.child(assignment, "operator")
    if left is None:
        return None
    target = oracle.static_type_of(left)
    if target is not None and target == STRING and operator is not None and tree.text(operator) == "+=":
        return None
    return target


def _argument_type(tree: SyntaxTree, oracle: Oracle, arguments: NodeRef, expression: NodeRef) -> ResolvedType | None:
    call = tree.parent(arguments)
    if call is None:
        return None
    member = oracle.resolve_reference(call)
    if member is None:
        return None
    args = declarations.call_arguments(tree, call)
    if expression not in args:
        return None
    position = args.index(expression)
    params = member.parameter_types
    if not params:
        return None
    if member.is_varargs and position >= len(params) - 1:
        last = params[-1]
        if len(args) == len(params):
            # a single array argument is passed as the varargs array itself
            given = oracle.static_type_of(expression)
            if given is not None and given.is_array:
                return last
        return last.component()
    if position >= len(params):
        return None
    return params[position]


def _initializer_type(tree: SyntaxTree, oracle: Oracle, initializer: NodeRef) -> ResolvedType | None:
    owner = tree.parent(initializer)
    if owner is None:
        return None
    kind = tree.kind(owner)
    if kind is NodeKind.VARIABLE_DECLARATOR:
        return oracle.declared_type(owner)
    if kind is NodeKind.NEW_EXPRESSION:
        return oracle.static_type_of(owner)
    if kind is NodeKind.ARRAY_INITIALIZER:
        outer = _initializer_type(tree, oracle, owner)
        return outer.component() if outer is not None else None
    return None
