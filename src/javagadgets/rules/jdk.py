from __future__ import annotations

from collections.abc import Iterator, Mapping

from javagadgets.engine.expected_types import expected_type
from javagadgets.engine.fixes import Fix, leaf, space, token
from javagadgets.engine.oracle import simple_type_name
from javagadgets.engine.semantics import BOOLEAN, ResolvedType
from javagadgets.engine.tree import NewNode, NodeKind, NodeRef
from javagadgets.rules.base import BaseRule, Diagnostic, Handler, InspectionContext, RuleMeta

# Every expression kind that can yield a primitive value.
_BOXABLE_KINDS = (
    NodeKind.BINARY_EXPRESSION,
    NodeKind.CONDITIONAL_EXPRESSION,
    NodeKind.LITERAL,
    NodeKind.POSTFIX_EXPRESSION,
    NodeKind.PREFIX_EXPRESSION,
    NodeKind.REFERENCE_EXPRESSION,
    NodeKind.METHOD_CALL,
    NodeKind.TYPE_CAST,
    NodeKind.ASSIGNMENT_EXPRESSION,
    NodeKind.PARENTHESIZED_EXPRESSION,
    NodeKind.FIELD_ACCESS,
    NodeKind.ARRAY_ACCESS,
)


def _arguments(value: NodeRef) -> NewNode:
    return NewNode(
        NodeKind.ARGUMENT_LIST,
        raw="argument_list",
        children=(token("("), value, token(")")),
        role="arguments",
    )


def boolean_value_of(value: NodeRef) -> NewNode:
    """`Boolean.valueOf(<value>)`"""

    return NewNode(
        NodeKind.METHOD_CALL,
        raw="method_invocation",
        children=(
            leaf(NodeKind.REFERENCE_EXPRESSION, "Boolean", raw="identifier", role="object"),
            token("."),
            leaf(NodeKind.IDENTIFIER, "valueOf", raw="identifier", role="name"),
            _arguments(value),
        ),
    )


def new_instance(class_name: str, value: NodeRef) -> NewNode:
    """`new <class_name>(<value>)`"""

    return NewNode(
        NodeKind.NEW_EXPRESSION,
        raw="object_creation_expression",
        children=(
            token("new"),
            space(),
            leaf(NodeKind.TYPE, class_name, raw="type_identifier", role="type"),
            _arguments(value),
        ),
    )


def explicit_boxing(value_type: ResolvedType, expected: ResolvedType, value: NodeRef) -> NewNode:
    """
    The explicit form of boxing `value` into `expected`.

    Booleans go through the `Boolean.valueOf` factory. Other primitives are
    wrapped with a constructor: the expected class when it is a wrapper class
    itself, otherwise the wrapper of the value's own type.
    """

    if value_type == BOOLEAN or expected.unboxed() == BOOLEAN:
        return boolean_value_of(value)
    if expected.is_boxed:
        return new_instance(simple_type_name(expected.name), value)
    return new_instance(value_type.boxed().name, value)


class J01AutoBoxing(BaseRule):
    meta = RuleMeta(
        rule_id="J01",
        short_name="AutoBoxing",
        title="Auto-boxing",
        description=(
            "A primitive value is used where a reference type is expected and gets boxed implicitly. "
            "Implicit boxing hides allocations and is not available before Java 5."
        ),
        group="jdk",
        default_severity="warn",
        display_name_key="auto.boxing.display.name",
    )

    def handlers(self) -> Mapping[NodeKind, Handler]:
        return {kind: self._check_expression for kind in _BOXABLE_KINDS}

    def _check_expression(self, ctx: InspectionContext, expression: NodeRef) -> Iterator[Diagnostic]:
        value_type = ctx.oracle.static_type_of(expression)
        if value_type is None or value_type.is_void or not value_type.is_primitive:
            return
        expected = expected_type(ctx.tree, ctx.oracle, expression)
        if expected is None or expected.is_primitive:
            return
        yield self._diagnostic(
            expression,
            "auto.boxing.problem.descriptor",
            fix=lambda: Fix(
                "auto.boxing.make.boxing.explicit.quickfix",
                expression,
                explicit_boxing(value_type, expected, expression),
            ),
        )


def builtin_jdk_rules() -> list[BaseRule]:
    return [J01AutoBoxing()]
