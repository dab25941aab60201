from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from functools import partial

from javagadgets.engine import declarations
from javagadgets.engine.fixes import Fix, leaf, token
from javagadgets.engine.semantics import DeclaredMember
from javagadgets.engine.tree import NewNode, NodeKind, NodeRef, SyntaxTree
from javagadgets.engine.trivia import is_comment, significant_children, skip_backward, skip_forward
from javagadgets.rules.base import BaseRule, Diagnostic, Handler, InspectionContext, OptionSpec, RuleMeta

_QUALIFIABLE_MEMBERS = frozenset({"field", "method"})
_REMOVE_SEMICOLON = "unnecessary.semicolon.remove.quickfix"


@dataclass(frozen=True, slots=True)
class UnqualifiedStaticUsageOptions:
    ignore_static_field_accesses: bool = False
    ignore_static_method_calls: bool = False
    ignore_static_access_from_static_context: bool = False


def _qualifier(type_name: str) -> NewNode:
    return leaf(NodeKind.REFERENCE_EXPRESSION, type_name, raw="identifier", role="object")


def qualified_field(tree: SyntaxTree, reference: NodeRef, type_name: str) -> NewNode:
    """`<type_name>.<reference>`"""

    return NewNode(
        NodeKind.FIELD_ACCESS,
        raw="field_access",
        children=(
            _qualifier(type_name),
            token("."),
            leaf(NodeKind.IDENTIFIER, tree.text(reference), raw="identifier", role="field"),
        ),
    )


def qualified_call(tree: SyntaxTree, call: NodeRef, type_name: str) -> NewNode:
    """`<type_name>.<call>`; the call's own children are kept as they are."""

    return NewNode(
        NodeKind.METHOD_CALL,
        raw=tree.raw(call),
        children=(_qualifier(type_name), token("."), *tree.children(call)),
    )


def _qualify_field_fix(tree: SyntaxTree, reference: NodeRef, type_name: str) -> Fix:
    return Fix(
        "unqualified.static.usage.qualify.field.quickfix",
        reference,
        qualified_field(tree, reference, type_name),
    )


def _qualify_call_fix(tree: SyntaxTree, call: NodeRef, type_name: str) -> Fix:
    return Fix(
        "unqualified.static.usage.qualify.method.quickfix",
        call,
        qualified_call(tree, call, type_name),
    )


class J02UnqualifiedStaticUsage(BaseRule):
    meta = RuleMeta(
        rule_id="J02",
        short_name="UnqualifiedStaticUsage",
        title="Unqualified static usage",
        description=(
            "A static field or method is referenced without its class name. "
            "Qualifying static usages makes it obvious that no instance state is involved."
        ),
        group="style",
        default_severity="info",
        display_name_key="unqualified.static.usage.display.name",
        options=(
            OptionSpec("ignore_static_field_accesses", "unqualified.static.usage.ignore.field.option"),
            OptionSpec("ignore_static_method_calls", "unqualified.static.usage.ignore.method.option"),
            OptionSpec(
                "ignore_static_access_from_static_context",
                "unqualified.static.usage.only.report.static.usages.option",
            ),
        ),
    )
    options_type = UnqualifiedStaticUsageOptions

    def handlers(self) -> Mapping[NodeKind, Handler]:
        return {
            NodeKind.REFERENCE_EXPRESSION: self._check_reference,
            NodeKind.METHOD_CALL: self._check_call,
        }

    def _check_reference(self, ctx: InspectionContext, reference: NodeRef) -> Iterator[Diagnostic]:
        options: UnqualifiedStaticUsageOptions = ctx.options
        if options.ignore_static_field_accesses:
            return
        tree = ctx.tree
        parent = tree.parent(reference)
        if parent is not None and tree.raw(parent) == "switch_label":
            # `case RED:` does not compile once qualified.
            return
        member = ctx.oracle.resolve_reference(reference)
        if member is None or member.kind != "field":
            return
        if member.is_final and declarations.is_assignment_target(tree, reference):
            return
        if not self._is_static_access(ctx, reference, member):
            return

        type_name = ctx.oracle.declaring_type(member)
        yield self._diagnostic(
            reference,
            "unqualified.static.usage.problem.descriptor1",
            fix=partial(_qualify_field_fix, tree, reference, type_name) if type_name else None,
        )

    def _check_call(self, ctx: InspectionContext, call: NodeRef) -> Iterator[Diagnostic]:
        options: UnqualifiedStaticUsageOptions = ctx.options
        if options.ignore_static_method_calls:
            return
        tree = ctx.tree
        if tree.child(call, "object") is not None:
            return
        name = tree.child(call, "name")
        if name is None:
            return
        member = ctx.oracle.resolve_reference(call)
        if member is None or member.kind != "method":
            return
        if not self._is_static_access(ctx, name, member):
            return

        type_name = ctx.oracle.declaring_type(member)
        yield self._diagnostic(
            name,
            "unqualified.static.usage.problem.descriptor",
            fix=partial(_qualify_call_fix, tree, call, type_name) if type_name else None,
        )

    def _is_static_access(self, ctx: InspectionContext, node: NodeRef, member: DeclaredMember) -> bool:
        options: UnqualifiedStaticUsageOptions = ctx.options
        if options.ignore_static_access_from_static_context and declarations.in_static_context(ctx.tree, node):
            return False
        return member.kind in _QUALIFIABLE_MEMBERS and ctx.oracle.is_static_member(member)


def _is_token(tree: SyntaxTree, ref: NodeRef | None, text: str) -> bool:
    return ref is not None and tree.is_token(ref, text)


def _remove_token(semicolon: NodeRef) -> Fix:
    return Fix(_REMOVE_SEMICOLON, semicolon)


def _remove_empty_statement(tree: SyntaxTree, statement: NodeRef) -> Fix:
    """Delete the statement, keeping a trailing comment in its place."""

    last = tree.last_child(statement)
    if last is not None and is_comment(tree, last):
        return Fix(_REMOVE_SEMICOLON, statement, last)
    return Fix(_REMOVE_SEMICOLON, statement)


class J03UnnecessarySemicolon(BaseRule):
    meta = RuleMeta(
        rule_id="J03",
        short_name="UnnecessarySemicolon",
        title="Unnecessary semicolon",
        description=(
            "A semicolon the grammar does not require, such as a stray one between declarations, "
            "an empty statement in a block, or a terminator after the last enum constant."
        ),
        group="style",
        default_severity="warn",
        display_name_key="unnecessary.semicolon.display.name",
        enabled_by_default=True,
    )

    def handlers(self) -> Mapping[NodeKind, Handler]:
        return {
            NodeKind.FILE: self._check_file,
            NodeKind.CLASS_BODY: self._check_body,
            NodeKind.ENUM_BODY: self._check_enum_body,
            NodeKind.EMPTY_STATEMENT: self._check_empty_statement,
        }

    def _check_file(self, ctx: InspectionContext, file: NodeRef) -> Iterator[Diagnostic]:
        for child in significant_children(ctx.tree, file):
            if _is_token(ctx.tree, child, ";"):
                yield self._flag(child)

    def _check_body(self, ctx: InspectionContext, body: NodeRef) -> Iterator[Diagnostic]:
        tree = ctx.tree
        is_enum = tree.kind(body) is NodeKind.ENUM_BODY
        seen_semicolon = False
        for child in significant_children(tree, body):
            if not _is_token(tree, child, ";"):
                continue
            terminator = is_enum and not seen_semicolon
            seen_semicolon = True
            previous = skip_backward(tree, child)
            if previous is not None and tree.kind(previous) is NodeKind.ENUM_CONSTANT:
                continue
            if terminator and not _is_token(tree, skip_forward(tree, child), "}"):
                # separates the constants from the members that follow
                continue
            yield self._flag(child)

    def _check_enum_body(self, ctx: InspectionContext, body: NodeRef) -> Iterator[Diagnostic]:
        yield from self._check_body(ctx, body)

        tree = ctx.tree
        constants = tree.children_of_kind(body, NodeKind.ENUM_CONSTANT)
        if not constants:
            return
        semicolon = skip_forward(tree, constants[-1])
        if semicolon is None or not tree.is_token(semicolon, ";"):
            return
        if _is_token(tree, skip_forward(tree, semicolon), "}"):
            yield self._flag(semicolon)

    def _check_empty_statement(self, ctx: InspectionContext, statement: NodeRef) -> Iterator[Diagnostic]:
        tree = ctx.tree
        parent = tree.parent(statement)
        if parent is None:
            return
        if tree.kind(parent) is not NodeKind.BLOCK and tree.raw(parent) != "switch_block_statement_group":
            return
        semicolon = tree.first_child(statement)
        if semicolon is None or not tree.is_token(semicolon, ";"):
            return
        yield self._diagnostic(
            semicolon,
            "unnecessary.semicolon.problem.descriptor",
            fix=partial(_remove_empty_statement, tree, statement),
        )

    def _flag(self, semicolon: NodeRef) -> Diagnostic:
        return self._diagnostic(
            semicolon,
            "unnecessary.semicolon.problem.descriptor",
            fix=partial(_remove_token, semicolon),
        )


def builtin_style_rules() -> list[BaseRule]:
    return [J02UnqualifiedStaticUsage(), J03UnnecessarySemicolon()]
