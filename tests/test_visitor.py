from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping

import pytest

from helpers import find, make_tree
from javagadgets.engine.detection import diagnose
from javagadgets.engine.oracle import SourceOracle
from javagadgets.engine.tree import NodeKind, NodeRef, SyntaxTree
from javagadgets.engine.visitor import DispatchTable, visit
from javagadgets.rules.base import BaseRule, Diagnostic, Handler, InspectionContext, RuleMeta

K = NodeKind


def _meta(rule_id: str) -> RuleMeta:
    return RuleMeta(
        rule_id=rule_id,
        short_name=f"Test{rule_id}",
        title="test",
        description="test",
        group="style",
        default_severity="warn",
        display_name_key="test.display.name",
    )


class _EveryToken(BaseRule):
    meta = _meta("X01")

    def __init__(self) -> None:
        self.seen: list[NodeRef] = []

    def handlers(self) -> Mapping[NodeKind, Handler]:
        return {K.TOKEN: self._check}

    def _check(self, ctx: InspectionContext, node: NodeRef) -> Iterator[Diagnostic]:
        self.seen.append(node)
        yield self._diagnostic(node, "test.problem")


class _ExplodesOnSemicolon(BaseRule):
    meta = _meta("X02")

    def handlers(self) -> Mapping[NodeKind, Handler]:
        return {K.TOKEN: self._check, K.IDENTIFIER: self._name}

    def _check(self, ctx: InspectionContext, node: NodeRef) -> Iterator[Diagnostic]:
        if ctx.tree.is_token(node, ";"):
            raise RuntimeError("boom")
        yield self._diagnostic(node, "test.problem")

    def _name(self, ctx: InspectionContext, node: NodeRef) -> Iterator[Diagnostic]:
        yield self._diagnostic(node, "test.name")


def _tree() -> SyntaxTree:
    return make_tree(
        (
            K.FILE,
            [
                (K.TOKEN, ";"),
                (K.WHITESPACE, " "),
                (K.FIELD_DECLARATION, [(K.IDENTIFIER, "x", "name"), (K.TOKEN, "=")]),
                (K.TOKEN, "}"),
            ],
        )
    )


def _contexts(tree: SyntaxTree, *rules: BaseRule) -> dict[str, InspectionContext]:
    oracle = SourceOracle(tree)
    return {rule.meta.rule_id: InspectionContext(tree=tree, oracle=oracle) for rule in rules}


def test_every_node_of_a_registered_kind_is_visited_once() -> None:
    tree = _tree()
    rule = _EveryToken()
    result = visit(tree, DispatchTable.build([rule], _contexts(tree, rule)))

    assert [tree.text(n) for n in rule.seen] == [";", "=", "}"]
    assert len(result.diagnostics) == 3
    assert result.nodes_visited == len(list(tree.walk()))
    assert result.anomalies == ()


def test_dispatch_table_fans_out_to_every_rule() -> None:
    tree = _tree()
    first, second = _EveryToken(), _EveryToken()
    table = DispatchTable.build([first], _contexts(tree, first))
    assert table.kinds == frozenset({K.TOKEN})
    assert len(table.handlers_for(K.TOKEN)) == 1
    assert table.handlers_for(K.BLOCK) == ()

    both = DispatchTable(
        {K.TOKEN: table.handlers_for(K.TOKEN) + DispatchTable.build([second], _contexts(tree, second)).handlers_for(K.TOKEN)}
    )
    visit(tree, both)
    assert len(first.seen) == len(second.seen) == 3


def test_handler_failure_skips_only_that_node(caplog: pytest.LogCaptureFixture) -> None:
    tree = _tree()
    rule = _ExplodesOnSemicolon()
    with caplog.at_level(logging.WARNING, logger="javagadgets.engine.visitor"):
        result = visit(tree, DispatchTable.build([rule], _contexts(tree, rule)))

    assert [tree.text(d.node) for d in result.diagnostics] == ["x", "=", "}"]
    assert len(result.anomalies) == 1
    anomaly = result.anomalies[0]
    assert anomaly.rule_id == "X02"
    assert anomaly.kind is K.TOKEN
    assert anomaly.node == find(tree, K.TOKEN, ";")
    assert "RuntimeError: boom" in anomaly.error
    assert "X02 handler failed" in caplog.text


def test_diagnose_sorts_by_offset_then_rule_id() -> None:
    tree = _tree()
    result = diagnose(tree, SourceOracle(tree), [_ExplodesOnSemicolon(), _EveryToken()])

    ordered = [(tree.text(d.node), d.rule_id) for d in result.diagnostics]
    assert ordered == [(";", "X01"), ("x", "X02"), ("=", "X01"), ("=", "X02"), ("}", "X01"), ("}", "X02")]
    assert len(result.anomalies) == 1
