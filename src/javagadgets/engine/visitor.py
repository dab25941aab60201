from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from functools import partial
from types import MappingProxyType
from typing import TYPE_CHECKING

from javagadgets.engine.tree import NodeKind, NodeRef, SyntaxTree

if TYPE_CHECKING:
    from javagadgets.rules.base import BaseRule, Diagnostic, InspectionContext

logger = logging.getLogger(__name__)

BoundHandler = Callable[[NodeRef], Iterable["Diagnostic"]]


@dataclass(frozen=True, slots=True)
class Anomaly:
    """A handler raised while inspecting a node; that node was skipped for that rule."""

    rule_id: str
    node: NodeRef
    kind: NodeKind
    error: str


@dataclass(frozen=True, slots=True)
class DispatchEntry:
    rule_id: str
    handler: BoundHandler


@dataclass(frozen=True, slots=True)
class DispatchTable:
    """
    Node kind -> handlers of every active rule interested in that kind.

    Built once per pass; a node whose kind has no entry costs one lookup.
    """

    entries: Mapping[NodeKind, tuple[DispatchEntry, ...]] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, rules: Sequence[BaseRule], contexts: Mapping[str, InspectionContext]) -> DispatchTable:
        by_kind: dict[NodeKind, list[DispatchEntry]] = {}
        for rule in rules:
            rule_id = rule.meta.rule_id
            ctx = contexts[rule_id]
            for kind, handler in rule.handlers().items():
                by_kind.setdefault(kind, []).append(DispatchEntry(rule_id, partial(handler, ctx)))
        return cls(MappingProxyType({kind: tuple(entries) for kind, entries in by_kind.items()}))

    def handlers_for(self, kind: NodeKind) -> tuple[DispatchEntry, ...]:
        return self.entries.get(kind, ())

    @property
    def kinds(self) -> frozenset[NodeKind]:
        return frozenset(self.entries)


@dataclass(frozen=True, slots=True)
class VisitResult:
    diagnostics: tuple[Diagnostic, ...]
    anomalies: tuple[Anomaly, ...]
    nodes_visited: int


def visit(tree: SyntaxTree, table: DispatchTable, root: NodeRef | None = None) -> VisitResult:
    """
    Walk `tree` once in source order and fan each node out to its handlers.

    A handler that raises loses its findings for that node only; the
    failure is logged and returned as an `Anomaly`.
    """

    diagnostics: list[Diagnostic] = []
    anomalies: list[Anomaly] = []
    visited = 0
    for ref in tree.walk(root):
        visited += 1
        kind = tree.kind(ref)
        for entry in table.handlers_for(kind):
            try:
                found = list(entry.handler(ref))
            except Exception as exc:  # noqa: BLE001
                logger.warning("%s handler failed on %s: %s", entry.rule_id, tree.describe(ref), exc)
                anomalies.append(Anomaly(entry.rule_id, ref, kind, f"{type(exc).__name__}: {exc}"))
                continue
            diagnostics.extend(found)
    logger.debug("visited %d node(s), %d diagnostic(s), %d anomaly(ies)", visited, len(diagnostics), len(anomalies))
    return VisitResult(tuple(diagnostics), tuple(anomalies), visited)
