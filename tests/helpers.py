from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from javagadgets.autofix import fix_tree
from javagadgets.engine.context import FileContext, ProjectContext
from javagadgets.engine.detection import diagnose
from javagadgets.engine.oracle import SourceOracle
from javagadgets.engine.tree import Node, NodeKind, NodeRef, SyntaxTree
from javagadgets.rules.base import BaseRule, Diagnostic
from javagadgets.scanner import build_file_context


def make_file_ctx(project_ctx: ProjectContext, *, relpath: str, content: str) -> FileContext:
    path = project_ctx.project_root / relpath
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    ctx = build_file_context(project_ctx, path)
    assert ctx is not None
    return ctx


def make_tree(spec: Sequence[Any]) -> SyntaxTree:
    """
    Build a SyntaxTree by hand from nested tuples.

    `(kind, "text")` is a leaf, `(kind, [children...])` a composite node;
    an optional third item is the node's role.
    """

    nodes: list[Node] = []

    def add(item: Sequence[Any]) -> int:
        kind, payload, *rest = item
        role = rest[0] if rest else None
        if isinstance(payload, str):
            raw = payload if kind is NodeKind.TOKEN else kind.value
            nodes.append(Node(kind, raw=raw, text=payload, role=role))
        else:
            children = tuple(add(child) for child in payload)
            nodes.append(Node(kind, raw=kind.value, children=children, role=role))
        return len(nodes) - 1

    root = add(spec)
    return SyntaxTree(nodes, root)


def find_all(tree: SyntaxTree, kind: NodeKind, text: str | None = None) -> list[NodeRef]:
    return [ref for ref in tree.walk() if tree.kind(ref) is kind and (text is None or tree.text(ref) == text)]


def find(tree: SyntaxTree, kind: NodeKind, text: str | None = None, *, nth: int = 0) -> NodeRef:
    found = find_all(tree, kind, text)
    assert len(found) > nth, f"no {kind.value} {text!r} in tree"
    return found[nth]


def run_rules(
    tree: SyntaxTree,
    rules: Iterable[BaseRule],
    options: Mapping[str, Mapping[str, bool]] | None = None,
) -> list[Diagnostic]:
    return list(diagnose(tree, SourceOracle(tree), list(rules), options).diagnostics)


def flagged_texts(tree: SyntaxTree, diagnostics: Iterable[Diagnostic]) -> list[str]:
    return [tree.text(d.node) for d in diagnostics]


def fix_all(
    tree: SyntaxTree,
    rules: Iterable[BaseRule],
    options: Mapping[str, Mapping[str, bool]] | None = None,
) -> str:
    return fix_tree(tree, rules, options=options).tree.source
