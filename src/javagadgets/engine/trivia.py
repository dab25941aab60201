from __future__ import annotations

from javagadgets.engine.tree import COMMENT_KINDS, TRIVIA_KINDS, NodeKind, NodeRef, SyntaxTree


def is_trivia(tree: SyntaxTree, ref: NodeRef) -> bool:
    return tree.kind(ref) in TRIVIA_KINDS


def is_comment(tree: SyntaxTree, ref: NodeRef) -> bool:
    return tree.kind(ref) in COMMENT_KINDS


def is_whitespace(tree: SyntaxTree, ref: NodeRef) -> bool:
    return tree.kind(ref) is NodeKind.WHITESPACE


def skip_forward(tree: SyntaxTree, ref: NodeRef) -> NodeRef | None:
    """Next sibling of `ref` that is not whitespace or a comment."""

    sibling = tree.next_sibling(ref)
    while sibling is not None and is_trivia(tree, sibling):
        sibling = tree.next_sibling(sibling)
    return sibling


def skip_backward(tree: SyntaxTree, ref: NodeRef) -> NodeRef | None:
    """Previous sibling of `ref` that is not whitespace or a comment."""

    sibling = tree.prev_sibling(ref)
    while sibling is not None and is_trivia(tree, sibling):
        sibling = tree.prev_sibling(sibling)
    return sibling


def first_significant_child(tree: SyntaxTree, ref: NodeRef) -> NodeRef | None:
    child = tree.first_child(ref)
    if child is not None and is_trivia(tree, child):
        return skip_forward(tree, child)
    return child


def significant_children(tree: SyntaxTree, ref: NodeRef) -> list[NodeRef]:
    return [child for child in tree.children(ref) if not is_trivia(tree, child)]
