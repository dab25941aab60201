from __future__ import annotations

from helpers import find, make_tree
from javagadgets.engine.tree import NodeKind, SyntaxTree
from javagadgets.engine.trivia import (
    first_significant_child,
    is_comment,
    is_trivia,
    significant_children,
    skip_backward,
    skip_forward,
)

K = NodeKind


def _tree() -> SyntaxTree:
    # { /* a */ ; // b\n}
    return make_tree(
        (
            K.BLOCK,
            [
                (K.WHITESPACE, "\n"),
                (K.TOKEN, "{"),
                (K.WHITESPACE, " "),
                (K.BLOCK_COMMENT, "/* a */"),
                (K.WHITESPACE, " "),
                (K.EMPTY_STATEMENT, [(K.TOKEN, ";"), (K.WHITESPACE, " "), (K.LINE_COMMENT, "// b")]),
                (K.WHITESPACE, "\n"),
                (K.TOKEN, "}"),
            ],
        )
    )


def test_skip_forward_and_backward_jump_over_whitespace_and_comments() -> None:
    tree = _tree()
    open_brace = find(tree, K.TOKEN, "{")
    close_brace = find(tree, K.TOKEN, "}")
    statement = find(tree, K.EMPTY_STATEMENT)

    assert skip_forward(tree, open_brace) == statement
    assert skip_backward(tree, close_brace) == statement
    assert skip_backward(tree, statement) == open_brace


def test_skip_never_leaves_the_sibling_run() -> None:
    tree = _tree()
    semicolon = find(tree, K.TOKEN, ";")
    assert skip_forward(tree, semicolon) is None
    assert skip_backward(tree, semicolon) is None
    assert skip_forward(tree, find(tree, K.TOKEN, "}")) is None
    assert skip_backward(tree, find(tree, K.TOKEN, "{")) is None
    assert skip_forward(tree, tree.root) is None


def test_significant_children() -> None:
    tree = _tree()
    assert [tree.text(c) for c in significant_children(tree, tree.root)] == ["{", "; // b", "}"]
    assert tree.text(first_significant_child(tree, tree.root)) == "{"

    statement = find(tree, K.EMPTY_STATEMENT)
    last = tree.last_child(statement)
    assert last is not None and is_comment(tree, last)
    assert is_trivia(tree, find(tree, K.BLOCK_COMMENT))
    assert not is_trivia(tree, statement)
