from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from javagadgets.engine.tree import NewNode, NodeKind, NodeRef, StaleNodeError, SyntaxTree
from javagadgets.engine.trivia import is_whitespace

logger = logging.getLogger(__name__)

Validator = Callable[[str], bool]
Replacement = NewNode | NodeRef


class FixError(RuntimeError):
    """A fix could not be applied; the tree it was applied to is unchanged."""


def leaf(kind: NodeKind, text: str, *, raw: str = "", role: str | None = None) -> NewNode:
    return NewNode(kind, raw=raw or kind.value, text=text, role=role)


def token(text: str, *, role: str | None = None) -> NewNode:
    return NewNode(NodeKind.TOKEN, raw=text, text=text, role=role)


def space() -> NewNode:
    return NewNode(NodeKind.WHITESPACE, raw="gap", text=" ")


def render(tree: SyntaxTree, item: Replacement) -> str:
    """Source text a replacement will produce once spliced into `tree`."""

    if isinstance(item, NodeRef):
        return tree.text(item)
    if not item.children:
        return item.text
    return "".join(render(tree, child) for child in item.children)


def apply_replace(tree: SyntaxTree, target: NodeRef, replacement: Replacement) -> SyntaxTree:
    """Return a new tree where `target` is replaced; sibling trivia is kept."""

    parent = tree.parent(target)
    if parent is None:
        raise FixError("cannot replace the root node")
    if isinstance(replacement, NewNode) and replacement.role is None:
        replacement = replace(replacement, role=tree.role(target))
    position = tree.index_in_parent(target)
    return tree.splice(parent, position, position + 1, [replacement])


def apply_delete(tree: SyntaxTree, target: NodeRef) -> SyntaxTree:
    """
    Return a new tree without `target`.

    A parent left holding only whitespace is deleted as well, and the
    whitespace around the removed node is trimmed so that a node standing
    alone on its line takes the whole line with it.
    """

    parent = tree.parent(target)
    if parent is None:
        raise FixError("cannot delete the root node")
    remaining = [child for child in tree.children(parent) if child != target]
    if all(is_whitespace(tree, child) for child in remaining) and tree.parent(parent) is not None:
        logger.debug("Deleting %s together with its emptied parent", tree.describe(target))
        return apply_delete(tree, parent)

    siblings = tree.children(parent)
    position = siblings.index(target)
    start, stop = position, position + 1
    items: list[Replacement] = []

    before = siblings[position - 1] if position > 0 and is_whitespace(tree, siblings[position - 1]) else None
    after = siblings[position + 1] if position + 1 < len(siblings) and is_whitespace(tree, siblings[position + 1]) else None
    before_text = tree.text(before) if before is not None else ""
    after_text = tree.text(after) if after is not None else ""

    line_before = "\n" in before_text
    line_after = "\n" in after_text

    if before is not None:
        start -= 1
        if line_before and line_after:
            # alone on its line: drop the line break and indentation before it
            cut = before_text.rfind("\n")
            if cut > 0 and before_text[cut - 1] == "\r":
                cut -= 1
            before_text = before_text[:cut]
        elif not line_before:
            before_text = before_text.rstrip(" \t")
        if before_text:
            items.append(_whitespace(before_text))
    if after is not None:
        stop += 1
        if line_before and not line_after:
            after_text = ""
        elif before is None and position == 0 and line_after:
            # first thing in its parent: the line break goes with it
            after_text = after_text[after_text.index("\n") + 1 :]
        if after_text:
            items.append(_whitespace(after_text))
    return tree.splice(parent, start, stop, items)


def _whitespace(text: str) -> NewNode:
    return NewNode(NodeKind.WHITESPACE, raw="gap", text=text)


@dataclass(frozen=True, slots=True)
class Fix:
    """
    One tree edit: replace `target` with `replacement`, or delete it.

    `name_key` is the message key of the fix's display name.
    """

    name_key: str
    target: NodeRef
    replacement: Replacement | None = None

    @property
    def is_deletion(self) -> bool:
        return self.replacement is None

    def preview(self, tree: SyntaxTree) -> str:
        if self.replacement is None:
            return ""
        return render(tree, self.replacement)

    def apply(self, tree: SyntaxTree, validator: Validator | None = None) -> SyntaxTree:
        """
        Apply the edit and return the new tree.

        Raises StaleNodeError when `target` does not belong to `tree` and
        FixError when the edit is structurally impossible or the validator
        rejects the resulting source.
        """

        if not tree.contains(self.target):
            raise StaleNodeError(f"fix target {self.target.index} is not part of tree version {tree.version}")
        if self.replacement is None:
            fixed = apply_delete(tree, self.target)
        else:
            fixed = apply_replace(tree, self.target, self.replacement)
        if validator is not None and not validator(fixed.source):
            raise FixError("the fixed source no longer parses")
        return fixed
