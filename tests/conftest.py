from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from javagadgets.config import JavaGadgetsConfig
from javagadgets.engine import tree_sitter
from javagadgets.engine.builder import build_tree
from javagadgets.engine.context import ProjectContext
from javagadgets.engine.tree import SyntaxTree


@pytest.fixture()
def project_ctx(tmp_path: Path) -> ProjectContext:
    return ProjectContext(
        project_root=tmp_path,
        scan_path=tmp_path,
        files=(),
        config=JavaGadgetsConfig(),
    )


@pytest.fixture()
def java_grammar() -> None:
    if not tree_sitter.is_available():
        pytest.skip("tree-sitter-java is not installed")


@pytest.fixture()
def java(java_grammar: None) -> Callable[[str], SyntaxTree]:
    """Parse Java source into a SyntaxTree; skips when the grammar is missing."""

    return build_tree
