from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from javagadgets.config import JavaGadgetsConfig
from javagadgets.engine.tree import SyntaxTree
from javagadgets.suppressions import Suppressions


@dataclass(frozen=True, slots=True)
class ProjectContext:
    project_root: Path
    scan_path: Path
    files: tuple[Path, ...]
    config: JavaGadgetsConfig


@dataclass(frozen=True, slots=True)
class FileContext:
    project_root: Path
    path: Path
    relative_path: str
    text: str
    lines: tuple[str, ...]
    suppressions: Suppressions
    syntax_tree: SyntaxTree | None = None
    parse_error: str | None = None
