from __future__ import annotations

import logging
import os
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from javagadgets.config import JavaGadgetsConfig, load_config, path_is_ignored
from javagadgets.engine.builder import SyntaxTreeError, build_tree, has_syntax_errors
from javagadgets.engine.context import FileContext, ProjectContext
from javagadgets.engine.tree import SyntaxTree
from javagadgets.suppressions import parse_suppressions
from javagadgets.utils import safe_relpath

logger = logging.getLogger(__name__)

JAVA_EXTENSIONS = frozenset({".java"})

DEFAULT_SKIP_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".idea",
    ".vscode",
    ".gradle",
    ".mvn",
    ".venv",
    "venv",
    "node_modules",
    "target",
    "build",
    "out",
    "__pycache__",
}

JAVAGADGETS_WORKERS_ENV = "JAVAGADGETS_WORKERS"
DEFAULT_MAX_WORKERS = 32


@dataclass(frozen=True, slots=True)
class ScanTarget:
    project_root: Path
    scan_path: Path
    config: JavaGadgetsConfig


def resolve_worker_count(
    raw_value: str | None,
    *,
    default: int | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> int:
    """
    Resolve a safe worker count from an env var-style string.

    - None/""/"auto" fall back to the default
    - Values <= 0 fall back to the default
    - Values above `max_workers` are clamped
    """

    cpu = os.cpu_count() or 1
    resolved_default = max(1, default if default is not None else (cpu * 2))
    if raw_value is None:
        return min(resolved_default, max_workers)

    normalized = raw_value.strip().lower()
    if not normalized or normalized in {"auto", "default"}:
        return min(resolved_default, max_workers)

    try:
        workers = int(normalized)
    except ValueError:
        return min(resolved_default, max_workers)

    if workers <= 0:
        return min(resolved_default, max_workers)
    return min(workers, max_workers)


def worker_count_from_env(*, default: int | None = None) -> int:
    return resolve_worker_count(os.environ.get(JAVAGADGETS_WORKERS_ENV), default=default)


def prepare_target(scan_path: Path) -> ScanTarget:
    """Resolve the project root (closest `pyproject.toml`) and load configuration."""

    scan_path = scan_path.resolve()
    project_root = _detect_project_root(scan_path)
    config = load_config(project_root)
    return ScanTarget(project_root=project_root, scan_path=scan_path, config=config)


def is_java_file(path: Path) -> bool:
    return path.suffix.lower() in JAVA_EXTENSIONS


def discover_files(target: ScanTarget) -> list[Path]:
    scan_path = target.scan_path
    root = target.project_root
    ignore_patterns = target.config.ignore.paths

    if scan_path.is_file():
        if not is_java_file(scan_path):
            return []
        if path_is_ignored(scan_path, project_root=root, ignore_patterns=ignore_patterns):
            return []
        return [scan_path]

    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(scan_path, topdown=True):
        dirnames[:] = [d for d in dirnames if d not in DEFAULT_SKIP_DIRS]
        base = Path(dirpath)

        for filename in filenames:
            path = base / filename
            if not is_java_file(path):
                continue
            if path_is_ignored(path, project_root=root, ignore_patterns=ignore_patterns):
                continue
            files.append(path)

    return sorted(set(files))


def build_project_context(target: ScanTarget, files: list[Path]) -> ProjectContext:
    return ProjectContext(
        project_root=target.project_root,
        scan_path=target.scan_path,
        files=tuple(files),
        config=target.config,
    )


def build_file_context(project: ProjectContext, path: Path) -> FileContext | None:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.warning("cannot read %s: %s", path, exc)
        return None

    return build_file_context_from_text(project, path, text)


def build_file_context_from_text(project: ProjectContext, path: Path, text: str) -> FileContext:
    lines_list = text.splitlines()
    suppressions = parse_suppressions(lines_list)

    syntax_tree: SyntaxTree | None = None
    parse_error: str | None = None
    try:
        syntax_tree = build_tree(text)
    except SyntaxTreeError as exc:
        parse_error = str(exc)
        logger.debug("no syntax tree for %s: %s", path, exc)
    else:
        if has_syntax_errors(syntax_tree):
            logger.debug("%s has syntax errors; only the parsed parts are inspected", path)

    return FileContext(
        project_root=project.project_root,
        path=path,
        relative_path=safe_relpath(path, project.project_root),
        text=text,
        lines=tuple(lines_list),
        suppressions=suppressions,
        syntax_tree=syntax_tree,
        parse_error=parse_error,
    )


def build_file_contexts(
    project: ProjectContext,
    paths: list[Path],
    *,
    workers: int = 1,
    on_path_done: Callable[[Path], None] | None = None,
) -> list[FileContext]:
    """
    Build FileContext objects for paths, optionally in parallel.

    Ordering is deterministic: returned contexts follow the input `paths` order,
    with unreadable files filtered out (matching serial behavior).
    """

    contexts: list[FileContext] = []
    if workers <= 1 or len(paths) <= 1:
        for path in paths:
            ctx = build_file_context(project, path)
            if on_path_done is not None:
                on_path_done(path)
            if ctx is not None:
                contexts.append(ctx)
        return contexts

    max_workers = min(max(1, workers), len(paths))
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        build_ctx = partial(build_file_context, project)
        for path, ctx in zip(paths, executor.map(build_ctx, paths), strict=True):
            if on_path_done is not None:
                on_path_done(path)
            if ctx is not None:
                contexts.append(ctx)
    return contexts


def _detect_project_root(start: Path) -> Path:
    # The closest directory holding a pyproject.toml owns the configuration.
    for candidate in [start if start.is_dir() else start.parent, *(start.parents)]:
        if (candidate / "pyproject.toml").exists():
            return candidate

    return start if start.is_dir() else start.parent
