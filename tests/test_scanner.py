from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from javagadgets.config import ConfigError
from javagadgets.scanner import (
    build_file_contexts,
    build_project_context,
    discover_files,
    prepare_target,
    resolve_worker_count,
)


def _write(path: Path, text: str = "class A {}\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_resolve_worker_count_default_uses_cpu_times_two(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(os, "cpu_count", lambda: 4)
    assert resolve_worker_count(None) == 8
    assert resolve_worker_count("auto") == 8
    assert resolve_worker_count("garbage") == 8
    assert resolve_worker_count("0") == 8


def test_resolve_worker_count_explicit_and_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(os, "cpu_count", lambda: 64)
    assert resolve_worker_count(None) == 32
    assert resolve_worker_count(None, default=3) == 3
    assert resolve_worker_count(" 5 ") == 5
    assert resolve_worker_count("500") == 32


def test_prepare_target_uses_closest_pyproject(tmp_path: Path) -> None:
    _write(tmp_path / "pyproject.toml", "[tool.javagadgets.rules]\nenable = ['J03']\n")
    nested = tmp_path / "module" / "src"
    nested.mkdir(parents=True)

    target = prepare_target(nested)

    assert target.project_root == tmp_path.resolve()
    assert target.scan_path == nested.resolve()
    assert target.config.rules.enable == ("J03",)


def test_prepare_target_without_pyproject_uses_the_scan_directory(tmp_path: Path) -> None:
    java_file = _write(tmp_path / "A.java")
    # the project root for a single file is its directory, or an ancestor's pyproject
    target = prepare_target(java_file)
    assert target.scan_path == java_file.resolve()
    assert java_file.resolve().is_relative_to(target.project_root)


def test_prepare_target_reports_invalid_config(tmp_path: Path) -> None:
    _write(tmp_path / "pyproject.toml", "[tool.javagadgets.rules]\nenable = ['nope']\n")
    with pytest.raises(ConfigError):
        prepare_target(tmp_path)


def test_discover_files_skips_build_dirs_and_ignored_paths(tmp_path: Path) -> None:
    _write(tmp_path / "pyproject.toml", "[tool.javagadgets.ignore]\npaths = ['*Generated.java', 'legacy/']\n")
    keep = _write(tmp_path / "src" / "main" / "java" / "App.java")
    _write(tmp_path / "src" / "main" / "java" / "AppGenerated.java")
    _write(tmp_path / "legacy" / "Old.java")
    _write(tmp_path / "target" / "classes" / "Copy.java")
    _write(tmp_path / ".git" / "Hook.java")
    _write(tmp_path / "src" / "notes.txt", "not java\n")
    upper = _write(tmp_path / "src" / "Shout.JAVA")

    files = discover_files(prepare_target(tmp_path))

    assert files == sorted([keep.resolve(), upper.resolve()])


def test_discover_files_single_file(tmp_path: Path) -> None:
    java_file = _write(tmp_path / "A.java")
    text_file = _write(tmp_path / "A.txt")
    assert discover_files(prepare_target(java_file)) == [java_file.resolve()]
    assert discover_files(prepare_target(text_file)) == []


def test_build_file_contexts_parallel_keeps_order_and_callbacks(tmp_path: Path) -> None:
    _write(tmp_path / "pyproject.toml", "")
    paths = [_write(tmp_path / f"C{i}.java", f"class C{i} {{}}\n") for i in range(5)]
    target = prepare_target(tmp_path)
    project = build_project_context(target, paths)
    done: list[Path] = []

    contexts = build_file_contexts(project, paths, workers=3, on_path_done=done.append)

    assert [ctx.path for ctx in contexts] == paths
    assert [ctx.relative_path for ctx in contexts] == [f"C{i}.java" for i in range(5)]
    assert done == paths


def test_unreadable_files_are_dropped(tmp_path: Path) -> None:
    present = _write(tmp_path / "A.java")
    missing = tmp_path / "Missing.java"
    project = build_project_context(prepare_target(tmp_path), [present, missing])

    contexts = build_file_contexts(project, [present, missing])

    assert [ctx.path for ctx in contexts] == [present]


@pytest.mark.usefixtures("java_grammar")
def test_files_with_syntax_errors_keep_their_tree_and_are_logged(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    _write(tmp_path / "pyproject.toml", "")
    broken = _write(tmp_path / "Broken.java", "class Broken { ) ) ) }\n")
    clean = _write(tmp_path / "Clean.java")
    project = build_project_context(prepare_target(tmp_path), [broken, clean])

    with caplog.at_level(logging.DEBUG, logger="javagadgets.scanner"):
        contexts = build_file_contexts(project, [broken, clean])

    assert all(ctx.syntax_tree is not None for ctx in contexts)
    assert f"{broken} has syntax errors" in caplog.text
    assert f"{clean} has syntax errors" not in caplog.text
