from __future__ import annotations

import logging
from pathlib import Path

import pytest

from helpers import find
from javagadgets.autofix import BACKUP_SUFFIX, autofix_path, fix_tree, reparse_validator
from javagadgets.engine import tree_sitter
from javagadgets.engine.tree import NodeKind
from javagadgets.rules.registry import builtin_rules
from javagadgets.rules.style import J03UnnecessarySemicolon

pytestmark = pytest.mark.usefixtures("java_grammar")

_SOURCE = """\
class Counter {
    static int total;;

    Integer next() {
        return total++;
    }
}
"""

_FIXED = """\
class Counter {
    static int total;

    Integer next() {
        return new Integer(Counter.total++);
    }
}
"""


def _write(tmp_path: Path, text: str = _SOURCE) -> Path:
    path = tmp_path / "src" / "Counter.java"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_fix_tree_applies_fixes_one_at_a_time(java) -> None:
    result = fix_tree(java(_SOURCE), builtin_rules())

    assert result.tree.source == _FIXED
    assert [(fix.rule_id, fix.line) for fix in result.applied] == [("J03", 2), ("J01", 5), ("J02", 5)]
    assert [fix.name for fix in result.applied] == [
        "Remove unnecessary semicolon",
        "Make boxing explicit",
        "Qualify static field access",
    ]
    assert result.failed == ()
    assert result.changed


def test_fix_tree_gives_up_on_rejected_fixes(java, caplog: pytest.LogCaptureFixture) -> None:
    tree = java(_SOURCE)

    with caplog.at_level(logging.WARNING, logger="javagadgets"):
        result = fix_tree(tree, builtin_rules(), validator=lambda _source: False)

    assert result.tree is tree
    assert not result.changed
    assert [fix.rule_id for fix in result.failed] == ["J03", "J01", "J02"]
    assert "J03 fix failed at line 2" in caplog.text


def test_fix_tree_stops_at_max_fixes(java, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="javagadgets"):
        result = fix_tree(java(_SOURCE), builtin_rules(), max_fixes=1)

    assert [fix.rule_id for fix in result.applied] == ["J03"]
    assert "stopped after 1 fix attempt(s)" in caplog.text


def test_fix_tree_respects_suppressions(java) -> None:
    source = "class A {\n    int x;;  // javagadgets: disable=J03\n    int y;;\n}\n"
    rules = [J03UnnecessarySemicolon()]

    kept = fix_tree(java(source), rules)
    assert kept.tree.source == "class A {\n    int x;;  // javagadgets: disable=J03\n    int y;\n}\n"

    ignored = fix_tree(java(source), rules, respect_suppressions=False)
    assert ignored.tree.source == "class A {\n    int x;  // javagadgets: disable=J03\n    int y;\n}\n"


def test_fix_tree_without_findings_returns_the_same_tree(java) -> None:
    tree = java("class A {}\n")
    result = fix_tree(tree, builtin_rules())
    assert result.tree is tree
    assert result.applied == ()


def test_fixed_tree_is_a_new_version(java) -> None:
    tree = java(_SOURCE)
    result = fix_tree(tree, [J03UnnecessarySemicolon()])
    assert result.tree.version != tree.version
    assert tree.source == _SOURCE
    assert find(result.tree, NodeKind.CLASS_DECLARATION) is not None


def test_reparse_validator() -> None:
    assert reparse_validator("class A {}") is tree_sitter.parses_cleanly
    assert reparse_validator("class A { ) ) ) }") is None


def test_autofix_dry_run_does_not_write(tmp_path: Path) -> None:
    path = _write(tmp_path)

    result = autofix_path(path, dry_run=True, backup=False)

    assert path.read_text(encoding="utf-8") == _SOURCE
    assert result.changed_files == (path.resolve(),)
    assert "-    static int total;;" in result.diff
    assert "+        return new Integer(Counter.total++);" in result.diff
    assert result.applied_count == 3
    assert result.failed_count == 0


def test_autofix_writes_and_is_idempotent(tmp_path: Path) -> None:
    path = _write(tmp_path)

    result = autofix_path(path, dry_run=False, backup=False)
    assert path.read_text(encoding="utf-8") == _FIXED
    assert path.resolve() in result.changed_files

    second = autofix_path(tmp_path, dry_run=False, backup=False)
    assert second.changed_files == ()
    assert second.diff == ""


def test_autofix_backup_is_written_once(tmp_path: Path) -> None:
    path = _write(tmp_path)

    autofix_path(path, dry_run=False, backup=True)
    backup_path = path.with_suffix(path.suffix + BACKUP_SUFFIX)
    assert backup_path.name == "Counter.java.javagadgets.bak"
    assert backup_path.read_text(encoding="utf-8") == _SOURCE

    path.write_text(_SOURCE.replace("total", "count"), encoding="utf-8")
    autofix_path(path, dry_run=False, backup=True)
    assert backup_path.read_text(encoding="utf-8") == _SOURCE


def test_autofix_only_requested_rules(tmp_path: Path) -> None:
    path = _write(tmp_path)

    result = autofix_path(path, dry_run=False, backup=False, rule_ids=["UnnecessarySemicolon"])

    assert result.applied_count == 1
    assert path.read_text(encoding="utf-8") == _SOURCE.replace("total;;", "total;")


def test_autofix_requested_rule_runs_even_when_disabled(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text("[tool.javagadgets.rules]\ndisable = ['J01']\n", encoding="utf-8")
    path = _write(tmp_path)

    configured = autofix_path(tmp_path, dry_run=True, backup=False)
    assert {fix.rule_id for fr in configured.file_results for fix in fr.applied} == {"J02", "J03"}

    requested = autofix_path(tmp_path, dry_run=True, backup=False, rule_ids=["j01"])
    assert {fix.rule_id for fr in requested.file_results for fix in fr.applied} == {"J01"}
    assert path.read_text(encoding="utf-8") == _SOURCE


def test_autofix_unknown_rule_is_ignored(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = _write(tmp_path)

    with caplog.at_level(logging.WARNING, logger="javagadgets"):
        result = autofix_path(path, dry_run=False, backup=False, rule_ids=["Nope"])

    assert result.changed_files == ()
    assert "unknown rule: Nope" in caplog.text
