from __future__ import annotations

import json
from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

from javagadgets.cli import app


def test_rules_command_json_lists_builtins(tmp_path: Path) -> None:
    runner = CliRunner()
    res = runner.invoke(app, ["rules", str(tmp_path), "--format", "json"])
    assert res.exit_code == 0, res.stdout

    data = json.loads(res.stdout)
    assert [row["rule_id"] for row in data] == ["J01", "J02", "J03"]
    assert [row["short_name"] for row in data] == ["AutoBoxing", "UnqualifiedStaticUsage", "UnnecessarySemicolon"]
    assert all(row["enabled"] for row in data)
    assert [row["enabled_by_default"] for row in data] == [False, False, True]


def test_rules_command_enabled_only_respects_config(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
[tool.javagadgets.rules]
enable = ["style"]
disable = ["J02"]
""".lstrip(),
        encoding="utf-8",
    )

    runner = CliRunner()
    res = runner.invoke(app, ["rules", str(tmp_path), "--enabled-only", "--format", "json"])
    assert res.exit_code == 0, res.stdout

    data = json.loads(res.stdout)
    assert [row["rule_id"] for row in data] == ["J03"]


def test_rules_command_terminal_table(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("javagadgets.cli.console", Console(width=200))
    runner = CliRunner()
    res = runner.invoke(app, ["rules", str(tmp_path)])
    assert res.exit_code == 0
    assert "javagadgets rules" in res.stdout
    assert "UnnecessarySemicolon" in res.stdout


def test_rules_command_rejects_unknown_format(tmp_path: Path) -> None:
    runner = CliRunner()
    res = runner.invoke(app, ["rules", str(tmp_path), "--format", "xml"])
    assert res.exit_code != 0


def test_rules_command_invalid_config_exits_2(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text("[tool.javagadgets.rules]\nenable = ['nope']\n", encoding="utf-8")

    runner = CliRunner()
    res = runner.invoke(app, ["rules", str(tmp_path)])
    assert res.exit_code == 2
    assert "Invalid configuration" in res.output
