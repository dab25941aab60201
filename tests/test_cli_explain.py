from __future__ import annotations

import json

from typer.testing import CliRunner

from javagadgets.cli import app


def test_explain_json_includes_rule_metadata_and_options() -> None:
    runner = CliRunner()
    res = runner.invoke(app, ["explain", "J02", "--format", "json"])
    assert res.exit_code == 0
    payload = json.loads(res.stdout)
    assert payload["rule_id"] == "J02"
    assert payload["short_name"] == "UnqualifiedStaticUsage"
    assert payload["display_name"] == "Unqualified static usage"
    assert payload["group"] == "style"
    assert payload["default_severity"] == "info"
    assert {option["name"] for option in payload["options"]} == {
        "ignore_static_field_accesses",
        "ignore_static_method_calls",
        "ignore_static_access_from_static_context",
    }


def test_explain_accepts_short_names() -> None:
    runner = CliRunner()
    res = runner.invoke(app, ["explain", "unnecessarysemicolon", "--format", "json"])
    assert res.exit_code == 0
    payload = json.loads(res.stdout)
    assert payload["rule_id"] == "J03"
    assert payload["enabled_by_default"] is True
    assert payload["options"] == []


def test_explain_terminal_shows_config_and_suppression_hints() -> None:
    runner = CliRunner()
    res = runner.invoke(app, ["explain", "J01"])
    assert res.exit_code == 0
    assert "Auto-boxing" in res.stdout
    assert "[tool.javagadgets.rules.J01]" in res.stdout
    assert "//noinspection AutoBoxing" in res.stdout


def test_explain_unknown_rule_exits_non_zero() -> None:
    runner = CliRunner()
    res = runner.invoke(app, ["explain", "ZZ99"])
    assert res.exit_code != 0
