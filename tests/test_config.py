from __future__ import annotations

from pathlib import Path

import pytest

from javagadgets.config import (
    DEFAULT_RULE_GROUPS,
    ConfigError,
    JavaGadgetsConfig,
    RulesConfig,
    compute_enabled_rule_ids,
    load_config,
    parse_config_table,
    path_is_ignored,
)


def test_load_config_defaults_without_pyproject(tmp_path: Path) -> None:
    config = load_config(tmp_path)
    assert config == JavaGadgetsConfig()
    assert compute_enabled_rule_ids(config) == {"J01", "J02", "J03"}


def test_load_config_ignores_pyproject_without_tool_table(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\n', encoding="utf-8")
    assert load_config(tmp_path) == JavaGadgetsConfig()


def test_load_config_reads_tool_table(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
[tool.javagadgets.rules]
enable = ["style"]
disable = ["j02"]

[tool.javagadgets.rules.J01]
severity = "error"

[tool.javagadgets.ignore]
paths = ["build/", "*Generated.java"]
""".lstrip(),
        encoding="utf-8",
    )

    config = load_config(tmp_path)
    assert config.rules.enable == ("style",)
    assert config.rules.disable == ("j02",)
    assert config.rules.overrides["J01"].severity == "error"
    assert config.ignore.paths == ("build/", "*Generated.java")
    assert compute_enabled_rule_ids(config) == {"J03"}


def test_load_config_invalid_toml_raises(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text("[tool.javagadgets\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_rule_options_accept_dashes_and_are_normalized() -> None:
    config = parse_config_table(
        {
            "rules": {
                "J02": {
                    "severity": "warning",
                    "ignore-static-method-calls": True,
                    "IGNORE_STATIC_FIELD_ACCESSES": False,
                }
            }
        }
    )

    override = config.rules.overrides["J02"]
    assert override.severity == "warn"
    assert dict(config.rules.options_for("J02")) == {
        "ignore_static_method_calls": True,
        "ignore_static_field_accesses": False,
    }
    assert dict(config.rules.options_for("J01")) == {}


def test_rule_option_values_must_be_booleans() -> None:
    with pytest.raises(ConfigError, match="must be a boolean"):
        parse_config_table({"rules": {"J02": {"ignore_static_method_calls": "yes"}}})


@pytest.mark.parametrize(
    "rules_table",
    [
        {"enable": ["jdkk"]},
        {"disable": "J01"},
        {"enable": 3},
        {"J01": {"severity": "fatal"}},
        {"severity_overrides": {"J01": "loud"}},
        {"severity_overrides": {"not-a-rule": "info"}},
        {"boxing": {"severity": "info"}},
    ],
)
def test_invalid_rules_tables_raise(rules_table: dict[str, object]) -> None:
    with pytest.raises(ConfigError):
        parse_config_table({"rules": rules_table})


def test_ignore_table_must_be_a_table() -> None:
    with pytest.raises(ConfigError):
        parse_config_table({"ignore": ["build/"]})


def test_enable_accepts_comma_separated_string() -> None:
    config = parse_config_table({"rules": {"enable": "jdk, J03"}})
    assert config.rules.enable == ("jdk", "J03")
    assert compute_enabled_rule_ids(config) == {"J01", "J03"}


def test_severity_overrides_table_is_canonicalized() -> None:
    config = parse_config_table({"rules": {"severity-overrides": {"j03": "info"}}})
    assert dict(config.rules.severity_overrides) == {"J03": "info"}


def test_compute_enabled_rule_ids_groups_and_intersection() -> None:
    recommended = JavaGadgetsConfig(rules=RulesConfig(enable=("recommended",)))
    assert compute_enabled_rule_ids(recommended) == {"J03"}

    disable_group = JavaGadgetsConfig(rules=RulesConfig(enable="all", disable=("style",)))
    assert compute_enabled_rule_ids(disable_group) == {"J01"}

    explicit = JavaGadgetsConfig(rules=RulesConfig(enable=("J01", "J99")))
    assert compute_enabled_rule_ids(explicit) == {"J01", "J99"}
    assert compute_enabled_rule_ids(explicit, available_rule_ids=["J01", "J02", "J03"]) == {"J01"}


def test_default_rule_groups_only_reference_existing_builtin_rules() -> None:
    from javagadgets.rules.registry import builtin_rules

    builtin_ids = {rule.meta.rule_id for rule in builtin_rules()}
    for group, ids in DEFAULT_RULE_GROUPS.items():
        for rule_id in ids:
            assert rule_id in builtin_ids, f"{group} references unknown rule id: {rule_id}"

    assert set(DEFAULT_RULE_GROUPS["all"]) == builtin_ids
    enabled_by_default = {rule.meta.rule_id for rule in builtin_rules() if rule.meta.enabled_by_default}
    assert set(DEFAULT_RULE_GROUPS["recommended"]) == enabled_by_default


def test_path_is_ignored_directory_prefix(tmp_path: Path) -> None:
    file_path = tmp_path / "build" / "gen" / "Foo.java"
    file_path.parent.mkdir(parents=True)
    file_path.write_text("class Foo {}\n", encoding="utf-8")

    assert path_is_ignored(file_path, project_root=tmp_path, ignore_patterns=["build/"]) is True
    assert path_is_ignored(file_path, project_root=tmp_path, ignore_patterns=["./build/"]) is True
    assert path_is_ignored(file_path, project_root=tmp_path, ignore_patterns=["src/"]) is False


def test_path_is_ignored_globs(tmp_path: Path) -> None:
    file_path = tmp_path / "src" / "main" / "FooGenerated.java"
    file_path.parent.mkdir(parents=True)
    file_path.write_text("class FooGenerated {}\n", encoding="utf-8")

    assert path_is_ignored(file_path, project_root=tmp_path, ignore_patterns=["*Generated.java"]) is True
    assert path_is_ignored(file_path, project_root=tmp_path, ignore_patterns=["src/*/Foo*.java"]) is True
    assert path_is_ignored(file_path, project_root=tmp_path, ignore_patterns=["test/*.java"]) is False


def test_path_outside_root_is_never_ignored(tmp_path: Path) -> None:
    root = tmp_path / "project"
    root.mkdir()
    outside = tmp_path / "Other.java"
    outside.write_text("class Other {}\n", encoding="utf-8")
    assert path_is_ignored(outside, project_root=root, ignore_patterns=["*.java"]) is False
