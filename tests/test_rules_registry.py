from __future__ import annotations

import logging

import pytest

from javagadgets import messages
from javagadgets.rules.registry import (
    all_rules,
    builtin_rules,
    resolve_rule,
    rule_by_id,
    rule_by_short_name,
    rule_ids,
    rule_meta_by_id,
)


def test_builtin_rules_are_sorted_and_unique() -> None:
    ids = [rule.meta.rule_id for rule in builtin_rules()]
    assert ids == ["J01", "J02", "J03"]
    assert all_rules() == builtin_rules()
    assert rule_ids() == {"J01", "J02", "J03"}


def test_rule_meta_by_id_is_read_only() -> None:
    metas = rule_meta_by_id()
    assert metas["J01"].short_name == "AutoBoxing"
    with pytest.raises(TypeError):
        metas["J99"] = metas["J01"]  # type: ignore[index]


def test_lookup_by_id_is_case_insensitive() -> None:
    rule = rule_by_id(" j02 ")
    assert rule is not None
    assert rule.meta.short_name == "UnqualifiedStaticUsage"
    assert rule_by_id("J99") is None


def test_lookup_by_short_name() -> None:
    rule = rule_by_short_name("unnecessarysemicolon")
    assert rule is not None
    assert rule.meta.rule_id == "J03"
    assert rule_by_short_name("Boxing") is None


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("J01", "J01"),
        ("AutoBoxing", "J01"),
        ("UnqualifiedStaticUsage", "J02"),
        ("j03", "J03"),
        ("nope", None),
    ],
)
def test_resolve_rule(token: str, expected: str | None) -> None:
    rule = resolve_rule(token)
    assert (rule.meta.rule_id if rule is not None else None) == expected


def test_every_rule_has_messages_for_its_keys() -> None:
    for rule in builtin_rules():
        meta = rule.meta
        assert meta.display_name_key in messages.MESSAGES
        for spec in meta.options:
            assert spec.label_key in messages.MESSAGES


def test_only_unnecessary_semicolon_is_enabled_by_default() -> None:
    enabled = {rule.meta.rule_id for rule in builtin_rules() if rule.meta.enabled_by_default}
    assert enabled == {"J03"}


def test_build_options_ignores_unknown_names(caplog: pytest.LogCaptureFixture) -> None:
    rule = rule_by_id("J02")
    assert rule is not None

    with caplog.at_level(logging.WARNING, logger="javagadgets"):
        options = rule.build_options({"ignore_static_method_calls": True, "bogus": True})

    assert options.ignore_static_method_calls is True
    assert options.ignore_static_field_accesses is False
    assert "unknown option for J02: bogus" in caplog.text
