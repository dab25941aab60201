from __future__ import annotations

import re
from collections.abc import Mapping
from functools import lru_cache
from types import MappingProxyType

from javagadgets.rules.base import BaseRule, RuleMeta
from javagadgets.rules.jdk import builtin_jdk_rules
from javagadgets.rules.style import builtin_style_rules

_RULE_ID_RE = re.compile(r"^[A-Z][0-9]{2,}$")


@lru_cache(maxsize=1)
def builtin_rules() -> tuple[BaseRule, ...]:
    rules: list[BaseRule] = []
    rules.extend(builtin_jdk_rules())
    rules.extend(builtin_style_rules())

    by_id: dict[str, BaseRule] = {}
    short_names: set[str] = set()
    for rule in rules:
        rule_id = rule.meta.rule_id
        if rule_id != rule_id.strip() or rule_id != rule_id.upper():  # pragma: no cover
            raise RuntimeError(f"Rule id must be canonical uppercase without whitespace: {rule_id!r}")
        if not _RULE_ID_RE.match(rule_id):  # pragma: no cover
            raise RuntimeError(f"Rule id must match {_RULE_ID_RE.pattern}: {rule_id!r}")
        if rule_id in by_id:  # pragma: no cover
            raise RuntimeError(f"Duplicate rule id: {rule_id}")
        if rule.meta.short_name in short_names:  # pragma: no cover
            raise RuntimeError(f"Duplicate rule short name: {rule.meta.short_name}")
        by_id[rule_id] = rule
        short_names.add(rule.meta.short_name)

    return tuple(by_id[k] for k in sorted(by_id))


def all_rules() -> tuple[BaseRule, ...]:
    return builtin_rules()


def rule_ids() -> set[str]:
    return {r.meta.rule_id for r in all_rules()}


@lru_cache(maxsize=1)
def rule_meta_by_id() -> Mapping[str, RuleMeta]:
    return MappingProxyType({r.meta.rule_id: r.meta for r in all_rules()})


@lru_cache(maxsize=1)
def _rule_by_id_map() -> Mapping[str, BaseRule]:
    return MappingProxyType({r.meta.rule_id: r for r in all_rules()})


@lru_cache(maxsize=1)
def _rule_by_short_name_map() -> Mapping[str, BaseRule]:
    return MappingProxyType({r.meta.short_name.lower(): r for r in all_rules()})


def rule_by_id(rule_id: str) -> BaseRule | None:
    return _rule_by_id_map().get(rule_id.strip().upper())


def rule_by_short_name(name: str) -> BaseRule | None:
    """Look up a rule by the name used in `//noinspection` comments."""

    return _rule_by_short_name_map().get(name.strip().lower())


def resolve_rule(token: str) -> BaseRule | None:
    """A rule id (`J03`) or short name (`UnnecessarySemicolon`)."""

    return rule_by_id(token) or rule_by_short_name(token)
