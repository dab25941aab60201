from __future__ import annotations

import fnmatch
import re
import tomllib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, cast

from javagadgets.engine.types import Severity


class ConfigError(ValueError):
    """Raised when a javagadgets configuration table is invalid."""


RuleId = str
RuleGroup = str


_RULE_ID_RE = re.compile(r"^[A-Z][0-9]{2,}$")

# Keep this list in config (not in rules) so configuration can be resolved
# without importing the inspection engine.
DEFAULT_RULE_GROUPS: dict[RuleGroup, tuple[RuleId, ...]] = {
    # NOTE: Keep these in sync with `javagadgets.rules.registry.builtin_rules()`.
    "jdk": ("J01",),
    "style": ("J02", "J03"),
    # Rules that are on by default in an IDE profile.
    "recommended": ("J03",),
}
DEFAULT_RULE_GROUPS["all"] = tuple(rule_id for group in ("jdk", "style") for rule_id in DEFAULT_RULE_GROUPS[group])

_RULES_TABLE_KEYS = frozenset({"enable", "disable", "severity_overrides", "severity-overrides"})


def _normalize_group(value: str) -> str:
    return value.strip().lower().replace("-", "_")


def _normalize_option_name(value: str) -> str:
    return value.strip().lower().replace("-", "_")


def _validate_str_list(value: Any, *, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or any(not isinstance(v, str) for v in value):
        raise ConfigError(f"`{field_name}` must be a list of strings.")
    return tuple(v.strip() for v in value)


def _normalize_rule_id(value: str) -> str:
    # Rule IDs are case-insensitive in UX, but canonicalized internally.
    return value.strip().upper()


def _validate_severity(value: Any, *, field_name: str) -> Severity:
    if not isinstance(value, str):
        raise ConfigError(f"`{field_name}` must be a string.")
    normalized = value.strip().lower()
    if normalized == "warning":
        normalized = "warn"
    if normalized not in {"info", "warn", "error"}:
        raise ConfigError(f"`{field_name}` must be one of: info, warn, error.")
    return cast(Severity, normalized)


@dataclass(frozen=True, slots=True)
class RuleOverride:
    """Per-rule table: `[tool.javagadgets.rules.J02]`."""

    severity: Severity | None = None
    options: Mapping[str, bool] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True, slots=True)
class RulesConfig:
    enable: str | tuple[str, ...] = "all"
    disable: tuple[str, ...] = ()
    overrides: Mapping[RuleId, RuleOverride] = field(default_factory=lambda: MappingProxyType({}))
    severity_overrides: Mapping[RuleId, Severity] = field(default_factory=lambda: MappingProxyType({}))

    def options_for(self, rule_id: RuleId) -> Mapping[str, bool]:
        override = self.overrides.get(rule_id)
        return override.options if override is not None else MappingProxyType({})


@dataclass(frozen=True, slots=True)
class IgnoreConfig:
    paths: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class JavaGadgetsConfig:
    rules: RulesConfig = field(default_factory=RulesConfig)
    ignore: IgnoreConfig = field(default_factory=IgnoreConfig)


def load_config(project_dir: Path | str = ".") -> JavaGadgetsConfig:
    """
    Load javagadgets configuration from `pyproject.toml` within `project_dir`.

    If no file / no `[tool.javagadgets]` table exists, returns defaults.
    """

    pyproject_path = Path(project_dir) / "pyproject.toml"
    if not pyproject_path.exists():
        return JavaGadgetsConfig()

    try:
        data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {pyproject_path}: {exc}") from exc

    tool_table = data.get("tool", {})
    if not isinstance(tool_table, dict):
        return JavaGadgetsConfig()

    table = tool_table.get("javagadgets", {})
    if not isinstance(table, dict) or not table:
        return JavaGadgetsConfig()

    return parse_config_table(table)


def parse_config_table(table: Mapping[str, Any]) -> JavaGadgetsConfig:
    rules = _parse_rules_config(table.get("rules", {}))
    ignore = _parse_ignore_config(table.get("ignore", {}))
    return JavaGadgetsConfig(rules=rules, ignore=ignore)


def _parse_enable(value: Any) -> str | tuple[str, ...]:
    if isinstance(value, str):
        stripped = value.strip()
        if "," in stripped or ";" in stripped:
            return _split_rule_tokens(stripped)
        return stripped or "all"
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return _split_rule_list(value)
    raise ConfigError("`tool.javagadgets.rules.enable` must be a string or a list of strings.")


def _parse_rules_config(value: Any) -> RulesConfig:
    if value is None:
        return RulesConfig()
    if not isinstance(value, dict):
        raise ConfigError("`tool.javagadgets.rules` must be a table.")

    enable = _parse_enable(value.get("enable", "all"))
    disable = _split_rule_list(_validate_str_list(value.get("disable", []), field_name="tool.javagadgets.rules.disable"))

    _validate_rule_spec(enable, field_name="tool.javagadgets.rules.enable")
    _validate_rule_tokens(disable, field_name="tool.javagadgets.rules.disable")

    sev_overrides_raw = value.get("severity_overrides", value.get("severity-overrides"))
    severity_overrides: dict[RuleId, Severity] = {}
    if sev_overrides_raw is not None:
        if not isinstance(sev_overrides_raw, dict):
            raise ConfigError("`tool.javagadgets.rules.severity_overrides` must be a table.")
        for raw_rule_id, raw_severity in sev_overrides_raw.items():
            normalized_rule_id = _normalize_rule_id(str(raw_rule_id))
            if not _RULE_ID_RE.match(normalized_rule_id):
                raise ConfigError(
                    f"`tool.javagadgets.rules.severity_overrides.{raw_rule_id}` is invalid; expected a rule id like J02."
                )
            severity_overrides[normalized_rule_id] = _validate_severity(
                raw_severity,
                field_name=f"tool.javagadgets.rules.severity_overrides.{raw_rule_id}",
            )

    overrides: dict[RuleId, RuleOverride] = {}
    for key, sub in value.items():
        if key in _RULES_TABLE_KEYS or not isinstance(sub, dict):
            continue
        normalized_key = _normalize_rule_id(str(key))
        if not _RULE_ID_RE.match(normalized_key):
            raise ConfigError(f"`tool.javagadgets.rules.{key}` is invalid; expected a rule id like J02.")
        overrides[normalized_key] = _parse_rule_override(sub, field_name=f"tool.javagadgets.rules.{key}")

    return RulesConfig(
        enable=enable,
        disable=disable,
        overrides=MappingProxyType(overrides),
        severity_overrides=MappingProxyType(severity_overrides),
    )


def _parse_rule_override(table: Mapping[str, Any], *, field_name: str) -> RuleOverride:
    severity_raw = table.get("severity")
    severity = _validate_severity(severity_raw, field_name=f"{field_name}.severity") if severity_raw is not None else None

    options: dict[str, bool] = {}
    for raw_name, raw_value in table.items():
        if raw_name == "severity":
            continue
        if not isinstance(raw_value, bool):
            raise ConfigError(f"`{field_name}.{raw_name}` must be a boolean.")
        options[_normalize_option_name(str(raw_name))] = raw_value
    return RuleOverride(severity=severity, options=MappingProxyType(options))


def _split_rule_tokens(value: str) -> tuple[str, ...]:
    parts = []
    for raw in value.replace(";", ",").split(","):
        token = raw.strip()
        if token:
            parts.append(token)
    return tuple(parts)


def _split_rule_list(values: Iterable[str]) -> tuple[str, ...]:
    parts: list[str] = []
    for raw in values:
        parts.extend(_split_rule_tokens(raw))
    return tuple(parts)


def _validate_rule_spec(enable: str | tuple[str, ...], *, field_name: str) -> None:
    if isinstance(enable, str):
        _validate_rule_tokens((enable,), field_name=field_name)
    else:
        _validate_rule_tokens(enable, field_name=field_name)


def _validate_rule_tokens(tokens: Iterable[str], *, field_name: str) -> None:
    for token in tokens:
        stripped = token.strip()
        if not stripped:
            continue
        if _normalize_group(stripped) in DEFAULT_RULE_GROUPS:
            continue
        if _RULE_ID_RE.match(_normalize_rule_id(stripped)):
            continue

        groups = ", ".join(sorted(DEFAULT_RULE_GROUPS))
        raise ConfigError(
            f"`{field_name}` contains unknown rule group or invalid rule id: {token!r}. "
            f"Valid groups: {groups}. Valid ids look like J01."
        )


def _parse_ignore_config(value: Any) -> IgnoreConfig:
    if value is None:
        return IgnoreConfig()
    if not isinstance(value, dict):
        raise ConfigError("`tool.javagadgets.ignore` must be a table.")
    paths = _validate_str_list(value.get("paths", []), field_name="tool.javagadgets.ignore.paths")
    return IgnoreConfig(paths=paths)


def compute_enabled_rule_ids(
    config: JavaGadgetsConfig,
    *,
    available_rule_ids: Iterable[RuleId] | None = None,
) -> set[RuleId]:
    """
    Resolve the final enabled rules set from `rules.enable` + `rules.disable`.

    - `enable = "all"` enables all known built-in rules.
    - `enable = ["style", "J01"]` enables group(s) and/or explicit IDs.
    - `disable = ["J02"]` disables specific IDs (or groups).

    If `available_rule_ids` is provided, the result is intersected with it.
    """

    available: set[RuleId] | None = set(available_rule_ids) if available_rule_ids is not None else None

    enable_spec = config.rules.enable
    enable_tokens = (enable_spec,) if isinstance(enable_spec, str) else enable_spec

    enabled: set[RuleId] = set()
    for token in enable_tokens:
        enabled.update(_expand_token(token, available))
    for token in config.rules.disable:
        enabled.difference_update(_expand_token(token, available))

    if available is not None:
        enabled.intersection_update(available)
    return enabled


def _expand_token(token: str, available: set[RuleId] | None) -> set[RuleId]:
    stripped = token.strip()
    normalized_group = _normalize_group(stripped)
    if normalized_group == "all":
        return set(available if available is not None else DEFAULT_RULE_GROUPS["all"])
    if normalized_group in DEFAULT_RULE_GROUPS:
        return set(DEFAULT_RULE_GROUPS[normalized_group])
    return {_normalize_rule_id(stripped)}


def path_is_ignored(path: Path, *, project_root: Path, ignore_patterns: Iterable[str]) -> bool:
    """
    Return True if `path` matches any ignore patterns.

    Patterns are evaluated against the POSIX-style relative path from `project_root`.

    Supported patterns:
    - Directory prefixes: "build/" matches "build/..." under root.
    - Globs without slashes: "*Generated.java" matches basenames.
    - Globs with slashes: "src/**/gen/*.java" matches full relative paths.
    """

    try:
        relative = path.resolve().relative_to(project_root.resolve())
    except (ValueError, OSError, RuntimeError):
        # If the path isn't under root (or can't be resolved), don't ignore it implicitly.
        return False

    rel_posix = relative.as_posix()
    basename = relative.name

    for raw_pattern in ignore_patterns:
        pattern = raw_pattern.strip().replace("\\", "/")
        if not pattern:
            continue
        if pattern.startswith("./"):
            pattern = pattern[2:]

        if pattern.endswith("/"):
            if rel_posix.startswith(pattern):
                return True
            continue

        if "/" in pattern:
            if fnmatch.fnmatch(rel_posix, pattern):
                return True
        elif fnmatch.fnmatch(basename, pattern) or fnmatch.fnmatch(rel_posix, pattern):
            return True

    return False
