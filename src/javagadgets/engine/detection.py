from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from javagadgets import messages
from javagadgets.config import JavaGadgetsConfig, compute_enabled_rule_ids
from javagadgets.engine.context import FileContext, ProjectContext
from javagadgets.engine.oracle import SourceOracle
from javagadgets.engine.semantics import Oracle
from javagadgets.engine.tree import SyntaxTree
from javagadgets.engine.types import Location, Severity, Violation
from javagadgets.engine.visitor import Anomaly, DispatchTable, visit
from javagadgets.rules.base import BaseRule, Diagnostic, InspectionContext
from javagadgets.rules.registry import all_rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiagnosisResult:
    diagnostics: tuple[Diagnostic, ...]
    anomalies: tuple[Anomaly, ...] = ()


@dataclass(frozen=True, slots=True)
class FileDetection:
    violations: tuple[Violation, ...]
    anomalies: tuple[Anomaly, ...] = ()


@dataclass(frozen=True, slots=True)
class DetectionResult:
    violations: tuple[Violation, ...]
    anomalies: int = 0


def diagnose(
    tree: SyntaxTree,
    oracle: Oracle,
    rules: Iterable[BaseRule],
    options: Mapping[str, Mapping[str, bool]] | None = None,
) -> DiagnosisResult:
    """
    One merged pass of `rules` over `tree`.

    `options` maps rule ids to their option tables; each table is turned
    into the rule's options object once, before the walk starts. Diagnostics
    come back in source order (ties broken by rule id).
    """

    rules_list = list(rules)
    option_tables = options or {}
    contexts = {
        rule.meta.rule_id: InspectionContext(
            tree=tree,
            oracle=oracle,
            options=rule.build_options(option_tables.get(rule.meta.rule_id)),
        )
        for rule in rules_list
    }
    result = visit(tree, DispatchTable.build(rules_list, contexts))
    diagnostics = sorted(result.diagnostics, key=lambda d: (tree.span(d.node)[0], d.rule_id))
    return DiagnosisResult(diagnostics=tuple(diagnostics), anomalies=result.anomalies)


def enabled_rules(config: JavaGadgetsConfig, rules: Iterable[BaseRule] | None = None) -> list[BaseRule]:
    available = list(rules) if rules is not None else list(all_rules())
    enabled_ids = compute_enabled_rule_ids(config, available_rule_ids=(r.meta.rule_id for r in available))
    return [r for r in available if r.meta.rule_id in enabled_ids]


def option_tables(config: JavaGadgetsConfig, rules: Iterable[BaseRule]) -> dict[str, Mapping[str, bool]]:
    return {rule.meta.rule_id: config.rules.options_for(rule.meta.rule_id) for rule in rules}


def detect(
    project: ProjectContext,
    files: Iterable[FileContext],
    *,
    workers: int | None = None,
    on_file_done: Callable[[Path], None] | None = None,
) -> DetectionResult:
    """Run the enabled rules over every file context."""

    rules = enabled_rules(project.config)
    file_list = list(files)
    violations: list[Violation] = []
    anomalies = 0

    effective_workers = workers or 1
    if effective_workers <= 1 or len(file_list) <= 1:
        for file_ctx in file_list:
            found = detect_file_full(file_ctx, project.config, rules)
            violations.extend(found.violations)
            anomalies += len(found.anomalies)
            if on_file_done is not None:
                on_file_done(file_ctx.path)
        return DetectionResult(violations=tuple(violations), anomalies=anomalies)

    max_workers = min(max(1, effective_workers), len(file_list))
    detect_one = partial(detect_file_full, config=project.config, rules=rules)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        for file_ctx, found in zip(file_list, executor.map(detect_one, file_list), strict=True):
            violations.extend(found.violations)
            anomalies += len(found.anomalies)
            if on_file_done is not None:
                on_file_done(file_ctx.path)
    return DetectionResult(violations=tuple(violations), anomalies=anomalies)


def detect_file(
    file_ctx: FileContext,
    config: JavaGadgetsConfig,
    rules: Iterable[BaseRule] | None = None,
) -> list[Violation]:
    return list(detect_file_full(file_ctx, config, rules).violations)


def detect_file_full(
    file_ctx: FileContext,
    config: JavaGadgetsConfig,
    rules: Iterable[BaseRule] | None = None,
) -> FileDetection:
    tree = file_ctx.syntax_tree
    if tree is None:
        return FileDetection(violations=())

    active = enabled_rules(config, rules)
    by_id = {rule.meta.rule_id: rule for rule in active}
    result = diagnose(tree, SourceOracle(tree), active, option_tables(config, active))
    logger.debug("%s: %d diagnostic(s) from %d rule(s)", file_ctx.relative_path, len(result.diagnostics), len(active))

    violations: list[Violation] = []
    for diagnostic in result.diagnostics:
        rule = by_id[diagnostic.rule_id]
        violation = to_violation(tree, diagnostic, path=file_ctx.path, severity=_severity_for(config, rule))
        line = violation.location.start_line if violation.location else None
        if file_ctx.suppressions.is_suppressed(rule.meta.rule_id, line=line, short_name=rule.meta.short_name):
            continue
        violations.append(violation)
    return FileDetection(violations=tuple(violations), anomalies=result.anomalies)


def location_of(tree: SyntaxTree, diagnostic: Diagnostic, *, path: Path | None = None) -> Location:
    start, end = tree.span(diagnostic.node)
    start_line, start_col = tree.line_col(start)
    end_line, end_col = tree.line_col(end)
    return Location(path=path, start_line=start_line, start_col=start_col, end_line=end_line, end_col=end_col)


def to_violation(
    tree: SyntaxTree,
    diagnostic: Diagnostic,
    *,
    path: Path | None = None,
    severity: Severity = "warn",
) -> Violation:
    message = messages.render(diagnostic.message_key, ref=tree.text(diagnostic.node))
    return Violation(
        rule_id=diagnostic.rule_id,
        severity=severity,
        message=message,
        suggestion=_suggestion(tree, diagnostic),
        location=location_of(tree, diagnostic, path=path),
    )


def _suggestion(tree: SyntaxTree, diagnostic: Diagnostic) -> str | None:
    fix = diagnostic.fix()
    if fix is None:
        return None
    name = messages.render(fix.name_key)
    if fix.is_deletion:
        return name
    return f"{name}: `{fix.preview(tree)}`"


def _severity_for(config: JavaGadgetsConfig, rule: BaseRule) -> Severity:
    rule_id = rule.meta.rule_id
    override = config.rules.overrides.get(rule_id)
    if override is not None and override.severity is not None:
        return override.severity
    return config.rules.severity_overrides.get(rule_id, rule.meta.default_severity)
