from __future__ import annotations

import difflib
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from javagadgets import messages
from javagadgets.config import JavaGadgetsConfig
from javagadgets.engine import tree_sitter
from javagadgets.engine.context import FileContext
from javagadgets.engine.detection import diagnose, enabled_rules, option_tables
from javagadgets.engine.fixes import FixError, Validator
from javagadgets.engine.oracle import SourceOracle
from javagadgets.engine.semantics import Oracle
from javagadgets.engine.tree import StaleNodeError, SyntaxTree
from javagadgets.rules.base import BaseRule
from javagadgets.rules.registry import resolve_rule
from javagadgets.scanner import build_file_context, build_project_context, discover_files, prepare_target
from javagadgets.suppressions import parse_suppressions

logger = logging.getLogger(__name__)

DEFAULT_MAX_FIXES = 1000
BACKUP_SUFFIX = ".javagadgets.bak"

OracleFactory = Callable[[SyntaxTree], Oracle]


@dataclass(frozen=True, slots=True)
class AppliedFix:
    rule_id: str
    name: str
    line: int


@dataclass(frozen=True, slots=True)
class FailedFix:
    rule_id: str
    name: str
    line: int
    error: str


@dataclass(frozen=True, slots=True)
class FixTreeResult:
    tree: SyntaxTree
    applied: tuple[AppliedFix, ...]
    failed: tuple[FailedFix, ...]

    @property
    def changed(self) -> bool:
        return bool(self.applied)


def fix_tree(
    tree: SyntaxTree,
    rules: Iterable[BaseRule],
    *,
    options: Mapping[str, Mapping[str, bool]] | None = None,
    oracle_factory: OracleFactory = SourceOracle,
    validator: Validator | None = None,
    respect_suppressions: bool = True,
    max_fixes: int = DEFAULT_MAX_FIXES,
) -> FixTreeResult:
    """
    Apply fixes one at a time until no fixable diagnostic is left.

    Every applied fix produces a new tree, so the remaining diagnostics are
    stale and the tree is diagnosed again from scratch. A fix that fails
    (stale target, structural problem, or rejected by `validator`) leaves
    the tree untouched; it is recorded and not retried at the same span.
    """

    rules_list = list(rules)
    short_names = {rule.meta.rule_id: rule.meta.short_name for rule in rules_list}
    applied: list[AppliedFix] = []
    failed: list[FailedFix] = []
    given_up: set[tuple[str, int, int]] = set()
    attempts = 0

    while attempts < max_fixes:
        result = diagnose(tree, oracle_factory(tree), rules_list, options)
        suppressions = parse_suppressions(tree.source.splitlines()) if respect_suppressions else None
        progressed = False
        for diagnostic in result.diagnostics:
            start, end = tree.span(diagnostic.node)
            key = (diagnostic.rule_id, start, end)
            if key in given_up or not diagnostic.has_fix:
                continue
            line = tree.line_col(start)[0]
            if suppressions is not None and suppressions.is_suppressed(
                diagnostic.rule_id, line=line, short_name=short_names.get(diagnostic.rule_id)
            ):
                continue
            fix = diagnostic.fix()
            if fix is None:
                continue

            attempts += 1
            name = messages.render(fix.name_key)
            try:
                fixed = fix.apply(tree, validator)
            except (FixError, StaleNodeError) as exc:
                logger.warning("%s fix failed at line %d: %s", diagnostic.rule_id, line, exc)
                failed.append(FailedFix(diagnostic.rule_id, name, line, str(exc)))
                given_up.add(key)
                if attempts >= max_fixes:
                    break
                continue

            logger.debug("%s: %s at line %d", diagnostic.rule_id, name, line)
            applied.append(AppliedFix(diagnostic.rule_id, name, line))
            tree = fixed
            progressed = True
            break
        if not progressed:
            break
    else:
        logger.warning("stopped after %d fix attempt(s); the file may still have findings", max_fixes)

    return FixTreeResult(tree=tree, applied=tuple(applied), failed=tuple(failed))


def reparse_validator(source: str) -> Validator | None:
    """Reject fixes that break parsing, unless the source was already broken."""

    if not tree_sitter.is_available() or not tree_sitter.parses_cleanly(source):
        return None
    return tree_sitter.parses_cleanly


@dataclass(frozen=True, slots=True)
class AutoFixFileResult:
    path: Path
    changed: bool
    diff: str
    applied: tuple[AppliedFix, ...]
    failed: tuple[FailedFix, ...]


@dataclass(frozen=True, slots=True)
class AutoFixResult:
    scan_path: Path
    project_root: Path
    changed_files: tuple[Path, ...]
    file_results: tuple[AutoFixFileResult, ...]

    @property
    def diff(self) -> str:
        chunks = [fr.diff for fr in self.file_results if fr.diff]
        return "\n".join(chunks)

    @property
    def applied_count(self) -> int:
        return sum(len(fr.applied) for fr in self.file_results)

    @property
    def failed_count(self) -> int:
        return sum(len(fr.failed) for fr in self.file_results)


def autofix_path(
    scan_path: Path,
    *,
    dry_run: bool,
    backup: bool,
    rule_ids: Iterable[str] | None = None,
) -> AutoFixResult:
    target = prepare_target(scan_path)
    files = discover_files(target)
    project = build_project_context(target, files)
    rules = _rules_for(target.config, rule_ids)

    file_results: list[AutoFixFileResult] = []
    changed: list[Path] = []
    for path in files:
        file_ctx = build_file_context(project, path)
        if file_ctx is None or file_ctx.syntax_tree is None:
            continue
        res = autofix_file(file_ctx, target.config, rules, dry_run=dry_run, backup=backup)
        file_results.append(res)
        if res.changed:
            changed.append(path)

    return AutoFixResult(
        scan_path=target.scan_path,
        project_root=target.project_root,
        changed_files=tuple(changed),
        file_results=tuple(file_results),
    )


def autofix_file(
    file_ctx: FileContext,
    config: JavaGadgetsConfig,
    rules: list[BaseRule],
    *,
    dry_run: bool,
    backup: bool,
) -> AutoFixFileResult:
    path = file_ctx.path
    original = file_ctx.text
    if file_ctx.syntax_tree is None:
        return AutoFixFileResult(path=path, changed=False, diff="", applied=(), failed=())

    result = fix_tree(
        file_ctx.syntax_tree,
        rules,
        options=option_tables(config, rules),
        validator=reparse_validator(original),
    )
    updated = result.tree.source
    diff = _unified_diff(original, updated, path=path)
    changed = original != updated

    if changed and not dry_run:
        if backup:
            backup_path = path.with_suffix(path.suffix + BACKUP_SUFFIX)
            if not backup_path.exists():
                backup_path.write_text(original, encoding="utf-8")
        path.write_text(updated, encoding="utf-8")

    return AutoFixFileResult(path=path, changed=changed, diff=diff, applied=result.applied, failed=result.failed)


def _rules_for(config: JavaGadgetsConfig, rule_ids: Iterable[str] | None) -> list[BaseRule]:
    """Configured rules, or exactly the requested ones (ids or short names)."""

    wanted = [token for token in (rule_ids or ()) if token.strip()]
    if not wanted:
        return enabled_rules(config)
    selected: dict[str, BaseRule] = {}
    for token in wanted:
        rule = resolve_rule(token)
        if rule is None:
            logger.warning("unknown rule: %s", token)
            continue
        selected[rule.meta.rule_id] = rule
    return [selected[rule_id] for rule_id in sorted(selected)]


def _unified_diff(before: str, after: str, *, path: Path) -> str:
    if before == after:
        return ""
    before_lines = before.splitlines(keepends=False)
    after_lines = after.splitlines(keepends=False)
    diff = difflib.unified_diff(
        before_lines,
        after_lines,
        fromfile=str(path),
        tofile=str(path),
        lineterm="",
    )
    return "\n".join(diff)
