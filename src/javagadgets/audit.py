from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from javagadgets.engine.detection import detect
from javagadgets.engine.types import RuleStats, ScanSummary, Violation
from javagadgets.rules.registry import rule_ids
from javagadgets.scanner import (
    ScanTarget,
    build_file_contexts,
    build_project_context,
    discover_files,
    prepare_target,
    worker_count_from_env,
)

logger = logging.getLogger(__name__)

_SEVERITY_ORDER = {"error": 0, "warn": 1, "info": 2}


@dataclass(frozen=True, slots=True)
class AuditResult:
    target: ScanTarget
    files: tuple[Path, ...]
    summary: ScanSummary


@dataclass(frozen=True, slots=True)
class AuditCallbacks:
    on_context_built: Callable[[Path], None] | None = None
    on_file_contexts_ready: Callable[[int], None] | None = None
    on_file_scanned: Callable[[Path], None] | None = None


def audit_path(scan_path: Path, *, callbacks: AuditCallbacks | None = None) -> AuditResult:
    target = prepare_target(scan_path)
    files = discover_files(target)
    logger.debug("discovered %d Java file(s) under %s", len(files), target.scan_path)
    return audit_files(target, files=files, callbacks=callbacks)


def audit_files(
    target: ScanTarget,
    *,
    files: list[Path],
    callbacks: AuditCallbacks | None = None,
) -> AuditResult:
    project = build_project_context(target, files)
    workers = worker_count_from_env()
    file_contexts = build_file_contexts(
        project,
        files,
        workers=workers,
        on_path_done=callbacks.on_context_built if callbacks else None,
    )
    if callbacks is not None and callbacks.on_file_contexts_ready is not None:
        callbacks.on_file_contexts_ready(len(file_contexts))

    unknown_override_ids = set(target.config.rules.overrides).union(target.config.rules.severity_overrides)
    unknown_override_ids -= rule_ids()
    for rule_id in sorted(unknown_override_ids):
        logger.warning("unknown rule id in rules overrides: %s", rule_id)

    unparsed = [ctx for ctx in file_contexts if ctx.syntax_tree is None]
    skipped = tuple(ctx.relative_path for ctx in unparsed)
    if unparsed:
        logger.warning("skipped %d file(s) without a syntax tree: %s", len(unparsed), unparsed[0].parse_error)

    result = detect(
        project,
        file_contexts,
        workers=workers,
        on_file_done=callbacks.on_file_scanned if callbacks else None,
    )
    if result.anomalies:
        logger.warning("%d rule handler failure(s) while scanning; affected nodes were skipped", result.anomalies)

    summary = summarize(
        files_scanned=len(file_contexts) - len(skipped),
        violations=result.violations,
        files_skipped=skipped,
        anomalies=result.anomalies,
    )
    return AuditResult(target=target, files=tuple(files), summary=summary)


def summarize(
    *,
    files_scanned: int,
    violations: tuple[Violation, ...] | list[Violation],
    files_skipped: tuple[str, ...] = (),
    anomalies: int = 0,
) -> ScanSummary:
    ordered = sorted(violations, key=_violation_sort_key)
    counts = Counter(v.rule_id for v in ordered)
    return ScanSummary(
        files_scanned=files_scanned,
        violations=tuple(ordered),
        rule_stats=tuple(RuleStats(rule_id=rule_id, count=counts[rule_id]) for rule_id in sorted(counts)),
        files_skipped=files_skipped,
        anomalies=anomalies,
    )


def _violation_sort_key(violation: Violation) -> tuple[str, int, int, int, str]:
    loc = violation.location
    path = str(loc.path) if loc is not None and loc.path is not None else ""
    line = loc.start_line if loc is not None and loc.start_line is not None else 0
    col = loc.start_col if loc is not None and loc.start_col is not None else 0
    return (path, line, col, _SEVERITY_ORDER.get(violation.severity, 3), violation.rule_id)
