from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

Severity = Literal["info", "warn", "error"]
RuleGroupName = Literal["jdk", "style"]


@dataclass(frozen=True, slots=True)
class Location:
    path: Path | None = None
    start_line: int | None = None  # 1-based
    start_col: int | None = None  # 1-based
    end_line: int | None = None  # 1-based
    end_col: int | None = None  # 1-based


@dataclass(frozen=True, slots=True)
class Violation:
    rule_id: str
    severity: Severity
    message: str
    suggestion: str | None = None
    location: Location | None = None


@dataclass(frozen=True, slots=True)
class RuleStats:
    rule_id: str
    count: int


@dataclass(frozen=True, slots=True)
class ScanSummary:
    files_scanned: int
    violations: tuple[Violation, ...]
    rule_stats: tuple[RuleStats, ...] = ()
    files_skipped: tuple[str, ...] = ()
    anomalies: int = 0
