from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from javagadgets import __version__
from javagadgets.engine.types import ScanSummary, Violation
from javagadgets.utils import safe_relpath

REPORT_SCHEMA_VERSION = 1


def render_json(summary: ScanSummary, *, project_root: Path) -> str:
    payload = {
        "schema_version": REPORT_SCHEMA_VERSION,
        "tool": {"name": "javagadgets", "version": __version__},
        "files_scanned": summary.files_scanned,
        "files_skipped": list(summary.files_skipped),
        "anomalies": summary.anomalies,
        "rule_stats": {s.rule_id: s.count for s in summary.rule_stats},
        "violations": [_violation_to_dict(v, project_root=project_root) for v in summary.violations],
    }
    return json.dumps(payload, indent=2, sort_keys=False)


def _violation_to_dict(v: Violation, *, project_root: Path) -> dict[str, Any]:
    loc = None
    if v.location is not None and v.location.path is not None:
        loc = {
            "path": safe_relpath(v.location.path, project_root),
            "start_line": v.location.start_line,
            "start_col": v.location.start_col,
            "end_line": v.location.end_line,
            "end_col": v.location.end_col,
        }

    return {
        "rule_id": v.rule_id,
        "severity": v.severity,
        "message": v.message,
        "suggestion": v.suggestion,
        "location": loc,
    }
