"""
Default English message bundle.

Rules only emit message keys plus the node to substitute for `#ref`; display
text is produced here so a host can swap in its own bundle.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType

logger = logging.getLogger(__name__)

_MAX_REF_LENGTH = 60

MESSAGES: Mapping[str, str] = MappingProxyType(
    {
        "auto.boxing.display.name": "Auto-boxing",
        "auto.boxing.problem.descriptor": "Auto-boxing `#ref`",
        "auto.boxing.make.boxing.explicit.quickfix": "Make boxing explicit",
        "unqualified.static.usage.display.name": "Unqualified static usage",
        "unqualified.static.usage.problem.descriptor": "Unqualified static method call `#ref()`",
        "unqualified.static.usage.problem.descriptor1": "Unqualified static field access `#ref`",
        "unqualified.static.usage.qualify.field.quickfix": "Qualify static field access",
        "unqualified.static.usage.qualify.method.quickfix": "Qualify static method call",
        "unqualified.static.usage.ignore.field.option": "Ignore unqualified field accesses",
        "unqualified.static.usage.ignore.method.option": "Ignore unqualified method calls",
        "unqualified.static.usage.only.report.static.usages.option": "Only report static usages from a non-static context",
        "unnecessary.semicolon.display.name": "Unnecessary semicolon",
        "unnecessary.semicolon.problem.descriptor": "Unnecessary semicolon `#ref`",
        "unnecessary.semicolon.remove.quickfix": "Remove unnecessary semicolon",
    }
)


def _shorten(text: str) -> str:
    first_line = text.strip().splitlines()[0] if text.strip() else ""
    if len(first_line) > _MAX_REF_LENGTH:
        return first_line[: _MAX_REF_LENGTH - 3] + "..."
    return first_line


def render(key: str, *, ref: str | None = None, bundle: Mapping[str, str] = MESSAGES) -> str:
    """Look up `key` and substitute the `#ref` placeholder with `ref`."""

    template = bundle.get(key)
    if template is None:
        logger.warning("missing message key: %s", key)
        return key
    return template.replace("#ref", _shorten(ref or ""))
