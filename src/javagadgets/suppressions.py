from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True, slots=True)
class Suppressions:
    """
    Line-level rule suppressions extracted from in-file comments.

    Supported directives (case-insensitive; rule ids or short names):
    - `//noinspection AutoBoxing,J03` (suppresses violations on the next line)
    - `// javagadgets: disable-file=J02` (suppresses violations anywhere in the file)
    - `// javagadgets: disable=J01` (suppresses violations on that same line)
    - `// javagadgets: disable-next-line=J01` (suppresses violations on the next line)

    `ALL` suppresses every rule.
    """

    disabled_in_file: frozenset[str]
    disabled_on_line: Mapping[int, frozenset[str]]

    def is_suppressed(self, rule_id: str, *, line: int | None, short_name: str | None = None) -> bool:
        names = {rule_id.upper()}
        if short_name:
            names.add(short_name.upper())
        if "all" in self.disabled_in_file or names & self.disabled_in_file:
            return True
        if line is None:
            return False
        disabled = self.disabled_on_line.get(line)
        if not disabled:
            return False
        return "all" in disabled or bool(names & disabled)


EMPTY_SUPPRESSIONS = Suppressions(disabled_in_file=frozenset(), disabled_on_line=MappingProxyType({}))

_IDS = r"(?P<ids>[a-z0-9_,\-\s]+)"
_NOINSPECTION_RE = re.compile(r"//\s*noinspection\s+" + _IDS, re.IGNORECASE)
_DISABLE_FILE_RE = re.compile(r"javagadgets:\s*disable[-_]?file\s*=\s*" + _IDS, re.IGNORECASE)
_DISABLE_RE = re.compile(r"javagadgets:\s*disable\s*=\s*" + _IDS, re.IGNORECASE)
_DISABLE_NEXT_RE = re.compile(r"javagadgets:\s*disable-next-line\s*=\s*" + _IDS, re.IGNORECASE)


def parse_suppressions(lines: Sequence[str]) -> Suppressions:
    disabled_in_file: set[str] = set()
    disabled_on_line: dict[int, set[str]] = {}

    for idx, line in enumerate(lines, start=1):
        match_file = _DISABLE_FILE_RE.search(line)
        if match_file:
            disabled_in_file.update(_parse_ids(match_file.group("ids")))

        match = _DISABLE_RE.search(line)
        if match:
            disabled_on_line.setdefault(idx, set()).update(_parse_ids(match.group("ids")))

        for next_re in (_DISABLE_NEXT_RE, _NOINSPECTION_RE):
            match_next = next_re.search(line)
            if match_next:
                disabled_on_line.setdefault(idx + 1, set()).update(_parse_ids(match_next.group("ids")))

    frozen = {line: frozenset(ids) for line, ids in disabled_on_line.items()}
    return Suppressions(disabled_in_file=frozenset(sorted(disabled_in_file)), disabled_on_line=MappingProxyType(frozen))


def _parse_ids(value: str) -> set[str]:
    ids = set()
    for token in re.split(r"[,\s]+", value.strip()):
        normalized = token.strip()
        if not normalized:
            continue
        if normalized.lower() == "all":
            ids.add("all")
        else:
            ids.add(normalized.upper())
    return ids
