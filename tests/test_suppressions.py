from __future__ import annotations

import pytest

from javagadgets.suppressions import EMPTY_SUPPRESSIONS, parse_suppressions


def test_same_line_and_next_line_directives() -> None:
    suppressions = parse_suppressions(
        [
            "int x = 1;  // javagadgets: disable=j01,J03",
            "// javagadgets: disable-next-line=j02",
            "foo();",
        ]
    )

    assert suppressions.is_suppressed("J01", line=1)
    assert suppressions.is_suppressed("J03", line=1)
    assert suppressions.is_suppressed("J02", line=3)

    assert not suppressions.is_suppressed("J02", line=1)
    assert not suppressions.is_suppressed("J02", line=2)  # only the next line
    assert not suppressions.is_suppressed("J01", line=None)


def test_noinspection_applies_to_the_next_line_by_short_name() -> None:
    suppressions = parse_suppressions(
        [
            "//noinspection AutoBoxing, UnnecessarySemicolon",
            "Integer i = 1;;",
            "Integer j = 2;",
        ]
    )

    assert suppressions.is_suppressed("J01", line=2, short_name="AutoBoxing")
    assert suppressions.is_suppressed("J03", line=2, short_name="UnnecessarySemicolon")
    assert not suppressions.is_suppressed("J01", line=3, short_name="AutoBoxing")
    # A short name only matches when the caller passes it.
    assert not suppressions.is_suppressed("J01", line=2)


def test_noinspection_accepts_rule_ids_and_all() -> None:
    suppressions = parse_suppressions(["// noinspection J02", "foo();", "//noinspection ALL", "bar();"])

    assert suppressions.is_suppressed("J02", line=2)
    assert suppressions.is_suppressed("J01", line=4, short_name="AutoBoxing")
    assert suppressions.is_suppressed("J99", line=4)


def test_disable_file_suppresses_everywhere() -> None:
    suppressions = parse_suppressions(
        [
            "// javagadgets: disable-file=UnqualifiedStaticUsage",
            "class A {}",
        ]
    )

    assert suppressions.is_suppressed("J02", line=2, short_name="UnqualifiedStaticUsage")
    assert suppressions.is_suppressed("J02", line=None, short_name="UnqualifiedStaticUsage")
    assert not suppressions.is_suppressed("J03", line=2, short_name="UnnecessarySemicolon")


def test_disable_file_all_is_wildcard() -> None:
    suppressions = parse_suppressions(["// javagadgets: disable-file=all", "class A {}"])
    assert suppressions.is_suppressed("J01", line=2)
    assert suppressions.is_suppressed("Z99", line=None)


def test_directives_inside_block_comments_are_recognized() -> None:
    suppressions = parse_suppressions(["foo(); /* javagadgets: disable=J02 */"])
    assert suppressions.is_suppressed("J02", line=1)


def test_empty_suppressions_suppress_nothing() -> None:
    assert not EMPTY_SUPPRESSIONS.is_suppressed("J01", line=1, short_name="AutoBoxing")


def test_suppressions_mapping_is_read_only() -> None:
    suppressions = parse_suppressions(["// javagadgets: disable-next-line=J01", "x();"])
    with pytest.raises(TypeError):
        suppressions.disabled_on_line[5] = frozenset({"J01"})  # type: ignore[index]
