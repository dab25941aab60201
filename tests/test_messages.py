from __future__ import annotations

import logging

import pytest

from javagadgets import messages


def test_render_substitutes_ref() -> None:
    assert messages.render("auto.boxing.problem.descriptor", ref="42") == "Auto-boxing `42`"
    assert messages.render("unqualified.static.usage.problem.descriptor", ref="foo") == (
        "Unqualified static method call `foo()`"
    )


def test_render_without_ref_leaves_template_text() -> None:
    assert messages.render("unnecessary.semicolon.remove.quickfix") == "Remove unnecessary semicolon"


def test_render_shortens_long_and_multiline_refs() -> None:
    long_ref = "x" * 200
    rendered = messages.render("auto.boxing.problem.descriptor", ref=long_ref)
    assert rendered.endswith("...`")
    assert len(rendered) < 100

    multiline = messages.render("auto.boxing.problem.descriptor", ref="a +\n    b")
    assert multiline == "Auto-boxing `a +`"


def test_render_unknown_key_logs_and_returns_key(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="javagadgets.messages"):
        assert messages.render("no.such.key") == "no.such.key"
    assert "missing message key: no.such.key" in caplog.text


def test_render_uses_a_custom_bundle() -> None:
    bundle = {"auto.boxing.problem.descriptor": "Boxing #ref!"}
    assert messages.render("auto.boxing.problem.descriptor", ref="1", bundle=bundle) == "Boxing 1!"
