from __future__ import annotations

import runpy
import sys

import pytest

import javagadgets.__main__ as main_mod
import javagadgets.cli as cli_mod


def test_main_calls_cli_app(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, object]] = []

    def fake_app(**kwargs: object) -> None:
        calls.append(kwargs)

    monkeypatch.setattr(main_mod, "app", fake_app)
    main_mod.main()
    assert calls == [{"prog_name": "javagadgets"}]


def test_module_main_guard_invokes_main(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, object]] = []

    def fake_app(**kwargs: object) -> None:
        calls.append(kwargs)

    monkeypatch.setattr(cli_mod, "app", fake_app)
    monkeypatch.delitem(sys.modules, "javagadgets.__main__", raising=False)
    runpy.run_module("javagadgets.__main__", run_name="__main__")
    assert len(calls) == 1
