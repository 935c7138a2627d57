"""Tests for the external tool checker."""

from __future__ import annotations

import logging

import pytest

from draftdesk.services import dependencies
from draftdesk.services.dependencies import (
    DEFAULT_REQUIREMENTS,
    DependencyChecker,
    any_resolver,
    configured_requirements,
    executable_resolver,
    format_missing,
    module_resolver,
    requirements_from_config,
)


def _resolver(installed: set[str]):
    return lambda name: name in installed


def test_or_group_reported_as_single_token() -> None:
    checker = DependencyChecker(_resolver({"A", "D"}))

    assert checker.find_missing(["A", {"B", "C"}, "D"]) == ["(B or C)"]


def test_all_missing_keeps_input_order() -> None:
    checker = DependencyChecker(_resolver(set()))

    assert checker.find_missing(["A", "B"]) == ["A", "B"]


def test_sequence_group_keeps_member_order() -> None:
    checker = DependencyChecker(_resolver(set()))

    assert checker.find_missing([("xelatex", "pdflatex")]) == ["(xelatex or pdflatex)"]


def test_group_satisfied_by_any_member() -> None:
    checker = DependencyChecker(_resolver({"hunspell"}))

    assert checker.is_satisfied(("aspell", "hunspell")) is True
    assert checker.find_missing(["pandoc", ("aspell", "hunspell")]) == ["pandoc"]


def test_nothing_missing() -> None:
    checker = DependencyChecker(_resolver({"pandoc"}))

    assert checker.find_missing(["pandoc"]) == []
    assert checker.find_missing([]) == []


def test_empty_group_is_rejected() -> None:
    checker = DependencyChecker(_resolver(set()))

    with pytest.raises(ValueError):
        checker.find_missing([()])


def test_missing_tools_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    checker = DependencyChecker(_resolver(set()))

    with caplog.at_level(logging.INFO, logger="draftdesk.services.dependencies"):
        checker.find_missing(["pandoc"])

    assert "Missing dependencies: pandoc" in caplog.text


def test_format_missing() -> None:
    assert format_missing([]) == "All dependencies are installed."
    assert format_missing(["pandoc", "(aspell or hunspell)"]) == "Missing dependencies: pandoc, (aspell or hunspell)"


def test_requirements_from_config_skips_invalid_entries() -> None:
    entries = ["pandoc", ["aspell", " hunspell "], "", [], 42]

    assert requirements_from_config(entries) == ["pandoc", ("aspell", "hunspell")]


def test_bare_string_setting_is_one_requirement() -> None:
    checker = DependencyChecker(_resolver(set()))

    assert requirements_from_config("pandoc") == ["pandoc"]
    assert checker.find_missing(configured_requirements("pandoc")) == ["pandoc"]


def test_configured_requirements_fall_back_to_defaults() -> None:
    assert configured_requirements([]) == list(DEFAULT_REQUIREMENTS)
    assert configured_requirements(None) == list(DEFAULT_REQUIREMENTS)
    assert configured_requirements(["", 42]) == list(DEFAULT_REQUIREMENTS)
    assert configured_requirements([["aspell", "hunspell"]]) == [("aspell", "hunspell")]


def test_default_requirements_cover_export_and_spelling() -> None:
    assert DEFAULT_REQUIREMENTS[0] == "pandoc"
    assert ("aspell", "hunspell") in DEFAULT_REQUIREMENTS


def test_builtin_resolvers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        dependencies.shutil, "which", lambda name: f"/usr/bin/{name}" if name == "pandoc" else None
    )

    assert executable_resolver("pandoc") is True
    assert executable_resolver("nope") is False
    assert module_resolver("json") is True
    assert module_resolver("draftdesk_no_such_module") is False
    assert any_resolver(executable_resolver, module_resolver)("json") is True
