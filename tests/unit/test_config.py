"""Tests for wrapper options."""

import pytest

from zae_fixtures import TeardownErrorMode, WrapperOptions


class TestWrapperOptions:
    """Tests for WrapperOptions."""

    def test_defaults(self) -> None:
        options = WrapperOptions()

        assert options.separator == " - "
        assert options.teardown_errors is TeardownErrorMode.RAISE

    def test_mode_from_string(self) -> None:
        options = WrapperOptions(teardown_errors="log")

        assert options.teardown_errors is TeardownErrorMode.LOG

    def test_replace(self) -> None:
        options = WrapperOptions()
        changed = options.replace(separator="/")

        assert changed.separator == "/"
        assert options.separator == " - "

    def test_from_environment_defaults(self) -> None:
        assert WrapperOptions.from_environment() == WrapperOptions()

    def test_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("ZAE_FIXTURES_SEPARATOR", " | ")
        monkeypatch.setenv("ZAE_FIXTURES_TEARDOWN_ERRORS", " LOG ")

        options = WrapperOptions.from_environment()

        assert options.separator == " | "
        assert options.teardown_errors is TeardownErrorMode.LOG

    def test_from_environment_invalid_mode(self, monkeypatch) -> None:
        monkeypatch.setenv("ZAE_FIXTURES_TEARDOWN_ERRORS", "ignore")

        with pytest.raises(ValueError, match="ZAE_FIXTURES_TEARDOWN_ERRORS must be one of"):
            WrapperOptions.from_environment()
