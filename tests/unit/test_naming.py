"""Tests for fixture naming utilities."""

import pytest

from zae_fixtures.exceptions import InvalidFixtureNameError
from zae_fixtures.naming import (
    DEFAULT_SEPARATOR,
    RESERVED_NAMES,
    compose_title,
    validate_fixture_name,
)


class TestValidateFixtureName:
    """Tests for validate_fixture_name()."""

    @pytest.mark.parametrize("name", ["db", "db_conn", "client2", "Ä"])
    def test_valid_names(self, name: str) -> None:
        assert validate_fixture_name(name) == name

    @pytest.mark.parametrize(
        ("name", "reason"),
        [
            ("", "cannot be empty"),
            ("db-conn", "Contains hyphen"),
            ("db conn", "Contains spaces"),
            ("_private", "Leading underscores"),
            ("2fast", "valid Python identifier"),
            ("db.conn", "valid Python identifier"),
            ("lambda", "keywords"),
        ],
    )
    def test_invalid_names(self, name: str, reason: str) -> None:
        with pytest.raises(InvalidFixtureNameError, match=reason) as exc_info:
            validate_fixture_name(name)
        assert exc_info.value.name == name

    @pytest.mark.parametrize("name", ["get", "items", "keys", "values"])
    def test_context_members_rejected(self, name: str) -> None:
        """Names that ctx.<name> would resolve to a context method are rejected."""
        with pytest.raises(InvalidFixtureNameError, match="Shadows the context method"):
            validate_fixture_name(name)

    def test_reserved_names_cover_context_members(self) -> None:
        assert {"get", "items", "keys", "values"} <= RESERVED_NAMES

    def test_non_string(self) -> None:
        with pytest.raises(InvalidFixtureNameError, match="Must be a string, got int"):
            validate_fixture_name(1)


class TestComposeTitle:
    """Tests for compose_title()."""

    def test_default_separator(self) -> None:
        assert DEFAULT_SEPARATOR == " - "
        assert compose_title(["A", "B"], "case") == "A - B - case"

    def test_empty_titles_dropped(self) -> None:
        assert compose_title(["", "A", ""], "case") == "A - case"

    def test_no_titles(self) -> None:
        assert compose_title([], "case") == "case"

    def test_custom_separator(self) -> None:
        assert compose_title(["A"], "case", separator=" > ") == "A > case"
