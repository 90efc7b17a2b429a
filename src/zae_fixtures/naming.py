"""Fixture naming utilities.

This module provides centralized validation for fixture names and the
composition of registered test titles. Fixture names must be usable both as
mapping keys and as attributes on the merged context:
- Valid Python identifiers
- Not a reserved keyword
- Must not start with an underscore (reserved for context internals)
- Must not shadow a member of the merged context (``get``, ``items``, ...)
"""

import keyword
from collections.abc import Iterable

from .context import FixtureContext
from .exceptions import InvalidFixtureNameError

DEFAULT_SEPARATOR = " - "
"""Separator placed between chain titles and the test name."""

SEPARATOR_ENV_VAR = "ZAE_FIXTURES_SEPARATOR"
"""Environment variable for overriding the title separator."""

RESERVED_NAMES = frozenset(name for name in dir(FixtureContext) if not name.startswith("_"))
"""Context members that attribute access would return instead of a fixture."""


def validate_fixture_name(name: object) -> str:
    """
    Validate a fixture name.

    Args:
        name: The user-provided key from a fixture layer

    Returns:
        The name, unchanged

    Raises:
        InvalidFixtureNameError: If the name cannot be used as a fixture name
    """
    if not isinstance(name, str):
        raise InvalidFixtureNameError(name, f"Must be a string, got {type(name).__name__}")
    if not name:
        raise InvalidFixtureNameError(name, "Name cannot be empty")

    # Check for common mistakes with helpful messages
    if "-" in name:
        raise InvalidFixtureNameError(
            name,
            "Contains hyphen. Use underscores instead (e.g., 'db_conn' not 'db-conn')",
        )
    if " " in name:
        raise InvalidFixtureNameError(name, "Contains spaces.")
    if name.startswith("_"):
        raise InvalidFixtureNameError(name, "Leading underscores are reserved.")

    if not name.isidentifier():
        raise InvalidFixtureNameError(name, "Must be a valid Python identifier.")
    if keyword.iskeyword(name):
        raise InvalidFixtureNameError(name, "Python keywords cannot be fixture names.")
    if name in RESERVED_NAMES:
        raise InvalidFixtureNameError(
            name,
            f"Shadows the context method '{name}'; ctx.{name} would not return the fixture.",
        )
    return name


def compose_title(titles: Iterable[str], name: str, separator: str = DEFAULT_SEPARATOR) -> str:
    """Join non-empty chain titles and the test name, outermost first.

    >>> compose_title(["A", "", "B"], "case")
    'A - B - case'
    """
    return separator.join(part for part in (*titles, name) if part)
