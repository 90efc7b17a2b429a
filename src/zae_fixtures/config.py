"""Configuration for fixture wrappers."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from .naming import DEFAULT_SEPARATOR, SEPARATOR_ENV_VAR

TEARDOWN_ERRORS_ENV_VAR = "ZAE_FIXTURES_TEARDOWN_ERRORS"


class TeardownErrorMode(Enum):
    """Behavior when fixture cleanup fails after a passing test body."""

    RAISE = "raise"  # Fail the invocation with TeardownError
    LOG = "log"  # Log at error level, keep the body's result


@dataclass(frozen=True)
class WrapperOptions:
    """
    Options shared by a wrapper and every wrapper extended from it.

    Attributes:
        separator: Placed between chain titles and the test name
        teardown_errors: What to do with cleanup failures of a passing test
    """

    separator: str = DEFAULT_SEPARATOR
    teardown_errors: TeardownErrorMode = TeardownErrorMode.RAISE

    def __post_init__(self) -> None:
        if not isinstance(self.teardown_errors, TeardownErrorMode):
            object.__setattr__(self, "teardown_errors", TeardownErrorMode(self.teardown_errors))

    def replace(self, **changes: Any) -> WrapperOptions:
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)

    @classmethod
    def from_environment(cls) -> WrapperOptions:
        """Create WrapperOptions from environment variables."""
        mode = os.environ.get(TEARDOWN_ERRORS_ENV_VAR, TeardownErrorMode.RAISE.value)
        try:
            teardown_errors = TeardownErrorMode(mode.strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in TeardownErrorMode)
            raise ValueError(
                f"{TEARDOWN_ERRORS_ENV_VAR} must be one of [{choices}], got {mode!r}"
            ) from None
        return cls(
            separator=os.environ.get(SEPARATOR_ENV_VAR, DEFAULT_SEPARATOR),
            teardown_errors=teardown_errors,
        )
