"""Exceptions for zae-fixtures."""

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------


class ZAEFixturesError(Exception):
    """
    Base exception for all zae-fixtures errors.

    All exceptions raised by this library inherit from this class,
    allowing callers to catch all library-specific errors with a single
    except clause.
    """

    pass


# ---------------------------------------------------------------------------
# Category Exceptions
# ---------------------------------------------------------------------------


class UsageError(ZAEFixturesError):
    """
    Base exception for caller mistakes.

    This includes malformed fixture layers passed to ``extend()`` and
    providers that break the continuation contract.
    """

    pass


# ---------------------------------------------------------------------------
# Usage Exceptions
# ---------------------------------------------------------------------------


class InvalidFixtureNameError(UsageError):
    """Raised when a fixture name is not a legal identifier."""

    def __init__(self, name: object, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid fixture name {name!r}: {reason}")


class InvalidFixtureError(UsageError):
    """
    Raised when a fixture layer or fixture spec is malformed.

    Attributes:
        name: Fixture the problem was found on (None for layer-level errors)
        reason: Human readable description
    """

    def __init__(self, reason: str, name: str | None = None) -> None:
        self.name = name
        self.reason = reason
        if name is None:
            super().__init__(reason)
        else:
            super().__init__(f"Fixture '{name}': {reason}")


class ContinuationError(UsageError):
    """Raised when a provider misuses its continuation."""

    pass


class MissingValueError(ContinuationError):
    """Raised when a provider settles without ever supplying a value."""

    def __init__(self, kind: str = "provider") -> None:
        self.kind = kind
        super().__init__(f"{kind} finished without supplying a value")


class DuplicateTestError(UsageError):
    """Raised when a registry already holds a test with the same name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Test already registered: {name}")


# ---------------------------------------------------------------------------
# Lifecycle Exceptions
# ---------------------------------------------------------------------------


class FixtureSetupError(ZAEFixturesError):
    """
    Raised when one or more fixtures of a layer fail to set up.

    Every sibling in the layer is allowed to settle before this is raised,
    so all failures of the layer are reported together.

    Attributes:
        errors: Failure per fixture name, in layer order
        layer_index: Position of the layer in the wrapper chain
        layer_title: Title the layer was extended with ("" if none)
    """

    def __init__(
        self,
        errors: dict[str, BaseException],
        *,
        layer_index: int,
        layer_title: str = "",
    ) -> None:
        if not errors:
            raise ValueError("FixtureSetupError requires at least one error")
        self.errors = errors
        self.layer_index = layer_index
        self.layer_title = layer_title
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        layer = f"layer {self.layer_index}"
        if self.layer_title:
            layer += f" ({self.layer_title})"
        failed = ", ".join(f"{name}: {error!r}" for name, error in self.errors.items())
        return f"Fixture setup failed in {layer}: [{failed}]"


@dataclass(frozen=True)
class TeardownFailure:
    """A single cleanup that raised."""

    layer_index: int
    name: str
    error: BaseException

    def describe(self) -> str:
        return f"layer {self.layer_index} fixture '{self.name}': {self.error!r}"


class TeardownError(ZAEFixturesError):
    """
    Raised when fixture cleanup fails after a successful test body.

    Attributes:
        failures: Every cleanup that raised, in unwind order
    """

    def __init__(self, failures: list[TeardownFailure]) -> None:
        if not failures:
            raise ValueError("TeardownError requires at least one failure")
        self.failures = failures
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        details = "; ".join(f.describe() for f in self.failures)
        return f"{len(self.failures)} fixture teardown(s) failed: {details}"
