"""Merged fixture context."""

from collections.abc import Iterator, Mapping
from typing import Any


class FixtureContext(Mapping[str, Any]):
    """
    Read-only view of the fixture values resolved so far.

    Values are reachable by key (``ctx["db"]``) and by attribute
    (``ctx.db``). Only the resolution engine assigns values; fixtures and
    test bodies cannot mutate a context.

    Each layer resolves against its own copy, so a later layer shadowing a
    name never changes what an earlier layer's providers see.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        object.__setattr__(self, "_values", dict(values or {}))

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(f"No fixture named {name!r}") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("FixtureContext is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("FixtureContext is read-only")

    def __repr__(self) -> str:
        return f"FixtureContext({self._values!r})"

    def _derive(self) -> "FixtureContext":
        """Copy for the next layer."""
        return FixtureContext(self._values)

    def _assign(self, name: str, value: Any) -> None:
        self._values[name] = value
