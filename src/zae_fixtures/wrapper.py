"""Fixture wrappers around a test registration function."""

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any, Optional

from .config import WrapperOptions
from .exceptions import InvalidFixtureError
from .models import FixtureLayer
from .naming import compose_title
from .session import ResolutionSession

logger = logging.getLogger(__name__)


class FixtureWrapper:
    """
    Test registration surface that layers fixtures onto a base function.

    Calling the wrapper registers a test with the base registration
    function; the registered body resolves the wrapper's fixture layers,
    runs the test body with the merged context and tears everything down.

    Wrappers are immutable: ``extend()`` returns a new wrapper with one more
    layer, so a wrapper can be extended many times without the results
    seeing each other's fixtures.

    Public attributes of the base function that the wrapper does not define
    itself (``skip``, ``only``, ...) are forwarded unchanged.

    Example:
        test = wrap(registry).extend("db", {"url": "sqlite://"})
        test = test.extend({"conn": Fixture.generator(open_conn)})

        @test("reads rows")
        async def _(ctx):
            assert await ctx.conn.fetch("select 1")
    """

    def __init__(
        self,
        base: Callable[..., Any],
        title: str = "",
        *,
        layers: tuple[FixtureLayer, ...] = (),
        parent: Optional["FixtureWrapper"] = None,
        options: WrapperOptions | None = None,
    ) -> None:
        if not callable(base):
            raise InvalidFixtureError(
                f"registration function must be callable, got {type(base).__name__}"
            )
        if not isinstance(title, str):
            raise InvalidFixtureError(f"title must be a string, got {type(title).__name__}")
        self._base = base
        self._title = title
        self._layers = layers
        self._parent = parent
        self.options = options if options is not None else WrapperOptions()

    # -------------------------------------------------------------------------
    # Chain inspection
    # -------------------------------------------------------------------------

    @property
    def base(self) -> Callable[..., Any]:
        """The registration function tests are forwarded to."""
        return self._base

    @property
    def parent(self) -> Optional["FixtureWrapper"]:
        """The wrapper this one was extended from (None for the root)."""
        return self._parent

    @property
    def layers(self) -> tuple[FixtureLayer, ...]:
        return self._layers

    @property
    def titles(self) -> tuple[str, ...]:
        """Non-empty titles along the chain, outermost first."""
        titles = (self._title, *(layer.title for layer in self._layers))
        return tuple(t for t in titles if t)

    def full_name(self, name: str) -> str:
        """Name a test registered through this wrapper is registered under."""
        return compose_title(self.titles, name, self.options.separator)

    # -------------------------------------------------------------------------
    # Extension
    # -------------------------------------------------------------------------

    def extend(
        self,
        title_or_fixtures: str | Mapping[str, Any],
        fixtures: Mapping[str, Any] | None = None,
    ) -> "FixtureWrapper":
        """
        Return a new wrapper with one more fixture layer.

        Both ``extend(fixtures)`` and ``extend(title, fixtures)`` are
        accepted. The layer is validated immediately.

        Raises:
            InvalidFixtureError: If the layer is missing or malformed
            InvalidFixtureNameError: If a fixture name is illegal
        """
        if isinstance(title_or_fixtures, str):
            if fixtures is None:
                raise InvalidFixtureError(
                    f"extend({title_or_fixtures!r}) is missing its fixture layer"
                )
            layer = FixtureLayer.build(fixtures, title=title_or_fixtures)
        else:
            if fixtures is not None:
                raise InvalidFixtureError(
                    "extend() takes a title and a layer, or a layer alone; got two layers"
                )
            layer = FixtureLayer.build(title_or_fixtures)

        return self._derive(layers=(*self._layers, layer), parent=self)

    def with_options(self, **changes: Any) -> "FixtureWrapper":
        """Return a wrapper with the same layers and updated options."""
        return self._derive(
            layers=self._layers,
            parent=self._parent,
            options=self.options.replace(**changes),
        )

    def _derive(
        self,
        *,
        layers: tuple[FixtureLayer, ...],
        parent: Optional["FixtureWrapper"],
        options: WrapperOptions | None = None,
    ) -> "FixtureWrapper":
        return type(self)(
            self._base,
            self._title,
            layers=layers,
            parent=parent,
            options=options or self.options,
        )

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def __call__(
        self,
        name: str,
        body: Callable[..., Any] | None = None,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """
        Register ``body`` under this wrapper's composed title.

        ``args`` and ``kwargs`` are forwarded to the base registration
        function. When called without a body, returns a decorator.

        Returns:
            Whatever the base registration function returns
        """
        if body is None:

            def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
                self(name, fn, *args, **kwargs)
                return fn

            return decorator

        if not callable(body):
            raise InvalidFixtureError(f"test body must be callable, got {type(body).__name__}")

        full_name = self.full_name(name)
        logger.debug("Registering %r with %d fixture layer(s)", full_name, len(self._layers))
        return self._base(full_name, self._wrap_body(full_name, body), *args, **kwargs)

    def _wrap_body(self, full_name: str, body: Callable[..., Any]) -> Callable[..., Any]:
        layers, options = self._layers, self.options

        async def run_test(*args: Any, **kwargs: Any) -> Any:
            session = ResolutionSession(layers, options)
            return await session.run(body, args, kwargs)

        return _describe(run_test, full_name, body)

    # -------------------------------------------------------------------------
    # Auxiliary members of the base function
    # -------------------------------------------------------------------------

    def members(self) -> list[str]:
        """Public members of the base function reachable through the wrapper."""
        return sorted(
            name
            for name in dir(self._base)
            if not name.startswith("_")
            and not hasattr(type(self), name)
            and name not in vars(self)
        )

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._base, name)

    def __dir__(self) -> list[str]:
        return sorted({*super().__dir__(), *self.members()})

    def __repr__(self) -> str:
        chain = " > ".join(self.titles) or "untitled"
        return f"{type(self).__name__}({chain}, layers={len(self._layers)})"


class SyncFixtureWrapper(FixtureWrapper):
    """
    Fixture wrapper for registration functions that expect plain callables.

    Each registered body runs its fixtures and test body in a fresh event
    loop, so it must not be invoked from inside a running loop.
    """

    def _wrap_body(self, full_name: str, body: Callable[..., Any]) -> Callable[..., Any]:
        layers, options = self._layers, self.options

        def run_test(*args: Any, **kwargs: Any) -> Any:
            session = ResolutionSession(layers, options)
            return asyncio.run(session.run(body, args, kwargs))

        return _describe(run_test, full_name, body)


def _describe(fn: Callable[..., Any], full_name: str, body: Callable[..., Any]) -> Callable[..., Any]:
    fn.__name__ = getattr(body, "__name__", fn.__name__)
    fn.__qualname__ = full_name
    fn.__doc__ = getattr(body, "__doc__", None)
    return fn


def wrap(
    base: Callable[..., Any],
    title: str = "",
    *,
    options: WrapperOptions | None = None,
) -> FixtureWrapper:
    """
    Wrap a registration function with zero fixture layers.

    Args:
        base: Callable ``(name, body, ...)`` that registers a test
        title: Optional title prepended to every registered test name
        options: Wrapper options (defaults read from the environment)
    """
    return FixtureWrapper(base, title, options=options or WrapperOptions.from_environment())


def wrap_sync(
    base: Callable[..., Any],
    title: str = "",
    *,
    options: WrapperOptions | None = None,
) -> SyncFixtureWrapper:
    """Like ``wrap()``, for registration functions that call bodies synchronously."""
    return SyncFixtureWrapper(base, title, options=options or WrapperOptions.from_environment())
