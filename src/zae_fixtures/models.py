"""Core models for zae-fixtures."""

import asyncio
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .context import FixtureContext
from .exceptions import ContinuationError, InvalidFixtureError, MissingValueError
from .naming import validate_fixture_name


class Fixture:
    """
    Tagged fixture spec.

    Every spec exposes the same two-phase interface: ``setup(context)``
    returns the resolved value and a teardown handle, ``teardown(handle)``
    runs the cleanup. Use the constructors to declare intent:

        Fixture.constant(5)
        Fixture.factory(fn)     # async def fn(ctx): return v
        Fixture.provider(fn)    # async def fn(ctx, use): ...; await use(v); ...
        Fixture.generator(fn)   # async def fn(ctx): ...; yield v; ...
    """

    has_teardown: bool = True

    async def setup(self, context: FixtureContext) -> tuple[Any, Any]:
        raise NotImplementedError

    async def teardown(self, handle: Any) -> None:
        raise NotImplementedError

    @staticmethod
    def constant(value: Any) -> "Constant":
        """Use ``value`` as-is, even when it is callable."""
        return Constant(value)

    @staticmethod
    def factory(fn: Callable[..., Any]) -> "Factory":
        """Wrap ``fn(context)`` returning the value (or an awaitable of it), no cleanup."""
        return Factory(fn)

    @staticmethod
    def provider(fn: Callable[..., Any]) -> "Provider":
        """Wrap a continuation-style provider ``fn(context, use)``."""
        return Provider(fn)

    @staticmethod
    def generator(fn: Callable[..., Any]) -> "GeneratorProvider":
        """Wrap a generator function ``fn(context)`` that yields its value once."""
        return GeneratorProvider(fn)


@dataclass(frozen=True)
class Constant(Fixture):
    """A fixture whose value is known up front."""

    value: Any
    has_teardown = False

    async def setup(self, context: FixtureContext) -> tuple[Any, None]:
        return self.value, None

    async def teardown(self, handle: None) -> None:
        return None


@dataclass(frozen=True)
class Factory(Fixture):
    """
    A fixture computed by ``fn(context)`` with no cleanup.

    ``fn`` may return the value or an awaitable resolving to it. Factories
    set up concurrently with their siblings.
    """

    fn: Callable[..., Any]
    has_teardown = False

    def __post_init__(self) -> None:
        if not callable(self.fn):
            raise InvalidFixtureError(f"factory must be callable, got {type(self.fn).__name__}")

    async def setup(self, context: FixtureContext) -> tuple[Any, None]:
        value = self.fn(context)
        if inspect.isawaitable(value):
            value = await value
        return value, None

    async def teardown(self, handle: None) -> None:
        return None


class Continuation:
    """
    Callback handed to a continuation-style provider.

    Calling it supplies the fixture value and returns an awaitable that
    completes once the engine releases the provider's layer.
    """

    def __init__(self) -> None:
        loop = asyncio.get_running_loop()
        self._supplied: asyncio.Future[Any] = loop.create_future()
        self._released: asyncio.Future[None] = loop.create_future()

    def __call__(self, value: Any = None) -> "asyncio.Future[None]":
        if self._supplied.done():
            raise ContinuationError("continuation invoked more than once")
        self._supplied.set_result(value)
        return self._released

    @property
    def supplied(self) -> bool:
        return self._supplied.done()

    @property
    def value(self) -> Any:
        return self._supplied.result()

    def release(self) -> None:
        if not self._released.done():
            self._released.set_result(None)


@dataclass
class ProviderRun:
    """Teardown handle of a provider that has supplied its value."""

    task: "asyncio.Task[None]"
    use: Continuation


@dataclass(frozen=True)
class Provider(Fixture):
    """
    A fixture computed by ``fn(context, use)``.

    ``fn`` may be a coroutine function or a plain function. Setup completes
    when ``use`` is called; the provider keeps running as a task, suspended
    on the awaitable ``use`` returned, until teardown releases it.
    """

    fn: Callable[..., Any]

    def __post_init__(self) -> None:
        if not callable(self.fn):
            raise InvalidFixtureError(f"provider must be callable, got {type(self.fn).__name__}")

    async def _run(self, context: FixtureContext, use: Continuation) -> None:
        result = self.fn(context, use)
        if inspect.isawaitable(result):
            await result

    async def setup(self, context: FixtureContext) -> tuple[Any, ProviderRun]:
        use = Continuation()
        task = asyncio.ensure_future(self._run(context, use))
        try:
            await asyncio.wait({use._supplied, task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if use.supplied:
            return use.value, ProviderRun(task=task, use=use)

        # Settled first: a failure before use(), or a provider that never called it
        task.result()
        raise MissingValueError("provider")

    async def teardown(self, handle: ProviderRun) -> None:
        handle.use.release()
        await handle.task


@dataclass(frozen=True)
class GeneratorProvider(Fixture):
    """
    A fixture computed by a generator function ``fn(context)``.

    The single yielded value is the fixture value; code after the yield is
    cleanup. Both ``async def`` generators and plain generators are accepted.
    """

    fn: Callable[..., Any]
    is_async: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        if inspect.isasyncgenfunction(self.fn):
            object.__setattr__(self, "is_async", True)
        elif not inspect.isgeneratorfunction(self.fn):
            raise InvalidFixtureError(
                f"generator fixture requires a generator function, got {self.fn!r}"
            )

    async def setup(self, context: FixtureContext) -> tuple[Any, Any]:
        gen = self.fn(context)
        try:
            if self.is_async:
                value = await gen.__anext__()
            else:
                value = next(gen)
        except (StopIteration, StopAsyncIteration):
            raise MissingValueError("generator") from None
        return value, gen

    async def teardown(self, handle: Any) -> None:
        if self.is_async:
            try:
                await handle.__anext__()
            except StopAsyncIteration:
                return
            await handle.aclose()
        else:
            try:
                next(handle)
            except StopIteration:
                return
            handle.close()
        raise ContinuationError("generator yielded more than once")


def as_fixture(name: str, spec: Any) -> Fixture:
    """Coerce a raw layer value into a fixture spec.

    Raw callables are ambiguous (a class is callable too) and are rejected.
    """
    if isinstance(spec, Fixture):
        return spec
    if callable(spec):
        raise InvalidFixtureError(
            "callable values are ambiguous; wrap with Fixture.factory(), "
            "Fixture.provider(), Fixture.generator() or Fixture.constant()",
            name=name,
        )
    return Constant(spec)


@dataclass(frozen=True)
class FixtureLayer:
    """
    One ``extend()`` call's fixtures, applied as a single resolution step.

    Attributes:
        fixtures: Fixture spec by name, in declaration order
        title: Optional title prepended to registered test names
    """

    fixtures: Mapping[str, Fixture]
    title: str = ""

    @classmethod
    def build(cls, fixtures: Any, title: str = "") -> "FixtureLayer":
        """
        Validate a user-supplied mapping and build an immutable layer.

        Raises:
            InvalidFixtureError: If ``fixtures`` is not a mapping or holds
                an ambiguous value
            InvalidFixtureNameError: If a key is not a legal fixture name
        """
        if not isinstance(title, str):
            raise InvalidFixtureError(f"layer title must be a string, got {type(title).__name__}")
        if not isinstance(fixtures, Mapping):
            raise InvalidFixtureError(
                f"fixture layer must be a mapping, got {type(fixtures).__name__}"
            )
        specs = {
            validate_fixture_name(name): as_fixture(name, spec) for name, spec in fixtures.items()
        }
        return cls(fixtures=MappingProxyType(specs), title=title)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.fixtures)

    def __len__(self) -> int:
        return len(self.fixtures)
