"""Per-invocation fixture resolution and teardown."""

import asyncio
import inspect
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .config import TeardownErrorMode, WrapperOptions
from .context import FixtureContext
from .exceptions import FixtureSetupError, TeardownError, TeardownFailure
from .models import Constant, Fixture, FixtureLayer

logger = logging.getLogger(__name__)


@dataclass
class LayerScope:
    """Tracks the resolved fixtures of one layer that still need teardown."""

    index: int
    layer: FixtureLayer
    context: FixtureContext
    handles: list[tuple[str, Fixture, Any]] = field(default_factory=list)


@dataclass
class ResolutionSession:
    """
    Resolves a wrapper's layers for a single test invocation.

    Layers resolve strictly in chain order; fixtures inside a layer set up
    concurrently and the layer completes only once all of them settled.
    Teardown unwinds the layers in reverse, releasing each layer's
    providers together and waiting for all of them before moving on.
    """

    layers: Sequence[FixtureLayer]
    options: WrapperOptions = field(default_factory=WrapperOptions)
    context: FixtureContext = field(default_factory=FixtureContext)
    _scopes: list[LayerScope] = field(init=False, default_factory=list)

    @property
    def pending_layers(self) -> int:
        """Number of layers on the teardown stack."""
        return len(self._scopes)

    async def resolve(self) -> FixtureContext:
        """
        Resolve every layer and return the merged context.

        Raises:
            FixtureSetupError: If any fixture of a layer failed. Fixtures
                resolved before the failure stay on the teardown stack.
        """
        for index, layer in enumerate(self.layers):
            await self._resolve_layer(index, layer)
        return self.context

    async def _resolve_layer(self, index: int, layer: FixtureLayer) -> None:
        scope = LayerScope(index=index, layer=layer, context=self.context._derive())
        self._scopes.append(scope)

        providers: list[tuple[str, Fixture]] = []
        for name, spec in layer.fixtures.items():
            if isinstance(spec, Constant):
                scope.context._assign(name, spec.value)
            else:
                providers.append((name, spec))

        errors: dict[str, BaseException] = {}
        await asyncio.gather(*(self._setup(scope, name, spec, errors) for name, spec in providers))

        self.context = scope.context
        logger.debug(
            "Resolved layer %d (%s): %d fixture(s), %d failed",
            index,
            layer.title or "untitled",
            len(layer),
            len(errors),
        )

        if errors:
            ordered = {name: errors[name] for name in layer.fixtures if name in errors}
            raise FixtureSetupError(
                ordered, layer_index=index, layer_title=layer.title
            ) from next(iter(ordered.values()))

    async def _setup(
        self,
        scope: LayerScope,
        name: str,
        spec: Fixture,
        errors: dict[str, BaseException],
    ) -> None:
        try:
            value, handle = await spec.setup(scope.context)
        except Exception as exc:
            errors[name] = exc
            return
        scope.context._assign(name, value)
        if spec.has_teardown:
            scope.handles.append((name, spec, handle))

    async def release(self) -> list[TeardownFailure]:
        """
        Unwind the teardown stack, most recent layer first.

        Returns:
            Every cleanup that raised, in unwind order
        """
        failures: list[TeardownFailure] = []
        while self._scopes:
            scope = self._scopes.pop()
            if not scope.handles:
                continue
            results = await asyncio.gather(
                *(spec.teardown(handle) for _, spec, handle in scope.handles),
                return_exceptions=True,
            )
            for (name, _, _), result in zip(scope.handles, results):
                if isinstance(result, BaseException):
                    failures.append(TeardownFailure(scope.index, name, result))
            logger.debug("Released layer %d: %d fixture(s)", scope.index, len(scope.handles))
        return failures

    async def run(
        self,
        body: Callable[..., Any],
        args: Sequence[Any] = (),
        kwargs: dict[str, Any] | None = None,
    ) -> Any:
        """
        Resolve fixtures, run ``body(context, *args, **kwargs)``, tear down.

        Teardown always runs. A failure of setup or of the body is re-raised
        unchanged once teardown finished; teardown failures are then logged
        and attached to it as notes. If the body passed, teardown failures
        raise TeardownError unless the options say to only log them.
        """
        try:
            context = await self.resolve()
            result = body(context, *args, **(kwargs or {}))
            if inspect.isawaitable(result):
                result = await result
        except BaseException as exc:
            failures = await self.release()
            for failure in failures:
                logger.error("Fixture teardown failed: %s", failure.describe(), exc_info=failure.error)
                exc.add_note(f"Teardown also failed: {failure.describe()}")
            raise

        failures = await self.release()
        if failures:
            if self.options.teardown_errors is TeardownErrorMode.RAISE:
                raise TeardownError(failures) from failures[0].error
            for failure in failures:
                logger.error("Fixture teardown failed: %s", failure.describe(), exc_info=failure.error)
        return result
