"""Tests for fixture spec models."""

from types import MappingProxyType

import pytest

from zae_fixtures import (
    Constant,
    ContinuationError,
    Factory,
    Fixture,
    FixtureContext,
    FixtureLayer,
    GeneratorProvider,
    InvalidFixtureError,
    InvalidFixtureNameError,
    MissingValueError,
    Provider,
)


class TestFixtureConstructors:
    """Tests for the tagged constructors."""

    def test_constant(self) -> None:
        spec = Fixture.constant(5)
        assert isinstance(spec, Constant)
        assert spec.value == 5
        assert spec.has_teardown is False

    def test_factory(self) -> None:
        spec = Fixture.factory(lambda ctx: 1)
        assert isinstance(spec, Factory)
        assert spec.has_teardown is False

    def test_factory_requires_callable(self) -> None:
        with pytest.raises(InvalidFixtureError, match="factory must be callable"):
            Fixture.factory("value")

    def test_provider(self) -> None:
        async def fn(ctx, use):
            await use(1)

        spec = Fixture.provider(fn)
        assert isinstance(spec, Provider)
        assert spec.has_teardown is True

    def test_provider_requires_callable(self) -> None:
        with pytest.raises(InvalidFixtureError, match="provider must be callable"):
            Fixture.provider(42)

    def test_generator(self) -> None:
        async def agen(ctx):
            yield 1

        def gen(ctx):
            yield 1

        assert Fixture.generator(agen).is_async is True
        assert Fixture.generator(gen).is_async is False

    def test_generator_requires_generator_function(self) -> None:
        async def not_a_generator(ctx):
            return 1

        with pytest.raises(InvalidFixtureError, match="generator function"):
            Fixture.generator(not_a_generator)


class TestFactory:
    """Tests for factory fixtures."""

    @pytest.mark.asyncio
    async def test_sync_factory(self) -> None:
        """A plain function's return value is the fixture value."""
        context = FixtureContext({"base": 1})
        spec = Fixture.factory(lambda ctx: ctx.base + 1)

        value, handle = await spec.setup(context)

        assert value == 2
        assert handle is None

    @pytest.mark.asyncio
    async def test_async_factory(self) -> None:
        """An awaitable result is awaited."""

        async def make(ctx):
            return [ctx.base]

        value, _ = await Fixture.factory(make).setup(FixtureContext({"base": "b"}))

        assert value == ["b"]

    @pytest.mark.asyncio
    async def test_factory_error_propagates(self) -> None:
        def broken(ctx):
            raise KeyError("missing")

        with pytest.raises(KeyError, match="missing"):
            await Fixture.factory(broken).setup(FixtureContext())

    @pytest.mark.asyncio
    async def test_teardown_is_noop(self) -> None:
        assert await Fixture.factory(lambda ctx: 1).teardown(None) is None

    def test_callable_layer_value_hint(self) -> None:
        """Rejected raw callables point at Fixture.factory()."""
        with pytest.raises(InvalidFixtureError, match=r"Fixture\.factory\(\)"):
            FixtureLayer.build({"f": lambda ctx: 1})


class TestProvider:
    """Tests for continuation-style providers."""

    @pytest.mark.asyncio
    async def test_setup_then_teardown(self) -> None:
        """Cleanup after the continuation runs only on teardown."""
        steps = []

        async def fn(ctx, use):
            steps.append("acquire")
            await use(ctx["base"] + 1)
            steps.append("release")

        spec = Fixture.provider(fn)
        value, handle = await spec.setup(FixtureContext({"base": 1}))

        assert value == 2
        assert steps == ["acquire"]

        await spec.teardown(handle)
        assert steps == ["acquire", "release"]

    @pytest.mark.asyncio
    async def test_sync_provider(self) -> None:
        """Plain functions may call the continuation without awaiting it."""
        steps = []

        def fn(ctx, use):
            use("value")
            steps.append("returned")

        spec = Fixture.provider(fn)
        value, handle = await spec.setup(FixtureContext())
        await spec.teardown(handle)

        assert value == "value"
        assert steps == ["returned"]

    @pytest.mark.asyncio
    async def test_continuation_without_value(self) -> None:
        """use() with no argument supplies None."""

        async def fn(ctx, use):
            await use()

        spec = Fixture.provider(fn)
        value, handle = await spec.setup(FixtureContext())
        await spec.teardown(handle)

        assert value is None

    @pytest.mark.asyncio
    async def test_error_before_continuation(self) -> None:
        """A failure before use() propagates from setup."""

        async def fn(ctx, use):
            raise LookupError("no such host")

        with pytest.raises(LookupError, match="no such host"):
            await Fixture.provider(fn).setup(FixtureContext())

    @pytest.mark.asyncio
    async def test_never_supplies_value(self) -> None:
        """A provider that settles without use() is a usage error."""

        async def fn(ctx, use):
            pass

        with pytest.raises(MissingValueError, match="provider finished without supplying"):
            await Fixture.provider(fn).setup(FixtureContext())


class TestGeneratorProvider:
    """Tests for generator-style providers."""

    @pytest.mark.asyncio
    async def test_async_generator(self) -> None:
        steps = []

        async def fn(ctx):
            steps.append("acquire")
            yield "conn"
            steps.append("release")

        spec = Fixture.generator(fn)
        value, handle = await spec.setup(FixtureContext())
        assert (value, steps) == ("conn", ["acquire"])

        await spec.teardown(handle)
        assert steps == ["acquire", "release"]

    @pytest.mark.asyncio
    async def test_sync_generator(self) -> None:
        steps = []

        def fn(ctx):
            yield ctx.name
            steps.append("release")

        spec = Fixture.generator(fn)
        value, handle = await spec.setup(FixtureContext({"name": "tmp"}))
        await spec.teardown(handle)

        assert value == "tmp"
        assert steps == ["release"]

    @pytest.mark.asyncio
    async def test_no_yield(self) -> None:
        async def fn(ctx):
            return
            yield  # pragma: no cover

        with pytest.raises(MissingValueError, match="generator"):
            await Fixture.generator(fn).setup(FixtureContext())

    @pytest.mark.asyncio
    async def test_yields_twice(self) -> None:
        closed = []

        async def fn(ctx):
            try:
                yield 1
                yield 2
            finally:
                closed.append(True)

        spec = Fixture.generator(fn)
        _, handle = await spec.setup(FixtureContext())

        with pytest.raises(ContinuationError, match="more than once"):
            await spec.teardown(handle)
        assert closed == [True]

    @pytest.mark.asyncio
    async def test_sync_generator_yields_twice(self) -> None:
        def fn(ctx):
            yield 1
            yield 2

        spec = Fixture.generator(fn)
        _, handle = await spec.setup(FixtureContext())

        with pytest.raises(ContinuationError):
            await spec.teardown(handle)


class TestFixtureLayer:
    """Tests for FixtureLayer.build()."""

    def test_build_coerces_raw_values(self) -> None:
        spec = Fixture.provider(lambda ctx, use: use(1))
        layer = FixtureLayer.build({"a": 1, "b": spec}, title="T")

        assert layer.title == "T"
        assert layer.names == ("a", "b")
        assert layer.fixtures["a"] == Constant(1)
        assert layer.fixtures["b"] is spec
        assert len(layer) == 2

    def test_layer_is_read_only(self) -> None:
        layer = FixtureLayer.build({"a": 1})

        assert isinstance(layer.fixtures, MappingProxyType)
        with pytest.raises(TypeError):
            layer.fixtures["b"] = Constant(2)

    def test_build_copies_input(self) -> None:
        source = {"a": 1}
        layer = FixtureLayer.build(source)
        source["b"] = 2

        assert layer.names == ("a",)

    def test_build_rejects_bad_name(self) -> None:
        with pytest.raises(InvalidFixtureNameError):
            FixtureLayer.build({"class": 1})

    def test_build_rejects_class_reference(self) -> None:
        class Resource:
            pass

        with pytest.raises(InvalidFixtureError, match="Fixture 'resource'"):
            FixtureLayer.build({"resource": Resource})

    def test_build_rejects_non_string_title(self) -> None:
        with pytest.raises(InvalidFixtureError, match="title must be a string"):
            FixtureLayer.build({}, title=3)

    def test_generator_spec_passes_through(self) -> None:
        def fn(ctx):
            yield 1

        layer = FixtureLayer.build({"g": Fixture.generator(fn)})

        assert isinstance(layer.fixtures["g"], GeneratorProvider)
