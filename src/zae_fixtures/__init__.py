"""
zae-fixtures: Layered, async fixture composition for test registration functions.

This library wraps any ``(name, body)`` test registration function with:
- Reusable fixture layers added by ``extend()``
- Constant, continuation-style and generator-style fixtures
- Concurrent setup within a layer, strict ordering across layers
- Teardown in reverse layer order, even when the test body fails
- Forwarding of the base function's auxiliary members (``skip``, ...)

Example:
    from zae_fixtures import Fixture, TestRegistry, wrap

    async def database(ctx, use):
        db = await connect(ctx.url)
        await use(db)
        await db.close()

    registry = TestRegistry()
    test = wrap(registry).extend("db", {
        "url": "sqlite://",
        "db": Fixture.provider(database),
    })

    @test("select one")
    async def _(ctx):
        assert await ctx.db.fetchval("select 1") == 1

    # Registered as "db - select one"
    registry.export(globals())
"""

from importlib.metadata import PackageNotFoundError, version

from .config import TeardownErrorMode, WrapperOptions
from .context import FixtureContext
from .exceptions import (
    ContinuationError,
    DuplicateTestError,
    FixtureSetupError,
    InvalidFixtureError,
    InvalidFixtureNameError,
    MissingValueError,
    TeardownError,
    TeardownFailure,
    UsageError,
    ZAEFixturesError,
)
from .models import (
    Constant,
    Continuation,
    Factory,
    Fixture,
    FixtureLayer,
    GeneratorProvider,
    Provider,
)
from .registry import RegisteredTest, TestRegistry
from .session import ResolutionSession
from .wrapper import FixtureWrapper, SyncFixtureWrapper, wrap, wrap_sync

try:
    __version__ = version("zae-fixtures")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

__all__ = [
    # Version
    "__version__",
    # Entry points
    "wrap",
    "wrap_sync",
    # Main classes
    "FixtureWrapper",
    "SyncFixtureWrapper",
    "ResolutionSession",
    "FixtureContext",
    "TestRegistry",
    "RegisteredTest",
    # Models
    "Fixture",
    "Constant",
    "Factory",
    "Provider",
    "GeneratorProvider",
    "Continuation",
    "FixtureLayer",
    # Config
    "WrapperOptions",
    "TeardownErrorMode",
    # Exceptions - Base
    "ZAEFixturesError",
    # Exceptions - Usage
    "UsageError",
    "InvalidFixtureNameError",
    "InvalidFixtureError",
    "ContinuationError",
    "MissingValueError",
    "DuplicateTestError",
    # Exceptions - Lifecycle
    "FixtureSetupError",
    "TeardownError",
    "TeardownFailure",
]
