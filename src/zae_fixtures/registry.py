"""In-process test registration function.

``TestRegistry`` is a minimal registration collaborator: it records tests
registered through a wrapper so they can be run directly or exported as
pytest-collectable functions into a test module:

    registry = TestRegistry()
    test = wrap(registry).extend("api", {"client": Fixture.generator(client)})

    @test("lists users")
    async def _(ctx):
        assert await ctx.client.get("/users")

    registry.export(globals())
"""

import asyncio
import inspect
import logging
import re
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from typing import Any

from .exceptions import DuplicateTestError

logger = logging.getLogger(__name__)

_SLUG_PATTERN = re.compile(r"[^0-9A-Za-z]+")


@dataclass
class RegisteredTest:
    """A test held by a registry."""

    name: str
    body: Callable[..., Any]
    skip: bool = False
    only: bool = False

    @property
    def slug(self) -> str:
        """Identifier-safe form of the name."""
        return _SLUG_PATTERN.sub("_", self.name).strip("_").lower() or "unnamed"

    async def run(self, *args: Any, **kwargs: Any) -> Any:
        result = self.body(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    def run_sync(self, *args: Any, **kwargs: Any) -> Any:
        result = self.body(*args, **kwargs)
        if inspect.isawaitable(result):

            async def _await() -> Any:
                return await result

            result = asyncio.run(_await())
        return result


class TestRegistry:
    """Registration function that records tests in registration order."""

    __test__ = False  # not a pytest test class

    def __init__(self) -> None:
        self._tests: dict[str, RegisteredTest] = {}

    def __call__(self, name: str, body: Callable[..., Any]) -> RegisteredTest:
        return self._register(RegisteredTest(name=name, body=body))

    def skip(self, name: str, body: Callable[..., Any]) -> RegisteredTest:
        """Register a test that is never selected."""
        return self._register(RegisteredTest(name=name, body=body, skip=True))

    def only(self, name: str, body: Callable[..., Any]) -> RegisteredTest:
        """Register a test and restrict selection to ``only`` tests."""
        return self._register(RegisteredTest(name=name, body=body, only=True))

    def _register(self, test: RegisteredTest) -> RegisteredTest:
        if test.name in self._tests:
            raise DuplicateTestError(test.name)
        self._tests[test.name] = test
        logger.debug("Registered test %r", test.name)
        return test

    @property
    def tests(self) -> list[RegisteredTest]:
        return list(self._tests.values())

    @property
    def names(self) -> list[str]:
        return list(self._tests)

    def __len__(self) -> int:
        return len(self._tests)

    def __getitem__(self, name: str) -> RegisteredTest:
        return self._tests[name]

    def selected(self) -> list[RegisteredTest]:
        """Tests that would run: ``only`` tests if any exist, never skipped ones."""
        tests = [t for t in self._tests.values() if not t.skip]
        if any(t.only for t in tests):
            tests = [t for t in tests if t.only]
        return tests

    async def run(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Run the registered body of ``name`` on the current event loop."""
        return await self._tests[name].run(*args, **kwargs)

    def run_sync(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Run the registered body of ``name``, starting a loop if needed."""
        return self._tests[name].run_sync(*args, **kwargs)

    def export(
        self,
        namespace: MutableMapping[str, Any],
        prefix: str = "test_",
    ) -> list[str]:
        """
        Write selected tests into ``namespace`` as synchronous test functions.

        Pass a test module's ``globals()`` to have pytest collect them.

        Returns:
            The names written, in registration order

        Raises:
            DuplicateTestError: If two tests slug to the same function name
                or a name is already taken in the namespace
        """
        exported: list[str] = []
        for test in self.selected():
            func_name = f"{prefix}{test.slug}"
            if func_name in namespace:
                raise DuplicateTestError(func_name)
            namespace[func_name] = _as_test_function(test, func_name)
            exported.append(func_name)

        skipped = len(self._tests) - len(exported)
        if skipped:
            logger.info("Exported %d test(s), %d not selected", len(exported), skipped)
        return exported


def _as_test_function(test: RegisteredTest, func_name: str) -> Callable[[], Any]:
    def test_function() -> None:
        test.run_sync()

    test_function.__name__ = func_name
    test_function.__qualname__ = func_name
    test_function.__doc__ = test.name
    return test_function
