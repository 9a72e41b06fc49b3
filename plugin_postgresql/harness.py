from .plugin import postgresql_plugin
from .teardown import build_teardown

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, Mapping

import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetupTestsResult:
    outputs: Dict[str, Any]
    teardown_tests: Any


def setup_tests_factory(plugins: Mapping[str, Any]):
    """Bind a set of named plugins into one `setup_tests` coroutine.

    `setup_tests(configs)` sets up every plugin named in `configs`, in the
    order of `plugins`, and returns their outputs under the same names plus
    one `teardown_tests` releasing all of them. If a plugin fails, whatever
    was already set up (including the partial work of the failing plugin)
    is torn down before the error propagates.

    """
    plugins = dict(plugins)

    async def setup_tests(configs: Mapping[str, Any]) -> SetupTestsResult:
        unknown = set(configs) - set(plugins)
        if unknown:
            raise KeyError("Unknown plugins: {}".format(", ".join(sorted(unknown))))

        outputs = {}
        teardowns = []
        for name, plugin in plugins.items():
            if name not in configs:
                continue
            try:
                instance = await plugin.setup(configs[name])
            except Exception as e:
                partial = getattr(e, "teardown", None)
                if partial is not None:
                    teardowns.insert(0, partial)
                try:
                    await build_teardown(teardowns)()
                except Exception as te:
                    logger.warning("Teardown after failed setup of {} failed: {}".format(name, te))
                raise
            outputs[name] = instance.output
            teardowns.insert(0, instance.teardown)

        return SetupTestsResult(outputs=outputs, teardown_tests=build_teardown(teardowns))

    return setup_tests


@asynccontextmanager
async def provision(config, plugin=postgresql_plugin):
    """Set up `config`, yield the `PluginResult` and always tear it down.

    >>> async with provision({"server": {"strategy": "container"}}) as db:
    ...     await db.server.connection.execute("SELECT 1")

    """
    setup_tests = setup_tests_factory({"database": plugin})
    result = await setup_tests({"database": config})
    try:
        yield result.outputs["database"]
    finally:
        await result.teardown_tests()
