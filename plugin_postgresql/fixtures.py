from .harness import setup_tests_factory
from .plugin import postgresql_plugin
from .utils import TEST_DEBUG

import asyncio
import logging
import pytest  # type: ignore
import sys


@pytest.fixture
def postgresql_event_loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def postgresql_plugin_instance():
    """The plugin used by the `postgresql` fixture; override to inject collaborators."""
    return postgresql_plugin


@pytest.fixture
def postgresql(postgresql_event_loop, postgresql_plugin_instance):
    """Factory fixture setting up PostgreSQL for a single test.

    Usage::

        def test_users(postgresql):
            db = postgresql({"server": {"strategy": "container"}, "migrate": {...}})
            rows = db.run(db.server.connection.execute("SELECT * FROM users"))

    Everything set up through the factory is torn down after the test,
    and a failing teardown fails the test.

    """
    if TEST_DEBUG:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stdout)

    setup_tests = setup_tests_factory({"database": postgresql_plugin_instance})
    loop = postgresql_event_loop
    teardowns = []

    def _setup(config):
        result = loop.run_until_complete(setup_tests({"database": config}))
        teardowns.append(result.teardown_tests)
        return _Provisioned(result.outputs["database"], loop)

    yield _setup

    errors = []
    for teardown in reversed(teardowns):
        try:
            loop.run_until_complete(teardown())
        except Exception as e:
            errors.append(e)
    if errors:
        raise ValueError("\n".join(str(e) for e in errors))


class _Provisioned(object):
    """A `PluginResult` plus a way to run its coroutines from sync tests."""

    def __init__(self, result, loop):
        self.result = result
        self.loop = loop

    @property
    def server(self):
        return self.result.server

    @property
    def migrate(self):
        return self.result.migrate

    @property
    def seed(self):
        return self.result.seed

    def run(self, coro):
        return self.loop.run_until_complete(coro)
