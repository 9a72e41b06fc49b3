from plugin_postgresql import Connection, ContainerInfo, ContainerRuntime, Connector, PostgreSqlPlugin

from psycopg2 import sql

import itertools
import pytest


def pytest_configure(config):
    config.addinivalue_line("markers",
                            "docker: needs a container runtime, only run with TEST_DOCKER=1")


def render(statement):
    """Render a `psycopg2.sql` composable the way the server would see it."""
    if isinstance(statement, str):
        return statement
    if isinstance(statement, sql.Composed):
        return "".join(render(s) for s in statement.seq)
    if isinstance(statement, sql.SQL):
        return statement.string
    if isinstance(statement, sql.Identifier):
        return ".".join('"{}"'.format(s.replace('"', '""')) for s in statement.strings)
    if isinstance(statement, sql.Literal):
        return "'{}'".format(str(statement.wrapped).replace("'", "''"))
    if isinstance(statement, sql.Placeholder):
        return "%s"
    raise TypeError("Cannot render {!r}".format(statement))


class FakeConnection(Connection):
    def __init__(self, connector, details):
        self.connector = connector
        self.details = details
        self.closed = False

    async def execute(self, statement, params=None):
        if self.closed:
            raise RuntimeError("connection closed")
        statement = render(statement)
        self.connector.calls.append((self.details.database, statement, params))
        if self.connector.fail_when(statement):
            raise RuntimeError("boom: {}".format(statement))
        if statement.startswith("INSERT") and params is not None:
            return [{"id": len(self.connector.calls), "values": list(params)}]
        return []

    async def close(self):
        if not self.closed:
            self.closed = True
            self.connector.closed.append(self.details.database)


class FakeConnector(Connector):
    """Records every statement; refuses `unready` connection attempts first."""

    def __init__(self):
        self.calls = []
        self.connects = []
        self.closed = []
        self.unready = 0
        self.fail_when = lambda statement: False

    async def connect(self, details):
        self.connects.append(details)
        if self.unready > 0:
            self.unready -= 1
            raise ConnectionRefusedError("not ready")
        return FakeConnection(self, details)

    def statements(self):
        return [c[1] for c in self.calls if c[1] != "SELECT 1"]


class FakeRuntime(ContainerRuntime):
    def __init__(self):
        self.specs = []
        self.running = set()
        self.stopped = []
        self.ports = itertools.count(40000)
        self.fail = None

    async def start(self, spec):
        if self.fail is not None:
            raise self.fail
        self.specs.append(spec)
        id = "container-{}".format(len(self.specs))
        self.running.add(id)
        return ContainerInfo(id=id, host="127.0.0.1", port=spec.port or next(self.ports))

    async def stop(self, id):
        if id in self.running:
            self.running.remove(id)
            self.stopped.append(id)


class SequentialIds(object):
    def __init__(self):
        self.counter = itertools.count(1)

    def suffix(self):
        return "s{}".format(next(self.counter))

    def token(self):
        return "t{}".format(next(self.counter))


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def plugin(runtime, connector, ids):
    return PostgreSqlPlugin(runtime=runtime, connector=connector, ids=ids, ready_timeout=0.5)


@pytest.fixture
def postgresql_plugin_instance(plugin):
    return plugin


@pytest.fixture
def migrations(tmp_path):
    root = tmp_path / "migrations"
    root.mkdir()
    (root / "002_add_posts.sql").write_text("CREATE TABLE posts (id serial PRIMARY KEY);")
    (root / "001_add_users.sql").write_text("CREATE TABLE users (id serial PRIMARY KEY, email text);")
    (root / "README.md").write_text("not a migration")
    return root
