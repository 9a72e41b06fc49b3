from plugin_postgresql import ConfigError, DatabaseConfig, DatabaseCreationError, DatabaseStrategy, Server, ServerDetails

import pytest


async def initialized_server(connector):
    server = Server("id", ServerDetails("name", "localhost", 5432, "user", "password", "postgres"),
                    connector=connector)
    await server.init()
    return server


def test_prefix_validation():
    assert DatabaseConfig().prefix == "postgres"
    with pytest.raises(ConfigError):
        DatabaseConfig(prefix="drop table;")


@pytest.mark.asyncio
async def test_creates_and_drops_database(connector, ids):
    server = await initialized_server(connector)
    output = await DatabaseStrategy(DatabaseConfig(prefix="custom"), server, ids=ids).run()

    assert output.server is not server
    assert output.server.database == "custom_s1"
    assert output.server.connection is not None
    assert connector.calls[1] == ("postgres", 'CREATE DATABASE "custom_s1";', None)
    assert connector.calls[2] == ("custom_s1", "SELECT 1", None)

    await output.teardown()
    assert connector.closed == ["custom_s1"]
    assert connector.calls[-1] == ("postgres", 'DROP DATABASE IF EXISTS "custom_s1";', None)
    assert "pg_terminate_backend" in connector.calls[-2][1]
    assert "WHERE datname = 'custom_s1'" in connector.calls[-2][1]

    # A second teardown does not drop again.
    count = len(connector.calls)
    await output.teardown()
    assert len(connector.calls) == count


@pytest.mark.asyncio
async def test_create_failure(connector, ids):
    server = await initialized_server(connector)
    connector.fail_when = lambda statement: statement.startswith("CREATE DATABASE")
    with pytest.raises(DatabaseCreationError) as excinfo:
        await DatabaseStrategy(DatabaseConfig(), server, ids=ids).run()
    assert isinstance(excinfo.value.__cause__, RuntimeError)
