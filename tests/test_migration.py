from plugin_postgresql import (
    MigrationConfig,
    MigrationError,
    MigrationStrategy,
    Server,
    ServerDetails,
    SqlMigrationSource,
    SqlMigrationStrategy,
    UnknownStrategyError,
)

from pathlib import Path

import pytest


async def connection(connector):
    server = Server("id", ServerDetails("name", "localhost", 5432, "user", "password", "postgres"),
                    connector=connector)
    await server.init()
    return server.connection


def test_config():
    config = MigrationConfig(strategy="sql", root="/tmp/migrations")
    assert config.strategy is MigrationStrategy.SQL
    assert config.root == Path("/tmp/migrations")

    with pytest.raises(UnknownStrategyError) as excinfo:
        MigrationConfig(strategy="alembic", root="/tmp")
    assert excinfo.value.kind == "migration"


@pytest.mark.asyncio
async def test_source_orders_by_filename(migrations):
    (migrations / "nested").mkdir()
    (migrations / "nested" / "000_ignored.sql").write_text("SELECT 0;")
    units = await SqlMigrationSource(migrations).load()
    assert [u.name for u in units] == ["001_add_users.sql", "002_add_posts.sql"]
    assert units[0].statement.startswith("CREATE TABLE users")
    assert units[0].path == migrations / "001_add_users.sql"


@pytest.mark.asyncio
async def test_source_missing_root(tmp_path):
    with pytest.raises(MigrationError):
        await SqlMigrationSource(tmp_path / "missing").load()


@pytest.mark.asyncio
async def test_applies_in_order(connector, migrations):
    conn = await connection(connector)
    config = MigrationConfig(strategy=MigrationStrategy.SQL, root=migrations)
    output = await SqlMigrationStrategy(config, conn).run()

    assert [r.name for r in output.results] == ["001_add_users.sql", "002_add_posts.sql"]
    assert connector.statements() == [
        "CREATE TABLE users (id serial PRIMARY KEY, email text);",
        "CREATE TABLE posts (id serial PRIMARY KEY);",
    ]


@pytest.mark.asyncio
async def test_failure_stops_the_run(connector, migrations):
    (migrations / "003_add_comments.sql").write_text("CREATE TABLE comments ();")
    conn = await connection(connector)
    connector.fail_when = lambda statement: "posts" in statement
    config = MigrationConfig(strategy=MigrationStrategy.SQL, root=migrations)

    with pytest.raises(MigrationError) as excinfo:
        await SqlMigrationStrategy(config, conn).run()

    assert excinfo.value.migration == "002_add_posts.sql"
    assert "after 1 applied" in str(excinfo.value)
    # Nothing after the failing file ran.
    assert not any("comments" in s for s in connector.statements())


@pytest.mark.asyncio
async def test_empty_root(connector, tmp_path):
    conn = await connection(connector)
    output = await SqlMigrationStrategy(MigrationConfig(strategy="sql", root=tmp_path), conn).run()
    assert output.results == ()
    assert connector.statements() == []
