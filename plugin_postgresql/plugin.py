from .connection import Connector, PostgresConnector
from .database import DatabaseConfig, DatabaseOutput, DatabaseStrategy
from .errors import ConfigError, PluginError, SetupError, UnknownStrategyError
from .migration import MigrationConfig, MigrationOutput, MigrationStrategy
from .migration_sql import SqlMigrationStrategy
from .seed import SeedConfig, SeedOutput, SqlSeedStrategy
from .server import PluginInstance, Server, ServerConfig, ServerStrategy
from .server_connection import ConnectionStrategy
from .server_docker import ContainerRuntime, DockerServerStrategy, DockerServerStrategyConfig, TestcontainersRuntime
from .teardown import build_teardown, noop_teardown
from .utils import READY_TIMEOUT, IdGenerator

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

import logging

logger = logging.getLogger(__name__)


def _build(cls, raw, section):
    if not isinstance(raw, Mapping):
        raise ConfigError("`{}` must be a mapping, got {!r}".format(section, raw))
    try:
        return cls(**raw)
    except TypeError as e:
        raise ConfigError("Invalid `{}` config: {}".format(section, e)) from e


@dataclass(frozen=True)
class PluginConfig:
    """The PostgreSQL plugin config.

    `server` is either a `Server` to adopt, or a `ServerConfig` asking for a
    new one. `database`, `migrate` and `seed` are optional; leaving one out
    skips that phase entirely.

    Basic server setup::

        PluginConfig(server=ServerConfig(strategy=ServerStrategy.CONTAINER))

    Server setup with a custom database, migrations and seeding::

        PluginConfig(
            server=ServerConfig(strategy=ServerStrategy.CONTAINER),
            database=DatabaseConfig(prefix="custom"),
            migrate=MigrationConfig(strategy=MigrationStrategy.SQL, root=root),
            seed={
                "users": [
                    {"email": "email 1", "name": "name 1"},
                    {"email": "email 2", "name": "name 2"},
                ],
            },
        )

    """
    server: Union[ServerConfig, Server]
    database: Optional[DatabaseConfig] = None
    migrate: Optional[MigrationConfig] = None
    seed: Optional[SeedConfig] = None

    def __post_init__(self):
        if not isinstance(self.server, (ServerConfig, Server)):
            raise ConfigError("`server` must be a Server or a ServerConfig, got {!r}".format(self.server))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "PluginConfig":
        """Build a config from plain dicts, e.g. `{"server": {"strategy": "container"}}`."""
        unknown = set(raw) - {"server", "database", "migrate", "seed"}
        if unknown:
            raise ConfigError("Unknown config keys: {}".format(", ".join(sorted(unknown))))

        server = raw.get("server")
        if server is None:
            raise ConfigError("`server` is required")
        if not isinstance(server, (Server, ServerConfig)):
            server = _build(ServerConfig, server, "server")

        database = raw.get("database")
        if database is not None and not isinstance(database, DatabaseConfig):
            database = _build(DatabaseConfig, database, "database")

        migrate = raw.get("migrate")
        if migrate is not None and not isinstance(migrate, MigrationConfig):
            migrate = _build(MigrationConfig, migrate, "migrate")

        seed = raw.get("seed")
        if seed is not None and not isinstance(seed, Mapping):
            raise ConfigError("`seed` must map table names to rows, got {!r}".format(seed))

        return cls(server=server, database=database, migrate=migrate, seed=seed)


@dataclass(frozen=True)
class PluginResult:
    server: Server
    migrate: MigrationOutput
    seed: SeedOutput


class PostgreSqlPlugin(object):
    """Sets up a PostgreSQL server, database, schema and seed data for tests.

    The phases always run in the same order: server, database, migrate,
    seed. Each optional phase is skipped when its config is missing and then
    produces an empty output.

    If a phase after the server phase fails, nothing is torn down here. The
    raised exception carries a `teardown` that releases what had been
    acquired, so the caller decides when to clean up.

    """

    def __init__(self, runtime: Optional[ContainerRuntime] = None, connector: Optional[Connector] = None,
                 ids: Optional[IdGenerator] = None, ready_timeout: float = READY_TIMEOUT) -> None:
        self.runtime = runtime if runtime is not None else TestcontainersRuntime()
        self.connector = connector if connector is not None else PostgresConnector()
        self.ids = ids if ids is not None else IdGenerator()
        self.ready_timeout = ready_timeout

    async def setup(self, config: Union[PluginConfig, Mapping[str, Any]]) -> PluginInstance[PluginResult]:
        if not isinstance(config, PluginConfig):
            config = PluginConfig.from_dict(config)

        setup = await self._setup_server(config.server)
        teardowns = [setup.teardown]

        try:
            database = await self._should_run_database_creation(config, setup.output)
            # The narrower resource is released first.
            teardowns.insert(0, database.teardown)
            server = database.server

            migrate = await self._should_run_migration(config, server)
            seed = await self._should_run_seed(config, server)
        except PluginError as e:
            e.teardown = build_teardown(teardowns)
            raise
        except Exception as e:
            raise SetupError("Setup failed: {!r}".format(e), teardown=build_teardown(teardowns)) from e

        return PluginInstance(
            output=PluginResult(server=server, migrate=migrate, seed=seed),
            teardown=build_teardown(teardowns),
        )

    async def _setup_server(self, config: Union[ServerConfig, Server]) -> PluginInstance[Server]:
        if isinstance(config, Server):
            setup = await self._setup_existing_database_server(config)
        else:
            setup = await self._setup_new_database_server(config)

        try:
            await setup.output.init(timeout=self.ready_timeout)
        except Exception:
            # A server that never became ready counts as not acquired.
            try:
                await setup.teardown()
            except Exception as e:
                logger.warning("Could not release server {}: {!r}".format(setup.output.id, e))
            raise
        return setup

    async def _setup_existing_database_server(self, server: Server) -> PluginInstance[Server]:
        return await ConnectionStrategy(server).setup()

    async def _setup_new_database_server(self, config: ServerConfig) -> PluginInstance[Server]:
        suffix = self.ids.suffix()
        database = config.database_name or "{}_{}".format(config.database_name_prefix or "postgres", suffix)
        server_name = "{}-{}".format(config.database_server_name_prefix or "postgres", suffix)
        port = config.port if config.port is not None else 0
        user = config.user if config.user is not None else "user_{}".format(self.ids.token())
        password = config.password if config.password is not None else self.ids.token()
        version = config.version or "latest"

        if config.strategy is ServerStrategy.CONTAINER:
            docker_config = DockerServerStrategyConfig(
                server_name=server_name,
                port=port,
                user=user,
                password=password,
                database=database,
                version=version,
            )
            strategy = DockerServerStrategy(docker_config, self.runtime, self.connector)
            return await strategy.setup()

        raise UnknownStrategyError("server", config.strategy)

    async def _should_run_database_creation(self, config: PluginConfig, server: Server) -> DatabaseOutput:
        if config.database is None:
            return DatabaseOutput(server=server, teardown=noop_teardown)
        strategy = DatabaseStrategy(config.database, server, ids=self.ids)
        return await strategy.run()

    async def _should_run_migration(self, config: PluginConfig, server: Server) -> MigrationOutput:
        if config.migrate is None:
            return MigrationOutput(results=())

        if config.migrate.strategy is MigrationStrategy.SQL:
            strategy = SqlMigrationStrategy(config.migrate, server.connection)
            return await strategy.run()

        raise UnknownStrategyError("migration", config.migrate.strategy)

    async def _should_run_seed(self, config: PluginConfig, server: Server) -> SeedOutput:
        if config.seed is None:
            return SeedOutput(results=())
        strategy = SqlSeedStrategy(config.seed, server.connection)
        return await strategy.run()


postgresql_plugin = PostgreSqlPlugin()


async def setup(config: Union[PluginConfig, Mapping[str, Any]]) -> PluginInstance[PluginResult]:
    """Run `postgresql_plugin.setup()`; see `PostgreSqlPlugin`."""
    return await postgresql_plugin.setup(config)
