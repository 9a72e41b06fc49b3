from .connection import Connection, Connector, PostgresConnection, PostgresConnector
from .database import DatabaseConfig, DatabaseOutput, DatabaseStrategy
from .errors import (
    ConfigError,
    DatabaseCreationError,
    MigrationError,
    PluginError,
    ProvisioningError,
    SeedError,
    ServerNotInitializedError,
    ServerNotReadyError,
    SetupError,
    TeardownError,
    UnknownStrategyError,
)
from .harness import SetupTestsResult, provision, setup_tests_factory
from .migration import MigrationConfig, MigrationOutput, MigrationResult, MigrationStrategy
from .migration_sql import MigrationUnit, SqlMigrationSource, SqlMigrationStrategy
from .plugin import PluginConfig, PluginResult, PostgreSqlPlugin, postgresql_plugin, setup
from .seed import SeedConfig, SeedOutput, SeedResult, SqlSeedStrategy
from .server import PluginInstance, Server, ServerConfig, ServerDetails, ServerStrategy
from .server_connection import ConnectionStrategy
from .server_docker import ContainerInfo, ContainerRuntime, ContainerSpec, DockerServerStrategy, TestcontainersRuntime
from .teardown import Teardown, build_teardown, noop_teardown
from .utils import IdGenerator

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "Connection",
    "ConnectionStrategy",
    "Connector",
    "ContainerInfo",
    "ContainerRuntime",
    "ContainerSpec",
    "DatabaseConfig",
    "DatabaseCreationError",
    "DatabaseOutput",
    "DatabaseStrategy",
    "DockerServerStrategy",
    "IdGenerator",
    "MigrationConfig",
    "MigrationError",
    "MigrationOutput",
    "MigrationResult",
    "MigrationStrategy",
    "MigrationUnit",
    "PluginConfig",
    "PluginError",
    "PluginInstance",
    "PluginResult",
    "PostgreSqlPlugin",
    "PostgresConnection",
    "PostgresConnector",
    "ProvisioningError",
    "SeedConfig",
    "SeedError",
    "SeedOutput",
    "SeedResult",
    "Server",
    "ServerConfig",
    "ServerDetails",
    "ServerNotInitializedError",
    "ServerNotReadyError",
    "ServerStrategy",
    "SetupError",
    "SetupTestsResult",
    "SqlMigrationSource",
    "SqlMigrationStrategy",
    "SqlSeedStrategy",
    "Teardown",
    "TeardownError",
    "TestcontainersRuntime",
    "UnknownStrategyError",
    "__version__",
    "build_teardown",
    "noop_teardown",
    "postgresql_plugin",
    "provision",
    "setup",
    "setup_tests_factory",
]
