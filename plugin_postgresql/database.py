from .errors import ConfigError, DatabaseCreationError
from .server import Server
from .teardown import Teardown
from .utils import IdGenerator

from dataclasses import dataclass
from psycopg2 import sql  # type: ignore
from typing import Optional

import logging
import re

logger = logging.getLogger(__name__)

_PREFIX_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class DatabaseConfig:
    """Create a fresh database named `{prefix}_{random suffix}`."""
    prefix: str = "postgres"

    def __post_init__(self):
        if not _PREFIX_RE.match(self.prefix):
            raise ConfigError("Invalid database prefix: {!r}".format(self.prefix))


@dataclass(frozen=True)
class DatabaseOutput:
    server: Server
    teardown: Teardown


class DatabaseStrategy(object):
    def __init__(self, config: DatabaseConfig, server: Server, ids: Optional[IdGenerator] = None) -> None:
        self.config = config
        self.server = server
        self.ids = ids if ids is not None else IdGenerator()

    async def run(self) -> DatabaseOutput:
        server = self.server
        dbname = "{}_{}".format(self.config.prefix, self.ids.suffix())

        try:
            await server.connection.execute(
                sql.SQL("CREATE DATABASE {};").format(sql.Identifier(dbname))
            )
        except Exception as e:
            raise DatabaseCreationError("Could not create database {}: {}".format(dbname, e)) from e
        logger.info("Created database {} on server {}".format(dbname, server.id))

        database_server = server.with_database(dbname)
        dropped = False

        async def teardown() -> None:
            nonlocal dropped
            if dropped:
                return
            try:
                await database_server.close()
            finally:
                # Terminate any active connections to the database, then drop it
                await server.connection.execute(sql.SQL(
                    "SELECT pg_terminate_backend(pid) FROM pg_stat_activity "
                    "WHERE datname = {} AND pid <> pg_backend_pid();"
                ).format(sql.Literal(dbname)))
                await server.connection.execute(
                    sql.SQL("DROP DATABASE IF EXISTS {};").format(sql.Identifier(dbname))
                )
                dropped = True
                logger.info("Dropped database {} on server {}".format(dbname, server.id))

        try:
            await database_server.init()
        except Exception as e:
            try:
                await teardown()
            except Exception as te:
                logger.warning("Could not drop database {}: {!r}".format(dbname, te))
            raise DatabaseCreationError("Could not connect to database {}: {}".format(dbname, e)) from e

        return DatabaseOutput(server=database_server, teardown=teardown)
