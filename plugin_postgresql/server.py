from .connection import Connection, Connector, PostgresConnector
from .errors import ConfigError, ServerNotInitializedError, ServerNotReadyError, UnknownStrategyError
from .teardown import Teardown
from .utils import READY_TIMEOUT, wait_for

from dataclasses import dataclass, replace
from enum import Enum
from typing import Generic, Optional, TypeVar

import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PluginInstance(Generic[T]):
    """What a setup step hands back: its output and how to undo it."""
    output: T
    teardown: Teardown


class ServerStrategy(str, Enum):
    CONTAINER = "container"
    DOCKER = "container"

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            raise UnknownStrategyError("server", value) from None


@dataclass(frozen=True)
class ServerConfig:
    """Request for a new, disposable server.

    Unset identity fields are generated per setup call.
    """
    strategy: ServerStrategy
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    database_name: Optional[str] = None
    database_name_prefix: Optional[str] = None
    database_server_name_prefix: Optional[str] = None
    version: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "strategy", ServerStrategy.parse(self.strategy))
        if self.port is not None and (not isinstance(self.port, int) or self.port < 0):
            raise ConfigError("Invalid server port: {!r}".format(self.port))


@dataclass(frozen=True)
class ServerDetails:
    server_name: str
    hostname: str
    port: int
    user: str
    password: str
    database: str

    def get_dsn(self) -> str:
        return "postgres://{}:{}@{}:{}/{}".format(
            self.user, self.password, self.hostname, self.port, self.database
        )


async def _close_quietly(conn: Connection) -> None:
    try:
        await conn.close()
    except Exception as e:
        logger.debug("Ignoring error while closing connection: {!r}".format(e))


class Server(object):
    """A reachable PostgreSQL server bound to one logical database.

    The handle is inert until `init()` completed the readiness handshake;
    afterwards `connection` is a live client connection.
    """

    def __init__(self, id: str, details: ServerDetails, connector: Optional[Connector] = None) -> None:
        self.id = id
        self.details = details
        self.connector = connector if connector is not None else PostgresConnector()
        self._connection: Optional[Connection] = None

    @property
    def server_name(self) -> str:
        return self.details.server_name

    @property
    def hostname(self) -> str:
        return self.details.hostname

    @property
    def port(self) -> int:
        return self.details.port

    @property
    def user(self) -> str:
        return self.details.user

    @property
    def password(self) -> str:
        return self.details.password

    @property
    def database(self) -> str:
        return self.details.database

    @property
    def initialized(self) -> bool:
        return self._connection is not None

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            raise ServerNotInitializedError(
                "Server {} has not been initialized, call init() first".format(self.id)
            )
        return self._connection

    def get_dsn(self) -> str:
        return self.details.get_dsn()

    def with_database(self, database: str) -> "Server":
        """Return a new, uninitialized handle for another database on this server."""
        return Server(self.id, replace(self.details, database=database), connector=self.connector)

    async def init(self, timeout: float = READY_TIMEOUT) -> None:
        """Block until the server accepts connections, or `timeout` runs out."""
        if self._connection is not None:
            return

        last_error = None

        async def ready():
            nonlocal last_error
            conn = None
            try:
                conn = await self.connector.connect(self.details)
                await conn.execute("SELECT 1")
            except Exception as e:
                last_error = e
                logger.debug("Server {} not ready yet: {!r}".format(self.id, e))
                if conn is not None:
                    await _close_quietly(conn)
                return False
            self._connection = conn
            return True

        try:
            await wait_for(ready, timeout=timeout)
        except TimeoutError as e:
            raise ServerNotReadyError(
                "Server {} at {}:{} did not accept connections within {}s".format(
                    self.id, self.hostname, self.port, timeout
                )
            ) from (last_error or e)
        logger.info("Server {} ready at {}:{}/{}".format(self.id, self.hostname, self.port, self.database))

    async def close(self) -> None:
        conn, self._connection = self._connection, None
        if conn is not None:
            await conn.close()

    def __repr__(self):
        return "Server(id={!r}, hostname={!r}, port={!r}, database={!r})".format(
            self.id, self.hostname, self.port, self.database
        )
