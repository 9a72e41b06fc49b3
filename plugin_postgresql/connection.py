from abc import ABC, abstractmethod
from psycopg2 import sql  # type: ignore
from typing import Any, Dict, List, Optional, Sequence, Union

import asyncio
import psycopg2  # type: ignore

Row = Dict[str, Any]
Statement = Union[str, sql.Composable]


class Connection(ABC):
    """A live client connection to a PostgreSQL server."""

    @abstractmethod
    async def execute(self, statement: Statement, params: Optional[Sequence[Any]] = None) -> List[Row]:
        """
        Run a single statement, either plain SQL or composed with
        `psycopg2.sql`.

        Returns:
            The rows produced by the statement as dicts keyed by column
            name, or an empty list if it produced none.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Close the connection. Closing twice is allowed.
        """
        pass


class Connector(ABC):
    """Opens connections from a set of `ServerDetails`."""

    @abstractmethod
    async def connect(self, details) -> Connection:
        pass


class PostgresConnection(Connection):
    def __init__(self, conn):
        self.conn = conn

    def _execute(self, statement, params):
        with self.conn.cursor() as cur:
            cur.execute(statement, params)
            if cur.description is None:
                return []

            # Zip the column definition with the value to get its name.
            res = []
            for r in cur:
                res.append({c.name: v for c, v in zip(cur.description, r)})
            return res

    async def execute(self, statement, params=None):
        return await asyncio.to_thread(self._execute, statement, params)

    async def close(self):
        if not self.conn.closed:
            await asyncio.to_thread(self.conn.close)


class PostgresConnector(Connector):
    """Connects with psycopg2 in autocommit mode.

    Autocommit is required for `CREATE DATABASE` and `DROP DATABASE`, and
    makes every migration file and seed row take effect on its own.
    """

    def __init__(self, connect_timeout: int = 5) -> None:
        self.connect_timeout = connect_timeout

    def _connect(self, details):
        conn = psycopg2.connect(
            host=details.hostname,
            port=details.port,
            user=details.user,
            password=details.password,
            dbname=details.database,
            connect_timeout=self.connect_timeout,
        )
        conn.autocommit = True
        return PostgresConnection(conn)

    async def connect(self, details):
        return await asyncio.to_thread(self._connect, details)
