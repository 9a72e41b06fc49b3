from .connection import Connection
from .errors import SeedError

from dataclasses import dataclass, field
from psycopg2 import sql  # type: ignore
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

import logging

logger = logging.getLogger(__name__)

# Table name -> rows to insert, both in insertion order. A tuple key such as
# ("public", "users") names a schema-qualified table.
SeedConfig = Mapping[Union[str, Tuple[str, ...]], Sequence[Mapping[str, Any]]]


@dataclass(frozen=True)
class SeedResult:
    table: Union[str, Tuple[str, ...]]
    rows: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class SeedOutput:
    results: Tuple[SeedResult, ...] = ()


def _insert_statement(table, row: Mapping[str, Any]) -> sql.Composed:
    parts = table if isinstance(table, tuple) else (table,)
    if not row:
        return sql.SQL("INSERT INTO {} DEFAULT VALUES RETURNING *;").format(sql.Identifier(*parts))
    return sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *;").format(
        sql.Identifier(*parts),
        sql.SQL(", ").join([sql.Identifier(c) for c in row]),
        sql.SQL(", ").join(sql.Placeholder() * len(row)),
    )


class SqlSeedStrategy(object):
    """Insert seed rows table by table, row by row, exactly in the given order."""

    def __init__(self, config: SeedConfig, connection: Connection) -> None:
        self.config = config
        self.connection = connection

    async def run(self) -> SeedOutput:
        results = []
        for table, rows in self.config.items():
            inserted = []
            for i, row in enumerate(rows):
                try:
                    inserted.extend(await self.connection.execute(_insert_statement(table, row), list(row.values())))
                except Exception as e:
                    raise SeedError("Seeding row {} of {} failed: {}".format(i, table, e), table=table, index=i) from e
            logger.info("Seeded {} rows into {}".format(len(inserted), table))
            results.append(SeedResult(table=table, rows=inserted))
        return SeedOutput(results=tuple(results))
