from .connection import Connection
from .errors import MigrationError
from .migration import MigrationConfig, MigrationOutput, MigrationResult

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import asyncio
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MigrationUnit:
    name: str
    path: Path
    statement: str


class SqlMigrationSource(object):
    """All `*.sql` files directly inside `root`, in lexical filename order."""

    def __init__(self, root) -> None:
        self.root = Path(root)

    def _load(self) -> List[MigrationUnit]:
        if not self.root.is_dir():
            raise MigrationError("Migration root {} is not a directory".format(self.root))

        paths = sorted(
            (p for p in self.root.iterdir() if p.is_file() and p.suffix == ".sql"),
            key=lambda p: p.name,
        )
        return [
            MigrationUnit(name=p.name, path=p, statement=p.read_text(encoding="utf-8"))
            for p in paths
        ]

    async def load(self) -> List[MigrationUnit]:
        return await asyncio.to_thread(self._load)


class SqlMigrationStrategy(object):
    """Apply SQL files one after the other.

    A failing file aborts the run. Files applied before it stay applied.
    """

    def __init__(self, config: MigrationConfig, connection: Connection,
                 source: Optional[SqlMigrationSource] = None) -> None:
        self.config = config
        self.connection = connection
        self.source = source if source is not None else SqlMigrationSource(config.root)

    async def run(self) -> MigrationOutput:
        units = await self.source.load()
        results = []
        for unit in units:
            logger.info("Applying migration {}".format(unit.name))
            try:
                rows = await self.connection.execute(unit.statement)
            except Exception as e:
                raise MigrationError(
                    "Migration {} failed after {} applied: {}".format(unit.name, len(results), e),
                    migration=unit.name,
                ) from e
            results.append(MigrationResult(name=unit.name, path=unit.path, rows=rows))
        return MigrationOutput(results=tuple(results))
