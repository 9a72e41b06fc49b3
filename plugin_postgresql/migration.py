from .errors import UnknownStrategyError

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union


class MigrationStrategy(str, Enum):
    SQL = "sql"

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            raise UnknownStrategyError("migration", value) from None


@dataclass(frozen=True)
class MigrationConfig:
    """Run the migrations found under `root` with the given strategy."""
    strategy: MigrationStrategy
    root: Union[str, Path]

    def __post_init__(self):
        object.__setattr__(self, "strategy", MigrationStrategy.parse(self.strategy))
        object.__setattr__(self, "root", Path(self.root))


@dataclass(frozen=True)
class MigrationResult:
    name: str
    path: Path
    rows: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class MigrationOutput:
    results: Tuple[MigrationResult, ...] = ()
