"""
Query execution boundary.

The access layer depends only on QueryExecutor: run one statement, get rows
back, and control the ambient transaction. Backends vary behind it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, List, Mapping, Optional, Sequence, Tuple


@dataclass
class RecordSet:
    """Rows returned by one statement. Empty for statements without results."""

    column_names: List[str] = field(default_factory=list)
    records: List[Tuple[Any, ...]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def as_dicts(self) -> List[Dict[str, Any]]:
        return [dict(zip(self.column_names, record)) for record in self.records]

    def scalar(self) -> Any:
        """First value of the first row, or None when there are no rows."""
        if not self.records or not self.records[0]:
            return None
        return self.records[0][0]


class QueryExecutor(ABC):
    """Runs queries against one connection inside an explicit transaction."""

    @abstractmethod
    def begin(self) -> None:
        """Open the ambient transaction."""
        pass

    @abstractmethod
    def commit(self) -> None:
        """Commit the ambient transaction."""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Discard every write made since begin()."""
        pass

    @property
    @abstractmethod
    def in_transaction(self) -> bool:
        """Whether begin() has been called without a matching commit/rollback."""
        pass

    @abstractmethod
    def execute(
        self, query: str, parameters: Optional[Mapping[str, Any]] = None
    ) -> RecordSet:
        """Run a single statement with named bind parameters."""
        pass

    def execute_all(self, queries: Sequence[str]) -> None:
        """Run statements in order, discarding their results."""
        for query in queries:
            self.execute(query)

    @contextmanager
    def transaction(self) -> Generator["QueryExecutor", None, None]:
        """Begin, yield, then commit; roll back if the body raises."""
        self.begin()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()

    def close(self) -> None:
        """Release the underlying connection. Optional for implementations."""
        pass
