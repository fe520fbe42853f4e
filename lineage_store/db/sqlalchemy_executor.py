"""
QueryExecutor backed by a SQLAlchemy connection.

Statements are plain SQL text with ``:name`` bind parameters. Every
statement must run inside begin()/commit() (or the transaction() context
manager); this keeps the caller in charge of atomicity.
"""

from typing import Any, Mapping, Optional

import structlog
from sqlalchemy import Connection, Engine, RootTransaction, text
from sqlalchemy.exc import SQLAlchemyError

from ..errors import failed_precondition, internal
from .base import create_store_engine
from .executor import QueryExecutor, RecordSet

logger = structlog.get_logger()


class SQLAlchemyQueryExecutor(QueryExecutor):
    """Executes queries on one connection checked out from ``engine``."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._connection: Optional[Connection] = None
        self._transaction: Optional[RootTransaction] = None

    @classmethod
    def from_url(cls, database_url: Optional[str] = None) -> "SQLAlchemyQueryExecutor":
        return cls(create_store_engine(database_url))

    def _get_connection(self) -> Connection:
        if self._connection is None or self._connection.closed:
            self._connection = self.engine.connect()
        return self._connection

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    def begin(self) -> None:
        if self.in_transaction:
            raise failed_precondition("A transaction is already open")
        self._transaction = self._get_connection().begin()

    def commit(self) -> None:
        if not self.in_transaction:
            raise failed_precondition("No open transaction to commit")
        transaction, self._transaction = self._transaction, None
        try:
            transaction.commit()
        except SQLAlchemyError as exc:
            raise internal(f"Commit failed: {exc}") from exc

    def rollback(self) -> None:
        if not self.in_transaction:
            raise failed_precondition("No open transaction to roll back")
        transaction, self._transaction = self._transaction, None
        try:
            transaction.rollback()
        except SQLAlchemyError as exc:
            raise internal(f"Rollback failed: {exc}") from exc

    def execute(
        self, query: str, parameters: Optional[Mapping[str, Any]] = None
    ) -> RecordSet:
        if not self.in_transaction:
            raise failed_precondition("Queries must run inside a transaction")
        try:
            result = self._get_connection().execute(text(query), dict(parameters or {}))
        except SQLAlchemyError as exc:
            reason = getattr(exc, "orig", None) or exc
            logger.debug("query_failed", query=query, error=str(reason))
            raise internal(f"Query failed: {reason}", query=query) from exc

        if not result.returns_rows:
            return RecordSet()
        return RecordSet(
            column_names=list(result.keys()),
            records=[tuple(row) for row in result],
        )

    def close(self) -> None:
        if self.in_transaction:
            self.rollback()
        if self._connection is not None:
            self._connection.close()
            self._connection = None
