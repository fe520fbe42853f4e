"""Shared plumbing for the store services."""

from typing import Any, Dict, Optional

import structlog

from ..db.executor import QueryExecutor, RecordSet
from ..db.query_config import MetadataSourceQueryConfig
from ..errors import MetadataStoreError, failed_precondition, internal

logger = structlog.get_logger()


class StoreService:
    """Runs named queries from the config through one executor."""

    def __init__(self, executor: QueryExecutor, config: MetadataSourceQueryConfig):
        self.executor = executor
        self.config = config

    def _run(self, query_name: str, **parameters: Any) -> RecordSet:
        if not self.executor.in_transaction:
            raise failed_precondition(
                f"Operation {query_name!r} requires an open transaction"
            )
        return self.executor.execute(self.config.query(query_name), parameters)

    def _insert(self, query_name: str, **parameters: Any) -> int:
        """Run an insert and return the id SQLite assigned to the new row."""
        self._run(query_name, **parameters)
        new_id = self._run("select_last_insert_id").scalar()
        if new_id is None:
            raise internal(f"No id returned after {query_name!r}")
        return int(new_id)

    def _first(self, query_name: str, **parameters: Any) -> Optional[Dict[str, Any]]:
        rows = self._run(query_name, **parameters).as_dicts()
        return rows[0] if rows else None

    def _reject(self, error: MetadataStoreError, **context: Any) -> MetadataStoreError:
        logger.debug(
            "operation_rejected",
            service=type(self).__name__,
            code=error.code.value,
            reason=error.message,
            **context,
        )
        return error
