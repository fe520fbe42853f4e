"""
Database package for the lineage store.
"""

from .base import create_store_engine, get_database_url
from .executor import QueryExecutor, RecordSet
from .query_config import MetadataSourceQueryConfig, MigrationScheme, MigrationVerification
from .sqlalchemy_executor import SQLAlchemyQueryExecutor
from .sqlite_config import LIBRARY_VERSION, build_sqlite_query_config

__all__ = [
    "create_store_engine",
    "get_database_url",
    "QueryExecutor",
    "RecordSet",
    "SQLAlchemyQueryExecutor",
    "MetadataSourceQueryConfig",
    "MigrationScheme",
    "MigrationVerification",
    "LIBRARY_VERSION",
    "build_sqlite_query_config",
]
