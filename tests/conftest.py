"""Test configuration and fixtures."""

from typing import Generator

import pytest

from lineage_store.db import (
    MetadataSourceQueryConfig,
    SQLAlchemyQueryExecutor,
    build_sqlite_query_config,
)
from lineage_store.metadata import (
    ArtifactType,
    ContextType,
    ExecutionType,
    PropertyType,
)
from lineage_store.store import MetadataAccessObject


@pytest.fixture
def executor() -> Generator[SQLAlchemyQueryExecutor, None, None]:
    """A fresh in-memory SQLite database for each test."""
    executor = SQLAlchemyQueryExecutor.from_url("sqlite://")
    yield executor
    executor.close()


@pytest.fixture
def config() -> MetadataSourceQueryConfig:
    return build_sqlite_query_config()


@pytest.fixture
def store(executor, config) -> MetadataAccessObject:
    """A store initialized at the library version."""
    store = MetadataAccessObject(executor, config)
    store.init_metadata_source_if_not_exists()
    return store


@pytest.fixture
def db(store) -> Generator[MetadataAccessObject, None, None]:
    """The initialized store with a transaction open for the test body."""
    store.executor.begin()
    yield store
    if store.executor.in_transaction:
        store.executor.rollback()


@pytest.fixture
def artifact_type_id(db) -> int:
    """An artifact type declaring one property of each kind."""
    return db.create_type(
        ArtifactType(
            name="test_artifact_type",
            properties={
                "property_1": PropertyType.INT,
                "property_2": PropertyType.DOUBLE,
                "property_3": PropertyType.STRING,
            },
        )
    )


@pytest.fixture
def execution_type_id(db) -> int:
    return db.create_type(
        ExecutionType(
            name="test_execution_type",
            properties={"property_1": PropertyType.INT},
        )
    )


@pytest.fixture
def context_type_id(db) -> int:
    return db.create_type(
        ContextType(
            name="test_context_type",
            properties={"property_1": PropertyType.STRING},
        )
    )
