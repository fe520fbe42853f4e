"""
Tests for the schema migration engine.

Verifies:
- creating an empty store and idempotent init
- stepwise upgrade and downgrade, each step checked by its fixture
- refusing stores that are newer, older, or missing tables
- per-step transactions
"""

import pytest

from lineage_store.db import LIBRARY_VERSION
from lineage_store.errors import ErrorCode, MetadataStoreError
from lineage_store.metadata import ArtifactType, TypeKind
from lineage_store.store import MetadataAccessObject, MigrationEngine, parse_bool


def run_sql(executor, *queries):
    with executor.transaction():
        for query in queries:
            executor.execute(query)


def table_names(executor):
    with executor.transaction():
        records = executor.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    return {record[0] for record in records}


@pytest.fixture
def engine(executor, config) -> MigrationEngine:
    return MigrationEngine(executor, config)


class TestInitMetadataSource:
    """Tests for creating and checking a store."""

    def test_creates_empty_store_at_library_version(self, engine, executor):
        engine.init_metadata_source_if_not_exists()

        assert engine.get_schema_version() == LIBRARY_VERSION
        assert {
            "Type",
            "TypeProperty",
            "Artifact",
            "ArtifactProperty",
            "Execution",
            "ExecutionProperty",
            "Context",
            "ContextProperty",
            "Event",
            "EventPath",
            "Association",
            "Attribution",
            "MLMDEnv",
        } <= table_names(executor)

    def test_init_is_idempotent(self, engine):
        engine.init_metadata_source_if_not_exists()
        engine.init_metadata_source_if_not_exists()

        assert engine.get_schema_version() == LIBRARY_VERSION

    def test_unrelated_tables_do_not_count(self, engine, executor):
        run_sql(executor, "CREATE TABLE unrelated (id INTEGER);")

        engine.init_metadata_source_if_not_exists()

        assert engine.get_schema_version() == LIBRARY_VERSION

    def test_lower_library_version_creates_that_version(self, executor, config):
        engine = MigrationEngine(executor, config, library_version=1)

        engine.init_metadata_source_if_not_exists()

        assert engine.get_schema_version() == 1
        tables = table_names(executor)
        assert "MLMDEnv" in tables
        assert "Context" not in tables

    def test_library_version_above_config_is_invalid(self, executor, config):
        with pytest.raises(MetadataStoreError) as exc_info:
            MigrationEngine(executor, config, library_version=LIBRARY_VERSION + 1)

        assert exc_info.value.code == ErrorCode.INVALID_ARGUMENT

    def test_schema_version_of_empty_store_is_not_found(self, engine):
        with pytest.raises(MetadataStoreError) as exc_info:
            engine.get_schema_version()

        assert exc_info.value.code == ErrorCode.NOT_FOUND

    def test_newer_store_is_failed_precondition(self, engine, executor):
        engine.init_metadata_source_if_not_exists()
        run_sql(
            executor,
            f"UPDATE MLMDEnv SET schema_version = {LIBRARY_VERSION + 1};",
        )

        with pytest.raises(MetadataStoreError) as exc_info:
            engine.init_metadata_source_if_not_exists(enable_upgrade_migration=True)

        assert exc_info.value.code == ErrorCode.FAILED_PRECONDITION

    @pytest.mark.parametrize("table", ["Type", "Artifact", "Attribution"])
    def test_missing_table_is_aborted(self, engine, executor, table):
        engine.init_metadata_source_if_not_exists()
        run_sql(executor, f"DROP TABLE `{table}`;")

        with pytest.raises(MetadataStoreError) as exc_info:
            engine.init_metadata_source_if_not_exists()

        assert exc_info.value.code == ErrorCode.ABORTED

    def test_empty_version_table_is_aborted(self, engine, executor):
        engine.init_metadata_source_if_not_exists()
        run_sql(executor, "DELETE FROM MLMDEnv;")

        with pytest.raises(MetadataStoreError) as exc_info:
            engine.init_metadata_source_if_not_exists()

        assert exc_info.value.code == ErrorCode.ABORTED

    def test_auto_migration_turned_off_by_default(self, engine):
        engine.init_metadata_source_if_not_exists()
        engine.downgrade_metadata_source(LIBRARY_VERSION - 1)

        with pytest.raises(MetadataStoreError) as exc_info:
            engine.init_metadata_source_if_not_exists()

        assert exc_info.value.code == ErrorCode.FAILED_PRECONDITION
        assert engine.get_schema_version() == LIBRARY_VERSION - 1

        engine.init_metadata_source_if_not_exists(enable_upgrade_migration=True)
        assert engine.get_schema_version() == LIBRARY_VERSION

    def test_reset_drops_existing_data(self, executor, config):
        store = MetadataAccessObject(executor, config)
        store.init_metadata_source_if_not_exists()
        with store.transaction():
            store.create_type(ArtifactType(name="doomed"))

        store.init_metadata_source()

        assert store.get_schema_version() == LIBRARY_VERSION
        with store.transaction():
            assert store.find_types(TypeKind.ARTIFACT) == []

    def test_schema_operations_refuse_an_open_transaction(self, engine, executor):
        executor.begin()

        with pytest.raises(MetadataStoreError) as exc_info:
            engine.init_metadata_source_if_not_exists()

        assert exc_info.value.code == ErrorCode.FAILED_PRECONDITION
        executor.rollback()


class TestUpgrade:
    """Tests for stepwise upgrades driven by the migration schemes."""

    def test_migrate_from_v0_one_version_at_a_time(self, executor, config):
        for version in range(1, LIBRARY_VERSION + 1):
            engine = MigrationEngine(executor, config, library_version=version)
            assert engine.has_upgrade_verification(version)
            engine.setup_previous_version_for_upgrade(version)
            if version == 1:
                # legacy layout without MLMDEnv reads as version 0
                assert engine.get_schema_version() == 0

            with pytest.raises(MetadataStoreError) as exc_info:
                engine.init_metadata_source_if_not_exists()
            assert exc_info.value.code == ErrorCode.FAILED_PRECONDITION

            engine.init_metadata_source_if_not_exists(enable_upgrade_migration=True)

            assert engine.get_schema_version() == version
            engine.upgrade_verification(version)

    def test_migrate_from_v0_in_one_call(self, executor, config):
        MigrationEngine(executor, config).setup_previous_version_for_upgrade(1)
        engine = MigrationEngine(executor, config)

        engine.init_metadata_source_if_not_exists(enable_upgrade_migration=True)

        assert engine.get_schema_version() == LIBRARY_VERSION
        store = MetadataAccessObject(executor, config)
        with store.transaction():
            [artifact] = store.find_artifacts()
            assert artifact.uri == "artifact_uri_v0"
            artifact_type = store.find_type_by_id(artifact.type_id, TypeKind.ARTIFACT)
            assert artifact_type.name == "artifact_type_v0"
            store.find_type_by_name("execution_type_v0", TypeKind.EXECUTION)

    def test_setups_in_sequence_then_one_migration(self, executor, config):
        engine = MigrationEngine(executor, config)
        for version in range(1, LIBRARY_VERSION + 1):
            engine.setup_previous_version_for_upgrade(version)
        assert engine.get_schema_version() == LIBRARY_VERSION - 1

        engine.init_metadata_source_if_not_exists(enable_upgrade_migration=True)

        assert engine.get_schema_version() == LIBRARY_VERSION
        engine.upgrade_verification(LIBRARY_VERSION)

    def test_failed_step_leaves_previous_version(self, engine, executor, config):
        engine.init_metadata_source_if_not_exists()
        engine.downgrade_metadata_source(LIBRARY_VERSION - 1)

        broken = config.model_copy(deep=True)
        broken.migration_schemes[LIBRARY_VERSION].upgrade_queries.append(
            "SELECT * FROM `NoSuchTable`;"
        )
        broken_engine = MigrationEngine(executor, broken)

        with pytest.raises(MetadataStoreError) as exc_info:
            broken_engine.init_metadata_source_if_not_exists(
                enable_upgrade_migration=True
            )

        assert exc_info.value.code == ErrorCode.INTERNAL
        assert broken_engine.get_schema_version() == LIBRARY_VERSION - 1
        with executor.transaction():
            indexes = executor.execute(
                "SELECT count(*) FROM sqlite_master WHERE type = 'index' "
                "AND name LIKE 'idx%'"
            )
        assert indexes.scalar() == 0


class TestDowngrade:
    """Tests for stepwise downgrades."""

    def test_downgrade_to_v0_one_version_at_a_time(self, engine):
        engine.init_metadata_source_if_not_exists()

        for version in range(LIBRARY_VERSION, 0, -1):
            assert engine.has_downgrade_verification(version)
            engine.setup_previous_version_for_downgrade(version)

            engine.downgrade_metadata_source(version - 1)

            engine.downgrade_verification(version)
            assert engine.get_schema_version() == version - 1

    def test_round_trip_keeps_data(self, executor, config):
        store = MetadataAccessObject(executor, config)
        store.init_metadata_source_if_not_exists()
        with store.transaction():
            type_id = store.create_type(ArtifactType(name="survivor"))

        store.downgrade_metadata_source(0)
        store.init_metadata_source_if_not_exists(enable_upgrade_migration=True)

        assert store.get_schema_version() == LIBRARY_VERSION
        with store.transaction():
            assert store.find_type_by_name("survivor", TypeKind.ARTIFACT).id == type_id

    def test_empty_store_is_invalid(self, engine):
        with pytest.raises(MetadataStoreError) as exc_info:
            engine.downgrade_metadata_source(0)

        assert exc_info.value.code == ErrorCode.INVALID_ARGUMENT

    @pytest.mark.parametrize("target", [-1, LIBRARY_VERSION, LIBRARY_VERSION + 1])
    def test_bad_target_is_invalid(self, engine, target):
        engine.init_metadata_source_if_not_exists()

        with pytest.raises(MetadataStoreError) as exc_info:
            engine.downgrade_metadata_source(target)

        assert exc_info.value.code == ErrorCode.INVALID_ARGUMENT
        assert engine.get_schema_version() == LIBRARY_VERSION


class TestVerification:
    """Tests for the verification fixture helpers."""

    def test_failing_check_is_internal(self, engine):
        engine.init_metadata_source_if_not_exists()

        # the v1 upgrade check expects schema_version = 1
        with pytest.raises(MetadataStoreError) as exc_info:
            engine.upgrade_verification(1)

        assert exc_info.value.code == ErrorCode.INTERNAL
        assert exc_info.value.query is not None

    def test_unknown_version_has_no_verification(self, engine):
        assert not engine.has_upgrade_verification(LIBRARY_VERSION + 1)
        assert not engine.has_downgrade_verification(0)

        with pytest.raises(MetadataStoreError) as exc_info:
            engine.setup_previous_version_for_upgrade(LIBRARY_VERSION + 1)

        assert exc_info.value.code == ErrorCode.NOT_FOUND

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (1, True),
            (0, False),
            ("true", True),
            ("False", False),
            ("t", True),
            ("f", False),
            ("yes", True),
            ("no", False),
            ("Y", True),
            ("n", False),
        ],
    )
    def test_parse_bool(self, raw, expected):
        assert parse_bool(raw) is expected

    def test_parse_bool_rejects_other_values(self):
        with pytest.raises(ValueError):
            parse_bool("maybe")
