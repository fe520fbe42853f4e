"""
Schema Migration Engine.

Brings a metadata source to the library schema version. The version lives in
the single-row ``MLMDEnv`` table; a store holding the legacy tables without
``MLMDEnv`` is at version 0.

Upgrades and downgrades move one version per step. Each step runs its
scheme's queries and records the new version inside its own transaction, so
a failed step leaves the store at the last completed version.
"""

from contextlib import contextmanager
from typing import Any, Generator, List, Optional, Set

import structlog

from ..db.executor import QueryExecutor
from ..db.query_config import MetadataSourceQueryConfig, MigrationVerification
from ..errors import (
    aborted,
    failed_precondition,
    internal,
    invalid_argument,
    not_found,
)

logger = structlog.get_logger()

SCHEMA_VERSION_TABLE = "MLMDEnv"

_TRUE_STRINGS = {"1", "t", "true", "y", "yes"}
_FALSE_STRINGS = {"0", "f", "false", "n", "no"}


def parse_bool(value: Any) -> bool:
    """Read a verification result as a boolean."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"Not a boolean value: {value!r}")


class MigrationEngine:
    """Creates, upgrades and downgrades the schema of one metadata source.

    ``library_version`` is the version this process expects; it defaults to
    the config's schema version and may be lower, never higher.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        config: MetadataSourceQueryConfig,
        library_version: Optional[int] = None,
    ):
        if library_version is None:
            library_version = config.schema_version
        if not 0 <= library_version <= config.schema_version:
            raise invalid_argument(
                f"Library version {library_version} is outside the supported "
                f"range 0..{config.schema_version}"
            )
        self.executor = executor
        self.config = config
        self.library_version = library_version
        self.logger = logger.bind(
            metadata_source_type=config.metadata_source_type,
            library_version=library_version,
        )

    def get_library_version(self) -> int:
        return self.library_version

    def get_schema_version(self) -> int:
        """Stored schema version; NOT_FOUND on an empty store."""
        with self._ambient_transaction():
            tables = self._existing_tables()
            if not tables:
                raise not_found("The metadata source is empty")
            return self._read_schema_version(tables)

    def init_metadata_source(self) -> None:
        """Drop every known table and create the schema from scratch."""
        with self.executor.transaction():
            self.executor.execute_all(self.config.drop_queries)
            self._create_schema()
        self.logger.info("metadata_source_reset")
        self._step_down_to_library_version()

    def init_metadata_source_if_not_exists(
        self, enable_upgrade_migration: bool = False
    ) -> None:
        """Create the schema on an empty store, else check or upgrade it."""
        with self.executor.transaction():
            tables = self._existing_tables()
            if not tables:
                self._create_schema()
                created = True
            else:
                created = False
                current = self._read_schema_version(tables)

        if created:
            self.logger.info("metadata_source_created")
            self._step_down_to_library_version()
            return

        if current > self.library_version:
            raise failed_precondition(
                f"Schema version {current} of the metadata source is newer than "
                f"the library version {self.library_version}; upgrade the library"
            )
        missing = sorted(self.config.tables_at(current) - tables)
        if missing:
            raise aborted(
                f"Metadata source at schema version {current} is missing "
                f"tables: {', '.join(missing)}"
            )
        if current == self.library_version:
            self.logger.debug("metadata_source_current", schema_version=current)
            return
        if not enable_upgrade_migration:
            raise failed_precondition(
                f"Schema version {current} of the metadata source is older than "
                f"the library version {self.library_version}; enable upgrade "
                "migration to continue"
            )

        for version in range(current + 1, self.library_version + 1):
            self._upgrade_step(version)
        self.logger.info(
            "schema_upgrade_completed",
            from_version=current,
            to_version=self.library_version,
        )

    def downgrade_metadata_source(self, to_schema_version: int) -> None:
        """Step the schema back to ``to_schema_version``."""
        if to_schema_version < 0:
            raise invalid_argument(
                f"Cannot downgrade to a negative schema version ({to_schema_version})"
            )
        with self.executor.transaction():
            tables = self._existing_tables()
            if not tables:
                raise invalid_argument("Cannot downgrade an empty metadata source")
            current = self._read_schema_version(tables)

        if current > self.library_version:
            raise failed_precondition(
                f"Schema version {current} is newer than the library version "
                f"{self.library_version}"
            )
        if to_schema_version >= current:
            raise invalid_argument(
                f"Downgrade target {to_schema_version} must be below the current "
                f"schema version {current}"
            )
        for version in range(current, to_schema_version, -1):
            self._downgrade_step(version)
        self.logger.info(
            "schema_downgrade_completed",
            from_version=current,
            to_version=to_schema_version,
        )

    # verification fixtures

    def has_upgrade_verification(self, version: int) -> bool:
        return self._verification(version, upgrade=True) is not None

    def has_downgrade_verification(self, version: int) -> bool:
        return self._verification(version, upgrade=False) is not None

    def setup_previous_version_for_upgrade(self, version: int) -> None:
        """Reset the store to the version ``version - 1`` state the check expects."""
        self._run_setup(self._require_verification(version, upgrade=True))

    def setup_previous_version_for_downgrade(self, version: int) -> None:
        """Build the version ``version`` state the downgrade check expects."""
        self._run_setup(self._require_verification(version, upgrade=False))

    def upgrade_verification(self, version: int) -> None:
        """Check the state after upgrading to ``version``; INTERNAL on failure."""
        self._run_checks(self._require_verification(version, upgrade=True))

    def downgrade_verification(self, version: int) -> None:
        """Check the state after downgrading from ``version``; INTERNAL on failure."""
        self._run_checks(self._require_verification(version, upgrade=False))

    # internals

    @contextmanager
    def _ambient_transaction(self) -> Generator[None, None, None]:
        if self.executor.in_transaction:
            yield
        else:
            with self.executor.transaction():
                yield

    def _existing_tables(self) -> Set[str]:
        """Known tables present in the store; unrelated tables are ignored."""
        records = self.executor.execute(self.config.query("list_tables"))
        present = {str(record[0]) for record in records}
        return present & self.config.known_tables()

    def _read_schema_version(self, tables: Set[str]) -> int:
        if SCHEMA_VERSION_TABLE not in tables:
            return 0
        records = self.executor.execute(self.config.query("select_schema_version"))
        if len(records) != 1:
            raise aborted(
                f"{SCHEMA_VERSION_TABLE} should hold exactly one row, "
                f"found {len(records)}"
            )
        return int(records.scalar())

    def _create_schema(self) -> None:
        self.executor.execute_all(self.config.create_queries)
        self.executor.execute(
            self.config.query("insert_schema_version"),
            {"version": self.config.schema_version},
        )

    def _step_down_to_library_version(self) -> None:
        for version in range(self.config.schema_version, self.library_version, -1):
            self._downgrade_step(version)

    def _upgrade_step(self, version: int) -> None:
        scheme = self.config.migration_scheme(version)
        with self.executor.transaction():
            self.executor.execute_all(scheme.upgrade_queries)
            self._write_schema_version(version)
        self.logger.info("schema_upgrade_step_applied", schema_version=version)

    def _downgrade_step(self, version: int) -> None:
        """Move from ``version`` to ``version - 1``."""
        scheme = self.config.migration_scheme(version)
        with self.executor.transaction():
            self.executor.execute_all(scheme.downgrade_queries)
            # below version 1 there is no MLMDEnv table to write to
            if version - 1 > 0:
                self._write_schema_version(version - 1)
        self.logger.info("schema_downgrade_step_applied", schema_version=version - 1)

    def _write_schema_version(self, version: int) -> None:
        self.executor.execute(
            self.config.query("update_schema_version"), {"version": version}
        )

    def _verification(
        self, version: int, upgrade: bool
    ) -> Optional[MigrationVerification]:
        scheme = self.config.migration_schemes.get(version)
        if scheme is None:
            return None
        return scheme.upgrade_verification if upgrade else scheme.downgrade_verification

    def _require_verification(
        self, version: int, upgrade: bool
    ) -> MigrationVerification:
        self.config.migration_scheme(version)
        verification = self._verification(version, upgrade)
        if verification is None:
            direction = "upgrade" if upgrade else "downgrade"
            raise not_found(f"No {direction} verification for version {version}")
        return verification

    def _run_setup(self, verification: MigrationVerification) -> None:
        with self._ambient_transaction():
            self.executor.execute_all(verification.previous_version_setup_queries)

    def _run_checks(self, verification: MigrationVerification) -> None:
        failed: List[str] = []
        with self._ambient_transaction():
            for query in verification.post_migration_verification_queries:
                records = self.executor.execute(query)
                if len(records) != 1 or not records.records[0]:
                    raise internal("Verification query returned no result", query=query)
                try:
                    passed = parse_bool(records.scalar())
                except ValueError as exc:
                    raise internal(f"Verification failed: {exc}", query=query) from exc
                if not passed:
                    failed.append(query)
        if failed:
            raise internal("Verification failed", query=failed[0])
