"""
Declarative query configuration for one backend.

A MetadataSourceQueryConfig bundles everything backend-specific:

- named query templates used by the access layer (``:name`` bind params)
- the statements that create or drop the schema at the library version
- the ordered migration scheme table, one entry per schema version

The config is built once at startup and handed to the access object and the
migration engine. Nothing here talks to a database.
"""

from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..errors import internal, not_found


class MigrationVerification(BaseModel):
    """Fixture for checking one migration step.

    ``previous_version_setup_queries`` build a state at the source version;
    each of ``post_migration_verification_queries`` must return exactly one
    row whose single value reads as true once the step has run.
    """

    model_config = ConfigDict(extra="forbid")

    previous_version_setup_queries: List[str] = Field(default_factory=list)
    post_migration_verification_queries: List[str] = Field(default_factory=list)


class MigrationScheme(BaseModel):
    """Queries moving the schema between ``v - 1`` and ``v``."""

    model_config = ConfigDict(extra="forbid")

    upgrade_queries: List[str] = Field(
        default_factory=list, description="Transform v - 1 into v"
    )
    downgrade_queries: List[str] = Field(
        default_factory=list, description="Transform v back into v - 1"
    )
    upgrade_verification: Optional[MigrationVerification] = None
    downgrade_verification: Optional[MigrationVerification] = None
    tables: List[str] = Field(
        default_factory=list, description="Every table expected at version v"
    )


class MetadataSourceQueryConfig(BaseModel):
    """All queries the store needs for one backend."""

    model_config = ConfigDict(extra="forbid")

    metadata_source_type: str
    schema_version: int = Field(..., ge=0, description="Library schema version")
    legacy_tables: List[str] = Field(
        default_factory=list, description="Tables of the untracked version 0 layout"
    )
    create_queries: List[str] = Field(default_factory=list)
    drop_queries: List[str] = Field(default_factory=list)
    queries: Dict[str, str] = Field(default_factory=dict)
    migration_schemes: Dict[int, MigrationScheme] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_schemes(self) -> "MetadataSourceQueryConfig":
        missing = [
            version
            for version in range(1, self.schema_version + 1)
            if version not in self.migration_schemes
        ]
        if missing:
            raise ValueError(f"Missing migration schemes for versions {missing}")
        return self

    def query(self, name: str) -> str:
        """Return the template registered under ``name``."""
        try:
            return self.queries[name]
        except KeyError:
            raise internal(
                f"No query named {name!r} in the {self.metadata_source_type} config"
            ) from None

    def migration_scheme(self, version: int) -> MigrationScheme:
        if version not in self.migration_schemes:
            raise not_found(f"Could not find migration scheme for version {version}")
        return self.migration_schemes[version]

    def tables_at(self, version: int) -> Set[str]:
        """Tables that must exist for a store at ``version``."""
        if version == 0:
            return set(self.legacy_tables)
        return set(self.migration_scheme(version).tables)

    def known_tables(self) -> Set[str]:
        """Every table any supported version may contain."""
        tables = set(self.legacy_tables)
        for scheme in self.migration_schemes.values():
            tables.update(scheme.tables)
        return tables
