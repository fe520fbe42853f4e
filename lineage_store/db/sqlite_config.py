"""
SQLite query configuration.

Schema history:
    v0  untracked layout: Type.is_artifact_type, artifacts, executions, events
    v1  MLMDEnv table holds the schema version
    v2  Type.type_kind replaces is_artifact_type; contexts, associations,
        attributions
    v3  lookup indexes
"""

from typing import Dict, List

from .query_config import (
    MetadataSourceQueryConfig,
    MigrationScheme,
    MigrationVerification,
)

LIBRARY_VERSION = 3

_V0_TABLES = [
    "Type",
    "TypeProperty",
    "Artifact",
    "ArtifactProperty",
    "Execution",
    "ExecutionProperty",
    "Event",
    "EventPath",
]
_V1_TABLES = _V0_TABLES + ["MLMDEnv"]
_V2_TABLES = _V1_TABLES + ["Context", "ContextProperty", "Association", "Attribution"]


def _node_property_table(table: str, fk: str) -> str:
    return (
        f"CREATE TABLE IF NOT EXISTS `{table}Property` ( "
        f"  `{fk}` INT NOT NULL, "
        "  `name` VARCHAR(255) NOT NULL, "
        "  `is_custom_property` TINYINT(1) NOT NULL, "
        "  `int_value` INT, "
        "  `double_value` DOUBLE, "
        "  `string_value` TEXT, "
        f"  PRIMARY KEY (`{fk}`, `name`, `is_custom_property`) "
        ");"
    )


def _type_table(table: str, kind_column: str) -> str:
    return (
        f"CREATE TABLE IF NOT EXISTS `{table}` ( "
        "  `id` INTEGER PRIMARY KEY AUTOINCREMENT, "
        "  `name` VARCHAR(255) NOT NULL, "
        f"  `{kind_column}` TINYINT(1) NOT NULL, "
        "  `input_type` TEXT, "
        "  `output_type` TEXT "
        ");"
    )


_CREATE_TYPE_PROPERTY = (
    "CREATE TABLE IF NOT EXISTS `TypeProperty` ( "
    "  `type_id` INT NOT NULL, "
    "  `name` VARCHAR(255) NOT NULL, "
    "  `data_type` INT NULL, "
    "  PRIMARY KEY (`type_id`, `name`) "
    ");"
)

_CREATE_ARTIFACT = (
    "CREATE TABLE IF NOT EXISTS `Artifact` ( "
    "  `id` INTEGER PRIMARY KEY AUTOINCREMENT, "
    "  `type_id` INT NOT NULL, "
    "  `uri` TEXT "
    ");"
)

_CREATE_EXECUTION = (
    "CREATE TABLE IF NOT EXISTS `Execution` ( "
    "  `id` INTEGER PRIMARY KEY AUTOINCREMENT, "
    "  `type_id` INT NOT NULL "
    ");"
)

_CREATE_EVENT = (
    "CREATE TABLE IF NOT EXISTS `Event` ( "
    "  `id` INTEGER PRIMARY KEY AUTOINCREMENT, "
    "  `artifact_id` INT NOT NULL, "
    "  `execution_id` INT NOT NULL, "
    "  `type` INT NOT NULL, "
    "  `milliseconds_since_epoch` INT "
    ");"
)

_CREATE_EVENT_PATH = (
    "CREATE TABLE IF NOT EXISTS `EventPath` ( "
    "  `event_id` INT NOT NULL, "
    "  `is_index_step` TINYINT(1) NOT NULL, "
    "  `step_index` INT, "
    "  `step_key` TEXT "
    ");"
)

_CREATE_MLMD_ENV = (
    "CREATE TABLE IF NOT EXISTS `MLMDEnv` ( "
    "  `schema_version` INTEGER PRIMARY KEY "
    ");"
)

_CREATE_CONTEXT = (
    "CREATE TABLE IF NOT EXISTS `Context` ( "
    "  `id` INTEGER PRIMARY KEY AUTOINCREMENT, "
    "  `type_id` INT NOT NULL, "
    "  `name` VARCHAR(255) NOT NULL, "
    "  UNIQUE(`type_id`, `name`) "
    ");"
)

_CREATE_ASSOCIATION = (
    "CREATE TABLE IF NOT EXISTS `Association` ( "
    "  `id` INTEGER PRIMARY KEY AUTOINCREMENT, "
    "  `context_id` INT NOT NULL, "
    "  `execution_id` INT NOT NULL, "
    "  UNIQUE(`context_id`, `execution_id`) "
    ");"
)

_CREATE_ATTRIBUTION = (
    "CREATE TABLE IF NOT EXISTS `Attribution` ( "
    "  `id` INTEGER PRIMARY KEY AUTOINCREMENT, "
    "  `context_id` INT NOT NULL, "
    "  `artifact_id` INT NOT NULL, "
    "  UNIQUE(`context_id`, `artifact_id`) "
    ");"
)

_V0_SCHEMA = [
    _type_table("Type", "is_artifact_type"),
    _CREATE_TYPE_PROPERTY,
    _CREATE_ARTIFACT,
    _node_property_table("Artifact", "artifact_id"),
    _CREATE_EXECUTION,
    _node_property_table("Execution", "execution_id"),
    _CREATE_EVENT,
    _CREATE_EVENT_PATH,
]

_CONTEXT_SCHEMA = [
    _CREATE_CONTEXT,
    _node_property_table("Context", "context_id"),
    _CREATE_ASSOCIATION,
    _CREATE_ATTRIBUTION,
]

_V1_SCHEMA = _V0_SCHEMA + [_CREATE_MLMD_ENV]
_V2_SCHEMA = (
    [_type_table("Type", "type_kind")]
    + _V0_SCHEMA[1:]
    + [_CREATE_MLMD_ENV]
    + _CONTEXT_SCHEMA
)
_SCHEMA_AT = {0: _V0_SCHEMA, 1: _V1_SCHEMA, 2: _V2_SCHEMA}

_DROP_TABLES = [
    f"DROP TABLE IF EXISTS `{table}`;" for table in _V2_TABLES + ["TypeTemp"]
]

_INDEXES = {
    "idx_type_name": "`Type`(`name`)",
    "idx_artifact_uri": "`Artifact`(`uri`)",
    "idx_artifact_type_id": "`Artifact`(`type_id`)",
    "idx_execution_type_id": "`Execution`(`type_id`)",
    "idx_context_type_id": "`Context`(`type_id`)",
    "idx_event_artifact_id": "`Event`(`artifact_id`)",
    "idx_event_execution_id": "`Event`(`execution_id`)",
    "idx_eventpath_event_id": "`EventPath`(`event_id`)",
}

_CREATE_INDEXES = [
    f"CREATE INDEX IF NOT EXISTS `{name}` ON {target};"
    for name, target in _INDEXES.items()
]
_DROP_INDEXES = [f"DROP INDEX IF EXISTS `{name}`;" for name in _INDEXES]


def _rebuild_type_table(from_column: str, to_column: str, where: str = "") -> List[str]:
    """Copy Type into a table with a renamed kind column, keeping ids."""
    return [
        _type_table("TypeTemp", to_column),
        "INSERT INTO `TypeTemp` (`id`, `name`, "
        f"`{to_column}`, `input_type`, `output_type`) "
        f"SELECT `id`, `name`, `{from_column}`, `input_type`, `output_type` "
        f"FROM `Type` {where};",
        "DROP TABLE `Type`;",
        "ALTER TABLE `TypeTemp` RENAME TO `Type`;",
    ]


def _fresh_state(version: int) -> List[str]:
    """Replace whatever the store holds with an empty layout at `version`."""
    queries = _DROP_TABLES + _SCHEMA_AT[version]
    if version > 0:
        queries = queries + [
            f"INSERT INTO `MLMDEnv` (`schema_version`) VALUES ({version});"
        ]
    return queries


def _schemes() -> Dict[int, MigrationScheme]:
    v1 = MigrationScheme(
        upgrade_queries=[
            _CREATE_MLMD_ENV,
            "INSERT INTO `MLMDEnv` (`schema_version`) VALUES (0);",
        ],
        downgrade_queries=["DROP TABLE IF EXISTS `MLMDEnv`;"],
        upgrade_verification=MigrationVerification(
            previous_version_setup_queries=_fresh_state(0)
            + [
                "INSERT INTO `Type` (`name`, `is_artifact_type`) "
                "VALUES ('artifact_type_v0', 1);",
                "INSERT INTO `Type` (`name`, `is_artifact_type`) "
                "VALUES ('execution_type_v0', 0);",
                "INSERT INTO `Artifact` (`type_id`, `uri`) "
                "SELECT `id`, 'artifact_uri_v0' FROM `Type` "
                "WHERE `name` = 'artifact_type_v0';",
            ],
            post_migration_verification_queries=[
                "SELECT count(*) = 1 FROM `MLMDEnv` WHERE `schema_version` = 1;",
                "SELECT count(*) = 1 FROM `Artifact` WHERE `uri` = 'artifact_uri_v0';",
                "SELECT count(*) = 2 FROM `Type` "
                "WHERE `name` IN ('artifact_type_v0', 'execution_type_v0');",
            ],
        ),
        downgrade_verification=MigrationVerification(
            previous_version_setup_queries=[
                "INSERT INTO `Type` (`name`, `is_artifact_type`) "
                "VALUES ('execution_type_v1', 0);",
            ],
            post_migration_verification_queries=[
                "SELECT count(*) = 0 FROM `sqlite_master` "
                "WHERE `type` = 'table' AND `name` = 'MLMDEnv';",
                "SELECT count(*) = 1 FROM `Type` WHERE `name` = 'execution_type_v1' "
                "AND `is_artifact_type` = 0;",
            ],
        ),
        tables=_V1_TABLES,
    )

    v2 = MigrationScheme(
        upgrade_queries=_rebuild_type_table("is_artifact_type", "type_kind")
        + _CONTEXT_SCHEMA,
        downgrade_queries=[
            "DELETE FROM `TypeProperty` WHERE `type_id` IN "
            "(SELECT `id` FROM `Type` WHERE `type_kind` = 2);",
        ]
        + _rebuild_type_table(
            "type_kind", "is_artifact_type", where="WHERE `type_kind` IN (0, 1)"
        )
        + [
            "DROP TABLE IF EXISTS `Context`;",
            "DROP TABLE IF EXISTS `ContextProperty`;",
            "DROP TABLE IF EXISTS `Association`;",
            "DROP TABLE IF EXISTS `Attribution`;",
        ],
        upgrade_verification=MigrationVerification(
            previous_version_setup_queries=_fresh_state(1)
            + [
                "INSERT INTO `Type` (`name`, `is_artifact_type`) "
                "VALUES ('artifact_type_v1', 1);",
                "INSERT INTO `Type` (`name`, `is_artifact_type`) "
                "VALUES ('execution_type_v1', 0);",
                "INSERT INTO `TypeProperty` (`type_id`, `name`, `data_type`) "
                "SELECT `id`, 'p1', 1 FROM `Type` WHERE `name` = 'artifact_type_v1';",
            ],
            post_migration_verification_queries=[
                "SELECT count(*) = 1 FROM `Type` "
                "WHERE `name` = 'artifact_type_v1' AND `type_kind` = 1;",
                "SELECT count(*) = 1 FROM `Type` "
                "WHERE `name` = 'execution_type_v1' AND `type_kind` = 0;",
                "SELECT count(*) = 1 FROM `TypeProperty` AS tp "
                "JOIN `Type` AS t ON tp.`type_id` = t.`id` "
                "WHERE t.`name` = 'artifact_type_v1' AND tp.`name` = 'p1';",
                "SELECT count(*) = 0 FROM `Context`;",
            ],
        ),
        downgrade_verification=MigrationVerification(
            previous_version_setup_queries=[
                "INSERT INTO `Type` (`name`, `type_kind`) "
                "VALUES ('artifact_type_v2', 1);",
                "INSERT INTO `Type` (`name`, `type_kind`) "
                "VALUES ('context_type_v2', 2);",
                "INSERT INTO `TypeProperty` (`type_id`, `name`, `data_type`) "
                "SELECT `id`, 'p1', 3 FROM `Type` WHERE `name` = 'context_type_v2';",
                "INSERT INTO `Context` (`type_id`, `name`) "
                "SELECT `id`, 'context_v2' FROM `Type` WHERE `name` = 'context_type_v2';",
            ],
            post_migration_verification_queries=[
                "SELECT count(*) = 1 FROM `Type` "
                "WHERE `name` = 'artifact_type_v2' AND `is_artifact_type` = 1;",
                "SELECT count(*) = 0 FROM `Type` WHERE `name` = 'context_type_v2';",
                "SELECT count(*) = 0 FROM `TypeProperty` "
                "WHERE `type_id` NOT IN (SELECT `id` FROM `Type`);",
                "SELECT count(*) = 0 FROM `sqlite_master` WHERE `type` = 'table' "
                "AND `name` IN ('Context', 'ContextProperty', 'Association', "
                "'Attribution');",
            ],
        ),
        tables=_V2_TABLES,
    )

    v3 = MigrationScheme(
        upgrade_queries=list(_CREATE_INDEXES),
        downgrade_queries=list(_DROP_INDEXES),
        upgrade_verification=MigrationVerification(
            previous_version_setup_queries=_fresh_state(2)
            + [
                "INSERT INTO `Type` (`name`, `type_kind`) "
                "VALUES ('context_type_v2', 2);",
                "INSERT INTO `Context` (`type_id`, `name`) "
                "SELECT `id`, 'context_v2' FROM `Type` WHERE `name` = 'context_type_v2';",
            ],
            post_migration_verification_queries=[
                "SELECT count(*) = 1 FROM `sqlite_master` "
                "WHERE `type` = 'index' AND `name` = 'idx_artifact_uri';",
                "SELECT count(*) = 1 FROM `sqlite_master` "
                "WHERE `type` = 'index' AND `name` = 'idx_event_artifact_id';",
                "SELECT count(*) = 1 FROM `Context` WHERE `name` = 'context_v2';",
            ],
        ),
        downgrade_verification=MigrationVerification(
            previous_version_setup_queries=[
                "INSERT INTO `Type` (`name`, `type_kind`) "
                "VALUES ('artifact_type_v3', 1);",
                "INSERT INTO `Artifact` (`type_id`, `uri`) "
                "SELECT `id`, 'artifact_uri_v3' FROM `Type` "
                "WHERE `name` = 'artifact_type_v3';",
            ],
            post_migration_verification_queries=[
                "SELECT count(*) = 0 FROM `sqlite_master` "
                "WHERE `type` = 'index' AND `name` LIKE 'idx%';",
                "SELECT count(*) = 1 FROM `Artifact` WHERE `uri` = 'artifact_uri_v3';",
            ],
        ),
        tables=_V2_TABLES,
    )

    return {1: v1, 2: v2, 3: v3}


def _node_queries(kind: str, table: str, columns: List[str]) -> Dict[str, str]:
    """Templates for one node table and its property table."""
    fk = f"{kind}_id"
    select_columns = ", ".join(f"`{column}`" for column in ["id", "type_id"] + columns)
    insert_columns = ", ".join(f"`{column}`" for column in ["type_id"] + columns)
    insert_values = ", ".join(f":{column}" for column in ["type_id"] + columns)
    plural = f"{kind}s"

    queries = {
        f"insert_{kind}": (
            f"INSERT INTO `{table}` ({insert_columns}) VALUES ({insert_values});"
        ),
        f"select_{kind}_by_id": (
            f"SELECT {select_columns} FROM `{table}` WHERE `id` = :id;"
        ),
        f"select_{plural}": f"SELECT {select_columns} FROM `{table}` ORDER BY `id`;",
        f"select_{plural}_by_type_id": (
            f"SELECT {select_columns} FROM `{table}` "
            "WHERE `type_id` = :type_id ORDER BY `id`;"
        ),
        f"insert_{kind}_property": (
            f"INSERT INTO `{table}Property` (`{fk}`, `name`, `is_custom_property`, "
            "`int_value`, `double_value`, `string_value`) "
            "VALUES (:node_id, :name, :is_custom_property, "
            ":int_value, :double_value, :string_value);"
        ),
        f"select_{kind}_properties": (
            "SELECT `name`, `is_custom_property`, `int_value`, `double_value`, "
            f"`string_value` FROM `{table}Property` WHERE `{fk}` = :node_id;"
        ),
        f"delete_{kind}_properties": (
            f"DELETE FROM `{table}Property` WHERE `{fk}` = :node_id;"
        ),
    }
    if columns:
        assignments = ", ".join(f"`{column}` = :{column}" for column in columns)
        queries[f"update_{kind}"] = (
            f"UPDATE `{table}` SET {assignments} WHERE `id` = :id;"
        )
    return queries


def _access_queries() -> Dict[str, str]:
    queries = {
        # schema bookkeeping
        "list_tables": "SELECT `name` FROM `sqlite_master` WHERE `type` = 'table';",
        "select_last_insert_id": "SELECT last_insert_rowid();",
        "select_schema_version": "SELECT `schema_version` FROM `MLMDEnv`;",
        "insert_schema_version": (
            "INSERT INTO `MLMDEnv` (`schema_version`) VALUES (:version);"
        ),
        "update_schema_version": "UPDATE `MLMDEnv` SET `schema_version` = :version;",
        # types
        "insert_type": (
            "INSERT INTO `Type` (`name`, `type_kind`, `input_type`, `output_type`) "
            "VALUES (:name, :type_kind, :input_type, :output_type);"
        ),
        "select_type_by_id": (
            "SELECT `id`, `name`, `input_type`, `output_type` FROM `Type` "
            "WHERE `id` = :id AND `type_kind` = :type_kind;"
        ),
        "select_type_by_name": (
            "SELECT `id`, `name`, `input_type`, `output_type` FROM `Type` "
            "WHERE `name` = :name AND `type_kind` = :type_kind "
            "ORDER BY `id` LIMIT 1;"
        ),
        "select_types_by_kind": (
            "SELECT `id`, `name`, `input_type`, `output_type` FROM `Type` "
            "WHERE `type_kind` = :type_kind ORDER BY `id`;"
        ),
        "insert_type_property": (
            "INSERT INTO `TypeProperty` (`type_id`, `name`, `data_type`) "
            "VALUES (:type_id, :name, :data_type);"
        ),
        "select_type_properties": (
            "SELECT `name`, `data_type` FROM `TypeProperty` WHERE `type_id` = :type_id;"
        ),
        # nodes
        "select_artifacts_by_uri": (
            "SELECT `id`, `type_id`, `uri` FROM `Artifact` "
            "WHERE `uri` = :uri ORDER BY `id`;"
        ),
        "select_context_by_type_id_and_name": (
            "SELECT `id`, `type_id`, `name` FROM `Context` "
            "WHERE `type_id` = :type_id AND `name` = :name;"
        ),
        # events
        "insert_event": (
            "INSERT INTO `Event` (`artifact_id`, `execution_id`, `type`, "
            "`milliseconds_since_epoch`) "
            "VALUES (:artifact_id, :execution_id, :type, :milliseconds_since_epoch);"
        ),
        "insert_event_path": (
            "INSERT INTO `EventPath` (`event_id`, `is_index_step`, `step_index`, "
            "`step_key`) VALUES (:event_id, :is_index_step, :step_index, :step_key);"
        ),
        "select_events_by_artifact_id": (
            "SELECT `id`, `artifact_id`, `execution_id`, `type`, "
            "`milliseconds_since_epoch` FROM `Event` "
            "WHERE `artifact_id` = :artifact_id ORDER BY `id`;"
        ),
        "select_events_by_execution_id": (
            "SELECT `id`, `artifact_id`, `execution_id`, `type`, "
            "`milliseconds_since_epoch` FROM `Event` "
            "WHERE `execution_id` = :execution_id ORDER BY `id`;"
        ),
        "select_event_path": (
            "SELECT `is_index_step`, `step_index`, `step_key` FROM `EventPath` "
            "WHERE `event_id` = :event_id ORDER BY `rowid`;"
        ),
        # associations and attributions
        "insert_association": (
            "INSERT INTO `Association` (`context_id`, `execution_id`) "
            "VALUES (:context_id, :execution_id);"
        ),
        "select_association_by_pair": (
            "SELECT `id` FROM `Association` "
            "WHERE `context_id` = :context_id AND `execution_id` = :execution_id;"
        ),
        "insert_attribution": (
            "INSERT INTO `Attribution` (`context_id`, `artifact_id`) "
            "VALUES (:context_id, :artifact_id);"
        ),
        "select_attribution_by_pair": (
            "SELECT `id` FROM `Attribution` "
            "WHERE `context_id` = :context_id AND `artifact_id` = :artifact_id;"
        ),
        "select_contexts_by_execution_id": (
            "SELECT c.`id`, c.`type_id`, c.`name` FROM `Context` AS c "
            "JOIN `Association` AS a ON a.`context_id` = c.`id` "
            "WHERE a.`execution_id` = :execution_id ORDER BY a.`id`;"
        ),
        "select_contexts_by_artifact_id": (
            "SELECT c.`id`, c.`type_id`, c.`name` FROM `Context` AS c "
            "JOIN `Attribution` AS a ON a.`context_id` = c.`id` "
            "WHERE a.`artifact_id` = :artifact_id ORDER BY a.`id`;"
        ),
        "select_executions_by_context_id": (
            "SELECT e.`id`, e.`type_id` FROM `Execution` AS e "
            "JOIN `Association` AS a ON a.`execution_id` = e.`id` "
            "WHERE a.`context_id` = :context_id ORDER BY a.`id`;"
        ),
        "select_artifacts_by_context_id": (
            "SELECT t.`id`, t.`type_id`, t.`uri` FROM `Artifact` AS t "
            "JOIN `Attribution` AS a ON a.`artifact_id` = t.`id` "
            "WHERE a.`context_id` = :context_id ORDER BY a.`id`;"
        ),
    }
    queries.update(_node_queries("artifact", "Artifact", ["uri"]))
    queries.update(_node_queries("execution", "Execution", []))
    queries.update(_node_queries("context", "Context", ["name"]))
    return queries


def build_sqlite_query_config() -> MetadataSourceQueryConfig:
    """Build the SQLite configuration at LIBRARY_VERSION."""
    create_queries = _V2_SCHEMA + _CREATE_INDEXES
    return MetadataSourceQueryConfig(
        metadata_source_type="sqlite",
        schema_version=LIBRARY_VERSION,
        legacy_tables=_V0_TABLES,
        create_queries=create_queries,
        drop_queries=list(_DROP_TABLES),
        queries=_access_queries(),
        migration_schemes=_schemes(),
    )
