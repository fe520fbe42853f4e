"""Database engine setup for the lineage store."""

from typing import Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine.url import make_url
from sqlalchemy.pool import StaticPool

from ..config import get_settings
from ..errors import invalid_argument


def get_database_url(raw_url: Optional[str] = None) -> str:
    """Resolve the store URL, falling back to the configured one.

    The bundled queries are written for SQLite, so any other backend is
    rejected with INVALID_ARGUMENT. Async SQLite drivers map to pysqlite.
    """

    url = make_url(raw_url or get_settings().database_url)
    if url.get_backend_name() != "sqlite":
        raise invalid_argument(
            f"Unsupported database backend {url.get_backend_name()!r}; "
            "the lineage store runs on SQLite"
        )
    if url.drivername != "sqlite":
        url = url.set(drivername="sqlite")
    return url.render_as_string(hide_password=False)


def _enable_sqlite_transactional_ddl(engine: Engine) -> None:
    """Let BEGIN cover DDL too, so a migration step rolls back as one unit."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # stop pysqlite from issuing its own BEGIN and the implicit COMMIT
        # before DDL statements
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_store_engine(raw_url: Optional[str] = None) -> Engine:
    """Create a SQLite engine for the given (or configured) database URL."""

    # A single shared connection; also keeps :memory: databases alive
    engine = create_engine(
        get_database_url(raw_url),
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _enable_sqlite_transactional_ddl(engine)
    return engine
