#  pctrl - Migration Runner
#
#  Forward-only schema migrations keyed by an integer version stored in
#  the metadata table. Steps live in a version -> function registry and
#  use the Alembic operations API against one SQLAlchemy connection.
#
#  Each step runs in its own transaction together with the version bump,
#  so a crash leaves the store at the last fully applied version. Steps
#  are idempotent against partially applied schemas.
#
#  Depends on: (none)
#  Used by:    db/connection.py, tests

import logging
from collections.abc import Callable
from pathlib import Path

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Connection

logger = logging.getLogger("pctrl.migrate")

CURRENT_SCHEMA_VERSION = 5

_METADATA_DDL = """
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
)
"""

# Version 1 layout. Later steps reshape it; never edit these in place.
_BASE_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS ssh_connections (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        host TEXT NOT NULL,
        port INTEGER NOT NULL DEFAULT 22,
        username TEXT NOT NULL,
        auth_method TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS docker_hosts (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        url TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS coolify_instances (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        url TEXT NOT NULL,
        api_key TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS git_repos (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        path TEXT NOT NULL,
        remote_url TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS projects (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        stack TEXT,
        status TEXT NOT NULL DEFAULT 'dev',
        color TEXT,
        icon TEXT,
        notes TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS servers (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        host TEXT NOT NULL,
        server_type TEXT NOT NULL DEFAULT 'vps',
        provider TEXT,
        ssh_connection_id TEXT REFERENCES ssh_connections(id),
        location TEXT,
        specs TEXT,
        notes TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS domains (
        id TEXT PRIMARY KEY,
        domain TEXT NOT NULL UNIQUE,
        domain_type TEXT NOT NULL DEFAULT 'production',
        ssl INTEGER NOT NULL DEFAULT 1,
        ssl_expiry TEXT,
        cloudflare_zone_id TEXT,
        cloudflare_record_id TEXT,
        server_id TEXT,
        container_id TEXT,
        notes TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS databases (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        db_type TEXT NOT NULL,
        host TEXT,
        port INTEGER,
        database_name TEXT,
        username TEXT,
        password TEXT,
        connection_string TEXT,
        server_id TEXT,
        container_id TEXT,
        notes TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS scripts (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        command TEXT NOT NULL,
        script_type TEXT NOT NULL DEFAULT 'ssh',
        server_id TEXT,
        project_id TEXT,
        docker_host_id TEXT,
        container_id TEXT,
        dangerous INTEGER NOT NULL DEFAULT 0,
        last_run DATETIME,
        last_result TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS project_resources (
        id TEXT PRIMARY KEY,
        project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
        resource_type TEXT NOT NULL,
        resource_id TEXT NOT NULL,
        role TEXT,
        notes TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

MigrationStep = Callable[[Operations, Connection], None]

MIGRATIONS: dict[int, MigrationStep] = {}


def migration(version: int):
    """Register a step that brings the schema from ``version - 1`` to ``version``."""
    def decorator(fn: MigrationStep) -> MigrationStep:
        if version in MIGRATIONS:
            raise ValueError(f"Duplicate migration for version {version}")
        MIGRATIONS[version] = fn
        return fn
    return decorator


def _has_table(conn: Connection, table: str) -> bool:
    return inspect(conn).has_table(table)


def _column_names(conn: Connection, table: str) -> set[str]:
    return {c["name"] for c in inspect(conn).get_columns(table)}


def _index_names(conn: Connection, table: str) -> set[str]:
    return {ix["name"] for ix in inspect(conn).get_indexes(table)}


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

@migration(2)
def _add_script_run_details(op: Operations, conn: Connection) -> None:
    """Record exit code and captured output of the last script run."""
    existing = _column_names(conn, "scripts")
    if "exit_code" not in existing:
        op.add_column("scripts", sa.Column("exit_code", sa.Integer))
    if "last_output" not in existing:
        op.add_column("scripts", sa.Column("last_output", sa.Text))


@migration(3)
def _add_credentials(op: Operations, conn: Connection) -> None:
    if _has_table(conn, "credentials"):
        return
    op.create_table(
        "credentials",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("credential_type", sa.Text, nullable=False),
        sa.Column("data", sa.LargeBinary, nullable=False),
        sa.Column("notes", sa.Text),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.current_timestamp()),
    )


_SERVER_COPY_COLUMNS = "id, name, host, server_type, provider, {access}, location, specs, notes, created_at"


@migration(4)
def _retarget_server_access(op: Operations, conn: Connection) -> None:
    """Rebuild servers so the access reference points at credentials.

    SQLite cannot alter a foreign key in place, so the table is rebuilt:
    create servers_new, copy, drop servers, rename. Either half of an
    interrupted rebuild is recovered on the next run.
    """
    has_old = _has_table(conn, "servers")
    has_new = _has_table(conn, "servers_new")

    if has_new and not has_old:
        logger.warning("Recovering interrupted servers rebuild: renaming servers_new")
        op.rename_table("servers_new", "servers")
        return
    if has_new:
        logger.warning("Discarding stale servers_new from an interrupted rebuild")
        op.drop_table("servers_new")
    if "credential_id" in _column_names(conn, "servers"):
        return

    op.create_table(
        "servers_new",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("host", sa.Text, nullable=False),
        sa.Column("server_type", sa.Text, nullable=False, server_default="vps"),
        sa.Column("provider", sa.Text),
        sa.Column("credential_id", sa.Text, sa.ForeignKey("credentials.id")),
        sa.Column("location", sa.Text),
        sa.Column("specs", sa.Text),
        sa.Column("notes", sa.Text),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.current_timestamp()),
    )
    op.execute(
        f"INSERT INTO servers_new ({_SERVER_COPY_COLUMNS.format(access='credential_id')}) "
        f"SELECT {_SERVER_COPY_COLUMNS.format(access='ssh_connection_id')} FROM servers"
    )
    op.drop_table("servers")
    op.rename_table("servers_new", "servers")


@migration(5)
def _index_project_resources(op: Operations, conn: Connection) -> None:
    existing = _index_names(conn, "project_resources")
    if "idx_project_resources_project" not in existing:
        op.create_index("idx_project_resources_project", "project_resources", ["project_id"])
    if "idx_project_resources_resource" not in existing:
        op.create_index(
            "idx_project_resources_resource", "project_resources",
            ["resource_type", "resource_id"],
        )


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

def _make_engine(url: str) -> sa.Engine:
    """SQLite engine with real transactional DDL.

    pysqlite's implicit transaction handling commits before DDL; hand
    BEGIN/COMMIT control to SQLAlchemy instead.
    """
    engine = create_engine(url)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def get_schema_version(conn: Connection) -> int:
    row = conn.execute(
        text("SELECT value FROM metadata WHERE key = 'schema_version'")
    ).fetchone()
    if row is None:
        return 1
    return int(row[0])


def _set_schema_version(conn: Connection, version: int) -> None:
    conn.execute(
        text(
            "INSERT INTO metadata (key, value) VALUES ('schema_version', :v) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value"
        ),
        {"v": str(version)},
    )


def _set_foreign_keys(conn: Connection, enabled: bool) -> None:
    # PRAGMA foreign_keys is ignored inside a transaction
    conn.connection.driver_connection.execute(
        f"PRAGMA foreign_keys={'ON' if enabled else 'OFF'}"
    )


def run_migrations(db_path: str | Path) -> int:
    """Bring the store at ``db_path`` up to CURRENT_SCHEMA_VERSION.

    A store already at or above the current version is left untouched.
    Returns the schema version after the run.
    """
    db_path = Path(db_path)
    engine = _make_engine(f"sqlite:///{db_path}")
    try:
        with engine.connect() as conn:
            with conn.begin():
                conn.exec_driver_sql(_METADATA_DDL)
                version = get_schema_version(conn)

            if version > CURRENT_SCHEMA_VERSION:
                logger.warning(
                    "Store schema version %d is newer than this build (%d); leaving it untouched",
                    version, CURRENT_SCHEMA_VERSION,
                )
                return version
            if version == CURRENT_SCHEMA_VERSION:
                logger.debug("Schema up to date (version %d)", version)
                return version

            if version == 1:
                # Base tables belong to version 1 only; later steps reshape them
                with conn.begin():
                    for ddl in _BASE_SCHEMA:
                        conn.exec_driver_sql(ddl)
                    _set_schema_version(conn, 1)

            _set_foreign_keys(conn, False)
            try:
                for target in range(version + 1, CURRENT_SCHEMA_VERSION + 1):
                    step = MIGRATIONS[target]
                    with conn.begin():
                        step(Operations(MigrationContext.configure(conn)), conn)
                        _set_schema_version(conn, target)
                    logger.info("Applied schema migration v%d (%s)", target, step.__name__)
            finally:
                _set_foreign_keys(conn, True)

            return CURRENT_SCHEMA_VERSION
    finally:
        engine.dispose()
