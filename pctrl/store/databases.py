#  pctrl - Database Credential Store
#
#  Connection records for managed databases. The password column is
#  written in cleartext; see DESIGN.md.
#
#  Depends on: store/_base.py, models/schemas.py
#  Used by:    store/store.py

import sqlite3

from pctrl.exceptions import AlreadyExistsError
from pctrl.models.enums import DatabaseType
from pctrl.models.schemas import DatabaseCredential
from pctrl.store._base import StoreBase


def _row_to_database(row: sqlite3.Row) -> DatabaseCredential:
    return DatabaseCredential(
        id=row["id"],
        name=row["name"],
        db_type=DatabaseType(row["db_type"]),
        host=row["host"],
        port=row["port"],
        database_name=row["database_name"],
        username=row["username"],
        password=row["password"],
        connection_string=row["connection_string"],
        server_id=row["server_id"],
        container_id=row["container_id"],
        notes=row["notes"],
    )


class DatabaseStoreMixin(StoreBase):

    async def save_database(self, database: DatabaseCredential) -> None:
        with self._guard("database", database.id):
            await self._write_database(database)

    async def _write_database(self, database: DatabaseCredential) -> None:
        await self._upsert("databases", {
            "id": database.id,
            "name": database.name,
            "db_type": database.db_type.value,
            "host": database.host,
            "port": database.port,
            "database_name": database.database_name,
            "username": database.username,
            "password": database.password,
            "connection_string": database.connection_string,
            "server_id": database.server_id,
            "container_id": database.container_id,
            "notes": database.notes,
        })

    async def add_database(self, database: DatabaseCredential) -> None:
        with self._guard("database", database.id):
            async with self.db.transaction():
                if await self._exists("databases", database.id):
                    raise AlreadyExistsError("database", database.id)
                if await self._fetch_by_name("databases", database.name) is not None:
                    raise AlreadyExistsError("database", database.name)
                await self._write_database(database)

    async def get_database(self, database_id: str) -> DatabaseCredential | None:
        with self._guard("database", database_id):
            row = await self.db.fetchone("SELECT * FROM databases WHERE id = ?", (database_id,))
            return _row_to_database(row) if row else None

    async def get_database_by_name(self, name: str) -> DatabaseCredential | None:
        with self._guard("database", name):
            row = await self._fetch_by_name("databases", name)
            return _row_to_database(row) if row else None

    async def list_databases(self) -> list[DatabaseCredential]:
        with self._guard("database"):
            rows = await self.db.fetchall("SELECT * FROM databases ORDER BY name COLLATE NOCASE, id")
            return [_row_to_database(r) for r in rows]

    async def remove_database(self, database_id: str) -> bool:
        with self._guard("database", database_id):
            return await self._delete("databases", database_id)

    async def database_exists(self, database_id: str) -> bool:
        with self._guard("database", database_id):
            return await self._exists("databases", database_id)
