#  pctrl - Server Store
#
#  CRUD for servers. credential_id is stored as-is; it is not checked
#  against the credentials table.
#
#  Depends on: store/_base.py, models/schemas.py
#  Used by:    store/store.py

import sqlite3

from pctrl.exceptions import AlreadyExistsError
from pctrl.models.enums import ServerType
from pctrl.models.schemas import Server, ServerSpecs
from pctrl.store._base import StoreBase, load_json


def _row_to_server(row: sqlite3.Row) -> Server:
    specs = load_json(row["specs"])
    return Server(
        id=row["id"],
        name=row["name"],
        host=row["host"],
        server_type=ServerType(row["server_type"]),
        provider=row["provider"],
        credential_id=row["credential_id"],
        location=row["location"],
        specs=ServerSpecs.model_validate(specs) if specs is not None else None,
        notes=row["notes"],
    )


class ServerStoreMixin(StoreBase):

    async def save_server(self, server: Server) -> None:
        with self._guard("server", server.id):
            await self._write_server(server)

    async def _write_server(self, server: Server) -> None:
        await self._upsert("servers", {
            "id": server.id,
            "name": server.name,
            "host": server.host,
            "server_type": server.server_type.value,
            "provider": server.provider,
            "credential_id": server.credential_id,
            "location": server.location,
            "specs": server.specs.model_dump_json() if server.specs else None,
            "notes": server.notes,
        })

    async def add_server(self, server: Server) -> None:
        with self._guard("server", server.id):
            async with self.db.transaction():
                if await self._exists("servers", server.id):
                    raise AlreadyExistsError("server", server.id)
                if await self._fetch_by_name("servers", server.name) is not None:
                    raise AlreadyExistsError("server", server.name)
                await self._write_server(server)

    async def get_server(self, server_id: str) -> Server | None:
        with self._guard("server", server_id):
            row = await self.db.fetchone("SELECT * FROM servers WHERE id = ?", (server_id,))
            return _row_to_server(row) if row else None

    async def get_server_by_name(self, name: str) -> Server | None:
        with self._guard("server", name):
            row = await self._fetch_by_name("servers", name)
            return _row_to_server(row) if row else None

    async def list_servers(self) -> list[Server]:
        with self._guard("server"):
            rows = await self.db.fetchall("SELECT * FROM servers ORDER BY name COLLATE NOCASE, id")
            return [_row_to_server(r) for r in rows]

    async def remove_server(self, server_id: str) -> bool:
        with self._guard("server", server_id):
            return await self._delete("servers", server_id)

    async def server_exists(self, server_id: str) -> bool:
        with self._guard("server", server_id):
            return await self._exists("servers", server_id)
