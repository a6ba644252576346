#  pctrl - Script Store
#
#  CRUD for saved scripts plus the last-run bookkeeping written by the
#  script runner.
#
#  Depends on: store/_base.py, models/schemas.py, config.py
#  Used by:    store/store.py, services/script_runner.py

import sqlite3
from datetime import datetime, timezone

from pctrl.config import SCRIPT_OUTPUT_MAX_BYTES
from pctrl.exceptions import AlreadyExistsError, NotFoundError
from pctrl.models.enums import ScriptResult, ScriptType
from pctrl.models.schemas import Script
from pctrl.store._base import StoreBase


def _row_to_script(row: sqlite3.Row) -> Script:
    return Script(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        command=row["command"],
        script_type=ScriptType(row["script_type"]),
        server_id=row["server_id"],
        project_id=row["project_id"],
        docker_host_id=row["docker_host_id"],
        container_id=row["container_id"],
        dangerous=bool(row["dangerous"]),
        last_run=row["last_run"],
        last_result=ScriptResult(row["last_result"]) if row["last_result"] else None,
        exit_code=row["exit_code"],
        last_output=row["last_output"],
    )


def truncate_output(output: str | None, max_bytes: int = SCRIPT_OUTPUT_MAX_BYTES) -> str | None:
    """Cap output at ``max_bytes`` of UTF-8 without splitting a character."""
    if output is None:
        return None
    encoded = output.encode("utf-8")
    if len(encoded) <= max_bytes:
        return output
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


class ScriptStoreMixin(StoreBase):

    async def save_script(self, script: Script) -> None:
        with self._guard("script", script.id):
            await self._write_script(script)

    async def _write_script(self, script: Script) -> None:
        await self._upsert("scripts", {
            "id": script.id,
            "name": script.name,
            "description": script.description,
            "command": script.command,
            "script_type": script.script_type.value,
            "server_id": script.server_id,
            "project_id": script.project_id,
            "docker_host_id": script.docker_host_id,
            "container_id": script.container_id,
            "dangerous": int(script.dangerous),
            "last_run": script.last_run.isoformat() if script.last_run else None,
            "last_result": script.last_result.value if script.last_result else None,
            "exit_code": script.exit_code,
            "last_output": truncate_output(script.last_output),
        })

    async def add_script(self, script: Script) -> None:
        with self._guard("script", script.id):
            async with self.db.transaction():
                if await self._exists("scripts", script.id):
                    raise AlreadyExistsError("script", script.id)
                if await self._fetch_by_name("scripts", script.name) is not None:
                    raise AlreadyExistsError("script", script.name)
                await self._write_script(script)

    async def get_script(self, script_id: str) -> Script | None:
        with self._guard("script", script_id):
            row = await self.db.fetchone("SELECT * FROM scripts WHERE id = ?", (script_id,))
            return _row_to_script(row) if row else None

    async def get_script_by_name(self, name: str) -> Script | None:
        with self._guard("script", name):
            row = await self._fetch_by_name("scripts", name)
            return _row_to_script(row) if row else None

    async def list_scripts(self) -> list[Script]:
        with self._guard("script"):
            rows = await self.db.fetchall("SELECT * FROM scripts ORDER BY name COLLATE NOCASE, id")
            return [_row_to_script(r) for r in rows]

    async def list_scripts_for_project(self, project_id: str) -> list[Script]:
        with self._guard("script"):
            rows = await self.db.fetchall(
                "SELECT * FROM scripts WHERE project_id = ? ORDER BY name COLLATE NOCASE, id", (project_id,)
            )
            return [_row_to_script(r) for r in rows]

    async def update_script_result(
        self,
        script_id: str,
        result: ScriptResult,
        exit_code: int | None,
        output: str | None,
    ) -> None:
        """Stamp last_run with the current UTC time and store the outcome."""
        with self._guard("script", script_id):
            cursor = await self.db.execute_write(
                "UPDATE scripts SET last_run = ?, last_result = ?, exit_code = ?, last_output = ? "
                "WHERE id = ?",
                (
                    datetime.now(timezone.utc).isoformat(),
                    ScriptResult(result).value,
                    exit_code,
                    truncate_output(output),
                    script_id,
                ),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("script", script_id)

    async def remove_script(self, script_id: str) -> bool:
        with self._guard("script", script_id):
            return await self._delete("scripts", script_id)

    async def script_exists(self, script_id: str) -> bool:
        with self._guard("script", script_id):
            return await self._exists("scripts", script_id)
