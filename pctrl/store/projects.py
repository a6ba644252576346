#  pctrl - Project Store
#
#  CRUD for projects. Removing a project also removes its resource links
#  in the same transaction.
#
#  Depends on: store/_base.py, models/schemas.py
#  Used by:    store/store.py

import sqlite3

from pctrl.exceptions import AlreadyExistsError
from pctrl.models.enums import ProjectStatus
from pctrl.models.schemas import Project
from pctrl.store._base import StoreBase, dump_json, load_json


def _row_to_project(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        stack=load_json(row["stack"], []),
        status=ProjectStatus(row["status"]),
        color=row["color"],
        icon=row["icon"],
        notes=row["notes"],
    )


class ProjectStoreMixin(StoreBase):

    async def save_project(self, project: Project) -> None:
        with self._guard("project", project.id):
            await self._write_project(project)

    async def _write_project(self, project: Project) -> None:
        await self._upsert("projects", {
            "id": project.id,
            "name": project.name,
            "description": project.description,
            "stack": dump_json(project.stack),
            "status": project.status.value,
            "color": project.color,
            "icon": project.icon,
            "notes": project.notes,
        })
        await self.db.execute_write(
            "UPDATE projects SET updated_at = CURRENT_TIMESTAMP WHERE id = ?", (project.id,)
        )

    async def add_project(self, project: Project) -> None:
        """Create a project; refuses to overwrite an existing id or name."""
        with self._guard("project", project.id):
            async with self.db.transaction():
                if await self._exists("projects", project.id):
                    raise AlreadyExistsError("project", project.id)
                if await self._fetch_by_name("projects", project.name) is not None:
                    raise AlreadyExistsError("project", project.name)
                await self._write_project(project)

    async def get_project(self, project_id: str) -> Project | None:
        with self._guard("project", project_id):
            row = await self.db.fetchone("SELECT * FROM projects WHERE id = ?", (project_id,))
            return _row_to_project(row) if row else None

    async def get_project_by_name(self, name: str) -> Project | None:
        with self._guard("project", name):
            row = await self._fetch_by_name("projects", name)
            return _row_to_project(row) if row else None

    async def list_projects(self) -> list[Project]:
        with self._guard("project"):
            rows = await self.db.fetchall("SELECT * FROM projects ORDER BY name COLLATE NOCASE, id")
            return [_row_to_project(r) for r in rows]

    async def remove_project(self, project_id: str) -> bool:
        """Delete a project and every resource link pointing at it."""
        with self._guard("project", project_id):
            async with self.db.transaction():
                await self.db.execute_write(
                    "DELETE FROM project_resources WHERE project_id = ?", (project_id,)
                )
                return await self._delete("projects", project_id)

    async def project_exists(self, project_id: str) -> bool:
        with self._guard("project", project_id):
            return await self._exists("projects", project_id)
