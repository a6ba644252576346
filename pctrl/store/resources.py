#  pctrl - Resource Link Index
#
#  Typed edges from projects to arbitrary resources (servers, containers,
#  domains, ...). The project end is checked when linking; the resource
#  end is a soft reference and may dangle.
#
#  Depends on: store/_base.py, models/schemas.py
#  Used by:    store/store.py, services/legacy_migration.py, cli/commands/links.py

import sqlite3
import uuid

from pctrl.exceptions import AlreadyExistsError, NotFoundError
from pctrl.models.enums import ResourceType
from pctrl.models.schemas import ProjectResource
from pctrl.store._base import StoreBase


def _row_to_link(row: sqlite3.Row) -> ProjectResource:
    return ProjectResource(
        id=row["id"],
        project_id=row["project_id"],
        resource_type=ResourceType(row["resource_type"]),
        resource_id=row["resource_id"],
        role=row["role"],
        notes=row["notes"],
    )


class ResourceLinkMixin(StoreBase):

    async def link(
        self,
        project_id: str,
        resource_type: ResourceType,
        resource_id: str,
        role: str | None = None,
        notes: str | None = None,
        link_id: str | None = None,
    ) -> str:
        """Associate a resource with a project and return the link id.

        The same resource may be linked to one project several times,
        e.g. with different roles. An explicit ``link_id`` must be unused;
        use ``save_link`` to overwrite an existing link.
        """
        explicit = link_id is not None
        link_id = link_id or uuid.uuid4().hex
        record = ProjectResource(
            id=link_id,
            project_id=project_id,
            resource_type=ResourceType(resource_type),
            resource_id=resource_id,
            role=role,
            notes=notes,
        )
        with self._guard("project resource", link_id):
            async with self.db.transaction():
                if not await self._exists("projects", project_id):
                    raise NotFoundError("project", project_id)
                if explicit and await self._exists("project_resources", link_id):
                    raise AlreadyExistsError("project resource", link_id)
                await self._write_link(record)
        return link_id

    async def save_link(self, record: ProjectResource) -> None:
        """Upsert a full link; the project must exist."""
        with self._guard("project resource", record.id):
            async with self.db.transaction():
                if not await self._exists("projects", record.project_id):
                    raise NotFoundError("project", record.project_id)
                await self._write_link(record)

    async def _write_link(self, record: ProjectResource) -> None:
        await self._upsert("project_resources", {
            "id": record.id,
            "project_id": record.project_id,
            "resource_type": record.resource_type.value,
            "resource_id": record.resource_id,
            "role": record.role,
            "notes": record.notes,
        })

    async def get_link(self, link_id: str) -> ProjectResource | None:
        with self._guard("project resource", link_id):
            row = await self.db.fetchone("SELECT * FROM project_resources WHERE id = ?", (link_id,))
            return _row_to_link(row) if row else None

    async def resources_of(self, project_id: str) -> list[ProjectResource]:
        with self._guard("project resource", project_id):
            rows = await self.db.fetchall(
                "SELECT * FROM project_resources WHERE project_id = ? "
                "ORDER BY resource_type, resource_id, created_at, id",
                (project_id,),
            )
            return [_row_to_link(r) for r in rows]

    async def projects_of(self, resource_type: ResourceType, resource_id: str) -> list[str]:
        """Ids of the projects a resource is linked to (each listed once)."""
        with self._guard("project resource", resource_id):
            rows = await self.db.fetchall(
                "SELECT DISTINCT project_id FROM project_resources "
                "WHERE resource_type = ? AND resource_id = ? ORDER BY project_id",
                (ResourceType(resource_type).value, resource_id),
            )
            return [r["project_id"] for r in rows]

    async def unlink(self, link_id: str) -> bool:
        with self._guard("project resource", link_id):
            return await self._delete("project_resources", link_id)
