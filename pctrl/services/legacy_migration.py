#  pctrl - Legacy Migration
#
#  One-way walk over legacy connection records: SSH connections become
#  Servers (with an SSH credential), and Docker / Coolify / Git records
#  can be linked to projects. Re-running never duplicates; anything that
#  already exists is reported as skipped.
#
#  Depends on: store/store.py, models/*
#  Used by:    cli/commands/migrate.py, container.py

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from pctrl.models.credentials import Credential, SshAgentData, SshKeyData
from pctrl.models.enums import ResourceType, ServerType
from pctrl.models.legacy import PublicKeyAuth, SshConnection
from pctrl.models.schemas import Project, Server
from pctrl.store.store import Store

logger = logging.getLogger("pctrl.migration")

# prompt -> yes/no
ConfirmFn = Callable[[str], bool]
# (resource label, candidate projects) -> project id or None to skip
ChooseProjectFn = Callable[[str, list[Project]], str | None]


@dataclass
class MigrationReport:
    servers_created: list[str] = field(default_factory=list)
    servers_skipped: list[str] = field(default_factory=list)
    servers_declined: list[str] = field(default_factory=list)
    servers_retargeted: list[str] = field(default_factory=list)
    credentials_created: list[str] = field(default_factory=list)
    links_created: list[str] = field(default_factory=list)
    legacy_removed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(
            self.servers_created or self.servers_retargeted or self.credentials_created
            or self.links_created or self.legacy_removed
        )


class LegacyMigrator:

    def __init__(self, store: Store):
        self._store = store

    async def migrate(
        self,
        auto: bool = False,
        cleanup: bool = False,
        confirm: ConfirmFn | None = None,
        choose_project: ChooseProjectFn | None = None,
    ) -> MigrationReport:
        """Migrate legacy records into the project/server model.

        Args:
            auto: Create servers without asking and skip project linking.
            cleanup: Remove legacy SSH connections whose server now exists.
            confirm: Asked once per server in interactive mode; None means yes.
            choose_project: Picks a project to link each resource to in
                interactive mode; None (or returning None) skips linking.
        """
        report = MigrationReport()
        inventory = await self._store.load_legacy()
        projects = await self._store.list_projects()
        pick = None if auto else choose_project

        for conn in inventory.ssh_connections:
            await self._migrate_ssh(conn, auto, confirm, pick, projects, report)
        await self._retarget_servers(inventory.ssh_connections, report)

        if pick and projects:
            for host in inventory.docker_hosts:
                await self._offer_link(
                    pick, projects, f"docker host '{host.name}'",
                    ResourceType.CONTAINER, host.id, "docker-host", report,
                )
            for instance in inventory.coolify_instances:
                await self._offer_link(
                    pick, projects, f"coolify instance '{instance.name}'",
                    ResourceType.COOLIFY, instance.id, "deployment", report,
                )
            for repo in inventory.git_repos:
                await self._offer_link(
                    pick, projects, f"git repo '{repo.name}'",
                    ResourceType.GIT, repo.id, "repository", report,
                )

        if cleanup:
            for conn in inventory.ssh_connections:
                if await self._store.server_exists(conn.id):
                    await self._store.remove_ssh_connection(conn.id)
                    report.legacy_removed.append(conn.id)
                    logger.info("Removed legacy SSH connection %s", conn.id)

        logger.info(
            "Legacy migration: %d created, %d skipped, %d links",
            len(report.servers_created), len(report.servers_skipped), len(report.links_created),
        )
        return report

    async def _migrate_ssh(
        self,
        conn: SshConnection,
        auto: bool,
        confirm: ConfirmFn | None,
        pick: ChooseProjectFn | None,
        projects: list[Project],
        report: MigrationReport,
    ) -> None:
        if (await self._store.server_exists(conn.id)
                or await self._store.get_server_by_name(conn.name) is not None):
            report.servers_skipped.append(conn.id)
            return

        if not auto and confirm is not None and not confirm(
            f"Create server '{conn.name}' ({conn.username}@{conn.host}:{conn.port})?"
        ):
            report.servers_declined.append(conn.id)
            return

        credential_id = await self._ensure_credential(conn, report)
        server = Server(
            id=conn.id,
            name=conn.name,
            host=conn.host,
            server_type=ServerType.VPS,
            credential_id=credential_id,
            notes=f"Migrated from SSH connection '{conn.id}'",
        )
        await self._store.add_server(server)
        report.servers_created.append(server.id)
        logger.info("Created server %s from legacy SSH connection", server.id)

        if pick and projects:
            await self._offer_link(
                pick, projects, f"server '{server.name}'",
                ResourceType.SERVER, server.id, "server", report,
            )

    async def _retarget_servers(self, connections: list[SshConnection], report: MigrationReport) -> None:
        """Point servers still referencing a legacy SSH connection at its credential.

        Servers that predate schema v4 carry the connection id in
        credential_id; the v4 rebuild copies it over unchanged.
        """
        by_id = {c.id: c for c in connections}
        for server in await self._store.list_servers():
            conn = by_id.get(server.credential_id or "")
            if conn is None or await self._store.credential_exists(conn.id):
                continue
            credential_id = await self._ensure_credential(conn, report)
            await self._store.save_server(server.model_copy(update={"credential_id": credential_id}))
            report.servers_retargeted.append(server.id)
            logger.info("Server %s now uses credential %s", server.id, credential_id)

    async def _ensure_credential(self, conn: SshConnection, report: MigrationReport) -> str:
        """Credential carrying the connection's user, port and key; reused if present."""
        cred_id = f"{conn.id}-ssh"
        name = f"{conn.name} ssh"
        existing = (await self._store.get_credential(cred_id)
                    or await self._store.get_credential_by_name(name))
        if existing is not None:
            return existing.id

        if isinstance(conn.auth_method, PublicKeyAuth):
            data = SshKeyData(username=conn.username, port=conn.port, key_path=conn.auth_method.key_path)
        else:
            data = SshAgentData(username=conn.username, port=conn.port)
        await self._store.add_credential(Credential(
            id=cred_id,
            name=name,
            data=data,
            notes=f"Migrated from SSH connection '{conn.id}'",
        ))
        report.credentials_created.append(cred_id)
        return cred_id

    async def _offer_link(
        self,
        pick: ChooseProjectFn,
        projects: list[Project],
        label: str,
        resource_type: ResourceType,
        resource_id: str,
        role: str,
        report: MigrationReport,
    ) -> None:
        project_id = pick(label, projects)
        if not project_id:
            return
        if project_id in await self._store.projects_of(resource_type, resource_id):
            return
        link_id = await self._store.link(project_id, resource_type, resource_id, role=role)
        report.links_created.append(link_id)
