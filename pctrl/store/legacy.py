#  pctrl - Legacy Record Store
#
#  Flat SSH / Docker / Coolify / Git records from before projects and
#  servers existed. Read by the legacy migration, editable from the CLI.
#
#  Depends on: store/_base.py, models/legacy.py
#  Used by:    store/store.py, services/legacy_migration.py

import sqlite3

from pctrl.models.legacy import (
    CoolifyInstance,
    DockerHost,
    GitRepo,
    LegacyInventory,
    SshConnection,
    auth_method_adapter,
)
from pctrl.store._base import StoreBase


def _row_to_ssh(row: sqlite3.Row) -> SshConnection:
    return SshConnection(
        id=row["id"],
        name=row["name"],
        host=row["host"],
        port=row["port"],
        username=row["username"],
        auth_method=auth_method_adapter.validate_json(row["auth_method"]),
    )


def _row_to_docker(row: sqlite3.Row) -> DockerHost:
    return DockerHost(id=row["id"], name=row["name"], url=row["url"])


def _row_to_coolify(row: sqlite3.Row) -> CoolifyInstance:
    return CoolifyInstance(id=row["id"], name=row["name"], url=row["url"], api_key=row["api_key"])


def _row_to_git(row: sqlite3.Row) -> GitRepo:
    return GitRepo(id=row["id"], name=row["name"], path=row["path"], remote_url=row["remote_url"])


class LegacyStoreMixin(StoreBase):

    # -- SSH connections ----------------------------------------------------

    async def save_ssh_connection(self, conn: SshConnection) -> None:
        with self._guard("ssh connection", conn.id):
            await self._upsert("ssh_connections", {
                "id": conn.id,
                "name": conn.name,
                "host": conn.host,
                "port": conn.port,
                "username": conn.username,
                "auth_method": auth_method_adapter.dump_json(conn.auth_method).decode(),
            })

    async def get_ssh_connection(self, conn_id: str) -> SshConnection | None:
        with self._guard("ssh connection", conn_id):
            row = await self.db.fetchone("SELECT * FROM ssh_connections WHERE id = ?", (conn_id,))
            return _row_to_ssh(row) if row else None

    async def list_ssh_connections(self) -> list[SshConnection]:
        with self._guard("ssh connection"):
            rows = await self.db.fetchall("SELECT * FROM ssh_connections ORDER BY name COLLATE NOCASE, id")
            return [_row_to_ssh(r) for r in rows]

    async def remove_ssh_connection(self, conn_id: str) -> bool:
        with self._guard("ssh connection", conn_id):
            return await self._delete("ssh_connections", conn_id)

    async def ssh_connection_exists(self, conn_id: str) -> bool:
        with self._guard("ssh connection", conn_id):
            return await self._exists("ssh_connections", conn_id)

    # -- Docker hosts -------------------------------------------------------

    async def save_docker_host(self, host: DockerHost) -> None:
        with self._guard("docker host", host.id):
            await self._upsert("docker_hosts", {"id": host.id, "name": host.name, "url": host.url})

    async def get_docker_host(self, host_id: str) -> DockerHost | None:
        with self._guard("docker host", host_id):
            row = await self.db.fetchone("SELECT * FROM docker_hosts WHERE id = ?", (host_id,))
            return _row_to_docker(row) if row else None

    async def list_docker_hosts(self) -> list[DockerHost]:
        with self._guard("docker host"):
            rows = await self.db.fetchall("SELECT * FROM docker_hosts ORDER BY name COLLATE NOCASE, id")
            return [_row_to_docker(r) for r in rows]

    async def remove_docker_host(self, host_id: str) -> bool:
        with self._guard("docker host", host_id):
            return await self._delete("docker_hosts", host_id)

    async def docker_host_exists(self, host_id: str) -> bool:
        with self._guard("docker host", host_id):
            return await self._exists("docker_hosts", host_id)

    # -- Coolify instances --------------------------------------------------

    async def save_coolify_instance(self, instance: CoolifyInstance) -> None:
        with self._guard("coolify instance", instance.id):
            await self._upsert("coolify_instances", {
                "id": instance.id,
                "name": instance.name,
                "url": instance.url,
                "api_key": instance.api_key,
            })

    async def get_coolify_instance(self, instance_id: str) -> CoolifyInstance | None:
        with self._guard("coolify instance", instance_id):
            row = await self.db.fetchone(
                "SELECT * FROM coolify_instances WHERE id = ?", (instance_id,)
            )
            return _row_to_coolify(row) if row else None

    async def list_coolify_instances(self) -> list[CoolifyInstance]:
        with self._guard("coolify instance"):
            rows = await self.db.fetchall("SELECT * FROM coolify_instances ORDER BY name COLLATE NOCASE, id")
            return [_row_to_coolify(r) for r in rows]

    async def remove_coolify_instance(self, instance_id: str) -> bool:
        with self._guard("coolify instance", instance_id):
            return await self._delete("coolify_instances", instance_id)

    async def coolify_instance_exists(self, instance_id: str) -> bool:
        with self._guard("coolify instance", instance_id):
            return await self._exists("coolify_instances", instance_id)

    # -- Git repositories ---------------------------------------------------

    async def save_git_repo(self, repo: GitRepo) -> None:
        with self._guard("git repo", repo.id):
            await self._upsert("git_repos", {
                "id": repo.id,
                "name": repo.name,
                "path": repo.path,
                "remote_url": repo.remote_url,
            })

    async def get_git_repo(self, repo_id: str) -> GitRepo | None:
        with self._guard("git repo", repo_id):
            row = await self.db.fetchone("SELECT * FROM git_repos WHERE id = ?", (repo_id,))
            return _row_to_git(row) if row else None

    async def list_git_repos(self) -> list[GitRepo]:
        with self._guard("git repo"):
            rows = await self.db.fetchall("SELECT * FROM git_repos ORDER BY name COLLATE NOCASE, id")
            return [_row_to_git(r) for r in rows]

    async def remove_git_repo(self, repo_id: str) -> bool:
        with self._guard("git repo", repo_id):
            return await self._delete("git_repos", repo_id)

    async def git_repo_exists(self, repo_id: str) -> bool:
        with self._guard("git repo", repo_id):
            return await self._exists("git_repos", repo_id)

    # -- Inventory ----------------------------------------------------------

    async def load_legacy(self) -> LegacyInventory:
        return LegacyInventory(
            ssh_connections=await self.list_ssh_connections(),
            docker_hosts=await self.list_docker_hosts(),
            coolify_instances=await self.list_coolify_instances(),
            git_repos=await self.list_git_repos(),
        )
