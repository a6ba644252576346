#  pctrl - Legacy Migration Tests
#
#  Depends on: pctrl/services/legacy_migration.py, pctrl/store/*
#  Used by:    pytest

from pctrl.models.credentials import SshAgentData, SshKeyData
from pctrl.models.enums import ResourceType, ServerType
from pctrl.models.legacy import (
    CoolifyInstance,
    DockerHost,
    GitRepo,
    PasswordAuth,
    PublicKeyAuth,
    SshConnection,
)
from pctrl.models.schemas import Project, Server
from pctrl.services.legacy_migration import LegacyMigrator


def _web1() -> SshConnection:
    return SshConnection(id="web1", name="web1", host="10.0.0.5", port=22, username="root")


class TestAutoMigration:
    async def test_creates_server_from_connection(self, tmp_store):
        await tmp_store.save_ssh_connection(_web1())

        report = await LegacyMigrator(tmp_store).migrate(auto=True)

        assert report.servers_created == ["web1"]
        server = await tmp_store.get_server("web1")
        assert server.host == "10.0.0.5"
        assert server.server_type == ServerType.VPS
        assert server.credential_id == "web1-ssh"
        assert "web1" in server.notes

    async def test_password_auth_becomes_agent_credential(self, tmp_store):
        await tmp_store.save_ssh_connection(_web1())
        await LegacyMigrator(tmp_store).migrate(auto=True)

        cred = await tmp_store.get_credential("web1-ssh")
        assert isinstance(cred.data, SshAgentData)
        assert cred.data.username == "root"
        assert cred.data.port == 22

    async def test_public_key_auth_becomes_key_credential(self, encrypted_store):
        await encrypted_store.save_ssh_connection(SshConnection(
            id="db1", name="db1", host="10.0.0.9", port=2022, username="deploy",
            auth_method=PublicKeyAuth(key_path="/home/me/.ssh/id_ed25519"),
        ))
        report = await LegacyMigrator(encrypted_store).migrate(auto=True)

        assert report.credentials_created == ["db1-ssh"]
        cred = await encrypted_store.get_credential("db1-ssh")
        assert cred.data == SshKeyData(username="deploy", port=2022, key_path="/home/me/.ssh/id_ed25519")

    async def test_rerun_is_idempotent(self, tmp_store):
        await tmp_store.save_ssh_connection(_web1())
        migrator = LegacyMigrator(tmp_store)
        await migrator.migrate(auto=True)

        again = await migrator.migrate(auto=True)

        assert again.servers_created == []
        assert again.servers_skipped == ["web1"]
        assert again.changed is False
        assert len(await tmp_store.list_servers()) == 1
        assert len(await tmp_store.list_credential_summaries()) == 1

    async def test_existing_server_name_skips(self, tmp_store):
        await tmp_store.save_server(Server(id="other-id", name="WEB1", host="10.0.0.5"))
        await tmp_store.save_ssh_connection(_web1())

        report = await LegacyMigrator(tmp_store).migrate(auto=True)

        assert report.servers_skipped == ["web1"]
        assert await tmp_store.get_server("web1") is None

    async def test_existing_credential_is_reused(self, tmp_store):
        await tmp_store.save_ssh_connection(_web1())
        migrator = LegacyMigrator(tmp_store)
        await migrator.migrate(auto=True)
        await tmp_store.remove_server("web1")

        report = await migrator.migrate(auto=True)

        assert report.servers_created == ["web1"]
        assert report.credentials_created == []

    async def test_auto_never_links(self, tmp_store):
        await tmp_store.save_project(Project(id="shop", name="Shop"))
        await tmp_store.save_ssh_connection(_web1())
        calls = []

        await LegacyMigrator(tmp_store).migrate(
            auto=True, choose_project=lambda label, projects: calls.append(label) or "shop",
        )

        assert calls == []
        assert await tmp_store.resources_of("shop") == []


class TestInteractiveMigration:
    async def test_declined_server_not_created(self, tmp_store):
        await tmp_store.save_ssh_connection(_web1())
        prompts = []

        def confirm(msg):
            prompts.append(msg)
            return False

        report = await LegacyMigrator(tmp_store).migrate(confirm=confirm)

        assert report.servers_declined == ["web1"]
        assert await tmp_store.get_server("web1") is None
        assert "root@10.0.0.5:22" in prompts[0]

    async def test_links_offered_for_every_record(self, tmp_store):
        await tmp_store.save_project(Project(id="shop", name="Shop"))
        await tmp_store.save_ssh_connection(_web1())
        await tmp_store.save_docker_host(DockerHost(id="dh", name="docker", url="tcp://10.0.0.5:2375"))
        await tmp_store.save_coolify_instance(
            CoolifyInstance(id="cf", name="coolify", url="https://coolify.example", api_key="k")
        )
        await tmp_store.save_git_repo(GitRepo(id="repo", name="shop-repo", path="/src/shop"))
        labels = []

        def choose(label, projects):
            labels.append(label)
            assert [p.id for p in projects] == ["shop"]
            return "shop"

        report = await LegacyMigrator(tmp_store).migrate(confirm=lambda msg: True, choose_project=choose)

        assert len(labels) == 4
        assert len(report.links_created) == 4
        links = {(r.resource_type, r.resource_id, r.role) for r in await tmp_store.resources_of("shop")}
        assert links == {
            (ResourceType.SERVER, "web1", "server"),
            (ResourceType.CONTAINER, "dh", "docker-host"),
            (ResourceType.COOLIFY, "cf", "deployment"),
            (ResourceType.GIT, "repo", "repository"),
        }

    async def test_existing_link_not_duplicated(self, tmp_store):
        await tmp_store.save_project(Project(id="shop", name="Shop"))
        await tmp_store.save_git_repo(GitRepo(id="repo", name="shop-repo", path="/src/shop"))
        await tmp_store.link("shop", ResourceType.GIT, "repo")

        report = await LegacyMigrator(tmp_store).migrate(choose_project=lambda label, projects: "shop")

        assert report.links_created == []
        assert len(await tmp_store.resources_of("shop")) == 1

    async def test_choose_none_skips_link(self, tmp_store):
        await tmp_store.save_project(Project(id="shop", name="Shop"))
        await tmp_store.save_ssh_connection(_web1())

        report = await LegacyMigrator(tmp_store).migrate(choose_project=lambda label, projects: None)

        assert report.servers_created == ["web1"]
        assert report.links_created == []


class TestCleanup:
    async def test_removes_only_migrated_connections(self, tmp_store):
        await tmp_store.save_ssh_connection(_web1())
        await tmp_store.save_ssh_connection(SshConnection(
            id="kept", name="kept", host="10.0.0.6", username="root", auth_method=PasswordAuth(),
        ))

        report = await LegacyMigrator(tmp_store).migrate(
            confirm=lambda msg: "kept" not in msg, cleanup=True,
        )

        assert report.legacy_removed == ["web1"]
        assert await tmp_store.ssh_connection_exists("web1") is False
        assert await tmp_store.ssh_connection_exists("kept") is True

    async def test_without_cleanup_legacy_rows_stay(self, tmp_store):
        await tmp_store.save_ssh_connection(_web1())
        await LegacyMigrator(tmp_store).migrate(auto=True)
        assert await tmp_store.ssh_connection_exists("web1") is True
