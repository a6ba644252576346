#  pctrl - Script Runner Tests
#
#  Local scripts run for real through ``sh``; SSH and docker collaborators
#  are AsyncMocks.
#
#  Depends on: pctrl/services/script_runner.py, pctrl/integrations/*
#  Used by:    pytest

import sqlite3
from unittest.mock import AsyncMock, patch

import pytest

from pctrl.exceptions import (
    CollaboratorError,
    ConfirmationRequiredError,
    NotFoundError,
    ValidationError,
)
from pctrl.integrations.base import CommandResult, SshTarget
from pctrl.models.credentials import ApiTokenData, Credential
from pctrl.models.enums import ScriptResult, ScriptType
from pctrl.models.legacy import DockerHost, PublicKeyAuth, SshConnection
from pctrl.db.migrate import _BASE_SCHEMA, _METADATA_DDL
from pctrl.models.schemas import Script
from pctrl.services.legacy_migration import LegacyMigrator
from pctrl.services.script_runner import ScriptRunner
from pctrl.store.store import Store


class TestLocalScripts:
    async def test_echo_success(self, tmp_store, local_script):
        await tmp_store.save_script(local_script)

        run = await ScriptRunner(tmp_store).run("hello")

        assert run.result == ScriptResult.SUCCESS
        assert run.exit_code == 0
        assert run.output == "hello"
        saved = await tmp_store.get_script("hello")
        assert saved.last_result == ScriptResult.SUCCESS
        assert saved.last_output == "hello"
        assert saved.last_run is not None

    async def test_nonzero_exit_recorded_as_error(self, tmp_store):
        await tmp_store.save_script(Script(
            id="fail", name="Fail", command="echo oops >&2; exit 3", script_type=ScriptType.LOCAL,
        ))

        run = await ScriptRunner(tmp_store).run("fail")

        assert run.result == ScriptResult.ERROR
        assert run.exit_code == 3
        assert (await tmp_store.get_script("fail")).last_output == "oops"

    async def test_resolve_by_name(self, tmp_store, local_script):
        await tmp_store.save_script(local_script)
        assert (await ScriptRunner(tmp_store).resolve("HELLO")).id == "hello"

    async def test_unknown_script(self, tmp_store):
        with pytest.raises(NotFoundError):
            await ScriptRunner(tmp_store).run("ghost")

    async def test_timeout_recorded_and_raised(self, tmp_store, local_script):
        await tmp_store.save_script(local_script)
        with patch(
            "pctrl.services.script_runner.run_command",
            side_effect=CollaboratorError("sh timed out after 1s"),
        ):
            with pytest.raises(CollaboratorError):
                await ScriptRunner(tmp_store).run("hello")
        saved = await tmp_store.get_script("hello")
        assert saved.last_result == ScriptResult.ERROR
        assert "timed out" in saved.last_output


class TestDangerousScripts:
    async def test_refused_without_force(self, tmp_store):
        await tmp_store.save_script(Script(
            id="wipe", name="Wipe", command="echo wiped", script_type=ScriptType.LOCAL, dangerous=True,
        ))

        with pytest.raises(ConfirmationRequiredError, match="--force"):
            await ScriptRunner(tmp_store).run("wipe")
        assert (await tmp_store.get_script("wipe")).last_run is None

    async def test_runs_with_force(self, tmp_store):
        await tmp_store.save_script(Script(
            id="wipe", name="Wipe", command="echo wiped", script_type=ScriptType.LOCAL, dangerous=True,
        ))
        run = await ScriptRunner(tmp_store).run("wipe", force=True)
        assert run.output == "wiped"


class TestSshScripts:
    async def test_uses_server_credential(self, tmp_store, sample_server, sample_credential):
        await tmp_store.save_credential(sample_credential)
        await tmp_store.save_server(sample_server.model_copy(update={"credential_id": "deploy-key"}))
        await tmp_store.save_script(Script(id="up", name="Uptime", command="uptime", server_id="prod-box"))
        remote = AsyncMock()
        remote.execute.return_value = CommandResult(exit_code=0, stdout="up 3 days")

        run = await ScriptRunner(tmp_store, remote=remote).run("up")

        assert run.output == "up 3 days"
        remote.execute.assert_awaited_once_with(
            SshTarget(host="203.0.113.10", port=2222, username="deploy", key_path="~/.ssh/id_ed25519"),
            "uptime",
        )

    async def test_falls_back_to_legacy_connection(self, tmp_store, sample_server):
        await tmp_store.save_server(sample_server)
        await tmp_store.save_ssh_connection(SshConnection(
            id="prod-box", name="prod", host="203.0.113.10", port=22, username="root",
            auth_method=PublicKeyAuth(key_path="/k"),
        ))
        remote = AsyncMock()
        remote.execute.return_value = CommandResult(exit_code=0)

        target = await ScriptRunner(tmp_store, remote=remote).ssh_target(sample_server)

        assert target == SshTarget(host="203.0.113.10", port=22, username="root", key_path="/k")

    async def test_dangling_credential(self, tmp_store, sample_server):
        server = sample_server.model_copy(update={"credential_id": "gone"})
        with pytest.raises(NotFoundError, match="Credential 'gone'"):
            await ScriptRunner(tmp_store).ssh_target(server)

    async def test_missing_server_id(self, tmp_store):
        await tmp_store.save_script(Script(id="up", name="Uptime", command="uptime"))
        with pytest.raises(ValidationError, match="no server_id"):
            await ScriptRunner(tmp_store, remote=AsyncMock()).run("up")

    async def test_dangling_server(self, tmp_store):
        await tmp_store.save_script(Script(id="up", name="Uptime", command="uptime", server_id="gone"))
        with pytest.raises(NotFoundError, match="Server 'gone'"):
            await ScriptRunner(tmp_store, remote=AsyncMock()).run("up")

    async def test_non_ssh_credential(self, tmp_store, sample_server):
        await tmp_store.save_credential(Credential(id="tok", name="Token", data=ApiTokenData(token="t")))
        await tmp_store.save_server(sample_server.model_copy(update={"credential_id": "tok"}))
        await tmp_store.save_script(Script(id="up", name="Uptime", command="uptime", server_id="prod-box"))
        with pytest.raises(ValidationError, match="not an SSH credential"):
            await ScriptRunner(tmp_store, remote=AsyncMock()).run("up")

    async def test_no_remote_executor(self, tmp_store, sample_server, sample_credential):
        await tmp_store.save_credential(sample_credential)
        await tmp_store.save_server(sample_server.model_copy(update={"credential_id": "deploy-key"}))
        await tmp_store.save_script(Script(id="up", name="Uptime", command="uptime", server_id="prod-box"))

        with pytest.raises(CollaboratorError):
            await ScriptRunner(tmp_store).run("up")
        assert (await tmp_store.get_script("up")).last_result == ScriptResult.ERROR


class TestDockerScripts:
    async def test_exec_in_container(self, tmp_store):
        await tmp_store.save_docker_host(DockerHost(id="dh", name="Docker", url="tcp://10.0.0.5:2375"))
        await tmp_store.save_script(Script(
            id="ps", name="PS", command="ps aux", script_type=ScriptType.DOCKER,
            docker_host_id="dh", container_id="web",
        ))
        containers = AsyncMock()
        containers.exec.return_value = CommandResult(exit_code=0, stdout="PID 1")

        run = await ScriptRunner(tmp_store, containers=containers).run("ps")

        assert run.output == "PID 1"
        containers.exec.assert_awaited_once_with("tcp://10.0.0.5:2375", "web", "ps aux")

    async def test_requires_host_and_container(self, tmp_store):
        await tmp_store.save_script(Script(
            id="ps", name="PS", command="ps", script_type=ScriptType.DOCKER, docker_host_id="dh",
        ))
        with pytest.raises(ValidationError, match="container_id"):
            await ScriptRunner(tmp_store, containers=AsyncMock()).run("ps")

    async def test_unknown_docker_host(self, tmp_store):
        await tmp_store.save_script(Script(
            id="ps", name="PS", command="ps", script_type=ScriptType.DOCKER,
            docker_host_id="nope", container_id="web",
        ))
        with pytest.raises(NotFoundError):
            await ScriptRunner(tmp_store, containers=AsyncMock()).run("ps")


def _make_v1_store(path):
    """A version-1 store holding one server that references a legacy SSH connection."""
    conn = sqlite3.connect(str(path))
    conn.execute(_METADATA_DDL)
    for ddl in _BASE_SCHEMA:
        conn.execute(ddl)
    conn.execute(
        "INSERT INTO ssh_connections (id, name, host, port, username, auth_method) "
        "VALUES ('conn-1', 'conn 1', '10.0.0.5', 2200, 'deploy', ?)",
        ('{"kind":"public_key","key_path":"/keys/deploy"}',),
    )
    conn.execute(
        "INSERT INTO servers (id, name, host, ssh_connection_id) "
        "VALUES ('web1', 'Web 1', '10.0.0.5', 'conn-1')"
    )
    conn.execute("INSERT INTO metadata (key, value) VALUES ('schema_version', '1')")
    conn.commit()
    conn.close()


class TestUpgradedServers:
    async def test_legacy_reference_resolves_after_upgrade(self, tmp_path):
        path = tmp_path / "v1.db"
        _make_v1_store(path)
        store = Store()
        await store.init(path)
        try:
            server = await store.get_server("web1")
            target = await ScriptRunner(store).ssh_target(server)
        finally:
            await store.close()

        assert server.credential_id == "conn-1"
        assert target == SshTarget(host="10.0.0.5", port=2200, username="deploy", key_path="/keys/deploy")

    async def test_migrate_moves_server_onto_credential(self, tmp_path):
        path = tmp_path / "v1.db"
        _make_v1_store(path)
        store = Store()
        await store.init(path)
        try:
            report = await LegacyMigrator(store).migrate(auto=True, cleanup=True)
            server = await store.get_server("web1")
            target = await ScriptRunner(store).ssh_target(server)
        finally:
            await store.close()

        assert report.servers_retargeted == ["web1"]
        assert server.credential_id == "conn-1-ssh"
        assert target == SshTarget(host="10.0.0.5", port=2200, username="deploy", key_path="/keys/deploy")
