#  pctrl - Script Runner
#
#  Runs a saved script locally, over SSH or inside a container, then
#  records the outcome on the script row. Dangerous scripts refuse to run
#  without force.
#
#  Depends on: store/store.py, integrations/*, config.py, exceptions.py
#  Used by:    cli/commands/script.py, container.py

import asyncio
import logging
from dataclasses import dataclass

from pctrl.config import SCRIPT_TIMEOUT
from pctrl.exceptions import (
    CollaboratorError,
    ConfirmationRequiredError,
    NotFoundError,
    ValidationError,
)
from pctrl.integrations.base import CommandResult, ContainerRuntime, RemoteExecutor, SshTarget
from pctrl.integrations.shell import run_command
from pctrl.models.credentials import SshKeyData
from pctrl.models.enums import ScriptResult, ScriptType
from pctrl.models.legacy import PublicKeyAuth, SshConnection
from pctrl.models.schemas import Script, Server
from pctrl.store.store import Store

logger = logging.getLogger("pctrl.scripts")


@dataclass
class ScriptRun:
    script_id: str
    result: ScriptResult
    exit_code: int | None
    output: str


def _legacy_target(server: Server, conn: SshConnection) -> SshTarget:
    return SshTarget(
        host=server.host,
        port=conn.port,
        username=conn.username,
        key_path=conn.auth_method.key_path if isinstance(conn.auth_method, PublicKeyAuth) else None,
    )


class ScriptRunner:

    def __init__(
        self,
        store: Store,
        remote: RemoteExecutor | None = None,
        containers: ContainerRuntime | None = None,
    ):
        self._store = store
        self._remote = remote
        self._containers = containers

    async def resolve(self, ref: str) -> Script:
        """Find a script by id, then by name (case-insensitive)."""
        script = await self._store.get_script(ref) or await self._store.get_script_by_name(ref)
        if script is None:
            raise NotFoundError("script", ref)
        return script

    async def run(self, ref: str, force: bool = False) -> ScriptRun:
        script = await self.resolve(ref)
        if script.dangerous and not force:
            raise ConfirmationRequiredError(
                f"Script '{script.name}' is marked dangerous; re-run with --force to execute it"
            )

        logger.info("Running script %s (%s)", script.id, script.script_type.value)
        try:
            result = await self._dispatch(script)
        except CollaboratorError as e:
            await self._store.update_script_result(script.id, ScriptResult.ERROR, None, str(e))
            raise

        outcome = ScriptResult.SUCCESS if result.ok else ScriptResult.ERROR
        await self._store.update_script_result(script.id, outcome, result.exit_code, result.output)
        if not result.ok:
            logger.warning("Script %s exited with %d", script.id, result.exit_code)
        return ScriptRun(
            script_id=script.id,
            result=outcome,
            exit_code=result.exit_code,
            output=result.output,
        )

    async def _dispatch(self, script: Script) -> CommandResult:
        if script.script_type == ScriptType.LOCAL:
            return await asyncio.to_thread(run_command, ["sh", "-c", script.command], SCRIPT_TIMEOUT)
        if script.script_type == ScriptType.SSH:
            return await self._run_ssh(script)
        return await self._run_docker(script)

    async def _run_ssh(self, script: Script) -> CommandResult:
        if not script.server_id:
            raise ValidationError(f"SSH script '{script.name}' has no server_id")
        server = await self._store.get_server(script.server_id)
        if server is None:
            raise NotFoundError("server", script.server_id)
        target = await self.ssh_target(server)
        if self._remote is None:
            raise CollaboratorError("No remote executor configured")
        return await self._remote.execute(target, script.command)

    async def ssh_target(self, server: Server) -> SshTarget:
        """Connection details for a server.

        Uses the server's SSH credential. Stores upgraded past schema v4
        may still carry a legacy SSH connection id in ``credential_id``
        until ``pctrl migrate`` retargets them; such an id resolves to the
        legacy connection. A server with no reference falls back to a
        legacy connection sharing its id.
        """
        if server.credential_id:
            credential = await self._store.get_credential(server.credential_id)
            if credential is None:
                legacy = await self._store.get_ssh_connection(server.credential_id)
                if legacy is None:
                    raise NotFoundError("credential", server.credential_id)
                return _legacy_target(server, legacy)
            ssh = credential.as_ssh()
            if ssh is None:
                raise ValidationError(
                    f"Credential '{credential.name}' is {credential.credential_type.value}, not an SSH credential"
                )
            return SshTarget(
                host=server.host,
                port=ssh.port,
                username=ssh.username,
                key_path=ssh.key_path if isinstance(ssh, SshKeyData) else None,
            )

        legacy = await self._store.get_ssh_connection(server.id)
        if legacy is not None:
            return _legacy_target(server, legacy)
        raise ValidationError(f"Server '{server.name}' has no SSH credential")

    async def _run_docker(self, script: Script) -> CommandResult:
        if not script.docker_host_id or not script.container_id:
            raise ValidationError(
                f"Docker script '{script.name}' needs both docker_host_id and container_id"
            )
        host = await self._store.get_docker_host(script.docker_host_id)
        if host is None:
            raise NotFoundError("docker host", script.docker_host_id)
        if self._containers is None:
            raise CollaboratorError("No container runtime configured")
        return await self._containers.exec(host.url, script.container_id, script.command)
