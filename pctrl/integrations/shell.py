#  pctrl - Shell Collaborators
#
#  Remote execution and container exec through the ssh and docker
#  command-line clients. Each call is a one-shot subprocess wrapped in
#  asyncio.to_thread(); a non-zero exit is a result, not an error.
#
#  Depends on: config.py, exceptions.py, integrations/base.py
#  Used by:    container.py, services/script_runner.py

import asyncio
import logging
import subprocess

from pctrl.config import SCRIPT_TIMEOUT, SSH_CONNECT_TIMEOUT
from pctrl.exceptions import CollaboratorError
from pctrl.integrations.base import CommandResult, SshTarget

logger = logging.getLogger("pctrl.shell")


def run_command(cmd: list[str], timeout: float) -> CommandResult:
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired:
        raise CollaboratorError(f"{cmd[0]} timed out after {timeout}s")
    except OSError as e:
        raise CollaboratorError(f"Failed to run {cmd[0]}: {e}")
    return CommandResult(
        exit_code=result.returncode,
        stdout=result.stdout.strip(),
        stderr=result.stderr.strip(),
    )


class OpenSshExecutor:
    """RemoteExecutor using the system ``ssh`` client in batch mode."""

    def __init__(self, timeout: float | None = None):
        self._timeout = timeout or SCRIPT_TIMEOUT

    @staticmethod
    def build_command(target: SshTarget, command: str) -> list[str]:
        cmd = [
            "ssh",
            "-o", "BatchMode=yes",
            "-o", f"ConnectTimeout={SSH_CONNECT_TIMEOUT}",
            "-p", str(target.port),
        ]
        if target.key_path:
            cmd += ["-i", target.key_path]
        cmd += [f"{target.username}@{target.host}", command]
        return cmd

    async def execute(self, target: SshTarget, command: str) -> CommandResult:
        logger.debug("ssh %s@%s:%d %s", target.username, target.host, target.port, command)
        return await asyncio.to_thread(run_command, self.build_command(target, command), self._timeout)

    async def test_connection(self, target: SshTarget) -> bool:
        try:
            result = await asyncio.to_thread(
                run_command, self.build_command(target, "true"), SSH_CONNECT_TIMEOUT + 1,
            )
        except CollaboratorError:
            return False
        return result.ok


class DockerCli:
    """ContainerRuntime using ``docker -H <host> exec``."""

    def __init__(self, timeout: float | None = None):
        self._timeout = timeout or SCRIPT_TIMEOUT

    @staticmethod
    def build_command(host_url: str, container_id: str, command: str) -> list[str]:
        return ["docker", "-H", host_url, "exec", container_id, "sh", "-c", command]

    async def exec(self, host_url: str, container_id: str, command: str) -> CommandResult:
        logger.debug("docker exec %s on %s: %s", container_id, host_url, command)
        return await asyncio.to_thread(
            run_command, self.build_command(host_url, container_id, command), self._timeout,
        )
