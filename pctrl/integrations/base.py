#  pctrl - Collaborator Interfaces
#
#  Contracts for the outbound integrations the core talks to. The store
#  only persists their connection records; implementations live in
#  integrations/shell.py and integrations/git.py, and tests substitute
#  mocks.
#
#  Depends on: (none)
#  Used by:    services/script_runner.py, integrations/*, container.py

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass
class SshTarget:
    host: str
    port: int
    username: str
    key_path: str | None = None     # None: password / agent authentication


@dataclass
class CommandResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        if self.stderr and self.stdout:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr


@runtime_checkable
class RemoteExecutor(Protocol):
    async def execute(self, target: SshTarget, command: str) -> CommandResult: ...

    async def test_connection(self, target: SshTarget) -> bool: ...


@runtime_checkable
class ContainerRuntime(Protocol):
    async def exec(self, host_url: str, container_id: str, command: str) -> CommandResult: ...


@runtime_checkable
class DeploymentPlatform(Protocol):
    async def list_deployments(self, url: str, api_key: str) -> list[dict]: ...


@runtime_checkable
class VersionControl(Protocol):
    async def list_tags(self, repo_path: str) -> list[str]: ...

    async def create_tag(self, repo_path: str, tag: str, message: str | None = None) -> None: ...

    async def push_tags(self, repo_path: str) -> None: ...
