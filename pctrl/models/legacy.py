#  pctrl - Legacy Schemas
#
#  Flat connection records from before the project/server model.
#  Kept readable and writable so `pctrl migrate` can walk them.
#
#  Depends on: (none)
#  Used by:    store/legacy.py, services/legacy_migration.py, services/*

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class PasswordAuth(BaseModel):
    kind: Literal["password"] = "password"


class PublicKeyAuth(BaseModel):
    kind: Literal["public_key"] = "public_key"
    key_path: str = Field(..., min_length=1)


AuthMethod = Annotated[Union[PasswordAuth, PublicKeyAuth], Field(discriminator="kind")]

auth_method_adapter: TypeAdapter[AuthMethod] = TypeAdapter(AuthMethod)


class SshConnection(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    host: str = Field(..., min_length=1)
    port: int = Field(default=22, ge=1, le=65535)
    username: str = Field(..., min_length=1)
    auth_method: AuthMethod = Field(default_factory=PasswordAuth)


class DockerHost(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)


class CoolifyInstance(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    api_key: str


class GitRepo(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    path: str = Field(..., min_length=1)
    remote_url: str | None = None


class LegacyInventory(BaseModel):
    """All legacy records, loaded together for migration."""

    ssh_connections: list[SshConnection] = Field(default_factory=list)
    docker_hosts: list[DockerHost] = Field(default_factory=list)
    coolify_instances: list[CoolifyInstance] = Field(default_factory=list)
    git_repos: list[GitRepo] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.ssh_connections)
            + len(self.docker_hosts)
            + len(self.coolify_instances)
            + len(self.git_repos)
        )
