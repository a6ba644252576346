#  pctrl - Entity Schemas
#
#  Pydantic records for the project-centric entity model.
#  Cross-entity fields (server_id, credential_id, ...) are soft references:
#  plain ids, never validated against their target table.
#
#  Depends on: models/enums.py
#  Used by:    store/*, services/*, cli/*

from datetime import datetime

from pydantic import BaseModel, Field

from pctrl.models.enums import (
    DatabaseType,
    DomainType,
    ProjectStatus,
    ResourceType,
    ScriptResult,
    ScriptType,
    ServerType,
)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

class Project(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str | None = None
    stack: list[str] = Field(default_factory=list)
    status: ProjectStatus = ProjectStatus.DEV
    color: str | None = None
    icon: str | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Servers
# ---------------------------------------------------------------------------

class ServerSpecs(BaseModel):
    cpu_cores: int | None = Field(default=None, ge=0)
    ram_gb: int | None = Field(default=None, ge=0)
    disk_gb: int | None = Field(default=None, ge=0)


class Server(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    host: str = Field(..., min_length=1)
    server_type: ServerType = ServerType.VPS
    provider: str | None = None
    credential_id: str | None = None  # Credential used for SSH access
    location: str | None = None
    specs: ServerSpecs | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Domains
# ---------------------------------------------------------------------------

class Domain(BaseModel):
    id: str = Field(..., min_length=1)
    domain: str = Field(..., min_length=1)
    domain_type: DomainType = DomainType.PRODUCTION
    ssl: bool = True
    ssl_expiry: str | None = None
    cloudflare_zone_id: str | None = None
    cloudflare_record_id: str | None = None
    server_id: str | None = None
    container_id: str | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Database credentials
# ---------------------------------------------------------------------------

class DatabaseCredential(BaseModel):
    """Connection details for a managed database.

    ``password`` is persisted in cleartext, unlike Credential payloads.
    """

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    db_type: DatabaseType = DatabaseType.POSTGRES
    host: str | None = None
    port: int | None = Field(default=None, ge=1, le=65535)
    database_name: str | None = None
    username: str | None = None
    password: str | None = None
    connection_string: str | None = None
    server_id: str | None = None
    container_id: str | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Scripts
# ---------------------------------------------------------------------------

class Script(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str | None = None
    command: str = Field(..., min_length=1)
    script_type: ScriptType = ScriptType.SSH
    server_id: str | None = None
    project_id: str | None = None
    docker_host_id: str | None = None
    container_id: str | None = None
    dangerous: bool = False
    last_run: datetime | None = None
    last_result: ScriptResult | None = None
    exit_code: int | None = None
    last_output: str | None = None


# ---------------------------------------------------------------------------
# Project resources
# ---------------------------------------------------------------------------

class ProjectResource(BaseModel):
    """Typed edge Project -> resource. ``resource_id`` is a soft reference."""

    id: str = Field(..., min_length=1)
    project_id: str = Field(..., min_length=1)
    resource_type: ResourceType
    resource_id: str = Field(..., min_length=1)
    role: str | None = None
    notes: str | None = None
