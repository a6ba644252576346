#  pctrl - Credential Schemas
#
#  Credential payloads are a tagged union keyed by credential type.
#  The tag lives inside the payload ("type") and is the single source of
#  truth for Credential.credential_type, so tag and variant cannot drift.
#
#  Depends on: models/enums.py
#  Used by:    store/credentials.py, services/*, cli/commands/credential.py

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from pctrl.models.enums import CredentialType

DEFAULT_SSH_PORT = 22


class _Payload(BaseModel):
    # Variants have disjoint field sets; stray fields are an error
    model_config = ConfigDict(extra="forbid")


class SshKeyData(_Payload):
    type: Literal["ssh_key"] = "ssh_key"
    username: str = Field(..., min_length=1)
    port: int = Field(default=DEFAULT_SSH_PORT, ge=1, le=65535)
    key_path: str = Field(..., min_length=1)
    passphrase: str | None = None


class SshAgentData(_Payload):
    type: Literal["ssh_agent"] = "ssh_agent"
    username: str = Field(..., min_length=1)
    port: int = Field(default=DEFAULT_SSH_PORT, ge=1, le=65535)


class ApiTokenData(_Payload):
    type: Literal["api_token"] = "api_token"
    token: str = Field(..., min_length=1)
    url: str | None = None


class BasicAuthData(_Payload):
    type: Literal["basic_auth"] = "basic_auth"
    username: str = Field(..., min_length=1)
    password: str
    url: str | None = None


class OAuthData(_Payload):
    type: Literal["oauth"] = "oauth"
    access_token: str = Field(..., min_length=1)
    refresh_token: str | None = None
    expires_at: str | None = None
    url: str | None = None


CredentialData = Annotated[
    Union[SshKeyData, SshAgentData, ApiTokenData, BasicAuthData, OAuthData],
    Field(discriminator="type"),
]

credential_data_adapter: TypeAdapter[CredentialData] = TypeAdapter(CredentialData)


class Credential(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    data: CredentialData
    notes: str | None = None

    @property
    def credential_type(self) -> CredentialType:
        return CredentialType(self.data.type)

    def as_ssh(self) -> SshKeyData | SshAgentData | None:
        """SSH details if this credential can open an SSH session."""
        if isinstance(self.data, (SshKeyData, SshAgentData)):
            return self.data
        return None

    def as_api_token(self) -> ApiTokenData | None:
        if isinstance(self.data, ApiTokenData):
            return self.data
        return None


class CredentialSummary(BaseModel):
    """Cleartext columns of a credential row; listing needs no passphrase."""

    id: str
    name: str
    credential_type: CredentialType
    notes: str | None = None


def payload_to_bytes(data: CredentialData) -> bytes:
    """Serialize a payload to the canonical JSON bytes that get encrypted."""
    return credential_data_adapter.dump_json(data)


def payload_from_bytes(raw: bytes) -> CredentialData:
    """Decode JSON bytes back into the matching payload variant."""
    return credential_data_adapter.validate_json(raw)
