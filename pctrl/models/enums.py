#  pctrl - Enums
#
#  Status and type enumerations used across the system.
#  Values are the lowercase strings persisted in the database; lookups
#  are case-insensitive and accept the short aliases the CLI offers.
#
#  Depends on: (none)
#  Used by:    models/*, store/*, services/*, cli/*

from enum import Enum


class _AliasedEnum(str, Enum):
    """str Enum that resolves case-insensitive values and `_aliases`."""

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        for member in cls:
            if member.value == key:
                return member
        target = cls._aliases().get(key)
        return cls(target) if target else None

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {}


class ProjectStatus(_AliasedEnum):
    DEV = "dev"
    STAGING = "staging"
    LIVE = "live"
    ARCHIVED = "archived"


class ServerType(_AliasedEnum):
    VPS = "vps"
    DEDICATED = "dedicated"
    LOCAL = "local"
    CLOUD = "cloud"


class DomainType(_AliasedEnum):
    PRODUCTION = "production"
    STAGING = "staging"
    DEV = "dev"

    @classmethod
    def _aliases(cls):
        return {"prod": "production"}


class DatabaseType(_AliasedEnum):
    MONGODB = "mongodb"
    POSTGRES = "postgres"
    MYSQL = "mysql"
    REDIS = "redis"
    SQLITE = "sqlite"

    @classmethod
    def _aliases(cls):
        return {
            "mongo": "mongodb",
            "postgresql": "postgres",
            "pg": "postgres",
            "mariadb": "mysql",
        }


class ScriptType(_AliasedEnum):
    SSH = "ssh"
    LOCAL = "local"
    DOCKER = "docker"


class ScriptResult(_AliasedEnum):
    SUCCESS = "success"
    ERROR = "error"


class CredentialType(_AliasedEnum):
    SSH_KEY = "ssh_key"
    SSH_AGENT = "ssh_agent"
    API_TOKEN = "api_token"
    BASIC_AUTH = "basic_auth"
    OAUTH = "oauth"

    @classmethod
    def _aliases(cls):
        return {
            "ssh": "ssh_key",
            "sshkey": "ssh_key",
            "agent": "ssh_agent",
            "sshagent": "ssh_agent",
            "api": "api_token",
            "apitoken": "api_token",
            "token": "api_token",
            "basic": "basic_auth",
            "basicauth": "basic_auth",
        }


class ResourceType(_AliasedEnum):
    SERVER = "server"
    CONTAINER = "container"
    DATABASE = "database"
    DOMAIN = "domain"
    GIT = "git"
    COOLIFY = "coolify"
    SCRIPT = "script"


class ResourceStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"      # No probe target (e.g. unix socket docker host)
