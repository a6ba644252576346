#  pctrl - Custom Exceptions
#
#  Typed exception hierarchy so the CLI and services can branch on the
#  kind of failure without pattern-matching on message strings.
#
#  Depends on: (none)
#  Used by:    crypto.py, store/*, services/*, cli/*

class PctrlError(Exception):
    """Base exception for all pctrl errors."""


class NotFoundError(PctrlError):
    """Entity (project, server, script, ...) does not exist.

    Plain lookups return None instead; this is raised by operations that
    need the target to exist, e.g. linking a resource to a project.
    """

    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity.capitalize()} '{key}' not found")


class AlreadyExistsError(PctrlError):
    """Create would overwrite an entity with the same id or name."""

    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity.capitalize()} '{key}' already exists")


class StorageError(PctrlError):
    """Storage engine failure: I/O, constraint violation or malformed row.

    Every sub-cause is flattened into ``cause`` so callers branch on the
    exception type only.
    """

    def __init__(self, cause: str, *, entity: str | None = None, key: str | None = None):
        self.cause = cause
        self.entity = entity
        self.key = key
        if entity and key:
            msg = f"Storage error on {entity} '{key}': {cause}"
        elif entity:
            msg = f"Storage error on {entity}: {cause}"
        else:
            msg = f"Storage error: {cause}"
        super().__init__(msg)


class CryptoError(StorageError):
    """Key derivation or authenticated decryption failed."""


class ValidationError(PctrlError):
    """A required field for the declared type is missing or invalid."""


class ConfirmationRequiredError(PctrlError):
    """Destructive operation needs explicit confirmation (or --force)."""


class CollaboratorError(PctrlError):
    """An external collaborator (ssh, docker, ...) is missing or failed."""
