#  pctrl - Store
#
#  The single persistent store: owns the Database handle and the crypto
#  engine, and exposes per-entity CRUD through the mixins. Built once per
#  process (see container.py) and passed by reference.
#
#  Depends on: db/connection.py, crypto.py, store/*
#  Used by:    container.py, services/*, cli/*

import logging
from pathlib import Path

from pctrl.crypto import CryptoEngine, generate_salt
from pctrl.db.connection import Database
from pctrl.store.credentials import CredentialStoreMixin
from pctrl.store.databases import DatabaseStoreMixin
from pctrl.store.domains import DomainStoreMixin
from pctrl.store.legacy import LegacyStoreMixin
from pctrl.store.projects import ProjectStoreMixin
from pctrl.store.resources import ResourceLinkMixin
from pctrl.store.scripts import ScriptStoreMixin
from pctrl.store.servers import ServerStoreMixin

logger = logging.getLogger("pctrl.store")

SALT_KEY = "encryption_salt"


class Store(
    ProjectStoreMixin,
    ServerStoreMixin,
    DomainStoreMixin,
    DatabaseStoreMixin,
    ScriptStoreMixin,
    CredentialStoreMixin,
    LegacyStoreMixin,
    ResourceLinkMixin,
):
    """Project-centric infrastructure store over one SQLite file.

    The cipher decision is fixed by ``init``: with a passphrase, credential
    payloads are encrypted with a key derived from it and the per-store
    salt; without one they are stored as plain JSON.
    """

    def __init__(self, db: Database | None = None):
        self.db = db or Database()
        self.crypto = CryptoEngine(None)

    async def init(self, db_path: str | Path, passphrase: str | None = None):
        await self.db.init(db_path)
        if passphrase:
            with self._guard("metadata", SALT_KEY):
                salt = await self._get_or_create_salt()
            self.crypto = CryptoEngine.from_passphrase(passphrase, salt)
        else:
            self.crypto = CryptoEngine(None)
        logger.debug("Store ready (encryption %s)", "on" if self.crypto.enabled else "off")

    async def _get_or_create_salt(self) -> bytes:
        async with self.db.transaction():
            row = await self.db.fetchone("SELECT value FROM metadata WHERE key = ?", (SALT_KEY,))
            if row is not None:
                return bytes(row["value"])
            salt = generate_salt()
            await self.db.execute_write(
                "INSERT INTO metadata (key, value) VALUES (?, ?)", (SALT_KEY, salt)
            )
            logger.info("Generated new encryption salt")
            return salt

    async def schema_version(self) -> int:
        row = await self.db.fetchone("SELECT value FROM metadata WHERE key = 'schema_version'")
        return int(row["value"]) if row else 1

    async def close(self):
        await self.db.close()
