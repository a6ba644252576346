#  pctrl - Credential Store
#
#  Credential payloads are serialized to JSON and encrypted before they
#  reach the database. The type tag is kept in cleartext next to the blob
#  so listings work without decrypting; on load the tag must agree with
#  the decrypted variant.
#
#  Depends on: store/_base.py, models/credentials.py, crypto.py
#  Used by:    store/store.py, services/*

import sqlite3

from pctrl.exceptions import AlreadyExistsError, CryptoError, StorageError
from pctrl.models.credentials import (
    Credential,
    CredentialSummary,
    payload_from_bytes,
    payload_to_bytes,
)
from pctrl.models.enums import CredentialType
from pctrl.store._base import StoreBase


class CredentialStoreMixin(StoreBase):

    def _row_to_credential(self, row: sqlite3.Row) -> Credential:
        try:
            plaintext = self.crypto.decrypt(bytes(row["data"]))
        except CryptoError as e:
            raise CryptoError(e.cause, entity="credential", key=row["id"]) from e
        data = payload_from_bytes(plaintext)
        tag = CredentialType(row["credential_type"])
        if tag.value != data.type:
            raise StorageError(
                f"type tag '{tag.value}' does not match payload '{data.type}'",
                entity="credential", key=row["id"],
            )
        return Credential(id=row["id"], name=row["name"], data=data, notes=row["notes"])

    async def save_credential(self, credential: Credential) -> None:
        with self._guard("credential", credential.id):
            await self._write_credential(credential)

    async def _write_credential(self, credential: Credential) -> None:
        blob = self.crypto.encrypt(payload_to_bytes(credential.data))
        await self._upsert("credentials", {
            "id": credential.id,
            "name": credential.name,
            "credential_type": credential.credential_type.value,
            "data": blob,
            "notes": credential.notes,
        })

    async def add_credential(self, credential: Credential) -> None:
        with self._guard("credential", credential.id):
            async with self.db.transaction():
                if await self._exists("credentials", credential.id):
                    raise AlreadyExistsError("credential", credential.id)
                if await self._fetch_by_name("credentials", credential.name) is not None:
                    raise AlreadyExistsError("credential", credential.name)
                await self._write_credential(credential)

    async def get_credential(self, credential_id: str) -> Credential | None:
        with self._guard("credential", credential_id):
            row = await self.db.fetchone("SELECT * FROM credentials WHERE id = ?", (credential_id,))
            return self._row_to_credential(row) if row else None

    async def get_credential_by_name(self, name: str) -> Credential | None:
        with self._guard("credential", name):
            row = await self._fetch_by_name("credentials", name)
            return self._row_to_credential(row) if row else None

    async def list_credentials(self) -> list[Credential]:
        """All credentials, decrypted. Fails if any row cannot be decrypted."""
        with self._guard("credential"):
            rows = await self.db.fetchall("SELECT * FROM credentials ORDER BY name COLLATE NOCASE, id")
            return [self._row_to_credential(r) for r in rows]

    async def list_credential_summaries(self) -> list[CredentialSummary]:
        with self._guard("credential"):
            rows = await self.db.fetchall(
                "SELECT id, name, credential_type, notes FROM credentials ORDER BY name COLLATE NOCASE, id"
            )
            return [
                CredentialSummary(
                    id=r["id"],
                    name=r["name"],
                    credential_type=CredentialType(r["credential_type"]),
                    notes=r["notes"],
                )
                for r in rows
            ]

    async def remove_credential(self, credential_id: str) -> bool:
        with self._guard("credential", credential_id):
            return await self._delete("credentials", credential_id)

    async def remove_credential_by_name(self, name: str) -> bool:
        with self._guard("credential", name):
            cursor = await self.db.execute_write(
                "DELETE FROM credentials WHERE LOWER(name) = LOWER(?)", (name,)
            )
            return cursor.rowcount > 0

    async def credential_exists(self, credential_id: str) -> bool:
        with self._guard("credential", credential_id):
            return await self._exists("credentials", credential_id)
