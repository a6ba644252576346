#  pctrl - Domain Store
#
#  Depends on: store/_base.py, models/schemas.py
#  Used by:    store/store.py

import sqlite3

from pctrl.exceptions import AlreadyExistsError
from pctrl.models.enums import DomainType
from pctrl.models.schemas import Domain
from pctrl.store._base import StoreBase


def _row_to_domain(row: sqlite3.Row) -> Domain:
    return Domain(
        id=row["id"],
        domain=row["domain"],
        domain_type=DomainType(row["domain_type"]),
        ssl=bool(row["ssl"]),
        ssl_expiry=row["ssl_expiry"],
        cloudflare_zone_id=row["cloudflare_zone_id"],
        cloudflare_record_id=row["cloudflare_record_id"],
        server_id=row["server_id"],
        container_id=row["container_id"],
        notes=row["notes"],
    )


class DomainStoreMixin(StoreBase):

    async def save_domain(self, domain: Domain) -> None:
        with self._guard("domain", domain.id):
            await self._write_domain(domain)

    async def _write_domain(self, domain: Domain) -> None:
        await self._upsert("domains", {
            "id": domain.id,
            "domain": domain.domain,
            "domain_type": domain.domain_type.value,
            "ssl": int(domain.ssl),
            "ssl_expiry": domain.ssl_expiry,
            "cloudflare_zone_id": domain.cloudflare_zone_id,
            "cloudflare_record_id": domain.cloudflare_record_id,
            "server_id": domain.server_id,
            "container_id": domain.container_id,
            "notes": domain.notes,
        })

    async def add_domain(self, domain: Domain) -> None:
        with self._guard("domain", domain.id):
            async with self.db.transaction():
                if await self._exists("domains", domain.id):
                    raise AlreadyExistsError("domain", domain.id)
                if await self._fetch_by_name("domains", domain.domain, column="domain") is not None:
                    raise AlreadyExistsError("domain", domain.domain)
                await self._write_domain(domain)

    async def get_domain(self, domain_id: str) -> Domain | None:
        with self._guard("domain", domain_id):
            row = await self.db.fetchone("SELECT * FROM domains WHERE id = ?", (domain_id,))
            return _row_to_domain(row) if row else None

    async def get_domain_by_name(self, name: str) -> Domain | None:
        with self._guard("domain", name):
            row = await self._fetch_by_name("domains", name, column="domain")
            return _row_to_domain(row) if row else None

    async def list_domains(self) -> list[Domain]:
        with self._guard("domain"):
            rows = await self.db.fetchall("SELECT * FROM domains ORDER BY domain COLLATE NOCASE, id")
            return [_row_to_domain(r) for r in rows]

    async def list_domains_for_server(self, server_id: str) -> list[Domain]:
        with self._guard("domain"):
            rows = await self.db.fetchall(
                "SELECT * FROM domains WHERE server_id = ? ORDER BY domain COLLATE NOCASE, id", (server_id,)
            )
            return [_row_to_domain(r) for r in rows]

    async def remove_domain(self, domain_id: str) -> bool:
        with self._guard("domain", domain_id):
            return await self._delete("domains", domain_id)

    async def domain_exists(self, domain_id: str) -> bool:
        with self._guard("domain", domain_id):
            return await self._exists("domains", domain_id)
