#  pctrl - Store Base
#
#  Shared plumbing for the per-entity store mixins: the database and
#  crypto handles, error wrapping, JSON columns and upsert SQL.
#
#  Depends on: db/connection.py, crypto.py, exceptions.py
#  Used by:    store/*

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pctrl.crypto import CryptoEngine
from pctrl.db.connection import Database
from pctrl.exceptions import PctrlError, StorageError


class StoreBase:
    db: Database
    crypto: CryptoEngine

    @contextmanager
    def _guard(self, entity: str, key: str | None = None) -> Iterator[None]:
        """Flatten engine and decode failures into StorageError.

        Domain errors (NotFound, AlreadyExists, StorageError itself) pass
        through untouched.
        """
        try:
            yield
        except PctrlError:
            raise
        except sqlite3.Error as e:
            raise StorageError(str(e), entity=entity, key=key) from e
        except (ValueError, TypeError) as e:
            # json.JSONDecodeError, pydantic.ValidationError and unknown enum
            # values are all ValueError subclasses
            raise StorageError(f"malformed row: {e}", entity=entity, key=key) from e

    async def _upsert(self, table: str, values: dict[str, Any]) -> None:
        """INSERT ... ON CONFLICT(id) DO UPDATE over every given column."""
        columns = list(values)
        placeholders = ", ".join("?" for _ in columns)
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c != "id")
        await self.db.execute_write(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            tuple(values.values()),
        )

    async def _delete(self, table: str, entity_id: str) -> bool:
        cursor = await self.db.execute_write(f"DELETE FROM {table} WHERE id = ?", (entity_id,))
        return cursor.rowcount > 0

    async def _exists(self, table: str, entity_id: str) -> bool:
        row = await self.db.fetchone(f"SELECT 1 FROM {table} WHERE id = ?", (entity_id,))
        return row is not None

    async def _fetch_by_name(self, table: str, name: str, column: str = "name") -> sqlite3.Row | None:
        return await self.db.fetchone(
            f"SELECT * FROM {table} WHERE LOWER({column}) = LOWER(?) ORDER BY id LIMIT 1",
            (name,),
        )


def dump_json(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value)


def load_json(raw: str | None, default: Any = None) -> Any:
    if raw is None or raw == "":
        return default
    return json.loads(raw)
