from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import psycopg2

from ..schema.catalog import FIELDS
from .batch_insert import batch_insert
from .errors import BatchInsertError, StoreError

"""Record store interface and PostgreSQL implementation.

The pipeline only needs two operations from the store:

- exists(address, suburb): exact address + suburb match lookup
- insert_batch(records): insert a set of rows as one unit, returning the
  number inserted or raising BatchInsertError

The store is always passed in explicitly; there is no module-level client.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "RECORD_COLUMNS",
    "LocationStore",
    "PostgresLocationStore",
    "validate_table_name",
]

# 挿入列 = スキーマ列 + 取込メタデータ列
RECORD_COLUMNS: tuple[str, ...] = tuple(f.key for f in FIELDS) + (
    "status",
    "source",
    "owner_user_id",
)

_TABLE_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class LocationStore(Protocol):
    def exists(self, address: str, suburb: str) -> bool: ...

    def insert_batch(self, records: Sequence[Mapping[str, Any]]) -> int: ...


def validate_table_name(table: str) -> str:
    if not _TABLE_NAME_RE.fullmatch(table):
        raise ValueError(
            f"invalid table name '{table}': only letters, digits and underscores are allowed"
        )
    return table


class PostgresLocationStore:
    """LocationStore backed by a psycopg2 connection.

    Each successful batch is committed immediately; a failed batch is rolled
    back so later batches run in a clean transaction. Batches committed
    earlier in the run are never undone.
    """

    def __init__(self, connection: Any, table: str = "locations", page_size: int = 1000) -> None:
        self.connection = connection
        self.table = validate_table_name(table)
        self.page_size = page_size

    def exists(self, address: str, suburb: str) -> bool:
        query = f'SELECT 1 FROM "{self.table}" WHERE address = %s AND suburb = %s LIMIT 1'
        try:
            with self.connection.cursor() as cur:
                cur.execute(query, (address, suburb))
                found = cur.fetchone() is not None
        except psycopg2.Error as e:
            self._rollback()
            raise StoreError(f"duplicate check failed: {e}") from e
        return found

    def insert_batch(self, records: Sequence[Mapping[str, Any]]) -> int:
        rows = [[record.get(col) for col in RECORD_COLUMNS] for record in records]
        try:
            with self.connection.cursor() as cur:
                result = batch_insert(
                    cur,
                    table=self.table,
                    columns=RECORD_COLUMNS,
                    rows=rows,
                    returning="id",
                    page_size=self.page_size,
                )
                if result.inserted_rows != len(rows):
                    raise BatchInsertError(
                        f"insert returned {result.inserted_rows} ids for {len(rows)} rows"
                    )
            self.connection.commit()
        except BatchInsertError:
            self._rollback()
            raise
        except psycopg2.Error as e:  # COMMIT 失敗
            self._rollback()
            raise BatchInsertError(str(e).strip()) from e
        logger.debug("table=%s inserted_rows=%d", self.table, result.inserted_rows)
        return result.inserted_rows

    def _rollback(self) -> None:
        try:
            self.connection.rollback()
        except psycopg2.Error:
            logger.warning("rollback failed table=%s", self.table, exc_info=True)
