from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

from .errors import BatchInsertError

"""DB batch insert helper.

One call = one INSERT statement built by psycopg2.extras.execute_values, so a
batch is stored or rejected as a unit. Transaction boundaries (COMMIT /
ROLLBACK) are owned by the caller.
"""

__all__ = [
    "InsertResult",
    "batch_insert",
]


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    returning: str | None = None,
    page_size: int = 1000,
) -> InsertResult:
    """Perform batched INSERT using psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: 対象テーブル名 (サニタイズ済み想定)
    columns: 挿入列
    rows: 行シーケンス (columns と同順)
    returning: RETURNING 句の列名 (例: "id")。指定時は返却行数を挿入数とする
    page_size: execute_values の page_size。rows がこれを超える場合は複数文に分割される
    """
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0)

    cols_sql = ",".join(f'"{c}"' for c in columns)
    base_sql = f'INSERT INTO "{table}" ({cols_sql}) VALUES %s'
    if returning:
        base_sql += f' RETURNING "{returning}"'

    try:
        returned = execute_values(
            cursor, base_sql, rows_list, page_size=page_size, fetch=bool(returning)
        )
    except psycopg2.Error as e:
        raise BatchInsertError(_db_message(e)) from e

    if returning:
        return InsertResult(inserted_rows=len(returned))
    return InsertResult(inserted_rows=len(rows_list))


def _db_message(error: psycopg2.Error) -> str:
    # pgerror は複数行 (DETAIL 等) を含むため先頭行のみ
    text = (error.pgerror or str(error)).strip()
    return text.splitlines()[0] if text else error.__class__.__name__
