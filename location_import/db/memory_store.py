from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

"""In-memory LocationStore used for dry runs (no database connection)."""

__all__ = [
    "InMemoryLocationStore",
]


class InMemoryLocationStore:
    """Keeps inserted records in a list. Batches are appended whole."""

    def __init__(self, records: Sequence[Mapping[str, Any]] | None = None) -> None:
        self.records: list[dict[str, Any]] = [dict(r) for r in records or ()]
        self.insert_calls: list[int] = []  # 各 insert_batch 呼び出しの行数

    def exists(self, address: str, suburb: str) -> bool:
        return any(
            r.get("address") == address and r.get("suburb") == suburb for r in self.records
        )

    def insert_batch(self, records: Sequence[Mapping[str, Any]]) -> int:
        self.insert_calls.append(len(records))
        self.records.extend(dict(r) for r in records)
        return len(records)
