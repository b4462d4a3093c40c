from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

"""RawRow model for the location import pipeline.

RawRow represents a single decoded data row before validation: header keys are
already normalized, cell values are left untyped (str, int, float or "").
"""

__all__ = [
    "RawRow",
    "FIRST_DATA_ROW_NUMBER",
]

# ヘッダ行 + 1-based 表示 → 最初のデータ行は 2
FIRST_DATA_ROW_NUMBER = 2


@dataclass(frozen=True)
class RawRow:
    """Logical representation of a single data row after decoding.

    The row_number is the 1-based display number of the row in the uploaded
    file (header row = 1, first data row = 2).
    """
    row_number: int
    values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # 生成後は不変 (dict を読み取り専用ビューに差し替え)
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)
