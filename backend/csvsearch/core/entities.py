from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List

@dataclass(frozen=True)
class Row:
    id: int
    data: Dict[str, Any]  # header -> cell value, in column order

@dataclass(frozen=True)
class SearchPage:
    page: int
    page_size: int
    total: int
    rows: List[Row] = field(default_factory=list)

@dataclass(frozen=True)
class IngestResult:
    rows: int
    batches: int
    duration_sec: float
