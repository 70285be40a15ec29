from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple
from csvsearch.core.entities import Row

class IRowStore(ABC):
    @abstractmethod
    def ensure_schema(self) -> None: ...

    @abstractmethod
    def insert_batch(self, documents: Sequence[str]) -> int:
        """Insert serialized JSON documents in one transaction; return count inserted.

        All-or-nothing: raises InsertError and leaves the store untouched on failure.
        """
        ...

    @abstractmethod
    def search(self, query: str, limit: int, offset: int) -> Tuple[int, List[Row]]:
        """Return (total matches, page of rows ordered by id)."""
        ...
