from __future__ import annotations
from typing import Any, Dict, FrozenSet, List, Sequence, Tuple
import json
import re
import threading
from csvsearch.core.entities import Row
from csvsearch.core.errors import InsertError
from csvsearch.core.ports.store import IRowStore

_WORD = re.compile(r"\w+", re.U)

def _tokens(s: str) -> FrozenSet[str]:
    return frozenset(t.lower() for t in _WORD.findall(s))

class InMemoryRowStore(IRowStore):
    """
    Process-local row store for development without Postgres.
    Matching mirrors plainto_tsquery('simple', ...): every query word must occur
    in the serialized document.
    """
    def __init__(self) -> None:
        self._rows: List[Tuple[int, Dict[str, Any], FrozenSet[str]]] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def ensure_schema(self) -> None:
        return None

    def insert_batch(self, documents: Sequence[str]) -> int:
        try:
            parsed = [(json.loads(d), _tokens(d)) for d in documents]
        except (TypeError, ValueError) as e:
            raise InsertError(f"Insert of {len(documents)} rows failed: {e}", original=e) from e
        with self._lock:
            for data, toks in parsed:
                self._rows.append((self._next_id, data, toks))
                self._next_id += 1
        return len(parsed)

    def search(self, query: str, limit: int, offset: int) -> Tuple[int, List[Row]]:
        wanted = _tokens(query or "")
        if (query or "").strip() and not wanted:
            # plainto_tsquery of punctuation alone is empty and matches nothing
            return 0, []
        with self._lock:
            hits = [(rid, data) for rid, data, toks in self._rows if wanted <= toks]
        page = hits[offset:offset + limit]
        return len(hits), [Row(id=rid, data=data) for rid, data in page]

    def __len__(self) -> int:
        return len(self._rows)
