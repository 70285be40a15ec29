from __future__ import annotations
from typing import Optional, Tuple
import logging

from csvsearch.core.entities import SearchPage
from csvsearch.core.ports.store import IRowStore

logger = logging.getLogger("csvsearch.search")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


def clamp_paging(page: Optional[int], page_size: Optional[int], max_page_size: int = MAX_PAGE_SIZE,
                 default_page_size: int = DEFAULT_PAGE_SIZE) -> Tuple[int, int]:
    """Page is at least 1; page size lies in [1, max_page_size]."""
    page = 1 if page is None else max(1, page)
    size = default_page_size if page_size is None else page_size
    return page, min(max_page_size, max(1, size))


class QueryService:
    def __init__(self, store: IRowStore, default_page_size: int = DEFAULT_PAGE_SIZE,
                 max_page_size: int = MAX_PAGE_SIZE):
        self.store = store
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def search(self, q: Optional[str] = None, page: Optional[int] = None,
               page_size: Optional[int] = None) -> SearchPage:
        """Empty term matches every row; rows come back ordered by id."""
        term = (q or "").strip()
        page, size = clamp_paging(page, page_size, self.max_page_size, self.default_page_size)
        total, rows = self.store.search(term, limit=size, offset=(page - 1) * size)
        logger.info("🔍 Search | q=%r | page=%d | size=%d | total=%d | returned=%d",
                    term, page, size, total, len(rows))
        return SearchPage(page=page, page_size=size, total=total, rows=rows)
