# backend/csvsearch/router/search_router.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from csvsearch.container import AppContainer, get_container
from csvsearch.core.errors import CsvSearchError
from csvsearch.models.schemas import ErrorResponse, RowOut, SearchResponse

logger = logging.getLogger("csvsearch.search")

router = APIRouter(prefix="/api", tags=["search"])


def _to_int(value: Optional[str]) -> Optional[int]:
    """Lenient query-param parsing; junk falls back to the default."""
    if value is None:
        return None
    try:
        return int(float(value.strip()))
    except (ValueError, OverflowError):
        return None


@router.get("/search", response_model=SearchResponse, responses={500: {"model": ErrorResponse}})
def search_rows(
    q: Optional[str] = Query(None, description="Free-text search term"),
    page: Optional[str] = Query(None, description="1-based page number"),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    container: AppContainer = Depends(get_container),
):
    try:
        result = container.query_service.search(q=q, page=_to_int(page), page_size=_to_int(page_size))
    except CsvSearchError:
        raise
    except Exception as e:
        logger.exception(f"❌ Search failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": f"Search failed: {e}"},
        )

    return SearchResponse(
        page=result.page,
        page_size=result.page_size,
        total=result.total,
        rows=[RowOut(id=r.id, data=r.data) for r in result.rows],
    )
