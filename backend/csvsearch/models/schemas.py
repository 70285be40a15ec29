from __future__ import annotations
from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, Field

class UploadResponse(BaseModel):
    ok: bool = True
    rows: int

class RowOut(BaseModel):
    id: int
    data: Dict[str, Any]

class SearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    page_size: int = Field(..., alias="pageSize")
    total: int
    rows: List[RowOut]

class ErrorResponse(BaseModel):
    error: str

class HealthResponse(BaseModel):
    status: str
