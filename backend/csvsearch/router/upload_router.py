# backend/csvsearch/router/upload_router.py
from __future__ import annotations

import sys
import traceback
import logging
from typing import Union

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile as StarletteUploadFile

from csvsearch.container import AppContainer, get_container
from csvsearch.core.errors import CsvSearchError, ValidationError
from csvsearch.models.schemas import ErrorResponse, UploadResponse

logger = logging.getLogger("csvsearch.ingest")

router = APIRouter(prefix="/api", tags=["upload"])

@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def upload_csv(
    file: Union[UploadFile, str, None] = File(None),
    container: AppContainer = Depends(get_container),
):
    # a plain form value under "file" is not an upload
    if not isinstance(file, StarletteUploadFile) or not file.filename:
        raise ValidationError("No file provided")

    try:
        result = container.ingest_service.ingest(file.file, name=file.filename)
    except CsvSearchError:
        raise
    except Exception as e:
        exc_type, exc_obj, tb = sys.exc_info()
        tb_frame = traceback.extract_tb(tb)[-1] if tb else None
        func_name = tb_frame.name if tb_frame else "?"
        line_no = tb_frame.lineno if tb_frame else "?"
        logger.error(
            f"Unhandled Exception [{type(e).__name__}] in {func_name}() line {line_no}\n"
            f"Traceback:\n{''.join(traceback.format_exception(exc_type, exc_obj, tb))}"
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": f"Upload failed: {e}"},
        )

    logger.info("✅ Upload done | file=%s | rows=%d | batches=%d", file.filename, result.rows, result.batches)
    return UploadResponse(ok=True, rows=result.rows)
