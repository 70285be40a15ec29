from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

# ============================================================
# 🪵 Logging Setup
# ============================================================
logging.basicConfig(
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    level=logging.INFO,
)
logger = logging.getLogger("csvsearch.app")

# ============================================================
# 📦 Core Imports (DB + Dependency Injection)
# ============================================================
from csvsearch.container import get_container
from csvsearch.core.errors import ConfigError, CsvSearchError, ValidationError
from csvsearch.db.session import DatabasePool

# ============================================================
# 🌐 Routers
# ============================================================
from csvsearch.router.health import router as health_router
from csvsearch.router.search_router import router as search_router
from csvsearch.router.upload_router import router as upload_router

STATIC_DIR = Path(__file__).resolve().parent / "static"

# ============================================================
# 🚀 Startup / Shutdown Lifecycle
# ============================================================
@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info("🚀 Initializing CSV search API...")

    # Store problems are reported per request, so startup never blocks on them
    try:
        container = get_container()
        container.store.ensure_schema()
        logger.info("✅ Row store ready")
    except ConfigError as e:
        logger.error(f"❌ Configuration error: {e.message}")
    except Exception as e:
        logger.warning(f"⚠️ Row store init skipped or failed: {e}")

    logger.info("🎯 API is ready and accepting requests")
    try:
        yield
    finally:
        try:
            DatabasePool.close()
            logger.info("🧹 Application shutdown complete")
        except Exception as e:
            logger.warning(f"⚠️ Cleanup warning: {e}")

# ============================================================
# 🌍 FastAPI App Definition
# ============================================================
app = FastAPI(
    title="CSV Search API",
    description="Streamed CSV ingestion into Postgres with paginated full-text search",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(CsvSearchError)
async def handle_app_error(request: Request, exc: CsvSearchError):
    if isinstance(exc, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
        logger.warning(f"⚠️ Rejected {request.method} {request.url.path}: {exc.message}")
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
        logger.error(f"❌ {type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=code, content={"error": exc.message})

app.include_router(health_router)
app.include_router(upload_router)
app.include_router(search_router)
app.mount("/ui", StaticFiles(directory=str(STATIC_DIR), html=True), name="ui")

@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse(url="/ui/")

# ============================================================
# 🏁 Entrypoint
# ============================================================
if __name__ == "__main__":
    import uvicorn

    logger.info("Starting CSV search API on port 8080...")
    uvicorn.run(
        "csvsearch.main:app",
        host="0.0.0.0",
        port=8080,
        reload=False,
        log_config=None
    )
