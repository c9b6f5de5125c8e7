# commerce_tools/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from commerce_tools.core.config import get_settings
from commerce_tools.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from commerce_tools.models import product as _product_models  # noqa: F401
from commerce_tools.models import cart as _cart_models  # noqa: F401

# Routers
from commerce_tools.routers.tools import router as tools_router

settings = get_settings()

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME or "Commerce Tools API",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(tools_router)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Unknown paths and methods keep the tool API's {"error": ...} envelope."""
    if exc.status_code in (404, 405):
        return JSONResponse({"error": "NOT_FOUND"}, status_code=404)
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)


@app.get("/health")
def health():
    """Liveness check."""
    return {"ok": True}
