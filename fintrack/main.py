"""
FinTrack: FastAPI application.

This is the entry point for the application.
All routers and error handlers are registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from fintrack.config import get_settings
from fintrack.errors import FinTrackError
from fintrack.logging_config import configure_logging
from fintrack.models.base import SessionLocal
from fintrack.services.reference_service import ReferenceService
from fintrack.api.health import router as health_router
from fintrack.api.transactions import router as transactions_router
from fintrack.api.settlements import router as settlements_router
from fintrack.api.categories import router as categories_router
from fintrack.api.reference import router as reference_router
from fintrack.api.ledger import router as ledger_router
from fintrack.api.export import router as export_router

settings = get_settings()

configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if settings.SEED_DEFAULTS:
        db = SessionLocal()
        try:
            if ReferenceService(db).seed_defaults():
                db.commit()
        finally:
            db.close()
    logger.info("application_started", environment=settings.ENVIRONMENT)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Personal finance ledger with settlement-aware totals",
    lifespan=lifespan,
)


@app.exception_handler(FinTrackError)
async def fintrack_error_handler(request: Request, exc: FinTrackError):
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("unhandled_store_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"detail": "Storage error"})


# Register routers
app.include_router(health_router)
app.include_router(transactions_router)
app.include_router(settlements_router)
app.include_router(categories_router)
app.include_router(reference_router)
app.include_router(ledger_router)
app.include_router(export_router)
