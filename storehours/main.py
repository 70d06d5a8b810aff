# storehours/main.py
from __future__ import annotations

# Load .env early so settings and os.getenv agree
from dotenv import load_dotenv
load_dotenv()

import time

import sqlalchemy as sa
from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storehours.core.config import settings
from storehours.core.errors import error_aggregator, get_error_summary, log_error, ErrorSeverity
from storehours.core.logging import setup_logging, LoggingMiddleware, get_logger
from storehours.db.session import get_session

# Routers
from storehours.api.routes.merchants import router as merchants_router
from storehours.api.routes.public import router as public_router

# Set up structured logging
setup_logging(
    debug=settings.is_development,
    max_log_length=settings.MAX_LOG_LENGTH,
    level=settings.LOG_LEVEL,
)
logger = get_logger(__name__)
error_aggregator.log_threshold = settings.ERROR_AGGREGATION_THRESHOLD

app = FastAPI(title="Store Hours", description="Store open/closed and order-mode availability for merchants")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)

logging_middleware = LoggingMiddleware(
    log_requests=settings.LOG_REQUESTS,
    log_responses=settings.LOG_RESPONSES,
    slow_threshold=settings.SLOW_REQUEST_THRESHOLD,
)
app.middleware("http")(logging_middleware)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log_error(exc, {"endpoint": request.url.path, "method": request.method}, ErrorSeverity.HIGH)
    return JSONResponse(
        status_code=500,
        content={"detail": {"error": "INTERNAL_SERVER_ERROR", "message": "Internal server error"}},
    )


# -------- Health / readiness (public) --------
@app.get("/healthz", include_in_schema=False)
async def healthz():
    return {"ok": True}

@app.get("/readyz", include_in_schema=False)
async def readyz(db: AsyncSession = Depends(get_session)):
    await db.execute(sa.text("SELECT 1"))
    return {"db": "ok"}

@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Internal error summary for monitoring."""
    return {
        "status": "healthy",
        "errors": get_error_summary(),
        "timestamp": time.time(),
    }


# -------- Include routers --------
app.include_router(public_router)
app.include_router(merchants_router)


# -------- Application startup/shutdown events --------
@app.on_event("startup")
async def startup_event():
    logger.info("application_startup", env=settings.APP_ENV)
    if settings.AUTO_CREATE_TABLES:
        from storehours.db.base import init_db
        await init_db()
        logger.info("tables_created")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("application_shutdown")
    error_aggregator.cleanup_old_patterns()
