import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import SessionLocal, create_tables, seed_defaults
from .api import (
    admin,
    auth,
    calendar,
    challenges,
    dashboard,
    equipment,
    leaderboard,
    observations,
    permits,
    quiz,
    toolbox_talks,
    training,
    verifications,
)
from .core.areas import sync_areas_later
from .core.config import settings
from .core.errors import SafeWatchError

logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    create_tables()
    db = SessionLocal()
    try:
        seed_defaults(db)
    finally:
        db.close()

    area_sync = asyncio.create_task(sync_areas_later(settings.area_sync_delay_seconds))
    logger.info("%s started", settings.app_name)
    yield
    # Shutdown
    area_sync.cancel()


app = FastAPI(
    title=settings.app_name,
    description="Field safety observation tracking with verification workflow and points",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(admin.router, prefix="/api", tags=["Administration"])
app.include_router(observations.router, prefix="/api/observations", tags=["Observations"])
app.include_router(verifications.router, prefix="/api", tags=["Verification"])
app.include_router(permits.router, prefix="/api/permits", tags=["Permits"])
app.include_router(toolbox_talks.router, prefix="/api/toolbox-talks", tags=["Toolbox Talks"])
app.include_router(equipment.router, prefix="/api/equipment", tags=["Equipment"])
app.include_router(challenges.router, prefix="/api/challenges", tags=["Challenges"])
app.include_router(quiz.router, prefix="/api/quiz", tags=["Quiz"])
app.include_router(training.router, prefix="/api", tags=["Training Matrix"])
app.include_router(calendar.router, prefix="/api/calendar", tags=["Safety Calendar"])
app.include_router(leaderboard.router, prefix="/api", tags=["Points"])
app.include_router(dashboard.router, prefix="/api", tags=["Dashboard"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": f"Welcome to {settings.app_name}", "status": "running"}


@app.get("/healthz")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": settings.app_name}


@app.exception_handler(SafeWatchError)
async def safewatch_error_handler(request: Request, exc: SafeWatchError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message}
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )


if __name__ == "__main__":
    uvicorn.run(
        "safewatch.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
