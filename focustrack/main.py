"""
focustrack – Session API
Start with: uvicorn focustrack.main:app --reload
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from focustrack import __version__
from focustrack.config import get_settings
from focustrack.db import init_db
from focustrack.errors import FocusTrackError
from focustrack.logging_setup import configure_logging
from focustrack.routers import sessions

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_dir)
    init_db()
    logger.info("focustrack API ready (timezone=%s)", settings.timezone)
    yield


app = FastAPI(
    title="focustrack API",
    description="Focused-work sessions: Pomodoro, Flowtime and free tracking",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FocusTrackError)
async def focustrack_error_handler(request: Request, exc: FocusTrackError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "error": exc.code})


@app.get("/health")
def health():
    """Check that the API is running. The client can call this first."""
    return {"status": "ok", "message": "focustrack API is running"}


@app.get("/")
def root():
    """Root welcome."""
    return {"app": "focustrack", "docs": "/docs"}


app.include_router(sessions.router)
