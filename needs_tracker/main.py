from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional
import logging
import os
from pathlib import Path

from needs_tracker.database import Database
from needs_tracker.exceptions import NeedsTrackerException, ValidationException
from needs_tracker.routes import (
    assessment_router,
    goals_router,
    reflections_router,
    achievements_router,
    account_router,
)
from needs_tracker.services.notification_service import PushTransport
from needs_tracker.services.scheduler_service import start_scheduler, stop_scheduler
from needs_tracker.constants import (
    DEFAULT_LOG_DIRECTORY_PROD,
    DEFAULT_LOG_DIRECTORY_DEV,
    CORS_ALLOWED_ORIGINS,
    SCHEDULER_ENABLED,
)

LOG_DIR = os.getenv("NEEDS_TRACKER_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("NEEDS_TRACKER_LOG_FILE", "app.log")

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()  # Also log to console
    ]
)

logger = logging.getLogger("needs_tracker")


def create_app(
    database: Optional[Database] = None,
    push_transport: Optional[PushTransport] = None,
    scheduler_enabled: bool = SCHEDULER_ENABLED
) -> FastAPI:
    """Build the API around an injected database and push transport"""
    app = FastAPI(
        title="Needs Tracker API",
        description="Needs-based self-assessment, goals and achievements",
        version="1.0.0"
    )
    app.state.database = database or Database()
    app.state.push_transport = push_transport or PushTransport()

    # CORS settings for the mobile/web frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NeedsTrackerException)
    async def needs_tracker_exception_handler(request: Request, exc: NeedsTrackerException):
        if exc.status_code >= 500:
            logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        content = {"detail": str(exc)}
        if isinstance(exc, ValidationException) and exc.field:
            content["field"] = exc.field
        return JSONResponse(status_code=exc.status_code, content=content)

    # Startup event
    @app.on_event("startup")
    async def startup_event():
        app.state.database.create_all()
        logger.info(f"Needs Tracker API started. Logging to: {log_path}")
        if scheduler_enabled:
            start_scheduler(app.state.database, app.state.push_transport)

    # Shutdown event
    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Shutting down Needs Tracker API")
        if scheduler_enabled:
            stop_scheduler()
        app.state.database.dispose()

    # Health check (no auth required)
    @app.get("/")
    async def root():
        return {"message": "Needs Tracker API", "status": "active"}

    app.include_router(assessment_router)
    app.include_router(goals_router)
    app.include_router(reflections_router)
    app.include_router(achievements_router)
    app.include_router(account_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("needs_tracker.main:app", host="0.0.0.0", port=8000, reload=False)
