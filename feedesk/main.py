"""FeeDesk FastAPI application."""
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

# macOS: so WeasyPrint finds pango/glib when generating PDFs (only if not already set)
if os.name == "posix" and os.environ.get("DYLD_LIBRARY_PATH") in (None, ""):
    _brew_lib = "/opt/homebrew/opt/glib/lib:/opt/homebrew/opt/pango/lib:/opt/homebrew/lib"
    if os.path.exists("/opt/homebrew/opt/glib/lib"):
        os.environ["DYLD_LIBRARY_PATH"] = _brew_lib

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from feedesk.core.auth.router import router as auth_router
from feedesk.core.config import settings
from feedesk.core.exceptions import AppException
from feedesk.core.exceptions.handlers import (
    app_exception_handler,
    http_exception_handler,
    sqlalchemy_db_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from feedesk.core.logging import configure_logging
from feedesk.modules.backup.router import router as backup_router
from feedesk.modules.backup.scheduler import BackupScheduler
from feedesk.modules.courses.router import router as courses_router
from feedesk.modules.dashboard.router import router as dashboard_router
from feedesk.modules.expenses.router import router as expenses_router
from feedesk.modules.reports.router import router as reports_router
from feedesk.modules.students.router import router as students_router
from feedesk.modules.transactions.router import router as transactions_router
from feedesk.modules.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    scheduler = BackupScheduler()
    if settings.backup_enabled:
        scheduler.start()
    logger.info("FeeDesk started (%s)", settings.app_env)
    yield
    # Shutdown
    await scheduler.stop()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="FeeDesk",
        description="Fee management for a tutoring institute",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_db_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # Routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(courses_router, prefix="/api/v1")
    app.include_router(students_router, prefix="/api/v1")
    app.include_router(transactions_router, prefix="/api/v1")
    app.include_router(expenses_router, prefix="/api/v1")
    app.include_router(dashboard_router, prefix="/api/v1")
    app.include_router(reports_router, prefix="/api/v1")
    app.include_router(backup_router, prefix="/api/v1")

    # Student photos
    uploads = Path(settings.uploads_path)
    uploads.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=uploads), name="uploads")

    return app


app = create_app()
