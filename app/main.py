"""
FastAPI application entry point for the SRI Document Identity API
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.database import DatabaseManager, get_db, init_db
from app.core.error_handler import error_handler
from app.core.logging import audit_logger, setup_logging
from app.api.v1.api import api_router
from app.utils.error_responses import APIError

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    init_db()
    audit_logger.log_system_event("Application started", {"version": settings.VERSION})
    yield
    # Shutdown
    audit_logger.log_system_event("Application stopped")


def create_application() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Document numbers, access keys and taxpayer identification validation for Ecuador (SRI) electronic documents",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # Set up CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log method, path, status and duration of every request"""
        start_time = time.time()
        response = await call_next(request)
        audit_logger.log_api_request(
            request.method, request.url.path, response.status_code,
            (time.time() - start_time) * 1000
        )
        return response

    # Route every error through the structured error handler
    async def structured_exception_handler(request: Request, exc: Exception):
        return await error_handler.handle_exception(request, exc)

    for exc_class in (RequestValidationError, StarletteHTTPException, APIError, SQLAlchemyError, Exception):
        app.add_exception_handler(exc_class, structured_exception_handler)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_STR)

    return app


app = create_application()


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint"""
    database_ok = DatabaseManager.health_check(db)
    return {
        "status": "healthy" if database_ok else "degraded",
        "service": "sri-document-identity-api",
        "database": "connected" if database_ok else "unavailable"
    }


@app.get("/health/errors")
async def error_health_check():
    """Error counters collected by the error handler"""
    statistics = error_handler.get_error_statistics()
    return {
        "status": "healthy",
        "service": "sri-document-identity-api",
        "error_statistics": statistics
    }
