"""
FastAPI application for the Local Library catalog.
"""

from contextlib import asynccontextmanager
from datetime import datetime

import structlog
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import HTMLResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog.config import config
from catalog.database import CatalogDatabase
from catalog.dependencies import get_database
from catalog.errors import CatalogError
from catalog.models import CatalogCounts, HealthResponse
from catalog.parallel import parallel
from catalog.rendering import redirect, render
from catalog.routes import bookinstances_router, genres_router
from utilities.logger import setup_logging

# Setup logging
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
        debug=config.debug
    )
    logger.info("Starting Local Library catalog")

    database = CatalogDatabase(config.mongodb_url, config.mongodb_database)
    try:
        await database.connect()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise
    app.state.database = database

    yield

    # Shutdown
    logger.info("Shutting down Local Library catalog")
    await database.disconnect()


# Create FastAPI application
app = FastAPI(
    title=config.app_title,
    description="Catalog pages for book copies and genres of a local library.",
    version=config.app_version,
    lifespan=lifespan
)

app.include_router(bookinstances_router)
app.include_router(genres_router)


# Exception handlers
@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """Render not-found and other classified errors."""
    logger.info("Request failed", error=exc.message, status_code=exc.status_code, path=request.url.path)
    return render(request, "error", {
        "title": exc.message,
        "message": exc.message,
        "status_code": exc.status_code,
        "detail": None,
    }, status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions, such as unknown routes."""
    return render(request, "error", {
        "title": str(exc.detail),
        "message": str(exc.detail),
        "status_code": exc.status_code,
        "detail": None,
    }, status_code=exc.status_code)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return render(request, "error", {
        "title": "Internal server error",
        "message": "Internal server error",
        "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
        "detail": str(exc) if config.debug else None,
    }, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.get("/", include_in_schema=False)
async def root():
    return redirect("/catalog")


@app.get("/catalog", response_class=HTMLResponse, tags=["Catalog"])
async def catalog_index(request: Request, db: CatalogDatabase = Depends(get_database)):
    """Catalog home page with record counts."""
    results = await parallel({
        "book_count": db.books.count(),
        "book_instance_count": db.bookinstances.count(),
        "book_instance_available_count": db.bookinstances.count_available(),
        "genre_count": db.genres.count(),
    })
    return render(request, "index", {
        "title": "Local Library Home",
        "counts": CatalogCounts(**results),
    })


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    try:
        db_status = "unknown"
        database = getattr(request.app.state, "database", None)
        if database:
            health_info = await database.health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.utcnow(),
            version=config.app_version,
            database_status=db_status
        )
    except Exception as e:
        logger.error("Health check failed", error=str(e))
        return HealthResponse(
            status="unhealthy",
            timestamp=datetime.utcnow(),
            version=config.app_version,
            database_status="unhealthy"
        )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "catalog.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower()
    )
