# studio_scheduler/main.py
"""
FastAPI application for the studio scheduler.

Run with ``uvicorn studio_scheduler.main:app``.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from . import __version__
from .core.config import settings
from .core.constants import API_V1_PREFIX, BRAND_NAME
from .core.exceptions import DomainException, RepositoryException, ServiceException
from .database import init_db
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes import prometheus
from .routes.v1 import bookings as bookings_v1, health as health_v1, studios as studios_v1

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if not settings.is_testing:
        init_db()
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=f"{BRAND_NAME} API",
    description="Studio booking, conflict detection and approval workflow",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    http_exc = exc.to_http_exception()
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.exception_handler(RepositoryException)
async def repository_exception_handler(request: Request, exc: RepositoryException) -> JSONResponse:
    logger.error(f"Persistence failure on {request.method} {request.url.path}: {str(exc)}")
    http_exc = ServiceException(str(exc), code="PERSISTENCE_FAILURE").to_http_exception()
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


app.add_middleware(PrometheusMiddleware)

# Create API v1 router
api_v1 = APIRouter(prefix=API_V1_PREFIX)

api_v1.include_router(studios_v1.router, prefix="/studios")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(health_v1.router)

app.include_router(api_v1)
app.include_router(prometheus.router)
