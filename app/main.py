"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
import logging

from app.config import settings
from app.database import test_database_connection, close_db_connection, create_tables
from app.routers import (
    auth_router,
    properties_router,
    map_router,
    images_router,
    favorites_router,
    appointments_router,
    subscriptions_router,
    crm_router,
    admin_router,
    ai_router,
    social_router,
    agents_router
)
from app.utils.exceptions import APIException
from app.services.error_handler import ErrorHandlerService
from app.middleware import RequestContextMiddleware

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    db_connected = await test_database_connection()
    if not db_connected:
        logger.error("Failed to connect to database on startup")
    elif settings.is_development:
        # Production schemas are managed outside the application
        await create_tables()

    yield

    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Real estate marketplace API for listings, visits and agent tooling.

    ## Features

    * **Listings**: Create, search, map and preview properties for sale or rent
    * **Images**: Upload, order and serve listing photos
    * **Favorites**: Save listings, anonymously or signed in
    * **Appointments**: Book one-hour visits in the business timezone
    * **Subscriptions**: Plan limits for listings, images and favorites
    * **CRM**: Agent lead pipeline built from favorites and visits
    * **Admin**: User and listing moderation with platform metrics
    * **AI**: Natural-language search and listing description drafts

    ## Authentication

    Use `/api/v1/auth/login` to obtain a JWT token, then send it in the
    Authorization header as `Bearer <token>`.

    ## Mutations

    Write endpoints answer with `{"success": true, ...}` or
    `{"success": false, "error": "..."}` and the matching status code.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Authentication", "description": "Sign-up, login and token refresh"},
        {"name": "Properties", "description": "Listing management, search and location helpers"},
        {"name": "Map", "description": "Listings inside a map viewport"},
        {"name": "Images", "description": "Listing photo upload and ordering"},
        {"name": "Favorites", "description": "Saved listings"},
        {"name": "Appointments", "description": "Visit booking and agent agenda"},
        {"name": "Subscription", "description": "Plans, limits and usage"},
        {"name": "CRM", "description": "Agent lead pipeline"},
        {"name": "Admin", "description": "Platform administration"},
        {"name": "AI", "description": "AI assisted search and descriptions"},
        {"name": "Health", "description": "System health endpoints"}
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Processing-Time", "Retry-After"],
)

app.add_middleware(
    RequestContextMiddleware,
    max_request_size=10 * settings.max_file_size,
    enable_request_logging=settings.debug
)

API_ROUTERS = (
    auth_router,
    social_router,
    properties_router,
    map_router,
    images_router,
    favorites_router,
    appointments_router,
    subscriptions_router,
    crm_router,
    admin_router,
    ai_router,
    agents_router,
)

for api_router in API_ROUTERS:
    app.include_router(api_router, prefix=settings.api_v1_prefix)

# Uploaded images are served by the local storage backend
app.mount(
    settings.public_media_url,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="media"
)


async def api_exception_handler(request: Request, exc: APIException):
    return ErrorHandlerService.handle_api_exception(exc, request)


async def validation_exception_handler(request: Request, exc: Exception):
    return ErrorHandlerService.handle_validation_error(exc, request)


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    return ErrorHandlerService.handle_database_error(exc, request)


async def http_exception_handler(request: Request, exc: HTTPException):
    return ErrorHandlerService.handle_http_exception(exc, request)


async def general_exception_handler(request: Request, exc: Exception):
    return ErrorHandlerService.handle_unexpected_error(exc, request)


# Most specific first; APIException subclasses HTTPException
EXCEPTION_HANDLERS = (
    (APIException, api_exception_handler),
    (RequestValidationError, validation_exception_handler),
    (PydanticValidationError, validation_exception_handler),
    (SQLAlchemyError, database_exception_handler),
    (HTTPException, http_exception_handler),
    (Exception, general_exception_handler),
)

for exc_class, handler in EXCEPTION_HANDLERS:
    app.add_exception_handler(exc_class, handler)


@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint providing basic API information.
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_v1_prefix
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint with database connectivity test.
    Used by Docker health checks and load balancers.
    """
    db_healthy = await test_database_connection()
    if not db_healthy:
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
