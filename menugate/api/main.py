import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from menugate import __version__
from menugate.common.logger import configure_logging
from menugate.core.config import get_settings
from menugate.core.rbac import (
    AccessControlError,
    DuplicatePageKeyError,
    DuplicateRoleNameError,
    DuplicateSortIndexError,
    InconsistentWriteError,
    InputValidationError,
    NotFoundError,
    PermissionDeniedError,
)
from menugate.api.routers import grants, health, menus, modules, navigation, permissions, roles
from menugate.api.schemas.common import ErrorResponse

settings = get_settings()
logger = logging.getLogger(__name__)

# Most specific first; AuthorizationRevokedError is a PermissionDeniedError
ERROR_STATUS = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateSortIndexError, status.HTTP_409_CONFLICT),
    (DuplicatePageKeyError, status.HTTP_409_CONFLICT),
    (DuplicateRoleNameError, status.HTTP_409_CONFLICT),
    (InconsistentWriteError, status.HTTP_409_CONFLICT),
    (InputValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
]


def status_for(exc: AccessControlError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    configure_logging(settings)
    logger.info(f"Starting {settings.app_name} {__version__}")
    yield
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    description="Role-based authorization and navigation engine",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AccessControlError)
async def access_control_exception_handler(request: Request, exc: AccessControlError):
    status_code = status_for(exc)
    if isinstance(exc, InconsistentWriteError):
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            code=exc.code,
        ).model_dump(),
    )


# Include routers
app.include_router(health.router)
app.include_router(navigation.router, prefix="/api")
app.include_router(permissions.router, prefix="/api")
app.include_router(roles.router, prefix="/api")
app.include_router(modules.router, prefix="/api")
app.include_router(menus.router, prefix="/api")
app.include_router(grants.router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }
