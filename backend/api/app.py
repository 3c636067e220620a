"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from modules.auth.routes import router as auth_router
from shared.config import Settings, get_settings
from shared.exceptions import ErrorKind, SyrError

from .config import APISettings, get_api_settings
from .dependencies import ServiceContainer
from .middleware.auth import AuthGatewayMiddleware
from .models.errors import ErrorBody, ErrorResponse
from .routes import health, users

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.ALREADY_EXISTS: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.INTERNAL: 500,
}

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _error_response(exc: SyrError) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    body = exc.to_dict()
    if exc.kind is ErrorKind.INTERNAL:
        # Store and configuration details never leave the process
        body["message"] = "Internal error"
        body["details"] = {}
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorBody(**body)).model_dump(),
        headers=headers,
    )


async def syr_error_handler(request: Request, exc: SyrError) -> JSONResponse:
    if exc.kind is ErrorKind.INTERNAL:
        logger.error(
            "Internal error on %s %s: %s", request.method, request.url.path, exc.message
        )
    return _error_response(exc)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields.setdefault(".".join(loc) or "body", []).append(error.get("msg", "invalid"))
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error=ErrorBody(
                error="VALIDATION_ERROR",
                kind=ErrorKind.VALIDATION.value,
                message="Invalid input data",
                details={"fields": fields},
            )
        ).model_dump(),
    )


def create_app(
    container: Optional[ServiceContainer] = None,
    api_settings: Optional[APISettings] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Service container to run; built from environment settings if omitted
        api_settings: Server and CORS settings; loaded from environment if omitted

    Returns:
        Configured FastAPI instance
    """
    container = container or ServiceContainer(get_settings())
    api_settings = api_settings or get_api_settings()
    settings = container.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        Opens the store and starts the services; closes them on shutdown.
        """
        logger.info("Starting %s (%s)", settings.app_name, settings.environment)
        await container.startup()
        try:
            yield
        finally:
            await container.shutdown()
            logger.info("Shut down %s", settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        description="Identity and session authentication API",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if api_settings.debug else None,
        redoc_url="/api/redoc" if api_settings.debug else None,
    )
    app.state.container = container

    app.add_exception_handler(SyrError, syr_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.add_middleware(AuthGatewayMiddleware)

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=api_settings.cors_origins,
        allow_credentials=api_settings.cors_allow_credentials,
        allow_methods=api_settings.cors_allow_methods,
        allow_headers=api_settings.cors_allow_headers,
    )

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])

    return app


configure_logging(get_settings())

# Application instance for uvicorn
app = create_app()
