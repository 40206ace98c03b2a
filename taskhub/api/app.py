from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskhub.api.routes import auth, tasks, users
from taskhub.config import Settings
from taskhub.container import Services, build_services
from taskhub.domain.common.errors import ConflictError, DomainError, ValidationError

logger = logging.getLogger(__name__)


def _error_body(exc: DomainError) -> dict:
    body: dict = {"error": exc.message}
    if isinstance(exc, ValidationError) and exc.errors:
        body["errors"] = [{"field": e.field, "message": e.message} for e in exc.errors]
    if isinstance(exc, ConflictError) and exc.field:
        body["field"] = exc.field
    return body


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status, content=_error_body(exc))


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        # drop the "body"/"query"/"path" prefix
        loc = [str(p) for p in err.get("loc", ())[1:]]
        errors.append({"field": ".".join(loc) or "request", "message": err.get("msg", "Invalid value")})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "errors": errors},
    )


def create_app(settings: Settings, services: Optional[Services] = None) -> FastAPI:
    """
    Build the HTTP app.

    `services` may be injected (tests); otherwise they are wired from
    `settings.db_path`. Schema creation and the optional admin bootstrap
    run at startup.
    """
    if services is None:
        services = build_services(
            settings.db_path, token_ttl=timedelta(hours=settings.token_ttl_hours)
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("DB_PATH: %s", services.db.path)
        await services.init()
        if settings.admin_email and settings.admin_password:
            await services.auth.bootstrap_admin(
                settings.admin_username, settings.admin_email, settings.admin_password
            )
        logger.info("taskhub ready")
        yield
        logger.info("taskhub shutting down")

    app = FastAPI(title="Taskhub API", version="1.0.0", lifespan=lifespan)
    app.state.services = services

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def unexpected_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.error("%s %s crashed", request.method, request.url.path, exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Internal server error"},
            )

    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)

    app.include_router(auth.router)
    app.include_router(tasks.router)
    app.include_router(users.router)
    return app
