"""
FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

from detection_context.api.v1.router import api_router
from detection_context.core.config import settings
from detection_context.core.errors import (
    AppError,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from detection_context.core.logging import setup_logging, RequestIDMiddleware
from detection_context.infra.falcon import FalconClient


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    app.state.falcon = FalconClient()

    yield

    # Shutdown
    await app.state.falcon.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Detection Context",
        description="Detection context and AI translation widget backend",
        version="0.1.0",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        lifespan=lifespan,
    )

    # Middleware
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_credentials,
        allow_methods=settings.cors_methods,
        allow_headers=settings.cors_headers,
    )

    # Routes
    app.include_router(api_router, prefix=settings.api_prefix)

    # Exception Handlers
    app.add_exception_handler(AppError, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    return app


app = create_app()
