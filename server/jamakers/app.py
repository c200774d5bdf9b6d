"""
FastAPI application entry point for the JA Makers backend.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from jamakers.acl import ObjectAccessDeniedError, ObjectNotFoundError
from jamakers.cms import LandingCms
from jamakers.config import Settings, get_settings
from jamakers.db import DbClient
from jamakers.dependencies import (
    build_assistant,
    build_db_client,
    build_session_store,
    build_storage,
)
from jamakers.routes import download_router, router
from jamakers.sessions import SessionStore
from jamakers.storage import ObjectStorageService
from models.assistant import AssistantClient

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "; ".join(parts) or "Invalid request"


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            {"message": exc.detail}, status_code=exc.status_code, headers=exc.headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse({"message": _validation_message(exc)}, status_code=400)

    @app.exception_handler(ObjectNotFoundError)
    async def object_not_found(request: Request, exc: ObjectNotFoundError):
        return JSONResponse({"message": "Object not found"}, status_code=404)

    @app.exception_handler(ObjectAccessDeniedError)
    async def object_access_denied(request: Request, exc: ObjectAccessDeniedError):
        return JSONResponse({"message": "Access denied"}, status_code=403)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"message": "Internal server error"}, status_code=500)


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[DbClient] = None,
    sessions: Optional[SessionStore] = None,
    storage: Optional[ObjectStorageService] = None,
    assistant: Optional[AssistantClient] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    db = db or build_db_client(settings)
    storage = storage or build_storage(settings)
    storage.ensure_dirs()

    app = FastAPI(title="JA Makers API", version="0.1.0")
    app.state.settings = settings
    app.state.db = db
    app.state.sessions = sessions or build_session_store(settings, db)
    app.state.storage = storage
    app.state.assistant = assistant or build_assistant(settings)
    app.state.cms = LandingCms(str(storage.private_dir))

    origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentialed requests to a wildcard origin.
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)

    @app.get(f"{settings.api_prefix}/health")
    def health():
        return {"status": "ok", "storage": db.backend_name}

    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(download_router)
    return app
