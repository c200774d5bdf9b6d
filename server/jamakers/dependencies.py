"""
Dependency wiring for the FastAPI app.

Backends are built once by ``create_app`` and stored on ``app.state``; the
request-scoped getters below hand them to route handlers.
"""

from __future__ import annotations

import logging

from fastapi import Request

from jamakers.cms import LandingCms
from jamakers.config import Settings
from jamakers.db import DbClient, InMemoryDbClient
from jamakers.db_convex import ConvexDbClient
from jamakers.db_postgres import PostgresDbClient
from jamakers.sessions import (
    DbSessionStore,
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
)
from jamakers.storage import ObjectStorageService
from models.assistant import AssistantClient

logger = logging.getLogger(__name__)


def build_db_client(settings: Settings) -> DbClient:
    """Pick the storage backend from configuration."""
    if settings.use_in_memory_backends:
        db: DbClient = InMemoryDbClient(seed=settings.seed_demo_data)
    elif settings.database_url:
        db = PostgresDbClient(settings.database_url, settings.database_pool_size)
    elif settings.convex_url:
        db = ConvexDbClient(settings.convex_url)
    else:
        db = InMemoryDbClient(seed=settings.seed_demo_data)
    logger.info("Using %s storage backend", db.backend_name)
    return db


def build_session_store(settings: Settings, db: DbClient) -> SessionStore:
    if settings.use_in_memory_backends:
        return InMemorySessionStore()
    if settings.redis_url:
        return RedisSessionStore(url=settings.redis_url, prefix=settings.redis_session_prefix)
    if isinstance(db, PostgresDbClient):
        return DbSessionStore(db)
    return InMemorySessionStore()


def build_storage(settings: Settings) -> ObjectStorageService:
    return ObjectStorageService(
        public_search_paths=settings.public_search_paths,
        private_dir=settings.private_object_dir,
    )


def build_assistant(settings: Settings) -> AssistantClient:
    return AssistantClient.from_settings(settings)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_db_client(request: Request) -> DbClient:
    return request.app.state.db


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_storage(request: Request) -> ObjectStorageService:
    return request.app.state.storage


def get_assistant(request: Request) -> AssistantClient:
    return request.app.state.assistant


def get_cms(request: Request) -> LandingCms:
    return request.app.state.cms
