"""
Registry Lifecycle Manager

Builds the URL registry and its cleanup task on application startup and
tears them down on shutdown.

Design:
- One registry per application instance, stored on app.state
- Request handlers receive it through the get_registry dependency
- The key-value store is chosen by STORAGE_BACKEND (sql or memory)
"""

import logging

from fastapi import FastAPI, Request

from shortlink.core.exceptions import ServiceUnavailableError
from shortlink.core.setting import Settings, StorageBackend
from shortlink.db.session import create_engine, create_session_maker, init_models
from shortlink.services.cleanup_task import ExpiryCleanupTask
from shortlink.services.url_registry import URLRegistry
from shortlink.storage import KeyValueStore, MemoryKeyValueStore, SQLKeyValueStore

logger = logging.getLogger(__name__)


def build_registry(store: KeyValueStore, config: Settings) -> URLRegistry:
    """Create a registry configured from settings."""
    return URLRegistry(
        store,
        storage_key=config.STORAGE_KEY,
        base_url=config.BASE_URL,
        default_validity_minutes=config.DEFAULT_VALIDITY_MINUTES,
        shortcode_length=config.SHORTCODE_LENGTH,
        max_attempts=config.SHORTCODE_MAX_ATTEMPTS,
        reserved_shortcodes=config.RESERVED_SHORTCODES,
    )


async def initialize_registry(app: FastAPI, config: Settings) -> None:
    """
    Create the store and registry, restore persisted state, start cleanup.
    """
    if getattr(app.state, "registry", None) is not None:
        logger.warning("URL registry already initialized")
        return

    engine = None
    if config.STORAGE_BACKEND == StorageBackend.sql:
        engine = create_engine(config.DATABASE_URL)
        await init_models(engine)
        store = SQLKeyValueStore(create_session_maker(engine))
    else:
        store = MemoryKeyValueStore()

    registry = build_registry(store, config)
    await registry.load()

    cleanup_task = ExpiryCleanupTask(registry, interval_seconds=config.CLEANUP_INTERVAL_SECONDS)
    cleanup_task.start()

    app.state.engine = engine
    app.state.registry = registry
    app.state.cleanup_task = cleanup_task

    logger.info(
        f"URL registry initialized: backend={config.STORAGE_BACKEND.value}, "
        f"urls={len(registry.list_all())}"
    )


async def shutdown_registry(app: FastAPI) -> None:
    """Stop the cleanup task and release the database engine."""
    cleanup_task = getattr(app.state, "cleanup_task", None)
    if cleanup_task is not None:
        await cleanup_task.stop()

    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.dispose()

    app.state.cleanup_task = None
    app.state.engine = None
    app.state.registry = None
    logger.info("URL registry shut down")


def get_registry(request: Request) -> URLRegistry:
    """
    FastAPI dependency returning the application's registry.

    Raises:
        ServiceUnavailableError: If the registry was not initialized
    """
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise ServiceUnavailableError("url_registry")
    return registry
