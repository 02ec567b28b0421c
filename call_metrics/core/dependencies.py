"""
FastAPI dependency injection module for the call-center metrics backend.

Endpoints receive the database connection, the settings and the events feed
client through these dependencies, so tests can replace any of them with
app.dependency_overrides.

Key Dependencies Provided:
- get_db_session: Async generator yielding database connections from the pool
- get_settings_dependency: Returns the cached Settings singleton
- get_events_feed_client: EventsFeedClient built from the settings
- DBSessionDep / SettingsDep / EventsFeedClientDep: Annotated aliases

Usage Examples:
    @router.get("/metrics")
    async def get_metrics(
        db: DBSessionDep,
        feed_client: EventsFeedClientDep,
    ) -> MetricsResponse:
        ...

    # In tests
    app.dependency_overrides[get_events_feed_client] = lambda: stub_client
"""

from typing import AsyncGenerator, Annotated

from fastapi import Depends
from asyncpg import Connection

from call_metrics.core.config import Settings, get_settings
from call_metrics.core.database import get_db_pool
from call_metrics.services.external_feed import EventsFeedClient


# =============================================================================
# Database Session Dependency
# =============================================================================

async def get_db_session() -> AsyncGenerator[Connection, None]:
    """
    Yield an async database connection from the pool.

    The connection is released back to the pool when the endpoint completes,
    whether or not it raised.

    Yields:
        asyncpg.Connection: An active database connection from the pool.

    Raises:
        asyncpg.PostgresError: If connection acquisition fails.
    """
    pool = await get_db_pool()
    async with pool.acquire() as connection:
        yield connection


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so FastAPI's dependency override
    mechanism can swap it in tests:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


# =============================================================================
# Events Feed Dependency
# =============================================================================

def get_events_feed_client(
    settings: SettingsDep,
) -> EventsFeedClient:
    """
    Build the events feed client from settings.

    Built per request from the cached settings.
    """
    return EventsFeedClient.from_settings(settings)


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(db: DBSessionDep)
DBSessionDep = Annotated[Connection, Depends(get_db_session)]

# Usage: async def endpoint(feed_client: EventsFeedClientDep)
EventsFeedClientDep = Annotated[EventsFeedClient, Depends(get_events_feed_client)]
