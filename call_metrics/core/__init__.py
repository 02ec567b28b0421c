"""
Core infrastructure package for the call-center metrics backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL database connectivity via asyncpg
- FastAPI dependency injection utilities (call_metrics.core.dependencies)

The dependencies module builds service objects (the events feed client), so it
is imported directly rather than re-exported here:

    from call_metrics.core import get_settings, init_db
    from call_metrics.core.dependencies import DBSessionDep, EventsFeedClientDep

Usage Examples:
    # Database pool lifecycle (in FastAPI lifespan)
    from call_metrics.core import init_db, close_db

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db()
        yield
        await close_db()
"""

# =============================================================================
# Re-exports from call_metrics.core.config
# =============================================================================
from call_metrics.core.config import Settings, get_settings

# =============================================================================
# Re-exports from call_metrics.core.database
# =============================================================================
from call_metrics.core.database import init_db, close_db, get_db_pool


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
]
