"""
SQL query module for the call-center metrics backend.

Parameterized asyncpg queries for the daily counter table and the region
registry, re-exported for `from call_metrics.sql import ...`.

Example usage:
    from call_metrics.sql import get_daily_rows_query

    sql = get_daily_rows_query(single_region=True)
    records = await conn.fetch(sql, start, end, region_id)
"""

from call_metrics.sql.counter_queries import (
    DAILY_TABLE,
    REGIONS_TABLE,
    COLUMN_ALIASES,
    storage_column,
    get_daily_rows_query,
    get_region_registry_query,
)


__all__ = [
    'DAILY_TABLE',
    'REGIONS_TABLE',
    'COLUMN_ALIASES',
    'storage_column',
    'get_daily_rows_query',
    'get_region_registry_query',
]
