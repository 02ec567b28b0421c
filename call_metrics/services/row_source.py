"""
Row source for daily counters and the region registry.

Reads daily_calls_provinces and tbl_ostan through an asyncpg connection and
returns validated CounterRow / Region models. Every executed query is logged
at INFO with its label and parameters, which serves as the audit trail of
who asked for which range.

Key Functions:
- fetch_daily_rows: Raw daily rows grouped by region
- fetch_daily_records: Flat, date-ordered daily rows for one region
- fetch_daily_detail_records: Daily rows with their decoded JSON analytics
- fetch_region_registry: Registered regions ordered by name
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Any, Dict, List, Optional

from asyncpg import Connection

from call_metrics.models.schemas import CounterRow, DailyRecord, Region
from call_metrics.sql.counter_queries import (
    get_daily_rows_query,
    get_region_registry_query,
)


logger = logging.getLogger(__name__)


async def _fetch(conn: Connection, label: str, query: str, *params: Any) -> list:
    logger.info(f"Executing query '{label}' with params {list(params)}")
    records = await conn.fetch(query, *params)
    logger.info(f"Query '{label}' returned {len(records)} rows")
    return records


async def _fetch_daily(
    conn: Connection,
    label: str,
    region_id: Optional[int],
    start: date,
    end: date,
    include_analytics: bool = False,
) -> list:
    if region_id is None:
        query = get_daily_rows_query(single_region=False, include_analytics=include_analytics)
        return await _fetch(conn, f"{label}-all", query, start, end)
    query = get_daily_rows_query(single_region=True, include_analytics=include_analytics)
    return await _fetch(conn, f"{label}-region", query, start, end, region_id)


async def fetch_daily_records(
    conn: Connection,
    region_id: Optional[int],
    start: date,
    end: date,
) -> List[CounterRow]:
    """
    Fetch raw daily counter rows within [start, end].

    Args:
        conn: asyncpg connection.
        region_id: Region to restrict to, or None for every region.
        start: First day (inclusive).
        end: Last day (inclusive).

    Returns:
        List[CounterRow]: Rows ordered by region, then date.
    """
    records = await _fetch_daily(conn, "daily-rows", region_id, start, end)
    return [CounterRow.from_record(record) for record in records]


async def fetch_daily_detail_records(
    conn: Connection,
    region_id: Optional[int],
    start: date,
    end: date,
) -> List[DailyRecord]:
    """
    Fetch daily rows within [start, end] together with their JSON analytics
    columns. Columns that hold invalid JSON come back as None.
    """
    records = await _fetch_daily(
        conn, "daily-detail", region_id, start, end, include_analytics=True
    )
    return [DailyRecord.from_record(record) for record in records]


async def fetch_daily_rows(
    conn: Connection,
    region_id: Optional[int],
    start: date,
    end: date,
) -> Dict[int, List[CounterRow]]:
    """
    Fetch raw daily counter rows within [start, end], grouped by region id.

    Regions with no rows in the range are absent from the result; the
    registry join happens in the region summary.
    """
    grouped: Dict[int, List[CounterRow]] = defaultdict(list)
    for row in await fetch_daily_records(conn, region_id, start, end):
        if row.region_id is None:
            logger.warning(f"Skipping daily record {row.record_id} without a region")
            continue
        grouped[row.region_id].append(row)
    return dict(grouped)


async def fetch_region_registry(
    conn: Connection,
    region_id: Optional[int] = None,
) -> List[Region]:
    """Fetch the region registry (all regions, or one), ordered by name."""
    if region_id is None:
        query = get_region_registry_query(single_region=False)
        records = await _fetch(conn, "region-registry", query)
    else:
        query = get_region_registry_query(single_region=True)
        records = await _fetch(conn, "region-registry-one", query, region_id)

    return [Region.model_validate(dict(record)) for record in records]
