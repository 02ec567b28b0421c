"""
Region summary service.

Combines the engine steps into the two views served by the API:

- build_region_summary: one reconciled row per region plus a grand total,
  for the all-regions dashboard and export.
- build_region_detail: one region's range summary plus one reconciled row
  per day.

Per region the order is always aggregate, reconcile, then merge feed events.
The grand total is aggregated from the per-region rows, so its means are
unweighted means of the regional means; dashboards rely on this figure.

The compute_* coroutines are the request path: they run the database fetch
and the events feed fetch concurrently, then build the view. A failed database
fetch cancels the feed fetch.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar

from asyncpg import Connection

from call_metrics.models.schemas import CounterRow, Region
from call_metrics.services.aggregation import (
    ALL_REGIONS,
    aggregate_rows,
    group_rows_by_date,
)
from call_metrics.services.external_feed import (
    EventsFeedClient,
    FeedResult,
    merge_event_counts,
)
from call_metrics.services.reconciliation import (
    check_breakdown_invariants,
    reconcile_row,
)
from call_metrics.services.row_source import (
    fetch_daily_records,
    fetch_daily_rows,
    fetch_region_registry,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Result Types
# =============================================================================

@dataclass
class RegionSetSummary:
    """All-regions view: per-region rows in registry order and a grand total."""
    per_region: List[CounterRow]
    grand_total: CounterRow
    total_events: int = 0
    feed_ok: bool = True


@dataclass
class RegionDetailSummary:
    """Single-region view: range summary and reconciled daily rows."""
    region: Region
    summary: CounterRow
    daily: List[CounterRow] = field(default_factory=list)
    total_events: int = 0
    feed_ok: bool = True


# =============================================================================
# Pure Builders
# =============================================================================

def _later(current: Optional[str], candidate: Optional[str]) -> Optional[str]:
    present = [value for value in (current, candidate) if value is not None]
    return max(present) if present else None


def _attach_region(row: CounterRow, region: Optional[Region]) -> CounterRow:
    """Copy registry metadata onto a row; transfer stamps keep the latest value."""
    if region is None:
        return row
    return row.model_copy(update={
        'region_name': region.region_name or row.region_name,
        'transfer_date': _later(row.transfer_date, region.transfer_date),
        'transfer_time': _later(row.transfer_time, region.transfer_time),
    })


def _log_inconsistent_rows(rows: Sequence[CounterRow]) -> None:
    inconsistent = {}
    for row in rows:
        violations = check_breakdown_invariants(row)
        if violations:
            inconsistent[row.region_id] = [violation.value for violation in violations]
    if inconsistent:
        logger.warning(
            f"{len(inconsistent)} of {len(rows)} regions remain inconsistent after "
            f"reconciliation: {inconsistent}"
        )


def _ordered_region_ids(
    grouped_rows: Mapping[int, Sequence[CounterRow]],
    regions: Sequence[Region],
) -> List[int]:
    ordered: List[int] = []
    for region in regions:
        if region.region_id not in ordered:
            ordered.append(region.region_id)

    unregistered = sorted(set(grouped_rows) - set(ordered))
    if unregistered:
        logger.warning(f"Counter rows found for unregistered regions: {unregistered}")
    return ordered + unregistered


def build_region_summary(
    grouped_rows: Mapping[int, Sequence[CounterRow]],
    regions: Sequence[Region],
    feed: FeedResult,
) -> RegionSetSummary:
    """
    Build the all-regions view.

    Every registered region gets a row, including regions with no counters in
    the range (zero sums, None means). Regions that have counters but are not
    registered are appended after the registry, in id order.

    Args:
        grouped_rows: Raw daily rows keyed by region id.
        regions: Region registry, in display order.
        feed: Events feed result; a failed feed leaves events_count unset on
            the regions and 0 on the grand total.

    Returns:
        RegionSetSummary: Per-region rows and the reconciled grand total,
            whose events_count is the feed total.

    Example:
        >>> summary = build_region_summary({1: rows}, registry, FeedResult.success(points))
        >>> summary.grand_total.events_count
        200
    """
    registry: Dict[int, Region] = {region.region_id: region for region in regions}

    per_region: List[CounterRow] = []
    for region_id in _ordered_region_ids(grouped_rows, regions):
        row = aggregate_rows(list(grouped_rows.get(region_id, [])), scope=region_id)
        row = _attach_region(reconcile_row(row), registry.get(region_id))
        per_region.append(row)

    _log_inconsistent_rows(per_region)

    per_region, total_events = merge_event_counts(per_region, feed)

    grand_total = reconcile_row(aggregate_rows(per_region, scope=ALL_REGIONS))
    grand_total = grand_total.model_copy(update={'events_count': total_events})

    return RegionSetSummary(
        per_region=per_region,
        grand_total=grand_total,
        total_events=total_events,
        feed_ok=feed.ok,
    )


def build_region_detail(
    rows: Sequence[CounterRow],
    region: Region,
    feed: FeedResult,
) -> RegionDetailSummary:
    """
    Build the single-region view over a date range.

    Args:
        rows: Raw daily rows of the region.
        region: The region (from the registry, or a bare Region when it is
            not registered).
        feed: Events feed result for this region and range.

    Returns:
        RegionDetailSummary: The range summary carries the region's events;
            daily rows do not, since the feed only reports whole ranges.

    Raises:
        ValueError: If a row belongs to another region.
    """
    summary = aggregate_rows(list(rows), scope=region.region_id)
    summary = _attach_region(reconcile_row(summary), region)
    merged, total_events = merge_event_counts([summary], feed)

    daily: List[CounterRow] = []
    for day_rows in group_rows_by_date(rows).values():
        day = reconcile_row(aggregate_rows(day_rows, scope=region.region_id))
        if day.region_name is None:
            day = day.model_copy(update={'region_name': region.region_name})
        daily.append(day)

    return RegionDetailSummary(
        region=region,
        summary=merged[0],
        daily=daily,
        total_events=total_events,
        feed_ok=feed.ok,
    )


# =============================================================================
# Request Path
# =============================================================================

async def _load_with_feed(
    load: Awaitable[T],
    feed_fetch: Awaitable[FeedResult],
) -> Tuple[T, FeedResult]:
    """
    Run the row load and the feed fetch concurrently.

    If the load fails the feed fetch is cancelled and the error propagates;
    the feed itself never raises.
    """
    feed_task = asyncio.ensure_future(feed_fetch)
    try:
        loaded = await load
    except BaseException:
        feed_task.cancel()
        raise
    return loaded, await feed_task


async def compute_all_regions_metrics(
    conn: Connection,
    feed_client: EventsFeedClient,
    start: date,
    end: date,
) -> RegionSetSummary:
    """
    Load counters and the registry, fetch feed events concurrently, and build
    the all-regions view.

    Raises:
        asyncpg.PostgresError: If the row source fails. Feed failures never
            raise; they degrade to a zero-event overlay.
    """
    async def load_rows() -> Tuple[Dict[int, List[CounterRow]], List[Region]]:
        grouped = await fetch_daily_rows(conn, None, start, end)
        regions = await fetch_region_registry(conn)
        return grouped, regions

    (grouped, regions), feed = await _load_with_feed(
        load_rows(),
        feed_client.fetch_event_counts(start, end),
    )

    summary = build_region_summary(grouped, regions, feed)
    logger.info(
        f"Built summary for {len(summary.per_region)} regions "
        f"({start} - {end}), total events {summary.total_events}"
    )
    return summary


async def compute_region_metrics(
    conn: Connection,
    feed_client: EventsFeedClient,
    region_id: int,
    start: date,
    end: date,
) -> RegionDetailSummary:
    """
    Load one region's counters, fetch its feed events concurrently, and build
    the single-region view.

    Raises:
        asyncpg.PostgresError: If the row source fails.
    """
    async def load_rows() -> Tuple[List[CounterRow], List[Region]]:
        rows = await fetch_daily_records(conn, region_id, start, end)
        regions = await fetch_region_registry(conn, region_id)
        return rows, regions

    (rows, regions), feed = await _load_with_feed(
        load_rows(),
        feed_client.fetch_event_counts(start, end, region_id=region_id),
    )

    region = regions[0] if regions else Region(region_id=region_id)
    detail = build_region_detail(rows, region, feed)
    logger.info(
        f"Built detail for region {region_id} ({start} - {end}): "
        f"{len(detail.daily)} days, events {detail.summary.events_count}"
    )
    return detail
