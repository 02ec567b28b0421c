"""
FastAPI router module for call metrics.

Implements GET /metrics (all-regions or single-region summary),
GET /metrics/daily-records (reconciled raw daily records with analytics) and
GET /metrics/export (fixed-order export table).

region_id == 0 selects every region. All three endpoints run through the
same engine (aggregate, reconcile, merge feed events), so the numbers match
across the dashboard, the detail modal and the export.

Error Handling:
- start_date > end_date: 400, before any data is loaded
- Row source failures: 500 "Failed to load province metrics: ..."
- Events feed failures: logged, response still 200 with no events
"""

import logging
from datetime import date

from fastapi import APIRouter, HTTPException, Query

from call_metrics.core.dependencies import DBSessionDep, EventsFeedClientDep
from call_metrics.models.schemas import (
    DailyRecordsResponse,
    ExportColumn,
    ExportResponse,
    MetricsResponse,
)
from call_metrics.services.export import (
    EXPORT_COLUMNS,
    build_export_frame,
    export_records,
    export_title,
)
from call_metrics.services.reconciliation import reconcile_row
from call_metrics.services.region_summary import (
    compute_all_regions_metrics,
    compute_region_metrics,
)
from call_metrics.services.row_source import (
    fetch_daily_detail_records,
    fetch_region_registry,
)


# Configure logging
logger = logging.getLogger(__name__)


router = APIRouter()


def _validate_range(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must be <= end_date")


# =============================================================================
# Endpoint Implementations
# =============================================================================


@router.get("", response_model=MetricsResponse)
async def get_metrics(
    db: DBSessionDep,
    feed_client: EventsFeedClientDep,
    start_date: date = Query(..., description="First day of the range (YYYY-MM-DD)"),
    end_date: date = Query(..., description="Last day of the range (YYYY-MM-DD)"),
    region_id: int = Query(default=0, ge=0, description="Region id, 0 for all regions"),
) -> MetricsResponse:
    """
    Get reconciled call metrics for a date range.

    For region_id == 0 the summary is the grand total across regions and
    metrics holds one row per region (every registered region, including
    those without data). For a single region the summary covers the whole
    range and metrics holds one row per day.

    Args:
        start_date: First day (inclusive).
        end_date: Last day (inclusive).
        region_id: Region to report, 0 for all.

    Returns:
        MetricsResponse with summary and metrics rows.
    """
    _validate_range(start_date, end_date)

    try:
        if region_id == 0:
            summary = await compute_all_regions_metrics(db, feed_client, start_date, end_date)
            response = MetricsResponse(
                region_id=0,
                start_date=start_date,
                end_date=end_date,
                summary=summary.grand_total,
                metrics=summary.per_region,
            )
        else:
            detail = await compute_region_metrics(db, feed_client, region_id, start_date, end_date)
            response = MetricsResponse(
                region_id=region_id,
                start_date=start_date,
                end_date=end_date,
                summary=detail.summary,
                metrics=detail.daily,
            )

        logger.info(
            f"Served metrics for region {region_id} ({start_date} - {end_date}): "
            f"{len(response.metrics)} rows"
        )
        return response

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error loading metrics for region {region_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load province metrics: {str(e)}"
        )


@router.get("/daily-records", response_model=DailyRecordsResponse)
async def get_daily_records(
    db: DBSessionDep,
    start_date: date = Query(..., description="First day of the range (YYYY-MM-DD)"),
    end_date: date = Query(..., description="Last day of the range (YYYY-MM-DD)"),
    region_id: int = Query(default=0, ge=0, description="Region id, 0 for all regions"),
) -> DailyRecordsResponse:
    """
    Get the individual daily records of a date range, reconciled one by one.

    Records are not aggregated; each keeps its record_id and carries its JSON
    analytics columns, decoded (None where the stored JSON is invalid).
    current_record is the first record, the one the detail view opens on.
    Responds 404 when the range holds no records.
    """
    _validate_range(start_date, end_date)

    try:
        scope = region_id if region_id > 0 else None
        rows = await fetch_daily_detail_records(db, scope, start_date, end_date)
        if not rows:
            raise HTTPException(
                status_code=404,
                detail="No records found for the given region and date range"
            )

        region_name = None
        if scope is not None:
            registry = await fetch_region_registry(db, scope)
            if registry:
                region_name = registry[0].region_name

        records = []
        for row in rows:
            row = reconcile_row(row)
            if region_name is not None and row.region_name is None:
                row = row.model_copy(update={'region_name': region_name})
            records.append(row)

        logger.info(f"Served {len(records)} daily records for region {region_id}")
        return DailyRecordsResponse(
            region_id=region_id,
            region_name=region_name,
            start_date=start_date,
            end_date=end_date,
            current_record=records[0],
            records=records,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error loading daily records for region {region_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load daily records: {str(e)}"
        )


@router.get("/export", response_model=ExportResponse)
async def export_metrics(
    db: DBSessionDep,
    feed_client: EventsFeedClientDep,
    start_date: date = Query(..., description="First day of the range (YYYY-MM-DD)"),
    end_date: date = Query(..., description="Last day of the range (YYYY-MM-DD)"),
    region_id: int = Query(default=0, ge=0, description="Region id, 0 for all regions"),
) -> ExportResponse:
    """
    Get the export table for a date range.

    The all-regions table has one row per region followed by the grand total.
    A single-region table has one row, the region's range summary. The
    external events count overrides number_resulted_operation.
    """
    _validate_range(start_date, end_date)

    try:
        if region_id == 0:
            summary = await compute_all_regions_metrics(db, feed_client, start_date, end_date)
            frame = build_export_frame(summary.per_region, grand_total=summary.grand_total)
        else:
            detail = await compute_region_metrics(db, feed_client, region_id, start_date, end_date)
            frame = build_export_frame([detail.summary])

        logger.info(f"Built export table for region {region_id}: {len(frame)} rows")
        return ExportResponse(
            region_id=region_id,
            start_date=start_date,
            end_date=end_date,
            title=export_title(start_date, end_date),
            columns=[ExportColumn(key=key, label=label) for key, label in EXPORT_COLUMNS.items()],
            rows=export_records(frame),
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error building export for region {region_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load province metrics: {str(e)}"
        )
