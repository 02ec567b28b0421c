"""
Call metrics services.

The reconciliation and aggregation engine plus its data access:

- aggregation: Fold counter rows into range or grand-total rows
- reconciliation: Force channel and status breakdowns to agree with totals
- external_feed: Fetch and merge the external events-count feed
- region_summary: All-regions and single-region views, request orchestration
- row_source: Daily counter rows and region registry from PostgreSQL
- export: Fixed-order export table (pandas)

All engine functions are pure and return new rows; only row_source and the
feed client perform I/O.
"""

# =============================================================================
# Aggregation
# =============================================================================

from call_metrics.services.aggregation import (
    ALL_REGIONS,
    aggregate_rows,
    group_rows_by_date,
)

# =============================================================================
# Reconciliation
# =============================================================================

from call_metrics.services.reconciliation import (
    reconcile_row,
    reconcile_channels,
    reconcile_statuses,
    check_breakdown_invariants,
)

# =============================================================================
# External Events Feed
# =============================================================================

from call_metrics.services.external_feed import (
    FetchError,
    FeedResult,
    EventsFeedClient,
    normalize_region_id,
    parse_event_points,
    merge_event_counts,
)

# =============================================================================
# Row Source
# =============================================================================

from call_metrics.services.row_source import (
    fetch_daily_rows,
    fetch_daily_records,
    fetch_daily_detail_records,
    fetch_region_registry,
)

# =============================================================================
# Region Summary
# =============================================================================

from call_metrics.services.region_summary import (
    RegionSetSummary,
    RegionDetailSummary,
    build_region_summary,
    build_region_detail,
    compute_all_regions_metrics,
    compute_region_metrics,
)

# =============================================================================
# Export
# =============================================================================

from call_metrics.services.export import (
    EXPORT_COLUMNS,
    GRAND_TOTAL_LABEL,
    build_export_frame,
    export_records,
    export_title,
)


__all__ = [
    # Aggregation
    'ALL_REGIONS',
    'aggregate_rows',
    'group_rows_by_date',
    # Reconciliation
    'reconcile_row',
    'reconcile_channels',
    'reconcile_statuses',
    'check_breakdown_invariants',
    # External events feed
    'FetchError',
    'FeedResult',
    'EventsFeedClient',
    'normalize_region_id',
    'parse_event_points',
    'merge_event_counts',
    # Row source
    'fetch_daily_rows',
    'fetch_daily_records',
    'fetch_daily_detail_records',
    'fetch_region_registry',
    # Region summary
    'RegionSetSummary',
    'RegionDetailSummary',
    'build_region_summary',
    'build_region_detail',
    'compute_all_regions_metrics',
    'compute_region_metrics',
    # Export
    'EXPORT_COLUMNS',
    'GRAND_TOTAL_LABEL',
    'build_export_frame',
    'export_records',
    'export_title',
]
