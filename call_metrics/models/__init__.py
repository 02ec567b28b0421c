"""
Package initialization file for call-center metrics models.

Re-exports the enums, the counter field catalogue and the Pydantic schemas so
other modules can import them from call_metrics.models directly.

Usage:
    from call_metrics.models import (
        CounterRow,
        ExternalEventPoint,
        SUM_FIELDS,
        AggregationMode,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from call_metrics.models.enums import (
    AggregationMode,
    BreakdownInvariant,
)

# =============================================================================
# Field catalogue
# =============================================================================

from call_metrics.models.fields import (
    CHANNEL_FIELDS,
    STATUS_FIELDS,
    CHANNEL_CATCH_ALL,
    STATUS_CATCH_ALL,
    SUM_FIELDS,
    MEAN_FIELDS,
    LATEST_WINS_FIELDS,
    ANALYTICS_FIELDS,
    FIELD_AGGREGATION,
    coerce_count,
    coerce_rate,
    decode_analytics,
)

# =============================================================================
# Schemas
# =============================================================================

from call_metrics.models.schemas import (
    CounterRow,
    DailyRecord,
    ExternalEventPoint,
    Region,
    MetricsResponse,
    DailyRecordsResponse,
    ExportColumn,
    ExportResponse,
    RegionListResponse,
)


__all__ = [
    # Enums
    'AggregationMode',
    'BreakdownInvariant',
    # Field catalogue
    'CHANNEL_FIELDS',
    'STATUS_FIELDS',
    'CHANNEL_CATCH_ALL',
    'STATUS_CATCH_ALL',
    'SUM_FIELDS',
    'MEAN_FIELDS',
    'LATEST_WINS_FIELDS',
    'ANALYTICS_FIELDS',
    'FIELD_AGGREGATION',
    'coerce_count',
    'coerce_rate',
    'decode_analytics',
    # Schemas
    'CounterRow',
    'DailyRecord',
    'ExternalEventPoint',
    'Region',
    'MetricsResponse',
    'DailyRecordsResponse',
    'ExportColumn',
    'ExportResponse',
    'RegionListResponse',
]
