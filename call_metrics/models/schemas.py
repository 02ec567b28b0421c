"""
Pydantic models for the call-center metrics backend.

This module provides the CounterRow data model consumed and produced by the
aggregation/reconciliation engine, the external events feed point model, the
region registry model, and the request/response contracts of the API layer.

Field names of CounterRow are the public contract: the export table and the
dashboard charts key off them by name, so they must not be renamed.

All models use Pydantic v2 syntax.
"""

from datetime import date as DateType
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from call_metrics.models.fields import (
    ANALYTICS_FIELDS,
    LATEST_WINS_FIELDS,
    MEAN_FIELDS,
    SUM_FIELDS,
    coerce_count,
    coerce_rate,
    decode_analytics,
)


# =============================================================================
# Core Domain Models
# =============================================================================


class CounterRow(BaseModel):
    """
    One day's (or one pre-aggregated range's) call metrics for one region.

    Sum-typed counters default to 0 and coerce missing or non-numeric input to
    0. Mean-typed fields default to None, which means "no data" and is never
    coerced to 0. events_count is only ever set by the external series merger.
    """
    model_config = ConfigDict(
        extra='ignore',
        json_schema_extra={
            "example": {
                "region_id": 7,
                "region_name": "فارس",
                "date": None,
                "total_number": 100,
                "number_answered": 40,
                "number_unanswered": 30,
                "number_busy": 10,
                "number_failed": 5,
                "congestion": 15,
                "mci": 30,
                "irancell": 20,
                "other": 25,
                "answer_rate": 63.5,
                "events_count": 120,
            }
        }
    )

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------
    region_id: Optional[int] = Field(
        default=None,
        description="Region (province) identifier; None for a grand total row"
    )
    date: Optional[DateType] = Field(
        default=None,
        description="Calendar day, or None for a row aggregated over several days"
    )
    record_id: Optional[int] = Field(
        default=None,
        description="Storage id of the daily record this row was built from"
    )
    region_name: Optional[str] = Field(default=None)

    # -------------------------------------------------------------------------
    # Sum-typed counters
    # -------------------------------------------------------------------------
    total_number: int = 0
    number_answered: int = 0
    number_answered_operator: int = 0
    number_resulted_operation: int = 0
    number_unanswered: int = 0
    number_failed: int = 0
    number_busy: int = 0
    congestion: int = 0
    mci: int = 0
    irancell: int = 0
    rightel: int = 0
    fixed: int = 0
    taliya: int = 0
    espadan: int = 0
    unknown: int = 0
    other: int = 0
    kish: int = 0
    abandoned_calls: int = 0
    short_calls_under_5s: int = 0
    anonymous_calls: int = 0
    duration_seconds: int = 0
    duration_answered_seconds: int = 0
    total_wait_time: int = 0

    # -------------------------------------------------------------------------
    # Mean-typed fields
    # -------------------------------------------------------------------------
    call_completion_rate: Optional[float] = None
    average_speed_of_answer: Optional[float] = None
    average_handle_time: Optional[float] = None
    service_level: Optional[float] = None
    call_abandonment_rate: Optional[float] = None
    answer_rate: Optional[float] = None
    average_wait_time: Optional[float] = None
    queue_calls: Optional[float] = None

    # -------------------------------------------------------------------------
    # Attached (not raw storage)
    # -------------------------------------------------------------------------
    events_count: Optional[int] = Field(
        default=None,
        description="Resulting-operation events from the external feed"
    )
    transfer_date: Optional[str] = Field(
        default=None,
        description="Latest data transfer date of the region (MAX semantics)"
    )
    transfer_time: Optional[str] = Field(
        default=None,
        description="Latest data transfer time of the region (MAX semantics)"
    )

    @field_validator(*SUM_FIELDS, mode='before')
    @classmethod
    def _coerce_counts(cls, value: Any) -> int:
        return coerce_count(value)

    @field_validator(*MEAN_FIELDS, mode='before')
    @classmethod
    def _coerce_rates(cls, value: Any) -> Optional[float]:
        return coerce_rate(value)

    @field_validator(*LATEST_WINS_FIELDS, mode='before')
    @classmethod
    def _stringify_transfer(cls, value: Any) -> Optional[str]:
        # Dates and times compare correctly as ISO strings
        if value is None or value == '':
            return None
        if hasattr(value, 'isoformat'):
            return value.isoformat()
        return str(value)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CounterRow":
        """
        Build a CounterRow from a database record (asyncpg.Record or dict).

        Columns are expected to be aliased to CounterRow field names already;
        unknown columns are ignored.
        """
        data = dict(record)
        if 'report_date' in data and 'date' not in data:
            data['date'] = data.pop('report_date')
        return cls.model_validate(data)


class DailyRecord(CounterRow):
    """
    One stored daily record as served by the daily detail view: the counters
    plus the per-record JSON analytics columns, decoded. A column that fails
    to decode is None.
    """
    handled_calls_per_operator: Optional[Any] = None
    average_talk_time_per_operator: Optional[Any] = None
    operator_missed_call_rate: Optional[Any] = None
    operator_answer_rate: Optional[Any] = None
    hourly_call_volume: Optional[Any] = None
    daily_call_volume: Optional[Any] = None
    daily_call_trend: Optional[Any] = None
    peak_hour_analysis: Optional[Any] = None
    avg_duration_by_hour: Optional[Any] = None
    call_origin_type: Optional[Any] = None
    queue_time: Optional[Any] = None
    zero_billsec_calls: Optional[Any] = None
    repeated_caller_analysis: Optional[Any] = None
    call_duration_distribution: Optional[Any] = None
    abandoned_call_analysis: Optional[Any] = None

    @field_validator(*ANALYTICS_FIELDS, mode='before')
    @classmethod
    def _decode_analytics(cls, value: Any) -> Any:
        return decode_analytics(value)


class ExternalEventPoint(BaseModel):
    """
    One entry of the external events feed: events for one region over the
    requested date range. The feed names the region key `province_id`.
    """
    model_config = ConfigDict(populate_by_name=True)

    region_id: int = Field(..., alias='province_id')
    events_count: int = Field(..., ge=0)


class Region(BaseModel):
    """
    Region registry entry, used to left-join regions with no activity.
    """
    region_id: int
    region_name: Optional[str] = None
    transfer_date: Optional[str] = None
    transfer_time: Optional[str] = None

    @field_validator('transfer_date', 'transfer_time', mode='before')
    @classmethod
    def _stringify_transfer(cls, value: Any) -> Optional[str]:
        if value is None or value == '':
            return None
        if hasattr(value, 'isoformat'):
            return value.isoformat()
        return str(value)


# =============================================================================
# API Response Models
# =============================================================================


class MetricsResponse(BaseModel):
    """
    Response of GET /metrics.

    For region_id == 0, summary is the grand total and metrics holds one row
    per region. For a single region, summary covers the whole range and
    metrics holds one row per day.
    """
    region_id: int
    start_date: DateType
    end_date: DateType
    summary: CounterRow
    metrics: List[CounterRow] = Field(default_factory=list)


class DailyRecordsResponse(BaseModel):
    """
    Response of GET /metrics/daily-records: reconciled raw daily records.

    current_record is the first record of the range, the one the detail
    view opens on.
    """
    region_id: int
    region_name: Optional[str] = None
    start_date: DateType
    end_date: DateType
    current_record: Optional[DailyRecord] = None
    records: List[DailyRecord] = Field(default_factory=list)


class ExportColumn(BaseModel):
    key: str
    label: str


class ExportResponse(BaseModel):
    """
    Response of GET /metrics/export: an ordered table ready for a
    spreadsheet writer.
    """
    region_id: int
    start_date: DateType
    end_date: DateType
    title: str
    columns: List[ExportColumn]
    rows: List[Dict[str, Any]] = Field(default_factory=list)


class RegionListResponse(BaseModel):
    regions: List[Region] = Field(default_factory=list)
