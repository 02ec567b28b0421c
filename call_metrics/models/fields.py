"""
Counter field catalogue and value coercion helpers.

Every consumer of counter rows (aggregation, reconciliation, the SQL row
source, the export table) keys off the field names declared here, so they are
the single source of truth for which fields are summed, which are averaged,
and which form the channel and status breakdowns.
"""

import json
import math
from typing import Any, Dict, Optional, Tuple

from call_metrics.models.enums import AggregationMode


# =============================================================================
# Field Groups
# =============================================================================

# Per-carrier attribution of calls; `other` is the catch-all that absorbs
# overflow when the carriers add up to more than total_number
CHANNEL_FIELDS: Tuple[str, ...] = (
    'mci',
    'irancell',
    'rightel',
    'fixed',
    'taliya',
    'espadan',
    'other',
    'unknown',
)

# Outcome classification of calls; `congestion` is the catch-all
STATUS_FIELDS: Tuple[str, ...] = (
    'number_answered',
    'number_unanswered',
    'number_busy',
    'number_failed',
    'congestion',
)

CHANNEL_CATCH_ALL = 'other'
STATUS_CATCH_ALL = 'congestion'

# Additive across days and, for grand totals, across regions
SUM_FIELDS: Tuple[str, ...] = (
    'total_number',
    'number_answered',
    'number_answered_operator',
    'number_resulted_operation',
    'number_unanswered',
    'number_failed',
    'number_busy',
    'congestion',
    'mci',
    'irancell',
    'rightel',
    'fixed',
    'taliya',
    'espadan',
    'unknown',
    'other',
    'kish',
    'abandoned_calls',
    'short_calls_under_5s',
    'anonymous_calls',
    'duration_seconds',
    'duration_answered_seconds',
    'total_wait_time',
)

# Averaged, never summed
MEAN_FIELDS: Tuple[str, ...] = (
    'call_completion_rate',
    'average_speed_of_answer',
    'average_handle_time',
    'service_level',
    'call_abandonment_rate',
    'answer_rate',
    'average_wait_time',
    'queue_calls',
)

# Metadata merged from the region registry
LATEST_WINS_FIELDS: Tuple[str, ...] = (
    'transfer_date',
    'transfer_time',
)

# JSON analytics stored per daily record; served by the daily detail view only,
# never aggregated
ANALYTICS_FIELDS: Tuple[str, ...] = (
    'handled_calls_per_operator',
    'average_talk_time_per_operator',
    'operator_missed_call_rate',
    'operator_answer_rate',
    'hourly_call_volume',
    'daily_call_volume',
    'daily_call_trend',
    'peak_hour_analysis',
    'avg_duration_by_hour',
    'call_origin_type',
    'queue_time',
    'zero_billsec_calls',
    'repeated_caller_analysis',
    'call_duration_distribution',
    'abandoned_call_analysis',
)

FIELD_AGGREGATION: Dict[str, AggregationMode] = {
    **{name: AggregationMode.SUM for name in SUM_FIELDS},
    **{name: AggregationMode.MEAN for name in MEAN_FIELDS},
    **{name: AggregationMode.MAX for name in LATEST_WINS_FIELDS},
}


# =============================================================================
# Coercion Helpers
# =============================================================================

def coerce_count(value: Any) -> int:
    """
    Convert a raw counter value to int, treating missing input as 0.

    None, non-numeric strings, NaN and infinities all become 0. Floats and
    Decimals are truncated toward zero, matching how the storage layer casts
    counters.

    Example:
        >>> coerce_count("12")
        12
        >>> coerce_count(None)
        0
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return int(number)


def coerce_rate(value: Any) -> Optional[float]:
    """
    Convert a raw rate/average value to float, or None when there is no data.

    None is kept as None rather than 0 so that "no data" is never displayed
    as a measured zero.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def decode_analytics(value: Any) -> Any:
    """
    Decode a JSON analytics column.

    Strings are parsed as JSON; an empty string or undecodable text becomes
    None. Already-decoded values (jsonb with a codec, dicts, lists) pass
    through unchanged.

    Example:
        >>> decode_analytics('{"09": 12}')
        {'09': 12}
        >>> decode_analytics('{broken') is None
        True
    """
    if not isinstance(value, str):
        return value
    if value == '':
        return None
    try:
        return json.loads(value)
    except ValueError:
        return None
