"""
Enumeration definitions for the call-center metrics backend.

All enums inherit from both `str` and `Enum` so they serialize cleanly in
Pydantic models and JSON responses.
"""

from enum import Enum


class AggregationMode(str, Enum):
    """
    How a counter field is combined when rows are rolled up.

    - SUM: additive counters (calls, channel counts, durations)
    - MEAN: rates and averages, combined as an unweighted mean over the rows
      that carry a value
    - MAX: latest-wins metadata (transfer date/time)
    """
    SUM = "sum"
    MEAN = "mean"
    MAX = "max"


class BreakdownInvariant(str, Enum):
    """
    Structural invariants checked on a reconciled CounterRow.

    - CHANNEL_WITHIN_TOTAL: per-carrier counts never exceed total_number
    - STATUS_MATCHES_TOTAL: call outcome counts add up to total_number
    - NON_NEGATIVE: no breakdown counter is negative
    """
    CHANNEL_WITHIN_TOTAL = "channel_within_total"
    STATUS_MATCHES_TOTAL = "status_matches_total"
    NON_NEGATIVE = "non_negative"
