"""
Range aggregation service for call-center counter rows.

This module folds a sequence of counter rows that share one aggregation scope
(one region across N days, or one day/one range across N regions) into a
single summary row, applying the combinator declared for each field in
call_metrics.models.fields.FIELD_AGGREGATION.

Aggregation Rules:
- SUM fields: arithmetic sum, missing values count as 0
- MEAN fields: unweighted arithmetic mean over the rows that carry a value
  (SQL AVG semantics). Rows are NOT weighted by total_number or day count;
  reported numbers depend on this, so it must stay as is.
- MAX fields: latest value wins (transfer_date, transfer_time)

Empty input yields 0 for every sum and None ("no data") for every mean.

Key Functions:
- aggregate_rows: Fold rows into one summary row for a scope
- group_rows_by_date: Bucket rows per calendar day, in date order
"""

from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from call_metrics.models.enums import AggregationMode
from call_metrics.models.fields import FIELD_AGGREGATION
from call_metrics.models.schemas import CounterRow


# Scope sentinel for a grand total across regions
ALL_REGIONS = "all"

Scope = Union[int, str]


def _check_scope(rows: Sequence[CounterRow], scope: Scope) -> Optional[int]:
    """
    Validate the scope and return the region id of the output row.

    Raises:
        ValueError: If scope is neither an int nor ALL_REGIONS, or a row
            belongs to a different region than the requested scope.
    """
    if scope == ALL_REGIONS:
        return None
    if isinstance(scope, bool) or not isinstance(scope, int):
        raise ValueError(f"Invalid aggregation scope: {scope!r}")

    for row in rows:
        if row.region_id is not None and row.region_id != scope:
            raise ValueError(
                f"Row for region {row.region_id} cannot be aggregated in scope {scope}"
            )
    return scope


def _common_value(values: List[Optional[object]]) -> Optional[object]:
    """Return the value shared by every entry, or None if they differ."""
    distinct = set(values)
    if len(distinct) == 1:
        return distinct.pop()
    return None


def _mean(values: List[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return float(np.mean(present))


def _latest(values: List[Optional[str]]) -> Optional[str]:
    present = [v for v in values if v is not None]
    return max(present) if present else None


def aggregate_rows(rows: Sequence[CounterRow], scope: Scope) -> CounterRow:
    """
    Fold counter rows sharing one scope into a single summary row.

    Args:
        rows: Rows to aggregate. All must belong to the scope; rows without a
            region_id are accepted in any scope.
        scope: A region id (one region across several days) or ALL_REGIONS
            (several regions combined into a grand total).

    Returns:
        A new CounterRow. Its region_id is the scope (None for ALL_REGIONS),
        its date is the date shared by all rows (None otherwise), and for a
        region scope its region_name is kept when all rows agree on it.
        events_count is never carried over; only the feed merger sets it.

    Raises:
        ValueError: If a row belongs to another region than the scope.

    Example:
        >>> a = CounterRow(region_id=1, total_number=10, answer_rate=50.0)
        >>> b = CounterRow(region_id=1, total_number=30, answer_rate=70.0)
        >>> summary = aggregate_rows([a, b], scope=1)
        >>> summary.total_number, summary.answer_rate
        (40, 60.0)
    """
    region_id = _check_scope(rows, scope)

    values: Dict[str, object] = {}
    for field_name, mode in FIELD_AGGREGATION.items():
        column = [getattr(row, field_name) for row in rows]
        if mode is AggregationMode.SUM:
            values[field_name] = sum(column)
        elif mode is AggregationMode.MEAN:
            values[field_name] = _mean(column)
        else:
            values[field_name] = _latest(column)

    if rows:
        values['date'] = _common_value([row.date for row in rows])
    if rows and region_id is not None:
        values['region_name'] = _common_value([row.region_name for row in rows])
    if len(rows) == 1:
        values['record_id'] = rows[0].record_id

    return CounterRow(region_id=region_id, **values)


def group_rows_by_date(rows: Sequence[CounterRow]) -> Dict[Optional[date], List[CounterRow]]:
    """
    Bucket rows by calendar day.

    Returns:
        Ordered dict of date -> rows, ascending by date. Rows without a date
        are grouped under None, which sorts last.
    """
    buckets: Dict[Optional[date], List[CounterRow]] = defaultdict(list)
    for row in rows:
        buckets[row.date].append(row)

    ordered_keys = sorted(buckets, key=lambda d: (d is None, d or date.min))
    return {key: buckets[key] for key in ordered_keys}
