"""
Breakdown reconciliation service for call-center counter rows.

A counter row declares a total (total_number) and two breakdowns of it: the
per-carrier channel counters and the call outcome (status) counters. Source
systems report these independently, so they rarely agree. This module forces
them back into agreement by adjusting a designated catch-all field of each
breakdown.

Reconciliation Order:
1. Channels: if the carriers add up to more than total_number, the excess is
   taken out of `other` (clamped at zero; any residual excess is dropped).
2. Statuses: the difference between total_number and the outcome counters is
   absorbed by `congestion` (clamped at zero).

Both steps return new rows, never raise, and are idempotent. Negative or
missing breakdown inputs count as zero.

Key Functions:
- reconcile_row: Run both steps in order
- reconcile_channels / reconcile_statuses: The individual steps
- check_breakdown_invariants: List invariants a row violates
"""

import logging
from typing import Dict, List

from call_metrics.models.enums import BreakdownInvariant
from call_metrics.models.fields import (
    CHANNEL_CATCH_ALL,
    CHANNEL_FIELDS,
    STATUS_CATCH_ALL,
    STATUS_FIELDS,
)
from call_metrics.models.schemas import CounterRow


logger = logging.getLogger(__name__)


def _non_negative(row: CounterRow, field_names) -> Dict[str, int]:
    return {name: max(0, getattr(row, name)) for name in field_names}


def reconcile_channels(row: CounterRow) -> CounterRow:
    """
    Cap the channel breakdown at total_number by reducing `other`.

    Args:
        row: Row to reconcile. Not mutated.

    Returns:
        A copy of the row whose channel counters sum to at most total_number,
        unless `other` alone could not absorb the excess.

    Example:
        >>> row = CounterRow(total_number=100, mci=30, irancell=20, rightel=10,
        ...                  fixed=10, taliya=5, espadan=5, other=25)
        >>> reconcile_channels(row).other
        20
    """
    total = max(0, row.total_number)
    channels = _non_negative(row, CHANNEL_FIELDS)
    computed = sum(channels.values())

    if computed > total:
        excess = computed - total
        available = channels[CHANNEL_CATCH_ALL]
        channels[CHANNEL_CATCH_ALL] = max(0, available - excess)
        if excess > available:
            logger.warning(
                f"Channel excess of {excess} exceeds '{CHANNEL_CATCH_ALL}' ({available}) "
                f"for region {row.region_id} on {row.date}; "
                f"{excess - available} calls left unreconciled"
            )

    return row.model_copy(update={'total_number': total, **channels})


def reconcile_statuses(row: CounterRow) -> CounterRow:
    """
    Make the status breakdown add up to total_number via `congestion`.

    When the outcome counters already exceed total_number by more than
    `congestion` holds, congestion is clamped at zero and the breakdown stays
    above the total.
    """
    total = max(0, row.total_number)
    statuses = _non_negative(row, STATUS_FIELDS)
    computed = sum(statuses.values())

    if computed != total:
        adjusted = statuses[STATUS_CATCH_ALL] + (total - computed)
        if adjusted < 0:
            logger.warning(
                f"Status breakdown ({computed}) exceeds total_number ({total}) "
                f"for region {row.region_id} on {row.date}; "
                f"'{STATUS_CATCH_ALL}' clamped at 0"
            )
        statuses[STATUS_CATCH_ALL] = max(0, adjusted)

    return row.model_copy(update={'total_number': total, **statuses})


def reconcile_row(row: CounterRow) -> CounterRow:
    """
    Reconcile both breakdowns of a row against its total.

    Channels are reconciled before statuses. The input row is left untouched
    and reconcile_row(reconcile_row(row)) == reconcile_row(row).

    Args:
        row: A raw or aggregated counter row.

    Returns:
        CounterRow: The reconciled copy.
    """
    return reconcile_statuses(reconcile_channels(row))


def check_breakdown_invariants(row: CounterRow) -> List[BreakdownInvariant]:
    """
    Return the breakdown invariants the row violates (empty when consistent).

    STATUS_MATCHES_TOTAL can legitimately remain violated after reconciliation
    when the outcome counters exceed the total by more than `congestion` held.
    """
    violations: List[BreakdownInvariant] = []

    breakdown = (row.total_number,) + tuple(
        getattr(row, name) for name in CHANNEL_FIELDS + STATUS_FIELDS
    )
    if any(value < 0 for value in breakdown):
        violations.append(BreakdownInvariant.NON_NEGATIVE)

    if sum(getattr(row, name) for name in CHANNEL_FIELDS) > row.total_number:
        violations.append(BreakdownInvariant.CHANNEL_WITHIN_TOTAL)

    if sum(getattr(row, name) for name in STATUS_FIELDS) != row.total_number:
        violations.append(BreakdownInvariant.STATUS_MATCHES_TOTAL)

    return violations
