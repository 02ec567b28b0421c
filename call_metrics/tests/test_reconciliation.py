"""
Pytest test module for breakdown reconciliation.

Verifies the channel cap (excess taken out of `other`), the status balance
(difference absorbed by `congestion`), zero clamping, idempotence, and the
invariant checker.
"""

import logging

import pytest

from call_metrics.models.enums import BreakdownInvariant
from call_metrics.models.fields import CHANNEL_FIELDS, STATUS_FIELDS
from call_metrics.services.reconciliation import (
    check_breakdown_invariants,
    reconcile_channels,
    reconcile_row,
    reconcile_statuses,
)
from call_metrics.tests.conftest import make_row


def _channel_sum(row):
    return sum(getattr(row, name) for name in CHANNEL_FIELDS)


def _status_sum(row):
    return sum(getattr(row, name) for name in STATUS_FIELDS)


# Representative rows: consistent, channel overflow, status shortfall,
# status overflow beyond congestion, channel overflow beyond other, all zero
SAMPLE_ROWS = [
    make_row(total_number=100, number_answered=60, number_unanswered=40,
             mci=50, irancell=30, other=20),
    make_row(total_number=100, mci=30, irancell=20, rightel=10, fixed=10,
             taliya=5, other=30),
    make_row(total_number=100, number_answered=40, number_unanswered=30,
             number_busy=10, number_failed=5, congestion=5),
    make_row(total_number=50, number_answered=60, congestion=3),
    make_row(total_number=10, mci=25, other=5),
    make_row(),
]


# =============================================================================
# TEST CLASS: Channel Reconciliation
# =============================================================================

class TestReconcileChannels:

    def test_excess_is_taken_from_other(self):
        row = make_row(total_number=100, mci=30, irancell=20, rightel=10,
                       fixed=5, taliya=5, espadan=5, other=30)

        result = reconcile_channels(row)

        assert result.other == 25
        assert _channel_sum(result) == 100

    def test_no_change_when_within_total(self):
        row = make_row(total_number=100, mci=30, irancell=20, other=10)

        result = reconcile_channels(row)

        assert result.model_dump() == row.model_dump()

    def test_other_is_clamped_at_zero_and_residual_dropped(self, caplog):
        row = make_row(total_number=10, mci=25, other=5)

        with caplog.at_level(logging.WARNING):
            result = reconcile_channels(row)

        assert result.other == 0
        assert result.mci == 25
        assert _channel_sum(result) > result.total_number
        assert "unreconciled" in caplog.text

    def test_negative_channel_counts_are_treated_as_zero(self):
        row = make_row(total_number=10, mci=-5, irancell=8)

        result = reconcile_channels(row)

        assert result.mci == 0
        assert result.irancell == 8


# =============================================================================
# TEST CLASS: Status Reconciliation
# =============================================================================

class TestReconcileStatuses:

    def test_shortfall_is_added_to_congestion(self):
        row = make_row(total_number=100, number_answered=40, number_unanswered=30,
                       number_busy=10, number_failed=5, congestion=5)

        result = reconcile_statuses(row)

        assert result.congestion == 15
        assert _status_sum(result) == 100

    def test_surplus_is_removed_from_congestion(self):
        row = make_row(total_number=100, number_answered=90, number_unanswered=10,
                       congestion=7)

        result = reconcile_statuses(row)

        assert result.congestion == 0
        assert _status_sum(result) == 100

    def test_surplus_beyond_congestion_clamps_at_zero(self, caplog):
        row = make_row(total_number=50, number_answered=60, congestion=3)

        with caplog.at_level(logging.WARNING):
            result = reconcile_statuses(row)

        assert result.congestion == 0
        assert _status_sum(result) == 60
        assert "clamped" in caplog.text

    def test_empty_breakdown_puts_everything_in_congestion(self):
        result = reconcile_statuses(make_row(total_number=12))

        assert result.congestion == 12


# =============================================================================
# TEST CLASS: Full Row Reconciliation
# =============================================================================

class TestReconcileRow:

    @pytest.mark.parametrize("row", SAMPLE_ROWS)
    def test_idempotent(self, row):
        once = reconcile_row(row)

        assert reconcile_row(once) == once

    @pytest.mark.parametrize("row", SAMPLE_ROWS)
    def test_invariants_hold_after_reconciliation(self, row):
        result = reconcile_row(row)

        for name in CHANNEL_FIELDS + STATUS_FIELDS:
            assert getattr(result, name) >= 0
        if row.other >= _channel_sum(row) - row.total_number:
            assert _channel_sum(result) <= result.total_number
        if _status_sum(row) - row.congestion <= row.total_number:
            assert _status_sum(result) == result.total_number

    def test_channels_then_statuses(self):
        row = SAMPLE_ROWS[1]

        assert reconcile_row(row) == reconcile_statuses(reconcile_channels(row))

    def test_input_is_not_mutated(self):
        row = make_row(total_number=100, mci=80, other=40, number_answered=10)
        before = row.model_copy()

        reconcile_row(row)

        assert row == before

    def test_non_breakdown_fields_are_untouched(self):
        row = make_row(total_number=100, mci=120, other=30, answer_rate=55.5,
                       duration_seconds=999, events_count=4)

        result = reconcile_row(row)

        assert result.answer_rate == 55.5
        assert result.duration_seconds == 999
        assert result.events_count == 4


# =============================================================================
# TEST CLASS: Invariant Checker
# =============================================================================

class TestCheckBreakdownInvariants:

    def test_consistent_row_has_no_violations(self):
        row = reconcile_row(SAMPLE_ROWS[0])

        assert check_breakdown_invariants(row) == []

    def test_reports_each_violation(self):
        row = make_row(total_number=10, mci=25, congestion=-1)

        violations = check_breakdown_invariants(row)

        assert BreakdownInvariant.NON_NEGATIVE in violations
        assert BreakdownInvariant.CHANNEL_WITHIN_TOTAL in violations
        assert BreakdownInvariant.STATUS_MATCHES_TOTAL in violations

    def test_status_violation_can_remain_after_clamp(self):
        row = reconcile_row(make_row(total_number=50, number_answered=60, congestion=3))

        assert check_breakdown_invariants(row) == [BreakdownInvariant.STATUS_MATCHES_TOTAL]
