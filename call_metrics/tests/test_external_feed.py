"""
Pytest test module for the external events feed.

Covers region id normalization, body parsing, merging event counts into rows,
and the httpx client's request shape and graceful degradation. HTTP traffic
goes through httpx.MockTransport; no network access is needed.
"""

import dataclasses
import logging
from datetime import date

import httpx
import pytest

from call_metrics.services.external_feed import (
    EventsFeedClient,
    FeedResult,
    FetchError,
    merge_event_counts,
    normalize_region_id,
    parse_event_points,
)
from call_metrics.tests.conftest import FEED_API_KEY, FEED_URL, make_row


START = date(2024, 3, 1)
END = date(2024, 3, 31)


# =============================================================================
# TEST CLASS: Region Id Normalization
# =============================================================================

class TestNormalizeRegionId:

    @pytest.mark.parametrize("value, expected", [
        (7, 7),
        ("7", 7),
        (" 07 ", 7),
        (7.0, 7),
        ("0", 0),
    ])
    def test_accepts_numeric_forms(self, value, expected):
        assert normalize_region_id(value) == expected

    @pytest.mark.parametrize("value", [None, True, "", "abc", "7.5", 7.5, [7], {"id": 7}])
    def test_rejects_everything_else(self, value):
        assert normalize_region_id(value) is None


# =============================================================================
# TEST CLASS: Parsing
# =============================================================================

class TestParseEventPoints:

    def test_parses_string_and_numeric_ids(self):
        points = parse_event_points([
            {'province_id': '1', 'events_count': 120},
            {'province_id': 2, 'events_count': '80'},
        ])

        assert [(p.region_id, p.events_count) for p in points] == [(1, 120), (2, 80)]

    def test_skips_malformed_entries(self, caplog):
        payload = [
            {'province_id': '1', 'events_count': 10},
            {'province_id': '2'},
            {'events_count': 5},
            {'province_id': 'x', 'events_count': 5},
            {'province_id': '3', 'events_count': -1},
            'not an object',
        ]

        with caplog.at_level(logging.WARNING):
            points = parse_event_points(payload)

        assert [(p.region_id, p.events_count) for p in points] == [(1, 10)]
        assert "Skipped 5" in caplog.text

    @pytest.mark.parametrize("payload", [{'error': 'denied'}, "oops", None, 12])
    def test_non_array_body_raises(self, payload):
        with pytest.raises(FetchError):
            parse_event_points(payload)

    def test_empty_array_is_valid(self):
        assert parse_event_points([]) == []


# =============================================================================
# TEST CLASS: Merging
# =============================================================================

class TestMergeEventCounts:

    def test_matching_rows_get_events_and_total_covers_all(self, scenario_c_entries):
        rows = [make_row(region_id=1), make_row(region_id=3)]
        feed = FeedResult.success(parse_event_points(scenario_c_entries))

        merged, total_events = merge_event_counts(rows, feed)

        assert merged[0].events_count == 120
        assert merged[1].events_count is None
        assert total_events == 200

    def test_failed_feed_leaves_rows_unchanged(self):
        rows = [make_row(region_id=1, total_number=5), make_row(region_id=2)]

        merged, total_events = merge_event_counts(rows, FeedResult.failure(FetchError("down")))

        assert merged == rows
        assert total_events == 0

    def test_duplicate_entries_last_wins_but_all_counted(self):
        feed = FeedResult.success(parse_event_points([
            {'province_id': 1, 'events_count': 10},
            {'province_id': '1', 'events_count': 30},
        ]))

        merged, total_events = merge_event_counts([make_row(region_id=1)], feed)

        assert merged[0].events_count == 30
        assert total_events == 40

    def test_input_rows_are_not_mutated(self, scenario_c_entries):
        rows = [make_row(region_id=1)]
        feed = FeedResult.success(parse_event_points(scenario_c_entries))

        merge_event_counts(rows, feed)

        assert rows[0].events_count is None

    def test_feed_result_constructors(self):
        assert FeedResult.success([]).ok
        failure = FeedResult.failure(FetchError("HTTP 500"))
        assert not failure.ok
        assert failure.error.reason == "HTTP 500"
        assert failure.points == ()


# =============================================================================
# TEST CLASS: HTTP Client
# =============================================================================

@pytest.mark.asyncio
class TestEventsFeedClient:

    async def test_posts_range_and_parses_response(
        self, feed_client_factory, recording_handler, feed_requests, scenario_c_entries
    ):
        client = feed_client_factory(recording_handler(scenario_c_entries))

        result = await client.fetch_event_counts(START, END)

        assert result.ok
        assert [(p.region_id, p.events_count) for p in result.points] == [(1, 120), (2, 80)]
        assert feed_requests == [{
            'api_key': FEED_API_KEY,
            'date_start': '2024/03/01',
            'date_end': '2024/03/31',
        }]

    async def test_single_region_sends_province_id(
        self, feed_client_factory, recording_handler, feed_requests
    ):
        client = feed_client_factory(recording_handler([{'province_id': '7', 'events_count': 3}]))

        result = await client.fetch_event_counts(START, END, region_id=7)

        assert result.ok
        assert feed_requests[0]['province_id'] == 7

    async def test_timeout_degrades(self, feed_client_factory, caplog):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = feed_client_factory(handler)

        with caplog.at_level(logging.WARNING):
            result = await client.fetch_event_counts(START, END)

        assert not result.ok
        assert "Timed out" in result.error.reason
        assert "Events feed unavailable" in caplog.text

    async def test_connection_error_degrades(self, feed_client_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        result = await feed_client_factory(handler).fetch_event_counts(START, END)

        assert not result.ok
        assert result.error.reason.startswith("Transport error")

    async def test_error_status_degrades(self, feed_client_factory):
        client = feed_client_factory(lambda request: httpx.Response(503, text="busy"))

        result = await client.fetch_event_counts(START, END)

        assert not result.ok
        assert result.error.reason == "HTTP 503"

    async def test_invalid_json_degrades(self, feed_client_factory):
        client = feed_client_factory(lambda request: httpx.Response(200, text="<html>"))

        result = await client.fetch_event_counts(START, END)

        assert not result.ok
        assert "not valid JSON" in result.error.reason

    async def test_non_array_body_degrades(self, feed_client_factory):
        client = feed_client_factory(lambda request: httpx.Response(200, json={'error': 'bad key'}))

        result = await client.fetch_event_counts(START, END)

        assert not result.ok
        assert "JSON array" in result.error.reason

    async def test_missing_api_key_skips_request(self, feed_client_factory, recording_handler, feed_requests):
        client = feed_client_factory(recording_handler([]), api_key=None)

        result = await client.fetch_event_counts(START, END)

        assert not result.ok
        assert feed_requests == []


class TestEventsFeedClientConfig:

    def test_from_settings(self, test_settings):
        client = EventsFeedClient.from_settings(test_settings)

        assert client.url == FEED_URL
        assert client.api_key == FEED_API_KEY
        assert client.timeout == 3.0
        assert client.verify_ssl is False
        assert client.transport is None

    def test_custom_date_format(self):
        client = EventsFeedClient(url=FEED_URL, api_key='k', date_format='%Y-%m-%d')

        body = client.build_request_body(START, END)

        assert body['date_start'] == '2024-03-01'
        assert 'province_id' not in body

    def test_client_is_immutable(self):
        client = EventsFeedClient(url=FEED_URL, api_key='k')

        with pytest.raises(dataclasses.FrozenInstanceError):
            client.api_key = 'other'
