"""
External events feed client and merger.

The events feed reports, per province, how many "resulting operations" events
were recorded over a date range. Those counts are overlaid on the locally
stored counter rows. The feed is best-effort: any failure degrades to "no
events" instead of failing the metrics request.

Wire contract:
    POST {events_feed_url}
    {"api_key": "...", "date_start": "2024/03/01", "date_end": "2024/03/31",
     "province_id": 7}                      # province_id only for one region
    ->
    [{"province_id": "7", "events_count": 120}, ...]

The feed may send province ids as strings or numbers; they are normalized to
int before merging so "7", 7 and 7.0 all match region 7.

Key Components:
- FetchError: Reason a feed fetch failed
- FeedResult: Either the fetched points or the fetch error
- EventsFeedClient: Async httpx client for the feed (never raises)
- parse_event_points: Validate a decoded feed body
- merge_event_counts: Attach event counts to rows and total them
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from call_metrics.core.config import Settings
from call_metrics.models.schemas import CounterRow, ExternalEventPoint


logger = logging.getLogger(__name__)


# =============================================================================
# Result Types
# =============================================================================

class FetchError(Exception):
    """Raised (and captured into a FeedResult) when the events feed is unusable."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class FeedResult:
    """
    Outcome of one feed fetch: points on success, error on failure.

    Use the success() and failure() constructors rather than building it
    directly.
    """
    points: Tuple[ExternalEventPoint, ...] = ()
    error: Optional[FetchError] = None

    @classmethod
    def success(cls, points: Sequence[ExternalEventPoint]) -> "FeedResult":
        return cls(points=tuple(points), error=None)

    @classmethod
    def failure(cls, error: FetchError) -> "FeedResult":
        return cls(points=(), error=error)

    @property
    def ok(self) -> bool:
        return self.error is None


# =============================================================================
# Parsing and Merging
# =============================================================================

def _canonical_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def normalize_region_id(value: Any) -> Optional[int]:
    """
    Canonical merge key for a region id coming off the wire.

    Accepts ints, integral floats and numeric strings (surrounding whitespace
    and leading zeros allowed). Returns None for anything else, including
    booleans.

    Example:
        >>> normalize_region_id(" 07 ")
        7
        >>> normalize_region_id("abc") is None
        True
    """
    return _canonical_int(value)


def parse_event_points(payload: Any) -> List[ExternalEventPoint]:
    """
    Validate a decoded feed body into event points.

    Args:
        payload: The JSON-decoded response body.

    Returns:
        List[ExternalEventPoint]: One point per usable entry, in feed order.
            Entries that are not objects, lack province_id or events_count, or
            carry non-numeric or negative values are skipped.

    Raises:
        FetchError: If the body is not a JSON array.
    """
    if not isinstance(payload, list):
        raise FetchError(f"Expected a JSON array, got {type(payload).__name__}")

    points: List[ExternalEventPoint] = []
    skipped = 0
    for entry in payload:
        if not isinstance(entry, dict):
            skipped += 1
            continue
        region_id = normalize_region_id(entry.get('province_id'))
        events_count = _canonical_int(entry.get('events_count'))
        if region_id is None or events_count is None or events_count < 0:
            skipped += 1
            continue
        points.append(ExternalEventPoint(region_id=region_id, events_count=events_count))

    if skipped:
        logger.warning(f"Skipped {skipped} malformed events feed entries")

    return points


def merge_event_counts(
    rows: Sequence[CounterRow],
    feed: FeedResult,
) -> Tuple[List[CounterRow], int]:
    """
    Overlay feed event counts on rows keyed by region.

    Args:
        rows: Rows to enrich. Not mutated.
        feed: Result of a feed fetch.

    Returns:
        Tuple of (rows, total_events):
        - On a failed feed, the rows unchanged and total_events == 0.
        - On success, rows whose region appears in the feed get events_count
          (duplicate feed entries: the last one wins); other rows are returned
          as is. total_events sums every feed entry, including regions that
          have no row.
    """
    if not feed.ok:
        return list(rows), 0

    lookup: Dict[int, int] = {}
    total_events = 0
    for point in feed.points:
        lookup[point.region_id] = point.events_count
        total_events += point.events_count

    merged: List[CounterRow] = []
    for row in rows:
        if row.region_id is not None and row.region_id in lookup:
            merged.append(row.model_copy(update={'events_count': lookup[row.region_id]}))
        else:
            merged.append(row)

    return merged, total_events


# =============================================================================
# HTTP Client
# =============================================================================

@dataclass(frozen=True)
class EventsFeedClient:
    """
    Client for the external events feed.

    Configured once (usually from Settings) and shared; the API key is fixed
    for the lifetime of the client. `transport` lets tests plug in an
    httpx.MockTransport.
    """
    url: str
    api_key: Optional[str]
    timeout: float = 10.0
    verify_ssl: bool = True
    date_format: str = '%Y/%m/%d'
    transport: Optional[httpx.AsyncBaseTransport] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "EventsFeedClient":
        return cls(
            url=settings.events_feed_url,
            api_key=settings.events_feed_api_key,
            timeout=settings.events_feed_timeout_seconds,
            verify_ssl=settings.events_feed_verify_ssl,
            date_format=settings.events_feed_date_format,
        )

    def build_request_body(
        self,
        start: date,
        end: date,
        region_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            'api_key': self.api_key,
            'date_start': start.strftime(self.date_format),
            'date_end': end.strftime(self.date_format),
        }
        if region_id is not None:
            body['province_id'] = region_id
        return body

    async def fetch_event_counts(
        self,
        start: date,
        end: date,
        region_id: Optional[int] = None,
    ) -> FeedResult:
        """
        Fetch event counts for a date range, for all regions or one.

        Makes a single POST with no retry. Never raises: a missing API key,
        transport errors, timeouts, non-2xx statuses and unusable bodies are
        all returned as FeedResult.failure and logged once at WARNING.

        Args:
            start: First day of the range (inclusive).
            end: Last day of the range (inclusive).
            region_id: Restrict the feed to one region; None for all.

        Returns:
            FeedResult: The fetched points, or the failure reason.
        """
        if not self.api_key:
            return self._degrade(FetchError("Events feed API key is not configured"))

        body = self.build_request_body(start, end, region_id)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                verify=self.verify_ssl,
                transport=self.transport,
            ) as client:
                response = await client.post(self.url, json=body)
                response.raise_for_status()
                payload = response.json()
            points = parse_event_points(payload)
        except httpx.TimeoutException:
            return self._degrade(FetchError(f"Timed out after {self.timeout}s"))
        except httpx.HTTPStatusError as e:
            return self._degrade(FetchError(f"HTTP {e.response.status_code}"))
        except httpx.HTTPError as e:
            return self._degrade(FetchError(f"Transport error: {str(e)}"))
        except ValueError:
            return self._degrade(FetchError("Response body is not valid JSON"))
        except FetchError as e:
            return self._degrade(e)

        logger.info(
            f"Events feed returned {len(points)} entries for "
            f"{start} - {end} (region={region_id if region_id is not None else 'all'})"
        )
        return FeedResult.success(points)

    def _degrade(self, error: FetchError) -> FeedResult:
        logger.warning(f"Events feed unavailable ({self.url}): {error.reason}")
        return FeedResult.failure(error)
