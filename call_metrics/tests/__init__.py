'''
Call Metrics Backend Test Suite

Test Modules:
-------------
- test_models.py: CounterRow coercion and the field catalogue
- test_aggregation.py: Sum/mean/latest combinators, scopes, day bucketing
- test_reconciliation.py: Channel cap, status balance, idempotence
- test_external_feed.py: Feed parsing, merging, httpx client degradation
- test_row_source.py: SQL aliasing and row source queries
- test_region_summary.py: All-regions and single-region views
- test_export.py: Export table layout
- test_api_metrics.py: HTTP endpoints through TestClient

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

__all__ = []
