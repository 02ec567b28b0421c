"""
Call Metrics Backend Package.

FastAPI service for call-center metrics per province: reconciles daily call
counters against their totals, aggregates them over date ranges and regions,
and overlays the external resulting-operations events feed.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, and dependencies
    - models: Pydantic schemas, enums and the counter field catalogue
    - services: Aggregation/reconciliation engine and data access
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
