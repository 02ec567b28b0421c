"""
API package initialization.

FastAPI router modules of the call-center metrics backend:
- metrics: Region metrics summary, daily records and export table
- regions: Region registry
"""

from fastapi import APIRouter

# Import router modules
from call_metrics.api.metrics import router as metrics_router
from call_metrics.api.regions import router as regions_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(metrics_router, prefix="/metrics", tags=["metrics"])
api_router.include_router(regions_router, prefix="/regions", tags=["regions"])

__all__ = [
    "api_router",
    "metrics_router",
    "regions_router",
]
