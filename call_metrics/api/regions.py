"""
FastAPI router module for the region registry.

GET /regions lists registered regions ordered by name, for region pickers.
"""

import logging

from fastapi import APIRouter, HTTPException

from call_metrics.core.dependencies import DBSessionDep
from call_metrics.models.schemas import RegionListResponse
from call_metrics.services.row_source import fetch_region_registry


logger = logging.getLogger(__name__)


router = APIRouter()


@router.get("", response_model=RegionListResponse)
async def list_regions(db: DBSessionDep) -> RegionListResponse:
    """
    List registered regions.

    Returns:
        RegionListResponse with regions ordered by name.
    """
    try:
        regions = await fetch_region_registry(db)
        logger.info(f"Listed {len(regions)} regions")
        return RegionListResponse(regions=regions)

    except Exception as e:
        logger.error(f"Error listing regions: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to load provinces: {str(e)}"
        )
