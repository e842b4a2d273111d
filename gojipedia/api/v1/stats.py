"""Site-wide statistics and timeline endpoints."""

from fastapi import APIRouter, Depends

from gojipedia.core.cache import get_cache
from gojipedia.core.store import EntityStore, get_store
from gojipedia.db import schemas
from gojipedia.services import aggregation_service
from gojipedia.services.fan_power import FPI_WEIGHTS

router = APIRouter()


@router.get("/site", response_model=schemas.SiteStats)
async def site_stats(store: EntityStore = Depends(get_store)):
    """Active record counts for the home page."""
    cache = get_cache()
    cached = await cache.get(cache.site_stats_key())
    if cached is not None:
        return schemas.SiteStats(**cached)

    stats = aggregation_service.get_site_stats(store)
    await cache.set(cache.site_stats_key(), stats.model_dump())
    return stats


@router.get("/timeline", response_model=schemas.TimelineResponse)
async def timeline(store: EntityStore = Depends(get_store)):
    """Works and monsters in chronological order, with works grouped by decade."""
    return aggregation_service.get_timeline(store)


@router.get("/fan-power/weights", response_model=schemas.FanPowerWeightsResponse)
async def fan_power_weights():
    """The fixed sub-score weights, for the FPI explainer page."""
    return schemas.FanPowerWeightsResponse(**FPI_WEIGHTS)
