"""Admin API endpoints: unfiltered listings and Fan Power maintenance."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from gojipedia.config import get_settings
from gojipedia.core.auth import require_admin
from gojipedia.core.cache import get_cache
from gojipedia.core.store import EntityStore, get_store, get_store_provider
from gojipedia.db import schemas
from gojipedia.db.database import get_db
from gojipedia.services import aggregation_service, catalog_service
from gojipedia.services.fpi_audit import recompute_fan_power_indexes, to_audit_response

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(dependencies=[Depends(require_admin)])

# The recompute rewrites the monsters table; keep it from being hammered
limiter = Limiter(key_func=get_remote_address)


async def _drop_snapshot() -> None:
    """Invalidate the catalog snapshot and every response cached from it."""
    get_store_provider().invalidate()
    await get_cache().flush_pattern(get_cache().CATALOG_PATTERN)


# ==================== Unfiltered Listings ====================

@router.get("/monsters", response_model=schemas.MonsterListResponse)
async def all_monsters(
    sort: str = Query(default="name"),
    sort_order: str = Query(default="asc"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    store: EntityStore = Depends(get_store),
):
    """Every monster including inactive ones."""
    filters = catalog_service.MonsterFilters(sort_by=sort, sort_order=sort_order)
    result = catalog_service.paginate(
        catalog_service.list_monsters(store, filters, include_inactive=True), page, limit
    )
    return schemas.MonsterListResponse(
        items=result.items,
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
        has_more=result.has_more,
    )


@router.get("/works", response_model=schemas.WorkListResponse)
async def all_works(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    store: EntityStore = Depends(get_store),
):
    """Every work including inactive ones."""
    result = catalog_service.paginate(catalog_service.list_works(store, include_inactive=True), page, limit)
    return schemas.WorkListResponse(
        items=result.items,
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
        has_more=result.has_more,
    )


@router.get("/products", response_model=schemas.ProductListResponse)
async def all_products(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=500),
    store: EntityStore = Depends(get_store),
):
    """Every product including inactive ones and pending suggestions."""
    result = catalog_service.paginate(catalog_service.list_products(store, include_inactive=True), page, limit)
    return schemas.ProductListResponse(
        items=result.items,
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
        has_more=result.has_more,
    )


@router.get("/products/suggested", response_model=list[schemas.Product])
async def suggested_products(store: EntityStore = Depends(get_store)):
    """Products proposed by the refresh job, awaiting review."""
    return catalog_service.get_suggested_products(store)


# ==================== Fan Power Maintenance ====================

@router.get("/fpi/audit", response_model=schemas.FpiAuditResponse)
async def fpi_audit(store: EntityStore = Depends(get_store)):
    """Cached FPI values that disagreed with the Score Engine when the snapshot was loaded."""
    return to_audit_response(store.fan_power_audit)


@router.post("/fpi/recompute", response_model=schemas.FpiRecomputeResponse)
@limiter.limit("5/minute")
async def fpi_recompute(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Rewrite every drifted fan_power_index in the database, then reload the snapshot."""
    result = await recompute_fan_power_indexes(db)
    await _drop_snapshot()
    logger.info(f"Admin FPI recompute: {len(result.drifted)} rows updated")

    return schemas.FpiRecomputeResponse(
        checked=result.checked,
        updated=len(result.drifted),
        incomplete=len(result.incomplete),
        ran_at=datetime.now(timezone.utc),
    )


@router.post("/store/reload", response_model=schemas.StoreReloadResponse)
async def reload_store():
    """Rebuild the catalog snapshot now instead of waiting for its TTL."""
    store = await get_store_provider().reload()
    await get_cache().flush_pattern(get_cache().CATALOG_PATTERN)

    return schemas.StoreReloadResponse(
        loaded_at=store.loaded_at,
        counts=aggregation_service.get_site_stats(store),
    )
