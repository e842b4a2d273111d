"""Work (movie/series/comic/game) endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query

from gojipedia.config import get_settings
from gojipedia.core.store import EntityStore, get_store
from gojipedia.db import schemas
from gojipedia.services import aggregation_service, catalog_service

settings = get_settings()

router = APIRouter()


@router.get("", response_model=schemas.WorkListResponse)
async def list_works(
    era: str | None = Query(default=None, description="Era tag, e.g. Showa, Reiwa"),
    work_type: str | None = Query(default=None, description="movie, series, comic, game"),
    year: int | None = Query(default=None, description="Exact release year"),
    q: str | None = Query(default=None, description="Search titles"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    store: EntityStore = Depends(get_store),
):
    """Browse works, newest release first."""
    filters = catalog_service.WorkFilters(era=era, work_type=work_type, year=year, search=q)
    result = catalog_service.paginate(catalog_service.list_works(store, filters), page, limit)

    return schemas.WorkListResponse(
        items=result.items,
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
        has_more=result.has_more,
    )


@router.get("/featured", response_model=list[schemas.Work])
async def featured_works(
    limit: int = Query(default=6, ge=1, le=24),
    store: EntityStore = Depends(get_store),
):
    return catalog_service.get_featured_works(store, limit)


@router.get("/by-era", response_model=list[schemas.EraGroup])
async def works_by_era(store: EntityStore = Depends(get_store)):
    """Active works grouped by their primary (first) era tag."""
    return aggregation_service.group_works_by_era(catalog_service.list_works(store))


@router.get("/by-decade", response_model=list[schemas.DecadeGroup])
async def works_by_decade(store: EntityStore = Depends(get_store)):
    """Dated active works grouped by release decade, oldest decade first."""
    return aggregation_service.group_works_by_decade(catalog_service.list_works(store))


@router.get("/{slug}", response_model=schemas.WorkWithMonsters)
async def get_work(
    slug: str,
    store: EntityStore = Depends(get_store),
):
    """A work and the monsters appearing in it."""
    result = aggregation_service.get_work_with_monsters(store, slug)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Work {slug} not found")
    return result
