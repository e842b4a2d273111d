"""Monster endpoints: listing, profile pages, fight records and Fan Power."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from gojipedia.config import get_settings
from gojipedia.core.cache import get_cache
from gojipedia.core.store import EntityStore, get_store
from gojipedia.db import schemas
from gojipedia.services import aggregation_service, catalog_service
from gojipedia.services.fan_power import IncompleteScoresError, breakdown_for_monster, fan_power_tier

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()


def fan_power_response(monster: schemas.Monster) -> schemas.FanPowerResponse | None:
    """FPI breakdown for display, or None when the record lacks a sub-score."""
    try:
        breakdown = breakdown_for_monster(monster)
    except IncompleteScoresError as e:
        logger.warning(f"No FPI breakdown for {monster.slug}: {e}")
        return None
    return schemas.FanPowerResponse(**breakdown._asdict(), tier=fan_power_tier(breakdown.total))


def _get_monster_or_404(store: EntityStore, slug: str) -> schemas.Monster:
    monster = catalog_service.get_monster_by_slug(store, slug)
    if monster is None:
        raise HTTPException(status_code=404, detail=f"Monster {slug} not found")
    return monster


async def _cached_fight_record(store: EntityStore, monster_id: str) -> schemas.FightRecord:
    cache = get_cache()
    cache_key = cache.fight_record_key(monster_id)
    cached = await cache.get(cache_key)
    if cached is not None:
        return schemas.FightRecord(**cached)

    record = aggregation_service.get_monster_fight_record(store, monster_id)
    await cache.set(cache_key, record.model_dump(mode="json"))
    return record


@router.get("", response_model=schemas.MonsterListResponse)
async def list_monsters(
    era: str | None = Query(default=None, description="Era tag, e.g. Showa, Heisei, MonsterVerse"),
    alignment: str | None = Query(default=None, description="protagonist, antagonist, neutral, evolves"),
    species_type: str | None = Query(default=None, description="kaiju, mech, alien, human_organization, titan"),
    q: str | None = Query(default=None, description="Search name and aliases"),
    sort: str = Query(default="fan_power_index", description="Sort: fan_power_index, name, first_appearance_date"),
    sort_order: str = Query(default="desc", description="Sort order: asc, desc"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    store: EntityStore = Depends(get_store),
):
    """Browse monsters with filtering, sorting and pagination."""
    filters = catalog_service.MonsterFilters(
        era=era,
        alignment=alignment,
        species_type=species_type,
        search=q,
        sort_by=sort,
        sort_order=sort_order,
    )
    result = catalog_service.paginate(catalog_service.list_monsters(store, filters), page, limit)

    return schemas.MonsterListResponse(
        items=result.items,
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
        has_more=result.has_more,
    )


@router.get("/featured", response_model=list[schemas.Monster])
async def featured_monsters(
    limit: int = Query(default=6, ge=1, le=24),
    store: EntityStore = Depends(get_store),
):
    """Featured monsters, strongest first."""
    return catalog_service.get_featured_monsters(store, limit)


@router.get("/slugs", response_model=list[schemas.SlugItem], include_in_schema=False)
async def monster_slugs(store: EntityStore = Depends(get_store)):
    """Slugs of every active monster, for sitemap generation."""
    return [
        schemas.SlugItem(slug=m.slug, updated_at=m.updated_at)
        for m in catalog_service.list_monsters(store, catalog_service.MonsterFilters(sort_by="name", sort_order="asc"))
    ]


@router.get("/{slug}", response_model=schemas.MonsterProfileResponse)
async def get_monster(
    slug: str,
    store: EntityStore = Depends(get_store),
):
    """
    Full monster profile: linked works, battles and relationships, the Fan
    Power breakdown, fight record, related monsters and matching products.
    """
    detail = catalog_service.get_monster_detail(store, slug)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"Monster {slug} not found")

    monster = detail.monster
    return schemas.MonsterProfileResponse(
        detail=detail,
        fan_power=fan_power_response(monster),
        fight_record=await _cached_fight_record(store, monster.id),
        related=aggregation_service.get_related_monsters(store, monster.id),
        products=aggregation_service.get_products_by_monster(store, monster.id),
    )


@router.get("/{slug}/fight-record", response_model=schemas.FightRecord)
async def get_fight_record(
    slug: str,
    store: EntityStore = Depends(get_store),
):
    """Win/loss/draw tallies with opponents per battle."""
    monster = _get_monster_or_404(store, slug)
    return await _cached_fight_record(store, monster.id)


@router.get("/{slug}/related", response_model=list[schemas.Monster])
async def get_related(
    slug: str,
    limit: int = Query(default=6, ge=1, le=50),
    store: EntityStore = Depends(get_store),
):
    """Monsters linked by a relationship (either direction) or a shared battle."""
    monster = _get_monster_or_404(store, slug)
    return aggregation_service.get_related_monsters(store, monster.id, limit)


@router.get("/{slug}/products", response_model=list[schemas.Product])
async def get_products(
    slug: str,
    limit: int = Query(default=8, ge=1, le=50),
    store: EntityStore = Depends(get_store),
):
    """Shop products whose keywords mention the monster or one of its aliases."""
    monster = _get_monster_or_404(store, slug)
    return aggregation_service.get_products_by_monster(store, monster.id, limit)


@router.get("/{slug}/fan-power", response_model=schemas.FanPowerResponse)
async def get_fan_power(
    slug: str,
    store: EntityStore = Depends(get_store),
):
    """Fan Power Index breakdown for the stat bars."""
    monster = _get_monster_or_404(store, slug)
    response = fan_power_response(monster)
    if response is None:
        raise HTTPException(status_code=404, detail=f"Fan Power data incomplete for {slug}")
    return response
