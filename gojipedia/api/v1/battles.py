"""Battle endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query

from gojipedia.core.store import EntityStore, get_store
from gojipedia.db import schemas
from gojipedia.services import catalog_service

router = APIRouter()


@router.get("", response_model=list[schemas.BattleWithParticipants])
async def list_battles(
    limit: int = Query(default=10, ge=1, le=100),
    store: EntityStore = Depends(get_store),
):
    return catalog_service.list_battles(store, limit)


@router.get("/{slug}", response_model=schemas.BattleWithParticipants)
async def get_battle(
    slug: str,
    store: EntityStore = Depends(get_store),
):
    battle = catalog_service.get_battle_by_slug(store, slug)
    if battle is None:
        raise HTTPException(status_code=404, detail=f"Battle {slug} not found")
    return battle
