"""Blog and fan story endpoints. Only published posts are visible."""

from fastapi import APIRouter, Depends, HTTPException, Query

from gojipedia.config import get_settings
from gojipedia.core.store import EntityStore, get_store
from gojipedia.db import schemas
from gojipedia.services import catalog_service

settings = get_settings()

router = APIRouter()


@router.get("", response_model=schemas.PostListResponse)
async def list_posts(
    type: str | None = Query(default=None, description="article, story, guide, explainer"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    store: EntityStore = Depends(get_store),
):
    """Published posts, newest first."""
    result = catalog_service.paginate(catalog_service.list_posts(store, post_type=type), page, limit)

    return schemas.PostListResponse(
        items=result.items,
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
        has_more=result.has_more,
    )


@router.get("/stories", response_model=list[schemas.Post])
async def list_stories(
    perspective: str | None = Query(default=None, description="human, godzilla, other_monster, battle_royale"),
    limit: int = Query(default=10, ge=1, le=50),
    store: EntityStore = Depends(get_store),
):
    return catalog_service.list_stories(store, perspective, limit)


@router.get("/{slug}", response_model=schemas.Post)
async def get_post(
    slug: str,
    store: EntityStore = Depends(get_store),
):
    post = catalog_service.get_post_by_slug(store, slug)
    if post is None:
        raise HTTPException(status_code=404, detail=f"Post {slug} not found")
    return post
