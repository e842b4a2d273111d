"""Shop endpoints: affiliate products and curated collections."""

from fastapi import APIRouter, Depends, HTTPException, Query

from gojipedia.config import get_settings
from gojipedia.core.store import EntityStore, get_store
from gojipedia.db import schemas
from gojipedia.services import catalog_service

settings = get_settings()

router = APIRouter()


def build_affiliate_url(asin: str, tag: str | None = None) -> str:
    return f"https://www.amazon.com/dp/{asin}?tag={tag or settings.amazon_associate_tag}"


def with_affiliate_url(product: schemas.Product) -> schemas.Product:
    """Fill in the affiliate link for products the refresh job hasn't tagged yet."""
    if product.amazon_url_with_tag:
        return product
    return product.model_copy(update={"amazon_url_with_tag": build_affiliate_url(product.asin)})


@router.get("/products", response_model=schemas.ProductListResponse)
async def list_products(
    category: str | None = Query(default=None, description="figures, model_kits, posters, shirts, bluray, books, art, general"),
    q: str | None = Query(default=None, description="Search titles and keywords"),
    monster: str | None = Query(default=None, description="Monster slug; products mentioning it"),
    era: str | None = Query(default=None, description="Products mentioning any monster of this era"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    store: EntityStore = Depends(get_store),
):
    """Browse active products."""
    filters = catalog_service.ProductFilters(category=category, search=q, era=era)
    products = []
    found = catalog_service.get_monster_by_slug(store, monster) if monster else None
    if found:
        filters.monster_id = found.id
    if found or not monster:
        products = catalog_service.list_products(store, filters)

    result = catalog_service.paginate(products, page, limit)

    return schemas.ProductListResponse(
        items=[with_affiliate_url(p) for p in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
        has_more=result.has_more,
    )


@router.get("/collections", response_model=list[schemas.ProductCollection])
async def featured_collections(
    limit: int = Query(default=4, ge=1, le=20),
    store: EntityStore = Depends(get_store),
):
    return catalog_service.get_featured_collections(store, limit)


@router.get("/collections/{slug}", response_model=schemas.CollectionWithItems)
async def get_collection(
    slug: str,
    store: EntityStore = Depends(get_store),
):
    """A curated collection with its products in rank order."""
    result = catalog_service.get_product_collection(store, slug)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Collection {slug} not found")

    for item in result.items:
        item.product = with_affiliate_url(item.product)
    return result
