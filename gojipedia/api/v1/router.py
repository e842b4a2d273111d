"""API v1 router - aggregates all endpoint routers."""

from fastapi import APIRouter

from gojipedia.api.v1 import admin, battles, monsters, posts, shop, stats, works

api_router = APIRouter()

api_router.include_router(monsters.router, prefix="/monsters", tags=["monsters"])
api_router.include_router(works.router, prefix="/works", tags=["works"])
api_router.include_router(battles.router, prefix="/battles", tags=["battles"])
api_router.include_router(shop.router, prefix="/shop", tags=["shop"])
api_router.include_router(posts.router, prefix="/posts", tags=["posts"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
