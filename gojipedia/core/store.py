"""In-memory entity store.

The catalog is small and read-mostly, so every request works against a
materialized snapshot of all tables rather than issuing per-row queries.
Snapshots are immutable once built; a reload builds a new EntityStore and
swaps it in under a lock.

On construction every monster's cached fan_power_index is recomputed and
compared. Drift is logged and the computed value wins, so nothing served from
the store can disagree with the Score Engine. The audit of the raw data is
kept on the store for the admin endpoints.
"""

import asyncio
import json
import logging
import time
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gojipedia.config import get_settings
from gojipedia.db import models, schemas
from gojipedia.services.fpi_audit import FpiAuditResult, audit_fan_power

logger = logging.getLogger(__name__)


def _refresh_fan_power(
    monsters: list[schemas.Monster],
) -> tuple[list[schemas.Monster], FpiAuditResult]:
    """Replace drifted cached FPI values with computed ones.

    Monsters missing a sub-score keep their stored value.
    """
    audit = audit_fan_power(monsters)
    corrections = {d.monster_id: d.computed for d in audit.drifted}

    for drift in audit.drifted:
        logger.warning(f"Cached FPI drift for {drift.slug}: stored {drift.cached}, computed {drift.computed}")
    for gap in audit.incomplete:
        logger.warning(f"Keeping cached FPI {gap.cached} for {gap.slug}: missing sub-scores")

    refreshed = [
        m.model_copy(update={"fan_power_index": corrections[m.id]}) if m.id in corrections else m
        for m in monsters
    ]
    return refreshed, audit


def _group(rows: Iterable, attr: str) -> dict[str, list]:
    grouped = defaultdict(list)
    for row in rows:
        grouped[getattr(row, attr)].append(row)
    return dict(grouped)


class EntityStore:
    """One snapshot of the whole catalog, indexed by id, slug and foreign key.

    Lists keep their natural (load) order; every accessor returns rows in
    that order.
    """

    def __init__(
        self,
        monsters: Iterable[schemas.Monster] = (),
        works: Iterable[schemas.Work] = (),
        appearances: Iterable[schemas.Appearance] = (),
        battles: Iterable[schemas.Battle] = (),
        battle_participants: Iterable[schemas.BattleParticipant] = (),
        relationships: Iterable[schemas.Relationship] = (),
        products: Iterable[schemas.Product] = (),
        collections: Iterable[schemas.ProductCollection] = (),
        collection_items: Iterable[schemas.ProductCollectionItem] = (),
        posts: Iterable[schemas.Post] = (),
        loaded_at: datetime | None = None,
    ):
        # fan_power_audit describes the source data as loaded, before correction
        self.monsters, self.fan_power_audit = _refresh_fan_power(list(monsters))
        self.works = list(works)
        self.appearances = list(appearances)
        self.battles = list(battles)
        self.battle_participants = list(battle_participants)
        self.relationships = list(relationships)
        self.products = list(products)
        self.collections = list(collections)
        self.collection_items = list(collection_items)
        self.posts = list(posts)
        self.loaded_at = loaded_at or datetime.now(timezone.utc)

        self._monsters_by_id = {m.id: m for m in self.monsters}
        self._monsters_by_slug = {m.slug: m for m in self.monsters}
        self._works_by_id = {w.id: w for w in self.works}
        self._works_by_slug = {w.slug: w for w in self.works}
        self._battles_by_id = {b.id: b for b in self.battles}
        self._battles_by_slug = {b.slug: b for b in self.battles}
        self._products_by_id = {p.id: p for p in self.products}
        self._collections_by_slug = {c.slug: c for c in self.collections}
        self._posts_by_slug = {p.slug: p for p in self.posts}

        self._participants_by_battle = _group(self.battle_participants, "battle_id")
        self._participants_by_monster = _group(self.battle_participants, "monster_id")
        self._appearances_by_work = _group(self.appearances, "work_id")
        self._appearances_by_monster = _group(self.appearances, "monster_id")
        self._relationships_from = _group(self.relationships, "from_monster_id")
        self._relationships_to = _group(self.relationships, "to_monster_id")
        self._items_by_collection = _group(self.collection_items, "collection_id")

    # ---- point lookups (no active filtering; callers decide) ----

    def monster(self, monster_id: str) -> schemas.Monster | None:
        return self._monsters_by_id.get(monster_id)

    def monster_by_slug(self, slug: str) -> schemas.Monster | None:
        return self._monsters_by_slug.get(slug)

    def work(self, work_id: str) -> schemas.Work | None:
        return self._works_by_id.get(work_id)

    def work_by_slug(self, slug: str) -> schemas.Work | None:
        return self._works_by_slug.get(slug)

    def battle(self, battle_id: str) -> schemas.Battle | None:
        return self._battles_by_id.get(battle_id)

    def battle_by_slug(self, slug: str) -> schemas.Battle | None:
        return self._battles_by_slug.get(slug)

    def product(self, product_id: str) -> schemas.Product | None:
        return self._products_by_id.get(product_id)

    def collection_by_slug(self, slug: str) -> schemas.ProductCollection | None:
        return self._collections_by_slug.get(slug)

    def post_by_slug(self, slug: str) -> schemas.Post | None:
        return self._posts_by_slug.get(slug)

    # ---- foreign key lookups ----

    def participants_in(self, battle_id: str) -> list[schemas.BattleParticipant]:
        return self._participants_by_battle.get(battle_id, [])

    def participations_of(self, monster_id: str) -> list[schemas.BattleParticipant]:
        return self._participants_by_monster.get(monster_id, [])

    def appearances_in(self, work_id: str) -> list[schemas.Appearance]:
        return self._appearances_by_work.get(work_id, [])

    def appearances_of(self, monster_id: str) -> list[schemas.Appearance]:
        return self._appearances_by_monster.get(monster_id, [])

    def relationships_for(
        self, monster_id: str
    ) -> tuple[list[schemas.Relationship], list[schemas.Relationship]]:
        """Both directions of a monster's relationship edges: (outgoing, incoming).

        Edges are stored once, directed. Always go through this accessor so a
        caller can't forget the incoming side.
        """
        return (
            self._relationships_from.get(monster_id, []),
            self._relationships_to.get(monster_id, []),
        )

    def items_in(self, collection_id: str) -> list[schemas.ProductCollectionItem]:
        return self._items_by_collection.get(collection_id, [])

    # ---- constructors ----

    @classmethod
    def from_json(cls, path: str | Path) -> "EntityStore":
        """Build a store from a JSON catalog file (keys match the constructor)."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        return cls(
            monsters=[schemas.Monster.model_validate(r) for r in data.get("monsters", [])],
            works=[schemas.Work.model_validate(r) for r in data.get("works", [])],
            appearances=[schemas.Appearance.model_validate(r) for r in data.get("appearances", [])],
            battles=[schemas.Battle.model_validate(r) for r in data.get("battles", [])],
            battle_participants=[
                schemas.BattleParticipant.model_validate(r) for r in data.get("battle_participants", [])
            ],
            relationships=[schemas.Relationship.model_validate(r) for r in data.get("relationships", [])],
            products=[schemas.Product.model_validate(r) for r in data.get("products", [])],
            collections=[schemas.ProductCollection.model_validate(r) for r in data.get("collections", [])],
            collection_items=[
                schemas.ProductCollectionItem.model_validate(r) for r in data.get("collection_items", [])
            ],
            posts=[schemas.Post.model_validate(r) for r in data.get("posts", [])],
        )

    @classmethod
    async def from_session(cls, session: AsyncSession) -> "EntityStore":
        """Build a store from the database, one SELECT per table."""

        async def load(model, schema, *order_by):
            result = await session.execute(select(model).order_by(*order_by))
            return [schema.model_validate(row) for row in result.scalars().all()]

        return cls(
            monsters=await load(models.Monster, schemas.Monster, models.Monster.created_at, models.Monster.id),
            works=await load(models.Work, schemas.Work, models.Work.created_at, models.Work.id),
            appearances=await load(
                models.Appearance, schemas.Appearance, models.Appearance.created_at, models.Appearance.id
            ),
            battles=await load(models.Battle, schemas.Battle, models.Battle.created_at, models.Battle.id),
            battle_participants=await load(
                models.BattleParticipant, schemas.BattleParticipant, models.BattleParticipant.id
            ),
            relationships=await load(
                models.Relationship, schemas.Relationship, models.Relationship.created_at, models.Relationship.id
            ),
            products=await load(models.Product, schemas.Product, models.Product.created_at, models.Product.id),
            collections=await load(
                models.ProductCollection, schemas.ProductCollection,
                models.ProductCollection.created_at, models.ProductCollection.id,
            ),
            collection_items=await load(
                models.ProductCollectionItem, schemas.ProductCollectionItem,
                models.ProductCollectionItem.rank, models.ProductCollectionItem.id,
            ),
            posts=await load(models.Post, schemas.Post, models.Post.created_at, models.Post.id),
        )


async def load_configured_store() -> EntityStore:
    """Load a snapshot from the source selected by DATA_SOURCE."""
    settings = get_settings()
    if settings.data_source == "seed":
        logger.info(f"Loading catalog snapshot from seed file {settings.seed_path}")
        return EntityStore.from_json(settings.seed_path)

    from gojipedia.db.database import async_session_maker

    async with async_session_maker() as session:
        return await EntityStore.from_session(session)


class StoreProvider:
    """Hands out the current snapshot, rebuilding it when it is older than the TTL.

    Rebuilds are serialized with an asyncio.Lock so concurrent requests wait
    for one load instead of each starting their own. If a rebuild fails and
    an older snapshot exists, the old one keeps being served.
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[EntityStore]] = load_configured_store,
        ttl_seconds: int | None = None,
    ):
        self._loader = loader
        self._ttl = ttl_seconds if ttl_seconds is not None else get_settings().store_ttl_seconds
        self._store: EntityStore | None = None
        self._built_at = 0.0
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        return self._store is not None and (time.monotonic() - self._built_at) < self._ttl

    async def get(self) -> EntityStore:
        if self._is_fresh():
            return self._store

        async with self._lock:
            if self._is_fresh():
                return self._store
            return await self._rebuild()

    async def reload(self) -> EntityStore:
        """Force a rebuild now."""
        async with self._lock:
            return await self._rebuild()

    def invalidate(self) -> None:
        """Mark the current snapshot stale; the next get() rebuilds it."""
        self._built_at = 0.0

    async def _rebuild(self) -> EntityStore:
        start = time.monotonic()
        try:
            store = await self._loader()
        except Exception as e:
            if self._store is None:
                raise
            logger.error(f"Catalog reload failed, serving previous snapshot: {e}")
            self._built_at = time.monotonic()
            return self._store

        self._store = store
        self._built_at = time.monotonic()
        logger.info(
            f"Catalog snapshot loaded in {time.monotonic() - start:.2f}s: "
            f"{len(store.monsters)} monsters, {len(store.works)} works, "
            f"{len(store.battles)} battles, {len(store.products)} products, {len(store.posts)} posts"
        )
        return store


_provider: StoreProvider | None = None


def get_store_provider() -> StoreProvider:
    """Get the singleton store provider."""
    global _provider
    if _provider is None:
        _provider = StoreProvider()
    return _provider


async def get_store() -> EntityStore:
    """FastAPI dependency returning the current catalog snapshot."""
    return await get_store_provider().get()
