"""Catalog queries: filtering, sorting, pagination and point lookups.

Everything here runs against an EntityStore snapshot and never raises for
missing data:
- lookups that find nothing return None (the API layer turns that into 404)
- joins drop rows whose foreign key doesn't resolve, with a warning
- filter values that aren't a known enum value simply match nothing

Public queries only see active records. Admin listings pass
include_inactive=True.
"""

import logging
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Generic, Iterable, TypeVar

from gojipedia.core.store import EntityStore
from gojipedia.db import schemas

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MONSTER_SORT = "fan_power_index"

# A product keyword must be at least this long to match inside a monster keyword
MIN_CONTAINED_KEYWORD_LENGTH = 4


# ============ Filters ============

@dataclass
class MonsterFilters:
    era: str | None = None
    alignment: str | None = None
    species_type: str | None = None
    search: str | None = None
    sort_by: str = DEFAULT_MONSTER_SORT  # fan_power_index, name, first_appearance_date
    sort_order: str = "desc"  # asc, desc


@dataclass
class WorkFilters:
    era: str | None = None
    work_type: str | None = None
    year: int | None = None  # Exact release year; ignored when <= 0
    search: str | None = None


@dataclass
class ProductFilters:
    category: str | None = None
    search: str | None = None
    monster_id: str | None = None
    era: str | None = None


# ============ Pagination ============

@dataclass
class Page(Generic[T]):
    """One offset-based page of an already filtered and sorted list."""

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total > 0 else 1

    @property
    def has_more(self) -> bool:
        return self.page * self.limit < self.total


def paginate(items: list[T], page: int = 1, limit: int = 24) -> Page[T]:
    """Slice out page `page` (1-based) of `limit` items."""
    page = max(page, 1)
    limit = max(limit, 1)
    offset = (page - 1) * limit
    return Page(items=items[offset:offset + limit], total=len(items), page=page, limit=limit)


def _truncate(items: list[T], limit: int | None) -> list[T]:
    return items if limit is None else items[:max(limit, 0)]


# ============ Matching & Sorting Helpers ============

def matches_search(candidates: Iterable[str], query: str) -> bool:
    """Case-insensitive substring match of `query` against any candidate string."""
    needle = query.lower()
    return any(needle in candidate.lower() for candidate in candidates if candidate)


def locale_sort_key(value: str) -> tuple[str, str]:
    """Sort key approximating locale-aware collation.

    Accents are stripped and case is folded so "Ébirah" sorts with "Ebirah"
    rather than after "Z"; the raw string breaks ties deterministically.
    """
    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), value)


def sort_nulls_last(items: list[T], key: Callable[[T], object], descending: bool) -> list[T]:
    """Stable sort where records whose key is None go last in either direction."""
    present = [item for item in items if key(item) is not None]
    missing = [item for item in items if key(item) is None]
    return sorted(present, key=key, reverse=descending) + missing


MONSTER_SORT_KEYS: dict[str, Callable[[schemas.Monster], object]] = {
    "fan_power_index": lambda m: m.fan_power_index,
    "name": lambda m: locale_sort_key(m.name),
    "first_appearance_date": lambda m: m.first_appearance_date,
}


def _post_date(post: schemas.Post) -> datetime | None:
    """Published date, falling back to created date. Naive values are taken as UTC."""
    value = post.published_at or post.created_at
    if value is not None and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def monster_keywords(monster: schemas.Monster) -> list[str]:
    """Lower-cased name plus aliases, the keyword set used for product matching."""
    return [monster.name.lower()] + [alias.lower() for alias in monster.aliases]


def product_matches_keywords(product: schemas.Product, keywords: list[str]) -> bool:
    """True when any product keyword and any given keyword overlap as substrings.

    Matching is deliberately loose: "godzilla" matches a product keyword
    "shin godzilla figure", and a product keyword "mecha" matches the monster
    keyword "mechagodzilla". Product keywords shorter than
    MIN_CONTAINED_KEYWORD_LENGTH only match in the first direction, so a
    keyword like "the" doesn't match "king of the monsters".
    """
    for product_keyword in product.search_keywords:
        pk = product_keyword.lower()
        if not pk:
            continue
        for keyword in keywords:
            if not keyword:
                continue
            if keyword in pk:
                return True
            if len(pk) >= MIN_CONTAINED_KEYWORD_LENGTH and pk in keyword:
                return True
    return False


# ============ Join Helpers ============

def resolve_monster(store: EntityStore, monster_id: str, context: str) -> schemas.Monster | None:
    """Resolve a monster id for a join. Inactive monsters are hidden; dangling ids are logged."""
    monster = store.monster(monster_id)
    if monster is None:
        logger.warning(f"Dangling monster reference {monster_id} in {context}")
        return None
    return monster if monster.is_active else None


def resolve_work(store: EntityStore, work_id: str, context: str) -> schemas.Work | None:
    """Resolve a work id for a join. Inactive works are hidden; dangling ids are logged."""
    work = store.work(work_id)
    if work is None:
        logger.warning(f"Dangling work reference {work_id} in {context}")
        return None
    return work if work.is_active else None


# ============ Monsters ============

def list_monsters(
    store: EntityStore,
    filters: MonsterFilters | None = None,
    include_inactive: bool = False,
    limit: int | None = None,
) -> list[schemas.Monster]:
    """Filter and sort monsters. Filters are ANDed; default order is FPI descending."""
    filters = filters or MonsterFilters()
    result = store.monsters if include_inactive else [m for m in store.monsters if m.is_active]

    if filters.era:
        result = [m for m in result if filters.era in m.era_tags]
    if filters.alignment:
        result = [m for m in result if m.alignment == filters.alignment]
    if filters.species_type:
        result = [m for m in result if m.species_type == filters.species_type]
    if filters.search:
        result = [m for m in result if matches_search([m.name, *m.aliases], filters.search)]

    sort_key = MONSTER_SORT_KEYS.get(filters.sort_by, MONSTER_SORT_KEYS[DEFAULT_MONSTER_SORT])
    result = sort_nulls_last(result, sort_key, descending=filters.sort_order != "asc")

    return _truncate(result, limit)


def get_monster_by_slug(store: EntityStore, slug: str) -> schemas.Monster | None:
    monster = store.monster_by_slug(slug)
    return monster if monster and monster.is_active else None


def get_monster_detail(store: EntityStore, slug: str) -> schemas.MonsterDetail | None:
    """Monster plus first-appearance work, appearances, battles and both relationship directions."""
    monster = get_monster_by_slug(store, slug)
    if monster is None:
        return None

    context = f"monster {monster.slug}"

    first_work = None
    if monster.first_appearance_work_id:
        first_work = resolve_work(store, monster.first_appearance_work_id, context)

    appearances = []
    for appearance in store.appearances_of(monster.id):
        work = resolve_work(store, appearance.work_id, context)
        if work:
            appearances.append(schemas.AppearanceWithWork(**appearance.model_dump(), work=work))

    participations = []
    for participant in store.participations_of(monster.id):
        battle = store.battle(participant.battle_id)
        if battle is None:
            logger.warning(f"Dangling battle reference {participant.battle_id} in {context}")
            continue
        participations.append(schemas.ParticipationWithBattle(**participant.model_dump(), battle=battle))

    outgoing, incoming = store.relationships_for(monster.id)
    relationships_from = []
    for edge in outgoing:
        other = resolve_monster(store, edge.to_monster_id, context)
        if other:
            relationships_from.append(
                schemas.RelationshipWithMonster(**edge.model_dump(), other_monster=other, direction="outgoing")
            )
    relationships_to = []
    for edge in incoming:
        other = resolve_monster(store, edge.from_monster_id, context)
        if other:
            relationships_to.append(
                schemas.RelationshipWithMonster(**edge.model_dump(), other_monster=other, direction="incoming")
            )

    return schemas.MonsterDetail(
        monster=monster,
        first_appearance_work=first_work,
        appearances=appearances,
        battle_participations=participations,
        relationships_from=relationships_from,
        relationships_to=relationships_to,
    )


def get_featured_monsters(store: EntityStore, limit: int = 6) -> list[schemas.Monster]:
    featured = [m for m in store.monsters if m.is_active and m.is_featured]
    featured = sorted(featured, key=lambda m: m.fan_power_index, reverse=True)
    return _truncate(featured, limit)


# ============ Works ============

def list_works(
    store: EntityStore,
    filters: WorkFilters | None = None,
    include_inactive: bool = False,
    limit: int | None = None,
) -> list[schemas.Work]:
    """Filter works; newest release first, undated works last."""
    filters = filters or WorkFilters()
    result = store.works if include_inactive else [w for w in store.works if w.is_active]

    if filters.era:
        result = [w for w in result if filters.era in w.era_tags]
    if filters.work_type:
        result = [w for w in result if w.work_type == filters.work_type]
    if filters.year and filters.year > 0:
        result = [w for w in result if w.release_date and w.release_date.year == filters.year]
    if filters.search:
        result = [w for w in result if matches_search([w.title], filters.search)]

    result = sort_nulls_last(result, lambda w: w.release_date, descending=True)
    return _truncate(result, limit)


def get_work_by_slug(store: EntityStore, slug: str) -> schemas.Work | None:
    work = store.work_by_slug(slug)
    return work if work and work.is_active else None


def get_featured_works(store: EntityStore, limit: int = 6) -> list[schemas.Work]:
    featured = [w for w in store.works if w.is_active and w.is_featured]
    return _truncate(sort_nulls_last(featured, lambda w: w.release_date, descending=True), limit)


# ============ Battles ============

def _battle_with_participants(store: EntityStore, battle: schemas.Battle) -> schemas.BattleWithParticipants:
    context = f"battle {battle.slug}"
    participants = []
    for participant in store.participants_in(battle.id):
        monster = resolve_monster(store, participant.monster_id, context)
        if monster:
            participants.append(schemas.ParticipantWithMonster(**participant.model_dump(), monster=monster))

    work = resolve_work(store, battle.work_id, context) if battle.work_id else None
    return schemas.BattleWithParticipants(battle=battle, participants=participants, work=work)


def list_battles(store: EntityStore, limit: int | None = 10) -> list[schemas.BattleWithParticipants]:
    return [_battle_with_participants(store, b) for b in _truncate(store.battles, limit)]


def get_battle_by_slug(store: EntityStore, slug: str) -> schemas.BattleWithParticipants | None:
    battle = store.battle_by_slug(slug)
    if battle is None:
        return None
    return _battle_with_participants(store, battle)


# ============ Products ============

def list_products(
    store: EntityStore,
    filters: ProductFilters | None = None,
    include_inactive: bool = False,
    limit: int | None = None,
) -> list[schemas.Product]:
    """Filter products. Natural order; no ranking."""
    filters = filters or ProductFilters()
    result = store.products if include_inactive else [p for p in store.products if p.is_active]

    if filters.category:
        result = [p for p in result if p.category == filters.category]
    if filters.search:
        result = [p for p in result if matches_search([p.title, *p.search_keywords], filters.search)]
    if filters.monster_id:
        monster = store.monster(filters.monster_id)
        keywords = monster_keywords(monster) if monster else []
        result = [p for p in result if product_matches_keywords(p, keywords)]
    if filters.era:
        keywords = [
            keyword
            for m in store.monsters
            if m.is_active and filters.era in m.era_tags
            for keyword in monster_keywords(m)
        ]
        result = [p for p in result if product_matches_keywords(p, keywords)]

    return _truncate(result, limit)


def get_suggested_products(store: EntityStore) -> list[schemas.Product]:
    """Products proposed by the refresh job and awaiting admin review."""
    return [p for p in store.products if p.is_suggested]


def get_product_collection(store: EntityStore, slug: str) -> schemas.CollectionWithItems | None:
    """Active collection with its items ranked ascending. Missing or inactive products are dropped."""
    collection = store.collection_by_slug(slug)
    if collection is None or not collection.is_active:
        return None

    items = []
    for item in sorted(store.items_in(collection.id), key=lambda i: i.rank):
        product = store.product(item.product_id)
        if product is None:
            logger.warning(f"Dangling product reference {item.product_id} in collection {collection.slug}")
            continue
        if not product.is_active:
            continue
        items.append(schemas.CollectionItemWithProduct(**item.model_dump(), product=product))

    return schemas.CollectionWithItems(collection=collection, items=items)


def get_featured_collections(store: EntityStore, limit: int = 4) -> list[schemas.ProductCollection]:
    return _truncate([c for c in store.collections if c.is_active and c.is_featured], limit)


# ============ Posts ============

def list_posts(
    store: EntityStore,
    post_type: str | None = None,
    status: str | None = None,
    limit: int | None = None,
) -> list[schemas.Post]:
    """Posts newest first (published date, falling back to created date). Status defaults to published."""
    result = store.posts
    if post_type:
        result = [p for p in result if p.post_type == post_type]
    result = [p for p in result if p.status == (status or schemas.PostStatus.PUBLISHED.value)]

    return _truncate(sort_nulls_last(result, _post_date, descending=True), limit)


def list_stories(
    store: EntityStore,
    perspective: str | None = None,
    limit: int | None = 10,
) -> list[schemas.Post]:
    """Published fan stories, optionally from one perspective."""
    result = [
        p for p in store.posts
        if p.post_type == schemas.PostType.STORY.value and p.status == schemas.PostStatus.PUBLISHED.value
    ]
    if perspective:
        result = [p for p in result if p.story_perspective == perspective]
    return _truncate(result, limit)


def get_post_by_slug(store: EntityStore, slug: str) -> schemas.Post | None:
    post = store.post_by_slug(slug)
    return post if post and post.status == schemas.PostStatus.PUBLISHED.value else None


# ============ Timeline ============

def dated_works(store: EntityStore) -> list[schemas.Work]:
    """Active works with a release date, oldest first."""
    works = [w for w in store.works if w.is_active and w.release_date]
    return sorted(works, key=lambda w: w.release_date)


def dated_monsters(store: EntityStore) -> list[schemas.Monster]:
    """Active monsters with a first-appearance date, oldest first."""
    monsters = [m for m in store.monsters if m.is_active and m.first_appearance_date]
    return sorted(monsters, key=lambda m: m.first_appearance_date)


def release_year(work: schemas.Work) -> int | None:
    return work.release_date.year if isinstance(work.release_date, date) else None
