"""Pydantic schemas for catalog records and API responses.

The record schemas (Monster, Work, ...) double as the in-memory entity types
held by the EntityStore. Enum-like fields are stored as plain strings so a
filter value nobody recognizes just matches nothing.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, field_validator


# ============ Enumerations ============

class Era(str, Enum):
    SHOWA = "Showa"
    HEISEI = "Heisei"
    MILLENNIUM = "Millennium"
    REIWA = "Reiwa"
    LEGENDARY = "Legendary"
    MONSTERVERSE = "MonsterVerse"
    OTHER = "Other"


class Alignment(str, Enum):
    PROTAGONIST = "protagonist"
    ANTAGONIST = "antagonist"
    NEUTRAL = "neutral"
    EVOLVES = "evolves"


class SpeciesType(str, Enum):
    KAIJU = "kaiju"
    MECH = "mech"
    ALIEN = "alien"
    HUMAN_ORGANIZATION = "human_organization"
    TITAN = "titan"


class WorkType(str, Enum):
    MOVIE = "movie"
    SERIES = "series"
    COMIC = "comic"
    GAME = "game"


class RoleTag(str, Enum):
    PROTAGONIST = "protagonist"
    ANTAGONIST = "antagonist"
    CAMEO = "cameo"
    FEATURED = "featured"
    MENTIONED = "mentioned"


class Outcome(str, Enum):
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"
    UNKNOWN = "unknown"


class RelationType(str, Enum):
    ALLY = "ally"
    ENEMY = "enemy"
    RIVAL = "rival"
    CREATOR = "creator"
    CREATED_BY = "createdBy"
    VARIANT = "variant"
    OTHER = "other"


class ProductCategory(str, Enum):
    FIGURES = "figures"
    MODEL_KITS = "model_kits"
    POSTERS = "posters"
    SHIRTS = "shirts"
    BLURAY = "bluray"
    BOOKS = "books"
    ART = "art"
    GENERAL = "general"


class PostType(str, Enum):
    ARTICLE = "article"
    STORY = "story"
    GUIDE = "guide"
    EXPLAINER = "explainer"


class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class StoryPerspective(str, Enum):
    HUMAN = "human"
    GODZILLA = "godzilla"
    OTHER_MONSTER = "other_monster"
    BATTLE_ROYALE = "battle_royale"


class CollectionScopeType(str, Enum):
    MONSTER = "monster"
    MOVIE = "movie"
    ERA = "era"
    CATEGORY = "category"
    FEATURED = "featured"


def _none_to_list(value):
    return [] if value is None else value


# ============ Catalog Records ============

class Monster(BaseModel):
    """Monster profile. fan_power_index is a cache of the Score Engine output."""
    id: str
    name: str
    slug: str
    aliases: list[str] = []
    era_tags: list[str] = []
    alignment: str
    species_type: str
    first_appearance_date: date | None = None
    first_appearance_work_id: str | None = None
    height_meters: float | None = None
    weight_tons: float | None = None
    origin_summary: str = ""
    last_known_whereabouts: str = ""
    description_long: str = ""
    abilities: list[str] = []
    attacks: list[str] = []
    weaknesses: list[str] = []
    fan_power_index: int = 0
    durability_score: float | None = None
    attack_power_score: float | None = None
    mobility_score: float | None = None
    intelligence_score: float | None = None
    special_abilities_score: float | None = None
    era_scaling_factor: float = 1.0
    primary_image_url: str | None = None
    gallery_images: list[str] = []
    is_active: bool = True
    is_featured: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

    @field_validator(
        "aliases", "era_tags", "abilities", "attacks", "weaknesses", "gallery_images",
        mode="before",
    )
    @classmethod
    def _lists(cls, value):
        return _none_to_list(value)


class Work(BaseModel):
    """Movie, series, comic or game."""
    id: str
    title: str
    slug: str
    work_type: str
    release_date: date | None = None
    era_tags: list[str] = []
    continuity_tag: str | None = None
    synopsis_long: str = ""
    studio: str | None = None
    director: str | None = None
    runtime_minutes: int | None = None
    poster_image_url: str | None = None
    is_active: bool = True
    is_featured: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

    @field_validator("era_tags", mode="before")
    @classmethod
    def _lists(cls, value):
        return _none_to_list(value)


class Appearance(BaseModel):
    id: str
    monster_id: str
    work_id: str
    role_tag: str
    notes_short: str = ""
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class Battle(BaseModel):
    id: str
    title: str
    slug: str
    work_id: str | None = None
    location: str | None = None
    summary: str = ""
    battle_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class BattleParticipant(BaseModel):
    """Outcome is from this participant's perspective."""
    id: str
    battle_id: str
    monster_id: str
    outcome: str = "unknown"
    notes_short: str = ""

    class Config:
        from_attributes = True


class Relationship(BaseModel):
    """Directed edge from_monster_id -> to_monster_id."""
    id: str
    from_monster_id: str
    to_monster_id: str
    relation_type: str
    notes_short: str = ""
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class Product(BaseModel):
    id: str
    asin: str
    title: str
    image_url: str | None = None
    price: str | None = None
    prime_eligible: bool = False
    category: str = "general"
    brand: str | None = None
    amazon_url_with_tag: str | None = None
    search_keywords: list[str] = []
    is_active: bool = True
    is_suggested: bool = False
    last_fetched_at: datetime | None = None
    fetch_fail_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

    @field_validator("search_keywords", mode="before")
    @classmethod
    def _lists(cls, value):
        return _none_to_list(value)


class ProductCollection(BaseModel):
    id: str
    title: str
    slug: str
    description: str = ""
    scope_type: str = "featured"
    monster_id: str | None = None
    work_id: str | None = None
    scope_value: str | None = None
    is_active: bool = True
    is_featured: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class ProductCollectionItem(BaseModel):
    id: str
    collection_id: str
    product_id: str
    rank: int = 0
    reason_line: str = ""
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class Post(BaseModel):
    id: str
    title: str
    slug: str
    post_type: str
    status: str = "draft"
    story_perspective: str | None = None
    excerpt: str = ""
    mdx_path: str | None = None
    tags: list[str] = []
    categories: list[str] = []
    meta_title: str | None = None
    meta_description: str | None = None
    featured_image_url: str | None = None
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

    @field_validator("tags", "categories", mode="before")
    @classmethod
    def _lists(cls, value):
        return _none_to_list(value)


# ============ Joined Views ============

class AppearanceWithWork(Appearance):
    work: Work


class ParticipationWithBattle(BattleParticipant):
    battle: Battle


class RelationshipWithMonster(Relationship):
    """A relationship edge with the monster on the other end resolved."""
    other_monster: Monster
    direction: str  # "outgoing" or "incoming"


class MonsterDetail(BaseModel):
    """Monster with everything linked to it."""
    monster: Monster
    first_appearance_work: Work | None = None
    appearances: list[AppearanceWithWork] = []
    battle_participations: list[ParticipationWithBattle] = []
    relationships_from: list[RelationshipWithMonster] = []
    relationships_to: list[RelationshipWithMonster] = []


class ParticipantWithMonster(BattleParticipant):
    monster: Monster


class BattleWithParticipants(BaseModel):
    battle: Battle
    participants: list[ParticipantWithMonster] = []
    work: Work | None = None


class CollectionItemWithProduct(ProductCollectionItem):
    product: Product


class CollectionWithItems(BaseModel):
    collection: ProductCollection
    items: list[CollectionItemWithProduct] = []


class WorkWithMonsters(BaseModel):
    work: Work
    monsters: list[Monster] = []


# ============ Aggregates ============

class FanPowerResponse(BaseModel):
    """Fan Power Index breakdown for stat bars."""
    total: int
    durability: float
    attack_power: float
    mobility: float
    intelligence: float
    special_abilities: float
    era_scaling: float
    tier: str


class FanPowerWeightsResponse(BaseModel):
    durability: float
    attack_power: float
    mobility: float
    intelligence: float
    special_abilities: float


class FightEntry(BaseModel):
    battle: Battle
    outcome: str
    opponents: list[Monster] = []


class FightRecord(BaseModel):
    wins: int = 0
    losses: int = 0
    draws: int = 0
    unknown: int = 0
    battles: list[FightEntry] = []


class DecadeGroup(BaseModel):
    decade: int  # e.g. 1950
    works: list[Work]


class EraGroup(BaseModel):
    era: str
    works: list[Work]


class TimelineResponse(BaseModel):
    works: list[Work]
    monsters: list[Monster]
    decades: list[DecadeGroup]


class SiteStats(BaseModel):
    monsters: int
    works: int
    battles: int
    products: int
    posts: int


class MonsterProfileResponse(BaseModel):
    """Everything the monster page needs in one call."""
    detail: MonsterDetail
    fan_power: FanPowerResponse | None = None
    fight_record: FightRecord
    related: list[Monster] = []
    products: list[Product] = []


# ============ Paginated Listings ============

class MonsterListResponse(BaseModel):
    items: list[Monster]
    total: int
    page: int
    limit: int
    pages: int
    has_more: bool


class WorkListResponse(BaseModel):
    items: list[Work]
    total: int
    page: int
    limit: int
    pages: int
    has_more: bool


class ProductListResponse(BaseModel):
    items: list[Product]
    total: int
    page: int
    limit: int
    pages: int
    has_more: bool


class PostListResponse(BaseModel):
    items: list[Post]
    total: int
    page: int
    limit: int
    pages: int
    has_more: bool


class SlugItem(BaseModel):
    slug: str
    updated_at: datetime | None = None


# ============ Admin ============

class FpiDriftItem(BaseModel):
    monster_id: str
    slug: str
    cached: int
    computed: int | None = None  # None when a sub-score is missing


class FpiAuditResponse(BaseModel):
    checked: int
    drifted: list[FpiDriftItem]
    incomplete: list[FpiDriftItem]


class FpiRecomputeResponse(BaseModel):
    checked: int
    updated: int
    incomplete: int
    ran_at: datetime


class StoreReloadResponse(BaseModel):
    loaded_at: datetime
    counts: SiteStats
