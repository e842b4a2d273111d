"""
SQLAlchemy ORM models for the Gojipedia catalog.

============================================================================
THESE TABLES ARE READ THROUGH THE ENTITY STORE
============================================================================
API endpoints never query these tables directly. EntityStore.from_session()
(gojipedia/core/store.py) loads every table once per snapshot and the
catalog/aggregation services work on that snapshot.

- Monster: kaiju, mechs and titans, with the five Fan Power sub-scores
- Work / Appearance: movies, series, comics and games, and who appears in them
- Battle / BattleParticipant: fights and each monster's outcome
- Relationship: directed monster -> monster edges (ally, rival, ...)
- Product / ProductCollection / ProductCollectionItem: the affiliate shop
- Post: articles, guides and fan stories

List-valued columns (aliases, era tags, keywords) are JSON so the schema
works on any SQLAlchemy backend.
============================================================================
"""

from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, Float, Boolean, Text, Date, DateTime,
    ForeignKey, JSON, Index,
)

from gojipedia.db.database import Base


class Monster(Base):
    """A monster profile with its Fan Power sub-scores."""

    __tablename__ = "monsters"

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=False, unique=True)
    aliases = Column(JSON, default=list)
    era_tags = Column(JSON, default=list)  # Ordered, e.g. ["Heisei", "MonsterVerse"]
    alignment = Column(String(20), nullable=False)  # protagonist, antagonist, neutral, evolves
    species_type = Column(String(30), nullable=False)  # kaiju, mech, alien, ...
    first_appearance_date = Column(Date)
    first_appearance_work_id = Column(String(36), ForeignKey("works.id", ondelete="SET NULL"))
    height_meters = Column(Float)
    weight_tons = Column(Float)
    origin_summary = Column(Text, default="")
    last_known_whereabouts = Column(Text, default="")
    description_long = Column(Text, default="")
    abilities = Column(JSON, default=list)
    attacks = Column(JSON, default=list)
    weaknesses = Column(JSON, default=list)

    # Fan Power Index inputs (0-100 by convention) and the cached result
    durability_score = Column(Float)
    attack_power_score = Column(Float)
    mobility_score = Column(Float)
    intelligence_score = Column(Float)
    special_abilities_score = Column(Float)
    era_scaling_factor = Column(Float, default=1.0)
    fan_power_index = Column(Integer, default=0)

    primary_image_url = Column(String(500))
    gallery_images = Column(JSON, default=list)
    is_active = Column(Boolean, default=True)
    is_featured = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_monsters_fpi", fan_power_index.desc()),
        Index("idx_monsters_alignment", "alignment"),
        Index("idx_monsters_species", "species_type"),
    )


class Work(Base):
    """A movie, series, comic or game."""

    __tablename__ = "works"

    id = Column(String(36), primary_key=True)
    title = Column(String(300), nullable=False)
    slug = Column(String(300), nullable=False, unique=True)
    work_type = Column(String(20), nullable=False)  # movie, series, comic, game
    release_date = Column(Date)
    era_tags = Column(JSON, default=list)
    continuity_tag = Column(String(100))
    synopsis_long = Column(Text, default="")
    studio = Column(String(200))
    director = Column(String(200))
    runtime_minutes = Column(Integer)
    poster_image_url = Column(String(500))
    is_active = Column(Boolean, default=True)
    is_featured = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_works_release", release_date.desc()),
        Index("idx_works_type", "work_type"),
    )


class Appearance(Base):
    """Monster <-> work join with the monster's role in that work."""

    __tablename__ = "appearances"

    id = Column(String(36), primary_key=True)
    monster_id = Column(String(36), ForeignKey("monsters.id", ondelete="CASCADE"), nullable=False)
    work_id = Column(String(36), ForeignKey("works.id", ondelete="CASCADE"), nullable=False)
    role_tag = Column(String(20), nullable=False)  # protagonist, antagonist, cameo, featured, mentioned
    notes_short = Column(Text, default="")
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_appearances_monster", "monster_id"),
        Index("idx_appearances_work", "work_id"),
    )


class Battle(Base):
    """A recorded fight."""

    __tablename__ = "battles"

    id = Column(String(36), primary_key=True)
    title = Column(String(300), nullable=False)
    slug = Column(String(300), nullable=False, unique=True)
    work_id = Column(String(36), ForeignKey("works.id", ondelete="SET NULL"))
    location = Column(String(200))
    summary = Column(Text, default="")
    battle_date = Column(Date)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class BattleParticipant(Base):
    """One monster's side of a battle. Outcome is from that monster's perspective."""

    __tablename__ = "battle_participants"

    id = Column(String(36), primary_key=True)
    battle_id = Column(String(36), ForeignKey("battles.id", ondelete="CASCADE"), nullable=False)
    monster_id = Column(String(36), ForeignKey("monsters.id", ondelete="CASCADE"), nullable=False)
    outcome = Column(String(10), nullable=False, default="unknown")  # win, loss, draw, unknown
    notes_short = Column(Text, default="")

    __table_args__ = (
        Index("idx_participants_battle", "battle_id"),
        Index("idx_participants_monster", "monster_id"),
    )


class Relationship(Base):
    """Directed monster -> monster edge. Stored once; read both ways."""

    __tablename__ = "relationships"

    id = Column(String(36), primary_key=True)
    from_monster_id = Column(String(36), ForeignKey("monsters.id", ondelete="CASCADE"), nullable=False)
    to_monster_id = Column(String(36), ForeignKey("monsters.id", ondelete="CASCADE"), nullable=False)
    relation_type = Column(String(20), nullable=False)  # ally, enemy, rival, creator, createdBy, variant, other
    notes_short = Column(Text, default="")
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_relationships_from", "from_monster_id"),
        Index("idx_relationships_to", "to_monster_id"),
    )


class Product(Base):
    """Affiliate catalog product, refreshed out-of-band from the product API."""

    __tablename__ = "products"

    id = Column(String(36), primary_key=True)
    asin = Column(String(20), nullable=False, unique=True)
    title = Column(String(500), nullable=False)
    image_url = Column(String(500))
    price = Column(String(50))  # Display string from the catalog, e.g. "$34.99"
    prime_eligible = Column(Boolean, default=False)
    category = Column(String(20), nullable=False, default="general")
    brand = Column(String(200))
    amazon_url_with_tag = Column(String(500))
    search_keywords = Column(JSON, default=list)
    is_active = Column(Boolean, default=True)
    is_suggested = Column(Boolean, default=False)
    last_fetched_at = Column(DateTime)
    fetch_fail_count = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_products_category", "category"),
    )


class ProductCollection(Base):
    """Curated, ranked product list."""

    __tablename__ = "product_collections"

    id = Column(String(36), primary_key=True)
    title = Column(String(300), nullable=False)
    slug = Column(String(300), nullable=False, unique=True)
    description = Column(Text, default="")
    scope_type = Column(String(20), nullable=False, default="featured")  # monster, movie, era, category, featured
    monster_id = Column(String(36), ForeignKey("monsters.id", ondelete="SET NULL"))
    work_id = Column(String(36), ForeignKey("works.id", ondelete="SET NULL"))
    scope_value = Column(String(100))
    is_active = Column(Boolean, default=True)
    is_featured = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ProductCollectionItem(Base):
    """A product's rank and reason line within a collection."""

    __tablename__ = "product_collection_items"

    id = Column(String(36), primary_key=True)
    collection_id = Column(String(36), ForeignKey("product_collections.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    rank = Column(Integer, nullable=False, default=0)
    reason_line = Column(Text, default="")
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_collection_items_collection", "collection_id", "rank"),
    )


class Post(Base):
    """Blog article, guide, explainer or fan story."""

    __tablename__ = "posts"

    id = Column(String(36), primary_key=True)
    title = Column(String(300), nullable=False)
    slug = Column(String(300), nullable=False, unique=True)
    post_type = Column(String(20), nullable=False)  # article, story, guide, explainer
    status = Column(String(20), nullable=False, default="draft")  # draft, published, archived
    story_perspective = Column(String(30))  # human, godzilla, other_monster, battle_royale
    excerpt = Column(Text, default="")
    mdx_path = Column(String(500))
    tags = Column(JSON, default=list)
    categories = Column(JSON, default=list)
    meta_title = Column(String(300))
    meta_description = Column(Text)
    featured_image_url = Column(String(500))
    published_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_posts_status_published", "status", published_at.desc()),
    )


class SystemMetadata(Base):
    """System metadata for tracking job runs and other info."""

    __tablename__ = "system_metadata"

    key = Column(String(100), primary_key=True)
    value = Column(Text)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
