import os

# Settings are read once at import time; configure before importing the app
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("DATA_SOURCE", "seed")

from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient

from gojipedia.core.store import EntityStore
from gojipedia.db import schemas


def monster(id, name, fpi, scores, scaling=1.0, **fields):
    durability, attack, mobility, intelligence, special = scores
    return schemas.Monster(
        id=id,
        name=name,
        slug=fields.pop("slug", name.lower().replace(" ", "-")),
        fan_power_index=fpi,
        durability_score=durability,
        attack_power_score=attack,
        mobility_score=mobility,
        intelligence_score=intelligence,
        special_abilities_score=special,
        era_scaling_factor=scaling,
        **fields,
    )


def build_catalog() -> EntityStore:
    """A small, internally consistent catalog with a few deliberate data gaps.

    Gaps: an appearance and a battle participant pointing at "m-ghost" (no such
    monster), an inactive monster (Destoroyah) in a battle, an inactive and a
    missing product in a collection.
    """
    monsters = [
        monster(
            "m-godzilla", "Godzilla", 95, (98, 95, 60, 85, 92), 1.08,
            aliases=["Gojira", "King of the Monsters"],
            era_tags=["Showa", "Heisei", "MonsterVerse"],
            alignment="evolves", species_type="kaiju",
            first_appearance_date=date(1954, 11, 3), first_appearance_work_id="w-godzilla-1954",
            is_featured=True,
        ),
        monster(
            "m-kong", "Kong", 78, (90, 88, 80, 75, 60),
            aliases=["King Kong"], era_tags=["Showa", "MonsterVerse"],
            alignment="protagonist", species_type="titan",
            first_appearance_date=date(1933, 3, 2), is_featured=True,
        ),
        monster(
            "m-mothra", "Mothra", 76, (60, 55, 85, 90, 95),
            aliases=["Queen of the Monsters"], era_tags=["Showa", "Heisei"],
            alignment="protagonist", species_type="kaiju",
            first_appearance_date=date(1961, 7, 30),
        ),
        monster(
            "m-ghidorah", "King Ghidorah", 100, (95, 97, 85, 70, 96), 1.1,
            aliases=["Monster Zero", "Ghidorah"], era_tags=["Showa", "Heisei", "MonsterVerse"],
            alignment="antagonist", species_type="alien",
            first_appearance_date=date(1964, 12, 20), is_featured=True,
        ),
        monster(
            "m-mechagodzilla", "Mechagodzilla", 88, (92, 94, 70, 60, 88), 1.05,
            aliases=["Kiryu"], era_tags=["Showa", "Millennium"],
            alignment="antagonist", species_type="mech",
            first_appearance_date=date(1974, 3, 21),
        ),
        monster(
            "m-destoroyah", "Destoroyah", 88, (90, 92, 70, 65, 90), 1.05,
            era_tags=["Heisei"], alignment="antagonist", species_type="kaiju",
            first_appearance_date=date(1995, 12, 9), is_active=False,
        ),
        monster(
            "m-minilla", "Minilla", 21, (20, 10, 30, 40, 15),
            aliases=["Minya"], era_tags=["Showa"],
            alignment="protagonist", species_type="kaiju",
        ),
    ]

    works = [
        schemas.Work(id="w-godzilla-1954", title="Godzilla", slug="godzilla-1954", work_type="movie",
                     release_date=date(1954, 11, 3), era_tags=["Showa"], is_featured=True),
        schemas.Work(id="w-ghidorah-1964", title="Ghidorah, the Three-Headed Monster",
                     slug="ghidorah-the-three-headed-monster", work_type="movie",
                     release_date=date(1964, 12, 20), era_tags=["Showa"]),
        schemas.Work(id="w-kotm", title="Godzilla: King of the Monsters", slug="godzilla-king-of-the-monsters",
                     work_type="movie", release_date=date(2019, 5, 31), era_tags=["MonsterVerse"],
                     is_featured=True),
        schemas.Work(id="w-gvk", title="Godzilla vs. Kong", slug="godzilla-vs-kong", work_type="movie",
                     release_date=date(2021, 3, 26), era_tags=["MonsterVerse"], is_featured=True),
        schemas.Work(id="w-singular-point", title="Godzilla Singular Point", slug="godzilla-singular-point",
                     work_type="series", release_date=date(2021, 4, 1), era_tags=["Reiwa"]),
        schemas.Work(id="w-untitled", title="Untitled Monster Game", slug="untitled-monster-game",
                     work_type="game"),
        schemas.Work(id="w-destoroyah", title="Godzilla vs. Destoroyah", slug="godzilla-vs-destoroyah",
                     work_type="movie", release_date=date(1995, 12, 9), era_tags=["Heisei"], is_active=False),
    ]

    appearances = [
        schemas.Appearance(id="a1", monster_id="m-godzilla", work_id="w-godzilla-1954", role_tag="protagonist"),
        schemas.Appearance(id="a2", monster_id="m-godzilla", work_id="w-kotm", role_tag="protagonist"),
        schemas.Appearance(id="a3", monster_id="m-ghidorah", work_id="w-kotm", role_tag="antagonist"),
        schemas.Appearance(id="a4", monster_id="m-mothra", work_id="w-kotm", role_tag="featured"),
        schemas.Appearance(id="a5", monster_id="m-godzilla", work_id="w-gvk", role_tag="protagonist"),
        schemas.Appearance(id="a6", monster_id="m-kong", work_id="w-gvk", role_tag="protagonist"),
        schemas.Appearance(id="a7", monster_id="m-mechagodzilla", work_id="w-gvk", role_tag="antagonist"),
        schemas.Appearance(id="a8", monster_id="m-ghost", work_id="w-gvk", role_tag="cameo"),
        schemas.Appearance(id="a9", monster_id="m-ghidorah", work_id="w-ghidorah-1964", role_tag="antagonist"),
        schemas.Appearance(id="a10", monster_id="m-godzilla", work_id="w-ghidorah-1964", role_tag="protagonist"),
        schemas.Appearance(id="a11", monster_id="m-mothra", work_id="w-ghidorah-1964", role_tag="protagonist"),
    ]

    battles = [
        schemas.Battle(id="b-boston", title="Battle of Boston", slug="battle-of-boston", work_id="w-kotm"),
        schemas.Battle(id="b-tasman", title="Battle of the Tasman Sea", slug="battle-of-the-tasman-sea",
                       work_id="w-gvk"),
        schemas.Battle(id="b-hong-kong", title="Battle of Hong Kong", slug="battle-of-hong-kong",
                       work_id="w-gvk"),
        schemas.Battle(id="b-mount-fuji", title="Battle at Mount Fuji", slug="battle-at-mount-fuji",
                       work_id="w-ghidorah-1964"),
    ]

    participants = [
        schemas.BattleParticipant(id="p1", battle_id="b-boston", monster_id="m-godzilla", outcome="win"),
        schemas.BattleParticipant(id="p2", battle_id="b-boston", monster_id="m-ghidorah", outcome="loss"),
        schemas.BattleParticipant(id="p3", battle_id="b-tasman", monster_id="m-godzilla", outcome="draw"),
        schemas.BattleParticipant(id="p4", battle_id="b-tasman", monster_id="m-kong", outcome="draw"),
        schemas.BattleParticipant(id="p5", battle_id="b-hong-kong", monster_id="m-godzilla", outcome="loss"),
        schemas.BattleParticipant(id="p6", battle_id="b-hong-kong", monster_id="m-mechagodzilla", outcome="win"),
        schemas.BattleParticipant(id="p7", battle_id="b-hong-kong", monster_id="m-ghost", outcome="unknown"),
        schemas.BattleParticipant(id="p8", battle_id="b-hong-kong", monster_id="m-destoroyah", outcome="unknown"),
        schemas.BattleParticipant(id="p9", battle_id="b-mount-fuji", monster_id="m-mothra", outcome="loss"),
        schemas.BattleParticipant(id="p10", battle_id="b-mount-fuji", monster_id="m-ghidorah", outcome="win"),
    ]

    relationships = [
        schemas.Relationship(id="r1", from_monster_id="m-godzilla", to_monster_id="m-kong", relation_type="rival"),
        schemas.Relationship(id="r2", from_monster_id="m-mothra", to_monster_id="m-godzilla", relation_type="ally"),
        schemas.Relationship(id="r3", from_monster_id="m-godzilla", to_monster_id="m-minilla", relation_type="other"),
        schemas.Relationship(id="r4", from_monster_id="m-mechagodzilla", to_monster_id="m-godzilla",
                             relation_type="variant"),
        schemas.Relationship(id="r5", from_monster_id="m-ghidorah", to_monster_id="m-ghost", relation_type="enemy"),
    ]

    products = [
        schemas.Product(id="pr-figure", asin="B000000001", title="S.H.MonsterArts Godzilla (2019)",
                        category="figures", search_keywords=["godzilla figure", "shmonsterarts"]),
        schemas.Product(id="pr-gvk-bluray", asin="B000000002", title="Godzilla vs. Kong Blu-ray",
                        category="bluray", search_keywords=["godzilla vs kong", "blu-ray"],
                        amazon_url_with_tag="https://www.amazon.com/dp/B000000002?tag=custom-20"),
        schemas.Product(id="pr-mothra-poster", asin="B000000003", title="Mothra Poster",
                        category="posters", search_keywords=["mothra", "poster"]),
        schemas.Product(id="pr-kiryu-kit", asin="B000000004", title="Kiryu Model Kit",
                        category="model_kits", search_keywords=["kiryu model kit"]),
        schemas.Product(id="pr-gojira-shirt", asin="B000000005", title="Gojira T-Shirt",
                        category="shirts", search_keywords=["gojira shirt"], is_active=False, is_suggested=True),
        schemas.Product(id="pr-art-book", asin="B000000006", title="Kaiju Art Book",
                        category="books", search_keywords=["kaiju", "art book"]),
        schemas.Product(id="pr-mecha", asin="B000000007", title="Mecha Figure",
                        category="figures", search_keywords=["mecha"]),
    ]

    collections = [
        schemas.ProductCollection(id="c-figures", title="Best Godzilla Figures", slug="best-godzilla-figures",
                                  scope_type="monster", monster_id="m-godzilla", is_featured=True),
        schemas.ProductCollection(id="c-old", title="Old Picks", slug="old-picks", is_active=False,
                                  is_featured=True),
    ]

    collection_items = [
        schemas.ProductCollectionItem(id="ci1", collection_id="c-figures", product_id="pr-mecha", rank=3),
        schemas.ProductCollectionItem(id="ci2", collection_id="c-figures", product_id="pr-figure", rank=1,
                                      reason_line="The definitive modern figure"),
        schemas.ProductCollectionItem(id="ci3", collection_id="c-figures", product_id="pr-gojira-shirt", rank=2),
        schemas.ProductCollectionItem(id="ci4", collection_id="c-figures", product_id="pr-missing", rank=4),
    ]

    posts = [
        schemas.Post(id="post-fpi", title="Understanding the Fan Power Index", slug="understanding-fpi",
                     post_type="explainer", status="published", published_at=datetime(2024, 5, 1)),
        schemas.Post(id="post-tokyo", title="Tokyo, 1954", slug="tokyo-1954", post_type="story",
                     status="published", story_perspective="human", published_at=datetime(2024, 6, 1)),
        schemas.Post(id="post-king", title="The King Wakes", slug="the-king-wakes", post_type="story",
                     status="published", story_perspective="godzilla", published_at=datetime(2024, 3, 1)),
        schemas.Post(id="post-draft", title="Draft Ranking", slug="draft-ranking", post_type="article",
                     status="draft", created_at=datetime(2024, 8, 1)),
        schemas.Post(id="post-guide", title="Where to Start", slug="where-to-start", post_type="guide",
                     status="published", created_at=datetime(2024, 7, 1)),
    ]

    return EntityStore(
        monsters=monsters,
        works=works,
        appearances=appearances,
        battles=battles,
        battle_participants=participants,
        relationships=relationships,
        products=products,
        collections=collections,
        collection_items=collection_items,
        posts=posts,
    )


@pytest.fixture
def store() -> EntityStore:
    return build_catalog()


@pytest.fixture
def client(store):
    from gojipedia.core.store import get_store
    from gojipedia.main import app

    async def _store_override():
        return store

    app.dependency_overrides[get_store] = _store_override
    yield TestClient(app)
    app.dependency_overrides.clear()
