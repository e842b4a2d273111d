import asyncio
import json

import pytest

from gojipedia.core.store import EntityStore, StoreProvider
from gojipedia.db import schemas
from gojipedia.services import catalog_service
from gojipedia.services.fpi_audit import audit_fan_power


def make_monster(id, fpi, **scores):
    values = dict(
        durability_score=98, attack_power_score=95, mobility_score=60,
        intelligence_score=85, special_abilities_score=92, era_scaling_factor=1.08,
    )
    values.update(scores)
    return schemas.Monster(
        id=id, name=id.title(), slug=id, alignment="evolves", species_type="kaiju",
        fan_power_index=fpi, **values,
    )


def test_fixture_catalog_has_no_drift(store):
    assert store.fan_power_audit.checked == 7
    assert store.fan_power_audit.drifted == []
    assert store.fan_power_audit.incomplete == []


def test_drifted_cache_is_corrected_on_load():
    store = EntityStore(monsters=[make_monster("godzilla", 50)])

    assert store.monster("godzilla").fan_power_index == 95
    assert store.monster_by_slug("godzilla").fan_power_index == 95

    [drift] = store.fan_power_audit.drifted
    assert (drift.monster_id, drift.cached, drift.computed) == ("godzilla", 50, 95)


def test_incomplete_monster_keeps_cached_value():
    store = EntityStore(monsters=[make_monster("ebirah", 42, mobility_score=None)])

    assert store.monster("ebirah").fan_power_index == 42
    [gap] = store.fan_power_audit.incomplete
    assert gap.computed is None
    assert store.fan_power_audit.drifted == []


def test_audit_is_idempotent():
    monsters = [make_monster("godzilla", 50)]
    first = audit_fan_power(monsters)
    second = audit_fan_power(monsters)
    assert first == second
    # the corrected snapshot audits clean
    assert audit_fan_power(EntityStore(monsters=monsters).monsters).drifted == []


def test_relationships_for_returns_both_directions(store):
    outgoing, incoming = store.relationships_for("m-godzilla")
    assert [r.to_monster_id for r in outgoing] == ["m-kong", "m-minilla"]
    assert [r.from_monster_id for r in incoming] == ["m-mothra", "m-mechagodzilla"]
    assert store.relationships_for("m-nope") == ([], [])


def test_lookups_do_not_filter_inactive(store):
    assert store.monster_by_slug("destoroyah").is_active is False
    assert store.product("pr-gojira-shirt").is_active is False
    assert store.monster("m-ghost") is None


def test_from_json(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({
        "monsters": [{
            "id": "m-rodan", "name": "Rodan", "slug": "rodan", "alignment": "neutral",
            "species_type": "kaiju", "era_tags": None, "first_appearance_date": "1956-12-26",
            "fan_power_index": 0, "durability_score": 70, "attack_power_score": 70,
            "mobility_score": 70, "intelligence_score": 70, "special_abilities_score": 70,
        }],
        "works": [{"id": "w-rodan", "title": "Rodan", "slug": "rodan-1956", "work_type": "movie",
                   "release_date": "1956-12-26", "era_tags": ["Showa"]}],
    }))

    store = EntityStore.from_json(path)

    rodan = store.monster_by_slug("rodan")
    assert rodan.era_tags == []
    assert rodan.first_appearance_date.year == 1956
    assert rodan.fan_power_index == 70
    assert store.work_by_slug("rodan-1956").era_tags == ["Showa"]
    assert store.battles == []


def test_from_json_accepts_fractional_scores_and_utc_timestamps(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({
        "monsters": [{
            "id": "m-anguirus", "name": "Anguirus", "slug": "anguirus", "alignment": "protagonist",
            "species_type": "kaiju", "fan_power_index": 81, "durability_score": 85.5,
            "attack_power_score": 80, "mobility_score": 80, "intelligence_score": 80,
            "special_abilities_score": 80,
        }],
        "posts": [
            {"id": "1", "title": "Aware", "slug": "aware", "post_type": "article", "status": "published",
             "published_at": "2024-01-01T00:00:00Z"},
            {"id": "2", "title": "Naive", "slug": "naive", "post_type": "article", "status": "published",
             "created_at": "2024-02-01T00:00:00"},
        ],
    }))

    store = EntityStore.from_json(path)

    assert store.monster("m-anguirus").durability_score == 85.5
    assert store.fan_power_audit.drifted == []
    assert [p.slug for p in catalog_service.list_posts(store)] == ["naive", "aware"]


def test_provider_caches_within_ttl():
    calls = []

    async def loader():
        calls.append(1)
        return EntityStore()

    async def run():
        provider = StoreProvider(loader, ttl_seconds=60)
        first = await provider.get()
        second = await provider.get()
        return first, second

    first, second = asyncio.run(run())
    assert first is second
    assert len(calls) == 1


def test_provider_invalidate_and_reload():
    calls = []

    async def loader():
        calls.append(1)
        return EntityStore()

    async def run():
        provider = StoreProvider(loader, ttl_seconds=60)
        first = await provider.get()
        provider.invalidate()
        second = await provider.get()
        third = await provider.reload()
        return first, second, third

    first, second, third = asyncio.run(run())
    assert len(calls) == 3
    assert first is not second
    assert second is not third


def test_provider_serves_previous_snapshot_when_reload_fails():
    snapshots = [EntityStore()]

    async def loader():
        if snapshots:
            return snapshots.pop()
        raise ConnectionError("database unavailable")

    async def run():
        provider = StoreProvider(loader, ttl_seconds=0)
        first = await provider.get()
        second = await provider.get()
        return first, second

    first, second = asyncio.run(run())
    assert first is second


def test_provider_first_load_failure_propagates():
    async def loader():
        raise ConnectionError("database unavailable")

    with pytest.raises(ConnectionError):
        asyncio.run(StoreProvider(loader, ttl_seconds=60).get())
