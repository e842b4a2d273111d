"""Aggregations and cross-entity joins over the catalog snapshot.

Fight records, related monsters, shop matches, timeline groupings and
site-wide counts. Like the catalog queries, nothing here raises on bad data:
dangling references are logged and skipped.
"""

import logging
from collections import Counter

from gojipedia.core.store import EntityStore
from gojipedia.db import schemas
from gojipedia.services.catalog_service import (
    dated_monsters,
    dated_works,
    get_work_by_slug,
    monster_keywords,
    product_matches_keywords,
    release_year,
    resolve_monster,
)

logger = logging.getLogger(__name__)

# Era used for works carrying no era tag at all
UNTAGGED_ERA = schemas.Era.OTHER.value


def get_monster_fight_record(store: EntityStore, monster_id: str) -> schemas.FightRecord:
    """Win/loss/draw tallies and per-battle opponents for one monster.

    Opponents are every other participant of the same battle, resolved to an
    active monster. The monster itself and unresolvable ids are left out.
    An unknown monster id yields an empty record.
    """
    participations = store.participations_of(monster_id)
    tally = Counter(p.outcome for p in participations)

    entries = []
    for participation in participations:
        battle = store.battle(participation.battle_id)
        if battle is None:
            logger.warning(f"Dangling battle reference {participation.battle_id} for monster {monster_id}")
            continue

        opponents = []
        for other in store.participants_in(battle.id):
            if other.monster_id == monster_id:
                continue
            opponent = resolve_monster(store, other.monster_id, f"battle {battle.slug}")
            if opponent:
                opponents.append(opponent)

        entries.append(schemas.FightEntry(battle=battle, outcome=participation.outcome, opponents=opponents))

    return schemas.FightRecord(
        wins=tally[schemas.Outcome.WIN.value],
        losses=tally[schemas.Outcome.LOSS.value],
        draws=tally[schemas.Outcome.DRAW.value],
        unknown=tally[schemas.Outcome.UNKNOWN.value],
        battles=entries,
    )


def get_related_monster_ids(store: EntityStore, monster_id: str) -> set[str]:
    """Ids linked by an outgoing edge, an incoming edge, or a shared battle.

    A set, so a monster reachable several ways counts once.
    """
    related: set[str] = set()

    outgoing, incoming = store.relationships_for(monster_id)
    related.update(edge.to_monster_id for edge in outgoing)
    related.update(edge.from_monster_id for edge in incoming)

    for participation in store.participations_of(monster_id):
        related.update(p.monster_id for p in store.participants_in(participation.battle_id))

    related.discard(monster_id)
    return related


def get_related_monsters(store: EntityStore, monster_id: str, limit: int = 6) -> list[schemas.Monster]:
    """Active related monsters in natural catalog order, truncated to `limit`."""
    related_ids = get_related_monster_ids(store, monster_id)
    related = [m for m in store.monsters if m.id in related_ids and m.is_active]
    return related[:max(limit, 0)]


def get_work_with_monsters(store: EntityStore, slug: str) -> schemas.WorkWithMonsters | None:
    """A work and every active monster appearing in it, in appearance order."""
    work = get_work_by_slug(store, slug)
    if work is None:
        return None

    monsters = []
    for appearance in store.appearances_in(work.id):
        monster = resolve_monster(store, appearance.monster_id, f"work {work.slug}")
        if monster:
            monsters.append(monster)

    return schemas.WorkWithMonsters(work=work, monsters=monsters)


def get_products_by_monster(store: EntityStore, monster_id: str, limit: int = 8) -> list[schemas.Product]:
    """Active products whose keywords overlap the monster's name or aliases.

    Any substring overlap counts as a match. An unknown monster yields [].
    """
    monster = store.monster(monster_id)
    if monster is None:
        return []

    keywords = monster_keywords(monster)
    matches = [p for p in store.products if p.is_active and product_matches_keywords(p, keywords)]
    return matches[:max(limit, 0)]


def group_works_by_era(works: list[schemas.Work]) -> list[schemas.EraGroup]:
    """Group works by their first era tag, in first-seen order."""
    groups: dict[str, list[schemas.Work]] = {}
    for work in works:
        era = work.era_tags[0] if work.era_tags else UNTAGGED_ERA
        groups.setdefault(era, []).append(work)
    return [schemas.EraGroup(era=era, works=items) for era, items in groups.items()]


def group_works_by_decade(works: list[schemas.Work]) -> list[schemas.DecadeGroup]:
    """Group dated works by decade (1954 -> 1950), decades ascending.

    Undated works are filtered out before grouping.
    """
    groups: dict[int, list[schemas.Work]] = {}
    for work in works:
        year = release_year(work)
        if year is None:
            continue
        groups.setdefault(year // 10 * 10, []).append(work)
    return [schemas.DecadeGroup(decade=decade, works=groups[decade]) for decade in sorted(groups)]


def get_timeline(store: EntityStore) -> schemas.TimelineResponse:
    """Dated works and monsters oldest first, plus the works grouped by decade."""
    works = dated_works(store)
    return schemas.TimelineResponse(
        works=works,
        monsters=dated_monsters(store),
        decades=group_works_by_decade(works),
    )


def get_site_stats(store: EntityStore) -> schemas.SiteStats:
    return schemas.SiteStats(
        monsters=sum(1 for m in store.monsters if m.is_active),
        works=sum(1 for w in store.works if w.is_active),
        battles=len(store.battles),
        products=sum(1 for p in store.products if p.is_active),
        posts=sum(1 for p in store.posts if p.status == schemas.PostStatus.PUBLISHED.value),
    )
