"""Fan Power Index cache maintenance.

Monster.fan_power_index is a cached copy of the Score Engine output. The
store already serves recomputed values, but the column itself is only fixed
here: the audit reports drift, the recompute job rewrites drifted rows.
Both are idempotent.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gojipedia.db import schemas
from gojipedia.db.models import Monster, SystemMetadata
from gojipedia.services.fan_power import IncompleteScoresError, breakdown_for_monster

logger = logging.getLogger(__name__)

LAST_RUN_KEY = "fpi_last_recompute"


@dataclass
class FpiDrift:
    """A monster whose cached FPI disagrees with the Score Engine."""

    monster_id: str
    slug: str
    cached: int
    computed: int | None  # None when sub-scores are missing


@dataclass
class FpiAuditResult:
    checked: int = 0
    drifted: list[FpiDrift] = field(default_factory=list)
    incomplete: list[FpiDrift] = field(default_factory=list)


def audit_fan_power(monsters: Iterable) -> FpiAuditResult:
    """Compare cached and computed FPI for ORM rows or schema records."""
    result = FpiAuditResult()
    for monster in monsters:
        result.checked += 1
        cached = monster.fan_power_index or 0
        try:
            computed = breakdown_for_monster(monster).total
        except IncompleteScoresError:
            result.incomplete.append(FpiDrift(monster.id, monster.slug, cached, None))
            continue
        if computed != cached:
            result.drifted.append(FpiDrift(monster.id, monster.slug, cached, computed))
    return result


async def recompute_fan_power_indexes(session: AsyncSession) -> FpiAuditResult:
    """Rewrite every drifted Monster.fan_power_index and record the run.

    Runs in one transaction; a failure leaves every row untouched.
    """
    rows = (await session.execute(select(Monster))).scalars().all()
    result = audit_fan_power(rows)

    by_id = {row.id: row for row in rows}
    for drift in result.drifted:
        by_id[drift.monster_id].fan_power_index = drift.computed
        logger.info(f"FPI for {drift.slug}: {drift.cached} -> {drift.computed}")

    for gap in result.incomplete:
        logger.warning(f"Cannot compute FPI for {gap.slug}: missing sub-scores")

    now = datetime.now(timezone.utc)
    summary = json.dumps({
        "ran_at": now.isoformat(),
        "checked": result.checked,
        "updated": len(result.drifted),
        "incomplete": len(result.incomplete),
    })
    metadata = (
        await session.execute(select(SystemMetadata).where(SystemMetadata.key == LAST_RUN_KEY))
    ).scalar_one_or_none()
    if metadata:
        metadata.value = summary
    else:
        session.add(SystemMetadata(key=LAST_RUN_KEY, value=summary))

    await session.commit()
    logger.info(
        f"FPI recompute complete: {result.checked} checked, {len(result.drifted)} updated, "
        f"{len(result.incomplete)} incomplete"
    )
    return result


def to_audit_response(result: FpiAuditResult) -> schemas.FpiAuditResponse:
    return schemas.FpiAuditResponse(
        checked=result.checked,
        drifted=[schemas.FpiDriftItem(**vars(d)) for d in result.drifted],
        incomplete=[schemas.FpiDriftItem(**vars(d)) for d in result.incomplete],
    )
