"""Fan Power Index (FPI) scoring.

These helpers are intentionally dependency-free so they can be unit-tested
without importing the database layer.

The FPI is a 0-100 composite of five weighted sub-scores, scaled by a
per-monster era factor to account for power creep between eras:

    base   = durability*0.20 + attack_power*0.25 + mobility*0.15
             + intelligence*0.15 + special_abilities*0.25
    scaled = round(base * era_scaling_factor)     # half away from zero
    total  = clamp(scaled, 0, 100)                # clamp after rounding

Monster.fan_power_index is a cache of `total`. Changing any weight below
invalidates every cached value; run the FPI recompute job afterwards.
"""

import math
from typing import NamedTuple

FPI_WEIGHTS = {
    "durability": 0.20,
    "attack_power": 0.25,
    "mobility": 0.15,
    "intelligence": 0.15,
    "special_abilities": 0.25,
}

assert abs(sum(FPI_WEIGHTS.values()) - 1.0) < 1e-9, "FPI weights must sum to 1.0"

FPI_MIN = 0
FPI_MAX = 100

# (lower bound, label), checked top-down
FPI_TIERS = [
    (90, "Legendary"),
    (75, "Elite"),
    (60, "Formidable"),
    (40, "Moderate"),
    (0, "Minor"),
]

SUB_SCORE_FIELDS = {
    "durability": "durability_score",
    "attack_power": "attack_power_score",
    "mobility": "mobility_score",
    "intelligence": "intelligence_score",
    "special_abilities": "special_abilities_score",
}


class IncompleteScoresError(ValueError):
    """A monster record is missing one or more FPI sub-scores."""

    def __init__(self, monster_id: str, missing: list[str]):
        self.monster_id = monster_id
        self.missing = missing
        super().__init__(f"Monster {monster_id} is missing sub-scores: {', '.join(missing)}")


class SubScores(NamedTuple):
    durability: float
    attack_power: float
    mobility: float
    intelligence: float
    special_abilities: float


class FanPowerBreakdown(NamedTuple):
    total: int
    durability: float
    attack_power: float
    mobility: float
    intelligence: float
    special_abilities: float
    era_scaling: float


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3).

    Python's built-in round() uses banker's rounding (2.5 -> 2), which would
    make 0.5 boundaries disagree with the published scores.
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def base_score(sub_scores: SubScores) -> float:
    """Weighted sum of the five sub-scores, before era scaling."""
    return sum(getattr(sub_scores, name) * weight for name, weight in FPI_WEIGHTS.items())


def compute_fan_power_index(sub_scores: SubScores, era_scaling_factor: float) -> FanPowerBreakdown:
    """Compute the FPI breakdown.

    Pure function: no validation, never raises. Sub-scores outside 0-100 are
    accepted as-is; only the total is clamped.
    """
    scaled = round_half_away_from_zero(base_score(sub_scores) * era_scaling_factor)
    total = min(FPI_MAX, max(FPI_MIN, scaled))

    return FanPowerBreakdown(
        total=total,
        durability=sub_scores.durability,
        attack_power=sub_scores.attack_power,
        mobility=sub_scores.mobility,
        intelligence=sub_scores.intelligence,
        special_abilities=sub_scores.special_abilities,
        era_scaling=era_scaling_factor,
    )


def sub_scores_of(monster) -> SubScores:
    """Read the five sub-scores off a monster record (ORM row or schema).

    Raises:
        IncompleteScoresError: if any sub-score is missing.
    """
    values = {name: getattr(monster, attr, None) for name, attr in SUB_SCORE_FIELDS.items()}
    missing = [attr for name, attr in SUB_SCORE_FIELDS.items() if values[name] is None]
    if missing:
        raise IncompleteScoresError(monster.id, missing)
    return SubScores(**values)


def breakdown_for_monster(monster) -> FanPowerBreakdown:
    """FPI breakdown for a monster record. Raises IncompleteScoresError."""
    scaling = monster.era_scaling_factor
    if scaling is None:
        raise IncompleteScoresError(monster.id, ["era_scaling_factor"])
    return compute_fan_power_index(sub_scores_of(monster), scaling)


def fan_power_tier(total: int) -> str:
    """Display tier label for an FPI total."""
    for lower_bound, label in FPI_TIERS:
        if total >= lower_bound:
            return label
    return FPI_TIERS[-1][1]
