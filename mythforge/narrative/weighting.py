"""Storylet scoring and weighted-random selection."""

from __future__ import annotations

import bisect
import logging
import random
from itertools import accumulate
from typing import Callable, List, Optional, Sequence, Tuple

from ..models import NarrativeContext, Storylet

logger = logging.getLogger(__name__)

PACING_MULTIPLIER = 1.5
CLIMAX_MULTIPLIER = 2.0
BUILDUP_MULTIPLIER = 1.3
GOAL_MULTIPLIER = 1.4

HIGH_TENSION = 0.7
LOW_TENSION = 0.3

RECENCY_WINDOW_MS = 3_600_000  # one hour
RECENCY_PENALTY_STEP = 0.2
RECENCY_FLOOR = 0.1


def recent_usage_count(usage_history: Sequence[float], now: float, window_ms: float = RECENCY_WINDOW_MS) -> int:
    return sum(1 for used_at in usage_history if now - used_at < window_ms)


def recency_penalty(count: int) -> float:
    return max(RECENCY_FLOOR, 1 - count * RECENCY_PENALTY_STEP)


def adjusted_weight(
    storylet: Storylet,
    context: NarrativeContext,
    usage_history: Sequence[float] = (),
    now: float = 0.0,
) -> float:
    """Score a storylet for the current pacing, tension and goals.

    Multipliers are applied to the base weight in order: pacing, tension,
    goal alignment, then the recency penalty. The result is clamped at zero so
    a negative base weight can never distort a draw.
    """
    weight = float(storylet.weight)
    tags = storylet.tags

    if context.pacing == "fast" and "action" in tags:
        weight *= PACING_MULTIPLIER
    elif context.pacing == "slow" and "contemplative" in tags:
        weight *= PACING_MULTIPLIER

    if context.tension > HIGH_TENSION and "climax" in tags:
        weight *= CLIMAX_MULTIPLIER
    elif context.tension < LOW_TENSION and "buildup" in tags:
        weight *= BUILDUP_MULTIPLIER

    goals = [goal.lower() for goal in context.narrative_goals]
    if any(goal in tag for goal in goals for tag in tags):
        weight *= GOAL_MULTIPLIER

    weight *= recency_penalty(recent_usage_count(usage_history, now))

    return max(0.0, weight)


def rank_candidates(
    candidates: Sequence[Storylet], weigh: Callable[[Storylet], float]
) -> List[Tuple[Storylet, float]]:
    """Pair candidates with their weights, heaviest first.

    The sort is stable, so equal weights keep the order the candidates were
    given in (catalog insertion order).
    """
    weighted = [(storylet, weigh(storylet)) for storylet in candidates]
    weighted.sort(key=lambda pair: pair[1], reverse=True)
    return weighted


def select_weighted(
    candidates: Sequence[Storylet],
    weigh: Callable[[Storylet], float],
    rng: Optional[random.Random] = None,
) -> Optional[Storylet]:
    if not candidates:
        return None

    rng = rng or random
    ranked = rank_candidates(candidates, weigh)
    cumulative = list(accumulate(weight for _, weight in ranked))
    total = cumulative[-1]

    if total <= 0:
        logger.debug("All candidates weigh zero; falling back to the first ranked storylet")
        return ranked[0][0]

    draw = rng.random() * total
    # first prefix sum strictly above the draw, so zero-weight entries never win
    index = bisect.bisect_right(cumulative, draw)
    if index >= len(ranked):
        return ranked[0][0]
    return ranked[index][0]
