from __future__ import annotations

from typing import Optional

from ..models import NarrativeContext, Storylet, WorldState
from .triggers import evaluate_trigger


def on_cooldown(storylet: Storylet, now: float) -> bool:
    if not storylet.cooldown or storylet.last_used is None:
        return False
    return now - storylet.last_used < storylet.cooldown * 1000


def prerequisites_met(storylet: Storylet, world: WorldState) -> bool:
    return all(flag in world.global_flags for flag in storylet.prerequisites)


def excluded(storylet: Storylet, world: WorldState) -> bool:
    return any(flag in world.global_flags for flag in storylet.excludes)


def ineligibility_reason(
    storylet: Storylet, world: WorldState, context: NarrativeContext, now: float
) -> Optional[str]:
    """Name the first eligibility check the storylet fails, or None if it may fire.

    Checks run in a fixed order and stop at the first failure: cooldown,
    recency, trigger, prerequisites, exclusions.
    """
    if on_cooldown(storylet, now):
        return "cooldown"
    if storylet.id in context.recent_storylets:
        return "recent"
    if not evaluate_trigger(storylet.trigger, world, context):
        return "trigger"
    if not prerequisites_met(storylet, world):
        return "prerequisites"
    if excluded(storylet, world):
        return "excluded"
    return None


def is_eligible(storylet: Storylet, world: WorldState, context: NarrativeContext, now: float) -> bool:
    return ineligibility_reason(storylet, world, context, now) is None
