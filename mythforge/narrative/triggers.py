"""Storylet trigger grammar.

Trigger strings are loose English ("when elara is present", "at the harbor",
"when tension is high"). They are not parsed into a rule tree. Instead an
ordered chain of pattern parsers inspects the lowercased text, and the first
parser that recognises it produces a trigger variant with a single predicate.
Later clauses of multi-clause triggers are ignored.

Parsing never fails: text nothing recognises becomes a DefaultTrigger, which is
always satisfied.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, List, Optional, Tuple

from ..models import NarrativeContext, WorldState

PRESENCE_RE = re.compile(r"when (\w+) (?:is )?present")
LOCATION_RE = re.compile(r"(?:at|in) (\w+)")

# band -> inclusive/exclusive test against WorldState.tension
TENSION_BANDS = {
    "high": lambda t: t > 0.7,
    "low": lambda t: t < 0.3,
    "medium": lambda t: 0.3 <= t <= 0.7,
}


class Trigger(ABC):
    """A parsed trigger condition."""

    kind: str = "trigger"

    @abstractmethod
    def is_satisfied(self, world: WorldState, context: NarrativeContext) -> bool:
        pass


@dataclass(frozen=True)
class PresenceTrigger(Trigger):
    character: str
    kind = "presence"

    def is_satisfied(self, world: WorldState, context: NarrativeContext) -> bool:
        return any(self.character in name.lower() for name in context.active_characters)


@dataclass(frozen=True)
class LocationTrigger(Trigger):
    place: str
    kind = "location"

    def is_satisfied(self, world: WorldState, context: NarrativeContext) -> bool:
        return self.place in (context.current_scene or "").lower()


@dataclass(frozen=True)
class TensionTrigger(Trigger):
    bands: Tuple[str, ...]
    kind = "tension"

    def is_satisfied(self, world: WorldState, context: NarrativeContext) -> bool:
        return any(TENSION_BANDS[band](world.tension) for band in self.bands)


@dataclass(frozen=True)
class ConflictTrigger(Trigger):
    kind = "conflict"

    def is_satisfied(self, world: WorldState, context: NarrativeContext) -> bool:
        return any(
            rel.type == "enemy" or rel.strength < -0.5
            for rel in world.relationships.values()
        )


@dataclass(frozen=True)
class DefaultTrigger(Trigger):
    kind = "default"

    def is_satisfied(self, world: WorldState, context: NarrativeContext) -> bool:
        return True


def _parse_presence(text: str) -> Optional[Trigger]:
    if "when" not in text or "present" not in text:
        return None
    m = PRESENCE_RE.search(text)
    return PresenceTrigger(m.group(1)) if m else None


def _parse_location(text: str) -> Optional[Trigger]:
    if "at" not in text and "in" not in text:
        return None
    m = LOCATION_RE.search(text)
    return LocationTrigger(m.group(1)) if m else None


def _parse_tension(text: str) -> Optional[Trigger]:
    if "tension" not in text:
        return None
    bands = tuple(band for band in TENSION_BANDS if band in text)
    return TensionTrigger(bands) if bands else None


def _parse_conflict(text: str) -> Optional[Trigger]:
    if "conflict" in text or "enemy" in text:
        return ConflictTrigger()
    return None


# Priority order matters: the first parser that recognises the text wins.
TRIGGER_PARSERS: List[Callable[[str], Optional[Trigger]]] = [
    _parse_presence,
    _parse_location,
    _parse_tension,
    _parse_conflict,
]


@lru_cache(maxsize=1024)
def parse_trigger(trigger: str) -> Trigger:
    text = (trigger or "").lower()
    for parser in TRIGGER_PARSERS:
        parsed = parser(text)
        if parsed is not None:
            return parsed
    return DefaultTrigger()


def evaluate_trigger(trigger: str, world: WorldState, context: NarrativeContext) -> bool:
    return parse_trigger(trigger).is_satisfied(world, context)
