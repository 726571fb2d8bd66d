from __future__ import annotations

import logging
import random
import time
from typing import Callable, Dict, Iterable, List, Optional

from ..exceptions import StoryletConfigError
from ..models import NarrativeContext, Storylet, WorldState
from .eligibility import ineligibility_reason
from .weighting import adjusted_weight, select_weighted

logger = logging.getLogger(__name__)


def wall_clock_ms() -> float:
    return time.time() * 1000


class StoryletCatalog:
    """In-memory storylet store with per-storylet usage history.

    One catalog belongs to one generation session; it does no locking.

    Args:
        storylets: Initial storylets to register
        clock: Callable returning the current time in epoch milliseconds
        rng: Random source for weighted draws (seed it for reproducible runs)
        history_limit: Keep at most this many usage timestamps per storylet
            (None keeps the full history)
    """

    def __init__(
        self,
        storylets: Iterable[Storylet] = (),
        clock: Optional[Callable[[], float]] = None,
        rng: Optional[random.Random] = None,
        history_limit: Optional[int] = None,
    ):
        self._storylets: Dict[str, Storylet] = {}
        self._usage: Dict[str, List[float]] = {}
        self.clock = clock or wall_clock_ms
        self.rng = rng or random.Random()
        self.history_limit = history_limit
        self.add_many(storylets)

    def __len__(self) -> int:
        return len(self._storylets)

    def __contains__(self, storylet_id: object) -> bool:
        return storylet_id in self._storylets

    def add(self, storylet: Storylet) -> None:
        """Register a storylet, replacing any existing one with the same id.

        Replacing keeps the id's usage history, and keeps the previous
        last_used unless the new record brings its own.

        Raises:
            StoryletConfigError: If the storylet has no id
        """
        storylet_id = getattr(storylet, "id", None)
        if not isinstance(storylet_id, str) or not storylet_id.strip():
            raise StoryletConfigError(f"storylet {getattr(storylet, 'name', '?')!r} has no id")

        previous = self._storylets.get(storylet_id)
        if previous is None:
            self._usage[storylet_id] = []
        elif storylet.last_used is None:
            storylet.last_used = previous.last_used
            logger.debug(f"Replaced storylet {storylet_id}, keeping its usage history")

        self._storylets[storylet_id] = storylet

    def add_many(self, storylets: Iterable[Storylet]) -> None:
        for storylet in storylets:
            self.add(storylet)

    def remove(self, storylet_id: str) -> None:
        self._storylets.pop(storylet_id, None)
        self._usage.pop(storylet_id, None)

    def get_all(self) -> List[Storylet]:
        return list(self._storylets.values())

    def get_by_id(self, storylet_id: str) -> Optional[Storylet]:
        return self._storylets.get(storylet_id)

    def get_by_tag(self, tag: str) -> List[Storylet]:
        tag = tag.lower()
        return [s for s in self._storylets.values() if tag in s.tags]

    def usage_history(self, storylet_id: str) -> List[float]:
        return list(self._usage.get(storylet_id, []))

    def mark_used(self, storylet_id: str) -> None:
        storylet = self._storylets.get(storylet_id)
        if storylet is None:
            logger.debug(f"mark_used ignored for unknown storylet {storylet_id}")
            return

        now = self.clock()
        storylet.last_used = now
        history = self._usage.setdefault(storylet_id, [])
        history.append(now)
        if self.history_limit is not None and len(history) > self.history_limit:
            del history[: len(history) - self.history_limit]

    def evaluate_available(self, world: WorldState, context: NarrativeContext) -> List[Storylet]:
        """Return the storylets that may fire now, in catalog order."""
        now = self.clock()
        available = []
        for storylet in self._storylets.values():
            reason = ineligibility_reason(storylet, world, context, now)
            if reason is None:
                available.append(storylet)
            else:
                logger.debug(f"Storylet {storylet.id} ineligible: {reason}")
        return available

    def adjusted_weight(self, storylet: Storylet, context: NarrativeContext) -> float:
        return adjusted_weight(storylet, context, self._usage.get(storylet.id, ()), self.clock())

    def select_next(self, available: List[Storylet], context: NarrativeContext) -> Optional[Storylet]:
        """Pick one storylet from `available` by adjusted weight; None if there are none."""
        now = self.clock()
        chosen = select_weighted(
            available,
            lambda s: adjusted_weight(s, context, self._usage.get(s.id, ()), now),
            self.rng,
        )
        if chosen is not None:
            logger.debug(f"Selected storylet {chosen.id} from {len(available)} candidates")
        return chosen
