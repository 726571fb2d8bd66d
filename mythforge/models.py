from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Set

from .exceptions import StoryletConfigError

PACINGS = ("slow", "medium", "fast")
MOODS = ("tragic", "comedic", "epic", "mysterious", "romantic")
RELATIONSHIP_TYPES = ("friend", "enemy", "lover", "rival", "mentor", "family")


@dataclass
class Character:
    id: str
    name: str
    location: str = "unknown"
    health: int = 100
    motivation: str = ""
    relationships: List[str] = field(default_factory=list)  # relationship ids
    inventory: List[str] = field(default_factory=list)  # item ids
    flags: Set[str] = field(default_factory=set)


@dataclass
class Location:
    id: str
    name: str
    description: str = ""
    characters: List[str] = field(default_factory=list)
    items: List[str] = field(default_factory=list)
    connections: List[str] = field(default_factory=list)  # neighbouring location ids
    flags: Set[str] = field(default_factory=set)


@dataclass
class Item:
    id: str
    name: str
    description: str = ""
    location: Optional[str] = None
    owner: Optional[str] = None
    flags: Set[str] = field(default_factory=set)


@dataclass
class Relationship:
    id: str
    character_a: str
    character_b: str
    type: str = "friend"  # friend, enemy, lover, rival, mentor, family
    strength: float = 0.0  # -1 (hostile) to 1 (devoted)
    history: List[str] = field(default_factory=list)


@dataclass
class StoryletContent:
    description: str = ""
    actions: List[str] = field(default_factory=list)
    consequences: List[str] = field(default_factory=list)


@dataclass
class Storylet:
    id: str
    name: str
    trigger: str
    content: StoryletContent = field(default_factory=StoryletContent)
    weight: float = 1.0
    cooldown: Optional[float] = None  # seconds
    tags: List[str] = field(default_factory=list)
    last_used: Optional[float] = None  # epoch milliseconds
    prerequisites: List[str] = field(default_factory=list)
    excludes: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.tags = [t.lower() for t in self.tags]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Storylet":
        """Build a Storylet from a plain mapping (JSON payloads, exports)."""
        data = dict(data)
        try:
            weight = float(data.get("weight", 1.0))
            cooldown = data.get("cooldown")
            cooldown = float(cooldown) if cooldown is not None else None
        except (TypeError, ValueError):
            raise StoryletConfigError(f"storylet {data.get('id')!r} has a non-numeric weight or cooldown")
        content = data.pop("content", None) or {}
        if isinstance(content, str):
            content = {"description": content}
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            trigger=data.get("trigger", ""),
            content=StoryletContent(
                description=content.get("description", ""),
                actions=list(content.get("actions", [])),
                consequences=list(content.get("consequences", [])),
            ),
            weight=weight,
            cooldown=cooldown,
            tags=list(data.get("tags", [])),
            last_used=data.get("last_used"),
            prerequisites=list(data.get("prerequisites") or []),
            excludes=list(data.get("excludes") or []),
        )


@dataclass
class WorldState:
    characters: Dict[str, Character] = field(default_factory=dict)
    locations: Dict[str, Location] = field(default_factory=dict)
    items: Dict[str, Item] = field(default_factory=dict)
    relationships: Dict[str, Relationship] = field(default_factory=dict)
    global_flags: Set[str] = field(default_factory=set)
    timeline_position: int = 0
    tension: float = 0.2  # 0-1 scale
    mood: str = "mysterious"  # tragic, comedic, epic, mysterious, romantic


@dataclass
class NarrativeContext:
    recent_storylets: List[str] = field(default_factory=list)
    current_scene: str = ""
    active_characters: List[str] = field(default_factory=list)
    narrative_goals: List[str] = field(default_factory=list)
    pacing: str = "medium"  # slow, medium, fast
    tension: float = 0.2  # working copy, may drift from WorldState.tension
    last_conflict: Optional[str] = None

    def remember(self, storylet_id: str, limit: int = 5) -> None:
        """Push a storylet onto the recency list, keeping only the newest `limit` ids."""
        self.recent_storylets.append(storylet_id)
        if limit >= 0 and len(self.recent_storylets) > limit:
            del self.recent_storylets[: len(self.recent_storylets) - limit]
