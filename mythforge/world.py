from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List

from .models import (
    MOODS,
    RELATIONSHIP_TYPES,
    Character,
    Item,
    Location,
    NarrativeContext,
    Relationship,
    Storylet,
    StoryletContent,
    WorldState,
)
from .presets import get_preset
from .seed import SeedConfig

logger = logging.getLogger(__name__)

INITIAL_TENSION = 0.2
DEFAULT_GOALS = ["character-development", "world-building", "plot-advancement"]

# Starting strength for relationships declared in a seed, by type
RELATIONSHIP_STRENGTH = {
    "enemy": -0.8,
    "rival": -0.3,
    "friend": 0.5,
    "lover": 0.8,
    "mentor": 0.6,
    "family": 0.7,
}


def build_world_state(seed: SeedConfig) -> WorldState:
    characters = {
        cid: Character(
            id=cid,
            name=c.name,
            motivation=c.description or "Unknown motivation",
        )
        for cid, c in seed.characters.items()
    }
    locations = {
        eid: Location(id=eid, name=e.name, description=e.description or "")
        for eid, e in seed.environments.items()
    }
    items = {
        iid: Item(id=iid, name=i.name, description=i.description or "")
        for iid, i in seed.items.items()
    }

    relationships: Dict[str, Relationship] = {}
    for cid, c in seed.characters.items():
        for rel in c.relationships:
            if rel.type not in RELATIONSHIP_TYPES:
                logger.warning(f"Skipping relationship {cid} -> {rel.entity}: unknown type '{rel.type}'")
                continue
            if rel.entity not in characters:
                logger.warning(f"Skipping relationship {cid} -> {rel.entity}: no such character")
                continue
            rel_id = f"{cid}-{rel.entity}"
            relationships[rel_id] = Relationship(
                id=rel_id,
                character_a=cid,
                character_b=rel.entity,
                type=rel.type,
                strength=RELATIONSHIP_STRENGTH[rel.type],
                history=[rel.notes] if rel.notes else [],
            )
            characters[cid].relationships.append(rel_id)
            characters[rel.entity].relationships.append(rel_id)

    mood = (seed.metadata.mood or "mysterious").lower()
    if mood not in MOODS:
        logger.warning(f"Unknown mood '{mood}', using 'mysterious'")
        mood = "mysterious"

    return WorldState(
        characters=characters,
        locations=locations,
        items=items,
        relationships=relationships,
        global_flags=set(),
        timeline_position=0,
        tension=INITIAL_TENSION,
        mood=mood,
    )


def build_narrative_context(seed: SeedConfig, depth: str = "medium") -> NarrativeContext:
    return NarrativeContext(
        recent_storylets=[],
        current_scene="opening",
        active_characters=list(seed.characters.keys()),
        narrative_goals=list(DEFAULT_GOALS),
        pacing=get_preset(depth).pacing,
        tension=INITIAL_TENSION,
    )


def _character_storylets(seed: SeedConfig) -> List[Storylet]:
    storylets = []
    for cid, character in seed.characters.items():
        name = character.name
        lower = name.lower()
        storylets.append(Storylet(
            id=f"intro-{cid}",
            name=f"{name} Introduction",
            trigger=f"when story begins or {lower} first appears",
            content=StoryletContent(
                description=f"Introduce {name} to the story",
                actions=[
                    f"{name} makes their first appearance",
                    f"Establish {name}'s personality and role",
                    f"Show {name} in their element",
                ],
                consequences=[
                    f"{name} is established in the narrative",
                    f"Other characters can interact with {name}",
                    f"{name}'s story arc begins",
                ],
            ),
            weight=100,
            tags=["introduction", "character", lower],
            cooldown=3600,
        ))

        if character.description:
            storylets.append(Storylet(
                id=f"develop-{cid}",
                name=f"{name} Development",
                trigger=f"when {lower} is present and story needs development",
                content=StoryletContent(
                    description=f"Develop {name}'s character through action",
                    actions=[
                        f"{name} faces a personal challenge",
                        "Character traits are revealed through behavior",
                        f"{name} makes a significant choice",
                    ],
                    consequences=[
                        f"{name} grows as a character",
                        f"Relationships with {name} evolve",
                        "New story possibilities emerge",
                    ],
                ),
                weight=80,
                tags=["development", "character", lower],
                cooldown=1800,
            ))
    return storylets


def _environment_storylets(seed: SeedConfig) -> List[Storylet]:
    storylets = []
    for eid, env in seed.environments.items():
        name = env.name
        storylets.append(Storylet(
            id=f"explore-{eid}",
            name=f"Exploring {name}",
            trigger=f"when characters arrive at {name.lower()}",
            content=StoryletContent(
                description=f"Characters explore and discover {name}",
                actions=[
                    f"Detailed description of {name}",
                    "Characters notice important details",
                    "Hidden aspects of the location are revealed",
                ],
                consequences=[
                    f"{name} becomes familiar",
                    "New paths or secrets are discovered",
                    "Characters gain environmental knowledge",
                ],
            ),
            weight=90,
            tags=["exploration", "environment", name.lower()],
            prerequisites=[f"approaching_{eid}"],
        ))
    return storylets


def _item_storylets(seed: SeedConfig) -> List[Storylet]:
    storylets = []
    for iid, item in seed.items.items():
        name = item.name
        storylets.append(Storylet(
            id=f"discover-{iid}",
            name=f"Discovering {name}",
            trigger="when characters search or explore",
            content=StoryletContent(
                description=f"Characters discover the {name}",
                actions=[
                    f"The {name} is found in an interesting location",
                    "Characters examine and understand its significance",
                    f"Decision about what to do with the {name}",
                ],
                consequences=[
                    f"{name} is added to inventory",
                    "New story possibilities open up",
                    "Characters gain a useful tool or information",
                ],
            ),
            weight=70,
            tags=["discovery", "item", name.lower()],
            cooldown=900,
        ))
    return storylets


def _declared_storylets(seed: SeedConfig) -> List[Storylet]:
    storylets = []
    for i, declared in enumerate(seed.narrative.storylets, start=1):
        storylets.append(Storylet(
            id=f"seed-{i}",
            name=f"{seed.name} Storylet {i}",
            trigger=declared.trigger,
            content=StoryletContent(description=declared.content),
            weight=declared.weight if declared.weight is not None else 50,
            tags=declared.tags,
        ))
    return storylets


def _general_storylets() -> List[Storylet]:
    return [
        Storylet(
            id="opening-scene",
            name="Story Opening",
            trigger="when story begins",
            content=StoryletContent(
                description="Set the stage and hook the audience",
                actions=[
                    "Establish the setting and atmosphere",
                    "Introduce the central premise",
                    "Create immediate engagement",
                ],
                consequences=[
                    "Story officially begins",
                    "Audience is invested",
                    "Narrative momentum is established",
                ],
            ),
            weight=200,
            tags=["opening", "structure"],
            cooldown=86400,  # once per day
        ),
        Storylet(
            id="plot-twist",
            name="Unexpected Revelation",
            trigger="when tension is medium and story needs surprise",
            content=StoryletContent(
                description="Introduce an unexpected plot development",
                actions=[
                    "Reveal hidden information",
                    "Subvert audience expectations",
                    "Change the direction of the story",
                ],
                consequences=[
                    "Story takes new direction",
                    "Characters must adapt to new reality",
                    "Audience engagement increases",
                ],
            ),
            weight=60,
            tags=["twist", "surprise", "plot"],
            cooldown=3600,
        ),
        Storylet(
            id="emotional-moment",
            name="Emotional Core Scene",
            trigger="when characters need emotional development",
            content=StoryletContent(
                description="Focus on character emotions and relationships",
                actions=[
                    "Characters share vulnerable moments",
                    "Emotional stakes are clarified",
                    "Relationships deepen or strain",
                ],
                consequences=[
                    "Character bonds strengthen or break",
                    "Emotional investment increases",
                    "Character motivations become clearer",
                ],
            ),
            weight=85,
            tags=["emotion", "character", "relationship"],
            cooldown=1200,
        ),
    ]


def generate_base_storylets(seed: SeedConfig, storylet_count: int = 20) -> List[Storylet]:
    """Derive the starting storylet set from the seed's characters, places and items."""
    storylets = (
        _character_storylets(seed)
        + _environment_storylets(seed)
        + _item_storylets(seed)
        + _declared_storylets(seed)
        + _general_storylets()
    )
    if len(storylets) > storylet_count:
        logger.info(f"Trimming {len(storylets)} base storylets to {storylet_count}")
    return storylets[:storylet_count]


def world_state_to_dict(world: WorldState) -> Dict[str, Any]:
    """JSON-safe snapshot of the world (flag sets become sorted lists)."""

    def _clean(value: Any) -> Any:
        if isinstance(value, (set, frozenset)):
            return sorted(value)
        if isinstance(value, dict):
            return {k: _clean(v) for k, v in value.items()}
        if isinstance(value, list):
            return [_clean(v) for v in value]
        return value

    return _clean(asdict(world))
