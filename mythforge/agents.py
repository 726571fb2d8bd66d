"""Heuristic narrative agents that propose storylets and world-state changes.

Each agent reads a shared scratchpad (world, context, existing storylets) and
returns an AgentOutput. Agents do not talk to each other; the orchestrator
just runs them in rounds and feeds new storylets back into the scratchpad.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .models import NarrativeContext, Storylet, StoryletContent, WorldState

logger = logging.getLogger(__name__)


@dataclass
class AgentConfig:
    personality: str = "creative"  # creative, logical, dramatic, subtle
    focus: str = "plot"  # character, plot, world, dialogue
    collaboration_style: str = "supportive"  # leading, supportive, contrarian
    creativity_level: float = 0.7  # 0-1


@dataclass
class AgentOutput:
    agent_id: str
    type: str  # character-development, conflict-generation, exposition, dialogue, scene-setting
    confidence: float  # 0-1
    reasoning: str = ""
    text: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)
    world_state_changes: Dict[str, Any] = field(default_factory=dict)
    new_storylets: List[Storylet] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NarrativeScratchpad:
    world: WorldState
    context: NarrativeContext
    active_storylets: List[Storylet] = field(default_factory=list)
    generation_goals: List[str] = field(default_factory=list)
    constraints: List[str] = field(default_factory=list)
    previous_outputs: List[AgentOutput] = field(default_factory=list)


class NarrativeAgent(ABC):
    """Abstract base class for narrative agents."""

    agent_id: str = "agent"
    role: str = "planner"  # planner, writer, evaluator

    def __init__(self, config: Optional[AgentConfig] = None):
        self.config = config or AgentConfig()

    @abstractmethod
    def process(self, scratchpad: NarrativeScratchpad) -> AgentOutput:
        """Inspect the scratchpad and propose content."""
        pass

    def generate_id(self) -> str:
        return f"{self.agent_id}-{uuid.uuid4().hex[:9]}"


class CharacterAgent(NarrativeAgent):
    agent_id = "character-agent"
    role = "planner"

    def process(self, scratchpad: NarrativeScratchpad) -> AgentOutput:
        world = scratchpad.world
        characters = list(world.characters.values())
        underdeveloped = [c for c in characters if len(c.relationships) < 2 or not c.motivation]

        suggestions = []
        new_storylets = []
        for character in underdeveloped:
            name = character.name
            suggestions.append(f"Develop {name}'s backstory and motivation")
            new_storylets.append(Storylet(
                id=self.generate_id(),
                name=f"{name} Introspection",
                trigger=f"when {name.lower()} is present and tension is low",
                content=StoryletContent(
                    description=f"{name} reflects on their past and reveals deeper motivations",
                    actions=[
                        f"{name} shares a memory from their past",
                        "Internal monologue reveals hidden fears or desires",
                        "Character makes a decision that shows their true nature",
                    ],
                    consequences=[
                        f"Other characters understand {name} better",
                        f"{name}'s motivation becomes clearer",
                        "Sets up future character conflict or growth",
                    ],
                ),
                weight=self.config.creativity_level * 100,
                tags=["character-development", "introspection", name.lower()],
                cooldown=1800,
            ))

        static = [
            r for r in world.relationships.values()
            if abs(r.strength) < 0.3 and len(r.history) < 2
        ]
        for rel in static:
            a = world.characters.get(rel.character_a)
            b = world.characters.get(rel.character_b)
            if not (a and b):
                continue
            new_storylets.append(Storylet(
                id=self.generate_id(),
                name=f"{a.name}-{b.name} Interaction",
                trigger=f"when both {a.name.lower()} and {b.name.lower()} are present",
                content=StoryletContent(
                    description=f"{a.name} and {b.name} have a meaningful interaction that develops their relationship",
                    actions=[
                        f"{a.name} reveals something personal to {b.name}",
                        f"{b.name} shows unexpected understanding or conflict",
                        "Their relationship dynamic shifts subtly",
                    ],
                    consequences=[
                        "Relationship strength changes",
                        "New shared history is created",
                        "Sets up future interactions between them",
                    ],
                ),
                weight=80,
                tags=["relationship", "character-interaction", a.name.lower(), b.name.lower()],
                cooldown=900,
            ))

        return AgentOutput(
            agent_id=self.agent_id,
            type="character-development",
            suggestions=suggestions,
            new_storylets=new_storylets,
            metadata={
                "analysed_characters": len(characters),
                "underdeveloped_count": len(underdeveloped),
                "relationship_opportunities": len(static),
            },
            confidence=0.8,
            reasoning=(
                f"Analyzed {len(characters)} characters and identified {len(underdeveloped)} needing "
                f"development. Created {len(new_storylets)} character-focused storylets."
            ),
        )


class ConflictAgent(NarrativeAgent):
    agent_id = "conflict-agent"
    role = "planner"

    def process(self, scratchpad: NarrativeScratchpad) -> AgentOutput:
        world = scratchpad.world
        tension = world.tension
        relationships = list(world.relationships.values())

        suggestions = []
        new_storylets = []

        if tension < 0.3:
            suggestions.append("Introduce new conflict to increase dramatic tension")
            hostile = [r for r in relationships if r.type == "enemy" or r.strength < -0.2]
            for rel in hostile[:2]:
                a = world.characters.get(rel.character_a)
                b = world.characters.get(rel.character_b)
                if not (a and b):
                    continue
                new_storylets.append(Storylet(
                    id=self.generate_id(),
                    name=f"{a.name}-{b.name} Confrontation",
                    trigger=f"when both {a.name.lower()} and {b.name.lower()} are present and tension is low",
                    content=StoryletContent(
                        description=f"Tension escalates between {a.name} and {b.name}",
                        actions=[
                            f"{a.name} challenges {b.name} directly",
                            "Old grievances surface between them",
                            "Their conflict becomes public knowledge",
                        ],
                        consequences=[
                            "Tension increases significantly",
                            "Other characters must choose sides",
                            "The conflict becomes a central plot point",
                        ],
                    ),
                    weight=120,
                    tags=["conflict", "tension-building", a.name.lower(), b.name.lower()],
                    cooldown=600,
                ))
        elif tension > 0.7:
            suggestions.append("Consider conflict resolution or climactic confrontation")
            new_storylets.append(Storylet(
                id=self.generate_id(),
                name="Climactic Confrontation",
                trigger="when tension is high and multiple conflicts are active",
                content=StoryletContent(
                    description="Multiple conflicts come to a head in a dramatic confrontation",
                    actions=[
                        "All major antagonistic forces clash",
                        "Characters must make crucial decisions",
                        "The central conflict reaches its peak",
                    ],
                    consequences=[
                        "Major plot resolution occurs",
                        "Character relationships are permanently altered",
                        "New status quo is established",
                    ],
                ),
                weight=200,
                tags=["climax", "resolution", "high-tension"],
                cooldown=3600,
            ))

        dormant = [r for r in relationships if r.type == "rival" and abs(r.strength) < 0.4]
        for rel in dormant[:1]:
            suggestions.append(f"Reactivate dormant rivalry between {rel.character_a} and {rel.character_b}")

        if tension < 0.3:
            action = "escalate"
        elif tension > 0.7:
            action = "resolve"
        else:
            action = "maintain"

        return AgentOutput(
            agent_id=self.agent_id,
            type="conflict-generation",
            suggestions=suggestions,
            new_storylets=new_storylets,
            world_state_changes={"tension": round(tension + 0.1, 4) if tension < 0.3 else tension},
            metadata={
                "current_tension": tension,
                "conflict_count": sum(1 for r in relationships if r.strength < -0.2),
                "recommended_action": action,
            },
            confidence=0.85,
            reasoning=f"Current tension: {tension:.2f}. Recommended action: {action}.",
        )


class ExpositionWriter(NarrativeAgent):
    agent_id = "exposition-writer"
    role = "writer"

    def process(self, scratchpad: NarrativeScratchpad) -> AgentOutput:
        world = scratchpad.world
        context = scratchpad.context
        locations = list(world.locations.values())
        unexplored = [
            loc for loc in locations
            if not loc.characters and f"{loc.id}_explored" not in world.global_flags
        ]

        suggestions = []
        new_storylets = []
        for loc in unexplored[:2]:
            suggestions.append(f"Provide exposition for {loc.name}")
            new_storylets.append(Storylet(
                id=self.generate_id(),
                name=f"Discovering {loc.name}",
                trigger=f"when characters approach {loc.name.lower()}",
                content=StoryletContent(
                    description=f"Characters explore and learn about {loc.name}",
                    actions=[
                        f"Detailed description of {loc.name}'s appearance and atmosphere",
                        "Characters discover clues about the location's history",
                        "Environmental storytelling reveals past events",
                    ],
                    consequences=[
                        f"{loc.name} becomes familiar to characters",
                        "New plot hooks are established",
                        "Characters gain knowledge about the world",
                    ],
                ),
                weight=90,
                tags=["exposition", "world-building", loc.name.lower()],
                prerequisites=[f"approaching_{loc.id}"],
            ))

        new_arc = "new-story-arc" in context.narrative_goals
        if new_arc:
            new_storylets.append(Storylet(
                id=self.generate_id(),
                name="Story Arc Opening",
                trigger="when a new story arc begins",
                content=StoryletContent(
                    description="Set the stage for a new narrative arc with compelling opening",
                    actions=[
                        "Introduce the central mystery or challenge",
                        "Establish stakes and urgency",
                        "Hook characters into the new storyline",
                    ],
                    consequences=[
                        "New story arc is officially begun",
                        "Characters have clear motivation to proceed",
                        "Narrative momentum is established",
                    ],
                ),
                weight=150,
                tags=["exposition", "opening", "story-arc"],
                cooldown=1200,
            ))

        return AgentOutput(
            agent_id=self.agent_id,
            type="exposition",
            suggestions=suggestions,
            new_storylets=new_storylets,
            metadata={
                "unexplored_locations": len(unexplored),
                "total_locations": len(locations),
                "exposition_opportunities": len(unexplored) + (1 if new_arc else 0),
            },
            confidence=0.75,
            reasoning=(
                f"Identified {len(unexplored)} unexplored locations needing exposition. "
                f"Created {len(new_storylets)} exposition-focused storylets."
            ),
        )


class DialogueAgent(NarrativeAgent):
    agent_id = "dialogue-agent"
    role = "writer"

    def process(self, scratchpad: NarrativeScratchpad) -> AgentOutput:
        active = scratchpad.context.active_characters
        new_storylets = []

        for i, a in enumerate(active):
            for b in active[i + 1:]:
                new_storylets.append(Storylet(
                    id=self.generate_id(),
                    name=f"{a}-{b} Dialogue",
                    trigger=f"when both {a.lower()} and {b.lower()} are present and quiet",
                    content=StoryletContent(
                        description=f"{a} and {b} engage in meaningful dialogue",
                        actions=[
                            f"{a} initiates conversation with {b}",
                            "They discuss current events or personal matters",
                            "Subtext reveals deeper character motivations",
                        ],
                        consequences=[
                            "Characters learn more about each other",
                            "Plot information is revealed through conversation",
                            "Relationship dynamics become clearer",
                        ],
                    ),
                    weight=70,
                    tags=["dialogue", "character-interaction", a.lower(), b.lower()],
                    cooldown=300,
                ))

        for name in active[:2]:
            new_storylets.append(Storylet(
                id=self.generate_id(),
                name=f"{name} Monologue",
                trigger=f"when {name.lower()} is alone and contemplative",
                content=StoryletContent(
                    description=f"{name} reflects on recent events through internal monologue",
                    actions=[
                        f"{name} processes recent experiences",
                        "Internal thoughts reveal character psychology",
                        "Character reaches important realizations",
                    ],
                    consequences=[
                        "Character development occurs",
                        "Player/reader gains insight into character",
                        "Sets up future character decisions",
                    ],
                ),
                weight=60,
                tags=["dialogue", "monologue", "introspection", name.lower()],
                cooldown=900,
            ))

        pairs = len(active) * (len(active) - 1) // 2
        return AgentOutput(
            agent_id=self.agent_id,
            type="dialogue",
            new_storylets=new_storylets,
            metadata={
                "active_characters": len(active),
                "dialogue_opportunities": pairs,
                "monologue_opportunities": len(active),
            },
            confidence=0.7,
            reasoning=(
                f"Created dialogue opportunities for {len(active)} active characters. "
                f"Generated {len(new_storylets)} dialogue-focused storylets."
            ),
        )


class NarrativeOrchestrator:
    """Runs agents in rounds over a shared scratchpad."""

    def __init__(self, agents: Optional[List[NarrativeAgent]] = None, collaboration_rounds: int = 3):
        self.agents: List[NarrativeAgent] = list(agents or [])
        self.collaboration_rounds = collaboration_rounds

    def add_agent(self, agent: NarrativeAgent) -> None:
        self.agents.append(agent)

    def orchestrate(self, scratchpad: NarrativeScratchpad) -> List[AgentOutput]:
        all_outputs: List[AgentOutput] = []

        for round_num in range(self.collaboration_rounds):
            view = replace(scratchpad, previous_outputs=list(all_outputs))
            round_outputs = [agent.process(view) for agent in self.agents]

            for output in round_outputs:
                scratchpad.active_storylets.extend(output.new_storylets)
            all_outputs.extend(round_outputs)

            logger.debug(
                f"Agent round {round_num + 1}: {len(round_outputs)} outputs, "
                f"{sum(len(o.new_storylets) for o in round_outputs)} new storylets"
            )

            if round_num > 0 and self.check_consensus(round_outputs):
                logger.debug(f"Agents reached consensus after round {round_num + 1}")
                break

        return all_outputs

    @staticmethod
    def check_consensus(outputs: List[AgentOutput]) -> bool:
        return all(o.confidence > 0.8 for o in outputs)


def create_default_agents(creativity_level: float = 0.7) -> List[NarrativeAgent]:
    base = AgentConfig(creativity_level=creativity_level)
    return [
        CharacterAgent(replace(base, focus="character")),
        ConflictAgent(replace(base, personality="dramatic")),
        ExpositionWriter(replace(base, focus="world")),
        DialogueAgent(replace(base, focus="dialogue")),
    ]
