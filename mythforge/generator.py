from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from .agents import AgentOutput, NarrativeOrchestrator, NarrativeScratchpad, create_default_agents
from .models import NarrativeContext, Storylet, WorldState
from .narrative import StoryletCatalog
from .presets import get_preset
from .seed import SeedConfig
from .targets import count_lines, generate_project
from .world import build_narrative_context, build_world_state, generate_base_storylets

logger = logging.getLogger(__name__)

# World fields agents may overwrite through world_state_changes
MUTABLE_WORLD_FIELDS = {"tension", "mood", "timeline_position", "global_flags"}

# Story time that passes between two rounds of run_story
ROUND_SECONDS = 600


class StoryClock:
    """Simulated clock in epoch milliseconds that only moves when advanced."""

    def __init__(self, start_ms: Optional[float] = None):
        self.now = start_ms if start_ms is not None else float(round(time.time() * 1000))

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds * 1000


@dataclass
class EmergentOptions:
    target: str = "web"
    output_dir: Path = Path("output")
    storylet_count: int = 20
    narrative_depth: str = "medium"  # surface, medium, deep
    emergent_mode: bool = True
    max_iterations: int = 3
    creativity_level: float = 0.7
    collaboration_rounds: int = 2


@dataclass
class NarrativeAnalysis:
    world: WorldState
    agent_outputs: List[AgentOutput]
    emergent_elements: List[str]
    complexity_score: float
    narrative_coherence: float


@dataclass
class EmergentResult:
    files: List[Path]
    generation_time: float  # seconds
    statistics: Dict[str, Any]
    generated_storylets: List[Storylet]
    analysis: NarrativeAnalysis
    expansion_suggestions: List[str] = field(default_factory=list)
    dynamic_elements: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)


@dataclass
class StoryBeat:
    round: int
    storylet_id: Optional[str]
    storylet_name: Optional[str] = None
    weight: float = 0.0
    candidates: int = 0

    @property
    def skipped(self) -> bool:
        return self.storylet_id is None


def extract_generation_goals(options: EmergentOptions) -> List[str]:
    goals = ["narrative-coherence", "character-development"]
    for goal in get_preset(options.narrative_depth).generation_goals:
        if goal not in goals:
            goals.append(goal)
    if options.emergent_mode:
        goals += ["emergent-properties", "surprise-elements"]
    return goals


def extract_constraints(seed: SeedConfig) -> List[str]:
    constraints = ["maintain-character-consistency", "respect-world-rules"]
    if seed.metadata.genre:
        constraints.append(f"genre-{seed.metadata.genre}")
    return constraints


def process_agent_outputs(
    outputs: List[AgentOutput],
    catalog: StoryletCatalog,
    world: WorldState,
    context: NarrativeContext,
) -> None:
    """Fold one iteration of agent outputs back into the session."""
    for output in outputs:
        catalog.add_many(output.new_storylets)

        for key, value in output.world_state_changes.items():
            if key not in MUTABLE_WORLD_FIELDS:
                logger.warning(f"Ignoring unknown world change '{key}' from {output.agent_id}")
                continue
            if key == "tension":
                value = min(1.0, max(0.0, float(value)))
            elif key == "global_flags":
                value = set(value)
            setattr(world, key, value)

        if output.type == "conflict-generation" and output.metadata.get("recommended_action") == "escalate":
            context.tension = min(1.0, context.tension + 0.1)


def check_convergence(outputs: List[AgentOutput]) -> bool:
    """Agents agree (mean confidence above 0.85) and still produce content."""
    if not outputs:
        return False
    avg_confidence = sum(o.confidence for o in outputs) / len(outputs)
    new_storylets = sum(len(o.new_storylets) for o in outputs)
    return avg_confidence > 0.85 and new_storylets > 5


def extract_emergent_elements(outputs: List[AgentOutput]) -> List[str]:
    return [
        s for o in outputs for s in o.suggestions
        if "emergent" in s.lower() or "unexpected" in s.lower()
    ]


def analyze_narrative_complexity(
    world: WorldState, outputs: List[AgentOutput], storylets: List[Storylet]
) -> NarrativeAnalysis:
    tag_diversity = len({t for s in storylets for t in s.tags})
    score = min(
        1.0,
        len(world.characters) * 0.1
        + len(world.relationships) * 0.15
        + tag_diversity * 0.05
        + len(outputs) * 0.01,
    )
    coherence = sum(o.confidence for o in outputs) / len(outputs) if outputs else 0.0
    return NarrativeAnalysis(
        world=world,
        agent_outputs=outputs,
        emergent_elements=extract_emergent_elements(outputs),
        complexity_score=score,
        narrative_coherence=coherence,
    )


def generate_expansion_suggestions(analysis: NarrativeAnalysis) -> List[str]:
    suggestions = [
        "Add more character backstory elements",
        "Introduce subplot complications",
        "Develop environmental storytelling",
    ]
    if analysis.complexity_score < 0.5:
        suggestions.append("Increase narrative complexity with additional characters or plot threads")
    if analysis.narrative_coherence > 0.8:
        suggestions.append("Consider adding surprising elements to maintain engagement")
    return suggestions


def _summarise(output: AgentOutput) -> Dict[str, Any]:
    return {
        "agent": output.agent_id,
        "suggestions": list(output.suggestions),
        "storylets": [s.id for s in output.new_storylets],
        "metadata": dict(output.metadata),
    }


def extract_dynamic_elements(outputs: List[AgentOutput]) -> Dict[str, List[Dict[str, Any]]]:
    """Group agent contributions into character arcs, plot branches and world events."""
    by_type = {
        "character_arcs": "character-development",
        "plot_branches": "conflict-generation",
        "world_events": "exposition",
    }
    return {
        key: [_summarise(o) for o in outputs if o.type == output_type]
        for key, output_type in by_type.items()
    }


def generate_emergent(
    seed: SeedConfig, options: EmergentOptions, rng: Optional[random.Random] = None
) -> EmergentResult:
    """Grow a storylet set from a seed with the agent pipeline and write the target project.

    Args:
        seed: Parsed seed
        options: Generation options (target, depth, iteration limits)
        rng: Random source handed to the catalog

    Returns:
        EmergentResult with the written files, the storylets and the analysis

    Raises:
        UnknownTargetError: If options.target is not a known target
        OutputError: If the project cannot be written
    """
    started = time.monotonic()
    logger.info(
        f"Starting emergent generation for '{seed.name}': {options.storylet_count} storylets, "
        f"depth {options.narrative_depth}, up to {options.max_iterations} iterations"
    )

    catalog, world, context = build_session(
        seed, options.narrative_depth, options.storylet_count, rng=rng
    )

    outputs: List[AgentOutput] = []
    if options.emergent_mode:
        orchestrator = NarrativeOrchestrator(
            create_default_agents(options.creativity_level),
            collaboration_rounds=options.collaboration_rounds,
        )
        goals = extract_generation_goals(options)
        constraints = extract_constraints(seed)

        for iteration in range(options.max_iterations):
            scratchpad = NarrativeScratchpad(
                world=world,
                context=context,
                active_storylets=catalog.get_all(),
                generation_goals=goals,
                constraints=constraints,
                previous_outputs=list(outputs),
            )
            iteration_outputs = orchestrator.orchestrate(scratchpad)
            outputs.extend(iteration_outputs)
            process_agent_outputs(iteration_outputs, catalog, world, context)
            logger.info(
                f"Iteration {iteration + 1}/{options.max_iterations}: "
                f"{len(iteration_outputs)} agent outputs, {len(catalog)} storylets"
            )

            if check_convergence(iteration_outputs):
                logger.info(f"Convergence reached at iteration {iteration + 1}")
                break

    storylets = catalog.get_all()
    files = generate_project(seed, options.target, options.output_dir, storylets, world, options)

    analysis = analyze_narrative_complexity(world, outputs, storylets)
    logger.info(
        f"Generated {len(storylets)} storylets from {len(outputs)} agent outputs, "
        f"complexity {analysis.complexity_score:.2f}"
    )

    return EmergentResult(
        files=files,
        generation_time=time.monotonic() - started,
        statistics={
            "total_files": len(files),
            "lines_of_code": count_lines(files),
            "target_platform": options.target,
        },
        generated_storylets=storylets,
        analysis=analysis,
        expansion_suggestions=generate_expansion_suggestions(analysis),
        dynamic_elements=extract_dynamic_elements(outputs),
    )


def run_story(
    catalog: StoryletCatalog,
    world: WorldState,
    context: NarrativeContext,
    rounds: int,
    recent_limit: int = 5,
    round_seconds: float = ROUND_SECONDS,
) -> List[StoryBeat]:
    """Drive the catalog for a number of rounds and record which storylet fired each time.

    After every round the catalog clock is moved forward by `round_seconds`
    when it supports `advance` (a StoryClock does; the wall clock does not),
    so cooldowns expire in story time. A round with no eligible storylet is
    recorded as skipped and releases the oldest id from the recency list.
    """
    advance = getattr(catalog.clock, "advance", None)
    beats = []
    for round_num in range(1, rounds + 1):
        available = catalog.evaluate_available(world, context)
        chosen = catalog.select_next(available, context)
        if chosen is None:
            logger.debug(f"Round {round_num}: no eligible storylet")
            beats.append(StoryBeat(round=round_num, storylet_id=None))
            if context.recent_storylets:
                context.recent_storylets.pop(0)
        else:
            weight = catalog.adjusted_weight(chosen, context)
            catalog.mark_used(chosen.id)
            context.remember(chosen.id, recent_limit)
            beats.append(StoryBeat(
                round=round_num,
                storylet_id=chosen.id,
                storylet_name=chosen.name,
                weight=weight,
                candidates=len(available),
            ))
        world.timeline_position += 1
        if advance is not None and round_seconds:
            advance(round_seconds)

    fired = sum(1 for b in beats if not b.skipped)
    logger.info(f"Story ran {rounds} rounds, {fired} storylets fired")
    return beats


def build_session(
    seed: SeedConfig,
    depth: str = "medium",
    storylet_count: int = 20,
    rng: Optional[random.Random] = None,
    clock: Optional[Callable[[], float]] = None,
) -> Tuple[StoryletCatalog, WorldState, NarrativeContext]:
    """Fresh (catalog, world, context) triple for one story session.

    Without an explicit clock the catalog runs on a StoryClock starting now.
    """
    catalog = StoryletCatalog(
        generate_base_storylets(seed, storylet_count), clock=clock or StoryClock(), rng=rng
    )
    return catalog, build_world_state(seed), build_narrative_context(seed, depth)
