from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class DepthPreset:
    key: str
    name: str
    description: str
    pacing: str
    generation_goals: Tuple[str, ...] = ()


PRESETS: Dict[str, DepthPreset] = {
    "surface": DepthPreset(
        key="surface",
        name="Surface",
        description="Fast generation, basic storylets.",
        pacing="fast",
    ),
    "medium": DepthPreset(
        key="medium",
        name="Medium",
        description="Balanced approach with character development.",
        pacing="medium",
    ),
    "deep": DepthPreset(
        key="deep",
        name="Deep",
        description="Rich complexity with multi-layered narratives.",
        pacing="slow",
        generation_goals=("psychological-depth", "world-building"),
    ),
}

DEFAULT_PRESET = PRESETS["medium"]


def get_preset(depth: str) -> DepthPreset:
    return PRESETS.get(depth, DEFAULT_PRESET)
