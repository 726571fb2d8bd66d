from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field, validator

from ..generator import build_session, run_story
from ..presets import PRESETS
from ..world import world_state_to_dict
from .dependencies import parse_seed_payload, run_blocking

router = APIRouter(prefix="/api/simulate", tags=["simulate"])
logger = logging.getLogger(__name__)


class SimulateRequest(BaseModel):
    seed: Dict[str, Any]
    rounds: int = Field(10, ge=1, le=200)
    depth: str = "medium"
    storylet_count: int = Field(20, ge=1, le=100)
    rng_seed: Optional[int] = None

    @validator("depth")
    def validate_depth(cls, v):
        if v not in PRESETS:
            raise ValueError(f"depth must be one of: {', '.join(PRESETS)}")
        return v


class BeatResponse(BaseModel):
    round: int
    storylet_id: Optional[str]
    storylet_name: Optional[str]
    weight: float
    candidates: int
    skipped: bool


class SimulateResponse(BaseModel):
    name: str
    beats: List[BeatResponse]
    world: Dict[str, Any]


@router.post("", response_model=SimulateResponse)
async def simulate(request: SimulateRequest):
    """Run the storylet engine on a fresh session and return the beats"""
    seed = parse_seed_payload(request.seed)
    rng = random.Random(request.rng_seed) if request.rng_seed is not None else None
    catalog, world, context = build_session(seed, request.depth, request.storylet_count, rng=rng)

    beats = await run_blocking(run_story, catalog, world, context, request.rounds)
    logger.info(f"Simulated {request.rounds} rounds for '{seed.name}'")

    return SimulateResponse(
        name=seed.name,
        beats=[
            BeatResponse(
                round=b.round,
                storylet_id=b.storylet_id,
                storylet_name=b.storylet_name,
                weight=b.weight,
                candidates=b.candidates,
                skipped=b.skipped,
            )
            for b in beats
        ],
        world=world_state_to_dict(world),
    )
