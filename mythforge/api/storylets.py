from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ..world import generate_base_storylets
from .dependencies import parse_seed_payload

router = APIRouter(prefix="/api/storylets", tags=["storylets"])


class StoryletsRequest(BaseModel):
    seed: Dict[str, Any]
    storylet_count: int = Field(20, ge=1, le=100)
    tag: Optional[str] = Field(None, max_length=100)


class StoryletsResponse(BaseModel):
    name: str
    count: int
    storylets: List[Dict[str, Any]]


@router.post("", response_model=StoryletsResponse)
async def list_storylets(request: StoryletsRequest):
    """Base storylets for an inline seed, optionally filtered by tag"""
    seed = parse_seed_payload(request.seed)
    storylets = generate_base_storylets(seed, request.storylet_count)
    if request.tag:
        tag = request.tag.lower()
        storylets = [s for s in storylets if tag in s.tags]

    return StoryletsResponse(
        name=seed.name,
        count=len(storylets),
        storylets=[s.to_dict() for s in storylets],
    )
