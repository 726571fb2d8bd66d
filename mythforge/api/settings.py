from __future__ import annotations

from dataclasses import fields
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field, validator

from ..config import TARGETS
from ..presets import PRESETS
from ..settings import UserSettings, load_user_settings, save_user_settings

router = APIRouter(prefix="/api/settings", tags=["settings"])


class SettingsResponse(BaseModel):
    default_target: str
    default_depth: str
    default_output_dir: str
    storylet_count: int
    creativity_level: float
    max_iterations: int
    recent_limit: int
    log_level: str


class SettingsUpdateRequest(BaseModel):
    default_target: Optional[str] = Field(None, max_length=20)
    default_depth: Optional[str] = Field(None, max_length=20)
    default_output_dir: Optional[str] = Field(None, max_length=500)
    storylet_count: Optional[int] = Field(None, ge=5, le=100)
    creativity_level: Optional[float] = Field(None, ge=0.0, le=1.0)
    max_iterations: Optional[int] = Field(None, ge=1, le=10)
    recent_limit: Optional[int] = Field(None, ge=0, le=50)
    log_level: Optional[str] = Field(None, max_length=10)

    @validator("default_target")
    def validate_target(cls, v):
        if v is not None and v not in TARGETS:
            raise ValueError(f"default_target must be one of: {', '.join(TARGETS)}")
        return v

    @validator("default_depth")
    def validate_depth(cls, v):
        if v is not None and v not in PRESETS:
            raise ValueError(f"default_depth must be one of: {', '.join(PRESETS)}")
        return v

    @validator("log_level")
    def validate_log_level(cls, v):
        if v is not None and v.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
            raise ValueError("log_level must be DEBUG, INFO, WARNING or ERROR")
        return v.upper() if v is not None else v


@router.get("", response_model=SettingsResponse)
async def get_settings():
    """Get the saved user settings"""
    settings = load_user_settings()
    return SettingsResponse(
        default_target=settings.default_target,
        default_depth=settings.default_depth,
        default_output_dir=settings.default_output_dir,
        storylet_count=settings.storylet_count,
        creativity_level=settings.creativity_level,
        max_iterations=settings.max_iterations,
        recent_limit=settings.recent_limit,
        log_level=settings.log_level,
    )


@router.put("")
async def update_settings(request: SettingsUpdateRequest):
    """Update user settings"""
    settings = load_user_settings()

    for f in fields(UserSettings):
        value = getattr(request, f.name, None)
        if value is not None:
            setattr(settings, f.name, value)

    save_user_settings(settings)

    return {"message": "Settings updated"}
