import json
from pathlib import Path
from typing import Any, Callable, Dict

import pytest
import yaml

from mythforge.models import (
    Character,
    NarrativeContext,
    Relationship,
    Storylet,
    StoryletContent,
    WorldState,
)
from mythforge.seed import SeedConfig, parse_seed


class MockClock:
    """Settable clock returning epoch milliseconds."""

    def __init__(self, now_ms: float = 1_700_000_000_000.0):
        self.now = now_ms

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds * 1000


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the user config file at a temp dir and clear MYTHFORGE_* overrides."""
    config_path = tmp_path / "config" / "config.json"
    monkeypatch.setattr("mythforge.settings.CONFIG_PATH", config_path)
    for var in ("MYTHFORGE_TARGET", "MYTHFORGE_DEPTH", "MYTHFORGE_OUTPUT_DIR", "MYTHFORGE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    return config_path


@pytest.fixture
def clock() -> MockClock:
    return MockClock()


@pytest.fixture
def make_storylet() -> Callable[..., Storylet]:
    """Factory for storylets with sensible defaults."""

    def _make(storylet_id: str = "s", **kwargs: Any) -> Storylet:
        kwargs.setdefault("name", storylet_id.title())
        kwargs.setdefault("trigger", "when story begins")
        kwargs.setdefault("content", StoryletContent(description=f"{storylet_id} happens"))
        return Storylet(id=storylet_id, **kwargs)

    return _make


@pytest.fixture
def empty_world() -> WorldState:
    return WorldState()


@pytest.fixture
def empty_context() -> NarrativeContext:
    return NarrativeContext()


@pytest.fixture
def feuding_world() -> WorldState:
    """Two characters locked in an enemy relationship."""
    rel = Relationship(id="elara-varn", character_a="elara", character_b="varn", type="enemy", strength=-0.8)
    return WorldState(
        characters={
            "elara": Character(id="elara", name="Elara", relationships=[rel.id]),
            "varn": Character(id="varn", name="Varn", relationships=[rel.id]),
        },
        relationships={rel.id: rel},
    )


@pytest.fixture
def sample_seed_data() -> Dict[str, Any]:
    return {
        "name": "Whispering Woods",
        "version": "1.0.0",
        "author": "Test Author",
        "description": "An ancient forest guarded by a forgotten spirit",
        "characters": {
            "sylva": {
                "name": "Sylva",
                "description": "The forest guardian",
                "relationships": [{"entity": "morrow", "type": "Enemy", "notes": "He felled the old oak"}],
            },
            "morrow": {"name": "Morrow", "description": "A woodcutter with a grudge"},
        },
        "environments": {
            "grove": {"name": "Moonlit Grove", "description": "Silver light through old oaks"},
        },
        "items": {
            "acorn": {"name": "Heart Acorn", "effects": ["regrowth"]},
        },
        "metadata": {"genre": "fantasy", "themes": ["nature", "memory"], "mood": "mysterious"},
        "narrative": {
            "pacing": "slow",
            "agencyLevel": 0.6,
            "storylets": [
                {"trigger": "when sylva is present", "content": "The trees whisper", "tags": ["Contemplative"]},
            ],
        },
    }


@pytest.fixture
def sample_seed(sample_seed_data: Dict[str, Any]) -> SeedConfig:
    return parse_seed(sample_seed_data)


@pytest.fixture
def seed_file(tmp_path: Path, sample_seed_data: Dict[str, Any]) -> Path:
    path = tmp_path / "woods.yaml"
    path.write_text(yaml.safe_dump(sample_seed_data, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def json_seed_file(tmp_path: Path, sample_seed_data: Dict[str, Any]) -> Path:
    path = tmp_path / "woods.json"
    path.write_text(json.dumps(sample_seed_data), encoding="utf-8")
    return path
