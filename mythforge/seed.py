"""Seed files: the declarative world description a myth is generated from.

A seed is a YAML or JSON mapping::

    name: Whispering Woods
    description: An ancient forest guarded by a forgotten spirit
    characters:
      sylva: {name: Sylva, description: The forest guardian,
              relationships: [{entity: morrow, type: enemy}]}
      morrow: {name: Morrow, description: A woodcutter with a grudge}
    environments:
      grove: {name: Moonlit Grove, description: Silver light through old oaks}
    items:
      acorn: {name: Heart Acorn}
    narrative:
      pacing: slow
      storylets:
        - {trigger: when sylva is present, content: The trees whisper, tags: [contemplative]}

Older seeds with a single ``entity`` / ``environment`` block are still accepted.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .exceptions import InvalidSeedError, MythforgeError, SeedNotFoundError, handle_seed_error
from .storage import read_text, slugify

logger = logging.getLogger(__name__)


@dataclass
class RelationshipSeed:
    entity: str
    type: str = "friend"
    notes: str = ""


@dataclass
class CharacterSeed:
    name: str
    description: Optional[str] = None
    type: Optional[str] = None
    alignment: Optional[str] = None
    relationships: List[RelationshipSeed] = field(default_factory=list)


@dataclass
class EnvironmentSeed:
    name: str
    description: Optional[str] = None
    type: Optional[str] = None


@dataclass
class ItemSeed:
    name: str
    description: Optional[str] = None
    type: Optional[str] = None
    effects: List[str] = field(default_factory=list)


@dataclass
class StoryletSeed:
    trigger: str
    content: str
    weight: Optional[float] = None
    tags: List[str] = field(default_factory=list)


@dataclass
class SeedMetadata:
    genre: Optional[str] = None
    themes: List[str] = field(default_factory=list)
    mood: Optional[str] = None


@dataclass
class NarrativeSeed:
    themes: List[str] = field(default_factory=list)
    pacing: str = "medium"
    complexity: str = "emergent"  # simple, branching, emergent
    agency_level: float = 0.5
    storylets: List[StoryletSeed] = field(default_factory=list)


@dataclass
class SeedConfig:
    name: str
    version: str = "0.1.0"
    author: str = ""
    description: str = ""
    characters: Dict[str, CharacterSeed] = field(default_factory=dict)
    environments: Dict[str, EnvironmentSeed] = field(default_factory=dict)
    items: Dict[str, ItemSeed] = field(default_factory=dict)
    metadata: SeedMetadata = field(default_factory=SeedMetadata)
    narrative: NarrativeSeed = field(default_factory=NarrativeSeed)
    export: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def _require_mapping(value: Any, what: str, path: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidSeedError(path, f"'{what}' must be a mapping")
    return value


def _named(entries: Any, what: str, path: str) -> Dict[str, Dict[str, Any]]:
    """Validate a mapping of id -> entity block, each with a name."""
    entries = _require_mapping(entries, what, path)
    result = {}
    for entity_id, block in entries.items():
        if not isinstance(block, dict) or not block.get("name"):
            raise InvalidSeedError(path, f"{what}.{entity_id} needs a 'name'")
        result[str(entity_id)] = block
    return result


def _character(block: Dict[str, Any]) -> CharacterSeed:
    relationships = []
    for rel in block.get("relationships") or []:
        if isinstance(rel, dict) and rel.get("entity"):
            relationships.append(RelationshipSeed(
                entity=str(rel["entity"]),
                type=str(rel.get("type", "friend")).lower(),
                notes=str(rel.get("notes", "")),
            ))
    return CharacterSeed(
        name=str(block["name"]),
        description=block.get("description"),
        type=block.get("type"),
        alignment=block.get("alignment"),
        relationships=relationships,
    )


def _storylet_seeds(entries: Any, path: str) -> List[StoryletSeed]:
    seeds = []
    for i, entry in enumerate(entries or []):
        if not isinstance(entry, dict) or "trigger" not in entry or "content" not in entry:
            raise InvalidSeedError(path, f"narrative.storylets[{i}] needs 'trigger' and 'content'")
        weight = entry.get("weight")
        if weight is not None:
            try:
                weight = float(weight)
            except (TypeError, ValueError):
                raise InvalidSeedError(path, f"narrative.storylets[{i}].weight must be a number")
        seeds.append(StoryletSeed(
            trigger=str(entry["trigger"]),
            content=str(entry["content"]),
            weight=weight,
            tags=[str(t) for t in entry.get("tags") or []],
        ))
    return seeds


def parse_seed(data: Any, path: Union[str, Path] = "<memory>") -> SeedConfig:
    """Validate parsed seed data and build a SeedConfig.

    Raises:
        InvalidSeedError: If the data is not a mapping or lacks required fields
    """
    path = str(path)
    if not isinstance(data, dict):
        raise InvalidSeedError(path, "top level must be a mapping")
    if not data.get("name"):
        raise InvalidSeedError(path, "missing 'name'")

    characters = _named(data.get("characters"), "characters", path)
    environments = _named(data.get("environments"), "environments", path)
    items = _named(data.get("items"), "items", path)

    # Legacy single-entity seeds
    legacy_entity = data.get("entity")
    if isinstance(legacy_entity, dict) and legacy_entity.get("name"):
        characters.setdefault(slugify(str(legacy_entity["name"])), legacy_entity)
    legacy_env = data.get("environment")
    if isinstance(legacy_env, dict) and legacy_env.get("name"):
        environments.setdefault(slugify(str(legacy_env["name"])), legacy_env)

    meta = _require_mapping(data.get("metadata"), "metadata", path)
    narrative = _require_mapping(data.get("narrative"), "narrative", path)
    try:
        agency_level = float(narrative.get("agencyLevel", narrative.get("agency_level", 0.5)))
    except (TypeError, ValueError):
        raise InvalidSeedError(path, "narrative.agencyLevel must be a number")

    return SeedConfig(
        name=str(data["name"]),
        version=str(data.get("version", "0.1.0")),
        author=str(data.get("author", "")),
        description=str(data.get("description", "")),
        characters={cid: _character(block) for cid, block in characters.items()},
        environments={
            eid: EnvironmentSeed(name=str(b["name"]), description=b.get("description"), type=b.get("type"))
            for eid, b in environments.items()
        },
        items={
            iid: ItemSeed(
                name=str(b["name"]),
                description=b.get("description"),
                type=b.get("type"),
                effects=[str(e) for e in b.get("effects") or []],
            )
            for iid, b in items.items()
        },
        metadata=SeedMetadata(
            genre=meta.get("genre"),
            themes=list(meta.get("themes") or []),
            mood=meta.get("mood"),
        ),
        narrative=NarrativeSeed(
            themes=list(narrative.get("themes") or []),
            pacing=str(narrative.get("pacing", "medium")),
            complexity=str(narrative.get("complexity", "emergent")),
            agency_level=agency_level,
            storylets=_storylet_seeds(narrative.get("storylets"), path),
        ),
        export=_require_mapping(data.get("export"), "export", path),
    )


def load_seed(path: Union[str, Path]) -> SeedConfig:
    """Read and validate a YAML or JSON seed file.

    Raises:
        SeedNotFoundError: If the file does not exist
        SeedError: If the file cannot be read or parsed
    """
    path = Path(path)
    if not path.is_file():
        raise SeedNotFoundError(path)

    try:
        text = read_text(path)
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
        seed = parse_seed(data, path)
    except MythforgeError:
        raise
    except Exception as e:
        raise handle_seed_error(e, path) from e

    logger.info(
        f"Loaded seed '{seed.name}' from {path}: {len(seed.characters)} characters, "
        f"{len(seed.environments)} environments, {len(seed.items)} items"
    )
    return seed
