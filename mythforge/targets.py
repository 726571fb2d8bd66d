"""Per-target project scaffolding.

Each writer takes the seed, the storylet set and the world snapshot and lays
out a starter project under ``output_dir``. The engine-specific files are
plain templates; the storylets travel as a JSON data file the generated code
loads at runtime.
"""

from __future__ import annotations

import html as html_lib
import logging
import uuid
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from .config import CONFIG_FILENAME, TARGETS, save_config
from .exceptions import OutputError, UnknownTargetError
from .models import Storylet, WorldState
from .seed import SeedConfig
from .storage import identifier, write_json, write_text
from .world import world_state_to_dict

logger = logging.getLogger(__name__)


def _storylet_payload(seed: SeedConfig, storylets: Sequence[Storylet], world: Optional[WorldState]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "myth": seed.name,
        "version": seed.version,
        "storylets": [s.to_dict() for s in storylets],
    }
    if world is not None:
        payload["world"] = world_state_to_dict(world)
    return payload


def _readme(seed: SeedConfig, engine: str, steps: List[str]) -> str:
    lines = [
        f"# {seed.name}",
        "",
        f"A generated {engine} project for the {seed.name} myth.",
        "",
        "## Getting Started",
        "",
    ]
    lines += [f"{i}. {step}" for i, step in enumerate(steps, start=1)]
    lines += [
        "",
        "## About This Project",
        "",
        seed.description or "A generated mythic world",
        "",
    ]
    for character in seed.characters.values():
        lines.append(f"### {character.name}")
        lines.append(character.description or "A mysterious figure of this realm.")
        lines.append("")
    lines += ["---", f"Generated by Mythforge on {date.today().isoformat()}", ""]
    return "\n".join(lines)


def _write_godot(seed: SeedConfig, out: Path, storylets: Sequence[Storylet], world: Optional[WorldState]) -> List[Path]:
    scene_uid = uuid.uuid4().hex[:8]
    title = seed.name.replace('"', "'")
    files = [
        write_text(out / "project.godot", "\n".join([
            "; Engine configuration file.",
            "",
            "config_version=5",
            "",
            "[application]",
            "",
            f'config/name="{title}"',
            'config/features=PackedStringArray("4.4")',
            'run/main_scene="res://scenes/main.tscn"',
            "",
            "[autoload]",
            "",
            'Storylets="*res://scripts/storylets.gd"',
            "",
            "[rendering]",
            "",
            'renderer/rendering_method="gl_compatibility"',
            "",
        ])),
        write_text(out / "scenes" / "main.tscn", "\n".join([
            f'[gd_scene format=3 uid="uid://c{scene_uid}"]',
            "",
            '[node name="Main" type="Node2D"]',
            "",
            '[node name="Title" type="Label" parent="."]',
            "offset_left = 32.0",
            "offset_top = 32.0",
            f'text = "{title}"',
            "",
        ])),
        write_text(out / "scripts" / "storylets.gd", "\n".join([
            "extends Node",
            "",
            "var storylets: Array = []",
            "var world: Dictionary = {}",
            "",
            "func _ready() -> void:",
            '\tvar file := FileAccess.open("res://data/storylets.json", FileAccess.READ)',
            "\tif file == null:",
            '\t\tpush_warning("storylets.json missing")',
            "\t\treturn",
            "\tvar data = JSON.parse_string(file.get_as_text())",
            '\tstorylets = data.get("storylets", [])',
            '\tworld = data.get("world", {})',
            "",
            "func by_tag(tag: String) -> Array:",
            '\treturn storylets.filter(func(s): return tag in s["tags"])',
            "",
        ])),
        write_json(out / "data" / "storylets.json", _storylet_payload(seed, storylets, world)),
        write_text(out / "README.md", _readme(seed, "Godot 4", [
            "Open Godot Engine 4",
            "Click \"Import\" and select this directory's project.godot",
            "Click \"Import & Edit\"",
        ])),
    ]
    return files


def _write_unity(seed: SeedConfig, out: Path, storylets: Sequence[Storylet], world: Optional[WorldState]) -> List[Path]:
    cls = identifier(seed.name) + "MythManager"
    files = [
        write_text(out / "ProjectSettings" / "ProjectVersion.txt", "m_EditorVersion: 2023.3.0f1\n"),
        write_text(out / "Assets" / "Scripts" / "MythManager.cs", "\n".join([
            "using System.IO;",
            "using UnityEngine;",
            "",
            f"// {seed.name}",
            f"public class {cls} : MonoBehaviour",
            "{",
            "    public string StoryletJson { get; private set; }",
            "",
            "    void Awake()",
            "    {",
            '        var path = Path.Combine(Application.streamingAssetsPath, "storylets.json");',
            "        if (File.Exists(path))",
            "        {",
            "            StoryletJson = File.ReadAllText(path);",
            "        }",
            "        else",
            "        {",
            '            Debug.LogWarning("storylets.json missing");',
            "        }",
            "    }",
            "}",
            "",
        ])),
        write_json(out / "Assets" / "StreamingAssets" / "storylets.json", _storylet_payload(seed, storylets, world)),
        write_text(out / "README.md", _readme(seed, "Unity", [
            "Open Unity Hub",
            "Use \"Add project from disk\" and select this directory",
            f"Attach {cls} to a GameObject in your first scene",
        ])),
    ]
    return files


def _write_web(seed: SeedConfig, out: Path, storylets: Sequence[Storylet], world: Optional[WorldState]) -> List[Path]:
    # SECURITY: Escape HTML to prevent XSS from seed text
    esc = html_lib.escape
    page = [
        "<!doctype html>",
        "<html><head><meta charset='utf-8'><title>" + esc(seed.name) + "</title>",
        "<style>body{font-family:system-ui, sans-serif;max-width:920px;margin:3rem auto;padding:0 1rem} "
        ".storylet{margin:1.5rem 0;padding:1rem;border:1px solid #eee;border-radius:8px} "
        ".name{margin:0 0 .5rem;font-size:1.1rem;font-weight:600} .meta{color:#666;font-size:.9rem} "
        ".tag{display:inline-block;margin-right:.4rem;padding:0 .4rem;background:#f3f3f3;border-radius:4px}</style>",
        "</head><body>",
        f"<h1>{esc(seed.name)}</h1>",
    ]
    if seed.description:
        page.append(f"<p>{esc(seed.description)}</p>")
    if seed.characters:
        page.append("<h2>Characters</h2><ul>")
        for c in seed.characters.values():
            desc = f" - {esc(c.description)}" if c.description else ""
            page.append(f"<li><strong>{esc(c.name)}</strong>{desc}</li>")
        page.append("</ul>")
    page.append("<h2>Storylets</h2>")
    if not storylets:
        page.append("<p>No storylets yet.</p>")
    for s in storylets:
        page.append("<div class='storylet'>")
        page.append(f"<div class='name'>{esc(s.name)}</div>")
        page.append(f"<p>{esc(s.content.description)}</p>")
        page.append(f"<div class='meta'>Trigger: <em>{esc(s.trigger)}</em> | Weight: {s.weight:g}</div>")
        if s.tags:
            page.append("<div>" + "".join(f"<span class='tag'>{esc(t)}</span>" for t in s.tags) + "</div>")
        page.append("</div>")
    page.append("</body></html>")

    return [
        write_text(out / "index.html", "\n".join(page)),
        write_json(out / "data" / "storylets.json", _storylet_payload(seed, storylets, world)),
    ]


def _write_docs(seed: SeedConfig, out: Path, storylets: Sequence[Storylet], world: Optional[WorldState]) -> List[Path]:
    index = [f"# {seed.name}", "", seed.description or "A generated mythic world", ""]
    if seed.metadata.genre:
        index.append(f"**Genre:** {seed.metadata.genre}")
    if seed.metadata.themes:
        index.append(f"**Themes:** {', '.join(seed.metadata.themes)}")
    index += [
        "",
        "- [Characters](characters.md)",
        "- [Locations](locations.md)",
        "- [Storylets](storylets.md)",
        "",
    ]

    characters = ["# Characters", ""]
    for cid, c in seed.characters.items():
        characters += [f"## {c.name}", "", c.description or "_No description._", ""]
        for rel in c.relationships:
            target = seed.characters.get(rel.entity)
            characters.append(f"- {rel.type} of {target.name if target else rel.entity}")
        if c.relationships:
            characters.append("")

    locations = ["# Locations", ""]
    for e in seed.environments.values():
        locations += [f"## {e.name}", "", e.description or "_No description._", ""]

    entries = ["# Storylets", ""]
    for s in storylets:
        entries += [
            f"## {s.name}",
            "",
            s.content.description,
            "",
            f"- **Trigger:** {s.trigger}",
            f"- **Weight:** {s.weight:g}",
            f"- **Tags:** {', '.join(s.tags) or '-'}",
        ]
        if s.cooldown:
            entries.append(f"- **Cooldown:** {s.cooldown:g}s")
        if s.prerequisites:
            entries.append(f"- **Requires:** {', '.join(s.prerequisites)}")
        entries.append("")

    return [
        write_text(out / "index.md", "\n".join(index)),
        write_text(out / "characters.md", "\n".join(characters)),
        write_text(out / "locations.md", "\n".join(locations)),
        write_text(out / "storylets.md", "\n".join(entries)),
    ]


WRITERS: Dict[str, Callable[..., List[Path]]] = {
    "godot": _write_godot,
    "unity": _write_unity,
    "web": _write_web,
    "docs": _write_docs,
}


def generate_project(
    seed: SeedConfig,
    target: str,
    output_dir: Path,
    storylets: Sequence[Storylet] = (),
    world: Optional[WorldState] = None,
    options: Any = None,
) -> List[Path]:
    """Write the project for one target and return the files written.

    Raises:
        UnknownTargetError: If target is not one of TARGETS
        OutputError: If the output directory cannot be written
    """
    writer = WRITERS.get(target)
    if writer is None:
        raise UnknownTargetError(target, TARGETS.keys())

    output_dir = Path(output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        files = writer(seed, output_dir, list(storylets), world)
        if options is not None:
            files.append(save_config(output_dir / CONFIG_FILENAME, options))
    except OSError as e:
        raise OutputError(output_dir, str(e)) from e

    logger.info(f"Generated {target} project with {len(files)} files in {output_dir}")
    return files


def count_lines(files: Sequence[Path]) -> int:
    total = 0
    for path in files:
        try:
            with path.open("r", encoding="utf-8") as f:
                total += sum(1 for _ in f)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not count lines in {path}: {e}")
    return total
