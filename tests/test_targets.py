"""Tests for per-target project scaffolding."""

import json

import pytest

from mythforge.config import CONFIG_FILENAME, load_config
from mythforge.exceptions import OutputError, UnknownTargetError
from mythforge.seed import parse_seed
from mythforge.targets import count_lines, generate_project
from mythforge.world import build_world_state, generate_base_storylets


@pytest.fixture
def storylets(sample_seed):
    return generate_base_storylets(sample_seed)


def _relative(files, root):
    return sorted(str(p.relative_to(root)).replace("\\", "/") for p in files)


class TestGenerateProject:
    """Test the files each target writes."""

    def test_godot(self, sample_seed, storylets, tmp_path):
        files = generate_project(sample_seed, "godot", tmp_path, storylets, build_world_state(sample_seed))
        assert _relative(files, tmp_path) == [
            "README.md",
            "data/storylets.json",
            "project.godot",
            "scenes/main.tscn",
            "scripts/storylets.gd",
        ]
        assert 'config/name="Whispering Woods"' in (tmp_path / "project.godot").read_text(encoding="utf-8")
        payload = json.loads((tmp_path / "data" / "storylets.json").read_text(encoding="utf-8"))
        assert payload["myth"] == "Whispering Woods"
        assert len(payload["storylets"]) == len(storylets)
        assert "sylva" in payload["world"]["characters"]

    def test_unity(self, sample_seed, storylets, tmp_path):
        files = generate_project(sample_seed, "unity", tmp_path, storylets)
        assert _relative(files, tmp_path) == [
            "Assets/Scripts/MythManager.cs",
            "Assets/StreamingAssets/storylets.json",
            "ProjectSettings/ProjectVersion.txt",
            "README.md",
        ]
        script = (tmp_path / "Assets" / "Scripts" / "MythManager.cs").read_text(encoding="utf-8")
        assert "public class WhisperingWoodsMythManager : MonoBehaviour" in script
        payload = json.loads((tmp_path / "Assets" / "StreamingAssets" / "storylets.json").read_text(encoding="utf-8"))
        assert "world" not in payload

    def test_web(self, sample_seed, storylets, tmp_path):
        files = generate_project(sample_seed, "web", tmp_path, storylets)
        assert _relative(files, tmp_path) == ["data/storylets.json", "index.html"]
        html = (tmp_path / "index.html").read_text(encoding="utf-8")
        assert "<h1>Whispering Woods</h1>" in html
        assert "Sylva Introduction" in html

    def test_web_escapes_seed_text(self, tmp_path):
        seed = parse_seed({"name": "<script>alert(1)</script>", "description": "a & b"})
        generate_project(seed, "web", tmp_path)
        html = (tmp_path / "index.html").read_text(encoding="utf-8")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "a &amp; b" in html
        assert "No storylets yet." in html

    def test_docs(self, sample_seed, storylets, tmp_path):
        files = generate_project(sample_seed, "docs", tmp_path, storylets)
        assert _relative(files, tmp_path) == ["characters.md", "index.md", "locations.md", "storylets.md"]
        characters = (tmp_path / "characters.md").read_text(encoding="utf-8")
        assert "## Sylva" in characters
        assert "- enemy of Morrow" in characters
        entries = (tmp_path / "storylets.md").read_text(encoding="utf-8")
        assert "- **Requires:** approaching_grove" in entries
        assert "**Genre:** fantasy" in (tmp_path / "index.md").read_text(encoding="utf-8")

    def test_options_written_as_config(self, sample_seed, tmp_path):
        files = generate_project(sample_seed, "web", tmp_path, options={"target": "web", "output_dir": tmp_path})
        assert tmp_path / CONFIG_FILENAME in files
        assert load_config(tmp_path / CONFIG_FILENAME) == {"target": "web", "output_dir": str(tmp_path)}

    def test_unknown_target(self, sample_seed, tmp_path):
        with pytest.raises(UnknownTargetError) as exc_info:
            generate_project(sample_seed, "flash", tmp_path)
        assert exc_info.value.target == "flash"
        assert exc_info.value.available_targets == ["godot", "unity", "web", "docs"]

    def test_unwritable_output(self, sample_seed, tmp_path):
        blocker = tmp_path / "taken"
        blocker.write_text("not a directory", encoding="utf-8")
        with pytest.raises(OutputError):
            generate_project(sample_seed, "docs", blocker)


class TestCountLines:
    """Test line statistics for generated files."""

    def test_counts_lines(self, tmp_path):
        a = tmp_path / "a.txt"
        a.write_text("one\ntwo\n", encoding="utf-8")
        b = tmp_path / "b.txt"
        b.write_text("three", encoding="utf-8")
        assert count_lines([a, b]) == 3

    def test_missing_file_skipped(self, tmp_path):
        assert count_lines([tmp_path / "gone.txt"]) == 0
