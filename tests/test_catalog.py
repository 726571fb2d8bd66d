"""Tests for the storylet catalog."""

import logging
import random
from collections import Counter

import pytest

from mythforge.exceptions import StoryletConfigError
from mythforge.models import NarrativeContext, WorldState
from mythforge.narrative import StoryletCatalog


@pytest.fixture
def catalog(clock):
    return StoryletCatalog(clock=clock, rng=random.Random(42))


class TestCatalogMutation:
    """Test add, remove and lookups."""

    def test_single_storylet_is_selected(self, catalog, make_storylet, empty_world, empty_context):
        catalog.add(make_storylet("a", weight=100, trigger="when story begins"))
        available = catalog.evaluate_available(empty_world, empty_context)
        assert [s.id for s in available] == ["a"]
        assert catalog.select_next(available, empty_context).id == "a"

    def test_missing_id_raises(self, catalog, make_storylet):
        with pytest.raises(StoryletConfigError):
            catalog.add(make_storylet(""))
        with pytest.raises(StoryletConfigError):
            catalog.add(make_storylet("   "))

    def test_remove_is_idempotent(self, catalog, make_storylet):
        catalog.add(make_storylet("a"))
        catalog.remove("a")
        catalog.remove("a")
        catalog.remove("never-added")
        assert "a" not in catalog
        assert catalog.get_by_id("a") is None
        assert catalog.usage_history("a") == []

    def test_get_by_tag_is_case_insensitive(self, catalog, make_storylet):
        catalog.add_many([
            make_storylet("a", tags=["Climax"]),
            make_storylet("b", tags=["action"]),
            make_storylet("c", tags=["climax", "action"]),
        ])
        assert [s.id for s in catalog.get_by_tag("CLIMAX")] == ["a", "c"]

    def test_get_all_keeps_insertion_order(self, catalog, make_storylet):
        catalog.add_many(make_storylet(sid) for sid in ["z", "a", "m"])
        assert [s.id for s in catalog.get_all()] == ["z", "a", "m"]
        assert len(catalog) == 3

    def test_overwrite_keeps_history_and_last_used(self, catalog, make_storylet, clock):
        catalog.add(make_storylet("a", weight=1))
        catalog.mark_used("a")
        used_at = clock()

        catalog.add(make_storylet("a", weight=99))

        assert catalog.get_by_id("a").weight == 99
        assert catalog.get_by_id("a").last_used == used_at
        assert catalog.usage_history("a") == [used_at]

    def test_overwrite_with_own_last_used(self, catalog, make_storylet):
        catalog.add(make_storylet("a"))
        catalog.mark_used("a")
        catalog.add(make_storylet("a", last_used=123.0))
        assert catalog.get_by_id("a").last_used == 123.0


class TestMarkUsed:
    """Test usage bookkeeping."""

    def test_records_timestamp(self, catalog, make_storylet, clock):
        catalog.add(make_storylet("a"))
        catalog.mark_used("a")
        clock.advance(5)
        catalog.mark_used("a")
        assert catalog.usage_history("a") == [clock() - 5000, clock()]
        assert catalog.get_by_id("a").last_used == clock()

    def test_unknown_id_is_noop(self, catalog, make_storylet, caplog):
        catalog.add(make_storylet("a"))
        with caplog.at_level(logging.DEBUG, logger="mythforge.narrative.catalog"):
            catalog.mark_used("ghost")
        assert catalog.usage_history("ghost") == []
        assert catalog.get_by_id("a").last_used is None
        assert catalog.usage_history("a") == []
        assert [s.id for s in catalog.get_all()] == ["a"]
        assert "ghost" in caplog.text

    def test_history_limit(self, clock, make_storylet):
        catalog = StoryletCatalog([make_storylet("a")], clock=clock, history_limit=2)
        for _ in range(4):
            catalog.mark_used("a")
            clock.advance(1)
        assert len(catalog.usage_history("a")) == 2

    def test_history_is_a_copy(self, catalog, make_storylet):
        catalog.add(make_storylet("a"))
        catalog.mark_used("a")
        catalog.usage_history("a").clear()
        assert len(catalog.usage_history("a")) == 1


class TestEvaluateAvailable:
    """Test the catalog-level eligibility sweep."""

    def test_cooldown_with_mock_clock(self, catalog, make_storylet, clock, empty_world, empty_context):
        catalog.add(make_storylet("b", cooldown=600, last_used=clock() - 500_000))
        assert catalog.evaluate_available(empty_world, empty_context) == []
        clock.advance(200)
        assert [s.id for s in catalog.evaluate_available(empty_world, empty_context)] == ["b"]

    def test_recent_storylets_excluded(self, catalog, make_storylet, empty_world):
        catalog.add_many([make_storylet("a"), make_storylet("b")])
        context = NarrativeContext(recent_storylets=["a"])
        assert [s.id for s in catalog.evaluate_available(empty_world, context)] == ["b"]

    def test_prerequisites(self, catalog, make_storylet, empty_context):
        catalog.add(make_storylet("d", prerequisites=["met_king"]))
        assert catalog.evaluate_available(WorldState(), empty_context) == []
        world = WorldState(global_flags={"met_king"})
        assert [s.id for s in catalog.evaluate_available(world, empty_context)] == ["d"]

    def test_logs_reason(self, catalog, make_storylet, empty_world, caplog):
        catalog.add(make_storylet("a"))
        context = NarrativeContext(recent_storylets=["a"])
        with caplog.at_level(logging.DEBUG, logger="mythforge.narrative.catalog"):
            catalog.evaluate_available(empty_world, context)
        assert "a ineligible: recent" in caplog.text

    def test_empty_catalog(self, catalog, empty_world, empty_context):
        assert catalog.evaluate_available(empty_world, empty_context) == []
        assert catalog.select_next([], empty_context) is None


class TestSelection:
    """Test catalog selection with its own usage history."""

    def test_adjusted_weight_uses_history(self, catalog, make_storylet):
        catalog.add(make_storylet("a", weight=10))
        context = NarrativeContext(tension=0.5)
        assert catalog.adjusted_weight(catalog.get_by_id("a"), context) == pytest.approx(10)
        catalog.mark_used("a")
        assert catalog.adjusted_weight(catalog.get_by_id("a"), context) == pytest.approx(8)

    def test_selection_fairness(self, clock, make_storylet):
        catalog = StoryletCatalog(
            [make_storylet("a", weight=3), make_storylet("b", weight=1)],
            clock=clock,
            rng=random.Random(2024),
        )
        context = NarrativeContext(tension=0.5)
        available = catalog.get_all()
        counts = Counter(catalog.select_next(available, context).id for _ in range(10_000))
        assert counts["a"] / 10_000 == pytest.approx(0.75, abs=0.02)

    def test_seeded_catalogs_agree(self, clock, make_storylet):
        def picks(seed):
            catalog = StoryletCatalog(
                [make_storylet(sid, weight=w) for sid, w in [("a", 1), ("b", 1), ("c", 1)]],
                clock=clock,
                rng=random.Random(seed),
            )
            return [catalog.select_next(catalog.get_all(), NarrativeContext()).id for _ in range(20)]

        assert picks(3) == picks(3)
