"""Tests for storylet scoring and weighted selection."""

import random
from collections import Counter

import pytest

from mythforge.models import NarrativeContext
from mythforge.narrative.weighting import (
    RECENCY_WINDOW_MS,
    adjusted_weight,
    rank_candidates,
    recency_penalty,
    recent_usage_count,
    select_weighted,
)

NOW = 10_000_000_000.0


class TestAdjustedWeight:
    """Test each multiplier and the clamp."""

    def test_climax_doubles_at_high_tension(self, make_storylet):
        context = NarrativeContext(tension=0.8)
        assert adjusted_weight(make_storylet("e", weight=10, tags=["climax"]), context) == pytest.approx(20)
        assert adjusted_weight(make_storylet("f", weight=10), context) == pytest.approx(10)

    def test_buildup_at_low_tension(self, make_storylet):
        context = NarrativeContext(tension=0.1)
        assert adjusted_weight(make_storylet("a", weight=10, tags=["buildup"]), context) == pytest.approx(13)

    def test_pacing(self, make_storylet):
        action = make_storylet("a", weight=10, tags=["action"])
        quiet = make_storylet("b", weight=10, tags=["contemplative"])
        fast = NarrativeContext(pacing="fast", tension=0.5)
        slow = NarrativeContext(pacing="slow", tension=0.5)
        assert adjusted_weight(action, fast) == pytest.approx(15)
        assert adjusted_weight(quiet, fast) == pytest.approx(10)
        assert adjusted_weight(quiet, slow) == pytest.approx(15)

    def test_goal_is_substring_of_tag(self, make_storylet):
        context = NarrativeContext(tension=0.5, narrative_goals=["Character"])
        storylet = make_storylet("a", weight=10, tags=["character-development"])
        assert adjusted_weight(storylet, context) == pytest.approx(14)

    def test_multipliers_compose(self, make_storylet):
        context = NarrativeContext(pacing="fast", tension=0.9, narrative_goals=["climax"])
        storylet = make_storylet("a", weight=10, tags=["action", "climax"])
        assert adjusted_weight(storylet, context) == pytest.approx(10 * 1.5 * 2.0 * 1.4)

    def test_recency_penalty_applied(self, make_storylet):
        context = NarrativeContext(tension=0.5)
        storylet = make_storylet("a", weight=10)
        history = [NOW - 1000, NOW - 2000]
        assert adjusted_weight(storylet, context, history, NOW) == pytest.approx(6)

    def test_old_usage_outside_window_ignored(self, make_storylet):
        context = NarrativeContext(tension=0.5)
        history = [NOW - RECENCY_WINDOW_MS - 1]
        assert adjusted_weight(make_storylet("a", weight=10), context, history, NOW) == pytest.approx(10)

    def test_negative_weight_clamped(self, make_storylet):
        assert adjusted_weight(make_storylet("a", weight=-5), NarrativeContext()) == 0.0


class TestRecency:
    """Test the recency helpers."""

    def test_penalty_is_monotonic_with_floor(self):
        penalties = [recency_penalty(n) for n in range(10)]
        assert penalties == sorted(penalties, reverse=True)
        assert penalties[0] == 1
        assert min(penalties) == pytest.approx(0.1)

    def test_weight_never_increases_with_more_uses(self, make_storylet):
        context = NarrativeContext(tension=0.5)
        storylet = make_storylet("a", weight=50)
        weights = [
            adjusted_weight(storylet, context, [NOW - i for i in range(n)], NOW)
            for n in range(8)
        ]
        assert all(a >= b for a, b in zip(weights, weights[1:]))
        assert weights[5] < weights[1]

    def test_recent_usage_count(self):
        history = [NOW - 10, NOW - RECENCY_WINDOW_MS, NOW - RECENCY_WINDOW_MS * 2]
        assert recent_usage_count(history, NOW) == 1


class TestSelectWeighted:
    """Test weighted-random selection."""

    def test_empty_returns_none(self):
        assert select_weighted([], lambda s: 1.0, random.Random(1)) is None

    def test_single_candidate(self, make_storylet):
        only = make_storylet("a", weight=100)
        assert select_weighted([only], lambda s: s.weight, random.Random(1)) is only

    def test_all_zero_returns_first_ranked(self, make_storylet):
        a, b = make_storylet("a", weight=0), make_storylet("b", weight=0)
        assert select_weighted([a, b], lambda s: 0.0, random.Random(1)) is a

    def test_zero_weight_never_wins(self, make_storylet):
        heavy, zero = make_storylet("heavy", weight=5), make_storylet("zero", weight=0)
        rng = random.Random(7)
        picks = {select_weighted([zero, heavy], lambda s: s.weight, rng).id for _ in range(1000)}
        assert picks == {"heavy"}

    def test_three_to_one_fairness(self, make_storylet):
        a, b = make_storylet("a", weight=3), make_storylet("b", weight=1)
        rng = random.Random(12345)
        counts = Counter(select_weighted([a, b], lambda s: s.weight, rng).id for _ in range(10_000))
        assert counts["a"] / 10_000 == pytest.approx(0.75, abs=0.02)

    def test_climax_favoured_two_to_one(self, make_storylet):
        e = make_storylet("e", weight=10, tags=["climax"])
        f = make_storylet("f", weight=10)
        context = NarrativeContext(tension=0.8)
        rng = random.Random(99)
        counts = Counter(
            select_weighted([e, f], lambda s: adjusted_weight(s, context), rng).id for _ in range(10_000)
        )
        assert counts["e"] / counts["f"] == pytest.approx(2.0, rel=0.1)

    def test_same_seed_same_sequence(self, make_storylet):
        candidates = [make_storylet(sid, weight=w) for sid, w in [("a", 1), ("b", 2), ("c", 3)]]
        first = [select_weighted(candidates, lambda s: s.weight, random.Random(5)).id for _ in range(3)]
        second = [select_weighted(candidates, lambda s: s.weight, random.Random(5)).id for _ in range(3)]
        assert first == second


class TestRankCandidates:
    """Test ordering used for the cumulative sums."""

    def test_ties_keep_input_order(self, make_storylet):
        a, b, c = make_storylet("a", weight=1), make_storylet("b", weight=2), make_storylet("c", weight=1)
        ranked = rank_candidates([a, b, c], lambda s: s.weight)
        assert [s.id for s, _ in ranked] == ["b", "a", "c"]
