"""Tests for the eligibility pipeline."""

from mythforge.models import NarrativeContext, WorldState
from mythforge.narrative.eligibility import ineligibility_reason, is_eligible, on_cooldown


class TestCooldown:
    """Test cooldown windows against a mock clock."""

    def test_cooldown_expires(self, make_storylet, clock):
        storylet = make_storylet("b", cooldown=600, last_used=clock() - 500_000)
        assert on_cooldown(storylet, clock())
        assert not is_eligible(storylet, WorldState(), NarrativeContext(), clock())

        clock.advance(200)
        assert not on_cooldown(storylet, clock())
        assert is_eligible(storylet, WorldState(), NarrativeContext(), clock())

    def test_never_used_is_not_on_cooldown(self, make_storylet, clock):
        assert not on_cooldown(make_storylet("b", cooldown=600), clock())

    def test_last_used_at_epoch_zero_still_counts(self, make_storylet):
        storylet = make_storylet("b", cooldown=10, last_used=0.0)
        assert on_cooldown(storylet, 5_000)

    def test_no_cooldown_means_always_ready(self, make_storylet, clock):
        assert not on_cooldown(make_storylet("b", last_used=clock()), clock())


class TestIneligibilityReason:
    """Test each check in pipeline order."""

    def test_eligible(self, make_storylet, empty_world, empty_context, clock):
        assert ineligibility_reason(make_storylet("a"), empty_world, empty_context, clock()) is None

    def test_recent(self, make_storylet, empty_world, clock):
        context = NarrativeContext(recent_storylets=["a"])
        assert ineligibility_reason(make_storylet("a"), empty_world, context, clock()) == "recent"

    def test_trigger(self, make_storylet, empty_context, clock):
        storylet = make_storylet("c", trigger="when tension is high")
        assert ineligibility_reason(storylet, WorldState(tension=0.9), empty_context, clock()) is None
        assert ineligibility_reason(storylet, WorldState(tension=0.5), empty_context, clock()) == "trigger"

    def test_prerequisites(self, make_storylet, empty_context, clock):
        storylet = make_storylet("d", prerequisites=["met_king"])
        assert ineligibility_reason(storylet, WorldState(), empty_context, clock()) == "prerequisites"
        world = WorldState(global_flags={"met_king"})
        assert ineligibility_reason(storylet, world, empty_context, clock()) is None

    def test_excludes(self, make_storylet, empty_context, clock):
        storylet = make_storylet("e", excludes=["king_dead"])
        assert ineligibility_reason(storylet, WorldState(), empty_context, clock()) is None
        world = WorldState(global_flags={"king_dead"})
        assert ineligibility_reason(storylet, world, empty_context, clock()) == "excluded"

    def test_cooldown_checked_before_recency(self, make_storylet, clock):
        storylet = make_storylet("a", cooldown=60, last_used=clock())
        context = NarrativeContext(recent_storylets=["a"])
        assert ineligibility_reason(storylet, WorldState(), context, clock()) == "cooldown"
