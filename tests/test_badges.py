"""
tests/test_badges.py — Badge Tier Evaluation & Catalogue
=========================================================
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from harmonic.engine.badges import (
    BADGE_CATALOG,
    GIVE,
    MAX_TIER,
    RECEIVE,
    STREAK,
    TIER_THRESHOLDS,
    badge_code,
    badge_icon,
    count_streak,
    describe_requirement,
    earned_codes,
    evaluate_tier,
    next_threshold,
    progress_from_points,
    threshold_for,
    tier_stars_from_progress,
)
from harmonic.exceptions import InvalidArgument


class TestEvaluateTier:
    @pytest.mark.parametrize("count,tier", [
        (1, 1), (4, 1), (5, 2), (9, 2), (10, 3), (19, 3),
        (20, 4), (39, 4), (40, 5), (99, 5), (100, 6), (1000, 6),
    ])
    def test_give_ladder(self, count, tier):
        result = evaluate_tier(GIVE, count)
        assert result.earned is True
        assert result.tier == tier

    def test_zero_is_unearned(self):
        result = evaluate_tier(GIVE, 0)
        assert result.to_dict() == {"track": "give", "tier": None, "earned": False}

    def test_receive_uses_same_thresholds(self):
        for k, threshold in enumerate(TIER_THRESHOLDS, start=1):
            assert evaluate_tier(RECEIVE, threshold).tier == k
            assert evaluate_tier(RECEIVE, threshold - 1).tier == (k - 1 or None)

    def test_tier_is_monotone_in_count(self):
        tiers = [evaluate_tier(GIVE, n).tier or 0 for n in range(0, 150)]
        assert tiers == sorted(tiers)

    @pytest.mark.parametrize("count,earned", [(0, False), (6, False), (7, True), (30, True)])
    def test_streak_single_tier(self, count, earned):
        result = evaluate_tier(STREAK, count)
        assert result.earned is earned
        assert result.tier == (1 if earned else None)

    def test_unknown_track_rejected(self):
        with pytest.raises(InvalidArgument):
            evaluate_tier("hoard", 3)

    @pytest.mark.parametrize("count", [-1, 2.5, "3", True, None])
    def test_bad_count_rejected(self, count):
        with pytest.raises(InvalidArgument):
            evaluate_tier(GIVE, count)

    def test_invalid_argument_is_a_value_error(self):
        with pytest.raises(ValueError):
            evaluate_tier(GIVE, -1)


class TestThresholds:
    def test_threshold_for_each_tier(self):
        assert [threshold_for(GIVE, t) for t in range(1, MAX_TIER + 1)] == [1, 5, 10, 20, 40, 100]
        assert threshold_for(STREAK) == 7

    @pytest.mark.parametrize("tier", [0, 7, -1])
    def test_threshold_for_out_of_range(self, tier):
        with pytest.raises(InvalidArgument):
            threshold_for(GIVE, tier)

    @pytest.mark.parametrize("count,expected", [(0, 1), (1, 5), (7, 10), (40, 100), (100, None), (500, None)])
    def test_next_threshold(self, count, expected):
        assert next_threshold(GIVE, count) == expected

    def test_next_threshold_streak(self):
        assert next_threshold(STREAK, 3) == 7
        assert next_threshold(STREAK, 7) is None


class TestDescribeRequirement:
    def test_first_tiers(self):
        assert describe_requirement(GIVE, 1) == "Give your first gift"
        assert describe_requirement(RECEIVE, 1) == "Receive your first gift"

    def test_higher_tiers(self):
        assert describe_requirement(GIVE, 3) == "Give 10 gifts"
        assert describe_requirement(GIVE, 6) == "Give 100 gifts"
        assert describe_requirement(RECEIVE, 2) == "Receive 5 receivings"

    def test_streak(self):
        assert describe_requirement(STREAK) == "Participate 7 days in a row"
        assert describe_requirement(STREAK, 1) == "Participate 7 days in a row"

    def test_streak_has_no_second_tier(self):
        with pytest.raises(InvalidArgument):
            describe_requirement(STREAK, 2)

    def test_tiered_track_needs_tier(self):
        with pytest.raises(InvalidArgument):
            describe_requirement(GIVE)

    def test_unknown_track(self):
        with pytest.raises(InvalidArgument):
            describe_requirement("lurk", 1)


class TestCatalog:
    def test_thirteen_badges(self):
        assert len(BADGE_CATALOG) == 13
        assert len({b.code for b in BADGE_CATALOG}) == 13

    def test_codes(self):
        codes = [b.code for b in BADGE_CATALOG]
        assert codes[:6] == [f"give_t{t}" for t in range(1, 7)]
        assert codes[6:12] == [f"recv_t{t}" for t in range(1, 7)]
        assert codes[12] == "streak_7"

    def test_entries_describe_themselves(self):
        badge = next(b for b in BADGE_CATALOG if b.code == "recv_t4")
        assert badge.to_dict() == {
            "code": "recv_t4",
            "track": "receive",
            "tier": 4,
            "title": "Receive • Tier 4",
            "icon": "/badges/receive_bowl_t4.png",
            "how_to_earn": "Receive 20 receivings",
            "threshold": 20,
        }

    def test_badge_code_and_icon(self):
        assert badge_code(GIVE, 3) == "give_t3"
        assert badge_code(STREAK) == "streak_7"
        assert badge_icon(GIVE, 99) == "/badges/give_rays_t6.png"
        assert badge_icon(RECEIVE, 0) == "/badges/receive_bowl_t1.png"

    def test_earned_codes_include_lower_tiers(self):
        codes = earned_codes({GIVE: 12, RECEIVE: 1, STREAK: 2})
        assert codes == ["give_t1", "give_t2", "give_t3", "recv_t1"]

    def test_earned_codes_streak(self):
        assert earned_codes({STREAK: 7}) == ["streak_7"]


class TestTierStars:
    @pytest.mark.parametrize("progress,tier,stars", [
        (0.0, 1, 1),
        (-3.0, 1, 1),
        (float("nan"), 1, 1),
        (0.04, 1, 2),
        (0.5, 4, 1),
        (0.99, 6, 5),
        (1.0, 6, 5),
        (7.0, 6, 5),
    ])
    def test_ladder(self, progress, tier, stars):
        level = tier_stars_from_progress(progress)
        assert (level.tier, level.stars) == (tier, stars)

    def test_progress_from_points(self):
        assert progress_from_points(0) == 0.0
        assert progress_from_points(1500) == 0.5
        assert progress_from_points(9000) == 1.0
        assert progress_from_points(50, max_points=100) == 0.5

    def test_progress_requires_positive_max(self):
        with pytest.raises(InvalidArgument):
            progress_from_points(10, max_points=0)


class TestCountStreak:
    TODAY = date(2026, 3, 15)

    def _days(self, *offsets):
        return {self.TODAY - timedelta(days=o) for o in offsets}

    def test_empty(self):
        assert count_streak(set(), self.TODAY) == 0

    def test_quiet_today_breaks_streak(self):
        assert count_streak(self._days(1, 2, 3), self.TODAY) == 0

    def test_consecutive_days(self):
        assert count_streak(self._days(*range(7)), self.TODAY) == 7

    def test_gap_stops_count(self):
        assert count_streak(self._days(0, 1, 2, 4, 5), self.TODAY) == 3

    def test_lookback_caps_streak(self):
        assert count_streak(self._days(*range(100)), self.TODAY) == 60
        assert count_streak(self._days(*range(10)), self.TODAY, lookback=5) == 5
