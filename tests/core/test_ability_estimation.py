"""
Tests for grid-search MLE ability estimation.

Tests cover:
- Level <-> difficulty mapping and round-half-up level projection
- Logistic response probability and Fisher information properties
- Grid search: empty input, extreme patterns, tie resolution, known optima
- Standard error and its zero-information fallback
"""

import math

import pytest

from adaptive_exam.core.cat.ability_estimation import (
    DEFAULT_STANDARD_ERROR,
    THETA_GRID,
    ScoredResponse,
    estimate_ability,
    item_information,
    level_to_difficulty,
    probability_correct,
    standard_error,
    theta_to_level,
)


class TestLevelMapping:
    """Tests for level_to_difficulty and theta_to_level."""

    @pytest.mark.parametrize(
        "level,expected", [(1, -2.0), (2, -1.0), (3, 0.0), (4, 1.0), (5, 2.0)]
    )
    def test_level_to_difficulty(self, level, expected):
        assert level_to_difficulty(level) == pytest.approx(expected)

    @pytest.mark.parametrize("level", [1, 2, 3, 4, 5])
    def test_round_trip(self, level):
        assert theta_to_level(level_to_difficulty(level)) == level

    def test_clamped_low(self):
        assert theta_to_level(-3.0) == 1
        assert theta_to_level(-10.0) == 1

    def test_clamped_high(self):
        assert theta_to_level(3.0) == 5
        assert theta_to_level(10.0) == 5

    def test_rounds_half_up(self):
        """0.5 -> 3.5 -> 4 and -0.5 -> 2.5 -> 3, unlike banker's rounding."""
        assert theta_to_level(0.5) == 4
        assert theta_to_level(-0.5) == 3
        assert theta_to_level(-1.5) == 2

    def test_rounds_to_nearest(self):
        assert theta_to_level(0.4) == 3
        assert theta_to_level(0.6) == 4
        assert theta_to_level(-1.4) == 2


class TestProbabilityCorrect:
    """Tests for the logistic response function."""

    def test_half_at_matching_difficulty(self):
        for b in [-2.0, -0.3, 0.0, 1.7, 2.0]:
            assert probability_correct(b, b) == pytest.approx(0.5)

    def test_strictly_between_zero_and_one(self):
        for theta in [-6.0, -3.0, 0.0, 3.0, 6.0]:
            for b in [-6.0, -2.0, 0.0, 2.0, 6.0]:
                p = probability_correct(theta, b)
                assert 0.0 < p < 1.0

    def test_increases_with_theta(self):
        values = [probability_correct(t, 0.0) for t in [-2.0, -1.0, 0.0, 1.0, 2.0]]
        assert values == sorted(values)
        assert len(set(values)) == len(values)

    def test_known_value(self):
        expected = 1.0 / (1.0 + math.exp(-1.0))
        assert probability_correct(1.0, 0.0) == pytest.approx(expected)

    def test_extreme_logit_does_not_overflow(self):
        assert probability_correct(-800.0, 800.0) == pytest.approx(0.0)
        assert probability_correct(800.0, -800.0) == pytest.approx(1.0)


class TestItemInformation:
    """Tests for Fisher information."""

    def test_max_at_theta_equals_difficulty(self):
        assert item_information(1.0, 1.0) == pytest.approx(0.25)

    def test_decreases_with_distance(self):
        b = 0.5
        distances = [0.0, 0.5, 1.0, 2.0, 3.0]
        above = [item_information(b + d, b) for d in distances]
        below = [item_information(b - d, b) for d in distances]
        assert above == sorted(above, reverse=True)
        assert below == sorted(below, reverse=True)
        assert above == pytest.approx(below)

    def test_discrimination_scales_information(self):
        assert item_information(0.0, 0.0, discrimination=2.0) == pytest.approx(1.0)

    def test_non_negative(self):
        for theta in [-3.0, 0.0, 3.0]:
            for b in [-2.0, 0.0, 2.0]:
                assert item_information(theta, b) >= 0.0


class TestEstimateAbility:
    """Tests for the grid-search maximum likelihood estimate."""

    def test_grid_shape(self):
        assert len(THETA_GRID) == 61
        assert THETA_GRID[0] == -3.0
        assert THETA_GRID[-1] == 3.0
        assert 0.0 in THETA_GRID
        assert 1.0 in THETA_GRID

    def test_no_responses_neutral(self):
        assert estimate_ability([]) == 0.0

    def test_single_correct_hits_upper_bound(self):
        assert estimate_ability([ScoredResponse(True, 0.0)]) == pytest.approx(3.0)

    def test_single_incorrect_hits_lower_bound(self):
        assert estimate_ability([ScoredResponse(False, 0.0)]) == pytest.approx(-3.0)

    def test_all_correct_upper_bound(self):
        responses = [ScoredResponse(True, b) for b in (-2.0, 0.0, 2.0)]
        assert estimate_ability(responses) == pytest.approx(3.0)

    def test_all_incorrect_lower_bound(self):
        responses = [ScoredResponse(False, b) for b in (-2.0, 0.0, 2.0)]
        assert estimate_ability(responses) == pytest.approx(-3.0)

    def test_symmetric_pattern_stays_at_start(self):
        """Correct and incorrect at b=0 peak at theta 0, which never loses a tie."""
        responses = [ScoredResponse(True, 0.0), ScoredResponse(False, 0.0)]
        assert estimate_ability(responses) == 0.0

    def test_known_optimum_between_items(self):
        """Correct at b=0, incorrect at b=2: the likelihood peaks at theta=1."""
        responses = [ScoredResponse(True, 0.0), ScoredResponse(False, 2.0)]
        assert estimate_ability(responses) == pytest.approx(1.0)

    def test_accepts_tuples(self):
        assert estimate_ability([(True, 0.0), (False, 2.0)]) == pytest.approx(1.0)

    def test_result_is_a_grid_point(self):
        responses = [
            ScoredResponse(True, -1.0),
            ScoredResponse(True, 0.0),
            ScoredResponse(False, 1.0),
            ScoredResponse(True, 1.0),
            ScoredResponse(False, 2.0),
        ]
        theta = estimate_ability(responses)
        assert theta in THETA_GRID
        assert -3.0 <= theta <= 3.0

    def test_matches_brute_force_maximum(self):
        responses = [
            ScoredResponse(True, -2.0),
            ScoredResponse(True, -1.0),
            ScoredResponse(False, 0.0),
            ScoredResponse(True, 1.0),
            ScoredResponse(False, 1.0),
        ]

        def log_lik(theta):
            total = 0.0
            for r in responses:
                p = probability_correct(theta, r.difficulty)
                total += math.log(p) if r.correct else math.log(1.0 - p)
            return total

        best = max(THETA_GRID, key=log_lik)
        assert estimate_ability(responses) == pytest.approx(best, abs=1e-9)

    def test_more_correct_never_lowers_estimate(self):
        base = [ScoredResponse(True, 0.0), ScoredResponse(False, 1.0)]
        better = base + [ScoredResponse(True, 1.0)]
        assert estimate_ability(better) >= estimate_ability(base)


class TestStandardError:
    """Tests for standard error of measurement."""

    def test_no_items_returns_default(self):
        assert standard_error(0.0, []) == DEFAULT_STANDARD_ERROR

    def test_single_item_at_theta(self):
        # I = 0.25 -> SE = 1 / sqrt(0.25) = 2
        assert standard_error(0.0, [0.0]) == pytest.approx(2.0)

    def test_four_items_at_theta(self):
        assert standard_error(0.0, [0.0] * 4) == pytest.approx(1.0)

    def test_decreases_with_more_items(self):
        ses = [standard_error(0.5, [0.0] * n) for n in range(1, 6)]
        assert ses == sorted(ses, reverse=True)

    def test_known_value(self):
        p = probability_correct(1.0, 0.0)
        expected = 1.0 / math.sqrt(2 * p * (1 - p))
        assert standard_error(1.0, [0.0, 2.0]) == pytest.approx(expected)
