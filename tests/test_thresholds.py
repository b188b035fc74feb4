"""
Tests for threshold rules and shrinkage.
"""

import math

import numpy as np
import pytest

from wavedenoise.exceptions import ConfigurationError
from wavedenoise.swt.thresholds import (
    ThresholdRule, ShrinkageMode, ThresholdSpec,
    estimate_noise_sigma, universal_threshold, bayes_shrink_threshold, sure_threshold,
    threshold, auto_select_rule, apply_threshold, shrink_in_place, plan_shrinkage
)


@pytest.fixture
def spiky(rng):
    """Unit noise with 32 large spikes."""
    d = rng.standard_normal(512)
    d[::16] += 20.0
    return d


# ------------------------------------------------------------------
# Tests: Degenerate input
# ------------------------------------------------------------------

class TestDegenerateInput:
    @pytest.mark.parametrize("rule", list(ThresholdRule))
    def test_all_zero(self, rule):
        assert threshold(rule, np.zeros(64)) == 0.0

    @pytest.mark.parametrize("rule", list(ThresholdRule))
    def test_constant(self, rule):
        assert threshold(rule, np.full(64, 5.0)) == 0.0

    @pytest.mark.parametrize("rule", list(ThresholdRule))
    def test_empty(self, rule):
        assert threshold(rule, np.array([])) == 0.0

    def test_noise_sigma_of_constant_is_zero(self):
        assert estimate_noise_sigma(np.full(10, -3.0)) == 0.0


# ------------------------------------------------------------------
# Tests: Universal
# ------------------------------------------------------------------

class TestUniversal:
    def test_known_value(self):
        d = np.array([1.0, -1.0] * 8)
        expected = (1.0 / 0.6745) * math.sqrt(2.0 * math.log(16))
        assert universal_threshold(d) == pytest.approx(expected)

    def test_gaussian_noise_scale(self, rng):
        d = rng.standard_normal(1024)
        thr = universal_threshold(d)
        # sigma ~ 1, sqrt(2 ln 1024) ~ 3.72
        assert 3.0 < thr < 4.5

    def test_does_not_mutate(self, rng):
        d = rng.standard_normal(64)
        before = d.copy()
        universal_threshold(d)
        np.testing.assert_array_equal(d, before)


# ------------------------------------------------------------------
# Tests: BayesShrink
# ------------------------------------------------------------------

class TestBayesShrink:
    def test_below_universal_when_signal_present(self, spiky):
        bayes = bayes_shrink_threshold(spiky)
        assert 0.0 < bayes < universal_threshold(spiky)

    def test_level_scaling(self, spiky):
        base = bayes_shrink_threshold(spiky, level=1)
        assert bayes_shrink_threshold(spiky, level=3) == pytest.approx(base * 1.2)

    def test_zero_signal_variance_gives_zero(self):
        # var = 1 < sigma^2 = (1 / 0.6745)^2
        d = np.array([1.0, -1.0] * 8)
        assert bayes_shrink_threshold(d) == 0.0


# ------------------------------------------------------------------
# Tests: SURE
# ------------------------------------------------------------------

def _naive_sure(d):
    sigma = estimate_noise_sigma(d)
    x = np.abs(d) / sigma
    n = x.size
    best_t, best_risk = None, np.inf
    for t in np.sort(x):
        risk = n - 2.0 * np.sum(x <= t) + np.sum(np.minimum(x, t) ** 2)
        if risk < best_risk:
            best_t, best_risk = t, risk
    return best_t * sigma


class TestSure:
    def test_matches_brute_force(self, spiky):
        assert sure_threshold(spiky) == pytest.approx(_naive_sure(spiky))

    def test_matches_brute_force_pure_noise(self, rng):
        d = rng.standard_normal(200)
        assert sure_threshold(d) == pytest.approx(_naive_sure(d))

    def test_within_coefficient_range(self, spiky):
        thr = sure_threshold(spiky)
        assert 0.0 <= thr <= np.max(np.abs(spiky))


# ------------------------------------------------------------------
# Tests: Dispatch and parsing
# ------------------------------------------------------------------

class TestDispatch:
    def test_threshold_dispatch(self, spiky):
        assert threshold(ThresholdRule.UNIVERSAL, spiky) == universal_threshold(spiky)
        assert threshold(ThresholdRule.BAYES, spiky, level=2) == bayes_shrink_threshold(spiky, 2)
        assert threshold(ThresholdRule.SURE, spiky) == sure_threshold(spiky)

    @pytest.mark.parametrize("name,expected", [
        ("universal", ThresholdRule.UNIVERSAL),
        ("BAYES", ThresholdRule.BAYES),
        ("BayesShrink", ThresholdRule.BAYES),
        ("sure", ThresholdRule.SURE),
        ("garbage", ThresholdRule.UNIVERSAL),
    ])
    def test_rule_from_string(self, name, expected):
        assert ThresholdRule.from_string(name) is expected

    @pytest.mark.parametrize("name,expected", [
        ("soft", ShrinkageMode.SOFT),
        ("HARD", ShrinkageMode.HARD),
        ("", ShrinkageMode.SOFT),
    ])
    def test_mode_from_string(self, name, expected):
        assert ShrinkageMode.from_string(name) is expected

    def test_auto_select_short_input(self, spiky):
        assert auto_select_rule(spiky[:16]) is ThresholdRule.UNIVERSAL

    def test_auto_select_pure_noise(self, rng):
        assert auto_select_rule(rng.standard_normal(256)) is ThresholdRule.UNIVERSAL

    def test_auto_select_high_snr(self, spiky):
        assert auto_select_rule(spiky) is ThresholdRule.SURE


# ------------------------------------------------------------------
# Tests: Shrinkage
# ------------------------------------------------------------------

class TestShrinkage:
    coeffs = np.array([-3.0, -1.0, -0.5, 0.0, 0.5, 1.0, 3.0])

    def test_hard(self):
        out = apply_threshold(self.coeffs, 1.0, ShrinkageMode.HARD)
        np.testing.assert_array_equal(out, [-3.0, 0.0, 0.0, 0.0, 0.0, 0.0, 3.0])

    def test_soft(self):
        out = apply_threshold(self.coeffs, 1.0, ShrinkageMode.SOFT)
        np.testing.assert_array_equal(out, [-2.0, 0.0, 0.0, 0.0, 0.0, 0.0, 2.0])

    def test_apply_threshold_copies(self):
        before = self.coeffs.copy()
        apply_threshold(self.coeffs, 1.0, ShrinkageMode.SOFT)
        np.testing.assert_array_equal(self.coeffs, before)

    def test_shrink_in_place(self):
        c = self.coeffs.copy()
        shrink_in_place(c, 0.5, ShrinkageMode.SOFT)
        np.testing.assert_array_equal(c, [-2.5, -0.5, 0.0, 0.0, 0.0, 0.5, 2.5])

    def test_zero_threshold_soft_is_identity(self):
        out = apply_threshold(self.coeffs, 0.0, ShrinkageMode.SOFT)
        np.testing.assert_array_equal(out, self.coeffs)

    @pytest.mark.parametrize("bad", [-0.1, float("nan"), float("inf")])
    def test_invalid_threshold(self, bad):
        with pytest.raises(ConfigurationError):
            apply_threshold(self.coeffs, bad, ShrinkageMode.HARD)


class TestPlanShrinkage:
    def test_one_spec_per_level(self, adapter, noisy_sine):
        _, noisy = noisy_sine
        result = adapter.transform(noisy, 3)
        specs = plan_shrinkage(result, ThresholdRule.UNIVERSAL, ShrinkageMode.HARD)
        assert [s.level for s in specs] == [1, 2, 3]
        assert all(isinstance(s, ThresholdSpec) and not s.soft for s in specs)
        assert specs[0].value == pytest.approx(universal_threshold(result.get_detail(1)))

    def test_subset_of_levels(self, adapter, noisy_sine):
        _, noisy = noisy_sine
        result = adapter.transform(noisy, 3)
        specs = plan_shrinkage(result, ThresholdRule.SURE, ShrinkageMode.SOFT, levels=[2])
        assert len(specs) == 1 and specs[0].level == 2 and specs[0].soft

    def test_auto_rule(self, adapter, noisy_sine):
        _, noisy = noisy_sine
        result = adapter.transform(noisy, 3)
        specs = plan_shrinkage(result, None)
        for spec in specs:
            detail = result.get_detail(spec.level)
            expected = threshold(auto_select_rule(detail), detail, spec.level)
            assert spec.value == pytest.approx(expected)

    def test_plan_does_not_mutate(self, adapter, noisy_sine):
        _, noisy = noisy_sine
        result = adapter.transform(noisy, 3)
        before = np.array(result.get_detail(1))
        plan_shrinkage(result)
        np.testing.assert_array_equal(result.get_detail(1), before)
