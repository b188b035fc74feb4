"""
Threshold estimation and coefficient shrinkage for stationary wavelet denoising.

Three per-level threshold rules are provided:
  - Universal (VisuShrink): robust MAD noise estimate times sqrt(2 ln n).
  - BayesShrink: noise variance over the estimated signal standard deviation,
    assuming Laplacian-distributed coefficients.
  - SURE: the threshold minimising Stein's Unbiased Risk Estimate for soft
    shrinkage over the sorted coefficient magnitudes.

Rules are a tagged variant (``ThresholdRule``) dispatched through the pure
function ``threshold(rule, detail)``. Nothing in this module mutates its input
except ``shrink_in_place``, which ``TransformResult.apply_shrinkage`` owns.
"""

import math
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Callable, List, Optional, Sequence, TYPE_CHECKING

import numpy as np

from ..config import (
    MAD_TO_SIGMA, MIN_SIGMA, BAYES_LEVEL_FACTOR, LOW_SNR, HIGH_SNR, AUTO_SELECT_MIN_LENGTH
)
from ..exceptions import ConfigurationError

if TYPE_CHECKING:  # pragma: no cover
    from .result import TransformResult

logger = logging.getLogger(__name__)


class ThresholdRule(Enum):
    UNIVERSAL = "Universal"
    BAYES = "BayesShrink"
    SURE = "SURE"

    @property
    def display_name(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, name: str) -> "ThresholdRule":
        """Parse a rule name (display or enum name, any case); unknown names fall back to UNIVERSAL."""
        key = (name or "").strip().lower()
        for rule in cls:
            if key in (rule.name.lower(), rule.value.lower()):
                return rule
        logger.warning(f"Unknown threshold rule '{name}', using Universal")
        return cls.UNIVERSAL


class ShrinkageMode(Enum):
    SOFT = "Soft"
    HARD = "Hard"

    @property
    def display_name(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, name: str) -> "ShrinkageMode":
        """Parse a mode name (any case); unknown names fall back to SOFT."""
        key = (name or "").strip().lower()
        for mode in cls:
            if key == mode.name.lower():
                return mode
        logger.warning(f"Unknown shrinkage mode '{name}', using Soft")
        return cls.SOFT


@dataclass(frozen=True)
class ThresholdSpec:
    """One level's shrinkage instruction, consumed once by ``TransformResult.apply``."""
    level: int
    value: float
    mode: ShrinkageMode = ShrinkageMode.SOFT

    @property
    def soft(self) -> bool:
        return self.mode is ShrinkageMode.SOFT


# =============================
# Noise estimation
# =============================

def _as_coefficients(detail: Sequence[float]) -> np.ndarray:
    return np.asarray(detail, dtype=float).ravel()


def estimate_noise_sigma(detail: Sequence[float]) -> float:
    """
    Robust noise standard deviation from the median absolute coefficient.

    sigma = median(|d|) / 0.6745, bounded below by MIN_SIGMA and above by
    twice the sample standard deviation (so constant input gives 0).
    """
    d = _as_coefficients(detail)
    if d.size == 0:
        return 0.0
    sigma = float(np.median(np.abs(d))) / MAD_TO_SIGMA
    sigma = max(sigma, MIN_SIGMA)
    sigma = min(sigma, 2.0 * float(np.std(d)))
    return sigma


# =============================
# Threshold rules
# =============================

def universal_threshold(detail: Sequence[float]) -> float:
    """Universal threshold sigma * sqrt(2 ln n); 0 for empty or degenerate input."""
    d = _as_coefficients(detail)
    n = d.size
    if n < 2:
        return 0.0
    sigma = estimate_noise_sigma(d)
    thr = sigma * math.sqrt(2.0 * math.log(n))
    logger.debug(f"Universal threshold: sigma={sigma:.4f}, n={n}, threshold={thr:.4f}")
    return thr


def bayes_shrink_threshold(detail: Sequence[float], level: int = 1) -> float:
    """
    BayesShrink threshold sigma^2 / sigma_x.

    Args:
        detail: Detail coefficients of one level
        level: 1-based level; coarser levels are scaled by 1 + 0.1 * (level - 1)

    Returns:
        Threshold, 0 when the estimated signal variance is 0
    """
    d = _as_coefficients(detail)
    if d.size == 0:
        return 0.0
    sigma = estimate_noise_sigma(d)
    signal_var = max(0.0, float(np.var(d)) - sigma * sigma)
    if signal_var <= 0.0:
        return 0.0
    thr = (sigma * sigma) / math.sqrt(signal_var)
    thr *= 1.0 + BAYES_LEVEL_FACTOR * (level - 1)
    logger.debug(f"BayesShrink level {level}: sigma={sigma:.4f}, sigma_x2={signal_var:.4f}, threshold={thr:.4f}")
    return thr


def sure_threshold(detail: Sequence[float]) -> float:
    """
    SURE threshold for soft shrinkage.

    Coefficients are normalised by the noise estimate; for each candidate
    t = |x|_(k) the risk is n - 2k + sum_{i<=k} x_(i)^2 + (n - k) t^2.
    The minimiser is returned in coefficient units.
    """
    d = _as_coefficients(detail)
    n = d.size
    if n == 0:
        return 0.0
    sigma = estimate_noise_sigma(d)
    if sigma <= 0.0:
        return 0.0

    sq = np.sort(np.abs(d) / sigma) ** 2
    k = np.arange(1, n + 1)
    risks = (n - 2.0 * k + np.cumsum(sq) + (n - k) * sq) / n
    best = int(np.argmin(risks))
    thr = float(np.sqrt(sq[best])) * sigma
    logger.debug(f"SURE threshold: best={thr:.4f}, risk={risks[best]:.4f}")
    return thr


_RULES: Dict[ThresholdRule, Callable[[np.ndarray, int], float]] = {
    ThresholdRule.UNIVERSAL: lambda d, level: universal_threshold(d),
    ThresholdRule.BAYES: bayes_shrink_threshold,
    ThresholdRule.SURE: lambda d, level: sure_threshold(d),
}


def threshold(rule: ThresholdRule, detail: Sequence[float], level: int = 1) -> float:
    """Threshold for one detail level under ``rule``."""
    return _RULES[rule](_as_coefficients(detail), level)


def auto_select_rule(detail: Sequence[float]) -> ThresholdRule:
    """Pick a rule from the level's signal-to-noise ratio."""
    d = _as_coefficients(detail)
    if d.size < AUTO_SELECT_MIN_LENGTH:
        return ThresholdRule.UNIVERSAL
    sigma = estimate_noise_sigma(d)
    snr = float(np.std(d)) / max(sigma, MIN_SIGMA)
    if snr < LOW_SNR:
        return ThresholdRule.UNIVERSAL
    if snr > HIGH_SNR:
        return ThresholdRule.SURE
    return ThresholdRule.BAYES


# =============================
# Shrinkage
# =============================

def _check_threshold(value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value < 0.0:
        raise ConfigurationError("threshold", value, "finite value >= 0", "Shrinkage")
    return value


def apply_threshold(coeffs: Sequence[float], value: float, mode: ShrinkageMode) -> np.ndarray:
    """Return a shrunk copy of ``coeffs``."""
    out = np.array(coeffs, dtype=float, copy=True)
    shrink_in_place(out, value, mode)
    return out


def shrink_in_place(coeffs: np.ndarray, value: float, mode: ShrinkageMode) -> None:
    """
    Shrink a float array in place.

    Hard: |c| <= t -> 0, others unchanged.
    Soft: sign(c) * max(|c| - t, 0).
    """
    value = _check_threshold(value)
    if mode is ShrinkageMode.HARD:
        coeffs[np.abs(coeffs) <= value] = 0.0
        return
    magnitude = np.abs(coeffs)
    np.subtract(magnitude, value, out=magnitude)
    np.maximum(magnitude, 0.0, out=magnitude)
    np.copysign(magnitude, coeffs, out=coeffs)


def plan_shrinkage(result: "TransformResult", rule: Optional[ThresholdRule] = ThresholdRule.UNIVERSAL,
                   mode: ShrinkageMode = ShrinkageMode.SOFT,
                   levels: Optional[Sequence[int]] = None) -> List[ThresholdSpec]:
    """
    Compute one ThresholdSpec per level of a transform result.

    Args:
        result: Decomposition to threshold (read only)
        rule: Threshold rule; None selects a rule per level from its SNR
        mode: Hard or soft shrinkage
        levels: 1-based levels to plan; defaults to every level

    Returns:
        List of ThresholdSpec in level order
    """
    if levels is None:
        levels = range(1, result.levels + 1)
    specs = []
    for level in levels:
        detail = result.get_detail(level)
        level_rule = rule if rule is not None else auto_select_rule(detail)
        specs.append(ThresholdSpec(level, threshold(level_rule, detail, level), mode))
    return specs
