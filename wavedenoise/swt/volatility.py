"""
Wavelet volatility: a smoothed, level-weighted RMS of detail coefficients.

Each call folds the weighted sum of per-level RMS values into an exponential
moving average. Finer levels dominate: level l is weighted by
1 / (1 + (l - 1) * level_weight_decay).

One thread writes through ``calculate``; any number of threads may read
``get_current_value``. Input buffers are snapshotted before use, so callers
may keep mutating them while a calculation runs.
"""

import math
import threading
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..config import SMOOTHING_PERIOD, LEVEL_WEIGHT_DECAY, VOLATILITY_WINDOW
from ..exceptions import ConfigurationError
from .result import TransformResult

logger = logging.getLogger(__name__)

MAX_CACHED_LEVELS = 10


def level_weight(level: int, decay: float) -> float:
    """Weight of a 1-based detail level."""
    return 1.0 / (1.0 + (level - 1) * decay)


def _snapshot_level(detail) -> np.ndarray:
    if isinstance(detail, np.ndarray):
        snap = np.array(detail, dtype=float, copy=True).ravel()
    else:
        snap = np.array(list(detail), dtype=float).ravel()
    if not np.all(np.isfinite(snap)):
        np.nan_to_num(snap, copy=False, nan=0.0, posinf=0.0, neginf=0.0)
    return snap


@dataclass(frozen=True)
class VolatilityBands:
    """Bands at center +/- volatility * multiplier, for stop and target placement."""
    center: float
    volatility: float
    multiplier: float

    @property
    def upper(self) -> float:
        return self.center + self.volatility * self.multiplier

    @property
    def lower(self) -> float:
        return self.center - self.volatility * self.multiplier

    def contains(self, price: float) -> bool:
        return self.lower <= price <= self.upper

    def distance_from_center(self, price: float) -> float:
        return abs(price - self.center)

    def relative_position(self, price: float) -> float:
        """Signed position in band widths; 0 when the band has no width."""
        width = self.volatility * self.multiplier
        if width == 0.0:
            return 0.0
        return (price - self.center) / width

    def __str__(self) -> str:
        return (f"VolatilityBands(center={self.center:.2f}, volatility={self.volatility:.4f}, "
                f"bands=[{self.lower:.2f}, {self.upper:.2f}], mult={self.multiplier:.1f})")


class VolatilityEstimator:
    """
    Smoothed wavelet volatility estimator.

    Args:
        smoothing_period: EMA period, alpha = 2 / (period + 1)
        level_weight_decay: Decay of the per-level weights (>= 0)
        window: Trailing number of coefficients per level used for the RMS;
            None uses the whole array
    """

    def __init__(self, smoothing_period: int = SMOOTHING_PERIOD,
                 level_weight_decay: float = LEVEL_WEIGHT_DECAY,
                 window: Optional[int] = VOLATILITY_WINDOW):
        if isinstance(smoothing_period, bool) or not isinstance(smoothing_period, (int, np.integer)) \
                or smoothing_period < 1:
            raise ConfigurationError("smoothing_period", smoothing_period, "integer >= 1", "VolatilityEstimator")
        try:
            decay = float(level_weight_decay)
        except (TypeError, ValueError) as e:
            raise ConfigurationError("level_weight_decay", level_weight_decay, "finite value >= 0",
                                     "VolatilityEstimator") from e
        if not math.isfinite(decay) or decay < 0:
            raise ConfigurationError("level_weight_decay", level_weight_decay, "finite value >= 0",
                                     "VolatilityEstimator")
        if window is not None and (isinstance(window, bool) or not isinstance(window, (int, np.integer))
                                   or window < 1):
            raise ConfigurationError("window", window, "None or integer >= 1", "VolatilityEstimator")

        self.smoothing_period = int(smoothing_period)
        self.level_weight_decay = decay
        self.window = None if window is None else int(window)
        self.alpha = 2.0 / (self.smoothing_period + 1.0)
        self._weights = [level_weight(level, self.level_weight_decay)
                         for level in range(1, MAX_CACHED_LEVELS + 1)]

        self._lock = threading.Lock()
        self._ema = 0.0
        self._count = 0
        logger.debug(f"Initialized VolatilityEstimator with smoothing period: {self.smoothing_period}, "
                     f"decay: {self.level_weight_decay}")

    # ---------------------------------------------------------------
    # Writer
    # ---------------------------------------------------------------

    def calculate(self, details: Sequence[Sequence[float]], levels: int) -> float:
        """
        Fold the weighted RMS of detail levels 1..levels into the EMA.

        Args:
            details: Per-level coefficient arrays, finest first. Copied before use.
            levels: Number of levels to use; capped at len(details)

        Returns:
            The updated EMA (finite, >= 0)

        Raises:
            ConfigurationError: If levels is not positive
        """
        if isinstance(levels, bool) or not isinstance(levels, (int, np.integer)) or levels < 1:
            raise ConfigurationError("levels", levels, "integer >= 1", "VolatilityEstimator")

        snapshot = self._snapshot(details, levels)
        raw = self._weighted_rms(snapshot)

        with self._lock:
            if self._count == 0:
                ema = raw
            else:
                ema = self._ema + self.alpha * (raw - self._ema)
            if not math.isfinite(ema) or ema < 0.0:
                ema = 0.0
            self._count += 1
            self._ema = ema

        logger.debug(f"Volatility calculation: raw={raw:.6f}, smoothed={ema:.6f}, levels={len(snapshot)}")
        return ema

    def calculate_result(self, result: TransformResult, levels: Optional[int] = None) -> float:
        """Calculate from the detail arrays of a TransformResult."""
        if levels is None:
            levels = result.levels
        return self.calculate(result.get_all_details(), levels)

    def reset(self) -> None:
        with self._lock:
            self._ema = 0.0
            self._count = 0
        logger.debug("VolatilityEstimator state reset")

    # ---------------------------------------------------------------
    # Readers
    # ---------------------------------------------------------------

    def get_current_value(self) -> float:
        """Last published EMA; 0.0 before the first calculation."""
        return self._ema

    @property
    def sample_count(self) -> int:
        return self._count

    def create_bands(self, center: float, multiplier: Optional[float] = None) -> VolatilityBands:
        if multiplier is None:
            multiplier = self.estimate_multiplier()
        return VolatilityBands(center, self.get_current_value(), multiplier)

    def estimate_multiplier(self) -> float:
        """Band multiplier for the current volatility regime."""
        current = self.get_current_value()
        if current < 0.001:
            return 2.0
        if current < 0.01:
            return 1.5
        if current > 0.1:
            return 3.0
        return 2.0

    @staticmethod
    def calculate_instantaneous(details: Sequence[Sequence[float]], levels: int,
                                level_weight_decay: float = LEVEL_WEIGHT_DECAY) -> float:
        """Unsmoothed volatility from the most recent coefficient of each level."""
        if levels < 1:
            return 0.0
        total = 0.0
        count = 0
        for level, detail in enumerate(list(details)[:levels], start=1):
            snap = _snapshot_level(detail)
            if snap.size == 0:
                continue
            last = float(snap[-1])
            total += last * last * level_weight(level, level_weight_decay)
            count += 1
        if count == 0:
            return 0.0
        return math.sqrt(total / count)

    # ---------------------------------------------------------------
    # Internals
    # ---------------------------------------------------------------

    def _snapshot(self, details: Sequence[Sequence[float]], levels: int) -> List[np.ndarray]:
        # Copy the container first so a concurrent append/replace cannot change what we index.
        containers = list(details)[:levels]
        return [_snapshot_level(detail) for detail in containers]

    def _weight(self, level: int) -> float:
        if level <= MAX_CACHED_LEVELS:
            return self._weights[level - 1]
        return level_weight(level, self.level_weight_decay)

    def _weighted_rms(self, snapshot: List[np.ndarray]) -> float:
        total = 0.0
        for level, coeffs in enumerate(snapshot, start=1):
            if coeffs.size == 0:
                continue
            if self.window is not None:
                coeffs = coeffs[-self.window:]
            rms = math.sqrt(float(np.mean(coeffs * coeffs)))
            total += rms * self._weight(level)
        return total if math.isfinite(total) else 0.0

    def __repr__(self) -> str:
        return (f"VolatilityEstimator(period={self.smoothing_period}, decay={self.level_weight_decay}, "
                f"window={self.window}, value={self._ema:.4f}, samples={self._count})")
