"""
Stationary wavelet transform adapter.

Maximal overlap (undecimated) wavelet transform with periodic boundaries,
computed with the a-trous algorithm in numpy. Filters come from PyWavelets
(``pywt.Wavelet``), scaled by 1/sqrt(2) and upsampled by 2**(j-1) at level j.

Every coefficient array has the length of the input window, for any window
length, the transform preserves energy, and a circular shift of the input
circularly shifts every coefficient array.
"""

import math
import logging
from typing import Optional, Sequence

import numpy as np
import pywt

from ..config import WAVELET_TYPE
from ..exceptions import ConfigurationError
from .result import TransformResult
from .thresholds import ThresholdRule, ShrinkageMode, plan_shrinkage

logger = logging.getLogger(__name__)


def _circular_filter(x: np.ndarray, taps: np.ndarray, stride: int) -> np.ndarray:
    """out[t] = sum_l taps[l] * x[(t - stride * l) mod n]."""
    out = np.zeros_like(x)
    for l, c in enumerate(taps):
        out += c * np.roll(x, stride * l)
    return out


class TransformAdapter:
    """
    Forward / inverse stationary wavelet transform for one wavelet family.

    Stateless apart from the filters; one adapter may serve any number of
    windows and threads. Only orthogonal wavelets (haar, db, sym, coif, ...)
    are accepted, since the inverse is the adjoint of the forward transform.
    """

    def __init__(self, wavelet: str = WAVELET_TYPE):
        try:
            self._wavelet = pywt.Wavelet(wavelet)
        except (ValueError, TypeError) as e:
            raise ConfigurationError("wavelet", wavelet, "discrete wavelet name known to PyWavelets",
                                     "TransformAdapter") from e
        if not self._wavelet.orthogonal:
            raise ConfigurationError("wavelet", wavelet, "orthogonal wavelet (haar, db, sym, coif)",
                                     "TransformAdapter")

        scale = 1.0 / math.sqrt(2.0)
        self._dec_lo = np.asarray(self._wavelet.dec_lo, dtype=float) * scale
        self._dec_hi = np.asarray(self._wavelet.dec_hi, dtype=float) * scale
        self._rec_lo = np.asarray(self._wavelet.rec_lo, dtype=float) * scale
        self._rec_hi = np.asarray(self._wavelet.rec_hi, dtype=float) * scale
        logger.info(f"MODWT adapter initialized with wavelet: {self._wavelet.name}")

    @property
    def wavelet(self) -> str:
        return self._wavelet.name

    @property
    def filter_length(self) -> int:
        return int(self._wavelet.dec_len)

    def max_level(self, n: int) -> int:
        """Deepest decomposition a window of ``n`` samples supports (0 if none)."""
        if n < max(2, self.filter_length):
            return 0
        return int(n).bit_length() - 1  # largest j with 2**j <= n

    # ---------------------------------------------------------------
    # Forward / inverse
    # ---------------------------------------------------------------

    def transform(self, samples: Sequence[float], levels: int) -> TransformResult:
        """
        Decompose a window into an approximation and ``levels`` detail arrays.

        Args:
            samples: 1-D finite numeric window of length n
            levels: Decomposition depth (>= 1)

        Returns:
            TransformResult owning freshly allocated coefficient arrays

        Raises:
            ConfigurationError: If levels is not positive, the window is
                shorter than the filter or than 2**levels, or samples are not
                finite
        """
        x = self._prepare_samples(samples)
        self._check_levels(x.size, levels)

        approximation = x
        details = []
        for level in range(1, levels + 1):
            stride = 2 ** (level - 1)
            details.append(_circular_filter(approximation, self._dec_hi, stride))
            approximation = _circular_filter(approximation, self._dec_lo, stride)

        logger.debug(f"MODWT completed for {levels} levels, n={x.size}")
        return TransformResult(approximation, details, adapter=self)

    def synthesize(self, approximation: np.ndarray, details: Sequence[np.ndarray],
                   active_levels: int) -> np.ndarray:
        """
        Inverse transform using only detail levels 1..active_levels.

        Inactive levels contribute nothing and are skipped, so the
        coefficient set is never copied or modified.

        Args:
            approximation: Approximation coefficients (length n)
            details: Detail arrays, finest first
            active_levels: Number of finest detail levels to include

        Returns:
            New array of length n
        """
        levels = len(details)
        if not 0 <= active_levels <= levels:
            raise ConfigurationError("active_levels", active_levels, f"value in [0, {levels}]",
                                     "TransformAdapter")

        out = np.array(approximation, dtype=float)
        for level in range(levels, 0, -1):
            stride = 2 ** (level - 1)
            smooth = _circular_filter(out, self._rec_lo, stride)
            if level <= active_levels:
                smooth += _circular_filter(np.asarray(details[level - 1], dtype=float), self._rec_hi, stride)
            # rec filters are the time-reversed dec filters; advance by the filter span
            out = np.roll(smooth, -stride * (self.filter_length - 1))
        return out

    # ---------------------------------------------------------------
    # Conveniences
    # ---------------------------------------------------------------

    def denoise(self, samples: Sequence[float], levels: int,
                rule: Optional[ThresholdRule] = ThresholdRule.UNIVERSAL,
                mode: ShrinkageMode = ShrinkageMode.SOFT) -> np.ndarray:
        """Transform, threshold every detail level with ``rule`` and reconstruct fully."""
        result = self.transform(samples, levels)
        for spec in plan_shrinkage(result, rule, mode):
            result.apply(spec)
        return np.array(result.reconstruct(levels))

    def extract_level(self, samples: Sequence[float], levels: int, level: int) -> np.ndarray:
        """Copy of the detail coefficients at ``level`` of a ``levels``-deep transform."""
        return np.array(self.transform(samples, levels).get_detail(level))

    # ---------------------------------------------------------------
    # Validation
    # ---------------------------------------------------------------

    def _prepare_samples(self, samples: Sequence[float]) -> np.ndarray:
        try:
            x = np.array(samples, dtype=float)
        except (TypeError, ValueError) as e:
            raise ConfigurationError("samples", type(samples).__name__, "numeric sequence",
                                     "TransformAdapter") from e
        if x.ndim != 1:
            raise ConfigurationError("samples", f"shape {x.shape}", "1-D sequence", "TransformAdapter")
        if not np.all(np.isfinite(x)):
            raise ConfigurationError("samples", "non-finite values", "finite values", "TransformAdapter")
        return x

    def _check_levels(self, n: int, levels: int) -> None:
        if isinstance(levels, bool) or not isinstance(levels, (int, np.integer)) or levels < 1:
            raise ConfigurationError("levels", levels, "integer >= 1", "TransformAdapter")
        max_level = self.max_level(n)
        if levels > max_level:
            raise ConfigurationError(
                "levels", levels,
                f"at most {max_level} for a window of {n} samples with {self.wavelet} "
                f"(n must be >= {self.filter_length} and >= 2**levels)",
                "TransformAdapter")

    def __repr__(self) -> str:
        return f"TransformAdapter(wavelet={self.wavelet!r})"
