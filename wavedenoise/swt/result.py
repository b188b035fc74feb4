"""
Container for one stationary wavelet decomposition.

A ``TransformResult`` owns the approximation and the per-level detail arrays
of a single window, serves partial reconstructions through a one-entry cache
and applies shrinkage to the detail arrays in place.
"""

import threading
import logging
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

import numpy as np

from ..exceptions import BoundsError, ConfigurationError, TransformIntegrityError
from .thresholds import ShrinkageMode, ThresholdSpec, shrink_in_place

if TYPE_CHECKING:  # pragma: no cover
    from .transform import TransformAdapter

logger = logging.getLogger(__name__)


def _read_only(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.flags.writeable = False
    return view


class TransformResult:
    """
    Approximation plus ``levels`` detail arrays, all of length ``n``.

    Detail levels are 1-based: level 1 is the finest scale. ``reconstruct(k)``
    synthesises from the approximation and details 1..k, so ``reconstruct(0)``
    is the approximation and ``reconstruct(levels)`` the full signal.

    The reconstruction cache holds the last (level, array) pair and is dropped
    by every ``apply_shrinkage`` call. Cached arrays are handed out read-only.
    """

    def __init__(self, approximation: np.ndarray, details: Sequence[np.ndarray],
                 adapter: "TransformAdapter"):
        self._approximation = np.array(approximation, dtype=float)
        self._details: List[np.ndarray] = [np.array(d, dtype=float) for d in details]
        self._adapter = adapter
        self._n = int(self._approximation.shape[0])

        if not self._details:
            raise ConfigurationError("details", 0, "at least one detail level", "TransformResult")
        for level, detail in enumerate(self._details, start=1):
            self._verify_length(detail, f"detail level {level}")

        self._cache_lock = threading.Lock()
        self._cache: Optional[Tuple[int, np.ndarray]] = None

    # ---------------------------------------------------------------
    # Accessors
    # ---------------------------------------------------------------

    @property
    def n(self) -> int:
        return self._n

    @property
    def levels(self) -> int:
        return len(self._details)

    @property
    def wavelet(self) -> str:
        return self._adapter.wavelet

    def get_detail(self, level: int) -> np.ndarray:
        """Read-only view of the detail coefficients at ``level`` (1-based)."""
        self._check_level(level, 1)
        return _read_only(self._details[level - 1])

    def get_all_details(self) -> Tuple[np.ndarray, ...]:
        """Read-only views of every detail level, finest first."""
        return tuple(_read_only(d) for d in self._details)

    def get_approximation(self) -> np.ndarray:
        return _read_only(self._approximation)

    def energy(self) -> float:
        """Sum of squares over the approximation and all detail levels."""
        total = float(np.dot(self._approximation, self._approximation))
        for detail in self._details:
            total += float(np.dot(detail, detail))
        return total

    # ---------------------------------------------------------------
    # Reconstruction
    # ---------------------------------------------------------------

    def reconstruct(self, level: int) -> np.ndarray:
        """
        Reconstruct from the approximation and detail levels 1..level.

        Repeated calls with the same level and no intervening shrinkage
        return the same cached array.

        Args:
            level: Number of detail levels to include, 0..levels

        Returns:
            Read-only array of length n

        Raises:
            BoundsError: If level is outside [0, levels]
        """
        self._check_level(level, 0)
        cached = self._cache
        if cached is not None and cached[0] == level:
            return cached[1]

        with self._cache_lock:
            cached = self._cache
            if cached is not None and cached[0] == level:
                return cached[1]

            if level == 0:
                out = self._approximation.copy()
            else:
                out = self._adapter.synthesize(self._approximation, self._details, level)
            self._verify_length(out, f"reconstruct({level})")
            out.flags.writeable = False
            self._cache = (level, out)
            logger.debug(f"Reconstructed level {level} of {self.levels} (n={self._n})")
            return out

    def reconstruct_approximation(self) -> np.ndarray:
        """Smooth trend: the approximation only."""
        return self.reconstruct(0)

    # ---------------------------------------------------------------
    # Shrinkage
    # ---------------------------------------------------------------

    def apply_shrinkage(self, level: int, threshold: float, soft: bool) -> None:
        """
        Threshold the detail coefficients at ``level`` in place.

        Hard mode zeroes |c| <= threshold; soft mode also pulls the surviving
        coefficients towards zero by ``threshold``. Invalidates the
        reconstruction cache.

        Raises:
            BoundsError: If level is outside [1, levels]
            ConfigurationError: If threshold is negative or not finite
        """
        self._check_level(level, 1)
        mode = ShrinkageMode.SOFT if soft else ShrinkageMode.HARD
        with self._cache_lock:
            self._cache = None
            shrink_in_place(self._details[level - 1], threshold, mode)
        logger.debug(f"Applied {mode.display_name.lower()} threshold {threshold:.6f} to level {level}")

    def apply(self, spec: ThresholdSpec) -> None:
        self.apply_shrinkage(spec.level, spec.value, spec.soft)

    # ---------------------------------------------------------------
    # Internals
    # ---------------------------------------------------------------

    def _check_level(self, level: int, lower: int) -> None:
        if isinstance(level, bool) or not isinstance(level, (int, np.integer)) \
                or not lower <= level <= self.levels:
            raise BoundsError(level, lower, self.levels, "TransformResult")

    def _verify_length(self, array: np.ndarray, where: str) -> None:
        if array.ndim != 1 or array.shape[0] != self._n:
            raise TransformIntegrityError(self._n, int(array.size), where, "TransformResult")

    def __repr__(self) -> str:
        cached = self._cache
        cache_state = f"cached level {cached[0]}" if cached is not None else "no cache"
        return f"TransformResult(wavelet={self.wavelet!r}, n={self._n}, levels={self.levels}, {cache_state})"
