"""
Configuration for the stationary wavelet denoising engine.

Module-level constants hold the defaults used by the transform adapter,
the shrinkage rules and the volatility estimator. ``PipelineConfig``
bundles the per-pipeline parameters a caller supplies.
"""

import os
import math
from dataclasses import dataclass, asdict, fields
from typing import Final, Dict, Any, Optional

from .exceptions import ConfigurationError

# ==================== Transform ====================

WAVELET_TYPE: Final[str] = "db4"          # Daubechies 4
DECOMPOSITION_LEVELS: Final[int] = 3      # number of detail levels (J)
WINDOW_LENGTH: Final[int] = 128           # samples per processing step

# ==================== Shrinkage ====================

THRESHOLD_RULE: Final[str] = "universal"  # "universal" | "bayes" | "sure"
SHRINKAGE_MODE: Final[str] = "soft"       # "soft" | "hard"
MAD_TO_SIGMA: Final[float] = 0.6745       # median(|d|) / 0.6745 ~ sigma for gaussian noise
MIN_SIGMA: Final[float] = 1e-10
BAYES_LEVEL_FACTOR: Final[float] = 0.1    # coarser levels get a slightly larger BayesShrink threshold
LOW_SNR: Final[float] = 1.5
HIGH_SNR: Final[float] = 3.0
AUTO_SELECT_MIN_LENGTH: Final[int] = 32

# ==================== Volatility ====================

SMOOTHING_PERIOD: Final[int] = 14
LEVEL_WEIGHT_DECAY: Final[float] = 0.5    # level 1 = 1.00, level 2 = 0.67, level 3 = 0.50
VOLATILITY_WINDOW: Final[Optional[int]] = None  # None = whole detail array

# ==================== Runtime ====================

N_JOBS: Final[int] = max(1, (os.cpu_count() or 2) - 1)


def validate_config() -> None:
    """Validate module-level defaults."""
    if DECOMPOSITION_LEVELS <= 0:
        raise ValueError("DECOMPOSITION_LEVELS must be positive")
    if WINDOW_LENGTH < 2 ** DECOMPOSITION_LEVELS:
        raise ValueError("WINDOW_LENGTH must be at least 2**DECOMPOSITION_LEVELS")
    if SMOOTHING_PERIOD <= 0:
        raise ValueError("SMOOTHING_PERIOD must be positive")
    if LEVEL_WEIGHT_DECAY < 0:
        raise ValueError("LEVEL_WEIGHT_DECAY must be non-negative")
    if THRESHOLD_RULE not in ("universal", "bayes", "sure"):
        raise ValueError("THRESHOLD_RULE must be 'universal', 'bayes' or 'sure'")
    if SHRINKAGE_MODE not in ("soft", "hard"):
        raise ValueError("SHRINKAGE_MODE must be 'soft' or 'hard'")
    if not 0 < MAD_TO_SIGMA < 1:
        raise ValueError("MAD_TO_SIGMA must be between 0 and 1")
    if LOW_SNR >= HIGH_SNR:
        raise ValueError("LOW_SNR must be below HIGH_SNR")
    if N_JOBS <= 0:
        raise ValueError("N_JOBS must be positive")


@dataclass
class PipelineConfig:
    """Parameters for one denoising pipeline (one wavelet family and level count)."""
    wavelet: str = WAVELET_TYPE
    levels: int = DECOMPOSITION_LEVELS
    window_length: int = WINDOW_LENGTH
    threshold_rule: str = THRESHOLD_RULE
    shrinkage_mode: str = SHRINKAGE_MODE
    smoothing_period: int = SMOOTHING_PERIOD
    level_weight_decay: float = LEVEL_WEIGHT_DECAY
    volatility_window: Optional[int] = VOLATILITY_WINDOW
    # Detail levels kept in the denoised reconstruction; None -> max(1, levels - 1)
    reconstruct_level: Optional[int] = None

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]] = None) -> "PipelineConfig":
        """Build a config from a plain dictionary, ignoring unknown keys."""
        config = config or {}
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def effective_reconstruct_level(self) -> int:
        if self.reconstruct_level is None:
            return max(1, self.levels - 1)
        return self.reconstruct_level

    def validate(self) -> None:
        """
        Validate pipeline parameters.

        Raises:
            ConfigurationError: If any parameter is out of range
        """
        if not isinstance(self.levels, int) or self.levels < 1:
            raise ConfigurationError("levels", self.levels, "integer >= 1", "PipelineConfig")
        if not isinstance(self.window_length, int) or self.window_length < 2:
            raise ConfigurationError("window_length", self.window_length, "integer >= 2", "PipelineConfig")
        if self.window_length < 2 ** self.levels:
            raise ConfigurationError("window_length", self.window_length,
                                     f"at least 2**levels ({2 ** self.levels})", "PipelineConfig")
        if self.threshold_rule.lower() not in ("universal", "bayes", "bayesshrink", "sure", "auto"):
            raise ConfigurationError("threshold_rule", self.threshold_rule,
                                     "'universal', 'bayes', 'sure' or 'auto'", "PipelineConfig")
        if self.shrinkage_mode.lower() not in ("soft", "hard"):
            raise ConfigurationError("shrinkage_mode", self.shrinkage_mode, "'soft' or 'hard'", "PipelineConfig")
        if not isinstance(self.smoothing_period, int) or self.smoothing_period < 1:
            raise ConfigurationError("smoothing_period", self.smoothing_period, "integer >= 1", "PipelineConfig")
        try:
            decay = float(self.level_weight_decay)
        except (TypeError, ValueError) as e:
            raise ConfigurationError("level_weight_decay", self.level_weight_decay, "finite value >= 0",
                                     "PipelineConfig") from e
        if not math.isfinite(decay) or decay < 0:
            raise ConfigurationError("level_weight_decay", self.level_weight_decay, "finite value >= 0",
                                     "PipelineConfig")
        window = self.volatility_window
        if window is not None and (isinstance(window, bool) or not isinstance(window, int) or window < 1):
            raise ConfigurationError("volatility_window", window, "None or integer >= 1", "PipelineConfig")
        if not 0 <= self.effective_reconstruct_level <= self.levels:
            raise ConfigurationError("reconstruct_level", self.reconstruct_level,
                                     f"value in [0, {self.levels}]", "PipelineConfig")


# Validate configuration on import
validate_config()
