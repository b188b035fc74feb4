"""
Per-step denoising pipeline.

One ``DenoisePipeline`` serves one (wavelet family, level count) pair. On each
processing step it decomposes the latest window, updates the volatility
estimate from the raw detail coefficients, shrinks every detail level and
reconstructs the denoised series.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Sequence, Union

import numpy as np

from ..config import PipelineConfig
from ..exceptions import ConfigurationError
from .result import TransformResult
from .thresholds import ThresholdRule, ShrinkageMode, ThresholdSpec, plan_shrinkage
from .transform import TransformAdapter
from .volatility import VolatilityEstimator

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Output of one pipeline step."""
    denoised: float
    trend: float
    slope: float
    volatility: float
    thresholds: List[ThresholdSpec] = field(default_factory=list)

    def to_dict(self) -> Dict[str, float]:
        return {
            'denoised': self.denoised,
            'trend': self.trend,
            'slope': self.slope,
            'volatility': self.volatility,
        }


class DenoisePipeline:
    """
    transform -> volatility -> shrinkage -> reconstruct, once per step.

    Volatility is computed before shrinkage so that thresholding only affects
    the reconstruction.
    """

    def __init__(self, config: Optional[Union[PipelineConfig, Dict[str, Any]]] = None):
        if not isinstance(config, PipelineConfig):
            config = PipelineConfig.from_dict(config)
        config.validate()
        self.config = config

        self.adapter = TransformAdapter(config.wavelet)
        self.estimator = VolatilityEstimator(config.smoothing_period, config.level_weight_decay,
                                             config.volatility_window)
        # None -> choose a rule per level from its SNR
        self.rule: Optional[ThresholdRule] = (
            None if config.threshold_rule.lower() == "auto"
            else ThresholdRule.from_string(config.threshold_rule)
        )
        self.mode = ShrinkageMode.from_string(config.shrinkage_mode)
        self.reconstruct_level = config.effective_reconstruct_level
        self.last_result: Optional[TransformResult] = None

        rule_name = self.rule.display_name if self.rule is not None else "auto"
        logger.info(f"Pipeline ready: wavelet={self.adapter.wavelet}, levels={config.levels}, "
                    f"rule={rule_name}, mode={self.mode.display_name}")

    def process(self, window: Sequence[float]) -> StepResult:
        """
        Run one step over the most recent window of samples.

        Args:
            window: Latest samples, oldest first

        Returns:
            StepResult for the last sample of the window
        """
        result = self.adapter.transform(self._check_window(window), self.config.levels)
        volatility = self.estimator.calculate_result(result)

        specs = plan_shrinkage(result, self.rule, self.mode)
        for spec in specs:
            result.apply(spec)

        denoised = result.reconstruct(self.reconstruct_level)
        trend = result.reconstruct_approximation()
        self.last_result = result

        previous = float(trend[-2]) if trend.size > 1 else float(trend[-1])
        return StepResult(
            denoised=float(denoised[-1]),
            trend=float(trend[-1]),
            slope=float(trend[-1]) - previous,
            volatility=volatility,
            thresholds=specs,
        )

    def denoised_series(self, window: Sequence[float]) -> np.ndarray:
        """Full denoised reconstruction of a window, without touching the volatility state."""
        result = self.adapter.transform(self._check_window(window), self.config.levels)
        for spec in plan_shrinkage(result, self.rule, self.mode):
            result.apply(spec)
        return np.array(result.reconstruct(self.reconstruct_level))

    def _check_window(self, window: Sequence[float]) -> Sequence[float]:
        if len(window) != self.config.window_length:
            raise ConfigurationError("window", f"{len(window)} samples",
                                     f"{self.config.window_length} samples", "DenoisePipeline")
        return window

    def reset(self) -> None:
        self.estimator.reset()
        self.last_result = None

    def __repr__(self) -> str:
        return f"DenoisePipeline({self.config})"
