"""
Stationary wavelet transform engine.

Undecimated (shift-invariant) decomposition with cached partial
reconstruction, per-level shrinkage and a wavelet volatility estimator.
"""

from .thresholds import (
    ThresholdRule, ShrinkageMode, ThresholdSpec,
    estimate_noise_sigma, universal_threshold, bayes_shrink_threshold, sure_threshold,
    threshold, auto_select_rule, apply_threshold, shrink_in_place, plan_shrinkage
)
from .result import TransformResult
from .transform import TransformAdapter
from .volatility import VolatilityEstimator, VolatilityBands, level_weight
from .pipeline import DenoisePipeline, StepResult

__all__ = [
    'ThresholdRule', 'ShrinkageMode', 'ThresholdSpec',
    'estimate_noise_sigma', 'universal_threshold', 'bayes_shrink_threshold', 'sure_threshold',
    'threshold', 'auto_select_rule', 'apply_threshold', 'shrink_in_place', 'plan_shrinkage',
    'TransformResult', 'TransformAdapter',
    'VolatilityEstimator', 'VolatilityBands', 'level_weight',
    'DenoisePipeline', 'StepResult'
]
