"""
Stationary Wavelet Denoising Package

Shift-invariant multi-level wavelet decomposition with cached partial
reconstruction, threshold shrinkage (Universal, BayesShrink, SURE) and a
wavelet-derived volatility estimate, for use as inputs to trading-signal logic.
"""

from .config import PipelineConfig, validate_config
from .exceptions import WaveletError, ConfigurationError, BoundsError, TransformIntegrityError
from .swt import (
    TransformAdapter, TransformResult, VolatilityEstimator, VolatilityBands,
    DenoisePipeline, StepResult,
    ThresholdRule, ShrinkageMode, ThresholdSpec,
    universal_threshold, bayes_shrink_threshold, sure_threshold, threshold, plan_shrinkage
)

__version__ = "1.0.0"
__author__ = "Wavelet Denoising Team"
__description__ = "Stationary wavelet denoising and volatility estimation"


# Convenience functions
def quick_setup(**kwargs) -> PipelineConfig:
    """
    Quick setup of a validated pipeline configuration.

    Args:
        **kwargs: PipelineConfig fields overriding the defaults

    Returns:
        Validated PipelineConfig
    """
    config = PipelineConfig.from_dict(kwargs)
    config.validate()
    return config


def denoise_series(values, levels: int = None, wavelet: str = None,
                   rule: str = 'universal', mode: str = 'soft'):
    """
    Denoise one window with a full reconstruction.

    Args:
        values: Window of samples (length at least 2**levels)
        levels: Decomposition depth
        wavelet: Wavelet family
        rule: 'universal', 'bayes' or 'sure'
        mode: 'soft' or 'hard'

    Returns:
        Denoised array of the same length
    """
    config = PipelineConfig()
    adapter = TransformAdapter(wavelet or config.wavelet)
    return adapter.denoise(values, levels or config.levels,
                           ThresholdRule.from_string(rule), ShrinkageMode.from_string(mode))


__all__ = [
    'PipelineConfig', 'validate_config',
    'WaveletError', 'ConfigurationError', 'BoundsError', 'TransformIntegrityError',
    'TransformAdapter', 'TransformResult', 'VolatilityEstimator', 'VolatilityBands',
    'DenoisePipeline', 'StepResult',
    'ThresholdRule', 'ShrinkageMode', 'ThresholdSpec',
    'universal_threshold', 'bayes_shrink_threshold', 'sure_threshold', 'threshold', 'plan_shrinkage',
    'quick_setup', 'denoise_series'
]
