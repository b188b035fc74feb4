"""Exception classes for the wavelet denoising engine."""

from typing import Any, Optional


class WaveletError(Exception):
    """Base exception for wavelet engine errors."""

    def __init__(self, message: str, component: Optional[str] = None):
        self.component = component
        if component:
            message = f"[{component}] {message}"
        super().__init__(message)


class ConfigurationError(WaveletError, ValueError):
    """Invalid configuration or input that cannot be decomposed."""

    def __init__(self, parameter_name: str, value: Any, expected: str, component: Optional[str] = None):
        message = f"Invalid parameter '{parameter_name}': got {value}, expected {expected}"
        super().__init__(message, component)
        self.parameter_name = parameter_name
        self.value = value
        self.expected = expected


class BoundsError(WaveletError, IndexError):
    """Decomposition level outside the valid range."""

    def __init__(self, level: Any, lower: int, upper: int, component: Optional[str] = None):
        message = f"Level must be between {lower} and {upper}, got {level}"
        super().__init__(message, component)
        self.level = level
        self.lower = lower
        self.upper = upper


class TransformIntegrityError(WaveletError, RuntimeError):
    """Coefficient arrays no longer satisfy the length invariant."""

    def __init__(self, expected_length: int, actual_length: int, where: str, component: Optional[str] = None):
        message = (f"Coefficient length mismatch in {where}: "
                   f"expected {expected_length}, got {actual_length}")
        super().__init__(message, component)
        self.expected_length = expected_length
        self.actual_length = actual_length
        self.where = where
