"""
Utility modules for signal conditioning and tape layout.

This package contains:
- signal_processing: Lag filter, rate limiter and sine easing, plus batch
  helpers over NumPy arrays
- tape_engine: Tape graduations and rolling-digit odometer layout
"""

from pfd.utils.signal_processing import (
    LagFilter, RateLimiter, SinSmoother, lag_filter_response, rate_limit_series, smooth_sin
)
from pfd.utils.tape_engine import DigitFormatter, LinearTape, Odometer, graduation_marks

__all__ = [
    'LagFilter',
    'RateLimiter',
    'SinSmoother',
    'lag_filter_response',
    'rate_limit_series',
    'smooth_sin',
    'DigitFormatter',
    'LinearTape',
    'Odometer',
    'graduation_marks',
]
