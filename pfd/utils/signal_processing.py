"""
Signal conditioning filters for display motion.

This module provides the causal filters used to turn noisy or stepped
telemetry into smooth, human-readable motion:

- LagFilter: first-order low-pass discretized with the bilinear transform
- RateLimiter: asymmetric slew-rate clamp
- smooth_sin / SinSmoother: bounded quarter-sine easing toward a target

It also provides batch helpers that evaluate the same recurrences over whole
sample arrays with NumPy/SciPy, used for offline analysis of recorded data.

Filter instances are not reentrant. Each instance is driven from exactly one
channel, at most once per frame tick, with the elapsed time of that tick.
"""
import logging
import math
from typing import Optional, Sequence, Union

import numpy as np
from scipy import signal

from pfd.constants import SMOOTH_SIN_EPSILON
from pfd.exceptions import ConfigurationError, NonFiniteFilterResult

logger = logging.getLogger(__name__)


def _require_finite(name: str, value: float, positive: bool = False) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}",
                                 setting_name=name, setting_value=value, expected="float")
    if not math.isfinite(value) or (positive and value <= 0):
        expected = "positive finite number" if positive else "finite number"
        raise ConfigurationError(f"{name} must be a {expected}, got {value!r}",
                                 setting_name=name, setting_value=value, expected=expected)
    return value


def _sanitize(value: float) -> float:
    """Replace a NaN input by 0 before it enters filter memory."""
    return 0.0 if math.isnan(value) else value


class LagFilter:
    """Discrete first-order low-pass filter (bilinear transform).

    out = (in + prev_in) * s / (s + 2) + (2 - s) / (s + 2) * prev_out
    with s = dt * time_constant.

    Attributes:
        time_constant: Filter constant applied to the elapsed time
    """

    def __init__(self, time_constant: float):
        """Initialize LagFilter.

        Args:
            time_constant: Positive filter constant

        Raises:
            ConfigurationError: If time_constant is not a positive finite number
        """
        self.time_constant = _require_finite('time_constant', time_constant, positive=True)
        self._previous_input = 0.0
        self._previous_output = 0.0

    @property
    def previous_input(self) -> float:
        return self._previous_input

    @property
    def previous_output(self) -> float:
        return self._previous_output

    def reset(self) -> None:
        """Zero both memory cells."""
        self._previous_input = 0.0
        self._previous_output = 0.0

    def step(self, value: float, dt: float) -> float:
        """Filter one sample.

        Args:
            value: Raw input (NaN is treated as 0)
            dt: Elapsed time since the previous step, in seconds

        Returns:
            Filtered output. A non-finite result yields 0 and leaves the
            output memory untouched.
        """
        value = _sanitize(value)
        try:
            return self._compute(value, dt)
        except NonFiniteFilterResult as e:
            logger.debug(f"LagFilter produced {e.result}, holding output {self._previous_output}")
            return 0.0

    def _compute(self, value: float, dt: float) -> float:
        scaled_dt = dt * self.time_constant
        sum0 = scaled_dt + 2
        try:
            output = ((value + self._previous_input) * scaled_dt / sum0
                      + (2 - scaled_dt) / sum0 * self._previous_output)
        except ZeroDivisionError:
            output = math.nan
        # input memory is updated even when the output is rejected
        self._previous_input = value
        if not math.isfinite(output):
            raise NonFiniteFilterResult("Non-finite lag filter output",
                                        filter_name=type(self).__name__, result=output)
        self._previous_output = output
        return output


class RateLimiter:
    """Asymmetric slew-rate limiter.

    out = prev_out + clamp(in - prev_out, dt * falling_rate, dt * rising_rate)

    Attributes:
        rising_rate: Maximum upward change per second
        falling_rate: Maximum downward change per second (typically negative)
    """

    def __init__(self, rising_rate: float, falling_rate: float, initial: float = 0.0):
        """Initialize RateLimiter.

        Args:
            rising_rate: Upper bound of the rate of change
            falling_rate: Lower bound of the rate of change
            initial: Initial output memory

        Raises:
            ConfigurationError: If a rate is not finite or falling_rate > rising_rate
        """
        self.rising_rate = _require_finite('rising_rate', rising_rate)
        self.falling_rate = _require_finite('falling_rate', falling_rate)
        if self.falling_rate > self.rising_rate:
            raise ConfigurationError(
                f"falling_rate {falling_rate} exceeds rising_rate {rising_rate}",
                setting_name='falling_rate', setting_value=falling_rate,
                expected=f"<= {rising_rate}"
            )
        self._previous_output = _require_finite('initial', initial)

    @property
    def previous_output(self) -> float:
        return self._previous_output

    def reset(self, value: float = 0.0) -> None:
        self._previous_output = _sanitize(value)

    def step(self, value: float, dt: float) -> float:
        """Move the output toward value by at most the allowed slew.

        Args:
            value: Target input (NaN is treated as 0)
            dt: Elapsed time in seconds

        Returns:
            Limited output
        """
        value = _sanitize(value)
        try:
            return self._compute(value, dt)
        except NonFiniteFilterResult as e:
            logger.debug(f"RateLimiter produced {e.result}, holding output {self._previous_output}")
            return self._previous_output

    def _compute(self, value: float, dt: float) -> float:
        delta = value - self._previous_output
        upper = dt * self.rising_rate
        lower = dt * self.falling_rate
        output = self._previous_output + max(min(upper, delta), lower)
        if not math.isfinite(output):
            raise NonFiniteFilterResult("Non-finite rate limiter output",
                                        filter_name=type(self).__name__, result=output)
        self._previous_output = output
        return output


def smooth_sin(origin: Optional[float], destination: float, smooth_factor: float, dt: float) -> float:
    """Eased approach from origin toward destination.

    Uses a quarter-sine ease on the clamped progress smooth_factor * dt and
    never overshoots the destination.

    Args:
        origin: Previous result, or None when there is no history
        destination: Target value
        smooth_factor: Progress per second
        dt: Elapsed time in seconds

    Returns:
        The next value, always between origin and destination inclusive
    """
    if origin is None:
        return destination
    if abs(destination - origin) < SMOOTH_SIN_EPSILON:
        return destination
    delta = destination - origin
    progress = min(max(smooth_factor * dt, 0.0), 1.0)
    result = origin + delta * math.sin(progress * math.pi / 2.0)
    if (origin < destination and result > destination) or (origin > destination and result < destination):
        result = destination
    return result


class SinSmoother:
    """Stateful wrapper around smooth_sin for one channel.

    Attributes:
        smooth_factor: Progress per second handed to smooth_sin
        last_value: Last emitted value (None until the first update)
        last_update_time: Virtual time of the last update (None until first update)
    """

    def __init__(self, smooth_factor: float):
        self.smooth_factor = _require_finite('smooth_factor', smooth_factor, positive=True)
        self.last_value: Optional[float] = None
        self.last_update_time: Optional[float] = None

    def reset(self) -> None:
        self.last_value = None
        self.last_update_time = None

    def update(self, destination: float, now: float) -> float:
        """Advance toward destination using the time elapsed since the last update."""
        if self.last_update_time is None or not math.isfinite(destination):
            result = destination if math.isfinite(destination) else self.last_value
        else:
            dt = max(now - self.last_update_time, 0.0)
            result = smooth_sin(self.last_value, destination, self.smooth_factor, dt)
        self.last_value = result
        self.last_update_time = now
        return result


def lag_filter_response(
    samples: Union[Sequence[float], np.ndarray],
    dt: float,
    time_constant: float
) -> np.ndarray:
    """Evaluate a freshly reset LagFilter over a whole sample array.

    The bilinear recurrence is a first-order IIR section, so it is computed
    with scipy.signal.lfilter using zero initial conditions. For finite
    samples the result matches stepping a LagFilter sample by sample.

    Args:
        samples: Input samples (NaN treated as 0)
        dt: Fixed sample period in seconds
        time_constant: Filter constant

    Returns:
        Filtered samples as a float64 array
    """
    time_constant = _require_finite('time_constant', time_constant, positive=True)
    x = np.asarray(samples, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    x = np.where(np.isnan(x), 0.0, x)
    scaled_dt = dt * time_constant
    sum0 = scaled_dt + 2
    k = scaled_dt / sum0
    b = [k, k]
    a = [1.0, -(2 - scaled_dt) / sum0]
    return signal.lfilter(b, a, x)


def rate_limit_series(
    samples: Union[Sequence[float], np.ndarray],
    dt: float,
    rising_rate: float,
    falling_rate: float,
    initial: float = 0.0
) -> np.ndarray:
    """Step a RateLimiter over a whole sample array.

    Returns:
        Limited samples as a float64 array
    """
    limiter = RateLimiter(rising_rate, falling_rate, initial=initial)
    x = np.asarray(samples, dtype=np.float64)
    out = np.empty_like(x)
    for i, value in enumerate(x):
        out[i] = limiter.step(float(value), dt)
    return out
