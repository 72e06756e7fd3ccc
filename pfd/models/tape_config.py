"""
Static configuration for scrolling tapes and odometer wheels.
"""
import math
from dataclasses import dataclass
from typing import Optional

from pfd.exceptions import ConfigurationError


def _require_positive(name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        raise ConfigurationError(
            f"{name} must be a positive finite number, got {value!r}",
            setting_name=name,
            setting_value=value,
            expected="> 0"
        )


@dataclass(frozen=True)
class TapeConfig:
    """Geometry of a linear tape or a single odometer wheel.

    Attributes:
        value_spacing: Value distance between adjacent graduations
        distance_spacing: Screen distance covered by one value_spacing
        display_range: Half-width of the visible window in value units
        digit_count: Number of elements instantiated (wheels use this for
                     the number of digits on the drum)
        suppress_leading_zero: Render a non-significant zero as blank
        lower_limit: Graduations below this value are omitted (optional)
        upper_limit: Graduations above this value are omitted (optional)
    """
    value_spacing: float
    distance_spacing: float
    display_range: float
    digit_count: int = 1
    suppress_leading_zero: bool = False
    lower_limit: Optional[float] = None
    upper_limit: Optional[float] = None

    def __post_init__(self):
        """Fail fast on geometry that cannot be laid out."""
        _require_positive('value_spacing', self.value_spacing)
        _require_positive('distance_spacing', self.distance_spacing)
        _require_positive('display_range', self.display_range)
        if not isinstance(self.digit_count, int) or self.digit_count < 1:
            raise ConfigurationError(
                f"digit_count must be an integer >= 1, got {self.digit_count!r}",
                setting_name='digit_count',
                setting_value=self.digit_count,
                expected=">= 1"
            )
        if (self.lower_limit is not None and self.upper_limit is not None
                and self.lower_limit > self.upper_limit):
            raise ConfigurationError(
                f"lower_limit {self.lower_limit} exceeds upper_limit {self.upper_limit}",
                setting_name='lower_limit',
                setting_value=self.lower_limit,
                expected=f"<= {self.upper_limit}"
            )

    @property
    def pixels_per_unit(self) -> float:
        """Screen distance per value unit."""
        return self.distance_spacing / self.value_spacing

    def clamp(self, value: float) -> float:
        """Clamp a value into [lower_limit, upper_limit] where set."""
        if self.lower_limit is not None:
            value = max(value, self.lower_limit)
        if self.upper_limit is not None:
            value = min(value, self.upper_limit)
        return value

    def in_limits(self, value: float) -> bool:
        if self.lower_limit is not None and value < self.lower_limit:
            return False
        if self.upper_limit is not None and value > self.upper_limit:
            return False
        return True
