"""
Airspeed tape, speed trend arrow and speed bugs.

The speed trend arrow shows the speed expected in ten seconds: the airspeed
derivative is rate limited, then lag filtered, then scaled by ten seconds.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from pfd.constants import (
    CH_FLIGHT_PHASE, CH_SPEED, CH_V1, CH_VLS,
    SPD_DISPLAY_RANGE, SPD_DISTANCE_SPACING, SPD_LABEL_INTERVAL,
    SPD_LOWER_LIMIT, SPD_LOWER_OUTLINE_MIN, SPD_UPPER_LIMIT,
    SPD_VALUE_SPACING, SPD_VISIBLE_RANGE,
    SPEED_TREND_FALLING_RATE, SPEED_TREND_GAIN_S, SPEED_TREND_MIN_VISIBLE_KT,
    SPEED_TREND_RISING_RATE, SPEED_TREND_TIME_CONSTANT,
    V1_MAX_FLIGHT_PHASE, VLS_SMOOTH_FACTOR
)
from pfd.models.display import TapeFrame
from pfd.models.tape_config import TapeConfig
from pfd.services.signal_service import SignalSnapshot
from pfd.utils.signal_processing import LagFilter, RateLimiter, SinSmoother
from pfd.utils.tape_engine import LinearTape

logger = logging.getLogger(__name__)

FAIL_FLAG = 'SPD'


def speed_tape(lower_limit: float = SPD_LOWER_LIMIT, upper_limit: float = SPD_UPPER_LIMIT) -> TapeConfig:
    return TapeConfig(
        value_spacing=SPD_VALUE_SPACING,
        distance_spacing=SPD_DISTANCE_SPACING,
        display_range=SPD_DISPLAY_RANGE,
        lower_limit=lower_limit,
        upper_limit=upper_limit,
    )


def speed_label(value: float) -> Tuple[str, str]:
    """Label every 20 kt, zero padded to three digits."""
    rounded = int(round(value))
    if rounded % SPD_LABEL_INTERVAL == 0:
        return str(abs(rounded)).zfill(3), 'White'
    return '', ''


@dataclass(frozen=True)
class AirspeedOutput:
    """Airspeed instrument output.

    Attributes:
        failed: Speed word not in normal operation
        flag: Failure flag text ('' when valid)
        tape: Speed tape layout
        trend_visible: Trend arrow shown (at least 1 kt long)
        trend_length: Trend arrow length in knots (positive = accelerating)
        trend_offset: Screen offset of the arrow head
        vls: Smoothed VLS value (NaN when unavailable)
        vls_offset: Screen offset of the VLS bug relative to current speed
        v1_visible: V1 bug shown on the tape
        v1_offset: Offset of the V1 bug inside the tape frame
        v1_offtape_text: V1 value shown above the tape when off scale
        lower_outline_visible: Lower tape outline shown above 72 kt
    """
    failed: bool
    flag: str
    tape: TapeFrame
    trend_visible: bool = False
    trend_length: float = 0.0
    trend_offset: float = 0.0
    vls: float = math.nan
    vls_offset: float = 0.0
    v1_visible: bool = False
    v1_offset: float = 0.0
    v1_offtape_text: str = ''
    lower_outline_visible: bool = False


class AirspeedIndicator:
    """Airspeed tape with trend arrow, VLS and V1 bugs.

    Attributes:
        tape_config: Speed tape geometry with the configured clamp
        rate_limiter: Limits the airspeed derivative
        lag_filter: Smooths the rate-limited derivative
        vls_smoother: Eases the VLS bug toward its target
    """

    def __init__(
        self,
        time_constant: float = SPEED_TREND_TIME_CONSTANT,
        rising_rate: float = SPEED_TREND_RISING_RATE,
        falling_rate: float = SPEED_TREND_FALLING_RATE,
        vls_smooth_factor: float = VLS_SMOOTH_FACTOR,
        lower_limit: float = SPD_LOWER_LIMIT,
        upper_limit: float = SPD_UPPER_LIMIT
    ):
        self.tape_config = speed_tape(lower_limit, upper_limit)
        self.tape = LinearTape(self.tape_config, speed_label)
        self.rate_limiter = RateLimiter(rising_rate, falling_rate)
        self.lag_filter = LagFilter(time_constant)
        self.vls_smoother = SinSmoother(vls_smooth_factor)
        self._previous_speed: Optional[float] = None
        self._filtered_acc = 0.0

    def reset(self) -> None:
        self.rate_limiter.reset()
        self.lag_filter.reset()
        self.vls_smoother.reset()
        self._previous_speed = None
        self._filtered_acc = 0.0

    def _trend(self, clamped: float, dt: float) -> float:
        """Step the trend filters once per tick; returns the arrow length in knots."""
        if dt > 0:
            if self._previous_speed is None:
                acc = 0.0
            else:
                acc = (clamped - self._previous_speed) / dt
            self._previous_speed = clamped
            limited = self.rate_limiter.step(acc, dt)
            self._filtered_acc = self.lag_filter.step(limited, dt)
        return self._filtered_acc * SPEED_TREND_GAIN_S

    def update(self, snapshot: SignalSnapshot, dt: float = 0.0) -> AirspeedOutput:
        word = snapshot.word(CH_SPEED)
        normal = word.is_normal_operation() and math.isfinite(word.value)
        # NaN propagates into the filters, which treat it as zero acceleration
        clamped = max(word.value, self.tape_config.lower_limit) if normal else math.nan
        trend_length = self._trend(clamped, dt)

        vls_target = snapshot.value(CH_VLS)
        vls = self.vls_smoother.update(vls_target, snapshot.time) if vls_target > 0 else math.nan
        if vls is None:
            vls = math.nan

        if not normal:
            return AirspeedOutput(failed=True, flag=FAIL_FLAG, tape=TapeFrame(offset=0.0), vls=vls)

        speed = word.value
        display_speed = self.tape_config.clamp(speed)
        v1 = snapshot.value(CH_V1)
        phase = snapshot.value(CH_FLIGHT_PHASE)
        v1_visible = phase <= V1_MAX_FLIGHT_PHASE and v1 != 0
        v1_offtape = v1_visible and v1 - display_speed > SPD_VISIBLE_RANGE

        return AirspeedOutput(
            failed=False,
            flag='',
            tape=self.tape.update(speed),
            trend_visible=abs(trend_length) >= SPEED_TREND_MIN_VISIBLE_KT,
            trend_length=trend_length,
            trend_offset=-trend_length * self.tape_config.pixels_per_unit,
            vls=vls,
            vls_offset=(display_speed - vls) * self.tape_config.pixels_per_unit if math.isfinite(vls) else 0.0,
            v1_visible=v1_visible and not v1_offtape,
            v1_offset=-self.tape_config.clamp(v1) * self.tape_config.pixels_per_unit,
            v1_offtape_text=str(int(round(v1))) if v1_offtape else '',
            lower_outline_visible=display_speed > SPD_LOWER_OUTLINE_MIN,
        )
