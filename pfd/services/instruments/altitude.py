"""
Altitude tape and digital altitude readout.
"""
import logging
import math
from dataclasses import dataclass
from typing import Tuple

from pfd.constants import (
    ALT_DISPLAY_RANGE, ALT_DISTANCE_SPACING, ALT_LABEL_INTERVAL,
    ALT_LOWER_LIMIT, ALT_UPPER_LIMIT, ALT_VALUE_SPACING,
    CH_ALTITUDE, CH_MDA, CH_RADIO_ALT, RADIO_ALT_GROUND_REF_MAX,
    HUNDREDS_WHEEL_GEOMETRY, ROLLOVER_THRESHOLD_DEFAULT,
    TENS_WHEEL_GEOMETRY, TEN_THOUSANDS_WHEEL_GEOMETRY, THOUSANDS_WHEEL_GEOMETRY,
    WHEEL_DECADES, WHEEL_UNIT
)
from pfd.models.display import DrumDigit, TapeFrame, WheelLayout
from pfd.models.tape_config import TapeConfig
from pfd.services.signal_service import SignalSnapshot
from pfd.utils.tape_engine import LinearTape, Odometer

logger = logging.getLogger(__name__)

FAIL_FLAG = 'ALT'


def altitude_tape(lower_limit: float = ALT_LOWER_LIMIT, upper_limit: float = ALT_UPPER_LIMIT) -> TapeConfig:
    return TapeConfig(
        value_spacing=ALT_VALUE_SPACING,
        distance_spacing=ALT_DISTANCE_SPACING,
        display_range=ALT_DISPLAY_RANGE,
        lower_limit=lower_limit,
        upper_limit=upper_limit,
    )


def _wheel(geometry, suppress_leading_zero: bool = False) -> TapeConfig:
    value_spacing, distance_spacing, display_range, digit_count = geometry
    return TapeConfig(value_spacing, distance_spacing, display_range, digit_count,
                      suppress_leading_zero=suppress_leading_zero)


def altitude_label(value: float) -> Tuple[str, str]:
    """Label every 500 ft with hundreds of feet, zero padded to three digits."""
    rounded = int(round(value))
    if rounded % ALT_LABEL_INTERVAL == 0:
        return str(abs(rounded) // 100).zfill(3), 'White'
    return '', ''


@dataclass(frozen=True)
class AltitudeOutput:
    """Altitude instrument output.

    Attributes:
        failed: Altitude word not in normal operation
        flag: Failure flag text ('' when valid)
        tape: Altitude tape layout
        wheels: Readout wheel layouts, least significant first
        digits: (wheel_index, position, text) per wheel
        color: Readout colour class ('Green', or 'Amber' below MDA)
        negative_visible: NEG indicator shown for negative altitude
        ground_reference_visible: Radio altitude ground line shown
        ground_reference_offset: Screen offset of the ground line
    """
    failed: bool
    flag: str
    tape: TapeFrame
    wheels: Tuple[WheelLayout, ...] = ()
    digits: Tuple[DrumDigit, ...] = ()
    color: str = ''
    negative_visible: bool = False
    ground_reference_visible: bool = False
    ground_reference_offset: float = 0.0


class AltitudeIndicator:
    """Altitude tape plus rolling-digit readout.

    The readout clamps the altitude into [lower_limit, upper_limit] before
    splitting it into digits; the tape omits graduations outside it.
    """

    def __init__(self, rollover_threshold: float = ROLLOVER_THRESHOLD_DEFAULT,
                 negative_bias: bool = True,
                 lower_limit: float = ALT_LOWER_LIMIT,
                 upper_limit: float = ALT_UPPER_LIMIT):
        self.tape_config = altitude_tape(lower_limit, upper_limit)
        self.tape = LinearTape(self.tape_config, altitude_label)
        self.odometer = Odometer(
            wheels=(
                _wheel(TENS_WHEEL_GEOMETRY),
                _wheel(HUNDREDS_WHEEL_GEOMETRY),
                _wheel(THOUSANDS_WHEEL_GEOMETRY, suppress_leading_zero=True),
                _wheel(TEN_THOUSANDS_WHEEL_GEOMETRY, suppress_leading_zero=True),
            ),
            unit=WHEEL_UNIT,
            decades=WHEEL_DECADES,
            rollover_threshold=rollover_threshold,
            lower_limit=lower_limit,
            upper_limit=upper_limit,
            negative_bias=negative_bias,
        )

    def reset(self) -> None:
        """The readout holds no filter memory."""

    def update(self, snapshot: SignalSnapshot, dt: float = 0.0) -> AltitudeOutput:
        radio_alt = snapshot.value(CH_RADIO_ALT)
        ground_visible = radio_alt <= RADIO_ALT_GROUND_REF_MAX
        ground_offset = (radio_alt - RADIO_ALT_GROUND_REF_MAX) * self.tape_config.pixels_per_unit

        word = snapshot.word(CH_ALTITUDE)
        if not word.is_normal_operation() or not math.isfinite(word.value):
            return AltitudeOutput(
                failed=True,
                flag=FAIL_FLAG,
                tape=TapeFrame(offset=0.0),
                ground_reference_visible=ground_visible,
                ground_reference_offset=ground_offset,
            )

        altitude = word.value
        mda = snapshot.value(CH_MDA)
        color = 'Amber' if mda != 0 and altitude < mda else 'Green'
        reading = self.odometer.update(altitude)
        return AltitudeOutput(
            failed=False,
            flag='',
            tape=self.tape.update(altitude),
            wheels=reading.wheels,
            digits=tuple(DrumDigit(*d) for d in reading.digits()),
            color=color,
            negative_visible=altitude < 0,
            ground_reference_visible=ground_visible,
            ground_reference_offset=ground_offset,
        )
