"""
Attitude indicator: horizon, roll index, sideslip index and rising ground.

Pitch follows the simulator convention (positive nose down), so the horizon
offset is computed from the negated pitch.
"""
import logging
import math
from dataclasses import dataclass

from pfd.constants import (
    CH_PITCH, CH_RADIO_ALT, CH_ROLL, CH_SIDESLIP, CH_SIDESLIP_TARGET,
    RISING_GROUND_BASE, RISING_GROUND_MIN, RISING_GROUND_PITCH_PER_FT,
    ROLL_OFFSET_BASE, ROLL_OFFSET_FACTOR, ROLL_OFFSET_THRESHOLD_DEG,
    SIDESLIP_MAX_DEG, SIDESLIP_TIME_CONSTANT
)
from pfd.services.signal_service import SignalSnapshot
from pfd.utils.signal_processing import LagFilter

logger = logging.getLogger(__name__)

FAIL_FLAG = 'ATT'


def horizon_offset_from_pitch(pitch: float) -> float:
    """Non-linear pitch scale: linear near the horizon, compressed beyond."""
    if -5 < pitch <= 20:
        return pitch * 1.8
    if 20 < pitch <= 30:
        return -0.04 * pitch ** 2 + 3.4 * pitch - 16
    if pitch > 30:
        return 20 + pitch
    if -15 <= pitch < -5:
        return 0.04 * pitch ** 2 + 2.2 * pitch + 1
    return pitch - 8


def vertical_offset_from_roll(roll: float) -> float:
    """Roll index drop once the bank exceeds 60 degrees."""
    if abs(roll) > ROLL_OFFSET_THRESHOLD_DEG:
        return max(0.0, ROLL_OFFSET_BASE - ROLL_OFFSET_FACTOR / math.sin(math.radians(abs(roll))))
    return 0.0


@dataclass(frozen=True)
class AttitudeOutput:
    """Attitude instrument output.

    Attributes:
        failed: Pitch or roll word not in normal operation
        flag: Failure flag text ('' when valid)
        pitch: Pitch in degrees
        roll: Bank in degrees
        horizon_offset: Vertical translation of the pitch scale
        roll_index_offset: Vertical drop of the roll index
        sideslip_offset: Lag-filtered lateral translation of the sideslip index
        rising_ground_offset: Rising ground translation from radio altitude
    """
    failed: bool
    flag: str
    pitch: float = 0.0
    roll: float = 0.0
    horizon_offset: float = 0.0
    roll_index_offset: float = 0.0
    sideslip_offset: float = 0.0
    rising_ground_offset: float = 0.0


class AttitudeIndicator:
    """Horizon, roll index and rising ground from the pitch and roll words.

    The sideslip index is lag filtered and keeps moving while the attitude
    words are invalid.
    """

    def __init__(self, sideslip_time_constant: float = SIDESLIP_TIME_CONSTANT):
        self.sideslip_filter = LagFilter(sideslip_time_constant)
        self._sideslip_offset = 0.0

    def reset(self) -> None:
        self.sideslip_filter.reset()
        self._sideslip_offset = 0.0

    def update(self, snapshot: SignalSnapshot, dt: float = 0.0) -> AttitudeOutput:
        beta = snapshot.value(CH_SIDESLIP) - snapshot.value(CH_SIDESLIP_TARGET)
        beta = max(min(beta, SIDESLIP_MAX_DEG), -SIDESLIP_MAX_DEG)
        if dt > 0:
            self._sideslip_offset = self.sideslip_filter.step(beta, dt)

        pitch_word = snapshot.word(CH_PITCH)
        roll_word = snapshot.word(CH_ROLL)
        if not (pitch_word.is_normal_operation() and roll_word.is_normal_operation()):
            return AttitudeOutput(failed=True, flag=FAIL_FLAG, sideslip_offset=self._sideslip_offset)

        pitch = pitch_word.value
        roll = roll_word.value
        target_pitch = RISING_GROUND_PITCH_PER_FT * snapshot.value(CH_RADIO_ALT)
        rising_ground = horizon_offset_from_pitch(-pitch - target_pitch) - RISING_GROUND_BASE
        return AttitudeOutput(
            failed=False,
            flag='',
            pitch=pitch,
            roll=roll,
            horizon_offset=horizon_offset_from_pitch(-pitch),
            roll_index_offset=vertical_offset_from_roll(roll),
            sideslip_offset=self._sideslip_offset,
            rising_ground_offset=max(min(rising_ground, 0.0), RISING_GROUND_MIN),
        )
