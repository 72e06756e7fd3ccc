"""
Vertical speed needle and readout.

The inertial vertical speed has priority; the barometric one is used only
while the inertial word is not in normal operation.
"""
import logging
import math
from dataclasses import dataclass

from pfd.constants import (
    CH_RADIO_ALT, CH_VS_BARO, CH_VS_INERT,
    VS_AMBER_ABS_FPM, VS_AMBER_HIGH_RA_FPM, VS_AMBER_HIGH_RA_FT,
    VS_AMBER_LOW_RA_FPM, VS_AMBER_LOW_RA_FT,
    VS_SCALE_FIRST, VS_SCALE_SATURATED, VS_SCALE_SECOND, VS_SCALE_SECOND_OFFSET,
    VS_TEXT_MIN_FPM, VS_TEXT_OFFSET
)
from pfd.services.signal_service import SignalSnapshot

logger = logging.getLogger(__name__)

FAIL_FLAG = 'V/S'


def needle_offset(vs: float) -> float:
    """Piecewise-linear needle offset for a vertical speed in ft/min."""
    abs_vs = abs(vs)
    sign = math.copysign(1.0, vs) if vs != 0 else 0.0
    if abs_vs < 1000:
        return vs / 1000 * -VS_SCALE_FIRST
    if abs_vs < 2000:
        return (vs - sign * 1000) / 1000 * -VS_SCALE_SECOND - sign * VS_SCALE_FIRST
    if abs_vs < 6000:
        return (vs - sign * 2000) / 4000 * -VS_SCALE_SECOND - sign * VS_SCALE_SECOND_OFFSET
    return sign * -VS_SCALE_SATURATED


def is_amber(vs: float, radio_alt: float) -> bool:
    """Excessive vertical speed, absolute or close to the ground."""
    return (abs(vs) > VS_AMBER_ABS_FPM
            or (VS_AMBER_LOW_RA_FT < radio_alt < VS_AMBER_HIGH_RA_FT and vs < VS_AMBER_HIGH_RA_FPM)
            or (radio_alt < VS_AMBER_LOW_RA_FT and vs < VS_AMBER_LOW_RA_FPM))


@dataclass(frozen=True)
class VerticalSpeedOutput:
    """Vertical speed instrument output.

    Attributes:
        failed: Neither source in normal operation
        flag: Failure flag text ('' when valid)
        source: 'inertial' or 'baro'
        value: Vertical speed in ft/min
        needle_offset: Needle tip offset
        color: 'Green' or 'Amber'
        text_visible: Readout shown (|V/S| >= 200 ft/min)
        text: Hundreds of ft/min, at least two digits
        text_offset: Readout offset next to the needle
    """
    failed: bool
    flag: str
    source: str = ''
    value: float = 0.0
    needle_offset: float = 0.0
    color: str = ''
    text_visible: bool = False
    text: str = ''
    text_offset: float = 0.0


class VerticalSpeedIndicator:
    """Vertical speed needle and readout, inertial source first."""

    def reset(self) -> None:
        """The indicator holds no filter memory."""

    def update(self, snapshot: SignalSnapshot, dt: float = 0.0) -> VerticalSpeedOutput:
        inertial = snapshot.word(CH_VS_INERT)
        if inertial.is_normal_operation():
            word, source = inertial, 'inertial'
        else:
            word, source = snapshot.word(CH_VS_BARO), 'baro'
        if not word.is_normal_operation() or not math.isfinite(word.value):
            return VerticalSpeedOutput(failed=True, flag=FAIL_FLAG)

        vs = word.value
        offset = needle_offset(vs)
        abs_vs = abs(vs)
        text_visible = abs_vs >= VS_TEXT_MIN_FPM
        hundreds = int(math.floor(abs_vs / 100 + 0.5))
        sign = math.copysign(1.0, vs) if vs != 0 else 0.0
        return VerticalSpeedOutput(
            failed=False,
            flag='',
            source=source,
            value=vs,
            needle_offset=offset,
            color='Amber' if is_amber(vs, snapshot.value(CH_RADIO_ALT)) else 'Green',
            text_visible=text_visible,
            text=str(hundreds).zfill(2) if text_visible else '',
            text_offset=offset - sign * VS_TEXT_OFFSET,
        )
