"""
Radio altitude readout and decision height flag.

The readout sits below the attitude sphere and moves down with the roll
index once the bank exceeds 60 degrees. It is hidden above 2500 ft.
"""
import logging
import math
from dataclasses import dataclass

from pfd.constants import (
    CH_DH, CH_RADIO_ALT, CH_ROLL,
    RADIO_ALT_DH_MARGIN_FT, RADIO_ALT_FINE_FT, RADIO_ALT_LARGE_FONT_FT,
    RADIO_ALT_MAX_VISIBLE_FT, RADIO_ALT_MEDIUM_FT
)
from pfd.services.instruments.attitude import vertical_offset_from_roll
from pfd.services.signal_service import SignalSnapshot

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def radio_altitude_text(radio_alt: float) -> str:
    """Round to 1 ft below 5 ft, to 5 ft up to 50 ft, to 10 ft above."""
    if radio_alt < RADIO_ALT_FINE_FT:
        return str(_round_half_up(radio_alt))
    if radio_alt <= RADIO_ALT_MEDIUM_FT:
        return str(_round_half_up(radio_alt / 5) * 5)
    return str(_round_half_up(radio_alt / 10) * 10)


@dataclass(frozen=True)
class RadioAltitudeOutput:
    """Radio altitude instrument output.

    Attributes:
        visible: Readout group shown (radio altitude at most 2500 ft)
        text: Rounded radio altitude
        text_class: Font size and colour classes of the readout
        offset: Vertical translation of the group, following the roll index
        dh_visible: DH flag shown (at or below decision height)
        dh_class: Classes of the DH flag (blinking while shown)
    """
    visible: bool
    text: str = ''
    text_class: str = ''
    offset: float = 0.0
    dh_visible: bool = False
    dh_class: str = ''


class RadioAltitudeIndicator:
    """Radio altitude readout with the decision height flag.

    A negative decision height means none is set: the readout then turns
    green only above 400 ft.
    """

    def reset(self) -> None:
        """The readout holds no filter memory."""

    def update(self, snapshot: SignalSnapshot, dt: float = 0.0) -> RadioAltitudeOutput:
        radio_alt = snapshot.value(CH_RADIO_ALT)
        if not math.isfinite(radio_alt) or radio_alt > RADIO_ALT_MAX_VISIBLE_FT:
            return RadioAltitudeOutput(visible=False)

        dh = snapshot.value(CH_DH)
        dh_valid = dh >= 0
        size = 'FontLarge' if radio_alt > RADIO_ALT_LARGE_FONT_FT else 'FontLargest'
        above_dh = dh_valid and radio_alt > dh + RADIO_ALT_DH_MARGIN_FT
        color = 'Green' if radio_alt > RADIO_ALT_LARGE_FONT_FT or above_dh else 'Amber'

        dh_visible = radio_alt <= dh
        dh_class = 'FontLargest Amber EndAlign'
        if dh_visible:
            dh_class += ' Blink9Seconds'

        return RadioAltitudeOutput(
            visible=True,
            text=radio_altitude_text(radio_alt),
            text_class=f"{size} {color} MiddleAlign",
            offset=-vertical_offset_from_roll(snapshot.word(CH_ROLL).value),
            dh_visible=dh_visible,
            dh_class=dh_class,
        )
