"""
Horizontal heading tape and selected heading bug.
"""
import logging
import math
from dataclasses import dataclass
from typing import Tuple

from pfd.constants import (
    CH_HEADING, CH_SELECTED_HEADING,
    HDG_DISPLAY_RANGE, HDG_DISTANCE_SPACING, HDG_LABEL_INTERVAL,
    HDG_LARGE_LABEL_INTERVAL, HDG_VALUE_SPACING, HDG_VISIBLE_RANGE
)
from pfd.models.display import TapeFrame
from pfd.models.tape_config import TapeConfig
from pfd.services.signal_service import SignalSnapshot
from pfd.utils.tape_engine import LinearTape

logger = logging.getLogger(__name__)

FAIL_FLAG = 'HDG'

HEADING_TAPE = TapeConfig(
    value_spacing=HDG_VALUE_SPACING,
    distance_spacing=HDG_DISTANCE_SPACING,
    display_range=HDG_DISPLAY_RANGE,
)


def smallest_angle(angle: float, reference: float) -> float:
    """Signed difference angle - reference wrapped into [-180, 180)."""
    return (angle - reference + 180.0) % 360.0 - 180.0


def heading_label(value: float) -> Tuple[str, str]:
    """Label every 10 degrees in tens of degrees (0..35); larger font every 30."""
    rounded = int(round(value))
    if rounded % HDG_LABEL_INTERVAL != 0:
        return '', ''
    text = str(int(round(value / 10)) % 36)
    font = 'FontMedium' if rounded % HDG_LARGE_LABEL_INTERVAL == 0 else 'FontSmallest'
    return text, font


@dataclass(frozen=True)
class HeadingOutput:
    """Heading instrument output.

    Attributes:
        failed: Heading word not in normal operation
        flag: Failure flag text ('' when valid)
        tape: Heading tape layout
        selected_visible: Selected heading bug inside the visible window
        selected_offset: Bug offset relative to the lubber line
        selected_offtape_text: Selected heading shown at the tape edge when off scale
    """
    failed: bool
    flag: str
    tape: TapeFrame
    selected_visible: bool = False
    selected_offset: float = 0.0
    selected_offtape_text: str = ''


class HeadingIndicator:
    """Heading tape and selected heading bug."""

    def __init__(self):
        self.tape = LinearTape(HEADING_TAPE, heading_label)

    def reset(self) -> None:
        """The tape holds no filter memory."""

    def update(self, snapshot: SignalSnapshot, dt: float = 0.0) -> HeadingOutput:
        word = snapshot.word(CH_HEADING)
        if not word.is_normal_operation() or not math.isfinite(word.value):
            return HeadingOutput(failed=True, flag=FAIL_FLAG, tape=TapeFrame(offset=0.0))

        heading = word.value
        output = dict(failed=False, flag='', tape=self.tape.update(heading))
        if CH_SELECTED_HEADING in snapshot:
            delta = smallest_angle(snapshot.value(CH_SELECTED_HEADING), heading)
            visible = abs(delta) <= HDG_VISIBLE_RANGE
            output.update(
                selected_visible=visible,
                selected_offset=delta * HEADING_TAPE.pixels_per_unit,
                selected_offtape_text='' if visible else
                str(int(round(snapshot.value(CH_SELECTED_HEADING))) % 360).zfill(3),
            )
        return HeadingOutput(**output)
