"""
Scrolling tape and rolling-digit (odometer) layout.

This module converts a continuously varying value into screen-space layout:

- graduation_marks / LinearTape: the window of graduation marks of a linear
  tape and the continuous translation of the tape frame. Marks snap at
  value_spacing granularity while the frame moves smoothly.
- drum_layout: the digit glyphs instantiated on one odometer wheel.
- Odometer: a multi-wheel readout in which each wheel starts to roll toward
  its next digit while the wheel below it passes the rollover threshold of
  its cycle, so wheel positions stay continuous across a carry while the
  displayed digits change in whole steps.

Positions and offsets follow one sign convention: a mark for value m sits at
-m * distance_spacing / value_spacing inside the tape frame, and the frame is
translated by -clamped_value * distance_spacing / value_spacing.
"""
import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from pfd.constants import ROLLOVER_THRESHOLD_DEFAULT, WHEEL_DECADES, WHEEL_UNIT
from pfd.exceptions import ConfigurationError
from pfd.models.display import DrumElement, TapeFrame, TapeMark, WheelLayout
from pfd.models.tape_config import TapeConfig

logger = logging.getLogger(__name__)

# value -> (text, validity_class)
LabelFunction = Callable[[float], Tuple[str, str]]


def round_half_up(x: float) -> float:
    """Round to the nearest integer with halves rounded toward +infinity."""
    return math.floor(x + 0.5)


def highest_in_window(value: float, value_spacing: float, display_range: float) -> float:
    """Return the highest multiple of value_spacing not above value + display_range."""
    top = value + display_range
    highest = round_half_up(top / value_spacing) * value_spacing
    if highest > top:
        highest -= value_spacing
    return highest


def tape_offset(value: float, config: TapeConfig) -> float:
    """Translation of the tape frame for the (clamped) current value."""
    return -config.clamp(value) * config.pixels_per_unit


def graduation_marks(
    value: float,
    config: TapeConfig,
    label: Optional[LabelFunction] = None
) -> List[TapeMark]:
    """Compute the visible graduation marks of a linear tape.

    Marks are emitted from the highest one downward, spaced exactly
    value_spacing apart. Marks below value - display_range and marks outside
    the configured limits are omitted.

    Args:
        value: Current tape value
        config: Tape geometry
        label: Optional function giving (text, validity_class) for a mark

    Returns:
        Marks ordered from highest to lowest value
    """
    if not math.isfinite(value):
        return []
    s = config.value_spacing
    highest = highest_in_window(value, s, config.display_range)
    bottom = value - config.display_range
    count = math.ceil(2 * config.display_range / s)
    marks = []
    for i in range(count + 1):
        mark_value = highest - i * s
        if mark_value < bottom:
            break
        if not config.in_limits(mark_value):
            continue
        text, validity_class = label(mark_value) if label is not None else ('', '')
        marks.append(TapeMark(
            value=mark_value,
            offset=-mark_value * config.pixels_per_unit,
            text=text,
            validity_class=validity_class
        ))
    return marks


class LinearTape:
    """A linear scrolling tape bound to one geometry and labelling rule."""

    def __init__(self, config: TapeConfig, label: Optional[LabelFunction] = None):
        self.config = config
        self.label = label

    def update(self, value: float) -> TapeFrame:
        """Lay out the tape for the current value."""
        if not math.isfinite(value):
            return TapeFrame(offset=0.0, marks=())
        return TapeFrame(
            offset=tape_offset(value, self.config),
            marks=tuple(graduation_marks(value, self.config, self.label))
        )


class DigitFormatter:
    """Text formatting for one wheel order.

    Values are wrapped into [0, modulus); a negative value is biased by the
    modulus (an odometer turning backward through zero shows 9 then 8, and a
    two-digit wheel at -7 shows 93). Non-finite values render blank.

    Attributes:
        modulus: Cycle of the wheel (10 for a single digit, 100 for two digits)
        width: Zero-padded text width
        negative_bias: When False, negative values render blank instead
    """

    def __init__(self, modulus: int = 10, width: int = 1, negative_bias: bool = True):
        if not isinstance(modulus, int) or modulus < 2:
            raise ConfigurationError(f"modulus must be an integer >= 2, got {modulus!r}",
                                     setting_name='modulus', setting_value=modulus, expected=">= 2")
        self.modulus = modulus
        self.width = width
        self.negative_bias = negative_bias

    def format(self, value: float) -> str:
        if value is None or not math.isfinite(value):
            return ''
        n = int(round_half_up(value))
        if n < 0 and not self.negative_bias:
            return ''
        return str(n % self.modulus).zfill(self.width)

    __call__ = format


def drum_layout(
    position: float,
    value: float,
    config: TapeConfig,
    formatter: Callable[[float], str],
    show_zero: bool = True
) -> Tuple[float, Tuple[DrumElement, ...]]:
    """Lay out the digit glyphs of one odometer wheel.

    Args:
        position: Continuous wheel position (drives glyph placement)
        value: Wheel value (drives glyph text)
        config: Wheel geometry; digit_count glyphs are instantiated
        formatter: Glyph text function
        show_zero: When False a glyph whose value is exactly 0 is blank

    Returns:
        (group offset, glyphs ordered from highest to lowest)
    """
    s = config.value_spacing
    highest_position = highest_in_window(position, s, config.display_range)
    highest_value = highest_in_window(value, s, config.display_range)
    elements = []
    for i in range(config.digit_count):
        element_value = highest_value - i * s
        element_offset = -(highest_position - i * s) * config.pixels_per_unit
        if not show_zero and element_value == 0:
            element_value = math.nan
        elements.append(DrumElement(value=element_value, text=formatter(element_value),
                                    offset=element_offset))
    return position * config.pixels_per_unit, tuple(elements)


@dataclass(frozen=True)
class OdometerReading:
    """Result of an odometer update.

    Attributes:
        value: Value after clamping
        negative: Whether the clamped value is below zero
        wheels: Wheel layouts, least significant first
    """
    value: float
    negative: bool
    wheels: Tuple[WheelLayout, ...]

    def digits(self) -> Tuple[Tuple[int, float, str], ...]:
        """Return (wheel_index, position, text) per wheel."""
        return tuple((w.wheel_index, w.position, w.text) for w in self.wheels)

    def text(self) -> str:
        """Displayed digits, most significant first, blanks dropped."""
        return ''.join(w.text for w in reversed(self.wheels))


class Odometer:
    """Multi-wheel rolling readout.

    Wheel 0 is the least significant wheel and shows the value modulo the
    place value of wheel 1 (e.g. the last two digits of an altitude). Wheel
    i >= 1 shows the digit of place value unit * decades[i].

    Carry: while the fractional part f of wheel 0's cycle exceeds the
    rollover threshold, wheel 1 drifts by (f - threshold) / (1 - threshold)
    toward its next digit; wheel i > 1 drifts by the same amount when the
    wheel below it shows its highest digit. A wheel's position is the
    absolute count of its place value plus its drift, which is continuous
    across a carry.

    Attributes:
        wheels: Geometry per wheel, least significant first
        unit: Digits per wheel (10)
        decades: Decade multiplier per wheel
        rollover_threshold: Fraction of wheel 0's cycle where the carry starts
        lower_limit: Clamp applied before decomposition (optional)
        upper_limit: Clamp applied before decomposition (optional)
    """

    def __init__(
        self,
        wheels: Sequence[TapeConfig],
        unit: int = WHEEL_UNIT,
        decades: Sequence[int] = WHEEL_DECADES,
        rollover_threshold: float = ROLLOVER_THRESHOLD_DEFAULT,
        lower_limit: Optional[float] = None,
        upper_limit: Optional[float] = None,
        negative_bias: bool = True
    ):
        if len(wheels) < 2:
            raise ConfigurationError("An odometer needs at least two wheels",
                                     setting_name='wheels', setting_value=len(wheels), expected=">= 2")
        if len(decades) < len(wheels):
            raise ConfigurationError(
                f"{len(wheels)} wheels need as many decades, got {len(decades)}",
                setting_name='decades', setting_value=tuple(decades),
                expected=f"{len(wheels)} entries"
            )
        if any(not isinstance(d, int) or d < 1 for d in decades):
            raise ConfigurationError(f"decades must be positive integers, got {tuple(decades)}",
                                     setting_name='decades', setting_value=tuple(decades),
                                     expected="positive integers")
        if not (isinstance(rollover_threshold, (int, float)) and 0 <= rollover_threshold < 1):
            raise ConfigurationError(
                f"rollover_threshold must lie in [0, 1), got {rollover_threshold!r}",
                setting_name='rollover_threshold', setting_value=rollover_threshold,
                expected="0 <= threshold < 1"
            )
        self.wheels = tuple(wheels)
        self.unit = unit
        self.decades = tuple(decades[:len(wheels)])
        self.rollover_threshold = float(rollover_threshold)
        self.lower_limit = lower_limit
        self.upper_limit = upper_limit
        self._spans = tuple(unit * d for d in self.decades)
        cycle = self._spans[1]
        self._formatters = [DigitFormatter(cycle, len(str(cycle)) - 1, negative_bias)]
        self._formatters.extend(DigitFormatter(unit, 1, negative_bias) for _ in self.wheels[1:])

    def clamp(self, value: float) -> float:
        if self.lower_limit is not None:
            value = max(value, self.lower_limit)
        if self.upper_limit is not None:
            value = min(value, self.upper_limit)
        return value

    def carry_drift(self, magnitude: float) -> List[float]:
        """Return the drift of every wheel for a non-negative magnitude."""
        cycle = self._spans[1]
        fraction = (magnitude % cycle) / cycle
        drifts = [0.0]
        if fraction > self.rollover_threshold:
            drift = (fraction - self.rollover_threshold) / (1 - self.rollover_threshold)
        else:
            drift = 0.0
        drifts.append(drift)
        for i in range(2, len(self.wheels)):
            lower_digit = math.floor(magnitude / self._spans[i - 1]) % self.unit
            drifts.append(drifts[i - 1] if lower_digit >= self.unit - 1 else 0.0)
        return drifts

    def update(self, value: float) -> OdometerReading:
        """Decompose a value into wheel layouts.

        Non-finite values blank every wheel.
        """
        if value is None or not math.isfinite(value):
            blank = tuple(WheelLayout(i, 0.0, 0.0, math.nan, '') for i in range(len(self.wheels)))
            return OdometerReading(value=math.nan, negative=False, wheels=blank)

        clamped = self.clamp(value)
        magnitude = abs(clamped)
        drifts = self.carry_drift(magnitude)
        layouts = []

        # wheel 0 moves continuously with the value
        config = self.wheels[0]
        cycle_value = magnitude % self._spans[1]
        offset, elements = drum_layout(magnitude, magnitude, config, self._formatters[0])
        displayed = math.floor(cycle_value)
        layouts.append(WheelLayout(0, magnitude, offset, displayed,
                                   self._formatters[0](displayed), elements))

        for i in range(1, len(self.wheels)):
            config = self.wheels[i]
            count = math.floor(magnitude / self._spans[i])
            position = count + drifts[i]
            displayed = count % self.unit
            # a zero is non-significant only when every higher place is zero too
            show_zero = not config.suppress_leading_zero
            offset, elements = drum_layout(position, position, config, self._formatters[i],
                                           show_zero=show_zero)
            if config.suppress_leading_zero and count == 0:
                text = ''
                shown = math.nan
            else:
                text = self._formatters[i](displayed)
                shown = float(displayed)
            layouts.append(WheelLayout(i, position, offset, shown, text, elements))

        return OdometerReading(value=clamped, negative=clamped < 0, wheels=tuple(layouts))
