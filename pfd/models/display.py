"""
Render-facing snapshot models produced by the display pipeline.

These are immutable value objects handed to the (external) renderer. They
carry screen offsets and already formatted text only; no drawing concerns.
"""
import enum
import math
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional, Tuple


class Visibility(str, enum.Enum):
    """Visibility of a display unit's instrument content."""
    HIDDEN = 'hidden'
    VISIBLE = 'visible'


@dataclass(frozen=True)
class TapeMark:
    """A graduation mark on a linear tape.

    Attributes:
        value: Value the mark stands for
        offset: Screen offset of the mark inside the tape frame
        text: Label text (empty for unlabelled ticks)
        validity_class: Style class for the label
    """
    value: float
    offset: float
    text: str = ''
    validity_class: str = ''


@dataclass(frozen=True)
class DrumElement:
    """One digit glyph on an odometer wheel."""
    value: float
    text: str
    offset: float


@dataclass(frozen=True)
class WheelLayout:
    """Layout of one odometer wheel.

    Attributes:
        wheel_index: 0 for the least significant wheel
        position: Continuous wheel position in digit units
        offset: Screen translation of the digit group
        displayed_value: Digit currently shown in the window (NaN if blank)
        text: Formatted text of the displayed digit
        elements: Digit glyphs instantiated on the drum
    """
    wheel_index: int
    position: float
    offset: float
    displayed_value: float
    text: str
    elements: Tuple[DrumElement, ...] = ()

    @property
    def is_blank(self) -> bool:
        return self.text == '' or math.isnan(self.displayed_value)


@dataclass(frozen=True)
class DrumDigit:
    """Per-wheel render tuple (wheel index, position, digit text)."""
    wheel_index: int
    position: float
    text: str


@dataclass(frozen=True)
class TapeFrame:
    """Render tuple list for one tape.

    Attributes:
        offset: Translation of the whole tape coordinate frame
        marks: Instantiated graduation marks
    """
    offset: float
    marks: Tuple[TapeMark, ...] = ()

    def render_tuples(self) -> Tuple[Tuple[float, str, str], ...]:
        """Return (screen_offset, text, validity_class) for every mark.

        The screen offset is the mark's position relative to the current
        value, i.e. after the frame translation is applied.
        """
        return tuple((m.offset - self.offset, m.text, m.validity_class) for m in self.marks)


def _jsonable(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


@dataclass(frozen=True)
class DisplayFrame:
    """Complete snapshot of one display unit.

    Attributes:
        state: Display unit power state name
        visibility: Whether instrument content is drawn
        selftest_visible: Whether the self-test overlay is drawn
        time: Virtual time of the snapshot in seconds
        instruments: Instrument name -> instrument output dataclass
        overlay_text: Lines of the self-test overlay (empty when hidden)
    """
    state: str
    visibility: Visibility
    selftest_visible: bool
    time: float = 0.0
    instruments: Dict[str, Any] = field(default_factory=dict)
    overlay_text: Tuple[str, ...] = ()

    def instrument(self, name: str) -> Optional[Any]:
        return self.instruments.get(name)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize into plain JSON-compatible types (non-finite -> None)."""
        return _jsonable({
            'state': self.state,
            'visibility': self.visibility,
            'selftest_visible': self.selftest_visible,
            'time': self.time,
            'overlay_text': self.overlay_text,
            'instruments': {name: asdict(out) for name, out in self.instruments.items()},
        })
