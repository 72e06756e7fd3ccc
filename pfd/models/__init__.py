"""
Data models for the PFD display core.

This package contains the value objects passed between the signal pipeline,
the instruments and the renderer.

Models:
- SignalWord: A decoded analog value with its quality tag
- TapeConfig: Geometry of a scrolling tape or odometer wheel
- DisplayFrame: Snapshot of one display unit handed to the renderer
"""

from pfd.models.display import (
    DisplayFrame, DrumDigit, DrumElement, TapeFrame, TapeMark, Visibility, WheelLayout
)
from pfd.models.signal_word import SignalWord, SignStatusMatrix
from pfd.models.tape_config import TapeConfig

__all__ = [
    'DisplayFrame', 'DrumDigit', 'DrumElement', 'TapeFrame', 'TapeMark',
    'Visibility', 'WheelLayout', 'SignalWord', 'SignStatusMatrix', 'TapeConfig',
]
