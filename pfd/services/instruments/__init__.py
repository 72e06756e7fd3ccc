"""
Instrument components of the primary flight display.

Each instrument keeps only its derived state (filters, smoothers) and turns
an immutable signal snapshot into an immutable output on every frame.

Instruments:
- AltitudeIndicator: altitude tape and rolling-digit readout
- AirspeedIndicator: speed tape, trend arrow, VLS and V1 bugs
- HeadingIndicator: heading tape and selected heading bug
- VerticalSpeedIndicator: vertical speed needle and readout
- AttitudeIndicator: horizon, roll index, sideslip and rising ground
- RadioAltitudeIndicator: radio altitude readout and DH flag
- LandingSystemInfo: localizer ident, frequency and DME distance
"""

from pfd.services.instruments.airspeed import AirspeedIndicator
from pfd.services.instruments.altitude import AltitudeIndicator
from pfd.services.instruments.attitude import AttitudeIndicator
from pfd.services.instruments.heading import HeadingIndicator
from pfd.services.instruments.landing_system import LandingSystemInfo
from pfd.services.instruments.radio_altitude import RadioAltitudeIndicator
from pfd.services.instruments.vertical_speed import VerticalSpeedIndicator

__all__ = [
    'AirspeedIndicator', 'AltitudeIndicator', 'AttitudeIndicator',
    'HeadingIndicator', 'LandingSystemInfo', 'RadioAltitudeIndicator',
    'VerticalSpeedIndicator',
]
