"""
Landing system information: localizer ident, frequency and DME distance.
"""
import logging
import math
from dataclasses import dataclass
from typing import Tuple

from pfd.constants import (
    CH_DME, CH_HAS_DME, CH_HAS_LOC, CH_NAV_FREQ, CH_NAV_IDENT, LS_DME_FINE_NM
)
from pfd.services.signal_service import SignalSnapshot

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def split_frequency(frequency: float) -> Tuple[str, str]:
    """Split a frequency in MHz into ('109', '.50'): kHz resolution, two decimals minimum."""
    if not math.isfinite(frequency):
        return '', ''
    rounded = _round_half_up(frequency * 1000) / 1000
    leading, _, trailing = f"{rounded:.3f}".rstrip('0').partition('.')
    return leading, '.' + trailing.ljust(2, '0')


def split_distance(distance: float) -> Tuple[str, str]:
    """Split a DME distance into ('12', '.3') below 20 NM, whole miles above."""
    if not math.isfinite(distance):
        return '', ''
    tenths = _round_half_up(distance * 10) / 10
    if tenths < LS_DME_FINE_NM:
        leading, _, trailing = f"{tenths:.1f}".partition('.')
        return leading, '.' + trailing
    return str(_round_half_up(tenths)), ''


@dataclass(frozen=True)
class LandingSystemOutput:
    """Landing system info output.

    Attributes:
        has_localizer: A localizer signal is received
        ident: Navaid identifier
        frequency_leading: Whole MHz of the tuned frequency
        frequency_trailing: Decimal part, e.g. '.50'
        dme_visible: DME distance shown
        distance_leading: Whole miles
        distance_trailing: Tenths below 20 NM, '' above
    """
    has_localizer: bool
    ident: str = ''
    frequency_leading: str = ''
    frequency_trailing: str = ''
    dme_visible: bool = False
    distance_leading: str = ''
    distance_trailing: str = ''


class LandingSystemInfo:
    """Ident, frequency and DME text of the tuned landing system."""

    def reset(self) -> None:
        """The info block holds no filter memory."""

    def update(self, snapshot: SignalSnapshot, dt: float = 0.0) -> LandingSystemOutput:
        ident = snapshot.value(CH_NAV_IDENT, '')
        frequency_leading, frequency_trailing = split_frequency(snapshot.value(CH_NAV_FREQ))
        dme_visible = snapshot.value(CH_HAS_DME) != 0
        distance_leading, distance_trailing = (
            split_distance(snapshot.value(CH_DME)) if dme_visible else ('', '')
        )
        return LandingSystemOutput(
            has_localizer=snapshot.value(CH_HAS_LOC) != 0,
            ident=str(ident),
            frequency_leading=frequency_leading,
            frequency_trailing=frequency_trailing,
            dme_visible=dme_visible,
            distance_leading=distance_leading,
            distance_trailing=distance_trailing,
        )
