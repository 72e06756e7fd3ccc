"""
PFD Service composing the signal service, display unit and instruments.

Inbound samples go through publish(): power channels drive the display unit
synchronously and the display is recomputed before publish() returns, without
advancing time. tick() advances virtual time, fires pending timers and steps
the instrument filters. Every recomputation reads one immutable snapshot.
frame() returns the latest DisplayFrame.
"""
import logging
from typing import Callable, Dict, List, Optional

from pfd.config import ConfigManager
from pfd.constants import CH_DISPLAY_FAILED, CH_ELEC, CH_POTENTIOMETER
from pfd.models.display import DisplayFrame
from pfd.models.signal_word import SignalWord, SignStatusMatrix
from pfd.services.display_unit_service import DisplayUnit, PowerState, SELFTEST_OVERLAY_TEXT
from pfd.services.instruments import (
    AirspeedIndicator, AltitudeIndicator, AttitudeIndicator, HeadingIndicator,
    LandingSystemInfo, RadioAltitudeIndicator, VerticalSpeedIndicator
)
from pfd.services.scheduler import FrameScheduler
from pfd.services.signal_service import SignalService

logger = logging.getLogger(__name__)

FrameListener = Callable[[DisplayFrame], None]


class PfdService:
    """Service driving one primary flight display.

    Attributes:
        config: Configuration in use
        signals: SignalService holding every channel
        scheduler: Virtual-time scheduler
        display_unit: Power/self-test state machine
        instruments: Instrument name -> instrument
    """

    def __init__(self, config: Optional[ConfigManager] = None,
                 signals: Optional[SignalService] = None,
                 scheduler: Optional[FrameScheduler] = None):
        """Initialize the service.

        Args:
            config: Configuration (defaults only when None)
            signals: Signal service to use (a new one when None)
            scheduler: Scheduler to use (a new one when None)

        Raises:
            ConfigurationError: If a setting cannot build a component
        """
        self.config = config or ConfigManager(load_defaults=False)
        self.scheduler = scheduler or FrameScheduler()
        self.signals = signals or SignalService(clock=lambda: self.scheduler.now)

        du = self.config.display_unit_settings
        self.display_unit = DisplayUnit(
            self.scheduler,
            standby_timeout=du.standby_timeout_s,
            selftest_timeout=du.selftest_timeout_s,
        )
        filters = self.config.filter_settings
        tapes = self.config.tape_settings
        self.instruments = {
            'attitude': AttitudeIndicator(filters.sideslip_time_constant),
            'airspeed': AirspeedIndicator(
                time_constant=filters.speed_trend_time_constant,
                rising_rate=filters.speed_trend_rising_rate,
                falling_rate=filters.speed_trend_falling_rate,
                vls_smooth_factor=filters.vls_smooth_factor,
                lower_limit=tapes.speed_lower_limit,
                upper_limit=tapes.speed_upper_limit,
            ),
            'altitude': AltitudeIndicator(
                tapes.rollover_threshold,
                tapes.negative_digit_bias,
                lower_limit=tapes.altitude_lower_limit,
                upper_limit=tapes.altitude_upper_limit,
            ),
            'heading': HeadingIndicator(),
            'vertical_speed': VerticalSpeedIndicator(),
            'radio_altitude': RadioAltitudeIndicator(),
            'landing_system': LandingSystemInfo(),
        }
        self._listeners: List[FrameListener] = []
        self._frame: Optional[DisplayFrame] = None

        self.signals.subscribe(CH_POTENTIOMETER, self.display_unit.set_potentiometer)
        self.signals.subscribe(CH_ELEC, self.display_unit.set_elec)
        self.signals.subscribe(CH_DISPLAY_FAILED, lambda v: self.display_unit.set_failed(v != 0))
        self.display_unit.add_listener(self._on_state_change)
        self._recompute(0.0)

    @property
    def state(self) -> PowerState:
        return self.display_unit.state

    def add_frame_listener(self, callback: FrameListener) -> None:
        """Register callback(frame) invoked after every recomputation."""
        self._listeners.append(callback)

    def publish(self, name: str, value: float, timestamp: Optional[float] = None) -> DisplayFrame:
        """Route one inbound raw sample and recompute the display without advancing time."""
        self.signals.publish(name, value, timestamp)
        return self._recompute(0.0)

    def publish_word(self, name: str, value: float,
                     quality: SignStatusMatrix = SignStatusMatrix.NORMAL_OPERATION) -> DisplayFrame:
        """Encode and route a signal word sample."""
        return self.publish(name, SignalWord(value, quality).encode())

    def tick(self, dt: float) -> DisplayFrame:
        """Advance virtual time by dt seconds and recompute the display.

        Returns:
            The new DisplayFrame
        """
        self.scheduler.advance(dt)
        return self._recompute(dt)

    def frame(self) -> DisplayFrame:
        """Return the latest DisplayFrame."""
        return self._frame

    def reset(self) -> None:
        """Reset filter memory after a discontinuity (e.g. simulator reset)."""
        for instrument in self.instruments.values():
            instrument.reset()
        logger.info("Instrument filter state reset")
        self._recompute(0.0)

    def shutdown(self) -> None:
        self.display_unit.shutdown()
        self.scheduler.clear()

    def _on_state_change(self, old: PowerState, new: PowerState) -> None:
        # power-up after the unit was dark starts the filters from scratch
        if old == PowerState.OFF:
            for instrument in self.instruments.values():
                instrument.reset()

    def _recompute(self, dt: float) -> DisplayFrame:
        snapshot = self.signals.snapshot(at=self.scheduler.now)
        outputs: Dict[str, object] = {}
        for name, instrument in self.instruments.items():
            outputs[name] = instrument.update(snapshot, dt)
        self._frame = DisplayFrame(
            state=self.display_unit.state.value,
            visibility=self.display_unit.visibility,
            selftest_visible=self.display_unit.selftest_visible,
            time=self.scheduler.now,
            instruments=outputs,
            overlay_text=SELFTEST_OVERLAY_TEXT if self.display_unit.selftest_visible else (),
        )
        for listener in list(self._listeners):
            listener(self._frame)
        return self._frame
