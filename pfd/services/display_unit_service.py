"""
Display unit power and self-test state machine.

A display unit starts Off. Power (backlight potentiometer and electrical bus
both non-zero) and a fault flag drive it through Standby, Selftest and On.
Instrument content is visible only in On; the self-test overlay is visible
only in Selftest.

The transition table is a pure function (next_state) so it can be checked
exhaustively; DisplayUnit applies it and owns the single pending timer.
"""
import logging
from enum import Enum
from typing import Callable, List, Optional, Tuple

from pfd.constants import SELFTEST_TIMEOUT_DEFAULT, STANDBY_TIMEOUT_DEFAULT
from pfd.exceptions import ConfigurationError
from pfd.models.display import Visibility
from pfd.services.scheduler import FrameScheduler, TimerHandle

logger = logging.getLogger(__name__)

SELFTEST_OVERLAY_TEXT = ('SELF TEST IN PROGRESS', '(MAX 40 SECONDS)')


class PowerState(Enum):
    """Display unit power states."""
    OFF = "Off"
    STANDBY = "Standby"
    SELFTEST = "Selftest"
    ON = "On"


class TimerAction(Enum):
    """What a transition does with the pending timer."""
    KEEP = "keep"
    CANCEL = "cancel"
    ARM_STANDBY = "arm_standby"
    ARM_SELFTEST = "arm_selftest"


def next_state(state: PowerState, powered: bool, failed: bool) -> Tuple[PowerState, TimerAction]:
    """Evaluate the transition table for one input change.

    The first matching rule wins and at most one transition happens.

    Args:
        state: Current state
        powered: Backlight and electrical bus both non-zero
        failed: Display unit fault flag

    Returns:
        (next state, timer action); KEEP means no transition
    """
    if state != PowerState.OFF and failed:
        return PowerState.OFF, TimerAction.CANCEL
    if state == PowerState.ON and not powered:
        return PowerState.STANDBY, TimerAction.ARM_STANDBY
    if state == PowerState.STANDBY and powered:
        return PowerState.ON, TimerAction.CANCEL
    if state == PowerState.OFF and powered and not failed:
        return PowerState.SELFTEST, TimerAction.ARM_SELFTEST
    if state == PowerState.SELFTEST and not powered:
        return PowerState.OFF, TimerAction.CANCEL
    return state, TimerAction.KEEP


def timeout_state(state: PowerState, powered: bool) -> PowerState:
    """Evaluate the timer rows: Standby times out to Off, Selftest to On."""
    if state == PowerState.STANDBY and not powered:
        return PowerState.OFF
    if state == PowerState.SELFTEST and powered:
        return PowerState.ON
    return state


class DisplayUnit:
    """One display unit's power state machine.

    Attributes:
        scheduler: Frame scheduler that owns the virtual clock
        standby_timeout: Seconds in Standby before switching Off
        selftest_timeout: Seconds of self-test before switching On
        state: Current PowerState
        powered: Last evaluated power input
        failed: Last evaluated fault input
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        standby_timeout: float = STANDBY_TIMEOUT_DEFAULT,
        selftest_timeout: float = SELFTEST_TIMEOUT_DEFAULT,
        name: str = 'display_unit'
    ):
        """Initialize the display unit in Off.

        Raises:
            ConfigurationError: If a timeout is not a positive number
        """
        for setting, value in (('standby_timeout', standby_timeout), ('selftest_timeout', selftest_timeout)):
            if not isinstance(value, (int, float)) or not value > 0:
                raise ConfigurationError(f"{setting} must be a positive number of seconds, got {value!r}",
                                         setting_name=setting, setting_value=value, expected="> 0")
        self.scheduler = scheduler
        self.standby_timeout = float(standby_timeout)
        self.selftest_timeout = float(selftest_timeout)
        self.name = name
        self.state = PowerState.OFF
        self.powered = False
        self.failed = False
        self._potentiometer = 0.0
        self._elec = 0.0
        self._timer: Optional[TimerHandle] = None
        self._listeners: List[Callable[[PowerState, PowerState], None]] = []

    @property
    def pending_timer(self) -> Optional[TimerHandle]:
        """The outstanding timer, if one is still going to fire."""
        if self._timer is not None and self._timer.active:
            return self._timer
        return None

    @property
    def visibility(self) -> Visibility:
        return Visibility.VISIBLE if self.state == PowerState.ON else Visibility.HIDDEN

    @property
    def selftest_visible(self) -> bool:
        return self.state == PowerState.SELFTEST

    def add_listener(self, callback: Callable[[PowerState, PowerState], None]) -> None:
        """Register callback(old_state, new_state) invoked on every transition."""
        self._listeners.append(callback)

    def set_potentiometer(self, value: float) -> PowerState:
        self._potentiometer = value
        return self.update(self._potentiometer != 0 and self._elec != 0, self.failed)

    def set_elec(self, value: float) -> PowerState:
        self._elec = value
        return self.update(self._potentiometer != 0 and self._elec != 0, self.failed)

    def set_failed(self, failed: bool) -> PowerState:
        return self.update(self.powered, bool(failed))

    def update(self, powered: bool, failed: bool) -> PowerState:
        """Apply an input change.

        Returns:
            State after evaluation
        """
        self.powered = bool(powered)
        self.failed = bool(failed)
        new_state, action = next_state(self.state, self.powered, self.failed)
        if action is TimerAction.KEEP:
            return self.state
        self._cancel_timer()
        if action is TimerAction.ARM_STANDBY:
            self._arm(self.standby_timeout)
        elif action is TimerAction.ARM_SELFTEST:
            self._arm(self.selftest_timeout)
        self._set_state(new_state)
        return self.state

    def _arm(self, delay: float) -> None:
        self._timer = self.scheduler.call_later(delay, self._on_timeout, name=f"{self.name} timeout")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timeout(self) -> None:
        self._timer = None
        new_state = timeout_state(self.state, self.powered)
        if new_state != self.state:
            self._set_state(new_state)

    def _set_state(self, new_state: PowerState) -> None:
        old_state = self.state
        if new_state == old_state:
            return
        self.state = new_state
        logger.info(f"{self.name}: {old_state.value} -> {new_state.value}")
        for listener in list(self._listeners):
            listener(old_state, new_state)

    def shutdown(self) -> None:
        """Cancel any pending timer."""
        self._cancel_timer()
