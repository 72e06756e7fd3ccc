import itertools

import pytest

from pfd.exceptions import ConfigurationError
from pfd.models.display import Visibility
from pfd.services.display_unit_service import (
    DisplayUnit, PowerState, TimerAction, next_state, timeout_state
)
from pfd.services.scheduler import FrameScheduler


def make_unit():
    scheduler = FrameScheduler()
    return scheduler, DisplayUnit(scheduler, standby_timeout=10.0, selftest_timeout=15.0)


def test_power_cycle_scenario():
    scheduler, unit = make_unit()
    assert unit.state == PowerState.OFF

    assert unit.update(True, False) == PowerState.SELFTEST
    scheduler.advance(14.0)
    assert unit.state == PowerState.SELFTEST
    scheduler.advance(1.0)
    assert unit.state == PowerState.ON

    assert unit.update(False, False) == PowerState.STANDBY
    scheduler.advance(9.0)
    assert unit.state == PowerState.STANDBY
    scheduler.advance(1.0)
    assert unit.state == PowerState.OFF
    assert unit.pending_timer is None


def test_visibility_per_state():
    scheduler, unit = make_unit()
    assert unit.visibility == Visibility.HIDDEN
    assert not unit.selftest_visible
    unit.update(True, False)
    assert unit.visibility == Visibility.HIDDEN
    assert unit.selftest_visible
    scheduler.advance(15.0)
    assert unit.visibility == Visibility.VISIBLE
    assert not unit.selftest_visible
    unit.update(False, False)
    assert unit.visibility == Visibility.HIDDEN
    assert not unit.selftest_visible


def test_standby_repowered_returns_on_and_cancels_timer():
    scheduler, unit = make_unit()
    unit.update(True, False)
    scheduler.advance(15.0)
    unit.update(False, False)
    assert unit.pending_timer is not None
    unit.update(True, False)
    assert unit.state == PowerState.ON
    assert unit.pending_timer is None
    scheduler.advance(60.0)
    assert unit.state == PowerState.ON


def test_power_loss_during_selftest_goes_off():
    scheduler, unit = make_unit()
    unit.update(True, False)
    unit.update(False, False)
    assert unit.state == PowerState.OFF
    assert scheduler.pending() == 0


def test_flapping_power_keeps_single_timer():
    scheduler, unit = make_unit()
    for _ in range(5):
        unit.update(True, False)
        unit.update(False, False)
    unit.update(True, False)
    assert scheduler.pending() == 1
    scheduler.advance(15.0)
    assert unit.state == PowerState.ON
    assert scheduler.pending() == 0


def test_failure_forces_off_from_any_state():
    for steps in ([], [15.0]):
        scheduler, unit = make_unit()
        unit.update(True, False)
        for dt in steps:
            scheduler.advance(dt)
        unit.update(True, True)
        assert unit.state == PowerState.OFF
        assert unit.pending_timer is None


def test_failed_unit_does_not_power_up():
    scheduler, unit = make_unit()
    assert unit.update(True, True) == PowerState.OFF
    assert unit.update(True, False) == PowerState.SELFTEST


def test_failure_in_standby_goes_off():
    scheduler, unit = make_unit()
    unit.update(True, False)
    scheduler.advance(15.0)
    unit.update(False, False)
    unit.update(False, True)
    assert unit.state == PowerState.OFF
    assert scheduler.pending() == 0


def test_power_inputs_need_both_channels():
    scheduler, unit = make_unit()
    unit.set_potentiometer(0.8)
    assert unit.state == PowerState.OFF
    unit.set_elec(1.0)
    assert unit.state == PowerState.SELFTEST
    scheduler.advance(15.0)
    unit.set_potentiometer(0.0)
    assert unit.state == PowerState.STANDBY
    unit.set_failed(True)
    assert unit.state == PowerState.OFF


def test_listener_sees_every_transition():
    scheduler, unit = make_unit()
    seen = []
    unit.add_listener(lambda old, new: seen.append((old, new)))
    unit.update(True, False)
    scheduler.advance(15.0)
    assert seen == [(PowerState.OFF, PowerState.SELFTEST), (PowerState.SELFTEST, PowerState.ON)]


def test_transition_table_is_total():
    for state, powered, failed in itertools.product(PowerState, (False, True), (False, True)):
        new_state, action = next_state(state, powered, failed)
        assert isinstance(new_state, PowerState)
        if failed and state != PowerState.OFF:
            assert (new_state, action) == (PowerState.OFF, TimerAction.CANCEL)
        if action is TimerAction.KEEP:
            assert new_state == state


def test_transition_table_rows():
    assert next_state(PowerState.ON, False, False) == (PowerState.STANDBY, TimerAction.ARM_STANDBY)
    assert next_state(PowerState.STANDBY, True, False) == (PowerState.ON, TimerAction.CANCEL)
    assert next_state(PowerState.OFF, True, False) == (PowerState.SELFTEST, TimerAction.ARM_SELFTEST)
    assert next_state(PowerState.SELFTEST, False, False) == (PowerState.OFF, TimerAction.CANCEL)
    assert next_state(PowerState.OFF, True, True) == (PowerState.OFF, TimerAction.KEEP)
    assert next_state(PowerState.ON, True, False) == (PowerState.ON, TimerAction.KEEP)


def test_timeout_rows():
    assert timeout_state(PowerState.STANDBY, False) == PowerState.OFF
    assert timeout_state(PowerState.SELFTEST, True) == PowerState.ON
    assert timeout_state(PowerState.ON, True) == PowerState.ON


def test_invalid_timeout_rejected():
    with pytest.raises(ConfigurationError):
        DisplayUnit(FrameScheduler(), standby_timeout=0)
