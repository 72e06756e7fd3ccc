import math

import pytest

from pfd.models.display import DrumDigit
from pfd.models.signal_word import SignStatusMatrix, encode
from pfd.services.instruments import (
    AirspeedIndicator, AltitudeIndicator, AttitudeIndicator, HeadingIndicator,
    LandingSystemInfo, RadioAltitudeIndicator, VerticalSpeedIndicator
)
from pfd.services.instruments.altitude import altitude_label
from pfd.services.instruments.attitude import horizon_offset_from_pitch, vertical_offset_from_roll
from pfd.services.instruments.heading import heading_label, smallest_angle
from pfd.services.instruments.landing_system import split_distance, split_frequency
from pfd.services.instruments.radio_altitude import radio_altitude_text
from pfd.services.instruments.vertical_speed import is_amber, needle_offset
from pfd.services.signal_service import SignalService

NCD = SignStatusMatrix.NO_COMPUTED_DATA


def snap(at=0.0, words=None, **plain):
    """Build a snapshot; `words` maps channel -> value or (value, quality)."""
    service = SignalService()
    for name, entry in (words or {}).items():
        value, quality = entry if isinstance(entry, tuple) else (entry, SignStatusMatrix.NORMAL_OPERATION)
        service.publish(name, encode(value, quality))
    for name, value in plain.items():
        service.publish(name, value)
    return service.snapshot(at=at)


# altitude

def test_altitude_readout_and_tape():
    out = AltitudeIndicator().update(snap(words={'altitude': 10450.0}))
    assert not out.failed
    assert [w.text for w in out.wheels] == ['50', '4', '0', '1']
    assert out.digits[1] == DrumDigit(1, 104.0, '4')
    assert out.tape.offset == pytest.approx(-10450 * 0.075)
    assert out.color == 'Green'
    assert not out.negative_visible


def test_altitude_amber_below_mda():
    indicator = AltitudeIndicator()
    assert indicator.update(snap(words={'altitude': 900.0}, mda=1000.0)).color == 'Amber'
    assert indicator.update(snap(words={'altitude': 1100.0}, mda=1000.0)).color == 'Green'
    assert indicator.update(snap(words={'altitude': 900.0}, mda=0.0)).color == 'Green'


def test_altitude_failure_flag():
    out = AltitudeIndicator().update(snap(words={'altitude': (10450.0, NCD)}))
    assert out.failed
    assert out.flag == 'ALT'
    assert out.wheels == ()


def test_altitude_negative_indicator():
    out = AltitudeIndicator().update(snap(words={'altitude': -200.0}))
    assert out.negative_visible
    assert out.wheels[0].text == '00'
    assert out.wheels[1].text == '2'


def test_altitude_ground_reference():
    out = AltitudeIndicator().update(snap(words={'altitude': 100.0}, radio_alt=100.0))
    assert out.ground_reference_visible
    assert out.ground_reference_offset == pytest.approx(-35.25)
    out = AltitudeIndicator().update(snap(words={'altitude': 3000.0}, radio_alt=3000.0))
    assert not out.ground_reference_visible


def test_altitude_label():
    assert altitude_label(10500) == ('105', 'White')
    assert altitude_label(0) == ('000', 'White')
    assert altitude_label(-500) == ('005', 'White')
    assert altitude_label(10400) == ('', '')


# airspeed

def test_airspeed_failure_flag_when_absent():
    out = AirspeedIndicator().update(snap())
    assert out.failed
    assert out.flag == 'SPD'


def test_airspeed_trend_arrow():
    indicator = AirspeedIndicator()
    out = indicator.update(snap(words={'speed': 150.0}), 0.1)
    assert out.trend_length == 0.0
    assert not out.trend_visible
    out = indicator.update(snap(words={'speed': 160.0}), 1.0)
    # acceleration 10 kt/s limited to 1.2, lag filtered to 0.45, times 10 s
    assert out.trend_length == pytest.approx(4.5)
    assert out.trend_visible
    assert out.trend_offset == pytest.approx(-4.5)
    # no elapsed time, no filter step
    out = indicator.update(snap(words={'speed': 170.0}), 0.0)
    assert out.trend_length == pytest.approx(4.5)


def test_airspeed_reset_clears_trend():
    indicator = AirspeedIndicator()
    indicator.update(snap(words={'speed': 150.0}), 0.1)
    indicator.update(snap(words={'speed': 160.0}), 1.0)
    indicator.reset()
    out = indicator.update(snap(words={'speed': 200.0}), 1.0)
    assert out.trend_length == 0.0


def test_airspeed_tape_clamped_at_lower_limit():
    out = AirspeedIndicator().update(snap(words={'speed': 10.0}))
    assert out.tape.offset == -30.0
    assert not out.lower_outline_visible
    assert AirspeedIndicator().update(snap(words={'speed': 150.0})).lower_outline_visible


def test_airspeed_v1_bug():
    indicator = AirspeedIndicator()
    out = indicator.update(snap(words={'speed': 150.0}, v1=140.0, flightPhase=2))
    assert out.v1_visible
    assert out.v1_offset == -140.0
    out = indicator.update(snap(words={'speed': 150.0}, v1=200.0, flightPhase=2))
    assert not out.v1_visible
    assert out.v1_offtape_text == '200'
    out = indicator.update(snap(words={'speed': 150.0}, v1=140.0, flightPhase=5))
    assert not out.v1_visible
    assert out.v1_offtape_text == ''


def test_airspeed_vls_smoothing():
    indicator = AirspeedIndicator()
    out = indicator.update(snap(at=0.0, words={'speed': 150.0}, vls=130.0))
    assert out.vls == 130.0
    assert out.vls_offset == pytest.approx(20.0)
    out = indicator.update(snap(at=1.0, words={'speed': 150.0}, vls=140.0))
    assert out.vls == pytest.approx(130.0 + 10.0 * math.sin(math.pi / 4))


def test_airspeed_vls_absent():
    out = AirspeedIndicator().update(snap(words={'speed': 150.0}))
    assert math.isnan(out.vls)
    assert out.vls_offset == 0.0


# heading

def test_heading_tape_and_selected_bug():
    out = HeadingIndicator().update(snap(words={'heading': 90.0}, selected_heading=100.0))
    assert not out.failed
    assert out.tape.offset == pytest.approx(-90 * 7.555 / 5)
    assert out.selected_visible
    assert out.selected_offset == pytest.approx(10 * 7.555 / 5)


def test_heading_selected_off_scale():
    out = HeadingIndicator().update(snap(words={'heading': 90.0}, selected_heading=200.0))
    assert not out.selected_visible
    assert out.selected_offtape_text == '200'


def test_heading_selected_wraps_north():
    out = HeadingIndicator().update(snap(words={'heading': 355.0}, selected_heading=5.0))
    assert out.selected_visible
    assert out.selected_offset == pytest.approx(10 * 7.555 / 5)


def test_heading_without_selected_heading():
    out = HeadingIndicator().update(snap(words={'heading': 90.0}))
    assert not out.selected_visible


def test_heading_failure_flag():
    out = HeadingIndicator().update(snap(words={'heading': (90.0, NCD)}))
    assert out.failed
    assert out.flag == 'HDG'


def test_heading_labels():
    assert heading_label(30) == ('3', 'FontMedium')
    assert heading_label(20) == ('2', 'FontSmallest')
    assert heading_label(0) == ('0', 'FontMedium')
    assert heading_label(-20) == ('34', 'FontSmallest')
    assert heading_label(25) == ('', '')


def test_smallest_angle():
    assert smallest_angle(5, 355) == 10
    assert smallest_angle(355, 5) == -10
    assert smallest_angle(90, 90) == 0


# vertical speed

def test_needle_offset_segments():
    assert needle_offset(0) == 0.0
    assert needle_offset(500) == pytest.approx(-13.61)
    assert needle_offset(-500) == pytest.approx(13.61)
    assert needle_offset(1000) == pytest.approx(-27.22)
    assert needle_offset(1500) == pytest.approx(-32.27)
    assert needle_offset(2000) == pytest.approx(-37.32)
    assert needle_offset(7000) == pytest.approx(-47.37)
    assert needle_offset(-7000) == pytest.approx(47.37)


def test_vertical_speed_amber_rules():
    assert is_amber(7000, 5000)
    assert is_amber(-1500, 500)
    assert not is_amber(-1500, 3000)
    assert is_amber(-2100, 2000)
    assert not is_amber(-1500, 2000)


def test_vertical_speed_inertial_priority():
    indicator = VerticalSpeedIndicator()
    out = indicator.update(snap(words={'vs_inert': 1500.0, 'vs_baro': -800.0}))
    assert out.source == 'inertial'
    assert out.text == '15'
    assert out.text_visible
    out = indicator.update(snap(words={'vs_inert': (1500.0, NCD), 'vs_baro': -800.0}))
    assert out.source == 'baro'
    assert out.value == -800.0
    assert out.text == '08'
    assert out.color == 'Green'


def test_vertical_speed_small_values_hide_text():
    out = VerticalSpeedIndicator().update(snap(words={'vs_inert': 150.0}))
    assert not out.text_visible
    assert out.text == ''


def test_vertical_speed_failure_flag():
    out = VerticalSpeedIndicator().update(snap())
    assert out.failed
    assert out.flag == 'V/S'


# attitude

def test_pitch_scale_segments():
    assert horizon_offset_from_pitch(10) == pytest.approx(18.0)
    assert horizon_offset_from_pitch(25) == pytest.approx(44.0)
    assert horizon_offset_from_pitch(40) == pytest.approx(60.0)
    assert horizon_offset_from_pitch(-10) == pytest.approx(-17.0)
    assert horizon_offset_from_pitch(-20) == pytest.approx(-28.0)


def test_roll_index_drop():
    assert vertical_offset_from_roll(30) == 0.0
    assert vertical_offset_from_roll(90) == pytest.approx(41.0 - 35.87)
    assert vertical_offset_from_roll(-90) == pytest.approx(41.0 - 35.87)


def test_attitude_horizon_uses_negated_pitch():
    out = AttitudeIndicator().update(snap(words={'pitch': -10.0, 'roll': 0.0}))
    assert not out.failed
    assert out.horizon_offset == pytest.approx(18.0)
    assert out.rising_ground_offset == pytest.approx(18.0 - 31.563)


def test_attitude_rising_ground_clamped():
    out = AttitudeIndicator().update(snap(words={'pitch': 0.0, 'roll': 0.0}, radio_alt=1000.0))
    assert out.rising_ground_offset == 0.0
    out = AttitudeIndicator().update(snap(words={'pitch': 60.0, 'roll': 0.0}))
    assert out.rising_ground_offset == pytest.approx(-63.093)


def test_attitude_sideslip_filtered_and_clamped():
    indicator = AttitudeIndicator()
    out = indicator.update(snap(words={'pitch': 0.0, 'roll': 0.0}, sideslip=20.0), 0.5)
    # beta clamped to 15, lag filter s = 0.4: 15 * 0.4 / 2.4
    assert out.sideslip_offset == pytest.approx(2.5)
    out = indicator.update(snap(words={'pitch': 0.0, 'roll': 0.0}, sideslip=20.0), 0.0)
    assert out.sideslip_offset == pytest.approx(2.5)


def test_attitude_failure_flag():
    out = AttitudeIndicator().update(snap(words={'pitch': (0.0, NCD), 'roll': 0.0}))
    assert out.failed
    assert out.flag == 'ATT'


# radio altitude

def test_radio_altitude_hidden_above_2500_ft():
    indicator = RadioAltitudeIndicator()
    assert not indicator.update(snap(radio_alt=2600.0)).visible
    assert indicator.update(snap(radio_alt=2500.0)).visible
    assert not indicator.update(snap(radio_alt=math.nan)).visible


@pytest.mark.parametrize('radio_alt, text', [
    (0.0, '0'),
    (3.4, '3'),
    (4.5, '5'),
    (37.0, '35'),
    (47.6, '50'),
    (50.0, '50'),
    (123.0, '120'),
    (125.0, '130'),
    (2480.0, '2480'),
])
def test_radio_altitude_text_resolution(radio_alt, text):
    assert radio_altitude_text(radio_alt) == text


def test_radio_altitude_font_and_colour():
    indicator = RadioAltitudeIndicator()
    assert indicator.update(snap(radio_alt=450.0)).text_class == 'FontLarge Green MiddleAlign'
    # decision height 200 ft: green only more than 100 ft above it
    assert indicator.update(snap(radio_alt=350.0, dh=200.0)).text_class == 'FontLargest Green MiddleAlign'
    assert indicator.update(snap(radio_alt=250.0, dh=200.0)).text_class == 'FontLargest Amber MiddleAlign'
    # no decision height set
    assert indicator.update(snap(radio_alt=350.0, dh=-1.0)).text_class == 'FontLargest Amber MiddleAlign'


def test_radio_altitude_dh_flag():
    indicator = RadioAltitudeIndicator()
    above = indicator.update(snap(radio_alt=250.0, dh=200.0))
    assert not above.dh_visible
    assert 'Blink9Seconds' not in above.dh_class
    at = indicator.update(snap(radio_alt=200.0, dh=200.0))
    assert at.dh_visible
    assert at.dh_class == 'FontLargest Amber EndAlign Blink9Seconds'


def test_radio_altitude_follows_roll_index():
    indicator = RadioAltitudeIndicator()
    assert indicator.update(snap(words={'roll': 30.0}, radio_alt=100.0)).offset == 0.0
    out = indicator.update(snap(words={'roll': 75.0}, radio_alt=100.0))
    assert out.offset == pytest.approx(-vertical_offset_from_roll(75.0))
    assert out.offset < 0


# landing system

@pytest.mark.parametrize('frequency, parts', [
    (109.5, ('109', '.50')),
    (110.0, ('110', '.00')),
    (108.125, ('108', '.125')),
    (111.1, ('111', '.10')),
])
def test_split_frequency(frequency, parts):
    assert split_frequency(frequency) == parts


@pytest.mark.parametrize('distance, parts', [
    (5.0, ('5', '.0')),
    (12.34, ('12', '.3')),
    (19.96, ('20', '')),
    (25.26, ('25', '')),
])
def test_split_distance(distance, parts):
    assert split_distance(distance) == parts


def test_landing_system_info_with_dme():
    out = LandingSystemInfo().update(snap(
        nav_ident='ITLV', nav_freq=109.5, has_loc=1.0, has_dme=1.0, dme=7.84,
    ))
    assert out.has_localizer
    assert out.ident == 'ITLV'
    assert (out.frequency_leading, out.frequency_trailing) == ('109', '.50')
    assert out.dme_visible
    assert (out.distance_leading, out.distance_trailing) == ('7', '.8')


def test_landing_system_info_without_dme():
    out = LandingSystemInfo().update(snap(nav_freq=110.3, has_dme=0.0, dme=12.0))
    assert not out.has_localizer
    assert out.ident == ''
    assert out.frequency_trailing == '.30'
    assert not out.dme_visible
    assert out.distance_leading == ''
