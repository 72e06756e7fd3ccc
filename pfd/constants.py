"""
Constants and configuration values for the PFD display core.

This module centralizes all magic numbers, limits, and default configuration
values used by the signal pipeline and the instruments. This improves
maintainability by providing a single source of truth for these values.

Constants are organized by category:
- Signal word quality codes
- Filter defaults
- Tape geometry per instrument
- Odometer (rolling digit) wheel geometry
- Display unit timing
- Vertical speed and attitude scaling
- Radio altitude and landing system readouts
- Inbound channel names
"""

# Signal word quality codes (low 32-bit lane)
SSM_FAILURE_WARNING = 0
SSM_NO_COMPUTED_DATA = 1
SSM_FUNCTIONAL_TEST = 2
SSM_NORMAL_OPERATION = 3

# Tolerance under which SmoothSin snaps straight to its destination
SMOOTH_SIN_EPSILON = 2.220446049250313e-16

# Filter defaults
SPEED_TREND_TIME_CONSTANT = 1.2
SPEED_TREND_RISING_RATE = 1.2
SPEED_TREND_FALLING_RATE = -1.2
SPEED_TREND_GAIN_S = 10.0  # arrow shows the speed reached in 10 seconds
SPEED_TREND_MIN_VISIBLE_KT = 1.0
SIDESLIP_TIME_CONSTANT = 0.8
VLS_SMOOTH_FACTOR = 0.5

# Altitude tape
ALT_VALUE_SPACING = 100.0
ALT_DISTANCE_SPACING = 7.5
ALT_DISPLAY_RANGE = 600.0  # 570 visible + 30 margin
ALT_LABEL_INTERVAL = 500
ALT_LOWER_LIMIT = -1500.0
ALT_UPPER_LIMIT = 50000.0
RADIO_ALT_GROUND_REF_MAX = 570.0

# Airspeed tape
SPD_VALUE_SPACING = 10.0
SPD_DISTANCE_SPACING = 10.0
SPD_DISPLAY_RANGE = 48.0  # 42 visible + 6 margin
SPD_VISIBLE_RANGE = 42.0
SPD_LABEL_INTERVAL = 20
SPD_LOWER_LIMIT = 30.0
SPD_UPPER_LIMIT = 660.0
SPD_LOWER_OUTLINE_MIN = 72.0
V1_MAX_FLIGHT_PHASE = 4

# Heading tape
HDG_VALUE_SPACING = 5.0
HDG_DISTANCE_SPACING = 7.555
HDG_DISPLAY_RANGE = 27.0  # 24 visible + 3 margin
HDG_VISIBLE_RANGE = 24.0
HDG_LABEL_INTERVAL = 10
HDG_LARGE_LABEL_INTERVAL = 30

# Odometer wheel geometry: (value_spacing, distance_spacing, display_range, digit_count)
TENS_WHEEL_GEOMETRY = (20.0, 4.7, 40.0, 4)
HUNDREDS_WHEEL_GEOMETRY = (1.0, 7.0, 1.0, 10)
THOUSANDS_WHEEL_GEOMETRY = (1.0, 7.0, 1.0, 2)
TEN_THOUSANDS_WHEEL_GEOMETRY = (1.0, 7.0, 1.0, 2)
WHEEL_DECADES = (1, 10, 100, 1000)
WHEEL_UNIT = 10
# Fraction of the lowest wheel's cycle above which the next wheel starts to roll
ROLLOVER_THRESHOLD_DEFAULT = 0.8

# Display unit timing (seconds)
STANDBY_TIMEOUT_DEFAULT = 10.0
SELFTEST_TIMEOUT_DEFAULT = 15.0

# Vertical speed scale (screen units)
VS_TEXT_MIN_FPM = 200.0
VS_AMBER_ABS_FPM = 6000.0
VS_AMBER_LOW_RA_FT = 1000.0
VS_AMBER_HIGH_RA_FT = 2500.0
VS_AMBER_LOW_RA_FPM = -1200.0
VS_AMBER_HIGH_RA_FPM = -2000.0
VS_SCALE_FIRST = 27.22
VS_SCALE_SECOND = 10.1
VS_SCALE_SECOND_OFFSET = 37.32
VS_SCALE_SATURATED = 47.37
VS_TEXT_OFFSET = 2.4

# Attitude scale
ROLL_OFFSET_THRESHOLD_DEG = 60.0
ROLL_OFFSET_BASE = 41.0
ROLL_OFFSET_FACTOR = 35.87
RISING_GROUND_PITCH_PER_FT = -0.1
RISING_GROUND_BASE = 31.563
RISING_GROUND_MIN = -63.093
SIDESLIP_MAX_DEG = 15.0

# Radio altitude readout
RADIO_ALT_MAX_VISIBLE_FT = 2500.0
RADIO_ALT_LARGE_FONT_FT = 400.0  # smaller font above this height
RADIO_ALT_DH_MARGIN_FT = 100.0
RADIO_ALT_FINE_FT = 5.0  # 1 ft resolution below
RADIO_ALT_MEDIUM_FT = 50.0  # 5 ft resolution up to, 10 ft above

# Landing system info
LS_DME_FINE_NM = 20.0  # tenths shown below this distance

# Inbound channel names
CH_ELEC = 'elec'
CH_POTENTIOMETER = 'potentiometer_captain'
CH_DISPLAY_FAILED = 'display_failed'
CH_PITCH = 'pitch'
CH_ROLL = 'roll'
CH_SIDESLIP = 'sideslip'
CH_SIDESLIP_TARGET = 'sideslip_target'
CH_HEADING = 'heading'
CH_SELECTED_HEADING = 'selected_heading'
CH_ALTITUDE = 'altitude'
CH_MDA = 'mda'
CH_RADIO_ALT = 'radio_alt'
CH_SPEED = 'speed'
CH_VLS = 'vls'
CH_V1 = 'v1'
CH_FLIGHT_PHASE = 'flightPhase'
CH_VS_BARO = 'vs_baro'
CH_VS_INERT = 'vs_inert'
CH_DH = 'dh'
CH_HAS_LOC = 'has_loc'
CH_HAS_DME = 'has_dme'
CH_NAV_IDENT = 'nav_ident'
CH_NAV_FREQ = 'nav_freq'
CH_DME = 'dme'

# Channels carried as encoded signal words; all others are plain values
WORD_CHANNELS = frozenset({
    CH_PITCH, CH_ROLL, CH_HEADING, CH_ALTITUDE, CH_SPEED, CH_VS_BARO, CH_VS_INERT,
})

# Channels carried as text (navaid ident); everything else is numeric
TEXT_CHANNELS = frozenset({CH_NAV_IDENT})
