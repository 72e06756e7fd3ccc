import math

import numpy as np
import pytest

from pfd.exceptions import ConfigurationError
from pfd.utils.signal_processing import (
    LagFilter, RateLimiter, SinSmoother, lag_filter_response, rate_limit_series, smooth_sin
)


def test_lag_filter_first_step():
    f = LagFilter(1.2)
    # s = 0.6: out = (1 + 0) * 0.6 / 2.6
    assert f.step(1.0, 0.5) == pytest.approx(0.6 / 2.6)
    assert f.previous_input == 1.0


def test_lag_filter_converges_to_constant_input():
    f = LagFilter(1.2)
    out = 0.0
    for _ in range(200):
        out = f.step(5.0, 0.1)
    assert out == pytest.approx(5.0, rel=1e-6)


def test_lag_filter_nan_input_is_zero():
    f = LagFilter(1.2)
    assert f.step(math.nan, 0.5) == 0.0
    assert f.previous_input == 0.0
    assert f.previous_output == 0.0


def test_lag_filter_non_finite_result_returns_zero_and_keeps_output():
    f = LagFilter(1.2)
    first = f.step(1.0, 0.5)
    assert f.step(1.0, math.inf) == 0.0
    assert f.previous_output == first
    assert f.previous_input == 1.0


def test_lag_filter_reset():
    f = LagFilter(1.2)
    f.step(3.0, 0.5)
    f.reset()
    assert f.previous_input == 0.0
    assert f.previous_output == 0.0


@pytest.mark.parametrize('tc', [0, -1.0, math.nan, math.inf, 'abc'])
def test_lag_filter_rejects_bad_time_constant(tc):
    with pytest.raises(ConfigurationError):
        LagFilter(tc)


def test_rate_limiter_clamps_both_directions():
    r = RateLimiter(1.2, -1.2)
    assert r.step(10.0, 1.0) == pytest.approx(1.2)
    assert r.step(10.0, 1.0) == pytest.approx(2.4)
    assert r.step(-10.0, 1.0) == pytest.approx(1.2)
    # small changes pass through untouched
    assert r.step(1.5, 1.0) == pytest.approx(1.5)


def test_rate_limiter_nan_input_is_zero():
    r = RateLimiter(1.2, -1.2, initial=1.0)
    assert r.step(math.nan, 1.0) == pytest.approx(0.0)


def test_rate_limiter_holds_on_non_finite_result():
    r = RateLimiter(1.2, -1.2)
    assert r.step(1.0, 1.0) == 1.0
    assert r.step(math.inf, math.inf) == 1.0
    assert r.previous_output == 1.0


def test_rate_limiter_rejects_inverted_rates():
    with pytest.raises(ConfigurationError):
        RateLimiter(-1.0, 1.0)


def test_rate_limiter_reset():
    r = RateLimiter(1.2, -1.2)
    r.step(5.0, 1.0)
    r.reset(3.0)
    assert r.previous_output == 3.0


def test_smooth_sin_without_history_jumps():
    assert smooth_sin(None, 42.0, 0.5, 0.1) == 42.0


def test_smooth_sin_quarter_sine_progress():
    assert smooth_sin(0.0, 10.0, 0.5, 1.0) == pytest.approx(10.0 * math.sin(math.pi / 4))
    assert smooth_sin(10.0, 0.0, 0.5, 1.0) == pytest.approx(10.0 - 10.0 * math.sin(math.pi / 4))


@pytest.mark.parametrize('dt', [0.0, 0.01, 0.5, 1.9, 2.0, 5.0, 100.0])
def test_smooth_sin_never_overshoots(dt):
    up = smooth_sin(100.0, 130.0, 0.5, dt)
    down = smooth_sin(130.0, 100.0, 0.5, dt)
    assert 100.0 <= up <= 130.0
    assert 100.0 <= down <= 130.0


def test_smooth_sin_saturated_progress_reaches_destination():
    assert smooth_sin(0.0, 10.0, 0.5, 4.0) == 10.0


def test_smooth_sin_negative_dt_holds_origin():
    assert smooth_sin(5.0, 10.0, 0.5, -1.0) == 5.0


def test_sin_smoother_uses_elapsed_time():
    s = SinSmoother(0.5)
    assert s.update(10.0, now=0.0) == 10.0
    assert s.update(20.0, now=1.0) == pytest.approx(10.0 + 10.0 * math.sin(math.pi / 4))
    assert s.last_update_time == 1.0
    s.reset()
    assert s.last_value is None
    assert s.update(20.0, now=2.0) == 20.0


def test_lag_filter_response_matches_stepping():
    samples = [1.0, 1.0, 1.0, 0.5, math.nan, 2.0, -3.0]
    f = LagFilter(1.2)
    stepped = [f.step(x, 0.1) for x in samples]
    np.testing.assert_allclose(lag_filter_response(samples, 0.1, 1.2), stepped, rtol=1e-12, atol=1e-12)


def test_lag_filter_response_empty():
    assert lag_filter_response([], 0.1, 1.2).size == 0


def test_rate_limit_series():
    out = rate_limit_series([10.0, 10.0, -10.0], 1.0, 1.2, -1.2)
    assert isinstance(out, np.ndarray)
    np.testing.assert_allclose(out, [1.2, 2.4, 1.2])


@pytest.mark.parametrize('rising, falling', [(1.2, -1.2), (3.0, -0.5), (0.5, -4.0)])
def test_rate_limiter_bounds_every_step(rising, falling):
    rng = np.random.default_rng(7)
    samples = np.concatenate([
        rng.normal(0.0, 50.0, 200),
        np.full(20, 100.0),
        np.full(20, -100.0),
        [math.nan, math.nan, 40.0, math.nan],
    ])
    dts = rng.uniform(0.01, 0.5, samples.size)
    r = RateLimiter(rising, falling)
    previous = r.previous_output
    for value, dt in zip(samples, dts):
        out = r.step(float(value), float(dt))
        assert math.isfinite(out)
        assert abs(out - previous) <= dt * max(rising, abs(falling)) + 1e-9
        assert dt * falling - 1e-9 <= out - previous <= dt * rising + 1e-9
        previous = out
