"""Tests for the log-log least squares fit."""

import logging
import math

import numpy as np
import pytest

from fraccount import (
    BoxSizeSample,
    DegenerateFitError,
    EmptyInputError,
    fit_loglog,
    get_pairwise_slopes,
)


def power_law_samples(dimension, constant, sizes):
    return [BoxSizeSample(s, constant * s ** (-dimension)) for s in sizes]


@pytest.mark.parametrize("dimension", [0.7, 1.0, 1.585, 2.0, 2.73])
@pytest.mark.parametrize("constant", [1.0, 37.5])
def test_recovers_exact_power_law(dimension, constant):
    samples = power_law_samples(dimension, constant, [64, 40, 25, 16, 10, 6, 4])
    result = fit_loglog(samples)
    assert result.slope == pytest.approx(dimension, rel=1e-9)
    assert result.intercept == pytest.approx(math.log(constant), abs=1e-9)
    assert result.r2 == pytest.approx(1.0)


def test_normalization_shifts_intercept_only():
    samples = power_law_samples(1.4, 3.0, [32, 16, 8, 4, 2])
    plain = fit_loglog(samples)
    scaled = fit_loglog(samples, normalize=128.0)
    assert scaled.slope == pytest.approx(plain.slope)
    assert scaled.intercept == pytest.approx(plain.intercept - 1.4 * math.log(128.0))


def test_full_square_series_has_slope_two():
    result = fit_loglog([(8, 1), (4, 4), (2, 16)])
    assert result.slope == pytest.approx(2.0)
    assert result.n == 3


def test_noisy_fit_reports_interval_around_slope(rng):
    sizes = np.array([60, 48, 38, 30, 24, 19, 15, 12, 9, 7, 5])
    counts = 50.0 * sizes ** -1.6 * np.exp(rng.normal(0, 0.05, sizes.size))
    result = fit_loglog(list(zip(sizes, counts)))
    assert result.ci_low < result.slope < result.ci_high
    assert result.slope_stderr > 0
    assert result.slope == pytest.approx(1.6, abs=0.15)
    assert 0.9 < result.r2 <= 1.0


def test_two_points_have_no_interval():
    result = fit_loglog([(4, 2), (2, 8)])
    assert result.slope == pytest.approx(2.0)
    assert math.isnan(result.ci_low) and math.isnan(result.ci_high)


def test_predict_evaluates_line():
    result = fit_loglog([(8, 1), (4, 4), (2, 16)])
    x = -np.log([8.0, 2.0])
    np.testing.assert_allclose(result.predict(x), np.log([1.0, 16.0]), atol=1e-12)


def test_empty_samples_raise():
    with pytest.raises(EmptyInputError):
        fit_loglog([])


def test_zero_counts_are_left_out(caplog):
    with caplog.at_level(logging.WARNING, logger="fraccount"):
        result = fit_loglog([(16, 1), (8, 4), (4, 16), (2, 0)])
    assert result.n == 3
    assert result.slope == pytest.approx(2.0)
    assert "non-positive" in caplog.text


def test_only_zero_counts_raise():
    with pytest.raises(EmptyInputError):
        fit_loglog([(8, 0), (4, 0)])


def test_single_box_size_raises():
    with pytest.raises(DegenerateFitError):
        fit_loglog([(6, 10)])
    with pytest.raises(DegenerateFitError):
        fit_loglog([(6, 10), (6, 12)])


def test_pairwise_slopes_are_constant_for_power_law():
    sizes = [32, 16, 8, 4]
    counts = [s ** -1.3 for s in sizes]
    np.testing.assert_allclose(get_pairwise_slopes(sizes, counts), [1.3, 1.3, 1.3])
