import math

import pytest

from meridian.insights.stats import (
    InsufficientSampleError,
    Sample,
    mean,
    percentile,
    std_dev,
    z_score,
)


def test_mean_of_empty_sequence_is_zero():
    assert mean([]) == 0.0
    assert mean([2, 4, 6]) == 4.0


def test_std_dev_uses_sample_denominator():
    # Population std of [2, 4, 4, 4, 5, 5, 7, 9] is 2; the sample std is larger.
    values = [2, 4, 4, 4, 5, 5, 7, 9]
    assert std_dev(values) == pytest.approx(math.sqrt(32 / 7))


def test_std_dev_needs_two_values():
    assert std_dev([]) == 0.0
    assert std_dev([42]) == 0.0


def test_z_score_is_zero_without_spread():
    assert z_score(100, 10, 0) == 0.0
    assert z_score(14, 10, 2) == 2.0


@pytest.mark.parametrize(
    "fraction, expected",
    [(0.0, 10), (0.5, 30), (0.75, 40), (0.95, 50), (1.0, 50)],
)
def test_percentile_nearest_rank(fraction, expected):
    assert percentile([50, 10, 40, 20, 30], fraction) == expected


def test_percentile_of_empty_sample_is_zero():
    assert percentile([], 0.5) == 0.0


def test_sample_ignores_missing_values():
    sample = Sample([10, None, 20, None, 30])
    assert len(sample) == 3
    assert sample.mean == 20
    assert sample.std_dev == 10
    assert sample.z_score(40) == 2.0


def test_sample_enforces_minimum_size():
    with pytest.raises(InsufficientSampleError):
        Sample([1, 2, None, None], minimum=3)
