"""Tests for tic policies, steps and ranges."""

import numpy as np
import pytest

from stripchart.chart.tics import (
    MAX_TICS,
    coordinate_places,
    format_tic,
    parse_policy,
    quantize_step,
    tic_range,
    tic_step,
)
from stripchart.exceptions import InvalidTicCount, MalformedPolicy


class TestParsePolicy:
    def test_auto_and_none(self):
        assert parse_policy("auto").kind == "auto"
        assert parse_policy("none").kind == "none"
        assert not parse_policy(None).draws

    def test_numeric_step(self):
        policy = parse_policy(2.5)
        assert policy.kind == "step"
        assert policy.value == 2.5

    def test_fixed(self):
        policy = parse_policy("fixed   7")
        assert policy.kind == "fixed"
        assert policy.value == 7

    @pytest.mark.parametrize("policy", ["fixed 1", "fixed 0"])
    def test_too_few_fixed_tics(self, policy):
        with pytest.raises(InvalidTicCount):
            parse_policy(policy)

    @pytest.mark.parametrize("policy", ["sometimes", "fixed", "fixed x", "fixed 5 tics", 0, -1.0, True])
    def test_malformed(self, policy):
        with pytest.raises(MalformedPolicy):
            parse_policy(policy)

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            parse_policy("fixed 1")

    @pytest.mark.parametrize("step", [np.int64(5), np.float32(2.5), np.float64(0.1)])
    def test_numpy_scalar_step(self, step):
        policy = parse_policy(step)
        assert policy.kind == "step"
        assert policy.value == pytest.approx(float(step))

    def test_numpy_nan_rejected(self):
        with pytest.raises(MalformedPolicy):
            parse_policy(np.float64("nan"))


class TestTicStep:
    def test_fixed_exactness(self):
        assert tic_step(0, 9, "fixed 10") == 1

    def test_fixed_one_raises(self):
        with pytest.raises(InvalidTicCount):
            tic_step(0, 9, "fixed 1")

    def test_numeric(self):
        assert tic_step(0, 100, 7) == 7

    def test_none_computes_nothing(self):
        assert tic_step(0, 100, "none") is None
        assert tic_step(0, 100, None) is None

    def test_auto_uses_quantization(self):
        assert tic_step(0, 100, "auto") == quantize_step(0, 100)


class TestQuantizeStep:
    def test_zero_to_hundred(self):
        assert quantize_step(0, 100) == pytest.approx(20)

    @pytest.mark.parametrize(
        "lo, hi, expected",
        [
            (0, 1, 0.2),
            (0, 20, 5),
            (-1, 1.75, 0.5),
            (0, 0.003, 0.0005),
            (50.2, 782.3, 100),
        ],
    )
    def test_round_steps(self, lo, hi, expected):
        assert quantize_step(lo, hi) == pytest.approx(expected)

    @pytest.mark.parametrize("lo, hi", [(0, 100), (0, 1), (-209, 17.2), (0, 7.3), (3, 3.9)])
    def test_tic_count_is_reasonable(self, lo, hi):
        tics = tic_range(lo, hi, "auto")
        assert 2 <= len(tics) <= 21

    def test_order_does_not_matter(self):
        assert quantize_step(100, 0) == quantize_step(0, 100)


class TestTicRange:
    def test_auto_zero_to_hundred(self):
        tics = tic_range(0, 100, "auto")
        assert 5 <= len(tics) <= 20
        assert tics == pytest.approx([0, 20, 40, 60, 80, 100])

    @pytest.mark.parametrize(
        "lo, hi, step",
        [(-3.7, 12.2, 2.5), (0.3, 0.9, 0.1), (-209.0, 17.2, 25), (1e-6, 5e-6, 1e-6)],
    )
    def test_numeric_step_monotonic(self, lo, hi, step):
        tics = tic_range(lo, hi, step)
        assert len(tics) > 0
        assert all(b > a for a, b in zip(tics, tics[1:]))
        assert np.diff(tics) == pytest.approx(np.full(len(tics) - 1, step))
        for t in tics:
            assert lo <= t < hi + step

    def test_first_tic_is_multiple_of_step(self):
        tics = tic_range(-3.7, 12.2, 2.5)
        assert tics[0] == pytest.approx(-2.5)
        assert tics[-1] == pytest.approx(12.5 - 2.5)

    def test_degenerate_range(self):
        assert tic_range(5, 5, "auto") == []
        assert tic_range(5, 5, 1) == []

    def test_none_policy_draws_nothing(self):
        assert tic_range(0, 100, "none") == []
        assert tic_range(0, 100, None) == []

    def test_fixed_policy_spans_range(self):
        tics = tic_range(0, 9, "fixed 10")
        assert tics == pytest.approx(list(range(10)))

    @pytest.mark.parametrize(
        "lo, hi, n",
        [(0.3, 0.9, 7), (0.1, 0.7, 4), (0.1, 0.3, 3), (-209.0, -208.002, 5), (-1.0, 1.75, 12)],
    )
    def test_fixed_policy_non_integer_range(self, lo, hi, n):
        tics = tic_range(lo, hi, f"fixed {n}")
        assert len(tics) == n
        assert tics[0] == lo
        assert tics[-1] == hi
        assert tics == pytest.approx(list(np.linspace(lo, hi, n)))

    def test_step_reaching_range_end_keeps_last_tic(self):
        tics = tic_range(0.3, 0.9, 0.1)
        assert tics == pytest.approx([0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9])

    def test_runaway_step_is_capped(self):
        assert tic_range(0, 1, 1.0 / (MAX_TICS * 10)) == []


class TestFormatting:
    @pytest.mark.parametrize(
        "value, step, text",
        [(0.5, 0.1, "0.5"), (20, 20, "20"), (3, 1, "3"), (0.25, 0.05, "0.25"), (-1.5, 0.5, "-1.5")],
    )
    def test_format_tic(self, value, step, text):
        assert format_tic(value, step) == text

    def test_coordinate_places(self):
        assert coordinate_places(100) == 2
        assert coordinate_places(38) == 2
        assert coordinate_places(1) == 0
        assert coordinate_places(0.5) == 0
