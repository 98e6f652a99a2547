"""Tests for the min/avg/max aggregator."""

import numpy as np
import pytest

from stripchart.chart.stats import aggregate


@pytest.fixture
def buffer():
    rng = np.random.default_rng(42)
    return rng.normal(size=500).astype(np.float32)


class TestAggregate:
    def test_full_buffer(self, buffer):
        stats = aggregate(buffer)
        assert stats.min == pytest.approx(float(buffer.min()))
        assert stats.max == pytest.approx(float(buffer.max()))
        assert stats.avg == pytest.approx(float(buffer.astype(np.float64).mean()), rel=1e-6)

    def test_min_avg_max_ordering(self, buffer):
        for offset, count in [(0, 1), (3, 7), (100, 250), (499, 1)]:
            stats = aggregate(buffer, offset, count)
            assert stats.min <= stats.avg <= stats.max

    def test_window(self, buffer):
        stats = aggregate(buffer, 10, 20)
        window = buffer[10:30].astype(np.float64)
        assert stats.min == pytest.approx(window.min())
        assert stats.max == pytest.approx(window.max())
        assert stats.avg == pytest.approx(window.mean(), rel=1e-6)

    def test_zero_count_means_rest_of_buffer(self, buffer):
        stats = aggregate(buffer, 400)
        window = buffer[400:].astype(np.float64)
        assert stats.avg == pytest.approx(window.mean(), rel=1e-6)
        assert stats.max == pytest.approx(window.max())

    def test_count_clamped_to_buffer(self):
        buffer = np.arange(10, dtype=np.float32)
        stats = aggregate(buffer, 8, 100)
        assert stats.min == 8.0
        assert stats.max == 9.0
        assert stats.avg == pytest.approx(8.5)

    def test_single_sample(self):
        stats = aggregate(np.array([3.5], dtype=np.float32))
        assert stats == (3.5, 3.5, 3.5)

    def test_empty_window_has_nan_average(self):
        stats = aggregate(np.arange(4, dtype=np.float32), 4)
        assert np.isnan(stats.avg)
        assert stats.min > stats.max

    def test_negative_offset_rejected(self, buffer):
        with pytest.raises(ValueError):
            aggregate(buffer, -1, 5)
