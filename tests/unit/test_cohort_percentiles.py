"""Unit tests for cohort percentile math."""

import pytest

from competency.engines.milestones.cohort_snapshotter import percentile, percentile_set


class TestPercentile:
    def test_integral_index_returns_order_statistic(self):
        assert percentile([60, 70, 80, 90, 100], 50) == 80

    def test_interpolates_between_neighbours(self):
        # index 0.4 -> 60*0.6 + 70*0.4
        assert percentile([60, 70, 80, 90, 100], 10) == pytest.approx(64.0)
        assert percentile([60, 70, 80, 90, 100], 90) == pytest.approx(96.0)

    def test_single_value(self):
        assert percentile([42.0], 25) == 42.0

    def test_empty(self):
        assert percentile([], 50) == 0.0

    def test_rounded_to_one_decimal(self):
        assert percentile([1.0, 2.0], 33) == 1.3


class TestPercentileSet:
    def test_keys_and_ordering(self):
        result = percentile_set([100, 60, 90, 70, 80])
        assert set(result) == {"p10", "p25", "p50", "p75", "p90", "mean"}
        assert result["p10"] <= result["p25"] <= result["p50"] <= result["p75"] <= result["p90"]
        assert result["p50"] == 80
        assert result["mean"] == 80.0

    def test_unsorted_input_is_sorted(self):
        assert percentile_set([3, 1, 2])["p50"] == 2
