"""
Unit tests for ConsumptionAggregator
Refill-aware totals and daily chart series
"""

import random
from datetime import date, datetime, timedelta, timezone

import pytest

from cylinder_monitor.models import Consumption, FuelMeasurement
from cylinder_monitor.services import ConsumptionAggregator

DAY_MS = 24 * 60 * 60 * 1000
# 2024-03-10 00:00:00 UTC
BASE_MS = int(datetime(2024, 3, 10, tzinfo=timezone.utc).timestamp() * 1000)


def _levels(kilograms, cylinder_id=1, start=BASE_MS, step=60_000):
    return [
        FuelMeasurement(
            cylinder_id=cylinder_id,
            cylinder_name=f"C{cylinder_id}",
            timestamp=start + i * step,
            fuel_kilograms=kg,
            fuel_percentage=kg / 20 * 100,
            total_weight_kg=kg + 5,
        )
        for i, kg in enumerate(kilograms)
    ]


class TestTotalConsumed:
    """Test total_consumed()"""

    @pytest.fixture
    def aggregator(self):
        return ConsumptionAggregator()

    def test_empty(self, aggregator):
        assert aggregator.total_consumed([]) == 0

    def test_single_point(self, aggregator):
        assert aggregator.total_consumed(_levels([10])) == 0

    def test_simple_drain(self, aggregator):
        assert aggregator.total_consumed(_levels([10, 8])) == pytest.approx(2)

    def test_pure_refill_never_negative(self, aggregator):
        assert aggregator.total_consumed(_levels([5, 15])) == 0

    def test_drain_refill_drain_counts_both_drains(self, aggregator):
        levels = _levels([15, 12, 9, 6, 3, 15, 13, 11])

        assert aggregator.total_consumed(levels) == pytest.approx(16)

    def test_two_cylinders_interleaved(self, aggregator):
        first = _levels([10, 8], cylinder_id=1, start=BASE_MS, step=120_000)
        second = _levels([15, 12], cylinder_id=2, start=BASE_MS + 60_000, step=120_000)
        interleaved = [first[0], second[0], first[1], second[1]]

        assert aggregator.total_consumed(interleaved) == pytest.approx(5)

    def test_input_order_does_not_matter(self, aggregator):
        levels = _levels([15, 12, 9, 6, 3, 15, 13, 11])
        shuffled = levels[:]
        random.Random(7).shuffle(shuffled)

        assert aggregator.total_consumed(shuffled) == pytest.approx(16)

    def test_accepts_consumption_rows(self, aggregator):
        rows = [Consumption.from_measurement(m) for m in _levels([10, 7, 7.5, 6])]

        assert aggregator.total_consumed(rows) == pytest.approx(4.5)

    def test_noise_threshold_smooths_small_increases(self):
        smoothing = ConsumptionAggregator(noise_threshold_kg=1.0)

        # 10 -> 8, +0.5 noise ignored, then 8.5 -> 7 is measured from 8
        assert smoothing.total_consumed(_levels([10, 8, 8.5, 7])) == pytest.approx(3.0)

    def test_noise_threshold_still_detects_real_refill(self):
        smoothing = ConsumptionAggregator(noise_threshold_kg=1.0)

        assert smoothing.total_consumed(_levels([10, 4, 18, 15])) == pytest.approx(9.0)

    def test_negative_threshold_treated_as_off(self):
        assert ConsumptionAggregator(noise_threshold_kg=-3).noise_threshold_kg == 0.0


class TestChartSeries:
    """Test chart_series()"""

    @pytest.fixture
    def aggregator(self):
        return ConsumptionAggregator()

    def test_empty(self, aggregator):
        assert aggregator.chart_series([], tz="UTC") == []

    def test_buckets_by_day(self, aggregator):
        day_one = _levels([10, 9, 8], start=BASE_MS + 3_600_000)
        day_two = _levels([8, 5], start=BASE_MS + DAY_MS + 3_600_000)

        series = aggregator.chart_series(day_two + day_one, tz="UTC")

        assert [p.day for p in series] == [date(2024, 3, 10), date(2024, 3, 11)]
        assert [p.kilograms for p in series] == pytest.approx([2.0, 3.0])

    def test_refill_day_is_zero_not_negative(self, aggregator):
        series = aggregator.chart_series(_levels([3, 15]), tz="UTC")

        assert len(series) == 1
        assert series[0].kilograms == 0.0

    def test_never_negative_for_mixed_input(self, aggregator):
        rng = random.Random(42)
        levels = []
        for cylinder_id in (1, 2):
            kg = 10.0
            for i in range(200):
                kg = 20.0 if rng.random() < 0.1 else max(0.0, kg - rng.random())
                levels.extend(
                    _levels([kg], cylinder_id=cylinder_id, start=BASE_MS + i * 3 * 3_600_000)
                )

        series = aggregator.chart_series(levels, tz="UTC")

        assert series
        assert all(p.kilograms >= 0 for p in series)
        assert [p.day for p in series] == sorted(p.day for p in series)

    def test_timezone_moves_day_boundary(self, aggregator):
        # 23:30 UTC on 10 March is already 11 March in Madrid (UTC+1)
        late = _levels([10, 9], start=BASE_MS + 23 * 3_600_000 + 30 * 60_000, step=60_000)

        utc = aggregator.chart_series(late, tz="UTC")
        madrid = aggregator.chart_series(late, tz="Europe/Madrid")

        assert utc[0].day == date(2024, 3, 10)
        assert madrid[0].day == date(2024, 3, 11)

    def test_accepts_tzinfo(self, aggregator):
        series = aggregator.chart_series(_levels([10, 9]), tz=timezone(timedelta(hours=-5)))

        assert series[0].day == date(2024, 3, 9)

    def test_day_totals_sum_to_within_day_drains(self, aggregator):
        levels = _levels([10, 8, 6], start=BASE_MS, step=DAY_MS // 2)

        series = aggregator.chart_series(levels, tz="UTC")

        # 10 -> 8 on day one; 6 is alone on day two
        assert [p.kilograms for p in series] == pytest.approx([2.0, 0.0])
