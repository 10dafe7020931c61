"""Tests for the hourly running-mean aggregator."""

from decimal import Decimal

import pytest

from p2p_monitor.analytics.hourly import HourlyAggregator


class TestUpdate:
    def test_first_sample_initializes_bucket(self) -> None:
        agg = HourlyAggregator()
        bucket = agg.update(9, Decimal("41.00"), Decimal("41.50"), Decimal("1.2"))

        assert bucket.count == 1
        assert bucket.avg_buy_price == Decimal("41.00")
        assert bucket.min_buy_price == Decimal("41.00")
        assert bucket.max_sell_price == Decimal("41.50")

    def test_running_mean_matches_arithmetic_mean(self) -> None:
        agg = HourlyAggregator()
        buys = [Decimal("41.00"), Decimal("41.30"), Decimal("40.90"), Decimal("41.20")]
        sells = [Decimal("41.60"), Decimal("41.40"), Decimal("41.90"), Decimal("41.70")]
        for buy, sell in zip(buys, sells):
            bucket = agg.update(14, buy, sell, (sell - buy) / buy * 100)

        assert bucket.count == 4
        assert abs(bucket.avg_buy_price - sum(buys) / 4) < Decimal("1e-20")
        assert abs(bucket.avg_sell_price - sum(sells) / 4) < Decimal("1e-20")
        assert bucket.min_buy_price == Decimal("40.90")
        assert bucket.max_sell_price == Decimal("41.90")

    @pytest.mark.parametrize("hour", [-1, 24])
    def test_rejects_out_of_range_hour(self, hour: int) -> None:
        with pytest.raises(ValueError):
            HourlyAggregator().update(hour, Decimal("1"), Decimal("1"), Decimal("0"))

    def test_one_sided_sample_is_folded(self, sample_factory) -> None:
        agg = HourlyAggregator()
        agg.fold(sample_factory("41.00", "41.60", hour=10))
        bucket = agg.fold(sample_factory("41.20", "0", hour=10))

        assert bucket.count == 2
        assert bucket.avg_sell_price == Decimal("20.80")


class TestSnapshot:
    def test_sorted_by_hour(self, sample_factory) -> None:
        agg = HourlyAggregator()
        for hour in (20, 3, 9):
            agg.fold(sample_factory("41.00", "41.50", hour=hour))

        assert [b.hour for b in agg.snapshot()] == [3, 9, 20]
        assert agg.hours_covered == 3
        assert agg.total_samples == 3

    def test_snapshot_unaffected_by_later_updates(self, sample_factory) -> None:
        agg = HourlyAggregator()
        agg.fold(sample_factory("41.00", "41.50", hour=9))
        before = agg.snapshot()

        agg.fold(sample_factory("43.00", "43.50", hour=9))

        assert before[0].count == 1
        assert before[0].avg_buy_price == Decimal("41.00")
        assert agg.get(9).count == 2

    def test_rebuild_replaces_buckets(self, sample_factory) -> None:
        agg = HourlyAggregator()
        agg.fold(sample_factory("41.00", "41.50", hour=1))

        agg.rebuild([sample_factory("42.00", "42.50", hour=5, minute=m) for m in range(3)])

        assert agg.get(1) is None
        assert agg.get(5).count == 3
        assert agg.total_samples == 3
