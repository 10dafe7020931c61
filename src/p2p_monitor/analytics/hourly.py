"""Incremental per-hour-of-day statistics over accepted samples.

Each bucket keeps an unweighted running mean:
  avg' = (avg * count + value) / (count + 1)
computed before count is incremented. Buckets cover every sample ever
folded in, including samples the history store has since evicted.
"""

from collections.abc import Iterable
from decimal import Decimal

from p2p_monitor.models import HourBucket, Sample

HOURS_PER_DAY = 24


def _running_mean(avg: Decimal, count: int, value: Decimal) -> Decimal:
    return (avg * count + value) / (count + 1)


class HourlyAggregator:
    """Owns one HourBucket per hour of day, created on first sample.

    Buckets are immutable; update() swaps in a new bucket so a reader
    holding a snapshot never sees half an update.
    """

    def __init__(self) -> None:
        self._buckets: dict[int, HourBucket] = {}

    def update(
        self,
        hour: int,
        buy_price: Decimal,
        sell_price: Decimal,
        spread_percent: Decimal,
    ) -> HourBucket:
        """Fold one observation into the bucket for hour and return the new bucket."""
        if not 0 <= hour < HOURS_PER_DAY:
            raise ValueError(f"hour must be in 0..23, got {hour}")

        current = self._buckets.get(hour)
        if current is None:
            bucket = HourBucket(
                hour=hour,
                count=1,
                avg_buy_price=buy_price,
                avg_sell_price=sell_price,
                avg_spread_percent=spread_percent,
                min_buy_price=buy_price,
                max_sell_price=sell_price,
            )
        else:
            n = current.count
            bucket = HourBucket(
                hour=hour,
                count=n + 1,
                avg_buy_price=_running_mean(current.avg_buy_price, n, buy_price),
                avg_sell_price=_running_mean(current.avg_sell_price, n, sell_price),
                avg_spread_percent=_running_mean(
                    current.avg_spread_percent, n, spread_percent
                ),
                min_buy_price=min(current.min_buy_price, buy_price),
                max_sell_price=max(current.max_sell_price, sell_price),
            )

        self._buckets[hour] = bucket
        return bucket

    def fold(self, sample: Sample) -> HourBucket:
        """Fold a sample into the bucket for its hour of day."""
        return self.update(
            sample.hour_of_day,
            sample.buy_price,
            sample.sell_price,
            sample.spread_percent,
        )

    def rebuild(self, samples: Iterable[Sample]) -> None:
        """Discard all buckets and fold samples in order."""
        self._buckets = {}
        for sample in samples:
            self.fold(sample)

    def get(self, hour: int) -> HourBucket | None:
        return self._buckets.get(hour)

    def snapshot(self) -> tuple[HourBucket, ...]:
        """Immutable view of all buckets, sorted by hour ascending."""
        return tuple(self._buckets[hour] for hour in sorted(self._buckets))

    @property
    def total_samples(self) -> int:
        return sum(bucket.count for bucket in self._buckets.values())

    @property
    def hours_covered(self) -> int:
        return len(self._buckets)
