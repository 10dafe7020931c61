"""Cross-hour strategy analysis over hourly aggregates.

Pure functions of an HourlyAggregator snapshot. Produces:
  - extremal hours (cheapest buy, priciest sell, widest spread)
  - ranked buy-hour -> sell-hour pairs:
      profit = avg_sell[sell_hour] - avg_buy[buy_hour]
      profit_percent = profit / avg_buy[buy_hour] * 100
  - a morning vs evening comparison ("buy in the morning, sell at night")
  - confidence warnings and a price stability flag

Buckets with fewer than min_bucket_count samples are never ranked but
still count toward coverage and stability. Low confidence is reported,
never raised.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from p2p_monitor.config import AnalysisSettings
from p2p_monitor.logging import get_logger
from p2p_monitor.models import HourBucket, StrategyCandidate

logger = get_logger(__name__)

_HUNDRED = Decimal("100")

# name -> inclusive hour range
DAY_PERIODS: dict[str, tuple[int, int]] = {
    "morning": (6, 11),
    "afternoon": (12, 17),
    "evening": (18, 23),
    "night": (0, 5),
}

WARNING_FEW_HOURS = "few_hours_covered"
WARNING_FEW_SAMPLES = "few_samples"


def _dec(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


@dataclass
class PeriodAverages:
    """Unweighted mean of bucket averages over one part of the day."""

    name: str
    start_hour: int
    end_hour: int
    bucket_count: int
    avg_buy_price: Decimal | None
    avg_sell_price: Decimal | None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
            "bucket_count": self.bucket_count,
            "avg_buy_price": _dec(self.avg_buy_price),
            "avg_sell_price": _dec(self.avg_sell_price),
        }


@dataclass
class TimeOfDayComparison:
    """Morning vs evening prices.

    Differences are signed as evening minus morning: a positive
    buy_difference means buying in the morning is cheaper.
    """

    insufficient_data: bool
    periods: list[PeriodAverages]
    buy_difference: Decimal | None = None
    sell_difference: Decimal | None = None
    morning_cheaper_to_buy: bool | None = None
    evening_better_to_sell: bool | None = None

    def to_dict(self) -> dict:
        return {
            "insufficient_data": self.insufficient_data,
            "periods": [p.to_dict() for p in self.periods],
            "buy_difference": _dec(self.buy_difference),
            "sell_difference": _dec(self.sell_difference),
            "morning_cheaper_to_buy": self.morning_cheaper_to_buy,
            "evening_better_to_sell": self.evening_better_to_sell,
        }


@dataclass
class StrategyReport:
    """Full analysis result. Always produced, even on thin data."""

    cheapest_buy_hours: list[HourBucket]
    priciest_sell_hours: list[HourBucket]
    widest_spread_hours: list[HourBucket]
    strategies: list[StrategyCandidate]
    time_of_day: TimeOfDayComparison
    total_samples: int
    hours_covered: int
    buy_price_range: Decimal | None
    prices_stable: bool
    warnings: list[str] = field(default_factory=list)

    @property
    def low_confidence(self) -> bool:
        return bool(self.warnings)

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "cheapest_buy_hours": [b.to_dict() for b in self.cheapest_buy_hours],
            "priciest_sell_hours": [b.to_dict() for b in self.priciest_sell_hours],
            "widest_spread_hours": [b.to_dict() for b in self.widest_spread_hours],
            "strategies": [s.to_dict() for s in self.strategies],
            "time_of_day": self.time_of_day.to_dict(),
            "total_samples": self.total_samples,
            "hours_covered": self.hours_covered,
            "buy_price_range": _dec(self.buy_price_range),
            "prices_stable": self.prices_stable,
            "low_confidence": self.low_confidence,
            "warnings": list(self.warnings),
        }


class StrategyAnalyzer:
    """Ranks hours and hour pairs from hourly aggregates.

    Args:
        settings: Ranking thresholds and confidence limits.
    """

    def __init__(self, settings: AnalysisSettings | None = None) -> None:
        self._settings = settings or AnalysisSettings()

    def analyze(self, snapshot: Sequence[HourBucket]) -> StrategyReport:
        """Build a StrategyReport from an aggregator snapshot."""
        eligible = self._eligible(snapshot)
        top = self._settings.top_hours

        cheapest = sorted(eligible, key=lambda b: (b.avg_buy_price, b.hour))[:top]
        priciest = sorted(eligible, key=lambda b: (-b.avg_sell_price, b.hour))[:top]
        widest = sorted(eligible, key=lambda b: (-b.avg_spread_percent, b.hour))[:top]

        total_samples = sum(b.count for b in snapshot)
        buy_price_range = self._buy_price_range(snapshot)

        report = StrategyReport(
            cheapest_buy_hours=cheapest,
            priciest_sell_hours=priciest,
            widest_spread_hours=widest,
            strategies=self.find_strategies(snapshot),
            time_of_day=self.compare_time_of_day(snapshot),
            total_samples=total_samples,
            hours_covered=len(snapshot),
            buy_price_range=buy_price_range,
            prices_stable=(
                buy_price_range is not None
                and buy_price_range < self._settings.stable_price_range
            ),
            warnings=self._confidence_warnings(len(snapshot), total_samples),
        )

        logger.debug(
            "strategy_analysis_complete",
            hours_covered=report.hours_covered,
            total_samples=total_samples,
            strategies=len(report.strategies),
            low_confidence=report.low_confidence,
        )
        return report

    def find_strategies(self, snapshot: Sequence[HourBucket]) -> list[StrategyCandidate]:
        """Exhaustively pair distinct eligible hours and keep the profitable ones.

        At most 24 hours, so the O(H^2) pairing needs no pruning. Buy hours
        whose average buy price is not positive are skipped since their
        profit percent is undefined.
        """
        eligible = self._eligible(snapshot)
        candidates: list[StrategyCandidate] = []

        for buy in eligible:
            if buy.avg_buy_price <= 0:
                continue
            for sell in eligible:
                if sell.hour == buy.hour:
                    continue
                profit = sell.avg_sell_price - buy.avg_buy_price
                if profit <= 0:
                    continue
                candidates.append(
                    StrategyCandidate(
                        buy_hour=buy.hour,
                        sell_hour=sell.hour,
                        buy_price=buy.avg_buy_price,
                        sell_price=sell.avg_sell_price,
                        profit=profit,
                        profit_percent=profit / buy.avg_buy_price * _HUNDRED,
                    )
                )

        candidates.sort(key=lambda c: (-c.profit_percent, c.buy_hour, c.sell_hour))
        return candidates[: self._settings.top_strategies]

    def compare_time_of_day(self, snapshot: Sequence[HourBucket]) -> TimeOfDayComparison:
        """Compare morning (6-11) against evening (18-23) prices."""
        eligible = self._eligible(snapshot)
        periods: list[PeriodAverages] = []

        for name, (start, end) in DAY_PERIODS.items():
            buckets = [b for b in eligible if start <= b.hour <= end]
            n = len(buckets)
            periods.append(
                PeriodAverages(
                    name=name,
                    start_hour=start,
                    end_hour=end,
                    bucket_count=n,
                    avg_buy_price=(
                        sum((b.avg_buy_price for b in buckets), Decimal("0")) / n
                        if n
                        else None
                    ),
                    avg_sell_price=(
                        sum((b.avg_sell_price for b in buckets), Decimal("0")) / n
                        if n
                        else None
                    ),
                )
            )

        by_name = {p.name: p for p in periods}
        morning_buy = by_name["morning"].avg_buy_price
        morning_sell = by_name["morning"].avg_sell_price
        evening_buy = by_name["evening"].avg_buy_price
        evening_sell = by_name["evening"].avg_sell_price
        if (
            morning_buy is None
            or morning_sell is None
            or evening_buy is None
            or evening_sell is None
        ):
            return TimeOfDayComparison(insufficient_data=True, periods=periods)

        return TimeOfDayComparison(
            insufficient_data=False,
            periods=periods,
            buy_difference=evening_buy - morning_buy,
            sell_difference=evening_sell - morning_sell,
            morning_cheaper_to_buy=morning_buy < evening_buy,
            evening_better_to_sell=evening_sell > morning_sell,
        )

    def _eligible(self, snapshot: Sequence[HourBucket]) -> list[HourBucket]:
        return [b for b in snapshot if b.count >= self._settings.min_bucket_count]

    def _confidence_warnings(self, hours_covered: int, total_samples: int) -> list[str]:
        warnings: list[str] = []
        if hours_covered < self._settings.min_hours_for_confidence:
            warnings.append(WARNING_FEW_HOURS)
        if total_samples < self._settings.min_samples_for_confidence:
            warnings.append(WARNING_FEW_SAMPLES)
        return warnings

    @staticmethod
    def _buy_price_range(snapshot: Sequence[HourBucket]) -> Decimal | None:
        if not snapshot:
            return None
        prices = [b.avg_buy_price for b in snapshot]
        return max(prices) - min(prices)
