"""Analytics layer -- hourly rollup and cross-hour strategy analysis."""

from p2p_monitor.analytics.hourly import HourlyAggregator
from p2p_monitor.analytics.strategy import StrategyAnalyzer, StrategyReport

__all__ = ["HourlyAggregator", "StrategyAnalyzer", "StrategyReport"]
