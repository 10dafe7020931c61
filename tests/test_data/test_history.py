"""Tests for the bounded sample history."""

import pytest

from p2p_monitor.data.history import HistoryStore


class TestHistoryStore:
    def test_rejects_non_positive_capacity(self) -> None:
        with pytest.raises(ValueError):
            HistoryStore(capacity=0)

    def test_append_and_latest(self, sample_factory) -> None:
        store = HistoryStore(capacity=10)
        assert store.latest() is None

        first = sample_factory("41.00", "41.50", minute=0)
        second = sample_factory("41.10", "41.60", minute=1)
        store.append(first)
        store.append(second)

        assert len(store) == 2
        assert store.latest() is second

    def test_evicts_oldest_at_capacity(self, sample_factory) -> None:
        store = HistoryStore(capacity=3)
        samples = [sample_factory("41.00", "41.50", minute=m) for m in range(5)]
        for sample in samples:
            store.append(sample)

        assert len(store) == 3
        assert store.samples() == samples[2:]

    def test_history_last_n(self, sample_factory) -> None:
        store = HistoryStore(capacity=10)
        samples = [sample_factory("41.00", "41.50", minute=m) for m in range(4)]
        for sample in samples:
            store.append(sample)

        assert store.history(2) == samples[2:]
        assert store.history(10) == samples
        assert store.history() == samples
        assert store.history(0) == []
        assert store.history(-3) == []

    def test_readers_get_copies(self, sample_factory) -> None:
        store = HistoryStore(capacity=10)
        store.append(sample_factory("41.00", "41.50"))

        copy = store.samples()
        copy.clear()
        assert len(store) == 1

    def test_seed_keeps_newest(self, sample_factory) -> None:
        store = HistoryStore(capacity=2)
        samples = [sample_factory("41.00", "41.50", minute=m) for m in range(3)]
        store.seed(samples)

        assert store.samples() == samples[1:]
