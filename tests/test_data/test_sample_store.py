"""Tests for SQLite snapshot persistence (real aiosqlite in a temp dir)."""

from decimal import Decimal

import pytest
import pytest_asyncio

from p2p_monitor.data.database import SampleDatabase
from p2p_monitor.data.store import SampleStore
from p2p_monitor.exceptions import PersistenceFailure
from p2p_monitor.models import DayOfWeek


@pytest_asyncio.fixture
async def database(tmp_path):
    db = SampleDatabase(str(tmp_path / "samples.db"))
    await db.connect()
    yield db
    await db.close()


class TestSampleStore:
    @pytest.mark.asyncio
    async def test_empty_store_loads_nothing(self, database) -> None:
        store = SampleStore(database)
        assert await store.load_all() == []
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_save_then_load_preserves_order_and_decimals(
        self, database, sample_factory
    ) -> None:
        store = SampleStore(database)
        samples = [
            sample_factory("41.10", "41.95", hour=9, minute=0, bank="mono"),
            sample_factory("41.20", "0", hour=9, minute=1),
            sample_factory("41.05", "41.80", hour=20, minute=0),
        ]

        assert await store.save_all(samples) == 3
        loaded = await store.load_all()

        assert loaded == samples
        assert loaded[0].buy_price == Decimal("41.10")
        assert loaded[0].bank == "mono"
        assert loaded[1].seller_name == ""
        assert loaded[2].day_of_week is DayOfWeek.MONDAY

    @pytest.mark.asyncio
    async def test_save_replaces_previous_snapshot(self, database, sample_factory) -> None:
        store = SampleStore(database)
        await store.save_all([sample_factory("41.00", "41.50", minute=m) for m in range(5)])

        newer = [sample_factory("42.00", "42.50", minute=m) for m in range(2)]
        await store.save_all(newer)

        assert await store.count() == 2
        assert await store.load_all() == newer

    @pytest.mark.asyncio
    async def test_snapshot_survives_reconnect(self, tmp_path, sample_factory) -> None:
        path = str(tmp_path / "persist.db")
        samples = [sample_factory("41.00", "41.50", minute=m) for m in range(3)]

        async with SampleDatabase(path) as db:
            await SampleStore(db).save_all(samples)

        async with SampleDatabase(path) as db:
            assert await SampleStore(db).load_all() == samples

    @pytest.mark.asyncio
    async def test_unconnected_database_raises_persistence_failure(
        self, tmp_path, sample_factory
    ) -> None:
        store = SampleStore(SampleDatabase(str(tmp_path / "never.db")))

        with pytest.raises(PersistenceFailure):
            await store.save_all([sample_factory("41.00", "41.50")])
        with pytest.raises(PersistenceFailure):
            await store.load_all()


class TestSampleDatabase:
    @pytest.mark.asyncio
    async def test_connect_creates_parent_directory(self, tmp_path) -> None:
        path = tmp_path / "nested" / "dir" / "samples.db"
        async with SampleDatabase(str(path)) as db:
            assert db.is_connected
        assert path.exists()
        assert not db.is_connected

    @pytest.mark.asyncio
    async def test_newer_schema_version_is_rejected(self, tmp_path) -> None:
        path = str(tmp_path / "future.db")
        async with SampleDatabase(path) as db:
            await db.db.execute("INSERT INTO schema_version (version) VALUES (99)")
            await db.db.commit()

        db = SampleDatabase(path)
        with pytest.raises(PersistenceFailure):
            await db.connect()
        assert not db.is_connected
