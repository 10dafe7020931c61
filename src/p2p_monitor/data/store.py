"""Sample snapshot persistence gateway.

save_all() replaces the whole stored snapshot inside one SQLite
transaction: either the new snapshot is durable or the previous one
is left untouched.

CRITICAL: Prices are stored as TEXT in SQLite and restored as Decimal on read.
"""

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

import aiosqlite

from p2p_monitor.data.database import SampleDatabase
from p2p_monitor.exceptions import PersistenceFailure
from p2p_monitor.logging import get_logger
from p2p_monitor.models import DayOfWeek, Sample

logger = get_logger(__name__)

_COLUMNS = (
    "seq, timestamp, hour, day_of_week, buy_price, sell_price, spread, "
    "spread_percent, buyer_name, seller_name, min_amount, bank"
)


def _to_row(seq: int, sample: Sample) -> tuple:
    return (
        seq,
        sample.timestamp.isoformat(),
        sample.hour_of_day,
        sample.day_of_week.value,
        str(sample.buy_price),
        str(sample.sell_price),
        str(sample.spread),
        str(sample.spread_percent),
        sample.buyer_name,
        sample.seller_name,
        sample.min_amount,
        sample.bank,
    )


def _from_row(row: tuple) -> Sample:
    return Sample(
        timestamp=datetime.fromisoformat(row[1]),
        hour_of_day=row[2],
        day_of_week=DayOfWeek(row[3]),
        buy_price=Decimal(row[4]),
        sell_price=Decimal(row[5]),
        spread=Decimal(row[6]),
        spread_percent=Decimal(row[7]),
        buyer_name=row[8],
        seller_name=row[9],
        min_amount=row[10],
        bank=row[11],
    )


class SampleStore:
    """Whole-snapshot load/save of the retained sample history.

    Usage:
        async with SampleDatabase("data/samples.db") as database:
            store = SampleStore(database)
            await store.save_all(history.samples())
    """

    def __init__(self, database: SampleDatabase) -> None:
        self._database = database

    async def load_all(self) -> list[Sample]:
        """Return every stored sample in arrival order.

        Raises:
            PersistenceFailure: If the snapshot cannot be read or decoded.
        """
        try:
            cursor = await self._database.db.execute(
                f"SELECT {_COLUMNS} FROM samples ORDER BY seq ASC"
            )
            rows = await cursor.fetchall()
            samples = [_from_row(row) for row in rows]
        except (aiosqlite.Error, RuntimeError, ValueError, ArithmeticError) as exc:
            raise PersistenceFailure(f"failed to load samples: {exc}") from exc

        logger.info("samples_loaded", count=len(samples))
        return samples

    async def save_all(self, samples: Sequence[Sample]) -> int:
        """Atomically replace the stored snapshot with samples.

        Returns the number of rows written.

        Raises:
            PersistenceFailure: If the write fails; the previous snapshot is kept.
        """
        try:
            db = self._database.db
        except RuntimeError as exc:
            raise PersistenceFailure(str(exc)) from exc

        rows = [_to_row(seq, sample) for seq, sample in enumerate(samples)]
        try:
            # sqlite3 opens the transaction implicitly on DELETE; nothing is
            # visible to other connections until commit
            await db.execute("DELETE FROM samples")
            await db.executemany(
                f"INSERT INTO samples ({_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                rows,
            )
            await db.commit()
        except aiosqlite.Error as exc:
            await db.rollback()
            raise PersistenceFailure(f"failed to save samples: {exc}") from exc

        logger.debug("samples_saved", count=len(rows))
        return len(rows)

    async def count(self) -> int:
        """Number of samples in the stored snapshot."""
        cursor = await self._database.db.execute("SELECT COUNT(*) FROM samples")
        return (await cursor.fetchone())[0]
