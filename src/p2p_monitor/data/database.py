"""aiosqlite connection owner for the sample snapshot file.

The samples table holds exactly one snapshot: the retained history at the
time of the last save, ordered by seq. WAL journaling lets the HTTP
readers query while a snapshot write is in progress.
"""

import os
from typing import Self

import aiosqlite

from p2p_monitor.exceptions import PersistenceFailure
from p2p_monitor.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS samples (
    seq INTEGER PRIMARY KEY,
    timestamp TEXT NOT NULL,
    hour INTEGER NOT NULL CHECK (hour BETWEEN 0 AND 23),
    day_of_week TEXT NOT NULL,
    buy_price TEXT NOT NULL,
    sell_price TEXT NOT NULL,
    spread TEXT NOT NULL,
    spread_percent TEXT NOT NULL,
    buyer_name TEXT NOT NULL DEFAULT '',
    seller_name TEXT NOT NULL DEFAULT '',
    min_amount INTEGER NOT NULL,
    bank TEXT
);

CREATE INDEX IF NOT EXISTS idx_samples_hour ON samples (hour);
"""


class SampleDatabase:
    """Opens, migrates and closes the snapshot database.

    Usage:
        async with SampleDatabase("data/samples.db") as database:
            samples = await SampleStore(database).load_all()
    """

    def __init__(self, db_path: str = "data/samples.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def db(self) -> aiosqlite.Connection:
        """The open connection.

        Raises RuntimeError before connect() or after close().
        """
        if self._connection is None:
            raise RuntimeError(f"sample database {self._db_path} is not connected")
        return self._connection

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> None:
        """Open the file (creating its directory), enable WAL, apply the schema.

        Raises:
            PersistenceFailure: If the file was written by a newer schema.
        """
        if self._connection is not None:
            return

        parent = os.path.dirname(self._db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        connection = await aiosqlite.connect(self._db_path)
        await connection.execute("PRAGMA journal_mode=WAL")
        await connection.execute("PRAGMA synchronous=NORMAL")
        await connection.executescript(_SCHEMA_SQL)
        await connection.commit()
        self._connection = connection

        try:
            await self._check_schema_version()
        except PersistenceFailure:
            await self.close()
            raise

        logger.info("sample_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the connection; a no-op when already closed."""
        connection, self._connection = self._connection, None
        if connection is not None:
            await connection.close()
            logger.info("sample_db_closed", db_path=self._db_path)

    async def _check_schema_version(self) -> None:
        cursor = await self.db.execute("SELECT MAX(version) FROM schema_version")
        (stored,) = await cursor.fetchone()

        if stored is None:
            await self.db.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
            )
            await self.db.commit()
            logger.info("schema_version_set", version=SCHEMA_VERSION)
        elif stored > SCHEMA_VERSION:
            raise PersistenceFailure(
                f"{self._db_path} has schema version {stored}, "
                f"this build understands up to {SCHEMA_VERSION}"
            )

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
