"""Sample retention and persistence layer.

Provides the bounded in-memory history of accepted samples, the SQLite
connection manager, and the snapshot store used to survive restarts.
"""

from p2p_monitor.data.database import SampleDatabase
from p2p_monitor.data.history import HistoryStore
from p2p_monitor.data.store import SampleStore

__all__ = ["HistoryStore", "SampleDatabase", "SampleStore"]
