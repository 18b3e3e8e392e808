"""
Record store: typed JSON collections over a storage adapter.
"""

from .collection import JsonCollection
from .record_store import DB_VERSION, RecordStore

__all__ = ["JsonCollection", "RecordStore", "DB_VERSION"]
