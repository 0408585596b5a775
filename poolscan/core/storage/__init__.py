"""
Storage for scan output.

Usage:
    from poolscan.core.storage import JsonStorage

    storage = JsonStorage("data/base")
    storage.save_records("pools.json", records)
"""

from .base import DataError, StorageError
from .json_storage import JsonStorage

__all__ = [
    "StorageError",
    "DataError",
    "JsonStorage",
]
