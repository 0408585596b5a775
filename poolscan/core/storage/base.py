"""
Storage exceptions.
"""


class StorageError(Exception):
    """Base exception for storage-related errors."""
    pass


class DataError(StorageError):
    """Raised when data operations fail."""
    pass
