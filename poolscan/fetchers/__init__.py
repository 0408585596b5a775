"""
Pool discovery and log fetching.

KISS: Simple, focused fetchers that handle blockchain data collection.
"""

from .base import BaseFetcher, FetchError, FetchResult, PoolIdentifier
from .web3_log_fetcher import Web3LogFetcher
from .pool_enumerators import (
    BasePoolEnumerator,
    EventScanEnumerator,
    FactoryIndexEnumerator,
    create_enumerator,
)

__all__ = [
    'BaseFetcher',
    'FetchResult',
    'FetchError',
    'PoolIdentifier',
    'Web3LogFetcher',
    'BasePoolEnumerator',
    'FactoryIndexEnumerator',
    'EventScanEnumerator',
    'create_enumerator',
]
