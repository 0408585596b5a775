"""Token whitelist types and pool classification."""

from .pool_types import (
    PoolRecord,
    ScanStats,
    ThresholdPolicy,
    TokenClass,
    TokenWhitelist,
    WhitelistEntry,
)

__all__ = [
    "PoolRecord",
    "ScanStats",
    "ThresholdPolicy",
    "TokenClass",
    "TokenWhitelist",
    "WhitelistEntry",
]
