"""
Core types for whitelist and pool classification.

Domain models shared by the classifier, the orchestrator and the output
writer: token whitelist entries, liquidity thresholds and pool records.
"""

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Optional


class TokenClass(str, Enum):
    """Trust class of a whitelisted token, selects its reserve threshold."""

    NATIVE_ASSET = "native-asset"
    STABLE_ASSET = "stable-asset"
    OTHER = "other"


@dataclass(frozen=True)
class WhitelistEntry:
    """
    A token trusted enough to anchor a liquidity judgment.

    Attributes:
        address: Token contract address
        decimals: ERC20 decimals, used to scale whole-token thresholds
        token_class: Trust class of the token
    """

    address: str
    decimals: int
    token_class: TokenClass


class TokenWhitelist:
    """Read-only set of whitelisted tokens with case-insensitive lookup."""

    def __init__(self, entries: Iterable[WhitelistEntry]):
        self._entries = MappingProxyType(
            {entry.address.lower(): entry for entry in entries}
        )

    def get(self, address: str) -> Optional[WhitelistEntry]:
        return self._entries.get(address.lower())

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and address.lower() in self._entries

    def __iter__(self) -> Iterator[WhitelistEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TokenWhitelist({len(self)} tokens)"


@dataclass(frozen=True)
class ThresholdPolicy:
    """
    Liquidity thresholds for pool classification.

    Reserve minimums are in whole-token units and get scaled by the
    token's decimals. The concentrated liquidity tiers compare against the
    raw ``liquidity()`` value of the pool.
    """

    native_asset_min: Decimal
    stable_asset_min: Decimal
    other_min: Decimal
    cl_low_tier: int
    cl_high_tier: int

    def __post_init__(self):
        if self.cl_high_tier <= self.cl_low_tier:
            raise ValueError(
                f"High liquidity tier ({self.cl_high_tier}) must be above "
                f"the low tier ({self.cl_low_tier})"
            )

    def reserve_threshold(self, token_class: TokenClass) -> Decimal:
        """Minimum reserve in whole tokens for a token class."""
        return {
            TokenClass.NATIVE_ASSET: self.native_asset_min,
            TokenClass.STABLE_ASSET: self.stable_asset_min,
            TokenClass.OTHER: self.other_min,
        }[token_class]

    def raw_reserve_threshold(self, entry: WhitelistEntry) -> Decimal:
        """Minimum reserve in the token's smallest unit."""
        return self.reserve_threshold(entry.token_class) * (Decimal(10) ** entry.decimals)


@dataclass
class PoolRecord:
    """
    A tradeable pool, the unit of the scanner's output.

    Attributes:
        name: Human readable identifier
        token_a: token0 of the pool
        token_b: token1 of the pool
        router: Router used to trade against the pool
        protocol: Protocol tag (v2, v3, cl)
        quoter: Pool address for constant product pools, quoter otherwise
        pool: Pool address when the quoter is a separate contract
        fee: Fee tier (defaults to the protocol fee for constant product)
        tick_spacing: Tick spacing for concentrated liquidity pools
        pool_fee: Fee reported by the pool itself
    """

    name: str
    token_a: str
    token_b: str
    router: str
    protocol: str
    quoter: Optional[str] = None
    pool: Optional[str] = None
    fee: Optional[int] = None
    tick_spacing: Optional[int] = None
    pool_fee: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for output, leaving out unset fields."""
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass
class ScanStats:
    """
    Counters for one protocol scan, reported at the end of a run.

    They separate "nothing found" from "found, with some loss": failed
    chunks and undecodable pools are expected in small numbers.
    """

    protocol: str
    discovered: int = 0
    index_slots_failed: int = 0
    malformed_logs: int = 0
    windows_scanned: int = 0
    discovery_retries: int = 0
    chunks_total: int = 0
    chunks_failed: int = 0
    pools_decoded: int = 0
    pools_undecodable: int = 0
    pools_accepted: int = 0
    rejections: Dict[str, int] = field(default_factory=dict)

    @property
    def pools_rejected(self) -> int:
        return sum(self.rejections.values())

    def record_rejection(self, reason: str) -> None:
        self.rejections[reason] = self.rejections.get(reason, 0) + 1

    def summary(self) -> str:
        rejected = ", ".join(f"{reason}={count}" for reason, count in sorted(self.rejections.items()))
        return (
            f"{self.protocol}: discovered={self.discovered} "
            f"decoded={self.pools_decoded} undecodable={self.pools_undecodable} "
            f"accepted={self.pools_accepted} rejected={self.pools_rejected}"
            f"{f' ({rejected})' if rejected else ''} "
            f"chunks_failed={self.chunks_failed}/{self.chunks_total} "
            f"discovery_retries={self.discovery_retries} "
            f"index_slots_failed={self.index_slots_failed} malformed_logs={self.malformed_logs}"
        )
