"""
Base classes for blockchain data fetchers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional
import logging

from ..config.protocols import PoolVariant

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Base exception for fetch-related errors."""
    pass


@dataclass
class FetchResult:
    """Result from fetch execution."""
    success: bool
    logs: List[Dict[str, Any]] = field(default_factory=list)
    start_block: Optional[int] = None
    end_block: Optional[int] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        """Check if fetch failed."""
        return not self.success

    @property
    def fetched_blocks(self) -> int:
        if self.start_block is None or self.end_block is None:
            return 0
        return self.end_block - self.start_block + 1


@dataclass(frozen=True)
class PoolIdentifier:
    """
    A pool address found during discovery.

    Attributes:
        address: Pool contract address
        protocol_name: Protocol that produced it
        variant: Decoding shape of the pool
        source: "index:<n>" for registry enumeration, "log:<block>:<log index>" for event scans
    """
    address: str
    protocol_name: str
    variant: PoolVariant
    source: str


class BaseFetcher(ABC):
    """
    Abstract base class for blockchain log fetchers.

    KISS principle: Each fetcher handles one specific chain's data collection.
    """

    def __init__(self, chain: str, rpc_url: str):
        """
        Initialize fetcher.

        Args:
            chain: Blockchain chain name (e.g., 'base')
            rpc_url: RPC endpoint URL
        """
        self.chain = chain
        self.rpc_url = rpc_url
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    @abstractmethod
    async def fetch_logs(
        self,
        start_block: int,
        end_block: int,
        contracts: Optional[List[str]] = None,
        events: Optional[List[str]] = None,
    ) -> FetchResult:
        """
        Fetch blockchain logs/events for an inclusive block range.

        Args:
            start_block: Starting block number
            end_block: Ending block number
            contracts: List of contract addresses to filter
            events: List of event topics to filter

        Returns:
            FetchResult: Result carrying the raw logs

        Raises:
            FetchError: On transport failure
        """
        pass

    @abstractmethod
    async def get_latest_block(self) -> int:
        """
        Get the latest block number.

        Returns:
            int: Latest block number
        """
        pass

    @abstractmethod
    def validate_config(self) -> bool:
        """
        Validate fetcher configuration.

        Returns:
            bool: True if configuration is valid
        """
        pass

    def log_result(self, result: FetchResult) -> None:
        """Log fetch result."""
        if result.success:
            self.logger.debug(
                f"Fetched {len(result.logs)} logs over {result.fetched_blocks} blocks "
                f"({result.start_block}-{result.end_block})"
            )
        else:
            self.logger.error(f"Fetch failed: {result.error}")
