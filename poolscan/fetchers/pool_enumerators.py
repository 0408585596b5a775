"""
Pool address discovery.

Two strategies, picked per protocol by its registry entry:

- factory index: read the factory's pool count, then fetch every index
  through the aggregation contract in fixed-size chunks.
- event scan: walk the factory's creation event over the block range
  [start_block, head] in fixed-size windows.

Both are strict: a chunk or window that still fails after the retry
policy gives up raises DiscoveryError. Dropping it would leave a pool set
that is incomplete without saying so.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from hexbytes import HexBytes
from web3 import Web3

from ..batchers.base import BatchResult, RetryPolicy, linear_backoff
from ..batchers.calls import count_method, index_method
from ..batchers.errors import DecodeError, DiscoveryError, ErrorHandler
from ..batchers.multicall import MulticallAggregator
from ..config.protocols import DiscoveryStrategy, ProtocolSpec
from ..whitelist.pool_types import ScanStats
from .base import BaseFetcher, FetchResult, PoolIdentifier

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# 5 attempts, waiting base_delay * attempt in between
DEFAULT_DISCOVERY_RETRY = RetryPolicy(max_attempts=5, base_delay=2.0, backoff=linear_backoff)


class BasePoolEnumerator(ABC):
    """Shared de-duplication and retry handling for discovery strategies."""

    def __init__(
        self,
        spec: ProtocolSpec,
        retry_policy: Optional[RetryPolicy] = None,
        stats: Optional[ScanStats] = None,
    ):
        self.spec = spec
        self.retry_policy = retry_policy or DEFAULT_DISCOVERY_RETRY
        self.stats = stats or ScanStats(protocol=spec.name)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(self.logger)
        self._seen: Dict[str, PoolIdentifier] = {}

    @abstractmethod
    async def enumerate(self) -> List[PoolIdentifier]:
        """
        Discover the protocol's pool addresses.

        Returns:
            De-duplicated identifiers in discovery order

        Raises:
            DiscoveryError: If part of the address space could not be read
        """
        pass

    def _add(self, address: str, source: str) -> bool:
        """Record an address once per scan; returns False for duplicates."""
        key = address.lower()
        if key in self._seen or key == ZERO_ADDRESS:
            return False
        self._seen[key] = PoolIdentifier(
            address=Web3.to_checksum_address(address),
            protocol_name=self.spec.name,
            variant=self.spec.variant,
            source=source,
        )
        return True

    def _results(self) -> List[PoolIdentifier]:
        identifiers = list(self._seen.values())
        self.stats.discovered = len(identifiers)
        return identifiers

    def _count_retry(self, attempt: int, error: Exception) -> None:
        self.stats.discovery_retries += 1

    async def _with_retry(self, operation, *args, description: str, **kwargs) -> Any:
        """Run a discovery step under the retry policy, surfacing final failure."""
        try:
            return await self.retry_policy.run(
                operation,
                *args,
                description=description,
                error_handler=self.error_handler,
                on_retry=self._count_retry,
                **kwargs,
            )
        except Exception as e:
            raise DiscoveryError(f"{self.spec.name}: {description} failed: {e}") from e


class FactoryIndexEnumerator(BasePoolEnumerator):
    """Enumerate pools by index from a factory that tracks its own length."""

    def __init__(
        self,
        aggregator: MulticallAggregator,
        spec: ProtocolSpec,
        batch_size: int = 500,
        retry_policy: Optional[RetryPolicy] = None,
        stats: Optional[ScanStats] = None,
    ):
        super().__init__(spec, retry_policy, stats)
        self.aggregator = aggregator
        self.batch_size = min(batch_size, aggregator.max_calls)
        self._count_method = count_method(spec.count_method)
        self._index_method = index_method(spec.index_method)

    async def get_pool_count(self) -> int:
        """Read the factory's pool count."""
        return await self._with_retry(self._read_count, description=f"{self._count_method.signature} read")

    async def _read_count(self) -> int:
        batch = await self.aggregator.aggregate([self._count_method.encode_call(self.spec.factory)])
        return int(self._count_method.decode_single(batch[0]))

    async def _fetch_index_chunk(self, start: int, end: int) -> BatchResult:
        calls = [self._index_method.encode_call(self.spec.factory, i) for i in range(start, end)]
        return await self.aggregator.aggregate(calls)

    async def enumerate(self) -> List[PoolIdentifier]:
        count = await self.get_pool_count()
        self.logger.info(f"{self.spec.name}: factory reports {count} pools")

        for start in range(0, count, self.batch_size):
            end = min(start + self.batch_size, count)
            batch = await self._with_retry(
                self._fetch_index_chunk, start, end, description=f"index chunk {start}-{end}"
            )

            for offset, result in enumerate(batch):
                index = start + offset
                try:
                    address = self._index_method.decode_single(result)
                except DecodeError as e:
                    self.stats.index_slots_failed += 1
                    self.logger.warning(f"{self.spec.name}: index {index} unreadable: {e}")
                    continue
                self._add(address, f"index:{index}")

            self.logger.debug(f"{self.spec.name}: enumerated {end}/{count}")

        return self._results()


class EventScanEnumerator(BasePoolEnumerator):
    """Discover pools from the factory's creation event over a block range."""

    def __init__(
        self,
        log_fetcher: BaseFetcher,
        spec: ProtocolSpec,
        window_size: int = 50000,
        retry_policy: Optional[RetryPolicy] = None,
        stats: Optional[ScanStats] = None,
        end_block: Optional[int] = None,
    ):
        super().__init__(spec, retry_policy, stats)
        if window_size <= 0:
            raise ValueError("window_size must be positive")
        self.log_fetcher = log_fetcher
        self.window_size = window_size
        self.end_block = end_block

    @staticmethod
    def block_windows(start_block: int, end_block: int, window_size: int) -> List[Tuple[int, int]]:
        """Inclusive, non-overlapping windows covering [start_block, end_block]."""
        return [
            (start, min(start + window_size - 1, end_block))
            for start in range(start_block, end_block + 1, window_size)
        ]

    def decode_pool_address(self, log: Dict[str, Any]) -> str:
        """Read the pool address out of a creation event's data."""
        try:
            values = decode(list(self.spec.event_data_types), bytes(HexBytes(log["data"])))
        except (DecodingError, KeyError, ValueError, TypeError) as e:
            raise DecodeError(f"Malformed creation log: {e}")
        return values[self.spec.event_pool_index]

    async def enumerate(self) -> List[PoolIdentifier]:
        head = self.end_block
        if head is None:
            head = await self._with_retry(self.log_fetcher.get_latest_block, description="latest block read")

        windows = self.block_windows(self.spec.start_block, head, self.window_size)
        self.logger.info(
            f"{self.spec.name}: scanning blocks {self.spec.start_block}-{head} in {len(windows)} windows"
        )

        for from_block, to_block in windows:
            result: FetchResult = await self._with_retry(
                self.log_fetcher.fetch_logs,
                from_block,
                to_block,
                contracts=[self.spec.factory],
                events=[self.spec.event_topic],
                description=f"log window {from_block}-{to_block}",
            )
            self.stats.windows_scanned += 1

            for log in result.logs:
                try:
                    address = self.decode_pool_address(log)
                except DecodeError as e:
                    self.stats.malformed_logs += 1
                    self.logger.debug(f"{self.spec.name}: skipping log: {e}")
                    continue
                self._add(address, f"log:{log.get('blockNumber')}:{log.get('logIndex')}")

        return self._results()


def create_enumerator(
    spec: ProtocolSpec,
    aggregator: MulticallAggregator,
    log_fetcher: BaseFetcher,
    index_batch_size: int = 500,
    log_window_size: int = 50000,
    retry_policy: Optional[RetryPolicy] = None,
    stats: Optional[ScanStats] = None,
) -> BasePoolEnumerator:
    """Build the enumerator a protocol's discovery strategy asks for."""
    if spec.discovery is DiscoveryStrategy.FACTORY_INDEX:
        return FactoryIndexEnumerator(
            aggregator, spec, batch_size=index_batch_size, retry_policy=retry_policy, stats=stats
        )
    if spec.discovery is DiscoveryStrategy.EVENT_SCAN:
        return EventScanEnumerator(
            log_fetcher, spec, window_size=log_window_size, retry_policy=retry_policy, stats=stats
        )
    raise ValueError(f"Unsupported discovery strategy: {spec.discovery}")
