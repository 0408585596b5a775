"""
Pool details batch fetcher.

Fetches token pairs and liquidity state for discovered pools through the
aggregation contract, one chunk at a time, with a pacing delay after every
chunk so a shared RPC endpoint is not flooded.
"""

import asyncio
from typing import List, Optional, Sequence, Union

from ..fetchers.base import PoolIdentifier
from ..whitelist.pool_types import ScanStats
from .base import BaseBatcher, BatchConfig
from .errors import BatchError, DecodeError
from .multicall import MulticallAggregator
from .pool_state import DecodedPoolState, get_shape, split_results


class PoolDetailsBatcher(BaseBatcher):
    """
    Batch fetcher for pool state.

    Every pool in a chunk gets its variant's fixed call list, so the flat
    result list can be cut back into per-pool slices by position. A chunk
    whose aggregate call fails is logged and skipped; its pools are counted
    as undecodable rather than retried forever.
    """

    def __init__(
        self,
        aggregator: MulticallAggregator,
        config: Optional[BatchConfig] = None,
    ):
        """
        Initialize the details batcher.

        Args:
            aggregator: Aggregation client used for every chunk
            config: Batch size, call cap, pacing and optional retry policy
        """
        super().__init__(config)
        self.aggregator = aggregator

    def pools_per_chunk(self, calls_per_pool: int) -> int:
        """Largest chunk that keeps the aggregate call under the call cap."""
        max_calls = min(self.config.max_calls, self.aggregator.max_calls)
        return max(1, min(self.config.batch_size, max_calls // calls_per_pool))

    async def batch_call(
        self,
        pools: Sequence[PoolIdentifier],
        block_identifier: Union[int, str] = "latest",
        stats: Optional[ScanStats] = None,
    ) -> List[DecodedPoolState]:
        """
        Fetch and decode state for one chunk of pools.

        Args:
            pools: Pools sharing one variant
            block_identifier: Block to call at
            stats: Counters to update with undecodable pools

        Returns:
            Decoded states for the pools that could be read

        Raises:
            BatchError: If the aggregate call itself fails
        """
        if not pools:
            return []

        variants = {pool.variant for pool in pools}
        if len(variants) != 1:
            raise ValueError(f"Chunk mixes pool variants: {sorted(v.value for v in variants)}")
        shape = get_shape(pools[0].variant)

        calls = []
        for pool in pools:
            calls.extend(shape.encode(pool.address))

        batch = await self.aggregator.aggregate(calls, block_identifier=block_identifier)

        states = []
        for pool, results in zip(pools, split_results(batch.results, shape.calls_per_pool)):
            try:
                states.append(shape.decode(pool.address, results))
            except DecodeError as e:
                if stats is not None:
                    stats.pools_undecodable += 1
                self.logger.debug(f"Dropping {pool.address}: {e}")

        if stats is not None:
            stats.pools_decoded += len(states)
        return states

    async def fetch_pool_states(
        self,
        pools: Sequence[PoolIdentifier],
        block_identifier: Union[int, str] = "latest",
        stats: Optional[ScanStats] = None,
    ) -> List[DecodedPoolState]:
        """
        Fetch state for a large number of pools using chunking.

        Args:
            pools: Pools of one protocol (can be large)
            block_identifier: Block to call at
            stats: Counters for chunk failures and undecodable pools

        Returns:
            Combined decoded states from all chunks that succeeded
        """
        if not pools:
            return []

        shape = get_shape(pools[0].variant)
        chunks = self._chunk(pools, self.pools_per_chunk(shape.calls_per_pool))
        all_states: List[DecodedPoolState] = []

        self.logger.info(f"Fetching details for {len(pools)} pools in {len(chunks)} chunks")

        for i, chunk in enumerate(chunks):
            self.logger.debug(f"Processing chunk {i + 1}/{len(chunks)} with {len(chunk)} pools")
            if stats is not None:
                stats.chunks_total += 1

            try:
                states = await self._retry_operation(
                    self.batch_call, chunk, block_identifier, stats=stats
                )
                all_states.extend(states)
            except BatchError as e:
                self.logger.warning(f"Chunk {i + 1} failed, skipping {len(chunk)} pools: {e}")
                if stats is not None:
                    stats.chunks_failed += 1
                    stats.pools_undecodable += len(chunk)

            # Pace every chunk, failed ones included
            if self.config.pacing_seconds > 0:
                await asyncio.sleep(self.config.pacing_seconds)

        return all_states
