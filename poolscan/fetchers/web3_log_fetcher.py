"""
Log fetcher backed by a web3 JSON-RPC provider.

KISS: one eth_getLogs request per block window, no local caching.
"""

from typing import List, Optional

from web3 import Web3

from .base import BaseFetcher, FetchError, FetchResult


class Web3LogFetcher(BaseFetcher):
    """Fetch raw event logs through ``eth_getLogs``."""

    def __init__(self, web3: Web3, chain: str, rpc_url: str = ""):
        """
        Initialize fetcher.

        Args:
            web3: Connected Web3 instance
            chain: Chain name
            rpc_url: Endpoint, for logging only
        """
        super().__init__(chain, rpc_url)
        self.web3 = web3

    async def fetch_logs(
        self,
        start_block: int,
        end_block: int,
        contracts: Optional[List[str]] = None,
        events: Optional[List[str]] = None,
    ) -> FetchResult:
        """Fetch logs emitted by ``contracts`` with topic0 in ``events``."""
        if start_block > end_block:
            raise FetchError(f"Invalid block range: {start_block} > {end_block}")

        params = {"fromBlock": start_block, "toBlock": end_block}
        if contracts:
            addresses = [Web3.to_checksum_address(c) for c in contracts]
            params["address"] = addresses[0] if len(addresses) == 1 else addresses
        if events:
            params["topics"] = [events[0] if len(events) == 1 else list(events)]

        try:
            logs = self.web3.eth.get_logs(params)
        except Exception as e:
            raise FetchError(f"get_logs {start_block}-{end_block} failed: {e}") from e

        result = FetchResult(
            success=True,
            logs=list(logs),
            start_block=start_block,
            end_block=end_block,
            metadata={"chain": self.chain},
        )
        self.log_result(result)
        return result

    async def get_latest_block(self) -> int:
        try:
            return self.web3.eth.block_number
        except Exception as e:
            raise FetchError(f"Failed to get latest block: {e}") from e

    def validate_config(self) -> bool:
        return self.web3 is not None
