"""Tests for the web3-backed log fetcher and FetchResult."""
import pytest
from unittest.mock import Mock
from web3 import Web3

from poolscan.fetchers.base import FetchError, FetchResult
from poolscan.fetchers.web3_log_fetcher import Web3LogFetcher

FACTORY = "0x33128a8fc17869897dce68ed026d694621f6fdfd"
TOPIC = "0x783cca1c0412dd0d695e784568c96da2e9c22ff989357a2e8b1d9b2b4e6b7118"


class TestWeb3LogFetcher:
    """Test cases for Web3LogFetcher."""

    @pytest.fixture
    def web3(self):
        web3 = Mock()
        web3.eth.get_logs.return_value = [{"blockNumber": 10, "logIndex": 0, "data": "0x"}]
        web3.eth.block_number = 18500000
        return web3

    @pytest.fixture
    def fetcher(self, web3):
        return Web3LogFetcher(web3, "base", "https://test-rpc.com")

    def test_fetcher_initialization(self, fetcher):
        """Test fetcher initializes correctly."""
        assert fetcher.chain == "base"
        assert fetcher.rpc_url == "https://test-rpc.com"
        assert fetcher.validate_config() is True

    @pytest.mark.asyncio
    async def test_fetch_logs_success(self, fetcher, web3):
        """Test successful log fetching with address and topic filters."""
        result = await fetcher.fetch_logs(100, 199, contracts=[FACTORY], events=[TOPIC])

        assert result.success is True
        assert len(result.logs) == 1
        assert result.fetched_blocks == 100
        assert result.metadata["chain"] == "base"

        params = web3.eth.get_logs.call_args[0][0]
        assert params["fromBlock"] == 100
        assert params["toBlock"] == 199
        assert params["address"] == Web3.to_checksum_address(FACTORY)
        assert params["topics"] == [TOPIC]

    @pytest.mark.asyncio
    async def test_fetch_logs_invalid_range(self, fetcher):
        """Test fetch_logs with invalid block range."""
        with pytest.raises(FetchError, match="Invalid block range"):
            await fetcher.fetch_logs(200, 100)

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self, fetcher, web3):
        web3.eth.get_logs.side_effect = ConnectionError("connection reset")

        with pytest.raises(FetchError, match="connection reset"):
            await fetcher.fetch_logs(100, 199)

    @pytest.mark.asyncio
    async def test_get_latest_block(self, fetcher):
        assert await fetcher.get_latest_block() == 18500000


class TestFetchResult:
    def test_fetch_result_dataclass(self):
        """Test FetchResult dataclass functionality."""
        result = FetchResult(success=True, start_block=100, end_block=199, metadata={"key": "value"})

        assert result.failed is False
        assert result.fetched_blocks == 100
        assert result.logs == []

    def test_fetched_blocks_without_range(self):
        assert FetchResult(success=False, error="boom").fetched_blocks == 0
