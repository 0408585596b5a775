"""Tests for the pool scan orchestrator."""

import json

import pytest

from poolscan.batchers.calls import TOKEN0
from poolscan.batchers.multicall import MulticallAggregator
from poolscan.config import ConfigError, ConfigManager
from poolscan.fetchers.base import FetchError
from poolscan.whitelist.orchestrator import PoolScanOrchestrator, ScanReport

WETH = "0x4200000000000000000000000000000000000006"
USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
BASESWAP_FACTORY = "0xFDa619b6d20975be80A10332cD39b9a4b0FAa8BB"
UNISWAP_V3_START = 2000000


@pytest.fixture
def config():
    return ConfigManager(environment="test")


@pytest.fixture
def chain_state(fake_node, log_fetcher_factory, address):
    """BaseSwap with three pools, Uniswap V3 with two creation logs."""
    accepted_v2, rejected_v2, broken_v2 = address(0xA1), address(0xA2), address(0xA3)
    fake_node.add_factory(BASESWAP_FACTORY, "allPairsLength", "allPairs", [accepted_v2, rejected_v2, broken_v2])
    fake_node.add_constant_product_pool(accepted_v2, WETH, address(1), 2 * 10**18, 10**20)
    fake_node.add_constant_product_pool(rejected_v2, address(1), address(2), 10**30, 10**30)
    fake_node.add_constant_product_pool(broken_v2, WETH, address(1), 10**20, 10**20)
    fake_node.table.pop((broken_v2, TOKEN0.selector))

    accepted_v3, rejected_v3 = address(0xB1), address(0xB2)
    fake_node.add_concentrated_pool(accepted_v3, WETH, USDC, 10**13)
    fake_node.add_concentrated_pool(rejected_v3, WETH, address(1), 10**13)
    fetcher = log_fetcher_factory(head=UNISWAP_V3_START + 100)
    fetcher.add_pool_created(UNISWAP_V3_START + 10, accepted_v3)
    fetcher.add_pool_created(UNISWAP_V3_START + 20, rejected_v3)

    return {
        "fetcher": fetcher,
        "accepted": [accepted_v2, accepted_v3],
    }


@pytest.fixture
def make_orchestrator(config, fake_web3, chain_state):
    def _make(**kwargs):
        return PoolScanOrchestrator(
            config,
            "base",
            protocols=["BaseSwap", "Uniswap_V3"],
            aggregator=MulticallAggregator(fake_web3),
            log_fetcher=chain_state["fetcher"],
            pacing_seconds=0,
            **kwargs,
        )
    return _make


class TestPoolScanOrchestrator:
    """Test the end-to-end scan over fake chain state."""

    @pytest.mark.asyncio
    async def test_run_scan(self, make_orchestrator, chain_state):
        report = await make_orchestrator().run_scan()

        assert report.success
        assert sorted(r.quoter.lower() if r.protocol == "v2" else r.pool.lower() for r in report.records) == sorted(
            chain_state["accepted"]
        )

        v2 = report.stats["BaseSwap"]
        assert v2.discovered == 3
        assert v2.pools_decoded == 2
        assert v2.pools_undecodable == 1
        assert v2.pools_accepted == 1
        assert v2.pools_rejected == 1

        v3 = report.stats["Uniswap_V3"]
        assert v3.discovered == 2
        assert v3.windows_scanned == 1
        assert v3.pools_accepted == 1

    @pytest.mark.asyncio
    async def test_discovery_failure_isolated(self, make_orchestrator, chain_state, no_sleep):
        chain_state["fetcher"].failures = [FetchError("connection reset")] * 5

        report = await make_orchestrator().run_scan()

        assert not report.success
        assert list(report.failed_protocols) == ["Uniswap_V3"]
        assert [r.protocol for r in report.records] == ["v2"]
        assert report.stats["Uniswap_V3"].discovery_retries == 4

    @pytest.mark.asyncio
    async def test_save_results(self, make_orchestrator, tmp_path):
        orchestrator = make_orchestrator()
        report = await orchestrator.run_scan()

        path = orchestrator.save_results(report, tmp_path / "pools.json")

        data = json.loads(path.read_text())
        assert len(data) == 2
        assert {entry["protocol"] for entry in data} == {"v2", "v3"}
        assert all("pool" not in entry for entry in data if entry["protocol"] == "v2")

    def test_unknown_chain_is_config_error(self, config, fake_web3):
        with pytest.raises(ConfigError):
            PoolScanOrchestrator(config, "solana", aggregator=MulticallAggregator(fake_web3))

    def test_unknown_protocol_is_config_error(self, config, fake_web3):
        with pytest.raises(ConfigError):
            PoolScanOrchestrator(config, "base", protocols=["NotADex"], aggregator=MulticallAggregator(fake_web3))

    def test_batch_size_override(self, make_orchestrator):
        orchestrator = make_orchestrator(batch_size=7)

        assert orchestrator.details_batcher.config.batch_size == 7
        assert orchestrator.details_batcher.config.pacing_seconds == 0

    def test_unconfigured_log_fetcher_rejected(self, config, fake_web3, log_fetcher_factory):
        fetcher = log_fetcher_factory(head=0)
        fetcher.validate_config = lambda: False

        with pytest.raises(ConfigError, match="Log fetcher"):
            PoolScanOrchestrator(
                config, "base", aggregator=MulticallAggregator(fake_web3), log_fetcher=fetcher
            )


class TestScanReport:
    def test_success_flag(self):
        report = ScanReport(chain="base")
        assert report.success

        report.failed_protocols["X"] = "boom"
        assert not report.success
