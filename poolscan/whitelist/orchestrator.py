"""
Main orchestrator for the pool scan pipeline.

Pipeline stages, run once per configured protocol and in registry order:
1. Discover pool addresses (factory index or creation-event scan)
2. Fetch token pairs and liquidity state in aggregated chunks
3. Classify pools against the token whitelist and liquidity thresholds
4. Collect accepted pools into one list, written as JSON at the end
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from web3 import Web3

from ..batchers.base import BatchConfig, RetryPolicy, linear_backoff
from ..batchers.errors import DiscoveryError
from ..batchers.multicall import MulticallAggregator
from ..batchers.pool_details import PoolDetailsBatcher
from ..config.base import ConfigError
from ..config.manager import ConfigManager
from ..config.protocols import ProtocolSpec
from ..core.storage.json_storage import JsonStorage
from ..fetchers.base import BaseFetcher
from ..fetchers.pool_enumerators import create_enumerator
from ..fetchers.web3_log_fetcher import Web3LogFetcher
from .liquidity_filter import PoolLiquidityFilter
from .pool_types import PoolRecord, ScanStats

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    """Accepted pools and per-protocol counters of one run."""

    chain: str
    records: List[PoolRecord] = field(default_factory=list)
    stats: Dict[str, ScanStats] = field(default_factory=dict)
    failed_protocols: Dict[str, str] = field(default_factory=dict)
    output_path: Optional[Path] = None

    @property
    def success(self) -> bool:
        """True when every protocol finished discovery."""
        return not self.failed_protocols

    def log_summary(self) -> None:
        logger.info("=" * 80)
        logger.info(f"POOL SCAN SUMMARY ({self.chain})")
        logger.info("=" * 80)
        for stats in self.stats.values():
            logger.info(stats.summary())
        for name, error in self.failed_protocols.items():
            logger.error(f"{name}: discovery failed: {error}")
        logger.info(f"Total pools accepted: {len(self.records)}")
        if self.output_path:
            logger.info(f"Output: {self.output_path}")


class PoolScanOrchestrator:
    """Orchestrate discovery, detail fetching and classification for a chain."""

    def __init__(
        self,
        config: ConfigManager,
        chain: str,
        protocols: Optional[Sequence[str]] = None,
        web3: Optional[Web3] = None,
        aggregator: Optional[MulticallAggregator] = None,
        log_fetcher: Optional[BaseFetcher] = None,
        batch_size: Optional[int] = None,
        pacing_seconds: Optional[float] = None,
    ):
        """
        Initialize orchestrator.

        Configuration is validated here, before any client is built.

        Args:
            config: Configuration manager
            chain: Chain to scan
            protocols: Restrict the scan to these protocol names
            web3: Web3 instance, built from the chain's RPC URL if omitted
            aggregator: Aggregation client, built on ``web3`` if omitted
            log_fetcher: Log source for event scans, built on ``web3`` if omitted
            batch_size: Override for the detail chunk size
            pacing_seconds: Override for the delay after each detail chunk

        Raises:
            ConfigError: If the configuration for this chain is invalid
        """
        self.config = config
        self.chain = chain
        config.validate_configuration(chain, protocols)

        chains = config.chains
        self.specs = config.get_protocol_specs(chain, protocols)
        self.liquidity_filter = PoolLiquidityFilter(
            config.get_token_whitelist(chain), config.get_threshold_policy()
        )

        self.discovery_policy = RetryPolicy(
            max_attempts=chains.DISCOVERY_MAX_ATTEMPTS,
            base_delay=chains.DISCOVERY_RETRY_DELAY_SECONDS,
            backoff=linear_backoff,
        )
        detail_policy = None
        if chains.DETAIL_MAX_ATTEMPTS > 1:
            detail_policy = RetryPolicy(
                max_attempts=chains.DETAIL_MAX_ATTEMPTS,
                base_delay=chains.DISCOVERY_RETRY_DELAY_SECONDS,
                backoff=linear_backoff,
            )

        if web3 is None and (aggregator is None or log_fetcher is None):
            rpc_url = chains.get_rpc_url(chain)
            web3 = Web3(
                Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": chains.RPC_TIMEOUT_SECONDS})
            )
        self.aggregator = aggregator or MulticallAggregator(
            web3, chains.MULTICALL_ADDRESS, max_calls=chains.MAX_CALLS_PER_AGGREGATE
        )
        self.log_fetcher = log_fetcher or Web3LogFetcher(web3, chain, chains.get_rpc_url(chain))
        if not self.log_fetcher.validate_config():
            raise ConfigError(f"Log fetcher for {chain} is not configured")

        self.details_batcher = PoolDetailsBatcher(
            self.aggregator,
            BatchConfig(
                batch_size=batch_size or chains.DETAIL_BATCH_SIZE,
                max_calls=chains.MAX_CALLS_PER_AGGREGATE,
                pacing_seconds=chains.BATCH_PACING_SECONDS if pacing_seconds is None else pacing_seconds,
                retry_policy=detail_policy,
            ),
        )

    async def scan_protocol(self, spec: ProtocolSpec, stats: ScanStats) -> List[PoolRecord]:
        """
        Run discovery, detail fetching and classification for one protocol.

        Raises:
            DiscoveryError: If the protocol's pool set could not be read in full
        """
        enumerator = create_enumerator(
            spec,
            self.aggregator,
            self.log_fetcher,
            index_batch_size=self.config.chains.INDEX_BATCH_SIZE,
            log_window_size=self.config.chains.LOG_WINDOW_SIZE,
            retry_policy=self.discovery_policy,
            stats=stats,
        )
        identifiers = await enumerator.enumerate()
        logger.info(f"{spec.name}: discovered {len(identifiers)} pools")

        states = await self.details_batcher.fetch_pool_states(identifiers, stats=stats)
        return self.liquidity_filter.filter_pools(states, spec, stats)

    async def run_scan(self) -> ScanReport:
        """
        Scan every configured protocol in order.

        A discovery failure ends only that protocol's scan; it is recorded on
        the report and the remaining protocols still run.
        """
        report = ScanReport(chain=self.chain)

        for spec in self.specs:
            logger.info(f"Scanning {spec.name} ({spec.variant.value}, {spec.discovery.value})")
            stats = ScanStats(protocol=spec.name)
            report.stats[spec.name] = stats

            try:
                records = await self.scan_protocol(spec, stats)
            except DiscoveryError as e:
                logger.error(f"{spec.name}: {e}")
                report.failed_protocols[spec.name] = str(e)
                continue

            report.records.extend(records)

        return report

    def save_results(self, report: ScanReport, output: Optional[Union[str, Path]] = None) -> Path:
        """
        Write the accepted pools as a JSON array.

        Args:
            report: Finished scan report
            output: Output file, defaults to OUTPUT_DIR/OUTPUT_FILENAME

        Returns:
            Path of the written file
        """
        if output:
            output = Path(output)
            storage = JsonStorage(output.parent)
            filename = output.name
        else:
            storage = JsonStorage(self.config.chains.get_output_directory(self.chain))
            filename = self.config.chains.OUTPUT_FILENAME

        report.output_path = storage.save_records(filename, report.records)
        return report.output_path
