"""
Chain-specific configuration for poolscan.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict

from .base import BaseConfig, ConfigError, env_field


@dataclass
class ChainConfig(BaseConfig):
    """Chain endpoints and batching limits for the pool scanner."""

    # Default chain settings
    DEFAULT_CHAIN: str = env_field("DEFAULT_CHAIN", "base")

    # Chain-specific RPC URLs
    ETHEREUM_RPC_URL: str = env_field("ETHEREUM_RPC_URL", "http://127.0.0.1:8545")
    BASE_RPC_URL: str = env_field("BASE_RPC_URL", "https://mainnet.base.org")
    RPC_TIMEOUT_SECONDS: float = env_field("RPC_TIMEOUT_SECONDS", 60.0, BaseConfig.get_env_float)

    # Chain IDs
    ETHEREUM_CHAIN_ID: int = 1
    BASE_CHAIN_ID: int = 8453

    # Multicall3 is deployed at the same address on every supported chain
    MULTICALL_ADDRESS: str = env_field("MULTICALL_ADDRESS", "0xcA11bde05977b3631167028862bE2a173976CA11")

    # Aggregation limits
    INDEX_BATCH_SIZE: int = env_field("INDEX_BATCH_SIZE", 500, BaseConfig.get_env_int)
    DETAIL_BATCH_SIZE: int = env_field("DETAIL_BATCH_SIZE", 100, BaseConfig.get_env_int)
    MAX_CALLS_PER_AGGREGATE: int = env_field("MAX_CALLS_PER_AGGREGATE", 500, BaseConfig.get_env_int)
    BATCH_PACING_SECONDS: float = env_field("BATCH_PACING_SECONDS", 0.2, BaseConfig.get_env_float)

    # Event scanning
    LOG_WINDOW_SIZE: int = env_field("LOG_WINDOW_SIZE", 50000, BaseConfig.get_env_int)

    # Retry settings
    DISCOVERY_MAX_ATTEMPTS: int = env_field("DISCOVERY_MAX_ATTEMPTS", 5, BaseConfig.get_env_int)
    DISCOVERY_RETRY_DELAY_SECONDS: float = env_field(
        "DISCOVERY_RETRY_DELAY_SECONDS", 2.0, BaseConfig.get_env_float
    )
    DETAIL_MAX_ATTEMPTS: int = env_field("DETAIL_MAX_ATTEMPTS", 1, BaseConfig.get_env_int)

    # Output, OUTPUT_DIR defaults to DATA_DIR/<chain>
    OUTPUT_DIR: str = env_field("OUTPUT_DIR", "")
    OUTPUT_FILENAME: str = env_field("OUTPUT_FILENAME", "pools.json")

    @property
    def supported_chains(self) -> Dict[str, Dict]:
        """Get configuration for all supported chains."""
        return {
            "ethereum": {
                "chain_id": self.ETHEREUM_CHAIN_ID,
                "rpc_url": self.ETHEREUM_RPC_URL,
            },
            "base": {
                "chain_id": self.BASE_CHAIN_ID,
                "rpc_url": self.BASE_RPC_URL,
            },
        }

    def get_chain_config(self, chain_name: str) -> Dict:
        """Get configuration for a specific chain."""
        if chain_name not in self.supported_chains:
            raise ValueError(f"Unsupported chain: {chain_name}")
        return self.supported_chains[chain_name]

    def get_rpc_url(self, chain_name: str) -> str:
        """Get RPC URL for a specific chain."""
        return self.get_chain_config(chain_name)["rpc_url"]

    def get_chain_id(self, chain_name: str) -> int:
        """Get chain ID for a specific chain."""
        return self.get_chain_config(chain_name)["chain_id"]

    def get_output_directory(self, chain_name: str) -> Path:
        """Directory the pool list for a chain is written to."""
        if self.OUTPUT_DIR:
            return Path(self.OUTPUT_DIR)
        return self.DATA_DIR / chain_name

    def validate_limits(self) -> None:
        """Reject batch and retry settings the pipeline cannot run with."""
        positive = {
            "INDEX_BATCH_SIZE": self.INDEX_BATCH_SIZE,
            "DETAIL_BATCH_SIZE": self.DETAIL_BATCH_SIZE,
            "MAX_CALLS_PER_AGGREGATE": self.MAX_CALLS_PER_AGGREGATE,
            "LOG_WINDOW_SIZE": self.LOG_WINDOW_SIZE,
            "DISCOVERY_MAX_ATTEMPTS": self.DISCOVERY_MAX_ATTEMPTS,
            "DETAIL_MAX_ATTEMPTS": self.DETAIL_MAX_ATTEMPTS,
        }
        for name, value in positive.items():
            if value <= 0:
                raise ConfigError(f"{name} must be positive, got {value}")

        if self.INDEX_BATCH_SIZE > self.MAX_CALLS_PER_AGGREGATE:
            raise ConfigError(
                f"INDEX_BATCH_SIZE ({self.INDEX_BATCH_SIZE}) exceeds "
                f"MAX_CALLS_PER_AGGREGATE ({self.MAX_CALLS_PER_AGGREGATE})"
            )
        if self.BATCH_PACING_SECONDS < 0 or self.DISCOVERY_RETRY_DELAY_SECONDS < 0:
            raise ConfigError("Pacing and retry delays cannot be negative")
