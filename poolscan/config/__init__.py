"""
Configuration management for poolscan.

Use get_config() to access all configuration settings.

Example:
    from poolscan.config import get_config

    config = get_config()
    config.validate_configuration("base")

    rpc_url = config.chains.get_rpc_url("base")
    specs = config.get_protocol_specs("base")
    whitelist = config.get_token_whitelist("base")
"""

from .base import BaseConfig, ConfigError
from .chains import ChainConfig
from .manager import ConfigManager, get_config, reload_config
from .protocols import DiscoveryStrategy, PoolVariant, ProtocolConfig, ProtocolSpec
from .whitelist import WhitelistConfig

__all__ = [
    "BaseConfig",
    "ConfigError",
    "ChainConfig",
    "ProtocolConfig",
    "ProtocolSpec",
    "PoolVariant",
    "DiscoveryStrategy",
    "WhitelistConfig",
    "ConfigManager",
    "get_config",
    "reload_config",
]
