"""
Configuration manager for poolscan.

This module provides a centralized way to access all configuration settings
across the application. It combines all configuration classes into a single
easy-to-use interface.
"""

import logging
from typing import List, Optional, Sequence

from .base import BaseConfig, ConfigError
from .chains import ChainConfig
from .protocols import ProtocolConfig, ProtocolSpec
from .whitelist import WhitelistConfig
from ..whitelist.pool_types import ThresholdPolicy, TokenWhitelist

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Centralized configuration manager that combines all configuration classes.

    Validation resolves everything a scan needs (protocol specs, whitelist,
    thresholds, batch limits) up front, so a bad setting fails the run before
    any network work starts.
    """

    def __init__(self, environment: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            environment: Override the environment (local, dev, test, staging, production)
        """
        self._environment = environment
        self._base_config = None
        self._chain_config = None
        self._protocol_config = None
        self._whitelist_config = None
        self._initialize_configs()

    def _initialize_configs(self):
        """Initialize all configuration objects."""
        try:
            self._base_config = BaseConfig()
            if self._environment:
                self._base_config.ENVIRONMENT = self._environment
                self._base_config._validate_config()

            self._chain_config = ChainConfig()
            self._protocol_config = ProtocolConfig()
            self._whitelist_config = WhitelistConfig()

            logger.info(f"Configuration initialized for environment: {self.environment}")

        except ConfigError:
            raise
        except Exception as e:
            logger.error(f"Failed to initialize configuration: {e}")
            raise ConfigError(f"Configuration initialization failed: {e}")

    @property
    def environment(self) -> str:
        """Get current environment."""
        return self._base_config.ENVIRONMENT

    @property
    def base(self) -> BaseConfig:
        return self._base_config

    @property
    def chains(self) -> ChainConfig:
        return self._chain_config

    @property
    def protocols(self) -> ProtocolConfig:
        return self._protocol_config

    @property
    def whitelist(self) -> WhitelistConfig:
        return self._whitelist_config

    def get_protocol_specs(self, chain: str, names: Optional[Sequence[str]] = None) -> List[ProtocolSpec]:
        return self.protocols.get_protocol_specs(chain, names)

    def get_token_whitelist(self, chain: str) -> TokenWhitelist:
        return self.whitelist.build_whitelist(chain)

    def get_threshold_policy(self) -> ThresholdPolicy:
        return self.whitelist.build_threshold_policy()

    def validate_configuration(self, chain: Optional[str] = None, protocols: Optional[Sequence[str]] = None) -> bool:
        """
        Validate all configuration settings for a scan.

        Args:
            chain: Chain to validate, defaults to DEFAULT_CHAIN
            protocols: Restrict protocol validation to these names

        Returns:
            True if all configurations are valid

        Raises:
            ConfigError: If any configuration is invalid
        """
        chain = chain or self.chains.DEFAULT_CHAIN
        try:
            self.chains.get_chain_config(chain)
        except ValueError as e:
            raise ConfigError(str(e))

        self.chains.validate_limits()

        specs = self.get_protocol_specs(chain, protocols)
        if not specs:
            raise ConfigError(f"No protocols configured for chain: {chain}")

        self.get_token_whitelist(chain)
        self.get_threshold_policy()

        logger.info(
            f"Configuration validation successful for {chain}: "
            f"{', '.join(spec.name for spec in specs)}"
        )
        return True

    def __repr__(self) -> str:
        return f"ConfigManager(environment={self.environment})"


# Global configuration manager instance
_config_manager = None


def get_config(environment: Optional[str] = None, force_reload: bool = False) -> ConfigManager:
    """
    Get the global configuration manager instance.

    Args:
        environment: Override environment
        force_reload: Force reload of configuration

    Returns:
        ConfigManager instance
    """
    global _config_manager

    if _config_manager is None or force_reload:
        _config_manager = ConfigManager(environment=environment)

    return _config_manager


def reload_config(environment: Optional[str] = None) -> ConfigManager:
    """Reload the global configuration manager."""
    return get_config(environment=environment, force_reload=True)
