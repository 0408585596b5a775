"""
Token whitelist and liquidity threshold configuration for poolscan.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, List

from .base import BaseConfig, ConfigError, env_field
from ..whitelist.pool_types import ThresholdPolicy, TokenClass, TokenWhitelist, WhitelistEntry


@dataclass
class WhitelistConfig(BaseConfig):
    """Whitelisted tokens per chain and the thresholds applied to them."""

    # Minimum reserve of the whitelisted side, in whole tokens
    MIN_RESERVE_NATIVE: str = env_field("MIN_RESERVE_NATIVE", "1")
    MIN_RESERVE_STABLE: str = env_field("MIN_RESERVE_STABLE", "2000")
    MIN_RESERVE_OTHER: str = env_field("MIN_RESERVE_OTHER", "1000")

    # Raw liquidity() tiers for concentrated liquidity pools. Tuned by hand,
    # they do not carry over between fee tiers or decimal layouts.
    CL_LIQUIDITY_LOW_TIER: int = env_field("CL_LIQUIDITY_LOW_TIER", 10**12, BaseConfig.get_env_int)
    CL_LIQUIDITY_HIGH_TIER: int = env_field("CL_LIQUIDITY_HIGH_TIER", 10**15, BaseConfig.get_env_int)

    @property
    def whitelist_tokens(self) -> Dict[str, List[Dict]]:
        """Whitelisted token table by chain."""
        return {
            "base": [
                {"symbol": "WETH", "address": "0x4200000000000000000000000000000000000006", "decimals": 18, "class": "native-asset"},
                {"symbol": "USDC", "address": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", "decimals": 6, "class": "stable-asset"},
                {"symbol": "USDbC", "address": "0xd9aAEc86B65D86f6A7B5B1b0c42FFA531710b6CA", "decimals": 6, "class": "stable-asset"},
                {"symbol": "DAI", "address": "0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb", "decimals": 18, "class": "stable-asset"},
                {"symbol": "bsUSD", "address": "0x0000206329b97DB379d5E1Bf586BbDB969C63274", "decimals": 18, "class": "stable-asset"},
                {"symbol": "AERO", "address": "0x940181a94A35A4569E4529A3CDfB74e38FD98631", "decimals": 18, "class": "other"},
                {"symbol": "cbETH", "address": "0x2ae3f1ec7f1f5012cfeab0185bfc7aa3cf0dec22", "decimals": 18, "class": "other"},
            ],
            "ethereum": [
                {"symbol": "WETH", "address": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", "decimals": 18, "class": "native-asset"},
                {"symbol": "USDC", "address": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "decimals": 6, "class": "stable-asset"},
                {"symbol": "USDT", "address": "0xdAC17F958D2ee523a2206206994597C13D831ec7", "decimals": 6, "class": "stable-asset"},
                {"symbol": "DAI", "address": "0x6B175474E89094C44Da98b954EedeAC495271d0F", "decimals": 18, "class": "stable-asset"},
                {"symbol": "WBTC", "address": "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", "decimals": 8, "class": "other"},
            ],
        }

    def build_whitelist(self, chain: str) -> TokenWhitelist:
        """
        Build the immutable whitelist for a chain.

        Raises:
            ConfigError: If the chain has no whitelist or an entry is malformed
        """
        if chain not in self.whitelist_tokens:
            raise ConfigError(f"No whitelist configured for chain: {chain}")

        entries = []
        for token in self.whitelist_tokens[chain]:
            try:
                entries.append(
                    WhitelistEntry(
                        address=token["address"],
                        decimals=int(token["decimals"]),
                        token_class=TokenClass(token["class"]),
                    )
                )
            except (KeyError, ValueError) as e:
                raise ConfigError(f"Invalid whitelist entry {token}: {e}")

        if not entries:
            raise ConfigError(f"Whitelist for {chain} is empty")
        return TokenWhitelist(entries)

    def build_threshold_policy(self) -> ThresholdPolicy:
        """
        Build the threshold policy from the configured values.

        Raises:
            ConfigError: On unparsable numbers or inverted liquidity tiers
        """
        try:
            return ThresholdPolicy(
                native_asset_min=Decimal(self.MIN_RESERVE_NATIVE),
                stable_asset_min=Decimal(self.MIN_RESERVE_STABLE),
                other_min=Decimal(self.MIN_RESERVE_OTHER),
                cl_low_tier=int(self.CL_LIQUIDITY_LOW_TIER),
                cl_high_tier=int(self.CL_LIQUIDITY_HIGH_TIER),
            )
        except (InvalidOperation, ValueError) as e:
            raise ConfigError(f"Invalid threshold configuration: {e}")
