"""
Protocol registry for poolscan.

Each protocol is plain data: how its pools are discovered, which decoding
shape its pools follow and where its router/quoter live. Adding a protocol
means adding an entry here, not touching the pipeline.
"""

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .base import BaseConfig, ConfigError, env_field


class PoolVariant(str, Enum):
    """Decoding shape of a pool contract."""

    CONSTANT_PRODUCT = "constant_product"
    CONSTANT_PRODUCT_STABLE = "constant_product_stable"
    CONCENTRATED_LIQUIDITY = "concentrated_liquidity"


class DiscoveryStrategy(str, Enum):
    """How pool addresses are enumerated for a protocol."""

    FACTORY_INDEX = "factory_index"
    EVENT_SCAN = "event_scan"


@dataclass(frozen=True)
class ProtocolSpec:
    """Validated, immutable description of one protocol deployment."""

    name: str
    tag: str
    variant: PoolVariant
    discovery: DiscoveryStrategy
    factory: str
    router: str
    quoter: Optional[str] = None
    count_method: Optional[str] = None
    index_method: Optional[str] = None
    start_block: int = 0
    event_topic: Optional[str] = None
    event_data_types: Tuple[str, ...] = ()
    event_pool_index: int = 0
    fee: Optional[int] = None

    @property
    def is_concentrated(self) -> bool:
        return self.variant is PoolVariant.CONCENTRATED_LIQUIDITY

    @classmethod
    def from_dict(cls, name: str, raw: Dict[str, Any], event_topic: Optional[str] = None) -> "ProtocolSpec":
        """
        Build a spec from a registry entry.

        Args:
            name: Protocol name used in logs and record names
            raw: Registry dictionary
            event_topic: Resolved creation-event topic for event scans

        Raises:
            ConfigError: If the entry is incomplete or names an unknown variant
        """
        try:
            variant = PoolVariant(raw.get("variant"))
        except ValueError:
            raise ConfigError(f"{name}: unknown pool variant {raw.get('variant')!r}")

        try:
            discovery = DiscoveryStrategy(raw.get("discovery"))
        except ValueError:
            raise ConfigError(f"{name}: unknown discovery strategy {raw.get('discovery')!r}")

        for key in ("factory", "router", "tag"):
            if not raw.get(key):
                raise ConfigError(f"{name}: missing '{key}'")

        if variant is PoolVariant.CONCENTRATED_LIQUIDITY and not raw.get("quoter"):
            raise ConfigError(f"{name}: concentrated liquidity protocols need a quoter")

        if discovery is DiscoveryStrategy.FACTORY_INDEX:
            if not raw.get("count_method") or not raw.get("index_method"):
                raise ConfigError(f"{name}: factory enumeration needs count_method and index_method")
        else:
            if not event_topic:
                raise ConfigError(f"{name}: event scan needs a creation event")
            data_types = tuple(raw.get("event_data_types", ()))
            pool_index = raw.get("event_pool_index", 0)
            if not data_types or not 0 <= pool_index < len(data_types):
                raise ConfigError(f"{name}: event_pool_index does not point into event_data_types")
            if data_types[pool_index] != "address":
                raise ConfigError(f"{name}: event field {pool_index} is not an address")

        return cls(
            name=name,
            tag=raw["tag"],
            variant=variant,
            discovery=discovery,
            factory=raw["factory"],
            router=raw["router"],
            quoter=raw.get("quoter"),
            count_method=raw.get("count_method"),
            index_method=raw.get("index_method"),
            start_block=int(raw.get("start_block", 0)),
            event_topic=event_topic,
            event_data_types=tuple(raw.get("event_data_types", ())),
            event_pool_index=int(raw.get("event_pool_index", 0)),
            fee=raw.get("fee"),
        )


@dataclass
class ProtocolConfig(BaseConfig):
    """Configuration for the scanned DEX protocols."""

    # Event Hashes (these are standard across chains)
    UNISWAP_V2_PAIR_CREATED_EVENT: str = (
        "0x0d3648bd0f6ba80134a33ba9275ac585d9d315f0ad8355cddefde31afa28d0e9"
    )
    UNISWAP_V3_POOL_CREATED_EVENT: str = (
        "0x783cca1c0412dd0d695e784568c96da2e9c22ff989357a2e8b1d9b2b4e6b7118"
    )
    AERODROME_V2_POOL_CREATED_EVENT: str = (
        "0x2128d88d14c80cb081c1252a5acff7a264671bf199ce226b53788fb26065005e"
    )
    AERODROME_V3_POOL_CREATED_EVENT: str = (
        "0xab0d57f0df537bb25e80245ef7748fa62353808c54d6e528a9dd20887aed9ac2"
    )

    # Optional JSON file replacing the built-in registry: {"chain": {"Name": {...}}}
    PROTOCOL_REGISTRY_FILE: str = env_field("PROTOCOL_REGISTRY_FILE", "")

    @property
    def protocol_registry(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """Protocol entries by chain, in scan order."""
        if self.PROTOCOL_REGISTRY_FILE:
            return self._load_registry_file(Path(self.PROTOCOL_REGISTRY_FILE))

        return {
            "base": {
                # Aerodrome legacy pools carry a stable() flag
                "Aerodrome_V2": {
                    "tag": "v2",
                    "variant": "constant_product_stable",
                    "discovery": "factory_index",
                    "factory": "0x420DD381b31aEf6683db6B902084cB0FFECe40Da",
                    "router": "0x9a48954530d54963364f009dc42aa374f14794e7",
                    "count_method": "allPoolsLength",
                    "index_method": "allPools",
                    "fee": 3000,
                },
                "BaseSwap": {
                    "tag": "v2",
                    "variant": "constant_product",
                    "discovery": "factory_index",
                    "factory": "0xFDa619b6d20975be80A10332cD39b9a4b0FAa8BB",
                    "router": "0x2943Ac1216979590F21832bb58459d646b5E4857",
                    "count_method": "allPairsLength",
                    "index_method": "allPairs",
                    "fee": 3000,
                },
                "Aerodrome_CL": {
                    "tag": "cl",
                    "variant": "concentrated_liquidity",
                    "discovery": "factory_index",
                    "factory": "0x5e7BB104d84c7CB9B682AaC2F3d509f5F406809A",
                    "router": "0xBE818bA15c43dF60803c40026e6E367258C17e33",
                    "quoter": "0x254cf9e1e6e233aa1ac962cb9b05b2cfeaae15b0",
                    "count_method": "allPoolsLength",
                    "index_method": "allPools",
                },
                "Uniswap_V3": {
                    "tag": "v3",
                    "variant": "concentrated_liquidity",
                    "discovery": "event_scan",
                    "factory": "0x33128a8fC17869897dcE68Ed026d694621f6FDfD",
                    "router": "0x2626664c2603336E57B271c5C0b26F421741e481",
                    "quoter": "0x3d4e44Eb1374240CE5F1B871ab261CD16335B76a",
                    "event": "uniswap_v3_pool_created",
                    "event_data_types": ["int24", "address"],
                    "event_pool_index": 1,
                    "start_block": 2000000,
                },
            },
            "ethereum": {
                "Uniswap_V2": {
                    "tag": "v2",
                    "variant": "constant_product",
                    "discovery": "factory_index",
                    "factory": "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f",
                    "router": "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D",
                    "count_method": "allPairsLength",
                    "index_method": "allPairs",
                    "fee": 3000,
                },
                "Uniswap_V3": {
                    "tag": "v3",
                    "variant": "concentrated_liquidity",
                    "discovery": "event_scan",
                    "factory": "0x1F98431c8aD98523631AE4a59f267346ea31F984",
                    "router": "0xE592427A0AEce92De3Edee1F18E0157C05861564",
                    "quoter": "0xb27308f9F90D607463bb33eA1BeBb41C27CE5AB6",
                    "event": "uniswap_v3_pool_created",
                    "event_data_types": ["int24", "address"],
                    "event_pool_index": 1,
                    "start_block": 12369621,
                },
            },
        }

    def _load_registry_file(self, path: Path) -> Dict[str, Dict[str, Dict[str, Any]]]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load protocol registry {path}: {e}")

    def get_event_hash(self, event_type: str) -> str:
        """Get event hash for a specific event type."""
        event_map = {
            "uniswap_v2_pair_created": self.UNISWAP_V2_PAIR_CREATED_EVENT,
            "uniswap_v3_pool_created": self.UNISWAP_V3_POOL_CREATED_EVENT,
            "aerodrome_v2_pool_created": self.AERODROME_V2_POOL_CREATED_EVENT,
            "aerodrome_v3_pool_created": self.AERODROME_V3_POOL_CREATED_EVENT,
        }
        if event_type not in event_map:
            raise ValueError(f"Unknown event type: {event_type}")
        return event_map[event_type]

    def get_protocol_specs(
        self, chain: str, names: Optional[Sequence[str]] = None
    ) -> List[ProtocolSpec]:
        """
        Get validated protocol specs for a chain.

        Args:
            chain: Chain name
            names: Restrict to these protocol names (registry order is kept)

        Returns:
            List of ProtocolSpec in scan order

        Raises:
            ConfigError: On unknown chain/protocol names or invalid entries
        """
        registry = self.protocol_registry
        if chain not in registry:
            raise ConfigError(f"No protocols configured for chain: {chain}")

        entries = registry[chain]
        if names:
            unknown = [name for name in names if name not in entries]
            if unknown:
                raise ConfigError(f"Unknown protocols for {chain}: {', '.join(unknown)}")

        specs = []
        for name, raw in entries.items():
            if names and name not in names:
                continue
            event_topic = raw.get("event_topic")
            if raw.get("event"):
                try:
                    event_topic = self.get_event_hash(raw["event"])
                except ValueError as e:
                    raise ConfigError(f"{name}: {e}")
            specs.append(ProtocolSpec.from_dict(name, raw, event_topic=event_topic))
        return specs
