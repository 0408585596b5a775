"""Test configuration for fetchers."""
import pytest

from poolscan.config.protocols import DiscoveryStrategy, PoolVariant, ProtocolSpec

FACTORY = "0x420DD381b31aEf6683db6B902084cB0FFECe40Da"
POOL_CREATED_TOPIC = "0x783cca1c0412dd0d695e784568c96da2e9c22ff989357a2e8b1d9b2b4e6b7118"


@pytest.fixture
def factory_spec():
    """Factory-index protocol over a constant product factory."""
    return ProtocolSpec(
        name="TestSwap",
        tag="v2",
        variant=PoolVariant.CONSTANT_PRODUCT,
        discovery=DiscoveryStrategy.FACTORY_INDEX,
        factory=FACTORY,
        router="0x2943Ac1216979590F21832bb58459d646b5E4857",
        count_method="allPairsLength",
        index_method="allPairs",
        fee=3000,
    )


@pytest.fixture
def event_spec():
    """Event-scan protocol emitting PoolCreated(int24 tickSpacing, address pool)."""
    return ProtocolSpec(
        name="TestV3",
        tag="v3",
        variant=PoolVariant.CONCENTRATED_LIQUIDITY,
        discovery=DiscoveryStrategy.EVENT_SCAN,
        factory="0x33128a8fC17869897dcE68Ed026d694621f6FDfD",
        router="0x2626664c2603336E57B271c5C0b26F421741e481",
        quoter="0x3d4e44Eb1374240CE5F1B871ab261CD16335B76a",
        start_block=100,
        event_topic=POOL_CREATED_TOPIC,
        event_data_types=("int24", "address"),
        event_pool_index=1,
    )
