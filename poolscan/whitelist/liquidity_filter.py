"""
Pool Liquidity Filter.

Decides which decoded pools are tradeable by checking the whitelisted side
of each pool against its class threshold, and turns the survivors into
output records.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional

from ..batchers.pool_state import (
    ConcentratedLiquidityState,
    ConstantProductState,
    DecodedPoolState,
    StableFlagState,
)
from ..config.protocols import PoolVariant, ProtocolSpec
from .pool_types import PoolRecord, ScanStats, ThresholdPolicy, TokenWhitelist

logger = logging.getLogger(__name__)

# Rejection reasons, also used as ScanStats.rejections keys
REJECT_STABLE_CURVE = "stable_curve"
REJECT_LOW_RESERVES = "reserves_below_threshold"
REJECT_LOW_LIQUIDITY = "liquidity_below_tier"
REJECT_NO_WHITELISTED_TOKEN = "no_whitelisted_token"


def _check_constant_product(
    state: ConstantProductState, whitelist: TokenWhitelist, policy: ThresholdPolicy
) -> Optional[str]:
    for token, reserve in ((state.token0, state.reserve0), (state.token1, state.reserve1)):
        entry = whitelist.get(token)
        if entry is not None and reserve >= policy.raw_reserve_threshold(entry):
            return None
    return REJECT_LOW_RESERVES


def _check_stable_flag(
    state: StableFlagState, whitelist: TokenWhitelist, policy: ThresholdPolicy
) -> Optional[str]:
    if state.is_stable:
        return REJECT_STABLE_CURVE
    return _check_constant_product(state, whitelist, policy)


def _check_concentrated(
    state: ConcentratedLiquidityState, whitelist: TokenWhitelist, policy: ThresholdPolicy
) -> Optional[str]:
    whitelisted = (state.token0 in whitelist) + (state.token1 in whitelist)
    if whitelisted == 2:
        return None if state.liquidity > policy.cl_low_tier else REJECT_LOW_LIQUIDITY
    if whitelisted == 1:
        return None if state.liquidity > policy.cl_high_tier else REJECT_LOW_LIQUIDITY
    return REJECT_NO_WHITELISTED_TOKEN


VARIANT_RULES: Dict[PoolVariant, Callable[..., Optional[str]]] = {
    PoolVariant.CONSTANT_PRODUCT: _check_constant_product,
    PoolVariant.CONSTANT_PRODUCT_STABLE: _check_stable_flag,
    PoolVariant.CONCENTRATED_LIQUIDITY: _check_concentrated,
}


def check_pool(
    state: DecodedPoolState, whitelist: TokenWhitelist, policy: ThresholdPolicy
) -> Optional[str]:
    """
    Apply the variant rule and then the whitelist gate to one pool.

    Args:
        state: Decoded pool state
        whitelist: Trusted tokens
        policy: Reserve thresholds and liquidity tiers

    Returns:
        None if the pool is accepted, otherwise the rejection reason
    """
    try:
        rule = VARIANT_RULES[state.variant]
    except KeyError:
        raise ValueError(f"No classification rule for variant: {state.variant}")

    reason = rule(state, whitelist, policy)
    if reason is not None:
        return reason

    if state.token0 not in whitelist and state.token1 not in whitelist:
        return REJECT_NO_WHITELISTED_TOKEN
    return None


def build_pool_record(state: DecodedPoolState, spec: ProtocolSpec) -> PoolRecord:
    """Normalize an accepted pool into its output record."""
    name = f"{spec.name}_{state.token0[:6]}_{state.pool_address[-4:]}"

    if isinstance(state, ConcentratedLiquidityState):
        return PoolRecord(
            name=name,
            token_a=state.token0,
            token_b=state.token1,
            router=spec.router,
            protocol=spec.tag,
            quoter=spec.quoter,
            pool=state.pool_address,
            fee=state.fee,
            tick_spacing=state.tick_spacing,
            pool_fee=state.fee,
        )

    return PoolRecord(
        name=name,
        token_a=state.token0,
        token_b=state.token1,
        router=spec.router,
        protocol=spec.tag,
        quoter=state.pool_address,
        fee=spec.fee,
    )


def classify(
    state: DecodedPoolState,
    whitelist: TokenWhitelist,
    policy: ThresholdPolicy,
    spec: ProtocolSpec,
) -> Optional[PoolRecord]:
    """Return the pool's record if it is tradeable, None otherwise."""
    if check_pool(state, whitelist, policy) is not None:
        return None
    return build_pool_record(state, spec)


class PoolLiquidityFilter:
    """Filter decoded pools by whitelist membership and liquidity thresholds."""

    def __init__(self, whitelist: TokenWhitelist, policy: ThresholdPolicy):
        """
        Initialize liquidity filter.

        Args:
            whitelist: Trusted tokens, fixed for the run
            policy: Reserve thresholds and liquidity tiers
        """
        self.whitelist = whitelist
        self.policy = policy

    def filter_pools(
        self,
        states: Iterable[DecodedPoolState],
        spec: ProtocolSpec,
        stats: Optional[ScanStats] = None,
    ) -> List[PoolRecord]:
        """
        Classify decoded pools of one protocol.

        Args:
            states: Decoded pool states
            spec: Protocol the pools belong to
            stats: Counters for accepted pools and rejections by reason

        Returns:
            Records for the accepted pools, in input order
        """
        records = []
        for state in states:
            reason = check_pool(state, self.whitelist, self.policy)
            if reason is not None:
                if stats is not None:
                    stats.record_rejection(reason)
                logger.debug(f"Rejected {state.pool_address}: {reason}")
                continue
            records.append(build_pool_record(state, spec))

        if stats is not None:
            stats.pools_accepted += len(records)
        logger.info(f"{spec.name}: {len(records)} pools passed the liquidity filter")
        return records
