"""
Pool state decoding.

Every pool variant needs a fixed list of calls in a fixed order. The pool
details batcher requests exactly that list for each pool, and the shape
below reads the results back positionally into a decoded state.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

from web3 import Web3

from ..config.protocols import PoolVariant
from .base import CallResult
from .calls import (
    FEE,
    GET_RESERVES,
    LIQUIDITY,
    STABLE,
    TICK_SPACING,
    TOKEN0,
    TOKEN1,
    CallDescriptor,
    ContractMethod,
    encode_calls,
)
from .errors import DecodeError


@dataclass(frozen=True)
class DecodedPoolState:
    """Token pair of a pool, tagged with its variant."""

    pool_address: str
    variant: PoolVariant
    token0: str
    token1: str


@dataclass(frozen=True)
class ConstantProductState(DecodedPoolState):
    reserve0: int
    reserve1: int


@dataclass(frozen=True)
class StableFlagState(ConstantProductState):
    is_stable: bool


@dataclass(frozen=True)
class ConcentratedLiquidityState(DecodedPoolState):
    liquidity: int
    fee: int
    tick_spacing: int


def _decode_constant_product(pool_address: str, variant: PoolVariant, results: Sequence[CallResult]) -> DecodedPoolState:
    reserve0, reserve1, _ = GET_RESERVES.decode_result(results[2])
    return ConstantProductState(
        pool_address=pool_address,
        variant=variant,
        token0=_decode_token(TOKEN0, results[0]),
        token1=_decode_token(TOKEN1, results[1]),
        reserve0=reserve0,
        reserve1=reserve1,
    )


def _decode_stable_flag(pool_address: str, variant: PoolVariant, results: Sequence[CallResult]) -> DecodedPoolState:
    reserve0, reserve1, _ = GET_RESERVES.decode_result(results[2])
    return StableFlagState(
        pool_address=pool_address,
        variant=variant,
        token0=_decode_token(TOKEN0, results[0]),
        token1=_decode_token(TOKEN1, results[1]),
        reserve0=reserve0,
        reserve1=reserve1,
        is_stable=bool(STABLE.decode_single(results[3])),
    )


def _decode_concentrated(pool_address: str, variant: PoolVariant, results: Sequence[CallResult]) -> DecodedPoolState:
    return ConcentratedLiquidityState(
        pool_address=pool_address,
        variant=variant,
        token0=_decode_token(TOKEN0, results[0]),
        token1=_decode_token(TOKEN1, results[1]),
        liquidity=LIQUIDITY.decode_single(results[2]),
        fee=FEE.decode_single(results[3]),
        tick_spacing=TICK_SPACING.decode_single(results[4]),
    )


def _decode_token(method: ContractMethod, result: CallResult) -> str:
    return Web3.to_checksum_address(method.decode_single(result))


@dataclass(frozen=True)
class PoolStateShape:
    """
    Call layout and decoder for one pool variant.

    Attributes:
        variant: Variant this shape decodes
        methods: Calls issued per pool, in result order
        builder: Turns a pool's result slice into a decoded state
    """

    variant: PoolVariant
    methods: Tuple[ContractMethod, ...]
    builder: Callable[[str, PoolVariant, Sequence[CallResult]], DecodedPoolState]

    @property
    def calls_per_pool(self) -> int:
        return len(self.methods)

    def encode(self, pool_address: str) -> Tuple[CallDescriptor, ...]:
        """Calls for one pool, in the order decode() expects."""
        return encode_calls(self.methods, pool_address)

    def decode(self, pool_address: str, results: Sequence[CallResult]) -> DecodedPoolState:
        """
        Decode one pool's slice of batch results.

        Args:
            pool_address: Pool the slice belongs to
            results: Exactly ``calls_per_pool`` results

        Raises:
            DecodeError: If the slice has the wrong length, the first call
                soft-failed, or any slot cannot be decoded
        """
        if len(results) != self.calls_per_pool:
            raise DecodeError(
                f"{pool_address}: expected {self.calls_per_pool} results, got {len(results)}"
            )
        if not results[0].success:
            raise DecodeError(f"{pool_address}: not a {self.variant.value} pool")
        return self.builder(pool_address, self.variant, results)


POOL_STATE_SHAPES: Dict[PoolVariant, PoolStateShape] = {
    PoolVariant.CONSTANT_PRODUCT: PoolStateShape(
        variant=PoolVariant.CONSTANT_PRODUCT,
        methods=(TOKEN0, TOKEN1, GET_RESERVES),
        builder=_decode_constant_product,
    ),
    PoolVariant.CONSTANT_PRODUCT_STABLE: PoolStateShape(
        variant=PoolVariant.CONSTANT_PRODUCT_STABLE,
        methods=(TOKEN0, TOKEN1, GET_RESERVES, STABLE),
        builder=_decode_stable_flag,
    ),
    PoolVariant.CONCENTRATED_LIQUIDITY: PoolStateShape(
        variant=PoolVariant.CONCENTRATED_LIQUIDITY,
        methods=(TOKEN0, TOKEN1, LIQUIDITY, FEE, TICK_SPACING),
        builder=_decode_concentrated,
    ),
}


def get_shape(variant: PoolVariant) -> PoolStateShape:
    """Get the decoding shape for a variant."""
    try:
        return POOL_STATE_SHAPES[variant]
    except KeyError:
        raise ValueError(f"No decoding shape for variant: {variant}")


def split_results(results: Sequence[CallResult], calls_per_pool: int) -> List[Sequence[CallResult]]:
    """Cut a flat batch into consecutive per-pool slices."""
    if len(results) % calls_per_pool:
        raise DecodeError(
            f"{len(results)} results do not divide into slices of {calls_per_pool}"
        )
    return [results[i : i + calls_per_pool] for i in range(0, len(results), calls_per_pool)]
