"""Tests for per-variant pool state decoding."""

import pytest
from eth_abi import encode

from poolscan.batchers.base import CallResult
from poolscan.batchers.errors import DecodeError
from poolscan.batchers.pool_state import (
    ConcentratedLiquidityState,
    ConstantProductState,
    StableFlagState,
    get_shape,
    split_results,
)
from poolscan.config.protocols import PoolVariant

POOL = "0x00000000000000000000000000000000000000aa"
TOKEN_A = "0x4200000000000000000000000000000000000006"
TOKEN_B = "0x00000000000000000000000000000000000000bb"


def ok(types, values):
    return CallResult(success=True, raw=encode(types, values))


def constant_product_results(stable=None):
    results = [
        ok(["address"], [TOKEN_A]),
        ok(["address"], [TOKEN_B]),
        ok(["uint112", "uint112", "uint32"], [5 * 10**18, 7 * 10**6, 1700000000]),
    ]
    if stable is not None:
        results.append(ok(["bool"], [stable]))
    return results


class TestShapes:
    """Test call layouts."""

    @pytest.mark.parametrize(
        "variant,calls",
        [
            (PoolVariant.CONSTANT_PRODUCT, 3),
            (PoolVariant.CONSTANT_PRODUCT_STABLE, 4),
            (PoolVariant.CONCENTRATED_LIQUIDITY, 5),
        ],
    )
    def test_calls_per_pool(self, variant, calls):
        shape = get_shape(variant)

        assert shape.calls_per_pool == calls
        assert len(shape.encode(POOL)) == calls

    def test_unknown_variant(self):
        with pytest.raises(ValueError):
            get_shape("curve")


class TestDecode:
    """Test decoding of result slices."""

    def test_constant_product(self):
        state = get_shape(PoolVariant.CONSTANT_PRODUCT).decode(POOL, constant_product_results())

        assert isinstance(state, ConstantProductState)
        assert state.token0 == TOKEN_A
        assert state.token1.lower() == TOKEN_B
        assert state.reserve0 == 5 * 10**18
        assert state.reserve1 == 7 * 10**6

    def test_stable_flag(self):
        state = get_shape(PoolVariant.CONSTANT_PRODUCT_STABLE).decode(
            POOL, constant_product_results(stable=True)
        )

        assert isinstance(state, StableFlagState)
        assert state.is_stable is True

    def test_concentrated(self):
        results = [
            ok(["address"], [TOKEN_A]),
            ok(["address"], [TOKEN_B]),
            ok(["uint128"], [10**16]),
            ok(["uint24"], [500]),
            ok(["int24"], [10]),
        ]

        state = get_shape(PoolVariant.CONCENTRATED_LIQUIDITY).decode(POOL, results)

        assert isinstance(state, ConcentratedLiquidityState)
        assert state.liquidity == 10**16
        assert state.fee == 500
        assert state.tick_spacing == 10

    def test_failed_first_call_means_wrong_pool(self):
        results = constant_product_results()
        results[0] = CallResult(success=False)

        with pytest.raises(DecodeError, match="not a"):
            get_shape(PoolVariant.CONSTANT_PRODUCT).decode(POOL, results)

    def test_failed_later_call_drops_pool(self):
        results = constant_product_results(stable=False)
        results[3] = CallResult(success=False)

        with pytest.raises(DecodeError):
            get_shape(PoolVariant.CONSTANT_PRODUCT_STABLE).decode(POOL, results)

    def test_wrong_slice_length(self):
        with pytest.raises(DecodeError, match="expected 4"):
            get_shape(PoolVariant.CONSTANT_PRODUCT_STABLE).decode(POOL, constant_product_results())


class TestSplitResults:
    def test_split(self):
        results = [CallResult(True, bytes([i])) for i in range(6)]

        slices = split_results(results, 3)

        assert [len(s) for s in slices] == [3, 3]
        assert slices[1][0].raw == bytes([3])

    def test_uneven_split(self):
        with pytest.raises(DecodeError):
            split_results([CallResult(True)] * 5, 3)
