"""
Shared test doubles.

FakeMulticallNode answers Multicall3 tryAggregate requests from an in-memory
call table and is wired into a MagicMock web3, so tests go through the real
MulticallAggregator. FakeLogFetcher serves creation-event logs by block.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple
from unittest.mock import MagicMock

import pytest
from eth_abi import encode
from hexbytes import HexBytes

from poolscan.batchers.calls import (
    FEE,
    GET_RESERVES,
    LIQUIDITY,
    STABLE,
    TICK_SPACING,
    TOKEN0,
    TOKEN1,
    ContractMethod,
    count_method,
    index_method,
)
from poolscan.fetchers.base import BaseFetcher, FetchError, FetchResult


def make_address(n: int) -> str:
    """Deterministic test address."""
    return "0x" + format(n, "040x")


class FakeMulticallNode:
    """In-memory contract state answering tryAggregate."""

    def __init__(self):
        self.table: Dict[Tuple[str, bytes], bytes] = {}
        self.failures: List[Optional[Exception]] = []
        self.batch_sizes: List[int] = []

    def set_return(self, target: str, method: ContractMethod, values: Sequence[Any], args: Sequence[Any] = ()):
        payload = method.selector + encode(list(method.input_types), list(args))
        self.table[(target.lower(), payload)] = encode(list(method.output_types), list(values))

    def set_raw_return(self, target: str, method: ContractMethod, raw: bytes):
        self.table[(target.lower(), method.selector)] = raw

    def fail_next(self, error: Exception, times: int = 1, after: int = 0):
        """Fail the next `times` requests once `after` requests have gone through."""
        self.failures.extend([None] * after + [error] * times)

    def add_constant_product_pool(self, pool, token0, token1, reserve0, reserve1, stable=None):
        self.set_return(pool, TOKEN0, [token0])
        self.set_return(pool, TOKEN1, [token1])
        self.set_return(pool, GET_RESERVES, [reserve0, reserve1, 1700000000])
        if stable is not None:
            self.set_return(pool, STABLE, [stable])

    def add_concentrated_pool(self, pool, token0, token1, liquidity, fee=500, tick_spacing=10):
        self.set_return(pool, TOKEN0, [token0])
        self.set_return(pool, TOKEN1, [token1])
        self.set_return(pool, LIQUIDITY, [liquidity])
        self.set_return(pool, FEE, [fee])
        self.set_return(pool, TICK_SPACING, [tick_spacing])

    def add_factory(self, factory, count_name, index_name, pools):
        self.set_return(factory, count_method(count_name), [len(pools)])
        for i, pool in enumerate(pools):
            self.set_return(factory, index_method(index_name), [pool], args=[i])

    def execute(self, calls) -> List[Tuple[bool, bytes]]:
        if self.failures:
            error = self.failures.pop(0)
            if error is not None:
                raise error
        self.batch_sizes.append(len(calls))
        results = []
        for target, payload in calls:
            raw = self.table.get((target.lower(), bytes(payload)))
            results.append((True, raw) if raw is not None else (False, b""))
        return results


class FakeLogFetcher(BaseFetcher):
    """Serves pre-built creation logs, optionally failing first."""

    def __init__(self, head: int, logs: Optional[List[Dict[str, Any]]] = None):
        super().__init__("test", "")
        self.head = head
        self.logs = logs or []
        self.failures: List[Exception] = []
        self.windows: List[Tuple[int, int]] = []

    def add_pool_created(self, block: int, pool: str, log_index: int = 0, tick_spacing: int = 60):
        self.logs.append({
            "blockNumber": block,
            "logIndex": log_index,
            "data": HexBytes(encode(["int24", "address"], [tick_spacing, pool])),
        })

    async def fetch_logs(self, start_block, end_block, contracts=None, events=None) -> FetchResult:
        if self.failures:
            raise self.failures.pop(0)
        self.windows.append((start_block, end_block))
        logs = [log for log in self.logs if start_block <= log["blockNumber"] <= end_block]
        return FetchResult(success=True, logs=logs, start_block=start_block, end_block=end_block)

    async def get_latest_block(self) -> int:
        return self.head

    def validate_config(self) -> bool:
        return True


def web3_for(node: FakeMulticallNode) -> MagicMock:
    """MagicMock web3 whose Multicall3 contract is backed by ``node``."""
    web3 = MagicMock()
    contract = web3.eth.contract.return_value

    def try_aggregate(require_success, calls):
        call = MagicMock()
        call.call.side_effect = lambda block_identifier="latest": node.execute(calls)
        return call

    contract.functions.tryAggregate.side_effect = try_aggregate
    web3.eth.block_number = 1_000_000
    return web3


@pytest.fixture
def fake_node():
    return FakeMulticallNode()


@pytest.fixture
def fake_web3(fake_node):
    return web3_for(fake_node)


@pytest.fixture
def address():
    return make_address


@pytest.fixture
def log_fetcher_factory():
    return FakeLogFetcher


@pytest.fixture
def no_sleep(monkeypatch):
    """Replace asyncio.sleep with a recorder."""
    delays: List[float] = []

    async def fake_sleep(delay, *args, **kwargs):
        delays.append(delay)

    monkeypatch.setattr("asyncio.sleep", fake_sleep)
    return delays
