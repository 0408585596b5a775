"""
Aggregation client for the Multicall3 contract.

Sends a batch of call descriptors in one eth_call and returns the raw
result for each call, in order. Calls that revert inside the aggregation
contract come back as soft failures instead of failing the whole batch.
"""

import logging
from typing import Sequence, Union

from web3 import Web3

from .base import BatchResult, CallResult
from .calls import CallDescriptor
from .errors import ErrorHandler, ValidationError

logger = logging.getLogger(__name__)

MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

MULTICALL3_ABI = [
    {
        "inputs": [
            {"internalType": "bool", "name": "requireSuccess", "type": "bool"},
            {
                "components": [
                    {"internalType": "address", "name": "target", "type": "address"},
                    {"internalType": "bytes", "name": "callData", "type": "bytes"},
                ],
                "internalType": "struct Multicall3.Call[]",
                "name": "calls",
                "type": "tuple[]",
            },
        ],
        "name": "tryAggregate",
        "outputs": [
            {
                "components": [
                    {"internalType": "bool", "name": "success", "type": "bool"},
                    {"internalType": "bytes", "name": "returnData", "type": "bytes"},
                ],
                "internalType": "struct Multicall3.Result[]",
                "name": "returnData",
                "type": "tuple[]",
            }
        ],
        "stateMutability": "payable",
        "type": "function",
    },
]


class MulticallAggregator:
    """
    Client for Multicall3 ``tryAggregate(false, calls)``.

    One invocation of ``aggregate`` is one network round trip. Transport
    failures are raised as a single typed BatchError; retrying is left to
    the caller.
    """

    def __init__(
        self,
        web3: Web3,
        address: str = MULTICALL3_ADDRESS,
        max_calls: int = 500,
    ):
        """
        Initialize the aggregator.

        Args:
            web3: Web3 instance
            address: Multicall3 deployment address
            max_calls: Largest batch accepted by ``aggregate``
        """
        if max_calls <= 0:
            raise ValueError("max_calls must be positive")
        self.web3 = web3
        self.address = Web3.to_checksum_address(address)
        self.max_calls = max_calls
        self.contract = web3.eth.contract(address=self.address, abi=MULTICALL3_ABI)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(self.logger)

    async def aggregate(
        self,
        calls: Sequence[CallDescriptor],
        block_identifier: Union[int, str] = "latest",
    ) -> BatchResult:
        """
        Execute calls through the aggregation contract.

        Args:
            calls: Call descriptors, at most ``max_calls``
            block_identifier: Block to call at

        Returns:
            BatchResult with one CallResult per call, same order as input

        Raises:
            ValidationError: If the batch is larger than ``max_calls``
            BatchError: On transport failure of the whole request
        """
        if len(calls) > self.max_calls:
            raise ValidationError(
                f"Batch of {len(calls)} calls exceeds limit of {self.max_calls}"
            )
        if not calls:
            return BatchResult(results=[])

        encoded = [(call.target, call.payload) for call in calls]

        try:
            raw_results = self.contract.functions.tryAggregate(False, encoded).call(
                block_identifier=block_identifier
            )
        except Exception as e:
            raise self.error_handler.wrap_transport_error(
                e, f"Aggregate call of {len(calls)} calls failed"
            ) from e

        if len(raw_results) != len(calls):
            raise ValidationError(
                f"Aggregation returned {len(raw_results)} results for {len(calls)} calls"
            )

        results = []
        for success, return_data in raw_results:
            if success:
                results.append(CallResult(success=True, raw=bytes(return_data)))
            else:
                results.append(CallResult(success=False, raw=b""))

        batch = BatchResult(
            results=results,
            block_number=block_identifier if isinstance(block_identifier, int) else None,
        )
        if batch.failed_count:
            self.logger.debug(f"{batch.failed_count}/{len(batch)} calls reverted in batch")
        return batch

