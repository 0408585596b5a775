"""
Contract call encoding and decoding.

Turns a logical contract method into an opaque call descriptor for the
aggregation contract, and turns a raw return buffer back into typed values.
"""

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import function_signature_to_4byte_selector
from web3 import Web3

from .base import CallResult
from .errors import DecodeError, ValidationError


@dataclass(frozen=True)
class CallDescriptor:
    """A single call for the aggregation contract."""

    target: str
    payload: bytes


@dataclass(frozen=True)
class ContractMethod:
    """
    A view method with a fixed ABI signature.

    Attributes:
        name: Method name, e.g. "getReserves"
        input_types: ABI types of the arguments
        output_types: ABI types of the return values
    """

    name: str
    input_types: Tuple[str, ...] = ()
    output_types: Tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @cached_property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    def encode_call(self, target: str, *args: Any) -> CallDescriptor:
        """
        Build a call descriptor for this method on ``target``.

        Raises:
            ValidationError: If the address or arguments cannot be encoded
        """
        try:
            checksum_target = Web3.to_checksum_address(target)
            payload = self.selector + encode(list(self.input_types), list(args))
        except (EncodingError, ValueError, TypeError) as e:
            raise ValidationError(f"Cannot encode {self.signature} for {target}: {e}")
        return CallDescriptor(target=checksum_target, payload=payload)

    def decode_output(self, raw: bytes) -> Tuple[Any, ...]:
        """
        Decode a return buffer into a tuple of values.

        Raises:
            DecodeError: On empty or malformed data
        """
        if not raw:
            raise DecodeError(f"{self.signature} returned no data")
        try:
            return tuple(decode(list(self.output_types), bytes(raw)))
        except (DecodingError, ValueError, OverflowError) as e:
            raise DecodeError(f"Cannot decode {self.signature} output: {e}")

    def decode_result(self, result: CallResult) -> Tuple[Any, ...]:
        """Decode a call slot, treating a soft failure as undecodable."""
        if not result.success:
            raise DecodeError(f"{self.signature} reverted")
        return self.decode_output(result.raw)

    def decode_single(self, result: CallResult) -> Any:
        """Decode a call slot whose method returns exactly one value."""
        return self.decode_result(result)[0]


def count_method(name: str) -> ContractMethod:
    """Registry length getter such as allPairsLength()."""
    return ContractMethod(name, (), ("uint256",))


def index_method(name: str) -> ContractMethod:
    """Registry index getter such as allPairs(uint256)."""
    return ContractMethod(name, ("uint256",), ("address",))


# Pool methods shared by every supported pool shape
TOKEN0 = ContractMethod("token0", (), ("address",))
TOKEN1 = ContractMethod("token1", (), ("address",))

# Constant product pairs. Solidly-style pairs return uint256 reserves, read
# every slot as uint256 so both layouts decode.
GET_RESERVES = ContractMethod("getReserves", (), ("uint256", "uint256", "uint256"))
STABLE = ContractMethod("stable", (), ("bool",))

# Concentrated liquidity pools
LIQUIDITY = ContractMethod("liquidity", (), ("uint128",))
FEE = ContractMethod("fee", (), ("uint24",))
TICK_SPACING = ContractMethod("tickSpacing", (), ("int24",))


def encode_calls(methods: Sequence[ContractMethod], target: str) -> Tuple[CallDescriptor, ...]:
    """Encode argument-less methods against a single target, in order."""
    return tuple(method.encode_call(target) for method in methods)
