"""
Blockchain batch calling utilities.

This package aggregates many read-only contract calls into single Multicall3
requests and decodes the results into pool state.
"""

from .base import BaseBatcher, BatchConfig, BatchResult, CallResult, RetryPolicy, exponential_backoff, linear_backoff
from .errors import (
    BatchError,
    ContractError,
    DecodeError,
    DiscoveryError,
    ErrorHandler,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from .calls import CallDescriptor, ContractMethod
from .multicall import MulticallAggregator
from .pool_state import (
    ConcentratedLiquidityState,
    ConstantProductState,
    DecodedPoolState,
    PoolStateShape,
    StableFlagState,
    get_shape,
)
from .pool_details import PoolDetailsBatcher

__all__ = [
    'BaseBatcher',
    'BatchConfig',
    'BatchResult',
    'CallResult',
    'RetryPolicy',
    'linear_backoff',
    'exponential_backoff',
    'BatchError',
    'ContractError',
    'DecodeError',
    'DiscoveryError',
    'ErrorHandler',
    'NetworkError',
    'RateLimitError',
    'ValidationError',
    'CallDescriptor',
    'ContractMethod',
    'MulticallAggregator',
    'DecodedPoolState',
    'ConstantProductState',
    'StableFlagState',
    'ConcentratedLiquidityState',
    'PoolStateShape',
    'get_shape',
    'PoolDetailsBatcher',
]
