"""
Error handling utilities for batch calling operations.

This module provides specialized exception classes and error handling
utilities for robust batch calling operations.
"""

from typing import Optional, Dict, Any
import logging
import re

logger = logging.getLogger(__name__)

HTTP_STATUS_PATTERN = re.compile(
    r"\b(?:http(?: error)?|status(?: code)?)[\s:]*([1-5]\d\d)\b|\b([1-5]\d\d) (?:client|server) error\b",
    re.IGNORECASE,
)


def _status_code(error: Exception) -> Optional[int]:
    """HTTP status of a provider error, from its response or its message."""
    response = getattr(error, 'response', None)
    status = getattr(response, 'status_code', None)
    if isinstance(status, int):
        return status

    match = HTTP_STATUS_PATTERN.search(str(error))
    return int(match.group(1) or match.group(2)) if match else None


class BatchError(Exception):
    """Base exception for batch operations."""
    pass


class RateLimitError(BatchError):
    """Raised when rate limit is hit."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class NetworkError(BatchError):
    """Raised when network-related errors occur."""
    pass


class ContractError(BatchError):
    """Raised when contract-related errors occur."""
    pass


class ValidationError(BatchError):
    """Raised when input validation fails."""
    pass


class DecodeError(BatchError):
    """Raised when a return buffer cannot be read under the expected shape."""
    pass


class DiscoveryError(BatchError):
    """Raised when pool discovery cannot complete after all retries."""
    pass


class ErrorHandler:
    """
    Centralized error handling for batch operations.

    Provides classification, logging, and recovery strategies
    for various types of errors encountered during batch calls.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def classify_error(self, error: Exception) -> str:
        """
        Classify an error into a category for appropriate handling.

        Args:
            error: Exception to classify

        Returns:
            Error category string
        """
        if isinstance(error, RateLimitError):
            return 'rate_limit'
        if isinstance(error, NetworkError):
            return 'network'
        if isinstance(error, (ContractError, DecodeError)):
            return 'contract'
        if isinstance(error, ValidationError):
            return 'validation'
        if isinstance(error, (TimeoutError, ConnectionError)):
            return 'network'

        # Wrapped errors carry block ranges and call counts in their message;
        # only the original provider error is matched
        if error.__cause__ is not None:
            return self.classify_error(error.__cause__)
        if type(error) is BatchError:
            return 'unknown'

        error_str = str(error).lower()
        status = _status_code(error)

        # Rate limiting errors
        if status == 429 or any(keyword in error_str for keyword in ['rate limit', 'too many requests']):
            return 'rate_limit'

        # Network connectivity errors
        if status in (502, 503, 504) or any(
            keyword in error_str for keyword in ['connection', 'timeout', 'timed out', 'network', 'dns']
        ):
            return 'network'

        # Contract execution errors
        if any(keyword in error_str for keyword in ['revert', 'execution reverted', 'out of gas']):
            return 'contract'

        # Validation errors
        if status == 400 or any(keyword in error_str for keyword in ['invalid', 'bad request']):
            return 'validation'

        return 'unknown'

    def should_retry(self, error: Exception) -> bool:
        """
        Determine if an error is worth another attempt.

        Network, rate limit and unclassified errors are retried; contract and
        validation errors are deterministic and are not.
        """
        return self.classify_error(error) in ['network', 'rate_limit', 'unknown']

    def wrap_transport_error(self, error: Exception, message: str) -> BatchError:
        """
        Convert a raw provider exception into a typed BatchError.

        Args:
            error: Exception raised by the transport
            message: Context prefix for the new error

        Returns:
            BatchError subclass matching the error category
        """
        if isinstance(error, BatchError):
            return error

        error_category = self.classify_error(error)
        full_message = f"{message}: {error}"

        if error_category == 'rate_limit':
            return RateLimitError(full_message)
        if error_category == 'network':
            return NetworkError(full_message)
        if error_category == 'contract':
            return ContractError(full_message)
        if error_category == 'validation':
            return ValidationError(full_message)
        return BatchError(full_message)

    def log_error(self, error: Exception, context: Dict[str, Any]):
        """
        Log error with appropriate level and context.

        Args:
            error: Exception to log
            context: Additional context for logging
        """
        error_category = self.classify_error(error)

        log_data = {
            'error_type': type(error).__name__,
            'error_category': error_category,
            'error_message': str(error),
            **context
        }

        # Log validation errors as warnings
        if error_category == 'validation':
            self.logger.warning("Validation error occurred", extra=log_data)
        # Log contract errors as errors
        elif error_category == 'contract':
            self.logger.error("Contract execution failed", extra=log_data)
        # Log rate limit as info (expected)
        elif error_category == 'rate_limit':
            self.logger.info("Rate limit encountered", extra=log_data)
        # Everything else as warning
        else:
            self.logger.warning("Batch operation error", extra=log_data)
