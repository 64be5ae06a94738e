"""
Backoff for chain and HTTP reads.

Retries live below ``ContractReader`` and the HTTP-backed stores: the APR
pipeline above them sees either a value or a single ``ChainReadError``, so
a flaky RPC node does not push a reward token onto the 18-decimals
fallback on its first hiccup.

Only ``retryable_exceptions`` are retried; anything else, including
``NonRetryableException``, propagates on the first failure.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

import httpx
from web3.exceptions import Web3Exception

from vault_apr_toolkit.shared.exceptions import RetryableException
from vault_apr_toolkit.shared.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)

# OSError covers ConnectionError, TimeoutError and the requests transport
# errors raised by web3's HTTPProvider
DEFAULT_RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    RetryableException,
    OSError,
    Web3Exception,
)


@dataclass(frozen=True)
class RetryConfig:
    """
    Retry settings shared by every call of one kind.

    Attributes:
        max_attempts: Total tries, first call included
        base_delay: Seconds slept after the first failure
        max_delay: Cap on any single sleep
        exponential: Double the delay after every failure
        retryable_exceptions: Exception types worth another try
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential: bool = True
    retryable_exceptions: Tuple[Type[Exception], ...] = (
        DEFAULT_RETRYABLE_EXCEPTIONS
    )

    def delay_for(self, failures: int) -> float:
        """Sleep before the next try, after ``failures`` failed tries."""
        if not self.exponential:
            return self.base_delay
        return min(self.base_delay * 2 ** (failures - 1), self.max_delay)

    def run(
        self,
        operation: Callable[..., T],
        *args: Any,
        operation_name: Optional[str] = None,
        **kwargs: Any,
    ) -> T:
        """Call ``operation(*args, **kwargs)`` under this config."""
        return retry_sync_operation(
            operation,
            *args,
            config=self,
            operation_name=operation_name,
            **kwargs,
        )


def retry_sync_operation(
    operation: Callable[..., T],
    *args: Any,
    config: Optional[RetryConfig] = None,
    operation_name: Optional[str] = None,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    **kwargs: Any,
) -> T:
    """
    Call ``operation`` until it succeeds or the attempts run out.

    The last retryable exception is re-raised unchanged once
    ``config.max_attempts`` calls have failed. ``on_retry`` receives the
    exception and the number of failures so far before each sleep.
    """
    config = config or RetryConfig()
    name = operation_name or getattr(operation, "__name__", "operation")

    failures = 0
    while True:
        try:
            return operation(*args, **kwargs)
        except config.retryable_exceptions as e:
            failures += 1
            if failures >= config.max_attempts:
                raise

            delay = config.delay_for(failures)
            logger.warning(
                f"{name} failed ({failures}/{config.max_attempts}): {e}. "
                f"Retrying in {delay:.1f}s..."
            )
            if on_retry:
                on_retry(e, failures)
            time.sleep(delay)


RPC_RETRY_CONFIG = RetryConfig(max_attempts=3, base_delay=1.0, max_delay=10.0)

HTTP_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    base_delay=0.5,
    max_delay=5.0,
    retryable_exceptions=(RetryableException, httpx.TransportError),
)
