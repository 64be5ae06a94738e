"""
Exceptions that can escape the Vault APR toolkit.

- RetryableException: the same call may work later (RPC, network)
- NonRetryableException: the input itself is wrong (malformed state)
- ConfigurationException: the toolkit cannot start (env, registry)

Expected APR outcomes (no campaign, rewards ended, nothing staked, missing
prices) are never raised. They come back as ``(0, False)`` or as a failed
``Result``.
"""


class RetryableException(Exception):
    """Transient failure; ``shared.retry`` tries these again."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonRetryableException(Exception):
    """Permanent failure; retrying cannot change the outcome."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationException(NonRetryableException):
    """Missing RPC URL, unreadable staking registry, bad environment value."""


class ChainReadError(RetryableException):
    """
    On-chain read that still failed after the reader's own retries.

    The decimals resolver turns this into the 18-decimals fallback; a
    failed staking pool read becomes an ERROR result.

    Attributes:
        chain_id: Chain the read was sent to
        target: Contract address, when a single contract was read
    """

    def __init__(self, message: str, chain_id: int = None, target: str = None):
        super().__init__(message)
        self.chain_id = chain_id
        self.target = target


class MalformedStateError(NonRetryableException):
    """
    Decoded on-chain values that cannot be used.

    A batched read missing one of the requested keys, or answering with a
    value of the wrong type, is fatal to that single computation.
    """
