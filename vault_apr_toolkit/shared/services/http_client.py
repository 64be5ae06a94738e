"""
Process-wide httpx client for DefiLlama prices and remote staking registries.

Timeouts and User-Agent come from the environment:
VAULT_APR_HTTP_TIMEOUT (seconds, default 15), VAULT_APR_HTTP_CONNECT_TIMEOUT
(default 5) and VAULT_APR_HTTP_UA.
"""

import os
import threading
from typing import Optional

import httpx

_lock = threading.Lock()
_client: Optional[httpx.Client] = None


def build_client() -> httpx.Client:
    """New client configured from the environment."""
    timeout = httpx.Timeout(
        float(os.getenv("VAULT_APR_HTTP_TIMEOUT", "15")),
        connect=float(os.getenv("VAULT_APR_HTTP_CONNECT_TIMEOUT", "5")),
    )
    return httpx.Client(
        timeout=timeout,
        limits=httpx.Limits(max_keepalive_connections=16, max_connections=64),
        headers={
            "User-Agent": os.getenv("VAULT_APR_HTTP_UA", "vault-apr-toolkit")
        },
    )


def get_client() -> httpx.Client:
    """The shared client, created on first use."""
    global _client
    with _lock:
        if _client is None or _client.is_closed:
            _client = build_client()
        return _client


def close_client() -> None:
    global _client
    with _lock:
        if _client is not None:
            _client.close()
            _client = None
