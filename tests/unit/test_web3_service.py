"""
Unit tests for chain configuration and the per-chain Web3Service.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest

from vault_apr_toolkit.shared.constants import AprConstants, GlobalConstants
from vault_apr_toolkit.shared.exceptions import ConfigurationException
from vault_apr_toolkit.shared.services.web3_service import Web3Service

RPC_URLS = {1: "http://localhost:8545", 10: "http://localhost:9545"}


@pytest.fixture(autouse=True)
def rpc_urls():
    with patch.dict(GlobalConstants.CHAIN_ID_TO_RPC, RPC_URLS, clear=True):
        with patch.dict(Web3Service._instances, clear=True):
            yield


class TestGlobalConstants:
    def test_get_rpc_url(self):
        assert GlobalConstants.get_rpc_url(10) == "http://localhost:9545"

    def test_unsupported_chain(self):
        with pytest.raises(ConfigurationException, match="not supported"):
            GlobalConstants.get_rpc_url(31337)

    def test_missing_url(self):
        with patch.dict(GlobalConstants.CHAIN_ID_TO_RPC, {137: None}):
            with pytest.raises(ConfigurationException, match="not set"):
                GlobalConstants.get_rpc_url(137)

    def test_pool_methods_have_signatures(self):
        for method in AprConstants.STAKING_POOL_METHODS:
            assert method in AprConstants.METHOD_SIGNATURES


class TestWeb3Service:
    def test_one_instance_per_chain(self):
        first = Web3Service.get_instance(10)

        assert Web3Service.get_instance(10) is first
        assert Web3Service.get_instance(1) is not first
        assert first.chain_id == 10

    def test_missing_rpc_url(self):
        with pytest.raises(ConfigurationException):
            Web3Service.get_instance(8453)

    def test_contracts_are_cached(self):
        service = Web3Service.get_instance(10)
        token = "0xD533a949740bb3306d119CC777fa900bA034cd52"

        contract = service.get_contract(token, "erc20")

        assert service.get_contract(token, "erc20") is contract
        assert contract.address == token

    def test_concurrent_callers_share_one_instance(self):
        def slow_connect(rpc_url):
            time.sleep(0.05)
            return MagicMock()

        with patch.object(
            Web3Service, "_initialize_web3", side_effect=slow_connect
        ) as connect:
            with ThreadPoolExecutor(max_workers=8) as pool:
                services = list(
                    pool.map(lambda _: Web3Service.get_instance(10), range(8))
                )

        assert connect.call_count == 1
        assert all(service is services[0] for service in services)
