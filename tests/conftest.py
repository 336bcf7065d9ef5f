"""Shared fixtures: an offline chain client and a wallet manager around it."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from agent_friend.wallet.chains import Chain
from agent_friend.wallet.keystore import WalletEntry
from agent_friend.wallet.manager import WalletManager
from agent_friend.wallet.provider import BlockchainClient

from helpers import TX_HASH


@pytest.fixture
def chain() -> Chain:
    return Chain(
        name="sepolia",
        chain_id=11155111,
        rpc_url="http://127.0.0.1:8545",
        native_symbol="ETH",
        explorer_url="https://sepolia.etherscan.io",
    )


@pytest.fixture
def client(chain) -> MagicMock:
    """A BlockchainClient stand-in that answers like a healthy node."""
    client = MagicMock(spec=BlockchainClient)
    client.chain = chain
    client.get_balance.return_value = 2 * 10**18
    client.get_transaction_count.return_value = 7
    client.gas_price.return_value = 10**9
    client.estimate_gas.return_value = 21000
    client.send_raw_transaction.return_value = TX_HASH
    client.wait_for_receipt.return_value = {"blockNumber": 123, "gasUsed": 21000, "status": 1}
    return client


@pytest.fixture
def manager(client) -> WalletManager:
    return WalletManager(client, confirmation_timeout=0.1, poll_latency=0.01)


@pytest.fixture
def wallet(manager) -> WalletEntry:
    """A wallet whose key sits in the manager's registry."""
    return manager.generate_wallet()
