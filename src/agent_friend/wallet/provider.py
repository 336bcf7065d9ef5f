"""Web3 client for the configured EVM testnet."""

from __future__ import annotations

import logging
from typing import Any

from hexbytes import HexBytes
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware
from web3.types import TxReceipt

from agent_friend.wallet.chains import Chain

logger = logging.getLogger("agent_friend.wallet.provider")


class BlockchainClient:
    """Thin adapter over a JSON-RPC endpoint.

    Every method is a blocking network call; async callers should run them
    in a worker thread.  Failures propagate as web3 / requests exceptions
    and are classified by :class:`~agent_friend.wallet.manager.WalletManager`.
    """

    def __init__(self, chain: Chain, web3: Web3 | None = None, request_timeout: float = 30.0) -> None:
        self.chain = chain
        if web3 is None:
            web3 = Web3(Web3.HTTPProvider(chain.rpc_url, request_kwargs={"timeout": request_timeout}))
            if chain.poa:
                web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.w3 = web3

    def get_balance(self, address: str) -> int:
        """Balance of *address* in wei."""
        return self.w3.eth.get_balance(Web3.to_checksum_address(address))

    def get_transaction_count(self, address: str) -> int:
        return self.w3.eth.get_transaction_count(Web3.to_checksum_address(address), "pending")

    def gas_price(self) -> int:
        return self.w3.eth.gas_price

    def estimate_gas(self, tx: dict[str, Any]) -> int:
        return self.w3.eth.estimate_gas(tx)

    def send_raw_transaction(self, raw_tx: bytes) -> str:
        """Broadcast a signed transaction and return its ``0x`` hash."""
        tx_hash = self.w3.eth.send_raw_transaction(HexBytes(raw_tx))
        return Web3.to_hex(tx_hash)

    def wait_for_receipt(self, tx_hash: str, timeout: float, poll_latency: float = 1.0) -> TxReceipt:
        """Poll until *tx_hash* has one confirmation.

        Raises :class:`web3.exceptions.TimeExhausted` after *timeout* seconds.
        """
        logger.debug("Waiting up to %ss for receipt of %s", timeout, tx_hash)
        return self.w3.eth.wait_for_transaction_receipt(
            HexBytes(tx_hash), timeout=timeout, poll_latency=poll_latency
        )
