"""High-level wallet operations used by the wallet tool and the CLI."""

from __future__ import annotations

import logging
from decimal import Decimal

from eth_account import Account
from eth_utils import ValidationError as EthValidationError
from web3 import Web3
from web3.exceptions import TimeExhausted

from agent_friend.config import ChainConfig
from agent_friend.errors import WalletError
from agent_friend.wallet.chains import chain_from_config
from agent_friend.wallet.keystore import WalletEntry, WalletRegistry
from agent_friend.wallet.models import (
    BalanceReading,
    SendIntent,
    TransactionOutcome,
    validate_address,
    validate_amount,
    validate_private_key,
)
from agent_friend.wallet.provider import BlockchainClient

logger = logging.getLogger("agent_friend.wallet.manager")

# Shown instead of a real balance when the RPC node is unreachable.
MOCK_BALANCE = Decimal("1.5")


class WalletManager:
    """Ties the wallet registry to the blockchain client.

    Input problems (bad address, bad amount, no key) raise
    :class:`~agent_friend.errors.WalletError` before any network call.
    Once a send reaches the network its result is always a
    :class:`TransactionOutcome`, never an exception.
    """

    def __init__(
        self,
        client: BlockchainClient,
        registry: WalletRegistry | None = None,
        confirmation_timeout: float = 60.0,
        poll_latency: float = 1.0,
    ) -> None:
        self.client = client
        self.registry = registry if registry is not None else WalletRegistry()
        self.confirmation_timeout = confirmation_timeout
        self.poll_latency = poll_latency

    @classmethod
    def from_config(cls, config: ChainConfig) -> WalletManager:
        """A manager with an empty registry talking to the configured chain."""
        return cls(
            BlockchainClient(chain_from_config(config)),
            confirmation_timeout=config.confirmation_timeout,
            poll_latency=config.poll_latency,
        )

    @property
    def symbol(self) -> str:
        return self.client.chain.native_symbol

    # ------------------------------------------------------------------
    # Wallet lifecycle
    # ------------------------------------------------------------------

    def generate_wallet(self) -> WalletEntry:
        entry = self.registry.generate()
        logger.info("Generated wallet %s", entry.address)
        return entry

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def get_balance(self, address: str) -> BalanceReading:
        """Return the balance of *address*, or a labelled mock on RPC failure."""
        checksum = validate_address(address)
        try:
            balance_wei = self.client.get_balance(checksum)
        except Exception as exc:
            logger.warning("Balance lookup for %s failed, using mock value: %s", checksum, exc)
            return BalanceReading(
                address=checksum,
                balance=MOCK_BALANCE,
                symbol=self.symbol,
                mock=True,
                error=str(exc) or type(exc).__name__,
            )
        return BalanceReading(
            address=checksum,
            balance=Decimal(str(Web3.from_wei(balance_wei, "ether"))),
            symbol=self.symbol,
        )

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def _resolve_key(self, intent: SendIntent, from_address: str) -> str:
        if intent.private_key:
            key = validate_private_key(intent.private_key)
            try:
                key_address = Account.from_key(key).address
            except (ValueError, EthValidationError) as exc:
                raise WalletError(f"Invalid private key: {exc}") from exc
            if key_address != from_address:
                raise WalletError(
                    f"The supplied private key does not belong to {from_address}."
                )
            return key

        key = self.registry.get_key(from_address)
        if key is None:
            raise WalletError(
                f"No private key available for {from_address}. "
                "Generate a wallet in this session or include the private key."
            )
        return key

    def send(self, intent: SendIntent) -> TransactionOutcome:
        """Sign and submit a native-token transfer, then wait for one confirmation."""
        from_address = validate_address(intent.from_address)
        to_address = validate_address(intent.to_address)
        amount = validate_amount(intent.amount)
        private_key = self._resolve_key(intent, from_address)

        tx: dict = {
            "from": from_address,
            "to": to_address,
            "value": Web3.to_wei(amount, "ether"),
            "chainId": self.client.chain.chain_id,
        }

        try:
            tx["nonce"] = self.client.get_transaction_count(from_address)
            tx["gasPrice"] = self.client.gas_price()
            gas_estimate = self.client.estimate_gas(tx)
            tx["gas"] = gas_estimate

            unsigned = {k: v for k, v in tx.items() if k != "from"}
            signed = Account.sign_transaction(unsigned, private_key)
            tx_hash = self.client.send_raw_transaction(signed.raw_transaction)
        except Exception as exc:
            logger.warning("Transfer from %s rejected: %s", from_address, exc)
            return TransactionOutcome.rejected(str(exc) or type(exc).__name__)

        logger.info(
            "Submitted %s %s from %s to %s: %s", amount, self.symbol, from_address, to_address, tx_hash
        )

        try:
            receipt = self.client.wait_for_receipt(
                tx_hash, timeout=self.confirmation_timeout, poll_latency=self.poll_latency
            )
        except TimeExhausted:
            logger.warning("No confirmation for %s within %ss", tx_hash, self.confirmation_timeout)
            return TransactionOutcome.submitted_timeout(tx_hash, gas_estimate)
        except Exception as exc:
            logger.warning("Receipt lookup for %s failed: %s", tx_hash, exc)
            return TransactionOutcome.submitted_no_receipt(tx_hash)

        if receipt is None:
            return TransactionOutcome.submitted_no_receipt(tx_hash)

        logger.info("Transaction %s confirmed in block %s", tx_hash, receipt["blockNumber"])
        return TransactionOutcome.confirmed(
            tx_hash=tx_hash,
            block_number=receipt["blockNumber"],
            gas_used=receipt["gasUsed"],
            reverted=receipt.get("status", 1) == 0,
        )
