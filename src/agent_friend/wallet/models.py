"""Value types for wallet operations."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum

from web3 import Web3

from agent_friend.errors import WalletError

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_PRIVATE_KEY_RE = re.compile(r"^(?:0x)?[0-9a-fA-F]{64}$")


def validate_address(address: str) -> str:
    """Return the checksummed form of *address*.

    Only the shape (``0x`` + 40 hex digits) is checked; mixed-case input is
    re-checksummed rather than rejected.
    """
    address = (address or "").strip()
    if not _ADDRESS_RE.match(address):
        raise WalletError(f"Invalid Ethereum address format: {address!r}")
    return Web3.to_checksum_address(address.lower())


def validate_private_key(private_key: str) -> str:
    """Return *private_key* as ``0x``-prefixed lowercase hex."""
    private_key = (private_key or "").strip()
    if not _PRIVATE_KEY_RE.match(private_key):
        raise WalletError("Invalid private key format: expected 64 hex digits.")
    if private_key.lower().startswith("0x"):
        private_key = private_key[2:]
    return "0x" + private_key.lower()


def validate_amount(amount: str) -> Decimal:
    """Parse a display-unit amount (e.g. ``"0.01"``) into a positive Decimal."""
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise WalletError(f"Invalid amount: {amount!r}. Provide a number like '0.01'.") from None
    if not value.is_finite() or value <= 0:
        raise WalletError(f"Invalid amount: {amount!r}. The amount must be positive.")
    if value.as_tuple().exponent < -18:
        raise WalletError(f"Invalid amount: {amount!r}. At most 18 decimal places are allowed.")
    try:
        Web3.to_wei(value, "ether")
    except ValueError:
        raise WalletError(f"Invalid amount: {amount!r}. The amount is too large.") from None
    return value


@dataclass(frozen=True)
class SendIntent:
    """A transfer request: amount (display units), source, destination, optional key."""

    amount: str
    from_address: str
    to_address: str
    private_key: str | None = field(default=None, repr=False)


class TxStatus(str, Enum):
    CONFIRMED = "confirmed"
    SUBMITTED_NO_RECEIPT = "submitted_no_receipt"
    SUBMITTED_TIMEOUT = "submitted_timeout"
    REJECTED = "rejected"


@dataclass(frozen=True)
class TransactionOutcome:
    """Terminal result of a send. Never retried automatically."""

    status: TxStatus
    tx_hash: str | None = None
    block_number: int | None = None
    gas_used: int | None = None
    gas_estimate: int | None = None
    reason: str | None = None
    reverted: bool = False

    @classmethod
    def confirmed(
        cls, tx_hash: str, block_number: int, gas_used: int, reverted: bool = False
    ) -> TransactionOutcome:
        return cls(
            TxStatus.CONFIRMED,
            tx_hash=tx_hash,
            block_number=block_number,
            gas_used=gas_used,
            reverted=reverted,
        )

    @classmethod
    def submitted_no_receipt(cls, tx_hash: str) -> TransactionOutcome:
        return cls(TxStatus.SUBMITTED_NO_RECEIPT, tx_hash=tx_hash)

    @classmethod
    def submitted_timeout(cls, tx_hash: str, gas_estimate: int) -> TransactionOutcome:
        return cls(TxStatus.SUBMITTED_TIMEOUT, tx_hash=tx_hash, gas_estimate=gas_estimate)

    @classmethod
    def rejected(cls, reason: str) -> TransactionOutcome:
        return cls(TxStatus.REJECTED, reason=reason)

    def describe(self, tx_url: str | None = None) -> str:
        """Render the outcome as the text shown to the user and the model."""
        link = f"\n  Explorer: {tx_url}" if tx_url else ""
        if self.status is TxStatus.CONFIRMED:
            state = "reverted" if self.reverted else "confirmed"
            return (
                f"Transaction {state} in block {self.block_number}.\n"
                f"  Hash: {self.tx_hash}\n"
                f"  Gas used: {self.gas_used}"
                f"{link}"
            )
        if self.status is TxStatus.SUBMITTED_NO_RECEIPT:
            return (
                f"Transaction submitted but no receipt was returned.\n"
                f"  Hash: {self.tx_hash}"
                f"{link}"
            )
        if self.status is TxStatus.SUBMITTED_TIMEOUT:
            return (
                f"Transaction submitted; confirmation timed out. It may still be mined.\n"
                f"  Hash: {self.tx_hash}\n"
                f"  Gas estimate: {self.gas_estimate}"
                f"{link}"
            )
        return f"Transaction rejected: {self.reason}"


@dataclass(frozen=True)
class BalanceReading:
    """A balance in display units. ``mock`` readings come from the RPC fallback."""

    address: str
    balance: Decimal
    symbol: str
    mock: bool = False
    error: str | None = None

    def describe(self) -> str:
        text = f"Balance of {self.address}: {self.balance} {self.symbol}"
        if self.mock:
            text += f" [MOCK DATA - RPC unavailable: {self.error}]"
        return text
