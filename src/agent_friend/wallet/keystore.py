"""In-memory wallet registry.

Keys live only in process memory for the session; nothing is written to
disk.  This is demo-grade custody: generated keys are handed back to the
caller in plaintext.
"""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass, field

from eth_account import Account

from agent_friend.errors import WalletError
from agent_friend.wallet.models import validate_address


@dataclass(frozen=True)
class WalletEntry:
    address: str
    private_key: str = field(repr=False)


class WalletRegistry:
    """Thread-safe mapping of checksummed address -> hex private key.

    A single lock guards every read and write so a concurrent generate/send
    pair never observes a half-written entry.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._keys: dict[str, str] = {}

    def generate(self) -> WalletEntry:
        """Create a keypair from 32 random bytes and store it."""
        raw_key = secrets.token_bytes(32)
        account = Account.from_key(raw_key)
        entry = WalletEntry(address=account.address, private_key="0x" + raw_key.hex())
        with self._lock:
            self._keys[entry.address] = entry.private_key
        return entry

    def get_key(self, address: str) -> str | None:
        """Return the key stored for *address*, or ``None``."""
        try:
            checksum = validate_address(address)
        except WalletError:
            return None
        with self._lock:
            return self._keys.get(checksum)

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and self.get_key(address) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)
