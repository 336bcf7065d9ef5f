"""Constants shared by the test modules."""
from __future__ import annotations

from eth_account import Account

TX_HASH = "0x" + "ab" * 32

# A throwaway key; never funded on any network.
TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_ADDRESS = Account.from_key(TEST_KEY).address
OTHER_ADDRESS = "0x" + "11" * 20
