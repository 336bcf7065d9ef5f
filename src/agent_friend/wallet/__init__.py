"""Ethereum testnet wallet for Agent Friend.

Wallets are generated into an in-memory registry, balances are read over
JSON-RPC, and transfers are signed locally and submitted with gas
estimation and a bounded wait for one confirmation.
"""
