"""Chain definition for the EVM testnet the wallet talks to."""

from __future__ import annotations

from dataclasses import dataclass

from agent_friend.config import ChainConfig


@dataclass(frozen=True)
class Chain:
    """An EVM-compatible blockchain network."""

    name: str
    chain_id: int
    rpc_url: str
    native_symbol: str
    explorer_url: str
    poa: bool = False

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"

    def address_url(self, address: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/address/{address}"


SEPOLIA = Chain(
    name="sepolia",
    chain_id=11155111,
    rpc_url="https://ethereum-sepolia-rpc.publicnode.com",
    native_symbol="ETH",
    explorer_url="https://sepolia.etherscan.io",
)


def chain_from_config(config: ChainConfig) -> Chain:
    """Build the :class:`Chain` described by the ``chain`` config section."""
    return Chain(
        name=config.name,
        chain_id=config.chain_id,
        rpc_url=config.rpc_url,
        native_symbol=config.native_symbol,
        explorer_url=config.explorer_url,
        poa=config.poa_middleware,
    )
