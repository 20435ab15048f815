"""Named EVM network presets accepted by the ``NETWORK`` variable."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Chain:
    """An EVM-compatible blockchain network."""

    name: str
    chain_id: int
    rpc_url: str
    native_symbol: str
    explorer_url: str


CHAINS: dict[str, Chain] = {
    "ethereum": Chain(
        name="ethereum",
        chain_id=1,
        rpc_url="https://eth.llamarpc.com",
        native_symbol="ETH",
        explorer_url="https://etherscan.io",
    ),
    "sepolia": Chain(
        name="sepolia",
        chain_id=11155111,
        rpc_url="https://ethereum-sepolia-rpc.publicnode.com",
        native_symbol="ETH",
        explorer_url="https://sepolia.etherscan.io",
    ),
    "base": Chain(
        name="base",
        chain_id=8453,
        rpc_url="https://mainnet.base.org",
        native_symbol="ETH",
        explorer_url="https://basescan.org",
    ),
    "arbitrum": Chain(
        name="arbitrum",
        chain_id=42161,
        rpc_url="https://arb1.arbitrum.io/rpc",
        native_symbol="ETH",
        explorer_url="https://arbiscan.io",
    ),
    "polygon": Chain(
        name="polygon",
        chain_id=137,
        rpc_url="https://polygon-rpc.com",
        native_symbol="POL",
        explorer_url="https://polygonscan.com",
    ),
}


@dataclass(frozen=True)
class Network:
    """Where RPC calls go, plus the preset it came from (if any)."""

    rpc_url: str
    chain: Optional[Chain] = None

    @property
    def native_symbol(self) -> str:
        return self.chain.native_symbol if self.chain else "ETH"

    def tx_url(self, tx_hash: str) -> Optional[str]:
        if self.chain is None:
            return None
        return f"{self.chain.explorer_url}/tx/{tx_hash}"


def resolve_network(value: str) -> Network:
    """Map a preset name to its chain; anything else is taken as an RPC URL."""
    chain = CHAINS.get(value.strip().lower())
    if chain is not None:
        return Network(rpc_url=chain.rpc_url, chain=chain)
    return Network(rpc_url=value.strip())


def list_chain_names() -> list[str]:
    """Return the names of all network presets."""
    return list(CHAINS.keys())
