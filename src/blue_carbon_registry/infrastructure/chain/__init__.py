"""Chain client implementations and factory.

Two clients:
    - SimulatedChainClient: placeholder hashes, no network (default)
    - Web3ChainClient:      signed transactions against the credits contract

The factory picks one from ``settings.chain_mode``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from blue_carbon_registry.infrastructure.chain.simulated import (
    SimulatedChainClient,
    placeholder_tx_hash,
)
from blue_carbon_registry.infrastructure.chain.web3_client import Web3ChainClient

if TYPE_CHECKING:
    from blue_carbon_registry.config import Settings
    from blue_carbon_registry.domain.ports import ChainClient


def create_chain_client(settings: Settings) -> ChainClient:
    """Create the chain client selected by configuration.

    Raises:
        ValueError: If the mode is unknown or web3 settings are incomplete.
    """
    if settings.chain_mode == "simulated":
        return SimulatedChainClient(
            network=settings.blockchain_network,
            chain_id=settings.chain_id,
        )
    if settings.chain_mode == "web3":
        if not settings.web3_rpc_url:
            raise ValueError("chain_mode 'web3' requires WEB3_RPC_URL")
        return Web3ChainClient(
            rpc_url=settings.web3_rpc_url,
            private_key=settings.chain_private_key,
            contract_address=settings.carbon_credit_contract,
            chain_id=settings.chain_id,
            network=settings.blockchain_network,
            max_attempts=settings.chain_tx_retries,
        )
    raise ValueError(f"Unknown chain mode: '{settings.chain_mode}'")


__all__ = [
    "SimulatedChainClient",
    "Web3ChainClient",
    "create_chain_client",
    "placeholder_tx_hash",
]
