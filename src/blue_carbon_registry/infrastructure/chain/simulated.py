"""SimulatedChainClient — stand-in for a real chain during development and tests.

Generates placeholder transaction hashes (time + randomness) shaped like real
EVM hashes, and sequential token ids. No network calls.
"""

from __future__ import annotations

import itertools
import secrets
import time

from blue_carbon_registry.domain.ports import ChainReceipt
from blue_carbon_registry.logging_config import get_logger

logger = get_logger(__name__)


def placeholder_tx_hash() -> str:
    """Return a 0x-prefixed 64-hex-digit hash built from the clock and random bytes."""
    digits = f"{time.time_ns():x}" + secrets.token_hex(32)
    return "0x" + digits[:64]


class SimulatedChainClient:
    """Chain client that records nothing on chain."""

    def __init__(self, network: str = "simulated", chain_id: int = 0) -> None:
        self._network = network
        self._chain_id = chain_id
        self._token_ids = itertools.count()

    async def mint_credit(
        self,
        recipient_address: str,
        project_id: str,
        carbon_amount: int,
        vintage_year: int,
        certification_standard: str,
        metadata_ref: str | None = None,
        project_location: str = "",
        ecosystem_type: str = "",
    ) -> ChainReceipt:
        receipt = ChainReceipt(
            transaction_hash=placeholder_tx_hash(),
            token_id=str(next(self._token_ids)),
        )
        logger.info(
            "chain.mint_simulated",
            tx_hash=receipt.transaction_hash,
            token_id=receipt.token_id,
            recipient=recipient_address,
            amount=carbon_amount,
        )
        return receipt

    async def transfer_credit(
        self,
        from_address: str | None,
        to_address: str,
        token_id: str | None,
    ) -> ChainReceipt:
        receipt = ChainReceipt(transaction_hash=placeholder_tx_hash(), token_id=token_id)
        logger.info(
            "chain.transfer_simulated",
            tx_hash=receipt.transaction_hash,
            from_wallet=from_address,
            to_wallet=to_address,
        )
        return receipt

    async def retire_credit(
        self,
        holder_address: str | None,
        token_id: str | None,
        reason: str,
    ) -> ChainReceipt:
        receipt = ChainReceipt(transaction_hash=placeholder_tx_hash(), token_id=token_id)
        logger.info("chain.retire_simulated", tx_hash=receipt.transaction_hash, token_id=token_id)
        return receipt

    async def network_status(self) -> dict:
        return {
            "network": self._network,
            "chain_id": self._chain_id,
            "connected": True,
            "simulated": True,
            "block_height": None,
            "contract": None,
        }
