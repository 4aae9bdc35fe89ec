"""Web3ChainClient — submits credit operations to the BlueCarbonCredits contract.

Verification flow for each operation:
    1. Build the contract call and sign it with the service wallet.
    2. Send the raw transaction and wait for the receipt.
    3. Treat a receipt with status != 1 as a revert.

web3.py is synchronous, so every call runs in a worker thread. Connection
failures are retried with tenacity (exponential backoff) for the nonce and
chain id lookups before the send and for the receipt wait after it. The send
itself runs once: a retried send could land a second transaction. Any
remaining failure is raised as ChainError.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from web3 import Web3

from blue_carbon_registry.domain.exceptions import ChainError
from blue_carbon_registry.domain.ports import ChainReceipt
from blue_carbon_registry.logging_config import get_logger

logger = get_logger(__name__)

# Subset of the BlueCarbonCredits ABI used by the registry.
CARBON_CREDIT_ABI: list[dict] = [
    {
        "type": "function",
        "name": "mintCarbonCredit",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "recipient", "type": "address"},
            {"name": "projectId", "type": "uint256"},
            {"name": "carbonAmount", "type": "uint256"},
            {"name": "vintageYear", "type": "uint256"},
            {"name": "projectLocation", "type": "string"},
            {"name": "ecosystemType", "type": "string"},
            {"name": "certificationStandard", "type": "string"},
            {"name": "ipfsMetadataHash", "type": "string"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "retireCredit",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "tokenId", "type": "uint256"},
            {"name": "reason", "type": "string"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "transferFrom",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "tokenId", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "event",
        "name": "CreditMinted",
        "anonymous": False,
        "inputs": [
            {"name": "tokenId", "type": "uint256", "indexed": True},
            {"name": "projectId", "type": "uint256", "indexed": True},
            {"name": "recipient", "type": "address", "indexed": True},
            {"name": "carbonAmount", "type": "uint256", "indexed": False},
        ],
    },
]


def project_id_to_uint(project_id: str) -> int:
    """Map a project UUID onto the contract's uint256 project id."""
    return uuid.UUID(str(project_id)).int


class Web3ChainClient:
    """Chain client backed by an EVM JSON-RPC node."""

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        contract_address: str,
        chain_id: int | None = None,
        network: str = "",
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        abi: list[dict] | None = None,
        w3: Any = None,
    ) -> None:
        if not private_key or not contract_address:
            raise ValueError("Web3ChainClient requires a private key and a contract address")

        self._w3 = w3 if w3 is not None else Web3(Web3.HTTPProvider(rpc_url))
        self._private_key = private_key
        self._account = self._w3.eth.account.from_key(private_key)
        self._contract_address = Web3.to_checksum_address(contract_address)
        self._contract = self._w3.eth.contract(
            address=self._contract_address, abi=abi or CARBON_CREDIT_ABI
        )
        self._chain_id = chain_id
        self._network = network
        self._retrying = Retrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=backoff_seconds, min=backoff_seconds, max=10),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

    # ------------------------------------------------------------------
    # ChainClient protocol
    # ------------------------------------------------------------------

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
        call = self._contract.functions.mintCarbonCredit(
            Web3.to_checksum_address(recipient_address),
            project_id_to_uint(project_id),
            carbon_amount,
            vintage_year,
            project_location,
            ecosystem_type,
            certification_standard,
            metadata_ref or "",
        )
        receipt, tx_hash = await self._submit("mint", call)

        token_id = None
        events = self._contract.events.CreditMinted().process_receipt(receipt)
        if events:
            token_id = str(events[0]["args"]["tokenId"])

        logger.info("chain.minted", tx_hash=tx_hash, token_id=token_id, amount=carbon_amount)
        return ChainReceipt(transaction_hash=tx_hash, token_id=token_id)

    async def transfer_credit(
        self,
        from_address: str | None,
        to_address: str,
        token_id: str | None,
    ) -> ChainReceipt:
        if token_id is None or from_address is None:
            raise ChainError("Credit has no on-chain token or holder wallet to transfer from")
        call = self._contract.functions.transferFrom(
            Web3.to_checksum_address(from_address),
            Web3.to_checksum_address(to_address),
            int(token_id),
        )
        _, tx_hash = await self._submit("transfer", call)
        logger.info("chain.transferred", tx_hash=tx_hash, token_id=token_id)
        return ChainReceipt(transaction_hash=tx_hash, token_id=token_id)

    async def retire_credit(
        self,
        holder_address: str | None,
        token_id: str | None,
        reason: str,
    ) -> ChainReceipt:
        if token_id is None:
            raise ChainError("Credit has no on-chain token to retire")
        call = self._contract.functions.retireCredit(int(token_id), reason)
        _, tx_hash = await self._submit("retire", call)
        logger.info("chain.retired", tx_hash=tx_hash, token_id=token_id)
        return ChainReceipt(transaction_hash=tx_hash, token_id=token_id)

    async def network_status(self) -> dict:
        def _status() -> dict:
            connected = self._w3.is_connected()
            return {
                "network": self._network,
                "chain_id": self._chain_id or (self._w3.eth.chain_id if connected else None),
                "connected": connected,
                "simulated": False,
                "block_height": self._w3.eth.block_number if connected else None,
                "contract": self._contract_address,
            }

        return await asyncio.to_thread(_status)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _submit(self, action: str, call: Any) -> tuple[Any, str]:
        try:
            return await asyncio.to_thread(self._transact, call)
        except ChainError:
            raise
        except Exception as exc:
            logger.error("chain.submit_failed", action=action, error=str(exc))
            raise ChainError(f"Chain {action} failed: {exc}") from exc

    def _transact(self, call: Any) -> tuple[Any, str]:
        """Sign, send and wait for one transaction (runs in a worker thread)."""
        signed = self._retrying(self._sign, call)
        # Not retried: the node may have accepted the transaction already.
        raw_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
        tx_hash = Web3.to_hex(raw_hash)
        try:
            receipt = self._retrying(self._w3.eth.wait_for_transaction_receipt, raw_hash)
        except OSError as exc:
            logger.error("chain.receipt_failed", tx_hash=tx_hash, error=str(exc))
            raise ChainError(f"No receipt for sent transaction: {exc}", tx_hash=tx_hash) from exc
        if receipt["status"] != 1:
            raise ChainError("Transaction reverted", tx_hash=tx_hash)
        return receipt, tx_hash

    def _sign(self, call: Any) -> Any:
        sender = self._account.address
        tx = call.build_transaction({
            "from": sender,
            "nonce": self._w3.eth.get_transaction_count(sender),
            "chainId": self._chain_id or self._w3.eth.chain_id,
        })
        return self._w3.eth.account.sign_transaction(tx, self._private_key)
