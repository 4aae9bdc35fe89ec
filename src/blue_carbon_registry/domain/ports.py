"""Collaborator interfaces consumed by the lifecycle engine.

These are Protocols (structural subtyping) so concrete adapters don't need
to inherit from a base class — they just need to match the shape.

The domain layer has ZERO imports from web3, SQLAlchemy, or any storage SDK.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from blue_carbon_registry.domain.enums import UserRole


@dataclass(frozen=True)
class Principal:
    """The authenticated actor behind an operation.

    Attributes:
        id: String form of the user's UUID.
        role: One of UserRole.
        wallet_address: EVM address registered for the user, if any.
    """

    id: str
    role: UserRole
    wallet_address: str | None = None


@dataclass(frozen=True)
class ChainReceipt:
    """Result of a chain operation.

    Attributes:
        transaction_hash: 0x-prefixed hash recorded in the credit ledger.
        token_id: Token identifier assigned by the chain on mint, if known.
    """

    transaction_hash: str
    token_id: str | None = None


@dataclass(frozen=True)
class EvidenceRef:
    """A content-addressed reference returned by an evidence store."""

    ref: str
    url: str
    size: int = 0
    filename: str | None = None


@runtime_checkable
class ChainClient(Protocol):
    """Protocol that all chain client implementations must satisfy.

    Concrete implementations:
        - infrastructure/chain/simulated.py    (placeholder hashes)
        - infrastructure/chain/web3_client.py  (real EVM transactions)
    """

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
        """Mint a credit batch to the recipient."""
        ...

    async def transfer_credit(
        self,
        from_address: str | None,
        to_address: str,
        token_id: str | None,
    ) -> ChainReceipt:
        """Move a credit batch between wallets."""
        ...

    async def retire_credit(
        self,
        holder_address: str | None,
        token_id: str | None,
        reason: str,
    ) -> ChainReceipt:
        """Burn a credit batch on behalf of its holder."""
        ...

    async def network_status(self) -> dict:
        """Describe the network the client is connected to."""
        ...


@runtime_checkable
class EvidenceStore(Protocol):
    """Protocol for content-addressed evidence storage."""

    async def put(self, content: bytes, filename: str | None = None) -> EvidenceRef:
        """Store content and return its reference and retrieval URL."""
        ...

    def url_for(self, ref: str) -> str:
        """Return the retrieval URL for a reference."""
        ...
