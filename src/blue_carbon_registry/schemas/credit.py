"""Pydantic schemas for carbon credits and the transaction ledger."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

WALLET_PATTERN = r"^0x[0-9a-fA-F]{40}$"

# Same ceiling as a project's estimated capture; fits the int32 column.
MAX_CARBON_AMOUNT = 1_000_000

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class MintCreditsRequest(BaseModel):
    """Request body for minting the credit batch of a verified project."""

    project_id: uuid.UUID
    carbon_amount: int = Field(
        ..., gt=0, le=MAX_CARBON_AMOUNT, description="Tons CO2 represented by the batch"
    )
    vintage_year: int = Field(..., description="Year the carbon was sequestered")
    recipient_address: str = Field(
        ...,
        min_length=42,
        max_length=42,
        pattern=WALLET_PATTERN,
        description="EVM wallet receiving the token (0x-prefixed, 42 chars)",
        examples=["0x742d35Cc6634C0532925a3b844Bc9e7595f2bD18"],
    )
    certification_standard: str | None = Field(
        default=None,
        min_length=1,
        max_length=50,
        description="Defaults to DEFAULT_CERTIFICATION_STANDARD when omitted",
    )


class TransferCreditRequest(BaseModel):
    """Request body for transferring a credit batch to another registered wallet."""

    credit_id: uuid.UUID
    to_address: str = Field(..., min_length=42, max_length=42, pattern=WALLET_PATTERN)


class RetireCreditRequest(BaseModel):
    """Request body for permanently retiring a credit batch."""

    credit_id: uuid.UUID
    reason: str = Field(..., min_length=10, max_length=500)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class TransactionResponse(BaseModel):
    """Response schema for a ledger entry."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    credit_id: uuid.UUID
    from_address: str | None
    to_address: str
    transaction_hash: str
    transaction_type: str
    timestamp: datetime


class CreditResponse(BaseModel):
    """Response schema for a carbon credit batch."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    owner_id: uuid.UUID
    carbon_amount: int
    vintage_year: int
    certification_standard: str
    token_id: str | None
    metadata_ref: str | None
    status: str
    issuance_date: datetime
    retirement_date: datetime | None
    retirement_reason: str | None
    transactions: list[TransactionResponse] = Field(default_factory=list)


class ChainStatusResponse(BaseModel):
    """Network information reported by the chain client."""

    network: str
    chain_id: int | None
    connected: bool
    simulated: bool
    block_height: int | None
    contract: str | None
