"""Carbon credit REST API routes.

Routes:
    POST   /api/v1/credits/mint          — Mint the credit batch of a verified project (admin)
    POST   /api/v1/credits/transfer      — Transfer a batch to another registered wallet
    POST   /api/v1/credits/retire        — Retire a batch permanently
    GET    /api/v1/credits/transactions  — Ledger entries visible to the caller
    GET    /api/v1/credits/owned         — Batches held by the caller
    GET    /api/v1/credits/{id}          — Batch details with its ledger
    GET    /api/v1/chain/status          — Network reported by the chain client
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from blue_carbon_registry.api.deps import (
    get_app_settings,
    get_chain_client,
    get_current_principal,
    get_db_session,
    get_evidence_store,
)
from blue_carbon_registry.config import Settings
from blue_carbon_registry.domain.exceptions import DuplicateOperationError
from blue_carbon_registry.domain.ports import ChainClient, EvidenceStore, Principal
from blue_carbon_registry.infrastructure.redis_client import (
    claim_idempotency_key,
    redis_available,
    release_idempotency_key,
)
from blue_carbon_registry.logging_config import get_logger
from blue_carbon_registry.schemas.credit import (
    ChainStatusResponse,
    CreditResponse,
    MintCreditsRequest,
    RetireCreditRequest,
    TransactionResponse,
    TransferCreditRequest,
)
from blue_carbon_registry.schemas.registry import Page
from blue_carbon_registry.services.credit_service import CreditService

router = APIRouter(prefix="/api/v1/credits", tags=["Credits"])
chain_router = APIRouter(prefix="/api/v1/chain", tags=["Chain"])
logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Mint
# ---------------------------------------------------------------------------


@router.post(
    "/mint",
    response_model=CreditResponse,
    status_code=201,
    summary="Mint carbon credits for a verified project",
)
async def mint_credits(
    request: MintCreditsRequest,
    idempotency_key: str | None = Header(default=None, max_length=128),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
    chain_client: ChainClient = Depends(get_chain_client),
    evidence_store: EvidenceStore = Depends(get_evidence_store),
    settings: Settings = Depends(get_app_settings),
) -> CreditResponse:
    """Issue credits. Transitions the project VERIFIED -> CREDITS_ISSUED.

    A repeated ``Idempotency-Key`` is rejected while Redis holds it.
    """
    claimed = False
    if idempotency_key and redis_available():
        if not await claim_idempotency_key("mint", idempotency_key):
            logger.warning("idempotency.duplicate", key=idempotency_key)
            raise DuplicateOperationError(idempotency_key)
        claimed = True

    svc = CreditService(session, chain_client, evidence_store, settings)
    try:
        credit = await svc.mint(
            principal,
            project_id=request.project_id,
            carbon_amount=request.carbon_amount,
            vintage_year=request.vintage_year,
            recipient_address=request.recipient_address,
            certification_standard=request.certification_standard,
        )
    except Exception:
        if claimed:
            await release_idempotency_key("mint", idempotency_key)
        raise
    return CreditResponse.model_validate(credit)


# ---------------------------------------------------------------------------
# Transfer / Retire
# ---------------------------------------------------------------------------


@router.post(
    "/transfer",
    response_model=CreditResponse,
    summary="Transfer a credit batch",
)
async def transfer_credit(
    request: TransferCreditRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
    chain_client: ChainClient = Depends(get_chain_client),
) -> CreditResponse:
    """Owner only. Transitions ACTIVE -> TRANSFERRED."""
    credit = await CreditService(session, chain_client).transfer(
        principal, request.credit_id, request.to_address
    )
    return CreditResponse.model_validate(credit)


@router.post(
    "/retire",
    response_model=CreditResponse,
    summary="Retire a credit batch",
)
async def retire_credit(
    request: RetireCreditRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
    chain_client: ChainClient = Depends(get_chain_client),
) -> CreditResponse:
    """Owner or admin. Transitions ACTIVE/TRANSFERRED -> RETIRED."""
    credit = await CreditService(session, chain_client).retire(
        principal, request.credit_id, request.reason
    )
    return CreditResponse.model_validate(credit)


# ---------------------------------------------------------------------------
# Read endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/transactions",
    response_model=Page[TransactionResponse],
    summary="List ledger entries",
)
async def list_transactions(
    transaction_type: str | None = Query(default=None, alias="type"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
    chain_client: ChainClient = Depends(get_chain_client),
) -> Page[TransactionResponse]:
    """Admins see every entry; other users see entries of credits they hold."""
    txs, total = await CreditService(session, chain_client).list_transactions(
        principal, transaction_type, page, limit
    )
    return Page[TransactionResponse](
        items=[TransactionResponse.model_validate(t) for t in txs],
        total=total,
        page=page,
        limit=limit,
    )


@router.get(
    "/owned",
    response_model=list[CreditResponse],
    summary="List credits held by the caller",
)
async def list_owned_credits(
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
    chain_client: ChainClient = Depends(get_chain_client),
) -> list[CreditResponse]:
    credits = await CreditService(session, chain_client).credits_by_owner(principal.id)
    return [CreditResponse.model_validate(c) for c in credits]


@router.get(
    "/{credit_id}",
    response_model=CreditResponse,
    summary="Get credit details",
)
async def get_credit(
    credit_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
    chain_client: ChainClient = Depends(get_chain_client),
) -> CreditResponse:
    credit = await CreditService(session, chain_client).get_credit(credit_id)
    return CreditResponse.model_validate(credit)


@chain_router.get(
    "/status",
    response_model=ChainStatusResponse,
    summary="Chain network status",
)
async def chain_status(
    chain_client: ChainClient = Depends(get_chain_client),
) -> ChainStatusResponse:
    return ChainStatusResponse(**await chain_client.network_status())
