"""Public registry REST API routes. No authentication required.

Routes:
    GET    /api/v1/registry/projects                      — Verified projects
    GET    /api/v1/registry/credits                       — Issued credits
    GET    /api/v1/registry/stats                         — Registry totals
    GET    /api/v1/registry/ecosystem-stats/{ecosystem}   — Totals for one ecosystem
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from blue_carbon_registry.api.deps import get_db_session
from blue_carbon_registry.schemas.credit import CreditResponse
from blue_carbon_registry.schemas.project import ProjectResponse
from blue_carbon_registry.schemas.registry import EcosystemStats, Page, RegistryStats
from blue_carbon_registry.services.registry_service import RegistryService

router = APIRouter(prefix="/api/v1/registry", tags=["Registry"])


@router.get(
    "/projects",
    response_model=Page[ProjectResponse],
    summary="List verified projects",
)
async def public_projects(
    ecosystem_type: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    session: AsyncSession = Depends(get_db_session),
) -> Page[ProjectResponse]:
    projects, total = await RegistryService(session).public_projects(ecosystem_type, page, limit)
    return Page[ProjectResponse](
        items=[ProjectResponse.model_validate(p) for p in projects],
        total=total,
        page=page,
        limit=limit,
    )


@router.get(
    "/credits",
    response_model=Page[CreditResponse],
    summary="List issued credits",
)
async def public_credits(
    status: str | None = "ACTIVE",
    ecosystem_type: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    session: AsyncSession = Depends(get_db_session),
) -> Page[CreditResponse]:
    """Credits filtered by status (ACTIVE by default)."""
    credits, total = await RegistryService(session).public_credits(
        status, ecosystem_type, page, limit
    )
    return Page[CreditResponse](
        items=[CreditResponse.model_validate(c) for c in credits],
        total=total,
        page=page,
        limit=limit,
    )


@router.get(
    "/stats",
    response_model=RegistryStats,
    summary="Registry statistics",
)
async def registry_stats(session: AsyncSession = Depends(get_db_session)) -> RegistryStats:
    return await RegistryService(session).stats()


@router.get(
    "/ecosystem-stats/{ecosystem_type}",
    response_model=EcosystemStats,
    summary="Statistics for one ecosystem type",
)
async def ecosystem_stats(
    ecosystem_type: str,
    session: AsyncSession = Depends(get_db_session),
) -> EcosystemStats:
    return await RegistryService(session).ecosystem_stats(ecosystem_type.upper())
