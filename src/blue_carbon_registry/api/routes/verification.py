"""Verification REST API routes (verifiers and admins).

Routes:
    GET    /api/v1/verification/pending      — Verification queue, oldest first
    POST   /api/v1/verification/{id}/verify  — Approve a pending project
    POST   /api/v1/verification/{id}/reject  — Reject a pending project
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from blue_carbon_registry.api.deps import get_current_principal, get_db_session
from blue_carbon_registry.domain.ports import Principal
from blue_carbon_registry.schemas.project import (
    ProjectResponse,
    RejectProjectRequest,
    VerifyProjectRequest,
)
from blue_carbon_registry.schemas.registry import Page
from blue_carbon_registry.services.project_service import ProjectService

router = APIRouter(prefix="/api/v1/verification", tags=["Verification"])


@router.get(
    "/pending",
    response_model=Page[ProjectResponse],
    summary="List projects awaiting verification",
)
async def list_pending(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> Page[ProjectResponse]:
    projects, total = await ProjectService(session).list_pending(principal, page, limit)
    return Page[ProjectResponse](
        items=[ProjectResponse.model_validate(p) for p in projects],
        total=total,
        page=page,
        limit=limit,
    )


@router.post(
    "/{project_id}/verify",
    response_model=ProjectResponse,
    summary="Verify a project",
)
async def verify_project(
    project_id: uuid.UUID,
    request: VerifyProjectRequest | None = None,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> ProjectResponse:
    """Approve a PENDING project. Transitions PENDING -> VERIFIED."""
    notes = request.notes if request is not None else None
    project = await ProjectService(session).verify(principal, project_id, notes)
    return ProjectResponse.model_validate(project)


@router.post(
    "/{project_id}/reject",
    response_model=ProjectResponse,
    summary="Reject a project",
)
async def reject_project(
    project_id: uuid.UUID,
    request: RejectProjectRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> ProjectResponse:
    """Reject a PENDING project. Transitions PENDING -> REJECTED."""
    project = await ProjectService(session).reject(principal, project_id, request.notes)
    return ProjectResponse.model_validate(project)
