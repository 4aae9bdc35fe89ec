"""Project REST API routes.

Routes:
    GET    /api/v1/projects                 — List projects
    POST   /api/v1/projects                 — Submit a project
    GET    /api/v1/projects/{id}            — Get project details
    PUT    /api/v1/projects/{id}            — Edit a pending project
    DELETE /api/v1/projects/{id}            — Delete a pending project
    GET    /api/v1/projects/{id}/evidence   — Evidence references with URLs
    POST   /api/v1/projects/{id}/evidence   — Attach evidence to a pending project
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from blue_carbon_registry.api.deps import (
    get_current_principal,
    get_db_session,
    get_evidence_store,
)
from blue_carbon_registry.domain.ports import EvidenceStore, Principal
from blue_carbon_registry.schemas.project import (
    EvidenceAddRequest,
    EvidenceResponse,
    ProjectResponse,
    ProjectSubmitRequest,
    ProjectUpdate,
)
from blue_carbon_registry.schemas.registry import Page
from blue_carbon_registry.services.project_service import ProjectService

router = APIRouter(prefix="/api/v1/projects", tags=["Projects"])


@router.get(
    "",
    response_model=Page[ProjectResponse],
    summary="List projects",
)
async def list_projects(
    status: str | None = None,
    ecosystem_type: str | None = None,
    submitter_id: uuid.UUID | None = None,
    search: str | None = Query(default=None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> Page[ProjectResponse]:
    """List projects, newest first, with optional filters."""
    projects, total = await ProjectService(session).list_projects(
        status=status,
        ecosystem_type=ecosystem_type,
        submitter_id=submitter_id,
        search=search,
        page=page,
        limit=limit,
    )
    return Page[ProjectResponse](
        items=[ProjectResponse.model_validate(p) for p in projects],
        total=total,
        page=page,
        limit=limit,
    )


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=201,
    summary="Submit a project",
)
async def submit_project(
    request: ProjectSubmitRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> ProjectResponse:
    """Submit a project for verification. Starts in PENDING."""
    project = await ProjectService(session).submit(
        principal,
        request.model_dump(exclude={"evidence_refs"}),
        request.evidence_refs,
    )
    return ProjectResponse.model_validate(project)


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Get project details",
)
async def get_project(
    project_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> ProjectResponse:
    project = await ProjectService(session).get_project(project_id)
    return ProjectResponse.model_validate(project)


@router.put(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Edit a pending project",
)
async def update_project(
    project_id: uuid.UUID,
    request: ProjectUpdate,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> ProjectResponse:
    """Merge descriptive attributes. Submitter only, while PENDING."""
    project = await ProjectService(session).update(principal, project_id, request)
    return ProjectResponse.model_validate(project)


@router.delete(
    "/{project_id}",
    status_code=204,
    response_class=Response,
    summary="Delete a pending project",
)
async def delete_project(
    project_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    """Delete a project and its evidence. Submitter only, while PENDING."""
    await ProjectService(session).delete(principal, project_id)
    return Response(status_code=204)


@router.get(
    "/{project_id}/evidence",
    response_model=list[EvidenceResponse],
    summary="List project evidence",
)
async def get_evidence(
    project_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
    evidence_store: EvidenceStore = Depends(get_evidence_store),
) -> list[EvidenceResponse]:
    refs = await ProjectService(session, evidence_store).get_evidence(project_id)
    return [
        EvidenceResponse(ref=r.ref, url=r.url, size=r.size, filename=r.filename) for r in refs
    ]


@router.post(
    "/{project_id}/evidence",
    response_model=ProjectResponse,
    summary="Attach evidence",
)
async def add_evidence(
    project_id: uuid.UUID,
    request: EvidenceAddRequest,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_db_session),
) -> ProjectResponse:
    """Append evidence references. Submitter only, while PENDING."""
    project = await ProjectService(session).add_evidence(
        principal, project_id, request.refs, request.original_name
    )
    return ProjectResponse.model_validate(project)
