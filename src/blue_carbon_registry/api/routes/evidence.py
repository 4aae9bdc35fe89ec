"""Evidence upload routes.

The raw upload body is the file content; its ``Content-Type`` must be on the
configured allowlist and the optional ``X-Filename`` header names it. Bodies
are read in chunks and refused once they pass ``EVIDENCE_MAX_BYTES``. The
response carries the content-addressed reference to pass in
``evidence_refs`` when submitting a project.

Routes:
    POST   /api/v1/evidence          — Store a file and return its reference
    POST   /api/v1/evidence/geojson  — Store site boundaries as a GeoJSON document
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Request

from blue_carbon_registry.api.deps import (
    get_app_settings,
    get_current_principal,
    get_evidence_store,
)
from blue_carbon_registry.config import Settings
from blue_carbon_registry.domain.ports import EvidenceStore, Principal
from blue_carbon_registry.schemas.project import EvidenceResponse, GeoJSONUploadRequest
from blue_carbon_registry.services.evidence_service import EvidenceService

router = APIRouter(prefix="/api/v1/evidence", tags=["Evidence"])


async def read_limited(request: Request, svc: EvidenceService) -> bytes:
    """Read the request body, stopping as soon as it exceeds the size limit."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit():
        svc.check_size(int(declared))

    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        svc.check_size(received)
        chunks.append(chunk)
    return b"".join(chunks)


@router.post(
    "",
    response_model=EvidenceResponse,
    status_code=201,
    summary="Upload an evidence file",
)
async def upload_evidence(
    request: Request,
    x_filename: str | None = Header(default=None, max_length=255),
    principal: Principal = Depends(get_current_principal),
    evidence_store: EvidenceStore = Depends(get_evidence_store),
    settings: Settings = Depends(get_app_settings),
) -> EvidenceResponse:
    svc = EvidenceService(evidence_store, settings)
    content_type = request.headers.get("content-type")
    svc.check_content_type(content_type)
    content = await read_limited(request, svc)
    ref = await svc.upload(principal, content, content_type, filename=x_filename)
    return EvidenceResponse(ref=ref.ref, url=ref.url, size=ref.size, filename=ref.filename)


@router.post(
    "/geojson",
    response_model=EvidenceResponse,
    status_code=201,
    summary="Upload project site boundaries",
)
async def upload_geojson(
    request: GeoJSONUploadRequest,
    principal: Principal = Depends(get_current_principal),
    evidence_store: EvidenceStore = Depends(get_evidence_store),
    settings: Settings = Depends(get_app_settings),
) -> EvidenceResponse:
    svc = EvidenceService(evidence_store, settings)
    ref = await svc.upload_geojson(principal, request.geo_json, request.project_name)
    return EvidenceResponse(ref=ref.ref, url=ref.url, size=ref.size, filename=ref.filename)
