"""Pydantic schemas for projects, evidence and verification.

Request models double as the service layer's input validators, so the same
bounds apply whether a call arrives over HTTP or from the simulation.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from blue_carbon_registry.domain.enums import EcosystemType

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class ProjectCreate(BaseModel):
    """Descriptive attributes of a new project."""

    name: str = Field(..., min_length=3, max_length=200, examples=["Sundarbans Mangrove Revival"])
    description: str = Field(..., min_length=10, max_length=2000)
    ecosystem_type: EcosystemType
    location: str = Field(..., min_length=5, max_length=500, examples=["West Bengal, India"])
    estimated_carbon_capture: int = Field(
        ..., ge=1, le=1_000_000, description="Estimated capture in tons CO2"
    )
    area_size: int = Field(..., ge=1, le=1_000_000, description="Area in hectares")
    coordinates: dict | None = Field(default=None, description="GeoJSON geometry")
    geo_json_hash: str | None = Field(default=None, min_length=10, max_length=128)


class ProjectSubmitRequest(ProjectCreate):
    """Request body for submitting a project with its initial evidence."""

    evidence_refs: list[str] = Field(
        ...,
        min_length=1,
        description="Evidence-store references returned by POST /api/v1/evidence",
    )


class ProjectUpdate(BaseModel):
    """Partial update of descriptive attributes. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None, min_length=10, max_length=2000)
    ecosystem_type: EcosystemType | None = None
    location: str | None = Field(default=None, min_length=5, max_length=500)
    estimated_carbon_capture: int | None = Field(default=None, ge=1, le=1_000_000)
    area_size: int | None = Field(default=None, ge=1, le=1_000_000)
    coordinates: dict | None = None
    geo_json_hash: str | None = Field(default=None, min_length=10, max_length=128)

    @model_validator(mode="after")
    def _required_fields_not_null(self) -> ProjectUpdate:
        nullable = {"coordinates", "geo_json_hash"}
        for field in self.model_fields_set - nullable:
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class EvidenceAddRequest(BaseModel):
    """Request body for appending evidence to a pending project."""

    refs: list[str] = Field(..., min_length=1)
    original_name: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def _refs_well_formed(self) -> EvidenceAddRequest:
        for ref in self.refs:
            if not ref or len(ref) > 128:
                raise ValueError("evidence references must be 1-128 characters")
        return self


class VerifyProjectRequest(BaseModel):
    """Request body for approving a project."""

    notes: str | None = Field(default=None, max_length=1000)


class RejectProjectRequest(BaseModel):
    """Request body for rejecting a project. Notes are mandatory."""

    notes: str = Field(..., min_length=10, max_length=1000)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class EvidenceFileResponse(BaseModel):
    """An evidence reference as stored on a project."""

    model_config = ConfigDict(from_attributes=True)

    ref: str
    position: int
    original_name: str | None
    upload_timestamp: datetime


class GeoJSONUploadRequest(BaseModel):
    """Request body for uploading a project's site boundaries."""

    geo_json: dict[str, Any] | str = Field(..., description="GeoJSON object or its JSON text")
    project_name: str | None = Field(default=None, max_length=200)


class EvidenceResponse(BaseModel):
    """An evidence reference with its retrieval URL."""

    ref: str
    url: str
    size: int = 0
    filename: str | None = None


class ProjectResponse(BaseModel):
    """Response schema for a project."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    submitter_id: uuid.UUID
    name: str
    description: str
    ecosystem_type: str
    location: str
    estimated_carbon_capture: int
    area_size: int
    coordinates: dict | None
    geo_json_hash: str | None
    status: str
    verifier_id: uuid.UUID | None
    verification_timestamp: datetime | None
    verification_notes: str | None
    evidence_files: list[EvidenceFileResponse]
    submission_timestamp: datetime
    updated_at: datetime
