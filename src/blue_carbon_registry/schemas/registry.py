"""Pydantic schemas for paged listings, registry statistics and health."""

from __future__ import annotations

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from blue_carbon_registry.schemas.project import ProjectResponse

ItemT = TypeVar("ItemT")


class Page(BaseModel, Generic[ItemT]):
    """One page of a listing."""

    items: list[ItemT]
    total: int
    page: int
    limit: int


class RegistryStats(BaseModel):
    """Registry-wide totals."""

    total_projects: int
    verified_projects: int
    pending_projects: int
    total_credits: int
    active_credits: int
    retired_credits: int
    total_carbon_issued: int
    total_carbon_retired: int
    average_carbon_per_project: float
    ecosystem_distribution: dict[str, int]
    recent_projects: list[ProjectResponse]
    last_updated: datetime


class EcosystemStats(BaseModel):
    """Totals for one ecosystem type across public projects."""

    ecosystem_type: str
    project_count: int
    total_carbon_capture: int
    total_area: int
    average_area: float
    average_carbon_per_hectare: float
    projects: list[ProjectResponse] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    database: str = "unknown"
    redis: str = "unknown"
    chain: str = "unknown"
