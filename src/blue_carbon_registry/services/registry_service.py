"""Registry Service — read-only public views over verified projects and issued credits."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from blue_carbon_registry.domain.enums import (
    PUBLIC_PROJECT_STATUSES,
    CreditStatus,
    EcosystemType,
    ProjectStatus,
)
from blue_carbon_registry.domain.exceptions import ValidationError
from blue_carbon_registry.infrastructure.database.repositories import (
    CreditRepository,
    ProjectRepository,
)
from blue_carbon_registry.schemas.project import ProjectResponse
from blue_carbon_registry.schemas.registry import EcosystemStats, RegistryStats
from blue_carbon_registry.services.validation import page_window, parse_enum

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from blue_carbon_registry.infrastructure.database.orm_models import (
        CarbonCredit,
        Project,
    )

RECENT_PROJECTS = 5
ECOSYSTEM_PROJECTS = 10


class RegistryService:
    """Public registry listings and statistics."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._project_repo = ProjectRepository(session)
        self._credit_repo = CreditRepository(session)

    async def public_projects(
        self,
        ecosystem_type: EcosystemType | str | None = None,
        page: int = 1,
        limit: int = 12,
    ) -> tuple[list[Project], int]:
        """Verified and credit-issued projects, newest first."""
        offset, limit = page_window(page, limit)
        ecosystem = parse_enum(EcosystemType, ecosystem_type, "ecosystem type")
        return await self._project_repo.list(
            statuses=PUBLIC_PROJECT_STATUSES,
            ecosystem_type=ecosystem.value if ecosystem else None,
            offset=offset,
            limit=limit,
        )

    async def public_credits(
        self,
        status: CreditStatus | str | None = CreditStatus.ACTIVE,
        ecosystem_type: EcosystemType | str | None = None,
        page: int = 1,
        limit: int = 12,
    ) -> tuple[list[CarbonCredit], int]:
        """Issued credit batches, newest first."""
        offset, limit = page_window(page, limit)
        ecosystem = parse_enum(EcosystemType, ecosystem_type, "ecosystem type")
        return await self._credit_repo.list(
            status=parse_enum(CreditStatus, status, "credit status"),
            ecosystem_type=ecosystem.value if ecosystem else None,
            offset=offset,
            limit=limit,
        )

    async def stats(self) -> RegistryStats:
        """Registry-wide totals."""
        by_status = await self._project_repo.count_by_status()
        credits = await self._credit_repo.totals_by_status()

        verified = sum(by_status.get(s.value, 0) for s in PUBLIC_PROJECT_STATUSES)
        total_carbon_issued = sum(amount for _, amount in credits.values())
        retired_count, retired_amount = credits.get(CreditStatus.RETIRED.value, (0, 0))
        recent = await self._project_repo.recently_verified(
            PUBLIC_PROJECT_STATUSES, limit=RECENT_PROJECTS
        )

        return RegistryStats(
            total_projects=sum(by_status.values()),
            verified_projects=verified,
            pending_projects=by_status.get(ProjectStatus.PENDING.value, 0),
            total_credits=sum(count for count, _ in credits.values()),
            active_credits=credits.get(CreditStatus.ACTIVE.value, (0, 0))[0],
            retired_credits=retired_count,
            total_carbon_issued=total_carbon_issued,
            total_carbon_retired=retired_amount,
            average_carbon_per_project=_ratio(total_carbon_issued, verified),
            ecosystem_distribution=await self._project_repo.ecosystem_distribution(
                PUBLIC_PROJECT_STATUSES
            ),
            recent_projects=[ProjectResponse.model_validate(p) for p in recent],
            last_updated=datetime.now(UTC),
        )

    async def ecosystem_stats(self, ecosystem_type: EcosystemType | str) -> EcosystemStats:
        """Totals for one ecosystem across public projects."""
        ecosystem = parse_enum(EcosystemType, ecosystem_type, "ecosystem type")
        if ecosystem is None:
            raise ValidationError("ecosystem type is required")

        count, capture, area = await self._project_repo.ecosystem_totals(
            ecosystem.value, PUBLIC_PROJECT_STATUSES
        )
        projects = await self._project_repo.recently_verified(
            PUBLIC_PROJECT_STATUSES, ecosystem_type=ecosystem.value, limit=ECOSYSTEM_PROJECTS
        )
        return EcosystemStats(
            ecosystem_type=ecosystem.value,
            project_count=count,
            total_carbon_capture=capture,
            total_area=area,
            average_area=_ratio(area, count),
            average_carbon_per_hectare=_ratio(capture, area),
            projects=[ProjectResponse.model_validate(p) for p in projects],
        )


def _ratio(numerator: int, denominator: int) -> float:
    return round(numerator / denominator, 2) if denominator else 0.0
