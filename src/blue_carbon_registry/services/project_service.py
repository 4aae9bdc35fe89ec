"""Project Service — submission, editing and verification of restoration projects.

This is the application layer that coordinates between:
    - Authorization policy (who may act)
    - Domain state machine (transition guard)
    - Repositories (data access)

Guards run in a fixed order for every operation: role-only checks, input
validation, existence, ownership, then lifecycle state.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from statemachine.exceptions import TransitionNotAllowed

from blue_carbon_registry.domain.enums import EcosystemType, Operation, ProjectStatus
from blue_carbon_registry.domain.exceptions import (
    ForbiddenError,
    InvalidStateError,
    ProjectNotFoundError,
)
from blue_carbon_registry.domain.policy import can_perform
from blue_carbon_registry.domain.ports import EvidenceRef
from blue_carbon_registry.domain.state_machine import ProjectStateMachine, validate_transition
from blue_carbon_registry.infrastructure.database.orm_models import EvidenceFile, Project
from blue_carbon_registry.infrastructure.database.repositories import ProjectRepository
from blue_carbon_registry.logging_config import get_logger
from blue_carbon_registry.schemas.project import (
    EvidenceAddRequest,
    ProjectCreate,
    ProjectUpdate,
    RejectProjectRequest,
    VerifyProjectRequest,
)
from blue_carbon_registry.services.validation import (
    page_window,
    parse_enum,
    parse_id,
    validate_input,
)

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from blue_carbon_registry.domain.ports import EvidenceStore, Principal

logger = get_logger(__name__)

DEFAULT_VERIFICATION_NOTE = "Project verified successfully"


class ProjectService:
    """Manages the project verification lifecycle."""

    def __init__(self, session: AsyncSession, evidence_store: EvidenceStore | None = None) -> None:
        self._session = session
        self._evidence_store = evidence_store
        self._project_repo = ProjectRepository(session)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(
        self,
        submitter: Principal,
        attributes: dict[str, Any] | ProjectCreate,
        evidence_refs: list[str],
    ) -> Project:
        """Create a project in PENDING with its initial evidence."""
        self._authorize(submitter, Operation.SUBMIT_PROJECT)
        data = validate_input(ProjectCreate, attributes)
        refs = validate_input(EvidenceAddRequest, {"refs": list(evidence_refs or [])}).refs

        project = Project(
            submitter_id=parse_id(submitter.id, "submitter id"),
            status=ProjectStatus.PENDING.value,
            evidence_files=[EvidenceFile(ref=ref, position=i) for i, ref in enumerate(refs)],
            **data.model_dump(mode="json"),
        )
        project = await self._project_repo.create(project)

        logger.info(
            "project.submitted",
            project_id=str(project.id),
            submitter_id=submitter.id,
            ecosystem=project.ecosystem_type,
            evidence=len(refs),
        )
        return project

    # ------------------------------------------------------------------
    # Pending-only mutation
    # ------------------------------------------------------------------

    async def update(
        self,
        actor: Principal,
        project_id: uuid.UUID | str,
        patch: dict[str, Any] | ProjectUpdate,
    ) -> Project:
        """Merge descriptive attributes into a PENDING project owned by ``actor``."""
        changes = validate_input(ProjectUpdate, patch).model_dump(mode="json", exclude_unset=True)
        project = await self._get_pending_owned(actor, project_id, Operation.UPDATE_PROJECT, "update")

        for field, value in changes.items():
            setattr(project, field, value)
        await self._project_repo.save(project)

        logger.info("project.updated", project_id=str(project.id), fields=sorted(changes))
        return project

    async def delete(self, actor: Principal, project_id: uuid.UUID | str) -> None:
        """Remove a PENDING project and its evidence."""
        project = await self._get_pending_owned(actor, project_id, Operation.DELETE_PROJECT, "delete")
        await self._project_repo.delete(project)
        logger.info("project.deleted", project_id=str(project_id), actor=actor.id)

    async def add_evidence(
        self,
        actor: Principal,
        project_id: uuid.UUID | str,
        refs: list[str],
        original_name: str | None = None,
    ) -> Project:
        """Append evidence references to a PENDING project."""
        request = validate_input(
            EvidenceAddRequest, {"refs": list(refs or []), "original_name": original_name}
        )
        project = await self._get_pending_owned(
            actor, project_id, Operation.ADD_EVIDENCE, "add_evidence"
        )
        await self._project_repo.add_evidence(project, request.refs, request.original_name)

        logger.info(
            "project.evidence_added",
            project_id=str(project.id),
            added=len(request.refs),
            total=len(project.evidence_files),
        )
        return project

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    async def verify(
        self,
        verifier: Principal,
        project_id: uuid.UUID | str,
        notes: str | None = None,
    ) -> Project:
        """Approve a PENDING project."""
        self._authorize(verifier, Operation.VERIFY_PROJECT)
        request = validate_input(VerifyProjectRequest, {"notes": notes})
        project = await self._get_project_or_raise(project_id, for_update=True)

        new_status = self._fire_transition(project, "verify")
        self._stamp_verification(project, verifier, request.notes or DEFAULT_VERIFICATION_NOTE)
        await self._project_repo.update_status(project, new_status)

        logger.info("project.verified", project_id=str(project.id), verifier_id=verifier.id)
        return project

    async def reject(
        self,
        verifier: Principal,
        project_id: uuid.UUID | str,
        notes: str,
    ) -> Project:
        """Reject a PENDING project. Notes explaining the decision are required."""
        self._authorize(verifier, Operation.REJECT_PROJECT)
        request = validate_input(RejectProjectRequest, {"notes": notes})
        project = await self._get_project_or_raise(project_id, for_update=True)

        new_status = self._fire_transition(project, "reject")
        self._stamp_verification(project, verifier, request.notes)
        await self._project_repo.update_status(project, new_status)

        logger.info("project.rejected", project_id=str(project.id), verifier_id=verifier.id)
        return project

    async def mark_credits_issued(self, project_id: uuid.UUID | str) -> Project:
        """Move a VERIFIED project to CREDITS_ISSUED. Only invoked by credit minting."""
        project = await self._get_project_or_raise(project_id, for_update=True)
        new_status = self._fire_transition(project, "issue_credits")
        await self._project_repo.update_status(project, new_status)

        logger.info("project.credits_issued", project_id=str(project.id))
        return project

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_project(self, project_id: uuid.UUID | str) -> Project:
        """Get a project or raise."""
        return await self._get_project_or_raise(project_id)

    async def list_projects(
        self,
        status: ProjectStatus | str | None = None,
        ecosystem_type: EcosystemType | str | None = None,
        submitter_id: uuid.UUID | str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Project], int]:
        """List projects, newest first, with optional filters."""
        offset, limit = page_window(page, limit)
        return await self._project_repo.list(
            status=parse_enum(ProjectStatus, status, "project status"),
            ecosystem_type=_ecosystem_value(ecosystem_type),
            submitter_id=parse_id(submitter_id, "submitter id") if submitter_id else None,
            search=search,
            offset=offset,
            limit=limit,
        )

    async def list_pending(
        self, actor: Principal, page: int = 1, limit: int = 10
    ) -> tuple[list[Project], int]:
        """Verification queue: PENDING projects, oldest first."""
        self._authorize(actor, Operation.LIST_PENDING)
        offset, limit = page_window(page, limit)
        return await self._project_repo.list(
            status=ProjectStatus.PENDING, offset=offset, limit=limit, oldest_first=True
        )

    async def get_evidence(self, project_id: uuid.UUID | str) -> list[EvidenceRef]:
        """Return a project's evidence references with retrieval URLs."""
        project = await self._get_project_or_raise(project_id)
        return [
            EvidenceRef(
                ref=item.ref,
                url=self._evidence_store.url_for(item.ref) if self._evidence_store else "",
                filename=item.original_name,
            )
            for item in project.evidence_files
        ]

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_project_or_raise(
        self, project_id: uuid.UUID | str, for_update: bool = False
    ) -> Project:
        project = await self._project_repo.get_by_id(
            parse_id(project_id, "project id"), for_update=for_update
        )
        if project is None:
            raise ProjectNotFoundError(str(project_id))
        return project

    async def _get_pending_owned(
        self,
        actor: Principal,
        project_id: uuid.UUID | str,
        operation: Operation,
        attempted: str,
    ) -> Project:
        project = await self._get_project_or_raise(project_id, for_update=True)
        self._authorize(actor, operation, project)
        if project.status != ProjectStatus.PENDING:
            raise InvalidStateError(project.status, attempted)
        return project

    @staticmethod
    def _authorize(actor: Principal, operation: Operation, entity: Any = None) -> None:
        if not can_perform(actor, operation, entity):
            logger.warning("project.forbidden", operation=operation.value, principal_id=actor.id)
            raise ForbiddenError(operation.value, actor.id)

    @staticmethod
    def _stamp_verification(project: Project, verifier: Principal, notes: str) -> None:
        project.verifier_id = parse_id(verifier.id, "verifier id")
        project.verification_timestamp = datetime.now(UTC)
        project.verification_notes = notes

    @staticmethod
    def _fire_transition(project: Project, event_name: str) -> ProjectStatus:
        """Validate a transition and return the resulting status.

        Raises InvalidStateError if the transition is illegal.
        """
        try:
            return ProjectStatus(validate_transition(ProjectStateMachine, project.status, event_name))
        except TransitionNotAllowed as err:
            raise InvalidStateError(project.status, event_name) from err


def _ecosystem_value(ecosystem_type: EcosystemType | str | None) -> str | None:
    parsed = parse_enum(EcosystemType, ecosystem_type, "ecosystem type")
    return parsed.value if parsed is not None else None
