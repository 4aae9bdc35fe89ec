"""Repository classes for database access.

Repositories encapsulate all SQL queries and provide a clean interface
to the service layer. They accept an AsyncSession and never manage
their own transactions (that's the caller's responsibility).

Flushes translate store-level failures into domain errors:
    - StaleDataError (version mismatch)    -> ConcurrentModificationError
    - IntegrityError on carbon_credits     -> CreditsAlreadyIssuedError
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from blue_carbon_registry.domain.exceptions import (
    ConcurrentModificationError,
    CreditsAlreadyIssuedError,
    DuplicateIdentityError,
)
from blue_carbon_registry.infrastructure.database.orm_models import (
    CarbonCredit,
    CreditTransaction,
    EvidenceFile,
    Project,
    User,
)

if TYPE_CHECKING:
    import uuid

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

    from blue_carbon_registry.domain.enums import (
        CreditStatus,
        ProjectStatus,
        TransactionType,
        UserRole,
    )


async def _flush(session: AsyncSession, entity: str) -> None:
    try:
        await session.flush()
    except StaleDataError as err:
        raise ConcurrentModificationError(entity) from err


async def _paginate(
    session: AsyncSession, stmt: Select, offset: int, limit: int
) -> tuple[list, int]:
    """Run a select with offset/limit and return (rows, total_count)."""
    total = await session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))
    result = await session.execute(stmt.offset(offset).limit(limit))
    return list(result.scalars().all()), int(total or 0)


class UserRepository:
    """Data access for registered users."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, user: User) -> User:
        """Insert a new user.

        Raises DuplicateIdentityError when a concurrent registration claimed
        the same email or wallet address first.
        """
        self._session.add(user)
        try:
            await self._session.flush()
        except IntegrityError as err:
            raise DuplicateIdentityError("email or wallet address", user.email) from err
        return user

    async def get_by_id(self, user_id: uuid.UUID) -> User | None:
        result = await self._session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        result = await self._session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_wallet(self, wallet_address: str) -> User | None:
        result = await self._session.execute(
            select(User).where(User.wallet_address == wallet_address)
        )
        return result.scalar_one_or_none()

    async def list(
        self, role: UserRole | None = None, offset: int = 0, limit: int = 20
    ) -> tuple[list[User], int]:
        """Fetch users, newest first, optionally filtered by role."""
        stmt = select(User).order_by(User.created_at.desc())
        if role is not None:
            stmt = stmt.where(User.role == role.value)
        return await _paginate(self._session, stmt, offset, limit)


class ProjectRepository:
    """Data access for restoration projects and their evidence."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, project: Project) -> Project:
        """Insert a new project (and any evidence attached to it)."""
        self._session.add(project)
        await _flush(self._session, "Project")
        return project

    async def get_by_id(self, project_id: uuid.UUID, for_update: bool = False) -> Project | None:
        """Fetch a project by its UUID.

        With ``for_update`` the row is locked for the rest of the transaction
        on backends that support SELECT ... FOR UPDATE.
        """
        stmt = select(Project).where(Project.id == project_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list(
        self,
        status: ProjectStatus | None = None,
        statuses: tuple[ProjectStatus, ...] | None = None,
        ecosystem_type: str | None = None,
        submitter_id: uuid.UUID | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 10,
        oldest_first: bool = False,
    ) -> tuple[list[Project], int]:
        """Fetch projects matching the given filters."""
        order = (
            Project.submission_timestamp.asc()
            if oldest_first
            else Project.submission_timestamp.desc()
        )
        stmt = select(Project).order_by(order)
        if status is not None:
            stmt = stmt.where(Project.status == status.value)
        if statuses:
            stmt = stmt.where(Project.status.in_([s.value for s in statuses]))
        if ecosystem_type is not None:
            stmt = stmt.where(Project.ecosystem_type == ecosystem_type)
        if submitter_id is not None:
            stmt = stmt.where(Project.submitter_id == submitter_id)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    Project.name.ilike(pattern),
                    Project.description.ilike(pattern),
                    Project.location.ilike(pattern),
                )
            )
        return await _paginate(self._session, stmt, offset, limit)

    async def recently_verified(
        self,
        statuses: tuple[ProjectStatus, ...],
        ecosystem_type: str | None = None,
        limit: int = 5,
    ) -> list[Project]:
        """Fetch the most recently verified projects among ``statuses``."""
        stmt = (
            select(Project)
            .where(Project.status.in_([s.value for s in statuses]))
            .order_by(Project.verification_timestamp.desc())
            .limit(limit)
        )
        if ecosystem_type is not None:
            stmt = stmt.where(Project.ecosystem_type == ecosystem_type)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_status(self) -> dict[str, int]:
        """Return the number of projects in each status."""
        result = await self._session.execute(
            select(Project.status, func.count()).group_by(Project.status)
        )
        return {status: int(count) for status, count in result.all()}

    async def ecosystem_distribution(self, statuses: tuple[ProjectStatus, ...]) -> dict[str, int]:
        """Return project counts per ecosystem among ``statuses``."""
        result = await self._session.execute(
            select(Project.ecosystem_type, func.count())
            .where(Project.status.in_([s.value for s in statuses]))
            .group_by(Project.ecosystem_type)
        )
        return {ecosystem: int(count) for ecosystem, count in result.all()}

    async def ecosystem_totals(
        self, ecosystem_type: str, statuses: tuple[ProjectStatus, ...]
    ) -> tuple[int, int, int]:
        """Return (project_count, total_carbon_capture, total_area) for one ecosystem."""
        result = await self._session.execute(
            select(
                func.count(),
                func.coalesce(func.sum(Project.estimated_carbon_capture), 0),
                func.coalesce(func.sum(Project.area_size), 0),
            ).where(
                Project.ecosystem_type == ecosystem_type,
                Project.status.in_([s.value for s in statuses]),
            )
        )
        count, capture, area = result.one()
        return int(count), int(capture), int(area)

    async def update_status(self, project: Project, new_status: ProjectStatus) -> Project:
        """Update the status of a project (call AFTER state machine validation)."""
        project.status = new_status.value
        await _flush(self._session, "Project")
        return project

    async def save(self, project: Project) -> Project:
        """Flush pending attribute changes on a project."""
        await _flush(self._session, "Project")
        return project

    async def delete(self, project: Project) -> None:
        """Remove a project; evidence rows cascade."""
        await self._session.delete(project)
        await _flush(self._session, "Project")

    async def add_evidence(
        self, project: Project, refs: list[str], original_name: str | None = None
    ) -> list[EvidenceFile]:
        """Append evidence references in order."""
        start = len(project.evidence_files)
        files = [
            EvidenceFile(ref=ref, position=start + i, original_name=original_name)
            for i, ref in enumerate(refs)
        ]
        project.evidence_files.extend(files)
        await _flush(self._session, "Project")
        return files


class CreditRepository:
    """Data access for carbon credit batches."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, credit: CarbonCredit) -> CarbonCredit:
        """Insert a new credit batch.

        Raises CreditsAlreadyIssuedError when another transaction minted for
        the same project first.
        """
        self._session.add(credit)
        try:
            await self._session.flush()
        except IntegrityError as err:
            raise CreditsAlreadyIssuedError(str(credit.project_id)) from err
        return credit

    async def get_by_id(self, credit_id: uuid.UUID, for_update: bool = False) -> CarbonCredit | None:
        stmt = select(CarbonCredit).where(CarbonCredit.id == credit_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_project(self, project_id: uuid.UUID) -> CarbonCredit | None:
        result = await self._session.execute(
            select(CarbonCredit).where(CarbonCredit.project_id == project_id)
        )
        return result.scalar_one_or_none()

    async def get_by_owner(self, owner_id: uuid.UUID) -> list[CarbonCredit]:
        """Fetch all credits held by a user, newest first."""
        result = await self._session.execute(
            select(CarbonCredit)
            .where(CarbonCredit.owner_id == owner_id)
            .order_by(CarbonCredit.issuance_date.desc())
        )
        return list(result.scalars().all())

    async def list(
        self,
        status: CreditStatus | None = None,
        ecosystem_type: str | None = None,
        offset: int = 0,
        limit: int = 12,
    ) -> tuple[list[CarbonCredit], int]:
        """Fetch credits, newest first, optionally filtered."""
        stmt = select(CarbonCredit).order_by(CarbonCredit.issuance_date.desc())
        if status is not None:
            stmt = stmt.where(CarbonCredit.status == status.value)
        if ecosystem_type is not None:
            stmt = stmt.join(Project, Project.id == CarbonCredit.project_id).where(
                Project.ecosystem_type == ecosystem_type
            )
        return await _paginate(self._session, stmt, offset, limit)

    async def totals_by_status(self) -> dict[str, tuple[int, int]]:
        """Return {status: (credit_count, carbon_amount_sum)}."""
        result = await self._session.execute(
            select(
                CarbonCredit.status,
                func.count(),
                func.coalesce(func.sum(CarbonCredit.carbon_amount), 0),
            ).group_by(CarbonCredit.status)
        )
        return {status: (int(count), int(amount)) for status, count, amount in result.all()}

    async def save(self, credit: CarbonCredit) -> CarbonCredit:
        """Flush pending attribute changes on a credit."""
        await _flush(self._session, "CarbonCredit")
        return credit


class TransactionRepository:
    """Data access for the append-only credit ledger."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(
        self,
        credit: CarbonCredit,
        transaction_type: TransactionType,
        to_address: str,
        transaction_hash: str,
        from_address: str | None = None,
    ) -> CreditTransaction:
        """Append a new ledger entry. This is the ONLY write operation allowed."""
        tx = CreditTransaction(
            credit_id=credit.id,
            from_address=from_address,
            to_address=to_address,
            transaction_hash=transaction_hash,
            transaction_type=transaction_type.value,
        )
        credit.transactions.append(tx)
        self._session.add(tx)
        await _flush(self._session, "CarbonCredit")
        return tx

    async def list(
        self,
        transaction_type: TransactionType | None = None,
        owner_id: uuid.UUID | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[CreditTransaction], int]:
        """Fetch ledger entries, newest first.

        With ``owner_id`` only entries of credits currently held by that user
        are returned.
        """
        stmt = select(CreditTransaction).order_by(CreditTransaction.timestamp.desc())
        if transaction_type is not None:
            stmt = stmt.where(CreditTransaction.transaction_type == transaction_type.value)
        if owner_id is not None:
            owned = select(CarbonCredit.id).where(CarbonCredit.owner_id == owner_id)
            stmt = stmt.where(CreditTransaction.credit_id.in_(owned))
        return await _paginate(self._session, stmt, offset, limit)
