"""Credit Service — minting, transfer and retirement of carbon credit batches.

Coordinates between:
    - Authorization policy and state machines (guards)
    - ChainClient (transaction hashes and token ids)
    - EvidenceStore (credit metadata document, optional)
    - Repositories (credit rows and the append-only ledger)

Every successful operation appends exactly one ledger entry of the matching
type. The chain is called after all guards pass and before any row is
written, so a chain failure leaves the registry untouched.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from statemachine.exceptions import TransitionNotAllowed

from blue_carbon_registry.config import get_settings
from blue_carbon_registry.domain.enums import (
    BURN_ADDRESS,
    CreditStatus,
    Operation,
    TransactionType,
)
from blue_carbon_registry.domain.exceptions import (
    CreditNotFoundError,
    CreditsAlreadyIssuedError,
    ForbiddenError,
    InvalidStateError,
    ProjectNotFoundError,
    RecipientNotFoundError,
    ValidationError,
)
from blue_carbon_registry.domain.policy import can_perform
from blue_carbon_registry.domain.state_machine import (
    CreditStateMachine,
    ProjectStateMachine,
    validate_transition,
)
from blue_carbon_registry.infrastructure.database.orm_models import CarbonCredit
from blue_carbon_registry.infrastructure.database.repositories import (
    CreditRepository,
    ProjectRepository,
    TransactionRepository,
    UserRepository,
)
from blue_carbon_registry.logging_config import get_logger
from blue_carbon_registry.schemas.credit import (
    MintCreditsRequest,
    RetireCreditRequest,
    TransferCreditRequest,
)
from blue_carbon_registry.services.project_service import ProjectService
from blue_carbon_registry.services.validation import (
    page_window,
    parse_enum,
    parse_id,
    validate_input,
)

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from blue_carbon_registry.config import Settings
    from blue_carbon_registry.domain.ports import ChainClient, EvidenceStore, Principal
    from blue_carbon_registry.infrastructure.database.orm_models import (
        CreditTransaction,
        Project,
    )

logger = get_logger(__name__)


class CreditService:
    """Manages the carbon credit lifecycle."""

    def __init__(
        self,
        session: AsyncSession,
        chain_client: ChainClient,
        evidence_store: EvidenceStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._session = session
        self._chain = chain_client
        self._evidence_store = evidence_store
        self._settings = settings or get_settings()
        self._credit_repo = CreditRepository(session)
        self._project_repo = ProjectRepository(session)
        self._tx_repo = TransactionRepository(session)
        self._user_repo = UserRepository(session)

    # ------------------------------------------------------------------
    # Minting
    # ------------------------------------------------------------------

    async def mint(
        self,
        actor: Principal,
        project_id: uuid.UUID | str,
        carbon_amount: int,
        vintage_year: int,
        recipient_address: str,
        certification_standard: str | None = None,
    ) -> CarbonCredit:
        """Issue the single credit batch of a VERIFIED project.

        The batch is owned by the project's submitter; ``recipient_address``
        is the wallet the chain token is minted to.
        """
        self._authorize(actor, Operation.MINT_CREDITS)
        request = validate_input(
            MintCreditsRequest,
            {
                "project_id": str(project_id),
                "carbon_amount": carbon_amount,
                "vintage_year": vintage_year,
                "recipient_address": recipient_address,
                "certification_standard": (
                    certification_standard or self._settings.default_certification_standard
                ),
            },
        )
        self._check_vintage(request.vintage_year)

        project = await self._project_repo.get_by_id(request.project_id, for_update=True)
        if project is None:
            raise ProjectNotFoundError(str(project_id))
        if await self._credit_repo.get_by_project(project.id) is not None:
            raise CreditsAlreadyIssuedError(str(project.id))
        self._require_project_event(project, "issue_credits")

        metadata_ref = await self._pin_metadata(project, request)
        receipt = await self._chain.mint_credit(
            recipient_address=request.recipient_address,
            project_id=str(project.id),
            carbon_amount=request.carbon_amount,
            vintage_year=request.vintage_year,
            certification_standard=request.certification_standard,
            metadata_ref=metadata_ref,
            project_location=project.location,
            ecosystem_type=project.ecosystem_type,
        )

        credit = CarbonCredit(
            project_id=project.id,
            owner_id=project.submitter_id,
            carbon_amount=request.carbon_amount,
            vintage_year=request.vintage_year,
            certification_standard=request.certification_standard,
            token_id=receipt.token_id,
            metadata_ref=metadata_ref,
            status=CreditStatus.ACTIVE.value,
            transactions=[],
        )
        credit = await self._credit_repo.create(credit)
        await self._tx_repo.record(
            credit,
            TransactionType.MINT,
            to_address=request.recipient_address,
            transaction_hash=receipt.transaction_hash,
        )
        await ProjectService(self._session, self._evidence_store).mark_credits_issued(project.id)

        logger.info(
            "credit.minted",
            credit_id=str(credit.id),
            project_id=str(project.id),
            amount=credit.carbon_amount,
            tx_hash=receipt.transaction_hash,
        )
        return credit

    # ------------------------------------------------------------------
    # Transfer
    # ------------------------------------------------------------------

    async def transfer(
        self,
        actor: Principal,
        credit_id: uuid.UUID | str,
        to_address: str,
    ) -> CarbonCredit:
        """Hand an ACTIVE batch to the registered user owning ``to_address``."""
        request = validate_input(
            TransferCreditRequest, {"credit_id": str(credit_id), "to_address": to_address}
        )
        credit = await self._get_credit_or_raise(request.credit_id, for_update=True)
        self._authorize(actor, Operation.TRANSFER_CREDIT, credit)
        new_status = self._fire_transition(credit, "transfer")

        recipient = await self._user_repo.get_by_wallet(request.to_address)
        if recipient is None:
            raise RecipientNotFoundError(request.to_address)

        from_address = actor.wallet_address
        receipt = await self._chain.transfer_credit(
            from_address=from_address,
            to_address=request.to_address,
            token_id=credit.token_id,
        )

        previous_owner = credit.owner_id
        credit.owner_id = recipient.id
        credit.status = new_status.value
        await self._credit_repo.save(credit)
        await self._tx_repo.record(
            credit,
            TransactionType.TRANSFER,
            to_address=request.to_address,
            transaction_hash=receipt.transaction_hash,
            from_address=from_address,
        )

        logger.info(
            "credit.transferred",
            credit_id=str(credit.id),
            from_owner=str(previous_owner),
            to_owner=str(recipient.id),
            tx_hash=receipt.transaction_hash,
        )
        return credit

    # ------------------------------------------------------------------
    # Retirement
    # ------------------------------------------------------------------

    async def retire(
        self,
        actor: Principal,
        credit_id: uuid.UUID | str,
        reason: str,
    ) -> CarbonCredit:
        """Permanently retire a batch; the ledger entry targets the burn address."""
        request = validate_input(
            RetireCreditRequest, {"credit_id": str(credit_id), "reason": reason}
        )
        credit = await self._get_credit_or_raise(request.credit_id, for_update=True)
        self._authorize(actor, Operation.RETIRE_CREDIT, credit)
        new_status = self._fire_transition(credit, "retire")

        holder = await self._user_repo.get_by_id(credit.owner_id)
        holder_address = holder.wallet_address if holder is not None else None
        receipt = await self._chain.retire_credit(
            holder_address=holder_address,
            token_id=credit.token_id,
            reason=request.reason,
        )

        credit.status = new_status.value
        credit.retirement_date = datetime.now(UTC)
        credit.retirement_reason = request.reason
        await self._credit_repo.save(credit)
        await self._tx_repo.record(
            credit,
            TransactionType.RETIRE,
            to_address=BURN_ADDRESS,
            transaction_hash=receipt.transaction_hash,
            from_address=holder_address,
        )

        logger.info(
            "credit.retired",
            credit_id=str(credit.id),
            actor=actor.id,
            amount=credit.carbon_amount,
            tx_hash=receipt.transaction_hash,
        )
        return credit

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_credit(self, credit_id: uuid.UUID | str) -> CarbonCredit:
        """Get a credit or raise."""
        return await self._get_credit_or_raise(parse_id(credit_id, "credit id"))

    async def list_transactions(
        self,
        actor: Principal,
        transaction_type: TransactionType | str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[CreditTransaction], int]:
        """Ledger entries visible to ``actor``.

        Admins see every entry; everyone else sees entries of credits they
        currently hold.
        """
        offset, limit = page_window(page, limit)
        owner_id = None
        if not can_perform(actor, Operation.VIEW_ALL_TRANSACTIONS):
            owner_id = parse_id(actor.id, "principal id")
        return await self._tx_repo.list(
            transaction_type=parse_enum(TransactionType, transaction_type, "transaction type"),
            owner_id=owner_id,
            offset=offset,
            limit=limit,
        )

    async def credits_by_owner(self, owner_id: uuid.UUID | str) -> list[CarbonCredit]:
        """All batches currently held by a user, newest first."""
        return await self._credit_repo.get_by_owner(parse_id(owner_id, "owner id"))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_credit_or_raise(
        self, credit_id: uuid.UUID, for_update: bool = False
    ) -> CarbonCredit:
        credit = await self._credit_repo.get_by_id(credit_id, for_update=for_update)
        if credit is None:
            raise CreditNotFoundError(str(credit_id))
        return credit

    def _check_vintage(self, vintage_year: int) -> None:
        low, high = self._settings.vintage_year_min, self._settings.vintage_year_max
        if not low <= vintage_year <= high:
            raise ValidationError(f"vintage_year must be between {low} and {high}")

    async def _pin_metadata(self, project: Project, request: MintCreditsRequest) -> str | None:
        """Store the credit's JSON metadata document, if an evidence store is configured."""
        if self._evidence_store is None:
            return None
        document = {
            "name": f"Blue Carbon Credit - {project.name}",
            "description": (
                f"Carbon credit from {project.ecosystem_type.lower()} restoration "
                f"project: {project.name}"
            ),
            "attributes": [
                {"trait_type": "Ecosystem Type", "value": project.ecosystem_type},
                {"trait_type": "Carbon Amount", "value": request.carbon_amount},
                {"trait_type": "Vintage Year", "value": request.vintage_year},
                {"trait_type": "Location", "value": project.location},
                {"trait_type": "Area Size", "value": project.area_size},
                {"trait_type": "Certification Standard", "value": request.certification_standard},
                {"trait_type": "Project ID", "value": str(project.id)},
            ],
            "properties": {
                "project_id": str(project.id),
                "coordinates": project.coordinates,
                "evidence_refs": [item.ref for item in project.evidence_files],
                "geo_json_hash": project.geo_json_hash,
                "verification_timestamp": (
                    project.verification_timestamp.isoformat()
                    if project.verification_timestamp
                    else None
                ),
                "verification_notes": project.verification_notes,
            },
        }
        content = json.dumps(document, indent=2, sort_keys=True).encode()
        ref = await self._evidence_store.put(content, filename="metadata.json")
        return ref.ref

    @staticmethod
    def _authorize(actor: Principal, operation: Operation, entity: Any = None) -> None:
        if not can_perform(actor, operation, entity):
            logger.warning("credit.forbidden", operation=operation.value, principal_id=actor.id)
            raise ForbiddenError(operation.value, actor.id)

    @staticmethod
    def _require_project_event(project: Project, event_name: str) -> None:
        try:
            validate_transition(ProjectStateMachine, project.status, event_name)
        except TransitionNotAllowed as err:
            raise InvalidStateError(project.status, "mint") from err

    @staticmethod
    def _fire_transition(credit: CarbonCredit, event_name: str) -> CreditStatus:
        """Validate a transition and return the resulting status.

        Raises InvalidStateError if the transition is illegal.
        """
        try:
            return CreditStatus(validate_transition(CreditStateMachine, credit.status, event_name))
        except TransitionNotAllowed as err:
            raise InvalidStateError(credit.status, event_name) from err
