"""Tests for CreditService: minting, transfer, retirement and the ledger."""

from __future__ import annotations

import json
import uuid
from unittest.mock import AsyncMock, patch

import pytest

from blue_carbon_registry.config import Settings
from blue_carbon_registry.domain.enums import (
    BURN_ADDRESS,
    CreditStatus,
    ProjectStatus,
    TransactionType,
    UserRole,
)
from blue_carbon_registry.domain.exceptions import (
    ChainError,
    ConcurrentModificationError,
    CreditNotFoundError,
    CreditsAlreadyIssuedError,
    ForbiddenError,
    InvalidStateError,
    ProjectNotFoundError,
    RecipientNotFoundError,
    ValidationError,
)
from blue_carbon_registry.domain.ports import Principal
from blue_carbon_registry.infrastructure.chain import SimulatedChainClient
from blue_carbon_registry.infrastructure.database.engine import Database
from blue_carbon_registry.infrastructure.evidence_store import LocalEvidenceStore
from blue_carbon_registry.services import CreditService, ProjectService

WALLET = "0x742d35Cc6634C0532925a3b844Bc9e7595f2bD18"


async def mint(
    db: Database,
    chain: SimulatedChainClient,
    settings: Settings,
    actor: Principal,
    project_id: object,
    **overrides: object,
):
    kwargs = {
        "project_id": project_id,
        "carbon_amount": 500,
        "vintage_year": 2024,
        "recipient_address": WALLET,
        **overrides,
    }
    async with db.session() as session:
        return await CreditService(session, chain, settings=settings).mint(actor, **kwargs)


class TestMint:
    @pytest.mark.asyncio
    async def test_mint_issues_active_credit(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        admin: Principal,
        community: Principal,
        verified_project: str,
    ) -> None:
        credit = await mint(db, chain, settings, admin, verified_project)

        assert credit.status == CreditStatus.ACTIVE
        assert credit.carbon_amount == 500
        assert credit.certification_standard == "VCS"
        assert str(credit.owner_id) == community.id
        assert credit.token_id == "0"
        assert [t.transaction_type for t in credit.transactions] == ["MINT"]
        assert credit.transactions[0].to_address == WALLET
        assert credit.transactions[0].from_address is None

        async with db.session() as session:
            project = await ProjectService(session).get_project(verified_project)
        assert project.status == ProjectStatus.CREDITS_ISSUED

    @pytest.mark.asyncio
    async def test_only_admin_mints(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        verifier: Principal,
        verified_project: str,
    ) -> None:
        with pytest.raises(ForbiddenError):
            await mint(db, chain, settings, verifier, verified_project)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "override",
        [
            {"carbon_amount": 0},
            {"carbon_amount": 1_000_001},
            {"vintage_year": 1999},
            {"vintage_year": 2031},
            {"recipient_address": "0x1234"},
        ],
    )
    async def test_invalid_input(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        admin: Principal,
        verified_project: str,
        override: dict,
    ) -> None:
        with pytest.raises(ValidationError):
            await mint(db, chain, settings, admin, verified_project, **override)

    @pytest.mark.asyncio
    async def test_oversized_amount_never_reaches_chain(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        admin: Principal,
        verified_project: str,
    ) -> None:
        with patch.object(chain, "mint_credit", AsyncMock()) as mint_credit:
            with pytest.raises(ValidationError):
                await mint(db, chain, settings, admin, verified_project, carbon_amount=2**31)
        mint_credit.assert_not_called()

        credit = await mint(db, chain, settings, admin, verified_project, carbon_amount=1_000_000)
        assert credit.carbon_amount == 1_000_000

    @pytest.mark.asyncio
    async def test_vintage_checked_before_existence(
        self, db: Database, chain: SimulatedChainClient, settings: Settings, admin: Principal
    ) -> None:
        with pytest.raises(ValidationError):
            await mint(db, chain, settings, admin, uuid.uuid4(), vintage_year=1980)

    @pytest.mark.asyncio
    async def test_unknown_project(
        self, db: Database, chain: SimulatedChainClient, settings: Settings, admin: Principal
    ) -> None:
        with pytest.raises(ProjectNotFoundError):
            await mint(db, chain, settings, admin, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_pending_project_is_invalid_state(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        admin: Principal,
        pending_project: str,
    ) -> None:
        with pytest.raises(InvalidStateError):
            await mint(db, chain, settings, admin, pending_project)

    @pytest.mark.asyncio
    async def test_second_mint_is_conflict(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        admin: Principal,
        verified_project: str,
        active_credit: str,
    ) -> None:
        with pytest.raises(CreditsAlreadyIssuedError):
            await mint(db, chain, settings, admin, verified_project)

    @pytest.mark.asyncio
    async def test_chain_failure_writes_nothing(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        admin: Principal,
        verified_project: str,
    ) -> None:
        with patch.object(
            chain, "mint_credit", AsyncMock(side_effect=ChainError("rpc unreachable"))
        ):
            with pytest.raises(ChainError):
                await mint(db, chain, settings, admin, verified_project)

        async with db.session() as session:
            project = await ProjectService(session).get_project(verified_project)
            txs, total = await CreditService(session, chain, settings=settings).list_transactions(
                admin
            )
        assert project.status == ProjectStatus.VERIFIED
        assert total == 0

    @pytest.mark.asyncio
    async def test_metadata_pinned_to_evidence_store(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        admin: Principal,
        verified_project: str,
        tmp_path,
    ) -> None:
        store = LocalEvidenceStore(tmp_path)
        async with db.session() as session:
            credit = await CreditService(session, chain, store, settings).mint(
                admin,
                project_id=verified_project,
                carbon_amount=250,
                vintage_year=2023,
                recipient_address=WALLET,
                certification_standard="Gold Standard",
            )

        assert credit.metadata_ref is not None
        document = json.loads(store.path_for(credit.metadata_ref).read_bytes())
        assert document["properties"]["project_id"] == verified_project
        assert {"trait_type": "Carbon Amount", "value": 250} in document["attributes"]


class TestTransfer:
    @pytest.mark.asyncio
    async def test_owner_transfers_to_registered_wallet(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        community: Principal,
        other_community: Principal,
        active_credit: str,
    ) -> None:
        async with db.session() as session:
            credit = await CreditService(session, chain, settings=settings).transfer(
                community, active_credit, other_community.wallet_address
            )

        assert credit.status == CreditStatus.TRANSFERRED
        assert str(credit.owner_id) == other_community.id
        entry = credit.transactions[-1]
        assert entry.transaction_type == TransactionType.TRANSFER
        assert entry.from_address == community.wallet_address
        assert entry.to_address == other_community.wallet_address

    @pytest.mark.asyncio
    async def test_transferred_credit_cannot_move_again(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        community: Principal,
        other_community: Principal,
        active_credit: str,
    ) -> None:
        async with db.session() as session:
            await CreditService(session, chain, settings=settings).transfer(
                community, active_credit, other_community.wallet_address
            )

        with pytest.raises(InvalidStateError):
            async with db.session() as session:
                await CreditService(session, chain, settings=settings).transfer(
                    other_community, active_credit, community.wallet_address
                )

    @pytest.mark.asyncio
    async def test_unregistered_recipient(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        community: Principal,
        active_credit: str,
    ) -> None:
        with pytest.raises(RecipientNotFoundError):
            async with db.session() as session:
                await CreditService(session, chain, settings=settings).transfer(
                    community, active_credit, WALLET
                )

    @pytest.mark.asyncio
    async def test_admin_cannot_transfer_others_credit(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        admin: Principal,
        other_community: Principal,
        active_credit: str,
    ) -> None:
        with pytest.raises(ForbiddenError):
            async with db.session() as session:
                await CreditService(session, chain, settings=settings).transfer(
                    admin, active_credit, other_community.wallet_address
                )

    @pytest.mark.asyncio
    async def test_unknown_credit(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        community: Principal,
    ) -> None:
        with pytest.raises(CreditNotFoundError):
            async with db.session() as session:
                await CreditService(session, chain, settings=settings).transfer(
                    community, uuid.uuid4(), WALLET
                )


class TestConcurrentModification:
    @pytest.mark.asyncio
    async def test_stale_credit_write_is_conflict(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        community: Principal,
        other_community: Principal,
        active_credit: str,
    ) -> None:
        with pytest.raises(ConcurrentModificationError) as exc_info:
            async with db.session() as session:
                svc = CreditService(session, chain, settings=settings)
                loaded = await svc.get_credit(active_credit)
                assert loaded.status == CreditStatus.ACTIVE

                async with db.session() as other_session:
                    await CreditService(other_session, chain, settings=settings).retire(
                        community, active_credit, "corporate neutrality pledge"
                    )

                await svc.transfer(community, active_credit, other_community.wallet_address)
        assert exc_info.value.code == "CONCURRENT_MODIFICATION"

        async with db.session() as session:
            credit = await CreditService(session, chain, settings=settings).get_credit(
                active_credit
            )
        assert credit.status == CreditStatus.RETIRED
        assert str(credit.owner_id) == community.id
        assert [t.transaction_type for t in credit.transactions] == ["MINT", "RETIRE"]


class TestRetire:
    @pytest.mark.asyncio
    async def test_owner_retires_to_burn_address(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        community: Principal,
        active_credit: str,
    ) -> None:
        async with db.session() as session:
            credit = await CreditService(session, chain, settings=settings).retire(
                community, active_credit, "corporate neutrality pledge"
            )

        assert credit.status == CreditStatus.RETIRED
        assert credit.retirement_reason == "corporate neutrality pledge"
        assert credit.retirement_date is not None
        assert [t.transaction_type for t in credit.transactions] == ["MINT", "RETIRE"]
        assert credit.transactions[-1].to_address == BURN_ADDRESS
        assert credit.transactions[-1].from_address == community.wallet_address

    @pytest.mark.asyncio
    async def test_admin_may_retire(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        admin: Principal,
        active_credit: str,
    ) -> None:
        async with db.session() as session:
            credit = await CreditService(session, chain, settings=settings).retire(
                admin, active_credit, "registry clean-up of dormant batch"
            )
        assert credit.status == CreditStatus.RETIRED

    @pytest.mark.asyncio
    async def test_new_owner_retires_transferred_credit(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        community: Principal,
        other_community: Principal,
        active_credit: str,
    ) -> None:
        async with db.session() as session:
            await CreditService(session, chain, settings=settings).transfer(
                community, active_credit, other_community.wallet_address
            )
        async with db.session() as session:
            credit = await CreditService(session, chain, settings=settings).retire(
                other_community, active_credit, "offsetting 2024 fleet emissions"
            )

        assert [t.transaction_type for t in credit.transactions] == ["MINT", "TRANSFER", "RETIRE"]

    @pytest.mark.asyncio
    async def test_retire_twice_is_invalid_state(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        community: Principal,
        active_credit: str,
    ) -> None:
        async with db.session() as session:
            await CreditService(session, chain, settings=settings).retire(
                community, active_credit, "corporate neutrality pledge"
            )

        with pytest.raises(InvalidStateError):
            async with db.session() as session:
                await CreditService(session, chain, settings=settings).retire(
                    community, active_credit, "corporate neutrality pledge"
                )

    @pytest.mark.asyncio
    async def test_short_reason(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        community: Principal,
        active_credit: str,
    ) -> None:
        with pytest.raises(ValidationError):
            async with db.session() as session:
                await CreditService(session, chain, settings=settings).retire(
                    community, active_credit, "offset"
                )

    @pytest.mark.asyncio
    async def test_stranger_cannot_retire(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        verifier: Principal,
        active_credit: str,
    ) -> None:
        with pytest.raises(ForbiddenError):
            async with db.session() as session:
                await CreditService(session, chain, settings=settings).retire(
                    verifier, active_credit, "corporate neutrality pledge"
                )


class TestLedgerViews:
    @pytest.mark.asyncio
    async def test_admin_sees_all_owner_sees_own(
        self,
        db: Database,
        chain: SimulatedChainClient,
        settings: Settings,
        make_principal,
        admin: Principal,
        community: Principal,
        active_credit: str,
    ) -> None:
        stranger = await make_principal(UserRole.COMMUNITY)
        async with db.session() as session:
            svc = CreditService(session, chain, settings=settings)
            all_txs, all_total = await svc.list_transactions(admin)
            own_txs, own_total = await svc.list_transactions(community)
            _, stranger_total = await svc.list_transactions(stranger)
            mints, _ = await svc.list_transactions(admin, transaction_type="MINT")
            owned = await svc.credits_by_owner(community.id)

        assert all_total == own_total == 1
        assert stranger_total == 0
        assert [t.transaction_type for t in mints] == ["MINT"]
        assert [str(c.id) for c in owned] == [active_credit]

    @pytest.mark.asyncio
    async def test_unknown_transaction_type(
        self, db: Database, chain: SimulatedChainClient, settings: Settings, admin: Principal
    ) -> None:
        with pytest.raises(ValidationError):
            async with db.session() as session:
                await CreditService(session, chain, settings=settings).list_transactions(
                    admin, transaction_type="BURN"
                )
