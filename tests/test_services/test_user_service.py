"""Tests for UserService: registration and principal resolution."""

from __future__ import annotations

import uuid

import pytest

from blue_carbon_registry.domain.enums import UserRole
from blue_carbon_registry.domain.exceptions import (
    DuplicateIdentityError,
    ForbiddenError,
    UnauthenticatedError,
    UserNotFoundError,
    ValidationError,
)
from blue_carbon_registry.domain.ports import Principal
from blue_carbon_registry.infrastructure.database.engine import Database
from blue_carbon_registry.services.user_service import UserService

WALLET = "0x742d35Cc6634C0532925a3b844Bc9e7595f2bD18"


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_normalizes_email(self, db: Database) -> None:
        async with db.session() as session:
            user = await UserService(session).register(
                email="Mira.Das@Example.org",
                name="Mira Das",
                organization="Sundarbans Collective",
                role="VERIFIER",
                wallet_address=WALLET,
            )
        assert user.email == "mira.das@example.org"
        assert user.role == UserRole.VERIFIER
        assert user.wallet_address == WALLET

    @pytest.mark.asyncio
    async def test_duplicate_email_case_insensitive(self, db: Database) -> None:
        async with db.session() as session:
            await UserService(session).register(email="mira@example.org", name="Mira")

        with pytest.raises(DuplicateIdentityError):
            async with db.session() as session:
                await UserService(session).register(email="MIRA@example.org", name="Mira Two")

    @pytest.mark.asyncio
    async def test_duplicate_wallet(self, db: Database) -> None:
        async with db.session() as session:
            await UserService(session).register(
                email="a@example.org", name="Anil", wallet_address=WALLET
            )

        with pytest.raises(DuplicateIdentityError) as exc_info:
            async with db.session() as session:
                await UserService(session).register(
                    email="b@example.org", name="Bela", wallet_address=WALLET
                )
        assert exc_info.value.field == "wallet address"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"email": "not-an-email", "name": "Mira"},
            {"email": "mira@example.org", "name": "M"},
            {"email": "mira@example.org", "name": "Mira", "role": "SUPERUSER"},
            {"email": "mira@example.org", "name": "Mira", "wallet_address": "0xabc"},
        ],
    )
    async def test_invalid_registration(self, db: Database, kwargs: dict) -> None:
        with pytest.raises(ValidationError):
            async with db.session() as session:
                await UserService(session).register(**kwargs)


class TestLookup:
    @pytest.mark.asyncio
    async def test_list_users_admin_only(
        self, db: Database, admin: Principal, community: Principal
    ) -> None:
        async with db.session() as session:
            users, total = await UserService(session).list_users(admin)
            admins, _ = await UserService(session).list_users(admin, role="ADMIN")
        assert total == 2
        assert [str(u.id) for u in admins] == [admin.id]

        with pytest.raises(ForbiddenError):
            async with db.session() as session:
                await UserService(session).list_users(community)

    @pytest.mark.asyncio
    async def test_get_unknown_user(self, db: Database) -> None:
        with pytest.raises(UserNotFoundError):
            async with db.session() as session:
                await UserService(session).get_user(uuid.uuid4())


class TestResolvePrincipal:
    @pytest.mark.asyncio
    async def test_resolves_registered_user(self, db: Database, verifier: Principal) -> None:
        async with db.session() as session:
            principal = await UserService(session).resolve_principal(verifier.id)
        assert principal == verifier
        assert principal.role is UserRole.VERIFIER

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", [None, "", "not-a-uuid", str(uuid.uuid4())])
    async def test_unresolvable(self, db: Database, user_id: str | None) -> None:
        with pytest.raises(UnauthenticatedError):
            async with db.session() as session:
                await UserService(session).resolve_principal(user_id)
