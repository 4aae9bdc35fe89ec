"""Role-based authorization policy.

Every lifecycle operation asks ``can_perform`` before touching state, so the
rules below are the single place where roles and ownership are compared.

Entities are duck-typed: projects expose ``submitter_id``, credits expose
``owner_id``. IDs are compared as strings.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from blue_carbon_registry.domain.enums import Operation, UserRole
from blue_carbon_registry.domain.ports import Principal

_REVIEWERS = frozenset({UserRole.VERIFIER, UserRole.ADMIN})


def _any_principal(principal: Principal, entity: Any) -> bool:
    return True


def _is_submitter(principal: Principal, entity: Any) -> bool:
    return entity is not None and str(entity.submitter_id) == principal.id


def _is_owner(principal: Principal, entity: Any) -> bool:
    return entity is not None and str(entity.owner_id) == principal.id


def _is_reviewer(principal: Principal, entity: Any) -> bool:
    return principal.role in _REVIEWERS


def _is_admin(principal: Principal, entity: Any) -> bool:
    return principal.role == UserRole.ADMIN


def _is_owner_or_admin(principal: Principal, entity: Any) -> bool:
    return _is_admin(principal, entity) or _is_owner(principal, entity)


_RULES: dict[Operation, Callable[[Principal, Any], bool]] = {
    Operation.SUBMIT_PROJECT: _any_principal,
    Operation.UPDATE_PROJECT: _is_submitter,
    Operation.DELETE_PROJECT: _is_submitter,
    Operation.ADD_EVIDENCE: _is_submitter,
    Operation.VERIFY_PROJECT: _is_reviewer,
    Operation.REJECT_PROJECT: _is_reviewer,
    Operation.LIST_PENDING: _is_reviewer,
    Operation.MINT_CREDITS: _is_admin,
    Operation.TRANSFER_CREDIT: _is_owner,
    Operation.RETIRE_CREDIT: _is_owner_or_admin,
    Operation.VIEW_ALL_TRANSACTIONS: _is_admin,
    Operation.LIST_USERS: _is_admin,
}


def can_perform(principal: Principal, operation: Operation, entity: Any = None) -> bool:
    """Return True if ``principal`` may perform ``operation`` on ``entity``.

    Args:
        principal: The acting user.
        operation: The gated operation.
        entity: The project or credit the operation targets, if any.
    """
    rule = _RULES.get(operation)
    if rule is None:
        return False
    return rule(principal, entity)
