# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header

from vacation_ledger.exceptions import PermissionDeniedError
from vacation_ledger.models.enums import UserRole
from vacation_ledger.schemas.auth import AuthContext


async def get_auth_context(
    x_user_email: str = Header(),
    x_role: UserRole = Header(default=UserRole.USER),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(email=x_user_email, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_ledger_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require a role allowed to override balances (HR, country manager, admin)."""
    if not auth.is_ledger_admin:
        raise PermissionDeniedError("Insufficient permissions to modify vacation balances")
    return auth


LedgerAdminDep = Annotated[AuthContext, Depends(require_ledger_admin)]
