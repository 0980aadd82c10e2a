from __future__ import annotations

from pydantic import BaseModel

from vacation_ledger.models.enums import LEDGER_ADMIN_ROLES, UserRole


class AuthContext(BaseModel):
    """Dev auth context extracted from request headers."""

    email: str
    role: UserRole = UserRole.USER

    @property
    def is_ledger_admin(self) -> bool:
        return self.role in LEDGER_ADMIN_ROLES
