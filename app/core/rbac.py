# app/core/rbac.py

from fastapi import Depends
from app.api.deps import get_current_user
from app.core.exceptions import AuthorizationError
from app.models.user import User, UserRole

def AllowRoles(*allowed_roles):
    """
    Route-level role gate:
    - Accepts UserRole values or raw strings
    - Case-insensitive
    """

    def normalize(role) -> str:
        if isinstance(role, UserRole):
            return role.value.lower().strip()
        return str(role).lower().strip()

    normalized_allowed = {normalize(r) for r in allowed_roles}

    async def role_checker(current_user: User = Depends(get_current_user)):
        if normalize(current_user.role) not in normalized_allowed:
            raise AuthorizationError(f"Access denied for role '{current_user.role.value}'")

        return current_user

    return role_checker
