# partim/security.py
"""
Caller identity and permission gates for routers.

Authentication happens upstream (the hosted auth provider / gateway); it forwards the
resolved caller as X-User-Id and X-User-Role headers. This module only reads them and
asks the RBAC evaluator whether the role may perform the operation.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from partim.services.rbac import PermissionLike, has_permission
from partim.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: str
    role_name: str


def get_identity(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Identity:
    """FastAPI dependency: the caller as resolved by the identity provider."""
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity (X-User-Id / X-User-Role)",
        )
    return Identity(user_id=x_user_id, role_name=x_user_role)


def require_permission(permission: PermissionLike):
    """Dependency factory: Depends(require_permission(Permission.TICKETS_CREATE))."""
    def checker(identity: Identity = Depends(get_identity)) -> Identity:
        if not has_permission(identity.role_name, permission):
            logger.warning(f"Denied {permission} to {identity.user_id} ({identity.role_name})")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role {identity.role_name!r} lacks permission {getattr(permission, 'value', permission)}",
            )
        return identity
    return checker
