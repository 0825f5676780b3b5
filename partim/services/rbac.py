# partim/services/rbac.py
"""
Role-based access control.

Closed set of roles ordered Officer < Manager < Admin, a closed catalog of permission
tokens ("<resource>.<action>"), and an immutable role -> permissions table built at
import time. Every check here is a pure lookup: no DB, no network, never raises.
Admin is granted everything, including tokens outside the catalog.
"""

from enum import Enum
from types import MappingProxyType
from typing import Iterable, Optional, Union


class Role(str, Enum):
    OFFICER = "Officer"
    MANAGER = "Manager"
    ADMIN = "Admin"


class Permission(str, Enum):
    # Tickets
    TICKETS_VIEW = "tickets.view"
    TICKETS_CREATE = "tickets.create"
    TICKETS_UPDATE = "tickets.update"
    TICKETS_DELETE = "tickets.delete"
    # Monthly passes
    PASSES_VIEW = "passes.view"
    PASSES_CREATE = "passes.create"
    PASSES_UPDATE = "passes.update"
    PASSES_DELETE = "passes.delete"
    # Analytics
    ANALYTICS_VIEW = "analytics.view"
    ANALYTICS_EXPORT = "analytics.export"
    # Rates
    RATES_VIEW = "rates.view"
    RATES_UPDATE = "rates.update"
    # Users
    USERS_VIEW = "users.view"
    USERS_CREATE = "users.create"
    USERS_UPDATE = "users.update"
    USERS_DELETE = "users.delete"
    # Shifts
    SHIFTS_VIEW = "shifts.view"
    SHIFTS_MANAGE = "shifts.manage"
    SHIFTS_ALL = "shifts.all"           # other officers' shifts
    # Parking map
    MAP_VIEW = "map.view"
    MAP_MANAGE = "map.manage"
    # Vehicle history / loyalty
    VEHICLES_VIEW = "vehicles.view"
    VEHICLES_MANAGE = "vehicles.manage"
    # Settings
    SETTINGS_VIEW = "settings.view"
    SETTINGS_UPDATE = "settings.update"
    # Audit
    AUDIT_VIEW = "audit.view"


RoleLike = Union[Role, str, None]
PermissionLike = Union[Permission, str]

ROLE_HIERARCHY = (Role.OFFICER, Role.MANAGER, Role.ADMIN)
DEFAULT_ROLE = Role.OFFICER

ALL_PERMISSIONS = frozenset(p.value for p in Permission)

_MANAGER_PERMISSIONS = frozenset(p.value for p in (
    Permission.TICKETS_VIEW, Permission.TICKETS_CREATE,
    Permission.TICKETS_UPDATE, Permission.TICKETS_DELETE,
    Permission.PASSES_VIEW, Permission.PASSES_CREATE,
    Permission.PASSES_UPDATE, Permission.PASSES_DELETE,
    Permission.ANALYTICS_VIEW, Permission.ANALYTICS_EXPORT,
    Permission.RATES_VIEW, Permission.RATES_UPDATE,
    Permission.SHIFTS_VIEW, Permission.SHIFTS_MANAGE, Permission.SHIFTS_ALL,
    Permission.MAP_VIEW, Permission.MAP_MANAGE,
    Permission.VEHICLES_VIEW, Permission.VEHICLES_MANAGE,
    Permission.AUDIT_VIEW,
))

_OFFICER_PERMISSIONS = frozenset(p.value for p in (
    Permission.TICKETS_VIEW, Permission.TICKETS_CREATE, Permission.TICKETS_UPDATE,
    Permission.PASSES_VIEW,
    Permission.SHIFTS_VIEW, Permission.SHIFTS_MANAGE,   # own shifts only
    Permission.MAP_VIEW,
    Permission.VEHICLES_VIEW,
))

# Admin is not listed: it short-circuits to True in has_permission()
ROLE_PERMISSIONS = MappingProxyType({
    Role.MANAGER: _MANAGER_PERMISSIONS,
    Role.OFFICER: _OFFICER_PERMISSIONS,
})


def resolve_role(role_name: RoleLike) -> Optional[Role]:
    """Map a role name to Role, or None when it is not one of the known roles."""
    if isinstance(role_name, Role):
        return role_name
    try:
        return Role(role_name)
    except ValueError:
        return None


def _token(permission: PermissionLike) -> str:
    return permission.value if isinstance(permission, Permission) else permission


def has_permission(role_name: RoleLike, permission: PermissionLike) -> bool:
    role = resolve_role(role_name)
    if role is None:
        return False
    if role is Role.ADMIN:
        return True
    return _token(permission) in ROLE_PERMISSIONS[role]


def has_any_permission(role_name: RoleLike, permissions: Iterable[PermissionLike]) -> bool:
    return any(has_permission(role_name, p) for p in permissions)


def has_all_permissions(role_name: RoleLike, permissions: Iterable[PermissionLike]) -> bool:
    return all(has_permission(role_name, p) for p in permissions)


def get_permissions(role_name: RoleLike) -> list[str]:
    """Sorted permission tokens for a role; the whole catalog for Admin, [] if unknown."""
    role = resolve_role(role_name)
    if role is None:
        return []
    if role is Role.ADMIN:
        return sorted(ALL_PERMISSIONS)
    return sorted(ROLE_PERMISSIONS[role])


def is_admin(role_name: RoleLike) -> bool:
    return resolve_role(role_name) is Role.ADMIN


def is_at_least_manager(role_name: RoleLike) -> bool:
    return resolve_role(role_name) in (Role.MANAGER, Role.ADMIN)


def is_at_least_officer(role_name: RoleLike) -> bool:
    return resolve_role(role_name) is not None


def create_permission_checker(role_name: RoleLike):
    """Bind a role once, e.g. can = create_permission_checker("Officer"); can("tickets.view")."""
    return lambda permission: has_permission(role_name, permission)


def privilege_level(role_name: RoleLike) -> int:
    """Position in ROLE_HIERARCHY, -1 for unknown role names."""
    role = resolve_role(role_name)
    return ROLE_HIERARCHY.index(role) if role is not None else -1


def has_higher_or_equal_privilege(role_a: RoleLike, role_b: RoleLike) -> bool:
    level_a = privilege_level(role_a)
    if level_a < 0:
        return False
    return level_a >= privilege_level(role_b)
