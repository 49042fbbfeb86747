"""Role hierarchy and access helpers shared by routers and services.

Roles are stored upper-case (``OWNER``, ``PM`` ...) but every comparison here
is case-insensitive. Unknown roles have privilege level 0.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from contractoros.core.security import CurrentUser

ROLE_HIERARCHY: dict[str, int] = {
    "OWNER": 100,
    "PM": 80,
    "EMPLOYEE": 60,
    "CONTRACTOR": 40,
    "SUB": 30,
    "CLIENT": 10,
}

ADMIN_ROLES = frozenset({"OWNER", "PM"})

ROLE_DEFAULT_PATHS: dict[str, str] = {
    "OWNER": "/dashboard",
    "PM": "/dashboard",
    "EMPLOYEE": "/field",
    "CONTRACTOR": "/field",
    "SUB": "/sub",
    "CLIENT": "/client",
}

PORTAL_ROLES: dict[str, frozenset[str]] = {
    "dashboard": frozenset({"OWNER", "PM", "EMPLOYEE", "CONTRACTOR"}),
    "field": frozenset({"OWNER", "PM", "EMPLOYEE", "CONTRACTOR", "SUB"}),
    "client": frozenset({"CLIENT"}),
    "sub": frozenset({"SUB"}),
}

# Role used when an admin previews the app as another user
IMPERSONATION_ROLES: dict[str, str] = {
    "OWNER": "owner",
    "PM": "project_manager",
    "EMPLOYEE": "employee",
    "CONTRACTOR": "contractor",
    "SUB": "contractor",
    "CLIENT": "client",
}


def _norm(role: Optional[str]) -> str:
    return role.strip().upper() if role else ""


def get_role_level(role: Optional[str]) -> int:
    return ROLE_HIERARCHY.get(_norm(role), 0)


def has_minimum_role(user_role: Optional[str], required_role: Optional[str]) -> bool:
    """True when ``user_role`` ranks at or above ``required_role``.

    A missing or unrecognised user role never passes. An unrecognised
    required role ranks at 0, so any valid user role satisfies it.
    """
    if _norm(user_role) not in ROLE_HIERARCHY:
        return False
    return get_role_level(user_role) >= get_role_level(required_role)


def has_role(user_role: Optional[str], roles: Iterable[str]) -> bool:
    role = _norm(user_role)
    if not role:
        return False
    return role in {_norm(r) for r in roles}


def is_admin(role: Optional[str]) -> bool:
    return _norm(role) in ADMIN_ROLES


# Managers see every daily log, including other users' private entries.
is_manager = is_admin


def is_same_org(user_org_id: Optional[str], resource_org_id: Optional[str]) -> bool:
    if not user_org_id or not resource_org_id:
        return False
    return user_org_id == resource_org_id


def is_owner(user_id: Optional[str], resource_owner_id: Optional[str]) -> bool:
    if not user_id or not resource_owner_id:
        return False
    return user_id == resource_owner_id


def can_access_resource(user: Optional["CurrentUser"], resource_org_id: Optional[str]) -> bool:
    if user is None or not user.user_id:
        return False
    return is_same_org(user.org_id, resource_org_id)


def can_modify_resource(
    user: Optional["CurrentUser"],
    resource_org_id: Optional[str],
    resource_owner_id: Optional[str],
) -> bool:
    if not can_access_resource(user, resource_org_id):
        return False
    return is_owner(user.user_id, resource_owner_id) or is_admin(user.role)


def get_default_path(role: Optional[str]) -> str:
    return ROLE_DEFAULT_PATHS.get(_norm(role), "/login")


def can_access_portal(role: Optional[str], portal: str) -> bool:
    allowed = PORTAL_ROLES.get(portal.lower())
    if not allowed:
        return False
    return _norm(role) in allowed


def impersonation_role(role: Optional[str]) -> str:
    return IMPERSONATION_ROLES.get(_norm(role), "employee")
