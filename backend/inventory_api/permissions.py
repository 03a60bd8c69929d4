# Overview: Static role rules shared by decorators, routes and user management.

from __future__ import annotations

from .models.auth import ROLE_ADMIN, ROLE_STAFF, ROLE_SUPER_ADMIN, ROLES

ADMIN_ROLES = frozenset({ROLE_ADMIN, ROLE_SUPER_ADMIN})

# Roles each role may create or promote to
ASSIGNABLE_ROLES = {
    ROLE_SUPER_ADMIN: frozenset(ROLES),
    ROLE_ADMIN: frozenset({ROLE_ADMIN, ROLE_STAFF}),
    ROLE_STAFF: frozenset(),
}


def is_admin(user) -> bool:
    return user is not None and user.role in ADMIN_ROLES


def can_assign_role(actor, role: str) -> bool:
    """super_admin may grant any role; admin anything but super_admin; staff nothing."""
    if actor is None:
        return False
    return role in ASSIGNABLE_ROLES.get(actor.role, frozenset())


def can_manage_user(actor, target) -> bool:
    """Only a super_admin may modify or delete another super_admin."""
    if not is_admin(actor):
        return False
    if target.role == ROLE_SUPER_ADMIN:
        return actor.role == ROLE_SUPER_ADMIN
    return True


def can_access_user(actor, user_id: int) -> bool:
    return actor is not None and (actor.id == user_id or is_admin(actor))


def can_access_sale(actor, sale) -> bool:
    """Owner of the sale, or any admin."""
    return actor is not None and (sale.user_id == actor.id or is_admin(actor))
