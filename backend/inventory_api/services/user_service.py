# Overview: User account management (create, read, update, soft delete).

from __future__ import annotations

import re

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..models.auth import ROLE_STAFF, ROLES
from ..permissions import can_assign_role, can_manage_user, is_admin
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    paginate,
    parse_pagination,
    validate_payload,
)
from .auth_service import hash_password
from .session_service import revoke_all_user_sessions


class PermissionDenied(Exception):
    """Raised when an authenticated actor may not perform a user change."""


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

USER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"username", "email", "full_name", "role", "is_active"},
    required_on_create={"username", "email"},
    min_lengths={"username": 3},
)

# Fields a non-admin may change on their own account
SELF_SERVICE_FIELDS = {"username", "email", "full_name"}


def _active_users():
    return db.session.query(User).filter(User.deleted_at.is_(None))


def _normalize_identity(patch: dict) -> None:
    if "email" in patch:
        patch["email"] = patch["email"].lower()
        if not EMAIL_RE.match(patch["email"]):
            raise ValidationError("email must be a valid email address")
    if "role" in patch and patch["role"] not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")


def _ensure_unique(patch: dict, exclude_id: int | None = None) -> None:
    # Deleted users keep their username/email, so uniqueness spans all rows
    for field in ("username", "email"):
        if field not in patch:
            continue
        column = getattr(User, field)
        q = db.session.query(User.id).filter(func.lower(column) == patch[field].lower())
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        if q.first():
            raise ConflictError(f"{field} already exists")


def get_user(user_id: int) -> User:
    user = _active_users().filter(User.id == user_id).first()
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


def list_users(*, page=None, limit=None, role: str | None = None) -> tuple[list[User], dict]:
    page_num, limit_num = parse_pagination(page, limit)
    q = _active_users()
    if role:
        q = q.filter(User.role == role)
    return paginate(q.order_by(User.id.asc()), page_num, limit_num)


def create_user(payload: dict, *, actor: User | None = None) -> User:
    """
    Create an account. actor=None is reserved for CLI bootstrap.

    Raises:
        ValidationError / PasswordValidationError: bad input
        PermissionDenied: actor may not grant the requested role
        ConflictError: username or email already taken
    """
    data = dict(payload or {})
    password = data.pop("password", None)
    if password is None:
        raise ValidationError("Missing required fields: password")

    patch = validate_payload(model=User, payload=data, policy=USER_CREATE_POLICY, partial=False)
    patch.setdefault("role", ROLE_STAFF)
    _normalize_identity(patch)

    if actor is not None and not can_assign_role(actor, patch["role"]):
        raise PermissionDenied(f"Role '{actor.role}' cannot create users with role '{patch['role']}'")

    _ensure_unique(patch)

    user = User(**patch, password_hash=hash_password(password))
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("username or email already exists")

    current_app.logger.info(
        "User created: id=%s username=%s role=%s by=%s",
        user.id, user.username, user.role, actor.id if actor else "cli",
    )
    return user


def update_user(user_id: int, payload: dict, *, actor: User) -> User:
    """
    Partial update. Users may edit their own profile; role and is_active
    changes need an admin allowed to grant the target role.
    """
    user = get_user(user_id)
    data = dict(payload or {})
    password = data.pop("password", None)

    patch = validate_payload(model=User, payload=data, policy=USER_CREATE_POLICY, partial=True)
    _normalize_identity(patch)

    if not is_admin(actor):
        forbidden = sorted(set(patch) - SELF_SERVICE_FIELDS)
        if forbidden:
            raise PermissionDenied(f"Only admins may change: {', '.join(forbidden)}")
    else:
        if actor.id != user.id and not can_manage_user(actor, user):
            raise PermissionDenied("Cannot modify this user")
        if "role" in patch and not can_assign_role(actor, patch["role"]):
            raise PermissionDenied(f"Role '{actor.role}' cannot assign role '{patch['role']}'")
        if actor.id == user.id and patch.get("is_active") is False:
            raise ValidationError("You cannot deactivate your own account")

    _ensure_unique(patch, exclude_id=user.id)

    for key, value in patch.items():
        setattr(user, key, value)
    if password is not None:
        user.password_hash = hash_password(password)

    if patch.get("is_active") is False:
        revoke_all_user_sessions(user.id, reason="User deactivated", commit=False)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("username or email already exists")
    return user


def delete_user(user_id: int, *, actor: User) -> None:
    """Soft delete; the account's sessions are revoked in the same commit."""
    user = get_user(user_id)
    if actor.id == user.id:
        raise ValidationError("You cannot delete your own account")
    if not can_manage_user(actor, user):
        raise PermissionDenied("Cannot delete this user")

    user.deleted_at = utcnow()
    user.is_active = False
    revoke_all_user_sessions(user.id, reason="User deleted", commit=False)
    db.session.commit()

    current_app.logger.info("User deleted: id=%s by=%s", user.id, actor.id)
