"""
Permission evaluator: cheap, pure predicates over a principal.

Predicates never raise for expected denials; they return ``False`` so call
sites need a single guard branch. ``require_permission`` is the only entry
point that raises.
"""

from typing import Iterable, List, Optional, Union

from shared.logging import get_logger
from shared.errors import AuthenticationRequiredError, InsufficientPermissionError

from .catalog import (
    ADMIN_PERMISSIONS, Permission, SystemRole,
    get_admin_permissions, parse_action, parse_permission, parse_resource,
)
from .models import Principal

logger = get_logger("permissions.evaluator")

PermissionLike = Union[str, Permission]


def is_admin(principal: Optional[Principal]) -> bool:
    """True iff the principal exists and its role is exactly ``"admin"``."""
    if principal is None:
        return False
    return principal.role == SystemRole.ADMIN.value


def is_verified_admin(principal: Optional[Principal]) -> bool:
    """Admin with a verified email address."""
    return is_admin(principal) and principal.email_verified is not None


def check_admin_access(principal: Optional[Principal]) -> bool:
    """Admin whose account is not banned."""
    return is_admin(principal) and not principal.banned


def has_permission(principal: Optional[Principal], permission: PermissionLike) -> bool:
    if principal is None:
        return False
    parsed = parse_permission(permission)
    if parsed is None:
        return False
    return is_admin(principal) and parsed in ADMIN_PERMISSIONS


def has_any_permission(principal: Optional[Principal], permissions: Iterable[PermissionLike]) -> bool:
    return any(has_permission(principal, permission) for permission in permissions)


def has_all_permissions(principal: Optional[Principal], permissions: Iterable[PermissionLike]) -> bool:
    requested = list(permissions)
    if not requested:
        return False
    return all(has_permission(principal, permission) for permission in requested)


def get_user_permissions(principal: Optional[Principal]) -> List[Permission]:
    """Every permission the principal holds, sorted by token."""
    if not is_admin(principal):
        return []
    return get_admin_permissions()


def can_manage_resource(principal: Optional[Principal], resource: str, action: Optional[str] = None) -> bool:
    """Admin check scoped to a recognized resource (and action, if given)."""
    if not is_admin(principal):
        return False
    if parse_resource(resource) is None:
        return False
    if action is not None and parse_action(action) is None:
        return False
    return True


def require_permission(principal: Optional[Principal], permission: PermissionLike,
                       message: Optional[str] = None) -> None:
    """Raise unless the principal holds ``permission``.

    Raises:
        AuthenticationRequiredError: no principal (maps to 401).
        InsufficientPermissionError: principal lacks the grant (maps to 403).
    """
    if principal is None:
        raise AuthenticationRequiredError("User authentication required")

    if not has_permission(principal, permission):
        token = permission.value if isinstance(permission, Permission) else permission
        logger.debug("Permission requirement failed", user_id=principal.id, permission=token)
        raise InsufficientPermissionError(
            message or f"Insufficient permissions: {token} required",
            details={"required_permission": token}
        )
