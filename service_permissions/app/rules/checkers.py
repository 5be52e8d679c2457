"""
Factories for reusable permission predicates.
"""

from typing import Callable, Iterable, Optional

from shared.logging import get_logger

from .catalog import Permission
from .evaluator import PermissionLike, has_all_permissions, has_any_permission, has_permission
from .models import AuthorizationResult, Principal

logger = get_logger("permissions.checkers")

PrincipalPredicate = Callable[[Optional[Principal]], bool]
Guard = Callable[[Optional[Principal]], bool]


def create_permission_checker(permission: PermissionLike, custom_guard: Optional[Guard] = None) -> PrincipalPredicate:
    """Build ``p -> has_permission(p, permission) and custom_guard(p)``.

    The guard only runs once the base check has passed, so it can narrow
    access but never grant it. A guard that raises counts as a denial.
    """

    def checker(principal: Optional[Principal]) -> bool:
        if not has_permission(principal, permission):
            return False
        if custom_guard is None:
            return True
        try:
            return bool(custom_guard(principal))
        except Exception as e:
            logger.error("Permission guard failed", permission=getattr(permission, "value", permission), error=str(e))
            return False

    return checker


def create_any_permission_checker(permissions: Iterable[PermissionLike]) -> PrincipalPredicate:
    required = tuple(permissions)
    return lambda principal: has_any_permission(principal, required)


def create_all_permissions_checker(permissions: Iterable[PermissionLike]) -> PrincipalPredicate:
    required = tuple(permissions)
    return lambda principal: has_all_permissions(principal, required)


def require_permissions(permissions: Iterable[PermissionLike], require_all: bool = False,
                        require_email_verification: bool = False
                        ) -> Callable[[Optional[Principal]], AuthorizationResult]:
    """Build a checker that explains its denial with a user-safe message."""
    required = tuple(permissions)

    def checker(principal: Optional[Principal]) -> AuthorizationResult:
        if principal is None:
            return AuthorizationResult(authorized=False, error="User authentication required")

        if require_email_verification and principal.email_verified is None:
            return AuthorizationResult(authorized=False, error="Email verification required")

        granted = (
            has_all_permissions(principal, required)
            if require_all
            else has_any_permission(principal, required)
        )
        if not granted:
            return AuthorizationResult(authorized=False, error="Insufficient permissions")

        return AuthorizationResult(authorized=True)

    return checker


def require_admin(require_email_verification: bool = False) -> Callable[[Optional[Principal]], AuthorizationResult]:
    return require_permissions([Permission.ADMIN_ACCESS], require_email_verification=require_email_verification)
