"""
Studio admin dashboard permission engine.
"""

from .app.rules.catalog import (
    ADMIN_PERMISSIONS, ROLE_PERMISSIONS, Action, Permission, Resource,
    StudioPermission, StudioRole, SystemRole, get_admin_permissions,
    get_studio_role_permissions, studio_role_has_permission,
)
from .app.rules.models import (
    AccessDecision, AuthorizationResult, BusinessHours, DenialReason, Principal,
    ResourceAccessContext, SecurityContext, SecurityEvent,
)
from .app.rules.evaluator import (
    can_manage_resource, check_admin_access, get_user_permissions, has_all_permissions,
    has_any_permission, has_permission, is_admin, is_verified_admin, require_permission,
)
from .app.rules.checkers import (
    create_all_permissions_checker, create_any_permission_checker, create_permission_checker,
    require_admin, require_permissions,
)
from .app.rules.clock import FixedClock, SystemClock
from .app.rules.validator import ContextualAccessValidator, configure_validator, validate_resource_access
from .app.audit import ViolationAuditor, configure_violation_auditor, log_permission_violation
from .app.bootstrap import PermissionEngine, bootstrap

__version__ = "1.0.0"
