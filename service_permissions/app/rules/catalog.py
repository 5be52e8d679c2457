"""
Permission catalog: the closed set of tokens, resources and role tables.

Everything in this module is built once at import time and never mutated.
Lookups go through the enums, so matching is exact and case-sensitive.
"""

from typing import FrozenSet, List, Optional, Tuple, Union
from enum import Enum
from types import MappingProxyType


class SystemRole(str, Enum):
    """System role carried by the principal."""
    ADMIN = "admin"
    USER = "user"


class StudioRole(str, Enum):
    """Organization-scoped role, independent of the system role."""
    OWNER = "owner"
    MANAGER = "manager"
    ARTIST = "artist"
    RECEPTIONIST = "receptionist"


class Resource(str, Enum):
    """Resource kinds the dashboard manages."""
    CUSTOMERS = "customers"
    APPOINTMENTS = "appointments"
    MEDIA = "media"
    SETTINGS = "settings"
    ANALYTICS = "analytics"
    DASHBOARD = "dashboard"
    USERS = "users"
    PROFILE = "profile"


class Action(str, Enum):
    """Actions on a resource."""
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Permission(str, Enum):
    """System permission tokens (``resource:action``)."""
    VIEW_DASHBOARD = "dashboard:view"
    VIEW_ANALYTICS = "analytics:view"
    EXPORT_ANALYTICS = "analytics:export"

    VIEW_CUSTOMERS = "customers:view"
    CREATE_CUSTOMERS = "customers:create"
    UPDATE_CUSTOMERS = "customers:update"
    DELETE_CUSTOMERS = "customers:delete"

    VIEW_APPOINTMENTS = "appointments:view"
    CREATE_APPOINTMENTS = "appointments:create"
    UPDATE_APPOINTMENTS = "appointments:update"
    DELETE_APPOINTMENTS = "appointments:delete"

    VIEW_MEDIA = "media:view"
    UPLOAD_MEDIA = "media:upload"
    UPDATE_MEDIA = "media:update"
    DELETE_MEDIA = "media:delete"
    SYNC_MEDIA = "media:sync"

    VIEW_SETTINGS = "settings:view"
    UPDATE_SETTINGS = "settings:update"

    VIEW_PROFILE = "profile:view"
    UPDATE_PROFILE = "profile:update"

    ADMIN_ACCESS = "admin:access"
    ADMIN_SETTINGS = "admin:settings"
    USER_MANAGEMENT = "admin:users"
    VIEW_AUDIT_LOG = "audit:view"


class StudioPermission(str, Enum):
    """Studio permission tokens, including wildcards."""
    ALL = "*"

    BOOKING_ALL = "booking:*"
    BOOKING_READ = "booking:read"
    BOOKING_CREATE = "booking:create"
    BOOKING_UPDATE = "booking:update"
    BOOKING_DELETE = "booking:delete"

    CUSTOMER_ALL = "customer:*"
    CUSTOMER_READ = "customer:read"
    CUSTOMER_CREATE = "customer:create"
    CUSTOMER_UPDATE = "customer:update"
    CUSTOMER_DELETE = "customer:delete"

    PAYMENT_ALL = "payment:*"
    PAYMENT_READ = "payment:read"
    PAYMENT_CREATE = "payment:create"
    PAYMENT_UPDATE = "payment:update"

    ANALYTICS_READ = "analytics:read"

    GALLERY_ALL = "gallery:*"
    GALLERY_READ = "gallery:read"
    GALLERY_CREATE = "gallery:create"
    GALLERY_UPDATE = "gallery:update"
    GALLERY_DELETE = "gallery:delete"

    APPOINTMENT_READ = "appointment:read"
    APPOINTMENT_OWN = "appointment:own"


ADMIN_PERMISSIONS: FrozenSet[Permission] = frozenset(Permission)

ROLE_PERMISSIONS: "MappingProxyType[StudioRole, Tuple[StudioPermission, ...]]" = MappingProxyType({
    StudioRole.OWNER: (StudioPermission.ALL,),
    StudioRole.MANAGER: (
        StudioPermission.BOOKING_ALL,
        StudioPermission.CUSTOMER_ALL,
        StudioPermission.PAYMENT_ALL,
        StudioPermission.ANALYTICS_READ,
        StudioPermission.GALLERY_ALL,
    ),
    StudioRole.ARTIST: (
        StudioPermission.BOOKING_READ,
        StudioPermission.BOOKING_UPDATE,
        StudioPermission.CUSTOMER_READ,
        StudioPermission.GALLERY_ALL,
        StudioPermission.APPOINTMENT_OWN,
    ),
    StudioRole.RECEPTIONIST: (
        StudioPermission.BOOKING_ALL,
        StudioPermission.CUSTOMER_ALL,
        StudioPermission.PAYMENT_READ,
        StudioPermission.APPOINTMENT_READ,
    ),
})

# Resource/action pairs that map onto a concrete system permission.
_RESOURCE_ACTION_PERMISSIONS: "MappingProxyType[Tuple[Resource, Action], Permission]" = MappingProxyType({
    (Resource.CUSTOMERS, Action.READ): Permission.VIEW_CUSTOMERS,
    (Resource.CUSTOMERS, Action.CREATE): Permission.CREATE_CUSTOMERS,
    (Resource.CUSTOMERS, Action.UPDATE): Permission.UPDATE_CUSTOMERS,
    (Resource.CUSTOMERS, Action.DELETE): Permission.DELETE_CUSTOMERS,
    (Resource.APPOINTMENTS, Action.READ): Permission.VIEW_APPOINTMENTS,
    (Resource.APPOINTMENTS, Action.CREATE): Permission.CREATE_APPOINTMENTS,
    (Resource.APPOINTMENTS, Action.UPDATE): Permission.UPDATE_APPOINTMENTS,
    (Resource.APPOINTMENTS, Action.DELETE): Permission.DELETE_APPOINTMENTS,
    (Resource.MEDIA, Action.READ): Permission.VIEW_MEDIA,
    (Resource.MEDIA, Action.CREATE): Permission.UPLOAD_MEDIA,
    (Resource.MEDIA, Action.UPDATE): Permission.UPDATE_MEDIA,
    (Resource.MEDIA, Action.DELETE): Permission.DELETE_MEDIA,
    (Resource.SETTINGS, Action.READ): Permission.VIEW_SETTINGS,
    (Resource.SETTINGS, Action.UPDATE): Permission.UPDATE_SETTINGS,
    (Resource.ANALYTICS, Action.READ): Permission.VIEW_ANALYTICS,
    (Resource.DASHBOARD, Action.READ): Permission.VIEW_DASHBOARD,
    (Resource.USERS, Action.READ): Permission.USER_MANAGEMENT,
    (Resource.USERS, Action.CREATE): Permission.USER_MANAGEMENT,
    (Resource.USERS, Action.UPDATE): Permission.USER_MANAGEMENT,
    (Resource.USERS, Action.DELETE): Permission.USER_MANAGEMENT,
    (Resource.PROFILE, Action.READ): Permission.VIEW_PROFILE,
    (Resource.PROFILE, Action.UPDATE): Permission.UPDATE_PROFILE,
})


def _lookup(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


def parse_permission(value: Union[str, Permission, None]) -> Optional[Permission]:
    """Resolve a token to a ``Permission``, or ``None`` if not in the catalog."""
    return _lookup(Permission, value)


def parse_resource(value: Union[str, Resource, None]) -> Optional[Resource]:
    """Resolve a resource kind, or ``None`` if unrecognized."""
    return _lookup(Resource, value)


def parse_action(value: Union[str, Action, None]) -> Optional[Action]:
    """Resolve an action, or ``None`` if unrecognized."""
    return _lookup(Action, value)


def parse_studio_role(value: Union[str, StudioRole, None]) -> Optional[StudioRole]:
    """Resolve a studio role, or ``None`` if unrecognized."""
    return _lookup(StudioRole, value)


def is_valid_permission(value: Union[str, Permission, None]) -> bool:
    return parse_permission(value) is not None


def is_valid_studio_role(value: Union[str, StudioRole, None]) -> bool:
    return parse_studio_role(value) is not None


def get_admin_permissions() -> List[Permission]:
    """Return a fresh, sorted copy of the admin permission set."""
    return sorted(ADMIN_PERMISSIONS, key=lambda p: p.value)


def permission_for(resource: Union[str, Resource], action: Union[str, Action]) -> Optional[Permission]:
    """Map a resource/action pair onto its system permission, if any."""
    parsed_resource = parse_resource(resource)
    parsed_action = parse_action(action)
    if parsed_resource is None or parsed_action is None:
        return None
    return _RESOURCE_ACTION_PERMISSIONS.get((parsed_resource, parsed_action))


def get_studio_role_permissions(role: Union[str, StudioRole]) -> Tuple[StudioPermission, ...]:
    """Return the permission tuple for a studio role; empty for unknown roles."""
    parsed = parse_studio_role(role)
    if parsed is None:
        return ()
    return ROLE_PERMISSIONS[parsed]


def studio_role_has_permission(role: Union[str, StudioRole], permission: Union[str, StudioPermission]) -> bool:
    """Check a studio role's table, resolving ``*`` and ``resource:*`` grants."""
    requested = _lookup(StudioPermission, permission)
    if requested is None:
        return False

    resource_prefix = requested.value.split(":", 1)[0]
    for granted in get_studio_role_permissions(role):
        if granted == requested or granted is StudioPermission.ALL:
            return True
        if granted.value.endswith(":*") and granted.value[:-2] == resource_prefix:
            return True
    return False
