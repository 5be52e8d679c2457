"""
Contextual access validation for resource-scoped operations.

A request passes only if every step below holds, checked in order and
short-circuiting on the first failure:

1. base capability: admin on a recognized resource/action, or the
   principal acting on its own profile (self-service read/update);
2. business hours, when the context names a window;
3. MFA, when the context requires it;
4. IP allowlist, when the context carries one.

Absent context fields skip their step. The boolean returned to callers never
says which step failed; the reason is only logged and counted.
"""

import ipaddress
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from shared.config import PermissionSettings, get_settings
from shared.errors import (
    AuthenticationRequiredError, InsufficientPermissionError,
    PolicyViolationError, ValidationError,
)
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from .catalog import Action, Resource, parse_action, parse_resource
from .clock import Clock, SystemClock
from .evaluator import can_manage_resource
from .models import AccessDecision, DenialReason, Principal, ResourceAccessContext

ContextLike = Union[ResourceAccessContext, Mapping[str, Any], None]

SELF_SERVICE_RESOURCES = frozenset({Resource.PROFILE})
SELF_SERVICE_ACTIONS = frozenset({Action.READ, Action.UPDATE})

# Denials that mean "not allowed at all" rather than "not allowed right now".
_CAPABILITY_DENIALS = frozenset({
    DenialReason.INVALID_RESOURCE,
    DenialReason.INVALID_ACTION,
    DenialReason.ACCOUNT_BANNED,
    DenialReason.INSUFFICIENT_PERMISSION,
})


class ContextualAccessValidator:
    """Evaluates ownership, time-window, MFA and IP rules on top of role checks."""

    def __init__(self, clock: Optional[Clock] = None, metrics: Optional[MetricsCollector] = None):
        self.clock = clock or SystemClock()
        self.metrics = metrics
        self.logger = get_logger("permissions.validator")

    async def validate_resource_access(self, principal: Optional[Principal], resource: str, action: str,
                                       context: ContextLike = None) -> bool:
        """Return whether ``principal`` may perform ``action`` on ``resource``."""
        return self.evaluate(principal, resource, action, context).allowed

    async def require_resource_access(self, principal: Optional[Principal], resource: str, action: str,
                                      context: ContextLike = None) -> None:
        """Like ``validate_resource_access`` but raises an ``AuthorizationError`` on denial."""
        decision = self.evaluate(principal, resource, action, context)
        if decision.allowed:
            return
        if decision.reason is DenialReason.NO_PRINCIPAL:
            raise AuthenticationRequiredError()
        if decision.reason in _CAPABILITY_DENIALS:
            raise InsufficientPermissionError()
        raise PolicyViolationError()

    def evaluate(self, principal: Optional[Principal], resource: str, action: str,
                 context: ContextLike = None) -> AccessDecision:
        """Run every step and return the decision with its denial reason."""
        if not isinstance(resource, str) or not isinstance(action, str):
            raise ValidationError(
                "Resource and action must be strings",
                details={"resource_type": type(resource).__name__, "action_type": type(action).__name__}
            )
        ctx = self._coerce_context(context)

        decision = self._evaluate(principal, resource, action, ctx)

        if self.metrics:
            self.metrics.record_decision(
                "resource_access",
                decision.allowed,
                decision.reason.value if decision.reason else None
            )
        if not decision.allowed:
            self.logger.debug(
                "Resource access denied",
                user_id=principal.id if principal else None,
                resource=resource,
                action=action,
                reason=decision.reason.value
            )
        return decision

    def _evaluate(self, principal: Optional[Principal], resource: str, action: str,
                  ctx: ResourceAccessContext) -> AccessDecision:
        if principal is None:
            return AccessDecision.deny(DenialReason.NO_PRINCIPAL)

        parsed_resource = parse_resource(resource)
        if parsed_resource is None:
            return AccessDecision.deny(DenialReason.INVALID_RESOURCE)

        parsed_action = parse_action(action)
        if parsed_action is None:
            return AccessDecision.deny(DenialReason.INVALID_ACTION)

        if principal.banned:
            return AccessDecision.deny(DenialReason.ACCOUNT_BANNED)

        via_ownership = False
        if not can_manage_resource(principal, resource, action):
            if not self._is_self_service(principal, parsed_resource, parsed_action, ctx):
                return AccessDecision.deny(DenialReason.INSUFFICIENT_PERMISSION)
            via_ownership = True

        if not self._within_business_hours(ctx):
            return AccessDecision.deny(DenialReason.OUTSIDE_BUSINESS_HOURS)

        if not self._mfa_satisfied(ctx):
            return AccessDecision.deny(DenialReason.MFA_REQUIRED)

        if not self._ip_allowed(ctx):
            return AccessDecision.deny(DenialReason.IP_NOT_ALLOWED)

        return AccessDecision.allow(via_ownership=via_ownership)

    def _coerce_context(self, context: ContextLike) -> ResourceAccessContext:
        if context is None:
            return ResourceAccessContext()
        if isinstance(context, ResourceAccessContext):
            return context
        if isinstance(context, Mapping):
            try:
                return ResourceAccessContext.model_validate(dict(context))
            except PydanticValidationError as e:
                raise ValidationError(
                    "Malformed resource access context",
                    details={"errors": [
                        {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
                        for err in e.errors()
                    ]}
                ) from e
        raise ValidationError(
            "Unsupported resource access context",
            details={"context_type": type(context).__name__}
        )

    @staticmethod
    def _is_self_service(principal: Principal, resource: Resource, action: Action,
                         ctx: ResourceAccessContext) -> bool:
        if resource not in SELF_SERVICE_RESOURCES or action not in SELF_SERVICE_ACTIONS:
            return False
        return ctx.subject_id is not None and ctx.subject_id == principal.id

    def _within_business_hours(self, ctx: ResourceAccessContext) -> bool:
        if ctx.business_hours is None:
            return True
        hour = self.clock.now().hour
        return ctx.business_hours.start <= hour < ctx.business_hours.end

    @staticmethod
    def _mfa_satisfied(ctx: ResourceAccessContext) -> bool:
        if not ctx.require_mfa:
            return True
        return ctx.security_context is not None and ctx.security_context.mfa_verified is True

    @staticmethod
    def _ip_allowed(ctx: ResourceAccessContext) -> bool:
        if ctx.allowed_ips is None:
            return True
        ip = ctx.security_context.ip_address if ctx.security_context else None
        if not ip:
            return False
        return any(ip_matches(ip, entry) for entry in ctx.allowed_ips)


def ip_matches(ip: str, entry: str) -> bool:
    """Same address as ``entry``, or membership in ``entry`` when it is a CIDR block."""
    try:
        address = ipaddress.ip_address(ip)
        if "/" not in entry:
            return address == ipaddress.ip_address(entry)
        network = ipaddress.ip_network(entry, strict=False)
    except ValueError:
        return False
    if address.version != network.version:
        return False
    return address in network


_default_validator: Optional[ContextualAccessValidator] = None


def configure_validator(validator: Optional[ContextualAccessValidator] = None,
                        settings: Optional[PermissionSettings] = None) -> ContextualAccessValidator:
    """Install the process-wide validator, building one from settings if needed."""
    global _default_validator
    if validator is None:
        settings = settings or get_settings()
        validator = ContextualAccessValidator(clock=SystemClock(settings.timezone))
    _default_validator = validator
    return validator


def get_validator() -> ContextualAccessValidator:
    if _default_validator is None:
        return configure_validator()
    return _default_validator


async def validate_resource_access(principal: Optional[Principal], resource: str, action: str,
                                   context: ContextLike = None) -> bool:
    """Module-level entry point using the process-wide validator."""
    return await get_validator().validate_resource_access(principal, resource, action, context)
