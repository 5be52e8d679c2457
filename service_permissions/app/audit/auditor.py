"""
Permission violation auditing.

Callers decide when a denial is worth auditing; the auditor only turns it
into a ``SecurityEvent`` and hands it to the sink. By the time it runs the
caller has already settled its 401/403, so nothing raised here may reach
the caller.
"""

from typing import Any, Dict, Mapping, Optional, Union

from shared.config import PermissionSettings, get_settings
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..rules.catalog import Permission
from ..rules.clock import Clock, SystemClock
from ..rules.models import Principal, SecurityEvent
from .sinks import LoggingSecuritySink, SecurityEventSink, build_sink

_IP_KEYS = ("ipAddress", "ip_address")


class ViolationAuditor:
    """Emits one security event per reported denial."""

    def __init__(self, sink: Optional[SecurityEventSink] = None, clock: Optional[Clock] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.sink = sink or LoggingSecuritySink()
        self.clock = clock or SystemClock()
        self.metrics = metrics
        self.logger = get_logger("permissions.auditor")

    def build_event(self, principal: Optional[Principal], required_permission: Union[str, Permission],
                    resource: str, extra: Optional[Mapping[str, Any]] = None) -> SecurityEvent:
        details: Dict[str, Any] = dict(extra or {})
        ip_address = None
        for key in _IP_KEYS:
            value = details.pop(key, None)
            if ip_address is None and value is not None:
                ip_address = value

        return SecurityEvent(
            user_id=principal.id if principal else None,
            user_email=principal.email if principal else None,
            user_role=principal.role if principal else None,
            required_permission=getattr(required_permission, "value", required_permission),
            resource=resource,
            ip_address=ip_address,
            timestamp=self.clock.now(),
            details=details,
        )

    def log_permission_violation(self, principal: Optional[Principal], required_permission: Union[str, Permission],
                                 resource: str, extra: Optional[Mapping[str, Any]] = None) -> None:
        """Fire-and-forget: sink failures are logged and dropped."""
        try:
            event = self.build_event(principal, required_permission, resource, extra)
            self.sink.emit(event)
        except Exception as e:
            self.logger.error(
                "Failed to emit security event",
                resource=resource,
                required_permission=getattr(required_permission, "value", required_permission),
                error=str(e)
            )
            if self.metrics:
                self.metrics.record_security_event("dropped")
            return

        if self.metrics:
            self.metrics.record_security_event("emitted")


_default_auditor: Optional[ViolationAuditor] = None


def configure_violation_auditor(auditor: Optional[ViolationAuditor] = None,
                                settings: Optional[PermissionSettings] = None) -> ViolationAuditor:
    """Install the process-wide auditor, building one from settings if needed."""
    global _default_auditor
    if auditor is None:
        settings = settings or get_settings()
        auditor = ViolationAuditor(build_sink(settings), clock=SystemClock(settings.timezone))
    _default_auditor = auditor
    return auditor


def get_violation_auditor() -> ViolationAuditor:
    if _default_auditor is None:
        return configure_violation_auditor()
    return _default_auditor


def log_permission_violation(principal: Optional[Principal], required_permission: Union[str, Permission],
                             resource: str, extra: Optional[Mapping[str, Any]] = None) -> None:
    """Report a denial through the process-wide auditor."""
    try:
        auditor = get_violation_auditor()
    except Exception as e:
        get_logger("permissions.auditor").error("Security event auditor unavailable", error=str(e))
        return
    auditor.log_permission_violation(principal, required_permission, resource, extra)
