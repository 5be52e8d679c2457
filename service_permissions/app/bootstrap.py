"""
Process-start wiring for hosts embedding the permission engine.
"""

from dataclasses import dataclass
from typing import Optional

from shared.config import PermissionSettings, get_settings
from shared.logging import configure_logging, get_logger
from shared.metrics import MetricsCollector, get_metrics_collector

from .audit.auditor import ViolationAuditor, configure_violation_auditor
from .audit.sinks import build_sink
from .rules.clock import SystemClock
from .rules.validator import ContextualAccessValidator, configure_validator


@dataclass
class PermissionEngine:
    """Components configured for one host process."""
    settings: PermissionSettings
    validator: ContextualAccessValidator
    auditor: ViolationAuditor
    metrics: Optional[MetricsCollector] = None


def bootstrap(settings: Optional[PermissionSettings] = None) -> PermissionEngine:
    """Configure logging, metrics, the process-wide validator and auditor."""
    settings = settings or get_settings()
    configure_logging(settings.service_name, settings.log_level)

    metrics = get_metrics_collector(settings.service_name) if settings.metrics_enabled else None
    clock = SystemClock(settings.timezone)

    auditor = configure_violation_auditor(
        ViolationAuditor(build_sink(settings), clock=clock, metrics=metrics)
    )
    validator = configure_validator(ContextualAccessValidator(clock=clock, metrics=metrics))

    get_logger("permissions.bootstrap").info(
        "Permission engine configured",
        env=settings.env,
        business_timezone=settings.business_timezone,
        audit_sink=type(auditor.sink).__name__,
        metrics_enabled=metrics is not None
    )
    return PermissionEngine(settings=settings, validator=validator, auditor=auditor, metrics=metrics)
