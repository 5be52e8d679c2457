"""
Shared metrics configuration for the studio permission engine.
"""

from typing import Dict, Any, Optional

from prometheus_client import CollectorRegistry, Counter, Info


class MetricsCollector:
    """Prometheus metrics for authorization decisions and audit emission.

    Each collector owns a private registry unless one is passed in, so
    several collectors can coexist in one process (tests, embedded hosts).
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up metrics for the engine."""

        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        self._metrics["authorization_decisions_total"] = Counter(
            "authorization_decisions_total",
            "Total authorization decisions",
            ["check", "decision"],
            registry=self.registry
        )

        self._metrics["authorization_denials_total"] = Counter(
            "authorization_denials_total",
            "Total contextual denials by failing step",
            ["reason"],
            registry=self.registry
        )

        self._metrics["security_events_total"] = Counter(
            "security_events_total",
            "Total security events handed to the sink",
            ["status"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_decision(self, check: str, allowed: bool, reason: Optional[str] = None):
        """Record the outcome of an authorization check."""
        decision = "allow" if allowed else "deny"
        self._metrics["authorization_decisions_total"].labels(check=check, decision=decision).inc()
        if not allowed and reason:
            self._metrics["authorization_denials_total"].labels(reason=reason).inc()

    def record_security_event(self, status: str):
        """Record a security event emission (``emitted`` or ``dropped``)."""
        self._metrics["security_events_total"].labels(status=status).inc()

    def sample(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Read the current value of a sample from this collector's registry."""
        value = self.registry.get_sample_value(name, labels or {})
        return value or 0.0


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
