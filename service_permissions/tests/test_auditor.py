"""
Unit tests for the violation auditor and security event sinks.
"""

import json
import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock

import httpx
import pytest
from structlog.testing import capture_logs

from service_permissions.app.audit import auditor as auditor_module
from service_permissions.app.audit.auditor import (
    ViolationAuditor, configure_violation_auditor, get_violation_auditor, log_permission_violation,
)
from service_permissions.app.audit.sinks import HttpSecuritySink, LoggingSecuritySink, build_sink
from service_permissions.app.rules.catalog import Permission
from service_permissions.app.rules.clock import FixedClock
from service_permissions.app.rules.models import SecurityEvent
from shared.config import get_settings
from shared.metrics import MetricsCollector

NOW = datetime(2024, 6, 1, 15, 30, tzinfo=timezone.utc)


class RecordingSink:
    """Sink that keeps every event it receives."""

    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)


class FailingSink:
    """Sink whose delivery always fails."""

    def __init__(self):
        self.calls = 0

    def emit(self, event):
        self.calls += 1
        raise ConnectionError("collector unreachable")


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def auditor(sink):
    return ViolationAuditor(sink, clock=FixedClock(NOW))


@pytest.fixture
def restore_default_auditor():
    previous = auditor_module._default_auditor
    yield
    auditor_module._default_auditor = previous


def _event(**overrides):
    values = dict(
        user_id="user-1",
        user_email="user@example.com",
        user_role="user",
        required_permission="dashboard:view",
        resource="/admin/dashboard",
        ip_address="192.168.1.100",
        timestamp=NOW,
    )
    values.update(overrides)
    return SecurityEvent(**values)


class TestViolationAuditor:
    """Test cases for ViolationAuditor."""

    def test_logs_principal_violation(self, auditor, sink, regular_user):
        """Test one event carrying the principal's identity."""
        auditor.log_permission_violation(
            regular_user, "VIEW_DASHBOARD", "/admin/dashboard", {"ipAddress": "192.168.1.100"}
        )

        assert len(sink.events) == 1
        event = sink.events[0]
        assert event.type == "PERMISSION_DENIED"
        assert event.user_id == regular_user.id
        assert event.user_email == regular_user.email
        assert event.user_role == regular_user.role
        assert event.required_permission == "VIEW_DASHBOARD"
        assert event.resource == "/admin/dashboard"
        assert event.ip_address == "192.168.1.100"
        assert event.timestamp == NOW

    def test_logs_anonymous_violation(self, auditor, sink):
        """Test a missing principal yields null identity fields."""
        auditor.log_permission_violation(None, "ADMIN_ACCESS", "/admin/settings", {"ipAddress": "10.0.0.1"})

        assert len(sink.events) == 1
        payload = sink.events[0].to_payload()
        assert payload["userId"] is None
        assert payload["userEmail"] is None
        assert payload["userRole"] is None
        assert payload["requiredPermission"] == "ADMIN_ACCESS"
        assert payload["resource"] == "/admin/settings"
        assert payload["ipAddress"] == "10.0.0.1"

    def test_permission_enum_and_extra_details(self, auditor, sink, admin_user):
        """Test enum tokens are flattened and other extras kept as details."""
        auditor.log_permission_violation(
            admin_user, Permission.ADMIN_SETTINGS, "settings",
            {"ip_address": "10.0.0.2", "userAgent": "Mozilla/5.0", "sessionId": "session-123"}
        )

        event = sink.events[0]
        assert event.required_permission == "admin:settings"
        assert event.ip_address == "10.0.0.2"
        assert event.details == {"userAgent": "Mozilla/5.0", "sessionId": "session-123"}

    def test_no_extra(self, auditor, sink, regular_user):
        """Test the IP address is optional."""
        auditor.log_permission_violation(regular_user, "dashboard:view", "/admin")
        assert sink.events[0].ip_address is None
        assert sink.events[0].details == {}

    def test_sink_failure_is_suppressed(self, regular_user):
        """Test a failing sink never raises back to the caller."""
        failing = FailingSink()
        metrics = MetricsCollector("permissions")
        auditor = ViolationAuditor(failing, clock=FixedClock(NOW), metrics=metrics)

        assert auditor.log_permission_violation(None, "ADMIN_ACCESS", "/admin/settings",
                                                {"ipAddress": "10.0.0.1"}) is None
        auditor.log_permission_violation(regular_user, "ADMIN_ACCESS", "/admin/settings")

        assert failing.calls == 2
        assert metrics.sample("security_events_total", {"status": "dropped"}) == 2.0

    def test_malformed_extra_is_suppressed(self, sink, regular_user):
        """Test a bad extra payload is dropped, not raised."""
        auditor = ViolationAuditor(sink, clock=FixedClock(NOW))
        auditor.log_permission_violation(regular_user, "ADMIN_ACCESS", "/admin", {"ipAddress": ["not", "a", "str"]})
        assert sink.events == []

    def test_emitted_events_are_counted(self, sink, regular_user):
        """Test successful emissions are counted."""
        metrics = MetricsCollector("permissions")
        auditor = ViolationAuditor(sink, clock=FixedClock(NOW), metrics=metrics)

        auditor.log_permission_violation(regular_user, "ADMIN_ACCESS", "/admin")

        assert metrics.sample("security_events_total", {"status": "emitted"}) == 1.0

    def test_no_retry(self, regular_user):
        """Test the sink is called exactly once per violation."""
        mock_sink = MagicMock()
        mock_sink.emit.side_effect = TimeoutError("slow collector")
        auditor = ViolationAuditor(mock_sink, clock=FixedClock(NOW))

        auditor.log_permission_violation(regular_user, "ADMIN_ACCESS", "/admin")

        assert mock_sink.emit.call_count == 1


class TestDefaultAuditor:
    """Test cases for the process-wide auditor."""

    def test_module_level_forwarding(self, restore_default_auditor, sink):
        """Test log_permission_violation uses the configured auditor."""
        configure_violation_auditor(ViolationAuditor(sink, clock=FixedClock(NOW)))

        log_permission_violation(None, "ADMIN_ACCESS", "/admin/settings", {"ipAddress": "10.0.0.1"})

        assert len(sink.events) == 1
        assert sink.events[0].user_id is None

    def test_module_level_never_raises(self, restore_default_auditor):
        """Test the module-level helper swallows sink failures too."""
        configure_violation_auditor(ViolationAuditor(FailingSink(), clock=FixedClock(NOW)))

        log_permission_violation(None, "ADMIN_ACCESS", "/admin/settings", {"ipAddress": "10.0.0.1"})

    def test_built_from_settings(self, restore_default_auditor, monkeypatch):
        """Test the default auditor picks its sink from settings."""
        monkeypatch.setenv("PERMISSIONS_AUDIT_SINK_URL", "http://collector.local/events")
        auditor_module._default_auditor = None

        auditor = get_violation_auditor()

        assert isinstance(auditor.sink, HttpSecuritySink)
        assert auditor.sink.url == "http://collector.local/events"
        assert get_violation_auditor() is auditor


class TestSinks:
    """Test cases for the sink implementations."""

    def test_build_sink(self):
        """Test sink selection from settings."""
        assert isinstance(build_sink(get_settings()), LoggingSecuritySink)

        sink = build_sink(get_settings(audit_sink_url="http://collector.local/events", audit_timeout_seconds=0.5))
        assert isinstance(sink, HttpSecuritySink)
        assert sink.timeout == 0.5

    def test_logging_sink(self):
        """Test the logging sink writes one structured warning."""
        sink = LoggingSecuritySink()

        with capture_logs() as logs:
            sink.emit(_event())

        assert len(logs) == 1
        assert logs[0]["log_level"] == "warning"
        assert logs[0]["event_type"] == "PERMISSION_DENIED"
        assert logs[0]["security_event"]["userId"] == "user-1"
        assert logs[0]["security_event"]["ipAddress"] == "192.168.1.100"

    def test_http_sink_sync(self):
        """Test the HTTP sink posts camelCase JSON outside an event loop."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(202)

        sink = HttpSecuritySink("http://collector.local/events", transport=httpx.MockTransport(handler))
        sink.emit(_event())
        sink.flush()

        assert len(requests) == 1
        body = json.loads(requests[0].content)
        assert body["type"] == "PERMISSION_DENIED"
        assert body["userId"] == "user-1"
        assert body["requiredPermission"] == "dashboard:view"
        assert body["timestamp"].startswith("2024-06-01T15:30:00")

    def test_http_sink_sync_failure_dropped(self):
        """Test server errors are dropped without raising."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        sink = HttpSecuritySink("http://collector.local/events", transport=httpx.MockTransport(handler))
        sink.emit(_event())
        sink.flush()

        assert len(calls) == 1

    def test_http_sink_sync_does_not_block(self, regular_user):
        """Test a slow collector does not hold up the reporting caller."""
        release = threading.Event()
        requests = []

        def handler(request):
            release.wait(timeout=5)
            requests.append(request)
            return httpx.Response(202)

        sink = HttpSecuritySink("http://collector.local/events", transport=httpx.MockTransport(handler))
        auditor = ViolationAuditor(sink, clock=FixedClock(NOW))

        auditor.log_permission_violation(regular_user, Permission.ADMIN_SETTINGS, "/admin/settings")

        assert requests == []
        release.set()
        sink.flush(timeout=5)
        sink.close()

        assert len(requests) == 1

    def test_http_sink_sync_unexpected_error_dropped(self):
        """Test non-HTTP failures in the worker are logged and dropped once."""
        calls = []

        def handler(request):
            calls.append(request)
            raise RuntimeError("collector misconfigured")

        sink = HttpSecuritySink("http://collector.local/events", transport=httpx.MockTransport(handler))

        with capture_logs() as logs:
            sink.emit(_event())
            sink.flush(timeout=5)

        assert len(calls) == 1
        assert [log["event"] for log in logs] == ["Security event dropped"]

    @pytest.mark.asyncio
    async def test_http_sink_async_unexpected_error_dropped(self):
        """Test non-HTTP failures in a background task leave no task exception."""
        def handler(request):
            raise RuntimeError("collector misconfigured")

        sink = HttpSecuritySink("http://collector.local/events", async_transport=httpx.MockTransport(handler))

        with capture_logs() as logs:
            sink.emit(_event())
            tasks = list(sink._pending)
            await sink.drain()

        assert len(tasks) == 1
        assert tasks[0].exception() is None
        assert [log["event"] for log in logs] == ["Security event dropped"]

    @pytest.mark.asyncio
    async def test_http_sink_async_is_background(self):
        """Test inside a loop the post is scheduled, not awaited inline."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(202)

        sink = HttpSecuritySink("http://collector.local/events", async_transport=httpx.MockTransport(handler))
        sink.emit(_event(user_id=None, user_email=None, user_role=None))

        assert requests == []
        await sink.drain()

        assert len(requests) == 1
        assert json.loads(requests[0].content)["userId"] is None

    @pytest.mark.asyncio
    async def test_http_sink_async_failure_dropped(self):
        """Test connection failures in the background are dropped once."""
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        sink = HttpSecuritySink("http://collector.local/events", async_transport=httpx.MockTransport(handler))
        auditor = ViolationAuditor(sink, clock=FixedClock(NOW))

        auditor.log_permission_violation(None, "ADMIN_ACCESS", "/admin/settings", {"ipAddress": "10.0.0.1"})
        await sink.drain()

        assert len(calls) == 1
