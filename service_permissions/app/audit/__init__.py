"""
Security event auditing for permission denials.
"""

from .auditor import (
    ViolationAuditor, configure_violation_auditor, get_violation_auditor, log_permission_violation,
)
from .sinks import HttpSecuritySink, LoggingSecuritySink, SecurityEventSink, build_sink

__all__ = [
    "ViolationAuditor",
    "configure_violation_auditor",
    "get_violation_auditor",
    "log_permission_violation",
    "HttpSecuritySink",
    "LoggingSecuritySink",
    "SecurityEventSink",
    "build_sink",
]
