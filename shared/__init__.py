"""
Shared utilities for the studio permission engine.

This package aggregates the ambient building blocks used by the engine:

- config: Engine configuration via pydantic-settings
- logging: Structured logging with trace and request correlation
- metrics: Prometheus counters for decisions and audit emission
- errors: Canonical error types and responses

Do not import from service_* packages into shared/.
"""
