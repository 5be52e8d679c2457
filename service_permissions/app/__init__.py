"""
Permission engine package for the studio admin dashboard.

This package decides whether an authenticated principal may perform an
action on a dashboard resource. It provides:

- app.rules: Permission catalog, predicates, contextual validator and
  checker factories.
- app.audit: Security event emission for reported denials.
- app.bootstrap: Process-start wiring of settings, logging, metrics and
  the default auditor.

Guidelines:
- The engine is stateless; identity and configuration arrive with the call.
- Every decision defaults to deny and is deterministic for the same inputs.
- Denial detail goes to logs and metrics, never to the returned value.
"""
