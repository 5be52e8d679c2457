"""
Permission rules package.

Defines the closed permission catalog, the pure predicates evaluated against
a principal, and the contextual validator that layers ownership, business
hours, MFA and IP allowlist checks on top of them. Every decision defaults to
deny.

Modules of interest:
- catalog: Permission, resource, action and role enums plus the role tables.
- models: Principal, access context, security event and decision types.
- evaluator: is_admin / has_permission / can_manage_resource predicates.
- validator: Ordered contextual checks returning a deterministic decision.
- checkers: Factories for reusable, composable predicates.
- clock: Injected time source for business-hours checks.
"""
