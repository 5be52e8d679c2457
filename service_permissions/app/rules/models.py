"""
Data models for the permission engine.
"""

from typing import Dict, Any, Optional, List, Literal
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Accepts both camelCase (auth provider, JSON) and snake_case keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Principal(_CamelModel):
    """Authenticated actor supplied by the auth provider."""
    id: str = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    # Raw string; only the exact value "admin" is treated as admin.
    role: str = Field(..., description="System role")
    email_verified: Optional[datetime] = Field(None, description="When the email was verified")
    banned: bool = Field(False, description="Whether the account is banned")


class _StrictCamelModel(_CamelModel):
    """Rejects unknown keys; a misspelled policy field must not skip its check."""

    model_config = ConfigDict(extra="forbid")


class BusinessHours(_StrictCamelModel):
    """Half-open hour-of-day window ``[start, end)``."""
    start: int = Field(..., ge=0, le=23)
    end: int = Field(..., ge=1, le=24)


class SecurityContext(_StrictCamelModel):
    """Caller identity details gathered by the request layer."""
    ip_address: Optional[str] = None
    mfa_verified: Optional[bool] = None
    user_agent: Optional[str] = None
    session_id: Optional[str] = None


class ResourceAccessContext(_StrictCamelModel):
    """Request-specific context for contextual access checks.

    Every check is toggled by its field being present: ``None`` means the
    check is skipped, while a present value is enforced. An empty
    ``allowed_ips`` list therefore admits no address at all.
    """
    version: Literal[1] = 1
    owner_id: Optional[str] = None
    user_id: Optional[str] = None
    business_hours: Optional[BusinessHours] = None
    security_context: Optional[SecurityContext] = None
    allowed_ips: Optional[List[str]] = Field(None, alias="allowedIPs")
    require_mfa: Optional[bool] = Field(None, alias="requireMFA")

    @property
    def subject_id(self) -> Optional[str]:
        """Owner of the target resource; ``owner_id`` wins over ``user_id``."""
        return self.owner_id if self.owner_id is not None else self.user_id


class SecurityEvent(_CamelModel):
    """Structured denial event forwarded to the audit sink."""
    type: Literal["PERMISSION_DENIED"] = "PERMISSION_DENIED"
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None
    required_permission: str
    resource: str
    ip_address: Optional[str] = None
    timestamp: datetime
    details: Dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready, camelCase representation for external sinks."""
        return self.model_dump(by_alias=True, mode="json")


class DenialReason(str, Enum):
    """First failing step of a contextual access check."""
    NO_PRINCIPAL = "no_principal"
    INVALID_RESOURCE = "invalid_resource"
    INVALID_ACTION = "invalid_action"
    ACCOUNT_BANNED = "account_banned"
    INSUFFICIENT_PERMISSION = "insufficient_permission"
    OUTSIDE_BUSINESS_HOURS = "outside_business_hours"
    MFA_REQUIRED = "mfa_required"
    IP_NOT_ALLOWED = "ip_not_allowed"


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of a contextual access check."""
    allowed: bool
    reason: Optional[DenialReason] = None
    via_ownership: bool = False

    @classmethod
    def allow(cls, via_ownership: bool = False) -> "AccessDecision":
        return cls(allowed=True, via_ownership=via_ownership)

    @classmethod
    def deny(cls, reason: DenialReason) -> "AccessDecision":
        return cls(allowed=False, reason=reason)


@dataclass(frozen=True)
class AuthorizationResult:
    """Result of a composed permission requirement."""
    authorized: bool
    error: Optional[str] = None
