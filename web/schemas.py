"""
Pydantic models for API request bodies and documented responses.

Request bodies keep every field optional: presence and format checks run in
the route handlers through core.validators so failures share the error
envelope.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════════════
# AUTH
# ═══════════════════════════════════════════════════════════════════════════════

class LoginRequest(BaseModel):
    """Password login."""
    email: Optional[str] = None
    password: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════════════
# ACCOUNTS
# ═══════════════════════════════════════════════════════════════════════════════

class AccountCreateRequest(BaseModel):
    """New ad account. platform, accountId and accountName are required."""
    platform: Optional[str] = None
    accountId: Optional[str] = None
    accountName: Optional[str] = None
    currency: Optional[str] = Field(None, description="ISO currency code, default USD")
    status: Optional[str] = Field(None, description="active, paused or disabled; default active")
    config: Optional[Any] = Field(None, description="Free-form JSON configuration")


class AccountUpdateRequest(BaseModel):
    """Partial account update; omitted fields keep their values."""
    accountName: Optional[str] = None
    currency: Optional[str] = None
    status: Optional[str] = None
    config: Optional[Any] = None


# ═══════════════════════════════════════════════════════════════════════════════
# CAMPAIGNS
# ═══════════════════════════════════════════════════════════════════════════════

class CampaignCreateRequest(BaseModel):
    """New campaign under an existing account."""
    accountId: Optional[str] = None
    campaignId: Optional[str] = None
    campaignName: Optional[str] = None
    status: Optional[str] = None
    budget: Optional[float] = Field(None, ge=0)


class CampaignUpdateRequest(BaseModel):
    """Partial campaign update; omitted fields keep their values."""
    campaignName: Optional[str] = None
    status: Optional[str] = None
    budget: Optional[float] = Field(None, ge=0)


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH CHECK
# ═══════════════════════════════════════════════════════════════════════════════

class DatabaseStats(BaseModel):
    """DuckDB statistics."""
    status: str
    latency_ms: Optional[float] = None
    accounts: Optional[int] = None
    campaigns: Optional[int] = None
    orders: Optional[int] = None
    users: Optional[int] = None
    db_size_mb: Optional[float] = None


class HealthData(BaseModel):
    """Health check payload."""
    status: str = Field(description="Service status: healthy or degraded")
    version: str = Field(description="Application version")
    uptime_seconds: int = Field(description="Uptime in seconds")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
    database: DatabaseStats
    metrics: Dict[str, Any] = Field(default_factory=dict)
