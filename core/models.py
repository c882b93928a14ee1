"""
Domain models for the ads dashboard.

Provides type-safe dataclasses for Accounts, Orders, Campaigns and Users.
Repositories build them from DuckDB rows (`from_row`) and routes serialize
them with `to_dict`, which emits the camelCase keys the frontend expects.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Any, Sequence

from core.exceptions import ValidationError

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class AccountStatus(str, Enum):
    """Lifecycle status of an ad account or campaign."""
    ACTIVE = "active"
    PAUSED = "paused"
    DISABLED = "disabled"

    @classmethod
    def values(cls) -> List[str]:
        return [s.value for s in cls]


class UserRole(str, Enum):
    """Dashboard user roles."""
    ADMIN = "admin"
    VIEWER = "viewer"


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def to_float(value: Any) -> float:
    """Convert DECIMAL/None values coming out of DuckDB to float."""
    if value is None:
        return 0.0
    if isinstance(value, Decimal):
        return float(value)
    return float(value)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_config(raw: Optional[str], account_id: str = None) -> Optional[Any]:
    """
    Parse a stored config blob.

    Parse failures are logged and degrade to None rather than failing the
    request.
    """
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"Failed to parse config for account {account_id}: {e}")
        return None


def serialize_config(config: Any) -> Optional[str]:
    """
    Serialize a config value for storage (None stays NULL).

    Raises:
        ValidationError: If the value has no strict JSON form (NaN, Infinity)
    """
    if config is None:
        return None
    try:
        return json.dumps(config, ensure_ascii=False, allow_nan=False)
    except (ValueError, TypeError) as e:
        raise ValidationError("config", f"Must be valid JSON: {e}")


# ═══════════════════════════════════════════════════════════════════════════════
# DATACLASSES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Account:
    """Ad platform account."""
    id: str
    platform: str
    account_id: str
    account_name: str
    currency: str = "USD"
    status: str = AccountStatus.ACTIVE.value
    config: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    COLUMNS = (
        "id, platform, account_id, account_name, currency, status, "
        "config, created_at, updated_at"
    )

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "Account":
        return cls(*row)

    @property
    def parsed_config(self) -> Optional[Any]:
        return parse_config(self.config, self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "platform": self.platform,
            "accountId": self.account_id,
            "accountName": self.account_name,
            "currency": self.currency,
            "status": self.status,
            "config": self.parsed_config,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass
class Order:
    """Attributed order with commission. Read-only for the dashboard."""
    id: str
    platform: str
    order_id: str
    order_amount: Decimal
    commission_amount: Decimal
    conversion_time: datetime
    status: str
    account_id: Optional[str] = None

    COLUMNS = (
        "id, platform, order_id, order_amount, commission_amount, "
        "conversion_time, status, account_id"
    )

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "Order":
        return cls(*row)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "platform": self.platform,
            "orderId": self.order_id,
            "accountId": self.account_id,
            "orderAmount": to_float(self.order_amount),
            "commissionAmount": to_float(self.commission_amount),
            "conversionTime": _iso(self.conversion_time),
            "status": self.status,
        }


@dataclass
class OrderTotals:
    """Result of the sum/count reducer over a set of orders."""
    count: int = 0
    order_amount: float = 0.0
    commission_amount: float = 0.0

    @classmethod
    def from_row(cls, row: Optional[Sequence[Any]]) -> "OrderTotals":
        if not row:
            return cls()
        return cls(
            count=int(row[0] or 0),
            order_amount=to_float(row[1]),
            commission_amount=to_float(row[2]),
        )

    @property
    def avg_order_amount(self) -> float:
        return self.order_amount / self.count if self.count > 0 else 0.0

    @property
    def avg_commission(self) -> float:
        return self.commission_amount / self.count if self.count > 0 else 0.0

    def to_summary(self) -> Dict[str, Any]:
        return {
            "totalOrders": self.count,
            "totalOrderAmount": round(self.order_amount, 2),
            "totalCommissionAmount": round(self.commission_amount, 2),
        }


@dataclass
class Campaign:
    """Ad campaign belonging to one account."""
    id: str
    account_id: str
    campaign_id: str
    campaign_name: str
    status: str = AccountStatus.ACTIVE.value
    budget: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    platform: Optional[str] = None

    COLUMNS = (
        "c.id, c.account_id, c.campaign_id, c.campaign_name, c.status, "
        "c.budget, c.created_at, c.updated_at, a.platform"
    )

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "Campaign":
        return cls(*row)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "accountId": self.account_id,
            "campaignId": self.campaign_id,
            "campaignName": self.campaign_name,
            "status": self.status,
            "budget": to_float(self.budget) if self.budget is not None else None,
            "platform": self.platform,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass
class DailyPerformance:
    """One campaign's delivery metrics for one day."""
    campaign_id: str
    date: date
    impressions: int = 0
    clicks: int = 0
    cost: float = 0.0
    conversions: int = 0
    revenue: float = 0.0

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "DailyPerformance":
        return cls(
            campaign_id=row[0],
            date=row[1],
            impressions=int(row[2] or 0),
            clicks=int(row[3] or 0),
            cost=to_float(row[4]),
            conversions=int(row[5] or 0),
            revenue=to_float(row[6]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaignId": self.campaign_id,
            "date": self.date.isoformat(),
            "impressions": self.impressions,
            "clicks": self.clicks,
            "cost": round(self.cost, 2),
            "conversions": self.conversions,
            "revenue": round(self.revenue, 2),
        }


@dataclass
class User:
    """Dashboard user. The password hash never leaves the repository layer via to_dict."""
    id: str
    email: str
    name: Optional[str]
    password_hash: str
    role: str = UserRole.VIEWER.value
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None
    account_ids: List[str] = field(default_factory=list)

    COLUMNS = "id, email, name, password_hash, role, avatar, created_at"

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "User":
        return cls(*row)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "avatar": self.avatar,
            "createdAt": _iso(self.created_at),
        }
