"""
Query filter value types and date window helpers.

Each resource has an explicit filter type; `to_sql()` renders it into a
parameterized WHERE clause for the DuckDB repositories.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import FrozenSet, Iterable, List, Optional, Tuple


def _where(conditions: List[str]) -> str:
    return ("WHERE " + " AND ".join(conditions)) if conditions else ""


def in_clause(column: str, values: Iterable[str], params: list) -> str:
    values = sorted(values)
    params.extend(values)
    return f"{column} IN ({', '.join('?' for _ in values)})"


@dataclass
class DateRange:
    """Represents an inclusive range of calendar days."""
    start: date
    end: date

    @property
    def start_str(self) -> str:
        """Start date as YYYY-MM-DD string."""
        return self.start.strftime("%Y-%m-%d")

    @property
    def end_str(self) -> str:
        """End date as YYYY-MM-DD string."""
        return self.end.strftime("%Y-%m-%d")

    @property
    def days(self) -> List[date]:
        """Every calendar day in the range, ascending."""
        return [self.start + timedelta(days=i) for i in range((self.end - self.start).days + 1)]

    @classmethod
    def trailing(cls, today: date, days: int) -> "DateRange":
        """The `days + 1` calendar days ending today."""
        return cls(today - timedelta(days=days), today)


@dataclass(frozen=True)
class TimeWindow:
    """A span of conversion time. `end` is exclusive when `end_exclusive` is set."""
    start: datetime
    end: datetime
    end_exclusive: bool = False

    @classmethod
    def trailing(cls, now: datetime, days: int) -> "TimeWindow":
        """[now - days, now]"""
        return cls(now - timedelta(days=days), now)

    def previous(self) -> "TimeWindow":
        """The adjacent window of equal length ending where this one starts."""
        return TimeWindow(self.start - (self.end - self.start), self.start, end_exclusive=True)


@dataclass(frozen=True)
class AccountFilter:
    """Filter for account listings."""
    platform: Optional[str] = None
    status: Optional[str] = None
    ids: FrozenSet[str] = field(default_factory=frozenset)

    def to_sql(self) -> Tuple[str, list]:
        conditions, params = [], []
        if self.platform:
            conditions.append("platform = ?")
            params.append(self.platform)
        if self.status:
            conditions.append("status = ?")
            params.append(self.status)
        if self.ids:
            conditions.append(in_clause("id", self.ids, params))
        return _where(conditions), params


@dataclass(frozen=True)
class OrderFilter:
    """Filter for order scans and aggregates."""
    platform: Optional[str] = None
    status: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    end_exclusive: bool = False
    account_ids: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def for_window(cls, window: TimeWindow, account_ids: Iterable[str] = ()) -> "OrderFilter":
        return cls(
            start=window.start,
            end=window.end,
            end_exclusive=window.end_exclusive,
            account_ids=frozenset(account_ids),
        )

    def to_sql(self) -> Tuple[str, list]:
        conditions, params = [], []
        if self.platform:
            conditions.append("platform = ?")
            params.append(self.platform)
        if self.status:
            conditions.append("status = ?")
            params.append(self.status)
        if self.start is not None:
            conditions.append("conversion_time >= ?")
            params.append(self.start)
        if self.end is not None:
            conditions.append("conversion_time < ?" if self.end_exclusive else "conversion_time <= ?")
            params.append(self.end)
        if self.account_ids:
            conditions.append(in_clause("account_id", self.account_ids, params))
        return _where(conditions), params


@dataclass(frozen=True)
class CampaignFilter:
    """Filter for campaign listings (joined with accounts as `a`)."""
    account_id: Optional[str] = None
    status: Optional[str] = None
    platform: Optional[str] = None
    account_ids: FrozenSet[str] = field(default_factory=frozenset)

    def to_sql(self) -> Tuple[str, list]:
        conditions, params = [], []
        if self.account_id:
            conditions.append("c.account_id = ?")
            params.append(self.account_id)
        if self.status:
            conditions.append("c.status = ?")
            params.append(self.status)
        if self.platform:
            conditions.append("a.platform = ?")
            params.append(self.platform)
        if self.account_ids:
            conditions.append(in_clause("c.account_id", self.account_ids, params))
        return _where(conditions), params
