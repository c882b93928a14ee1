"""
Offset pagination shared by list endpoints.

Usage:
    page = PageRequest.from_query(page=2, limit=50)
    rows = await repo.find_many(filters, offset=page.offset, limit=page.limit)
    total = await repo.count(filters)
    return {"items": rows, "pagination": page.meta(total)}
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.validators import validate_limit, validate_page

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50


@dataclass(frozen=True)
class PageRequest:
    """A validated 1-based page request."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_query(cls, page: Optional[int] = None, limit: Optional[int] = None) -> "PageRequest":
        """
        Build from raw query values, applying defaults.

        Raises:
            ValidationError: If page or limit is out of range
        """
        return cls(
            page=validate_page(DEFAULT_PAGE if page is None else page),
            limit=validate_limit(DEFAULT_LIMIT if limit is None else limit),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit)

    def meta(self, total: int) -> Dict[str, Any]:
        """Pagination block for list responses."""
        return {
            "total": total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages(total),
        }
