"""
Core shared library for the Ads Dashboard.

This package contains the logic shared by web/ and scripts/:
- exceptions: Custom exception hierarchy
- validators: Input validation functions
- pagination: Page/limit handling for list endpoints
- config: Centralized configuration
- models / filters / repositories: DuckDB-backed data access
"""

# Import in dependency order
from core.exceptions import (
    DashboardError,
    ValidationError,
    ConflictError,
    NotFoundError,
    AuthenticationError,
)

from core.validators import (
    validate_required,
    validate_platform,
    validate_status,
    validate_currency,
    validate_name,
    validate_email,
    validate_limit,
    validate_page,
    validate_period_days,
    validate_datetime,
    validate_date_range,
)

from core.pagination import PageRequest

from core.config import AppConfig, load_config

__all__ = [
    # Exceptions
    "DashboardError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "AuthenticationError",
    # Validators
    "validate_required",
    "validate_platform",
    "validate_status",
    "validate_currency",
    "validate_name",
    "validate_email",
    "validate_limit",
    "validate_page",
    "validate_period_days",
    "validate_datetime",
    "validate_date_range",
    # Pagination
    "PageRequest",
    # Config
    "AppConfig",
    "load_config",
]
