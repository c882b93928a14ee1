"""
Custom exception hierarchy for dashboard operations.

Exception Hierarchy:
    DashboardError (base)
    ├── ValidationError      - Missing or invalid input (400)
    ├── ConflictError        - Duplicate unique key (400)
    ├── NotFoundError        - Referenced entity absent (404)
    └── AuthenticationError  - Missing/invalid token or credentials (401)

Route handlers never build error responses by hand: the exception handlers
registered in web.main translate these into the JSON envelope.
"""


class DashboardError(Exception):
    """Base exception for all dashboard errors."""

    status_code = 500

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ValidationError(DashboardError):
    """
    Input validation failed.

    Used for validating user input before processing.
    """

    status_code = 400

    def __init__(self, field: str, message: str, value: any = None):
        self.field = field
        self.value = value
        super().__init__(message)

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value!r})"
        return f"{self.field}: {self.message}"


class ConflictError(DashboardError):
    """A record with the same unique key already exists."""

    status_code = 400


class NotFoundError(DashboardError):
    """Referenced entity does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: any = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class AuthenticationError(DashboardError):
    """
    Authentication failed.

    The message is deliberately generic for credential failures so callers
    cannot tell an unknown email from a wrong password.
    """

    status_code = 401
