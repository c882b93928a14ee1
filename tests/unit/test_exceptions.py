"""
Tests for core.exceptions module.
"""
import pytest

from core.exceptions import (
    DashboardError,
    ValidationError,
    ConflictError,
    NotFoundError,
    AuthenticationError,
)


class TestDashboardError:
    """Tests for base DashboardError exception."""

    def test_message_only(self):
        """Error with message only."""
        error = DashboardError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.details is None

    def test_message_with_details(self):
        """Error with message and details."""
        error = DashboardError("Failed to save", "disk full")
        assert str(error) == "Failed to save: disk full"
        assert error.details == "disk full"

    def test_default_status(self):
        """Unclassified errors map to 500."""
        assert DashboardError("x").status_code == 500


class TestValidationError:
    """Tests for ValidationError exception."""

    def test_inheritance(self):
        assert isinstance(ValidationError("field", "msg"), DashboardError)

    def test_without_value(self):
        error = ValidationError("platform", "Field is required")
        assert str(error) == "platform: Field is required"
        assert error.field == "platform"
        assert error.status_code == 400

    def test_with_value(self):
        error = ValidationError("limit", "Cannot exceed 200", 500)
        assert str(error) == "limit: Cannot exceed 200 (got: 500)"
        assert error.value == 500


class TestConflictError:
    """Tests for ConflictError exception."""

    def test_status_and_message(self):
        error = ConflictError("Account already exists", "google/123")
        assert error.status_code == 400
        assert str(error) == "Account already exists: google/123"


class TestNotFoundError:
    """Tests for NotFoundError exception."""

    def test_message(self):
        error = NotFoundError("Account", "abc")
        assert str(error) == "Account not found"
        assert error.entity == "Account"
        assert error.entity_id == "abc"
        assert error.status_code == 404


class TestAuthenticationError:
    """Tests for AuthenticationError exception."""

    def test_status(self):
        error = AuthenticationError("Invalid email or password")
        assert error.status_code == 401
        assert str(error) == "Invalid email or password"

    def test_catchable_as_base(self):
        with pytest.raises(DashboardError):
            raise AuthenticationError("nope")
