"""Unit tests for the bootstrap error taxonomy."""

from lm_bootstrap.errors import (
    BootstrapError,
    SequenceError,
    TransportError,
    ValidationError,
    map_connection_error,
    map_http_error,
)


class TestErrorTypes:
    """Tests for error classes."""

    def test_subclasses_share_base(self):
        """Every specific error is a BootstrapError."""
        for cls in (TransportError, SequenceError, ValidationError):
            assert issubclass(cls, BootstrapError)

    def test_str_is_message(self):
        """str() renders the message, not the dataclass repr."""
        error = SequenceError(message="step 3 without token")
        assert str(error) == "step 3 without token"

    def test_defaults(self):
        """Default messages and non-retryable by default."""
        assert TransportError().message == "Appliance request failed"
        assert ValidationError().retryable is False

    def test_to_dict(self):
        """to_dict includes the type name and data when present."""
        error = ValidationError(message="bad cidr", data={"cidr_address": "10.0.0.1"})
        assert error.to_dict() == {
            "type": "ValidationError",
            "message": "bad cidr",
            "data": {"cidr_address": "10.0.0.1"},
        }

    def test_to_dict_without_data(self):
        """Empty data is omitted."""
        assert "data" not in TransportError(message="x").to_dict()


class TestMapHttpError:
    """Tests for map_http_error."""

    def test_auth_errors(self):
        """401/403 become non-retryable authentication failures."""
        for status in (401, 403):
            error = map_http_error(status, "Authorization required", "10.0.1.109", "set")
            assert isinstance(error, TransportError)
            assert "Authentication failed" in error.message
            assert error.retryable is False
            assert error.data["http_status"] == status

    def test_timeout_is_retryable(self):
        """408/504 are retryable."""
        assert map_http_error(504, "", "10.0.1.109", "licenseinfo").retryable is True

    def test_gateway_errors_retryable(self):
        """502/503 retryable, 500 not."""
        assert map_http_error(503, "busy", "a", "licenseinfo").retryable is True
        assert map_http_error(500, "boom", "a", "licenseinfo").retryable is False

    def test_client_error_keeps_message(self):
        """4xx carry the appliance message and command."""
        error = map_http_error(422, "Invalid magic string", "10.0.1.109", "accepteula")
        assert "Invalid magic string" in error.message
        assert "accepteula" in error.message
        assert error.data["original_message"] == "Invalid magic string"


class TestMapConnectionError:
    """Tests for map_connection_error."""

    def test_connection_refused(self):
        """Unreachable appliances are retryable transport errors."""
        error = map_connection_error("ConnectError", "10.0.1.109", "licenseinfo")
        assert "Cannot reach appliance at 10.0.1.109" in error.message
        assert error.retryable is True

    def test_timeout(self):
        """Timeouts are flagged as such."""
        error = map_connection_error("ReadTimeout", "10.0.1.109", "set", is_timeout=True)
        assert "timeout" in error.message.lower()
        assert error.data["command"] == "set"


class TestAuthFailed:
    """Tests for TransportError.auth_failed."""

    def test_auth_statuses(self):
        assert map_http_error(401, "", "a", "set").auth_failed is True
        assert map_http_error(403, "", "a", "set").auth_failed is True

    def test_other_failures(self):
        assert map_http_error(500, "", "a", "set").auth_failed is False
        assert map_connection_error("ConnectError", "a", "set").auth_failed is False
