"""Error taxonomy for appliance bootstrap.

Maps HTTP status codes, connection faults and LoadMaster failure responses
to bootstrap errors. Every error is scoped to a single appliance: the
orchestrator records it and moves on to the next inventory entry.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class BootstrapError(Exception):
    """Base error class for bootstrap errors."""

    message: str
    retryable: bool = False
    data: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        error: dict[str, Any] = {"type": type(self).__name__, "message": self.message}
        if self.data:
            error["data"] = self.data
        return error


@dataclass
class TransportError(BootstrapError):
    """The appliance could not be reached, refused auth, or answered with a failure."""

    message: str = "Appliance request failed"

    @property
    def auth_failed(self) -> bool:
        """The appliance answered but refused the credential."""
        return self.data.get("http_status") in (401, 403)


@dataclass
class SequenceError(BootstrapError):
    """A handshake step was invoked out of order or with a missing token."""

    message: str = "Handshake step out of sequence"


@dataclass
class ValidationError(BootstrapError):
    """Malformed inventory or missing required input."""

    message: str = "Invalid inventory"


def map_http_error(status_code: int, message: str, address: str, command: str) -> TransportError:
    """Map an HTTP status code to a TransportError.

    Args:
        status_code: HTTP status code
        message: Error message from response body
        address: Appliance address that was targeted
        command: API command that failed

    Returns:
        TransportError with context attached
    """
    data = {"address": address, "command": command, "http_status": status_code}
    if message:
        data["original_message"] = message

    if status_code in (401, 403):
        return TransportError(
            message=f"Authentication failed on {address} ({command})",
            data=data,
        )
    elif status_code in (408, 504):
        return TransportError(
            message=f"Request timeout on {address} ({command})",
            retryable=True,
            data=data,
        )
    elif status_code >= 500:
        return TransportError(
            message=f"Appliance error on {address} ({command}): {message or status_code}",
            retryable=status_code in (502, 503),  # Gateway errors may be retryable
            data=data,
        )
    else:
        return TransportError(
            message=f"HTTP error {status_code} on {address} ({command}): {message}",
            data=data,
        )


def map_connection_error(
    error_message: str, address: str, command: str, is_timeout: bool = False
) -> TransportError:
    """Map a connection-level fault to a TransportError.

    Args:
        error_message: Error message from exception
        address: Appliance address that was targeted
        command: API command that was being issued
        is_timeout: Whether this was a timeout error

    Returns:
        Retryable TransportError
    """
    data = {"address": address, "command": command, "original_error": error_message}
    if is_timeout:
        return TransportError(
            message=f"Request timeout connecting to {address} ({command})",
            retryable=True,
            data=data,
        )
    return TransportError(
        message=f"Cannot reach appliance at {address} ({command})",
        retryable=True,
        data=data,
    )
