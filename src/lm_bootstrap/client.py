"""HTTP client for the LoadMaster management API.

This module provides the client for the appliance RESTful "access" API:
``https://<address>:<port>/access/<command>?<query>``, answering with XML.
Every call takes the ConnectionTarget explicitly, so a management address
change takes effect on the very next call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from xml.etree.ElementTree import Element

import defusedxml.ElementTree as ET
import httpx

from .bootstrap.connection import ConnectionTarget, Credential
from .errors import SequenceError, TransportError, map_connection_error, map_http_error
from .shared.logging import get_logger

logger = get_logger(__name__)

# Query keys whose values must never reach a log line or error message
SECRET_QUERY_KEYS = frozenset({"passwd", "password", "kempid"})

UNLICENSED_STATUSES = frozenset({"", "unlicensed", "not licensed", "none"})


@dataclass
class LicenseInfo:
    """Parsed ``licenseinfo`` response."""

    status: str = ""
    expiration: str | None = None
    uuid: str | None = None
    fields: dict[str, str] = field(default_factory=dict)

    @property
    def licensed(self) -> bool:
        return self.status.strip().lower() not in UNLICENSED_STATUSES


@dataclass
class EulaPage:
    """EULA text plus the magic string required by the next handshake step."""

    text: str
    magic: str


def redact(params: dict[str, Any] | None) -> dict[str, Any]:
    """Return query params with secret values masked."""
    if not params:
        return {}
    return {k: ("***" if k in SECRET_QUERY_KEYS else v) for k, v in params.items()}


def _data_fields(data: Element) -> dict[str, str]:
    return {child.tag: (child.text or "").strip() for child in data}


class LoadMasterClient:
    """Async client for the LoadMaster management API.

    One instance serves every appliance in a run; the target of each call is
    given per call.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify_tls: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            timeout: Request timeout in seconds
            verify_tls: Verify appliance certificates (factory units are self-signed)
            transport: Optional httpx transport (tests use ASGITransport)
        """
        self.timeout = timeout
        self.verify_tls = verify_tls
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> LoadMasterClient:
        """Enter async context."""
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            verify=self.verify_tls,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure client is initialized."""
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context.")
        return self._client

    async def _request(
        self,
        target: ConnectionTarget,
        command: str,
        params: dict[str, Any] | None = None,
        credential: Credential | None = None,
    ) -> Element:
        """Issue one API command and return its ``<Data>`` element.

        Args:
            target: Appliance endpoint, read at call time
            command: API command (e.g., readeula)
            params: Query parameters
            credential: Basic-auth credential, None for pre-auth commands

        Returns:
            The ``<Data>`` element of a successful response (empty if absent)

        Raises:
            TransportError: On connection, HTTP, or appliance-reported errors
        """
        client = self._ensure_client()
        url = f"{target.base_url}/access/{command}"
        logger.debug(
            "api request",
            target=str(target),
            command=command,
            params=redact(params),
            principal=credential.principal if credential else None,
        )
        try:
            response = await client.get(
                url,
                params=params,
                auth=credential.as_auth() if credential else None,
            )
        except httpx.TimeoutException as e:
            raise map_connection_error(
                type(e).__name__, target.address, command, is_timeout=True
            ) from e
        except httpx.TransportError as e:
            raise map_connection_error(type(e).__name__, target.address, command) from e

        root = self._parse(response, target, command)

        if response.status_code >= 400:
            raise map_http_error(
                response.status_code, self._error_text(root), target.address, command
            )

        code = (root.get("code") if root is not None else None) or ""
        stat = (root.get("stat") if root is not None else None) or "200"
        if root is None or code.lower() != "ok" or not stat.startswith("2"):
            status_code = int(stat) if stat.isdigit() else 500
            raise map_http_error(status_code, self._error_text(root), target.address, command)

        success = root.find("Success")
        data = success.find("Data") if success is not None else None
        return data if data is not None else Element("Data")

    @staticmethod
    def _parse(response: httpx.Response, target: ConnectionTarget, command: str) -> Element | None:
        if not response.content:
            return None
        try:
            return ET.fromstring(response.content)
        except ET.ParseError as e:
            if response.status_code >= 400:
                return None
            raise TransportError(
                message=f"Unparsable response from {target.address} ({command})",
                data={"address": target.address, "command": command},
            ) from e

    @staticmethod
    def _error_text(root: Element | None) -> str:
        if root is None:
            return ""
        return (root.findtext("Error") or "").strip()

    # -------------------------------------------------------------------------
    # License state
    # -------------------------------------------------------------------------

    async def query_license(
        self, target: ConnectionTarget, credential: Credential | None = None
    ) -> LicenseInfo:
        """Get license information.

        Returns:
            LicenseInfo parsed from the appliance
        """
        data = await self._request(target, "licenseinfo", credential=credential)
        fields = _data_fields(data)
        return LicenseInfo(
            status=fields.get("LicenseStatus", ""),
            expiration=fields.get("ExpirationDate") or None,
            uuid=fields.get("UUID") or None,
            fields=fields,
        )

    # -------------------------------------------------------------------------
    # EULA handshake (pre-authentication)
    # -------------------------------------------------------------------------

    async def read_eula(self, target: ConnectionTarget) -> EulaPage:
        """Read the first EULA and its magic string."""
        data = await self._request(target, "readeula")
        return EulaPage(
            text=(data.findtext("Eula") or "").strip(),
            magic=(data.findtext("MagicString") or "").strip(),
        )

    async def accept_eula(self, target: ConnectionTarget, magic: str) -> EulaPage:
        """Acknowledge the first EULA, returning the second one."""
        data = await self._request(target, "accepteula", params={"magic": magic})
        return EulaPage(
            text=(data.findtext("Eula2") or "").strip(),
            magic=(data.findtext("MagicString") or "").strip(),
        )

    async def accept_eula2(self, target: ConnectionTarget, magic: str, accept: bool = True) -> None:
        """Accept the second EULA.

        Raises:
            SequenceError: If accept is False (rejection is not supported)
        """
        if not accept:
            raise SequenceError(
                message="Rejecting the EULA is not supported",
                data={"address": target.address},
            )
        await self._request(target, "accepteula2", params={"magic": magic, "accept": "yes"})

    # -------------------------------------------------------------------------
    # Activation
    # -------------------------------------------------------------------------

    async def activate_online(self, target: ConnectionTarget, kemp_id: str, password: str) -> None:
        """Retrieve a license online using a KEMP ID."""
        await self._request(target, "alsilicense", params={"kempid": kemp_id, "password": password})

    async def set_initial_password(self, target: ConnectionTarget, password: str) -> None:
        """Set the initial administrative password for ``bal``."""
        await self._request(target, "set_initial_passwd", params={"passwd": password})

    # -------------------------------------------------------------------------
    # Configuration (authenticated)
    # -------------------------------------------------------------------------

    async def set_parameter(
        self, target: ConnectionTarget, credential: Credential, name: str, value: str
    ) -> None:
        """Set one named system parameter."""
        await self._request(
            target, "set", params={"param": name, "value": value}, credential=credential
        )

    async def set_interface(
        self,
        target: ConnectionTarget,
        credential: Credential,
        interface_id: int,
        cidr_address: str,
    ) -> None:
        """Assign an address/prefix to a network interface."""
        await self._request(
            target,
            "modiface",
            params={"interface": interface_id, "addr": cidr_address},
            credential=credential,
        )
