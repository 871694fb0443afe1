"""Connection target and credential handling for one appliance.

The reachable management address of an appliance changes mid-bootstrap
when interface 0 is reassigned, and its administrative credential changes
once the initial password is set. Both transitions are explicit here so
that every API call can be attributed to the address and credential it
actually used.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PRINCIPAL = "bal"
FACTORY_PASSWORD = "1fourall"


@dataclass
class ConnectionTarget:
    """Reachable management endpoint of an appliance."""

    address: str
    port: int = 443

    @property
    def base_url(self) -> str:
        host = f"[{self.address}]" if ":" in self.address else self.address
        return f"https://{host}:{self.port}"

    def retarget(self, address: str) -> None:
        """Point all subsequent calls at a new management address."""
        if address == self.address:
            return
        logger.info("retargeting management address", old=self.address, new=address)
        self.address = address

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"


@dataclass(frozen=True)
class Credential:
    """Principal/secret pair used to authenticate to an appliance."""

    principal: str
    password: str = field(repr=False)
    generation: int = 0

    def __repr__(self) -> str:
        return f"Credential(principal={self.principal!r}, generation={self.generation})"

    def as_auth(self) -> tuple[str, str]:
        """Return the pair in the form httpx expects for basic auth."""
        return (self.principal, self.password)


class CredentialManager:
    """Hold the single current credential for an appliance."""

    def __init__(self, initial: Credential):
        self._current = initial
        self.history: list[tuple[str, int]] = [(initial.principal, initial.generation)]

    @property
    def current(self) -> Credential:
        return self._current

    def rotate(self, principal: str, password: str) -> Credential:
        """Replace the held credential.

        Args:
            principal: Principal for the new credential
            password: Plaintext secret for the new credential

        Returns:
            The new current credential. The previous one is discarded.
        """
        rotated = Credential(principal, password, generation=self._current.generation + 1)
        self._current = rotated
        self.history.append((rotated.principal, rotated.generation))
        logger.debug("credential rotated", principal=principal, generation=rotated.generation)
        return rotated
