"""Online license activation and initial password establishment."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import SequenceError
from ..shared.logging import get_logger
from .connection import DEFAULT_PRINCIPAL, ConnectionTarget, Credential, CredentialManager

if TYPE_CHECKING:
    from ..client import LoadMasterClient
    from ..shared.secrets import ActivationCredentials

logger = get_logger(__name__)


class LicenseActivator:
    """Activate one unlicensed appliance and set its admin password.

    Must run after the EULA handshake. The initial password is set exactly
    once, after activation, and immediately replaces the held credential.
    An appliance licensed by an earlier run that stopped before its password
    was set is resumed with ``activated=True``.
    """

    def __init__(
        self, client: LoadMasterClient, target: ConnectionTarget, activated: bool = False
    ):
        self.client = client
        self.target = target
        self.activated = activated
        self.password_set = False

    async def activate_online(self, activation: ActivationCredentials) -> None:
        """Retrieve the license online with the run's KEMP ID."""
        if self.activated:
            raise SequenceError(
                message="Online activation already performed",
                data={"address": self.target.address},
            )
        await self.client.activate_online(self.target, activation.kemp_id, activation.password)
        self.activated = True
        logger.info("license activated", target=str(self.target))

    async def set_initial_password(
        self,
        password: str,
        credentials: CredentialManager,
        principal: str = DEFAULT_PRINCIPAL,
    ) -> Credential:
        """Set the admin password, then rotate to it.

        Returns:
            The rotated credential every later call must use
        """
        if not self.activated:
            raise SequenceError(
                message="Initial password requires online activation first",
                data={"address": self.target.address},
            )
        if self.password_set:
            raise SequenceError(
                message="Initial password already set",
                data={"address": self.target.address},
            )
        await self.client.set_initial_password(self.target, password)
        self.password_set = True
        logger.info("initial password set", target=str(self.target), principal=principal)
        return credentials.rotate(principal, password)
