"""Per-interface address assignment with management-address tracking."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..inventory import InterfaceAssignment, ip_portion_of
from ..shared.logging import get_logger
from .connection import ConnectionTarget, Credential

if TYPE_CHECKING:
    from ..client import LoadMasterClient

logger = get_logger(__name__)


class InterfaceConfigurator:
    """Apply interface assignments in the order given.

    Reassigning the management interface (id 0) moves the API endpoint, so
    the target is retargeted right after that call succeeds and before the
    next interface is touched.
    """

    def __init__(self, client: LoadMasterClient):
        self.client = client

    async def apply(
        self,
        target: ConnectionTarget,
        credential: Credential,
        assignments: list[InterfaceAssignment],
    ) -> None:
        """Apply every assignment; the first failure propagates.

        Raises:
            ValidationError: If an assignment address is malformed (before its call)
            TransportError: If the appliance rejects or cannot be reached
        """
        for assignment in assignments:
            # Parse first so a malformed address never reaches the appliance
            new_address = ip_portion_of(assignment.cidr_address)
            await self.client.set_interface(
                target, credential, assignment.interface_id, assignment.cidr_address
            )
            logger.info(
                "interface configured",
                target=str(target),
                interface=assignment.interface_id,
                address=assignment.cidr_address,
            )
            if assignment.is_management:
                target.retarget(new_address)
