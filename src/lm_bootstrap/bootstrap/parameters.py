"""Hostname and shared parameter application."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from ..errors import TransportError
from ..inventory import HOSTNAME_PARAMETER, Parameter
from ..shared.logging import get_logger
from .connection import ConnectionTarget, Credential
from .state import ParameterFailure

if TYPE_CHECKING:
    from ..client import LoadMasterClient

logger = get_logger(__name__)


class ParameterFailurePolicy(Enum):
    """What a failed shared parameter does to the appliance."""

    ABORT = "abort"  # Fail the appliance on the first error
    CONTINUE = "continue"  # Record, warn, keep going; appliance ends degraded


class ParameterApplier:
    """Push the hostname, then every shared parameter, one call each."""

    def __init__(
        self,
        client: LoadMasterClient,
        policy: ParameterFailurePolicy = ParameterFailurePolicy.ABORT,
    ):
        self.client = client
        self.policy = policy

    async def set_hostname(
        self, target: ConnectionTarget, credential: Credential, hostname: str
    ) -> None:
        """Set the appliance hostname. Always fatal on failure."""
        await self.client.set_parameter(target, credential, HOSTNAME_PARAMETER, hostname)
        logger.info("hostname set", target=str(target), hostname=hostname)

    async def apply(
        self,
        target: ConnectionTarget,
        credential: Credential,
        parameters: list[Parameter],
    ) -> list[ParameterFailure]:
        """Apply parameters in order.

        Returns:
            Failures recorded under the continue policy (empty under abort)

        Raises:
            TransportError: On the first failure under the abort policy
        """
        failures: list[ParameterFailure] = []
        for parameter in parameters:
            try:
                await self.client.set_parameter(target, credential, parameter.name, parameter.value)
            except TransportError as e:
                if self.policy == ParameterFailurePolicy.ABORT:
                    raise
                logger.warning(
                    "parameter failed, continuing",
                    target=str(target),
                    parameter=parameter.name,
                    error=e.message,
                )
                failures.append(ParameterFailure(name=parameter.name, error=e.message))
                continue
            logger.debug("parameter set", target=str(target), parameter=parameter.name)
        return failures
