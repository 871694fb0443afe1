"""Bootstrap orchestration across the appliance inventory.

Appliances are processed one at a time, in inventory order. Any
BootstrapError ends the current appliance as FAILED at the step it was
raised in; the next appliance is then processed as if nothing happened.
No rollback is attempted: a rerun detects the license state again and
resumes from there.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from ..errors import BootstrapError, TransportError, ValidationError
from ..inventory import Appliance, Inventory, Parameter
from ..shared.logging import get_logger
from .activation import LicenseActivator
from .connection import (
    DEFAULT_PRINCIPAL,
    FACTORY_PASSWORD,
    ConnectionTarget,
    Credential,
    CredentialManager,
)
from .eula import EulaHandshake
from .interfaces import InterfaceConfigurator
from .license import LicenseDetector
from .parameters import ParameterApplier, ParameterFailurePolicy
from .state import (
    ApplianceResult,
    ApplianceStatus,
    BootstrapStep,
    LicenseState,
    Outcome,
    RunReport,
)

if TYPE_CHECKING:
    from ..client import LoadMasterClient
    from ..shared.secrets import BootstrapSecrets

logger = get_logger(__name__)

StepCallback = Callable[[str, BootstrapStep], None]


class BootstrapOrchestrator:
    """Drive each appliance through the bootstrap state machine."""

    def __init__(
        self,
        client: LoadMasterClient,
        secrets: BootstrapSecrets,
        parameter_policy: ParameterFailurePolicy = ParameterFailurePolicy.ABORT,
        factory_password: str = FACTORY_PASSWORD,
        detect_attempts: int = 1,
        detect_interval: float = 2.0,
        on_step: StepCallback | None = None,
    ):
        """Initialize orchestrator.

        Args:
            client: API client shared by every appliance
            secrets: Run-scoped secrets, resolved at most once
            parameter_policy: Behaviour when a shared parameter fails
            factory_password: Password of ``bal`` on an unlicensed appliance
            detect_attempts: Attempts for license detection (1 = no retry)
            detect_interval: Seconds between detection attempts
            on_step: Optional callback called with (hostname, step) on entry
        """
        self.client = client
        self.secrets = secrets
        self.factory_password = factory_password
        self.on_step = on_step
        self.detector = LicenseDetector(
            client, max_attempts=detect_attempts, interval_seconds=detect_interval
        )
        self.parameters = ParameterApplier(client, policy=parameter_policy)
        self.interfaces = InterfaceConfigurator(client)

    async def run(self, inventory: Inventory) -> RunReport:
        """Bootstrap every appliance in the inventory, sequentially."""
        report = RunReport()
        for appliance in inventory.appliances:
            result = await self.bootstrap_appliance(appliance, inventory.parameters)
            report.results.append(result)
        logger.info(
            "bootstrap run finished",
            total=len(report.results),
            failed=len(report.failed),
        )
        return report

    async def _detect(
        self, target: ConnectionTarget, admin: Credential | None
    ) -> tuple[LicenseState, bool]:
        """Detect license state, trying the admin credential first.

        Returns:
            The license state, and whether the admin credential was accepted.
            A licensed appliance that refuses it but accepts the factory
            credential never had its initial password set.

        Raises:
            TransportError: If neither credential gets an answer
        """
        if admin is not None:
            try:
                return await self.detector.detect(target, admin), True
            except TransportError as e:
                if not e.auth_failed:
                    raise
                logger.info("admin credential refused, trying factory", target=str(target))
        factory = Credential(DEFAULT_PRINCIPAL, self.factory_password)
        return await self.detector.detect(target, factory), False

    async def survey(self, inventory: Inventory) -> list[ApplianceStatus]:
        """Detect the license state of every appliance without changing anything.

        Uses the admin password when one is available without prompting,
        otherwise only the factory credential.
        """
        try:
            admin: Credential | None = Credential(DEFAULT_PRINCIPAL, self.secrets.admin_password)
        except ValidationError:
            admin = None

        statuses = []
        for appliance in inventory.appliances:
            status = ApplianceStatus(hostname=appliance.hostname, address=appliance.address)
            target = ConnectionTarget(appliance.address, appliance.port)
            try:
                status.license_state, _ = await self._detect(target, admin)
            except BootstrapError as e:
                status.error = e
                logger.error(
                    "license query failed",
                    appliance=appliance.hostname,
                    target=str(target),
                    error=e.message,
                )
            else:
                info = self.detector.last_info
                if info is not None:
                    status.license_status = info.status or None
                    status.expiration = info.expiration
            statuses.append(status)
        return statuses

    async def bootstrap_appliance(
        self, appliance: Appliance, parameters: list[Parameter]
    ) -> ApplianceResult:
        """Run the state machine for one appliance."""
        log = logger.bind(appliance=appliance.hostname)
        target = ConnectionTarget(appliance.address, appliance.port)
        result = ApplianceResult(hostname=appliance.hostname, address=appliance.address)
        step = BootstrapStep.VALIDATE

        def enter(next_step: BootstrapStep) -> BootstrapStep:
            if next_step != BootstrapStep.VALIDATE:
                result.steps_completed.append(step)
            log.info("step started", step=next_step.value, target=str(target))
            if self.on_step:
                self.on_step(appliance.hostname, next_step)
            return next_step

        try:
            step = enter(BootstrapStep.VALIDATE)
            appliance.validate()

            step = enter(BootstrapStep.DETECT_LICENSE)
            credentials = CredentialManager(Credential(DEFAULT_PRINCIPAL, self.factory_password))
            admin_password = self.secrets.admin_password
            result.license_state, admin_accepted = await self._detect(
                target, Credential(DEFAULT_PRINCIPAL, admin_password)
            )

            if result.license_state == LicenseState.UNLICENSED:
                step = enter(BootstrapStep.EULA_HANDSHAKE)
                await EulaHandshake(self.client, target).run()

                step = enter(BootstrapStep.ACTIVATE_ONLINE)
                activator = LicenseActivator(self.client, target)
                await activator.activate_online(self.secrets.activation())

                step = enter(BootstrapStep.INITIAL_PASSWORD)
                await activator.set_initial_password(admin_password, credentials)
            elif admin_accepted:
                log.info("already licensed, skipping licensing steps")
                credentials.rotate(DEFAULT_PRINCIPAL, admin_password)
            else:
                # Licensed by an earlier run that stopped before the password was set
                log.info("licensed but initial password not set, resuming")
                step = enter(BootstrapStep.INITIAL_PASSWORD)
                activator = LicenseActivator(self.client, target, activated=True)
                await activator.set_initial_password(admin_password, credentials)

            step = enter(BootstrapStep.SET_HOSTNAME)
            await self.parameters.set_hostname(target, credentials.current, appliance.hostname)

            step = enter(BootstrapStep.APPLY_PARAMETERS)
            result.parameter_failures = await self.parameters.apply(
                target, credentials.current, parameters
            )

            step = enter(BootstrapStep.APPLY_INTERFACES)
            await self.interfaces.apply(target, credentials.current, appliance.interfaces)
            result.steps_completed.append(step)
        except BootstrapError as e:
            result.outcome = Outcome.FAILED
            result.failed_step = step
            result.error = e
            log.error(
                "bootstrap failed",
                step=step.value,
                target=str(target),
                error_type=type(e).__name__,
                error=e.message,
            )
        else:
            result.outcome = Outcome.DEGRADED if result.parameter_failures else Outcome.DONE
            log.info("bootstrap complete", outcome=result.outcome.value, target=str(target))
        finally:
            result.final_address = target.address

        return result
