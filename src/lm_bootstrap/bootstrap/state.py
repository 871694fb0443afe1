"""Bootstrap state machine types.

Each appliance walks VALIDATE -> DETECT_LICENSE -> [EULA_HANDSHAKE ->
ACTIVATE_ONLINE -> INITIAL_PASSWORD] -> SET_HOSTNAME -> APPLY_PARAMETERS ->
APPLY_INTERFACES and ends DONE, DEGRADED or FAILED. The bracketed steps are
skipped when the appliance is already licensed, which is what makes a rerun
after a partial failure safe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..errors import BootstrapError


class BootstrapStep(Enum):
    """Steps of the per-appliance state machine, in execution order."""

    VALIDATE = "validate"
    DETECT_LICENSE = "detect_license"
    EULA_HANDSHAKE = "eula_handshake"
    ACTIVATE_ONLINE = "activate_online"
    INITIAL_PASSWORD = "initial_password"
    SET_HOSTNAME = "set_hostname"
    APPLY_PARAMETERS = "apply_parameters"
    APPLY_INTERFACES = "apply_interfaces"


LICENSING_STEPS = (
    BootstrapStep.EULA_HANDSHAKE,
    BootstrapStep.ACTIVATE_ONLINE,
    BootstrapStep.INITIAL_PASSWORD,
)


class LicenseState(Enum):
    """License classification used to branch after detection."""

    LICENSED = "licensed"
    UNLICENSED = "unlicensed"


class Outcome(Enum):
    """Terminal state of one appliance."""

    DONE = "done"
    DEGRADED = "degraded"  # Done, but some parameters failed under the continue policy
    FAILED = "failed"


@dataclass
class ParameterFailure:
    """A parameter that could not be applied."""

    name: str
    error: str


@dataclass
class ApplianceResult:
    """Outcome of bootstrapping one appliance."""

    hostname: str
    address: str
    outcome: Outcome = Outcome.DONE
    failed_step: BootstrapStep | None = None
    error: BootstrapError | None = None
    license_state: LicenseState | None = None
    final_address: str | None = None
    steps_completed: list[BootstrapStep] = field(default_factory=list)
    parameter_failures: list[ParameterFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.outcome != Outcome.FAILED

    def to_dict(self) -> dict[str, Any]:
        return {
            "hostname": self.hostname,
            "address": self.address,
            "final_address": self.final_address,
            "outcome": self.outcome.value,
            "license_state": self.license_state.value if self.license_state else None,
            "failed_step": self.failed_step.value if self.failed_step else None,
            "error": self.error.to_dict() if self.error else None,
            "steps_completed": [s.value for s in self.steps_completed],
            "parameter_failures": [
                {"name": f.name, "error": f.error} for f in self.parameter_failures
            ],
        }


@dataclass
class ApplianceStatus:
    """Read-only license state of one appliance."""

    hostname: str
    address: str
    license_state: LicenseState | None = None
    license_status: str | None = None
    expiration: str | None = None
    error: BootstrapError | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "hostname": self.hostname,
            "address": self.address,
            "license_state": self.license_state.value if self.license_state else None,
            "license_status": self.license_status,
            "expiration": self.expiration,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class RunReport:
    """Results for every appliance processed in a run, in inventory order."""

    results: list[ApplianceResult] = field(default_factory=list)

    @property
    def failed(self) -> list[ApplianceResult]:
        return [r for r in self.results if r.outcome == Outcome.FAILED]

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "total": len(self.results),
            "failed": len(self.failed),
        }
