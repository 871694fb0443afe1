"""Appliance bootstrap engine.

This package drives each appliance through:
1. License state detection
2. EULA handshake, online activation and initial password (unlicensed only)
3. Hostname and shared parameters
4. Interface addresses, following the management address when it moves
"""

from .activation import LicenseActivator
from .connection import (
    DEFAULT_PRINCIPAL,
    FACTORY_PASSWORD,
    ConnectionTarget,
    Credential,
    CredentialManager,
)
from .eula import EulaHandshake, EulaStage, EulaToken
from .interfaces import InterfaceConfigurator
from .license import LicenseDetector
from .orchestrator import BootstrapOrchestrator
from .parameters import ParameterApplier, ParameterFailurePolicy
from .state import (
    ApplianceResult,
    ApplianceStatus,
    BootstrapStep,
    LicenseState,
    Outcome,
    ParameterFailure,
    RunReport,
)

__all__ = [
    # Connection and credentials
    "DEFAULT_PRINCIPAL",
    "FACTORY_PASSWORD",
    "ConnectionTarget",
    "Credential",
    "CredentialManager",
    # Steps
    "LicenseDetector",
    "EulaHandshake",
    "EulaStage",
    "EulaToken",
    "LicenseActivator",
    "ParameterApplier",
    "ParameterFailurePolicy",
    "InterfaceConfigurator",
    # Orchestration
    "BootstrapOrchestrator",
    # State
    "ApplianceResult",
    "ApplianceStatus",
    "BootstrapStep",
    "LicenseState",
    "Outcome",
    "ParameterFailure",
    "RunReport",
]
