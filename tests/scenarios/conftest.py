"""Shared fixtures for bootstrap scenario tests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import pytest

from lm_bootstrap.bootstrap import BootstrapOrchestrator, ParameterFailurePolicy, RunReport
from lm_bootstrap.client import LoadMasterClient
from lm_bootstrap.inventory import Inventory
from lm_bootstrap.shared.secrets import BootstrapSecrets


@pytest.fixture
def bootstrap(
    client: LoadMasterClient, secrets: BootstrapSecrets
) -> Callable[..., Awaitable[RunReport]]:
    """Run the orchestrator over an inventory with the shared client and secrets."""

    async def _bootstrap(
        inventory: Inventory,
        policy: ParameterFailurePolicy = ParameterFailurePolicy.ABORT,
    ) -> RunReport:
        orchestrator = BootstrapOrchestrator(client, secrets, parameter_policy=policy)
        return await orchestrator.run(inventory)

    return _bootstrap
