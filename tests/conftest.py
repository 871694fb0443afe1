"""Shared test fixtures for lm-bootstrap tests.

This module provides:
- fleet: MockLoadMaster simulating appliances in-process
- client: LoadMasterClient wired to the fleet through an ASGI transport
- secrets: BootstrapSecrets that never prompt
- isolated config: ~/.lm-bootstrap and LM_BOOTSTRAP_* kept out of tests
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from lm_bootstrap.client import LoadMasterClient
from lm_bootstrap.config import ENV_VARS
from lm_bootstrap.inventory import Appliance, InterfaceAssignment, Parameter
from lm_bootstrap.shared.secrets import (
    ADMIN_PASSWORD_ENV,
    KEMP_ID_ENV,
    KEMP_PASSWORD_ENV,
    BootstrapSecrets,
)
from tests.helpers import ADMIN_PASSWORD, KEMP_ID, KEMP_PASSWORD
from tests.mocks import MockLoadMaster


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI config file at a temp dir and clear LM_BOOTSTRAP_* vars."""
    config_file = tmp_path / ".lm-bootstrap" / "config.yaml"
    monkeypatch.setattr("lm_bootstrap.config.get_config_path", lambda: config_file)
    for env_var in [*ENV_VARS.values(), ADMIN_PASSWORD_ENV, KEMP_ID_ENV, KEMP_PASSWORD_ENV]:
        monkeypatch.delenv(env_var, raising=False)
    return config_file


@pytest.fixture
def fleet() -> MockLoadMaster:
    """Empty mock appliance fleet."""
    return MockLoadMaster()


@pytest.fixture
async def client(fleet: MockLoadMaster) -> AsyncGenerator[LoadMasterClient, None]:
    """LoadMasterClient talking to the mock fleet (no real network)."""
    async with LoadMasterClient(timeout=5.0, transport=fleet.transport()) as lm_client:
        yield lm_client


@pytest.fixture
def secrets() -> BootstrapSecrets:
    """Secrets supplied up front; prompting disabled."""
    return BootstrapSecrets(
        admin_password=ADMIN_PASSWORD,
        kemp_id=KEMP_ID,
        kemp_password=KEMP_PASSWORD,
        prompter=None,
    )


@pytest.fixture
def kemp1() -> Appliance:
    """Appliance KEMP1 moving its management address from .109 to .31."""
    return Appliance(
        hostname="KEMP1",
        address="10.0.1.109",
        port=443,
        interfaces=[
            InterfaceAssignment(0, "10.0.1.31/24"),
            InterfaceAssignment(1, "10.0.2.31/24"),
        ],
    )


@pytest.fixture
def parameters() -> list[Parameter]:
    """Shared parameters applied to every appliance."""
    return [
        Parameter("ntphost", "10.0.0.1"),
        Parameter("dnsserver", "10.0.0.53"),
        Parameter("sshaccess", "yes"),
    ]


@pytest.fixture
def inventory_file(tmp_path: Path) -> Path:
    """Two-appliance inventory YAML file."""
    path = tmp_path / "fleet.yaml"
    path.write_text(
        """\
parameters:
  - name: ntphost
    value: 10.0.0.1
  - name: dnsserver
    value: 10.0.0.53
appliances:
  - hostname: KEMP1
    address: 10.0.1.109
    interfaces:
      - {id: 0, address: 10.0.1.31/24}
      - {id: 1, address: 10.0.2.31/24}
  - hostname: KEMP2
    address: 10.0.1.110
    interfaces:
      - {id: 0, address: 10.0.1.32/24}
      - {id: 1, address: 10.0.2.32/24}
"""
    )
    return path

