"""Unit tests for interface assignment and management retargeting."""

import pytest

from lm_bootstrap.bootstrap import ConnectionTarget, Credential, InterfaceConfigurator
from lm_bootstrap.errors import TransportError, ValidationError
from lm_bootstrap.inventory import InterfaceAssignment

from tests.helpers import ADMIN_PASSWORD

ADMIN = Credential("bal", ADMIN_PASSWORD, generation=1)


@pytest.fixture
def appliance(fleet):
    return fleet.add_appliance("10.0.1.109", licensed=True, password=ADMIN_PASSWORD)


class TestInterfaceConfigurator:
    """Tests for InterfaceConfigurator."""

    @pytest.mark.asyncio
    async def test_management_change_retargets(self, fleet, client, appliance, kemp1):
        """The call after an interface 0 change goes to the new address."""
        target = ConnectionTarget("10.0.1.109")

        await InterfaceConfigurator(client).apply(target, ADMIN, kemp1.interfaces)

        assert target.address == "10.0.1.31"
        assert [(c.command, c.address) for c in fleet.calls] == [
            ("modiface", "10.0.1.109"),
            ("modiface", "10.0.1.31"),
        ]
        assert appliance.interfaces == {0: "10.0.1.31/24", 1: "10.0.2.31/24"}

    @pytest.mark.asyncio
    async def test_non_management_keeps_target(self, fleet, client, appliance):
        target = ConnectionTarget("10.0.1.109")
        assignments = [
            InterfaceAssignment(1, "10.0.2.31/24"),
            InterfaceAssignment(2, "10.0.3.31/24"),
        ]

        await InterfaceConfigurator(client).apply(target, ADMIN, assignments)

        assert target.address == "10.0.1.109"
        assert {c.address for c in fleet.calls} == {"10.0.1.109"}

    @pytest.mark.asyncio
    async def test_management_last(self, fleet, client, appliance):
        target = ConnectionTarget("10.0.1.109")
        assignments = [
            InterfaceAssignment(1, "10.0.2.31/24"),
            InterfaceAssignment(0, "10.0.1.31/24"),
        ]
        await InterfaceConfigurator(client).apply(target, ADMIN, assignments)
        assert target.address == "10.0.1.31"
        assert [c.address for c in fleet.calls] == ["10.0.1.109", "10.0.1.109"]

    @pytest.mark.asyncio
    async def test_malformed_cidr_not_sent(self, fleet, client, appliance):
        """A malformed address fails before its call, leaving the target alone."""
        target = ConnectionTarget("10.0.1.109")
        assignments = [InterfaceAssignment(0, "10.0.1.31")]

        with pytest.raises(ValidationError):
            await InterfaceConfigurator(client).apply(target, ADMIN, assignments)

        assert fleet.calls == []
        assert target.address == "10.0.1.109"

    @pytest.mark.asyncio
    async def test_failed_management_change_keeps_target(self, fleet, client, appliance, kemp1):
        """No retarget when the interface 0 call itself fails."""
        appliance.fail_commands["modiface"] = 500
        target = ConnectionTarget("10.0.1.109")

        with pytest.raises(TransportError):
            await InterfaceConfigurator(client).apply(target, ADMIN, kemp1.interfaces)

        assert target.address == "10.0.1.109"
        assert fleet.commands() == ["modiface"]
