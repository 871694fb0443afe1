"""Appliance inventory loading and validation.

The inventory is a YAML file listing the appliances to bootstrap and the
parameters applied uniformly to all of them:

    parameters:
      - name: ntphost
        value: 10.0.0.1
    appliances:
      - hostname: KEMP1
        address: 10.0.1.109
        interfaces:
          - {id: 0, address: 10.0.1.31/24}
          - {id: 1, address: 10.0.2.31/24}

Structural problems fail the whole load. CIDR problems are deferred to
Appliance.validate() so that one malformed appliance does not block the
rest of the fleet.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ValidationError

MANAGEMENT_INTERFACE_ID = 0
HOSTNAME_PARAMETER = "hostname"


def ip_portion_of(cidr_address: str) -> str:
    """Return the address part of an ADDRESS/PREFIX string.

    Raises:
        ValidationError: If the value has no prefix length or does not parse.
    """
    if "/" not in cidr_address:
        raise ValidationError(
            message=f"Interface address '{cidr_address}' has no prefix length",
            data={"cidr_address": cidr_address},
        )
    try:
        interface = ipaddress.ip_interface(cidr_address)
    except ValueError as e:
        raise ValidationError(
            message=f"Interface address '{cidr_address}' is not a valid CIDR: {e}",
            data={"cidr_address": cidr_address},
        ) from e
    return str(interface.ip)


@dataclass(frozen=True)
class InterfaceAssignment:
    """IP/prefix assignment for one appliance interface."""

    interface_id: int
    cidr_address: str

    @property
    def is_management(self) -> bool:
        return self.interface_id == MANAGEMENT_INTERFACE_ID

    @property
    def ip_address(self) -> str:
        return ip_portion_of(self.cidr_address)


@dataclass(frozen=True)
class Parameter:
    """Name/value pair applied to every appliance."""

    name: str
    value: str


@dataclass
class Appliance:
    """One appliance to bootstrap."""

    hostname: str
    address: str
    port: int = 443
    interfaces: list[InterfaceAssignment] = field(default_factory=list)

    def validate(self) -> None:
        """Check every interface assignment before any network call is made.

        Raises:
            ValidationError: On the first malformed assignment.
        """
        try:
            ipaddress.ip_address(self.address)
        except ValueError as e:
            raise ValidationError(
                message=f"{self.hostname}: management address '{self.address}' is not an IP",
                data={"hostname": self.hostname},
            ) from e

        for assignment in self.interfaces:
            try:
                ip_portion_of(assignment.cidr_address)
            except ValidationError as e:
                raise ValidationError(
                    message=f"{self.hostname}: interface {assignment.interface_id}: {e.message}",
                    data={"hostname": self.hostname, "interface": assignment.interface_id},
                ) from e


@dataclass
class Inventory:
    """Ordered appliances plus the parameter list shared by all of them."""

    appliances: list[Appliance] = field(default_factory=list)
    parameters: list[Parameter] = field(default_factory=list)

    def select(self, hostnames: tuple[str, ...] | list[str]) -> Inventory:
        """Return an inventory restricted to the given hostnames, order preserved."""
        if not hostnames:
            return self
        unknown = set(hostnames) - {a.hostname for a in self.appliances}
        if unknown:
            raise ValidationError(
                message=f"Unknown appliance(s): {', '.join(sorted(unknown))}",
                data={"unknown": sorted(unknown)},
            )
        wanted = set(hostnames)
        return Inventory(
            appliances=[a for a in self.appliances if a.hostname in wanted],
            parameters=list(self.parameters),
        )


def _parse_parameters(raw: Any) -> list[Parameter]:
    if raw is None:
        return []

    if isinstance(raw, dict):
        items = list(raw.items())
    elif isinstance(raw, list):
        items = []
        for entry in raw:
            if not isinstance(entry, dict) or "name" not in entry or "value" not in entry:
                raise ValidationError(message=f"Invalid parameter entry: {entry!r}")
            items.append((entry["name"], entry["value"]))
    else:
        raise ValidationError(message="'parameters' must be a list or a mapping")

    parameters = []
    for name, value in items:
        name = str(name)
        if name == HOSTNAME_PARAMETER:
            raise ValidationError(
                message="'hostname' is set per appliance and cannot be a shared parameter"
            )
        parameters.append(Parameter(name=name, value="" if value is None else str(value)))
    return parameters


def _parse_interfaces(hostname: str, raw: Any) -> list[InterfaceAssignment]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(message=f"{hostname}: 'interfaces' must be a list")

    assignments = []
    seen: set[int] = set()
    for entry in raw:
        if not isinstance(entry, dict) or "id" not in entry or "address" not in entry:
            raise ValidationError(message=f"{hostname}: invalid interface entry: {entry!r}")
        try:
            interface_id = int(entry["id"])
        except (TypeError, ValueError) as e:
            raise ValidationError(
                message=f"{hostname}: interface id {entry['id']!r} is not an integer"
            ) from e
        if interface_id < 0:
            raise ValidationError(message=f"{hostname}: interface id {interface_id} is negative")
        if interface_id in seen:
            raise ValidationError(message=f"{hostname}: interface {interface_id} listed twice")
        seen.add(interface_id)
        assignments.append(InterfaceAssignment(interface_id, str(entry["address"])))
    return assignments


def parse_inventory(data: Any, default_port: int = 443) -> Inventory:
    """Build an Inventory from already-loaded YAML data.

    Args:
        data: Parsed YAML document
        default_port: Management port used when an appliance omits one

    Returns:
        Inventory with appliances in file order

    Raises:
        ValidationError: On structural problems
    """
    if not isinstance(data, dict):
        raise ValidationError(message="Inventory must be a mapping")

    raw_appliances = data.get("appliances")
    if not isinstance(raw_appliances, list) or not raw_appliances:
        raise ValidationError(message="Inventory must list at least one appliance")

    appliances = []
    hostnames: set[str] = set()
    for entry in raw_appliances:
        if not isinstance(entry, dict):
            raise ValidationError(message=f"Invalid appliance entry: {entry!r}")
        for key in ("hostname", "address"):
            if not entry.get(key):
                raise ValidationError(message=f"Appliance entry missing '{key}': {entry!r}")

        hostname = str(entry["hostname"])
        if hostname in hostnames:
            raise ValidationError(message=f"Appliance '{hostname}' listed twice")
        hostnames.add(hostname)

        try:
            port = int(entry.get("port", default_port))
        except (TypeError, ValueError) as e:
            raise ValidationError(message=f"{hostname}: port must be an integer") from e

        appliances.append(
            Appliance(
                hostname=hostname,
                address=str(entry["address"]),
                port=port,
                interfaces=_parse_interfaces(hostname, entry.get("interfaces")),
            )
        )

    return Inventory(appliances=appliances, parameters=_parse_parameters(data.get("parameters")))


def load_inventory(path: str | Path, default_port: int = 443) -> Inventory:
    """Load an inventory YAML file.

    Raises:
        ValidationError: If the file cannot be read or is malformed
    """
    inventory_path = Path(path)
    try:
        with inventory_path.open() as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ValidationError(message=f"Cannot read inventory {inventory_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ValidationError(message=f"Inventory {inventory_path} is not valid YAML: {e}") from e

    return parse_inventory(data, default_port=default_port)
