"""Constants and builders shared by test modules."""

from lm_bootstrap.inventory import Appliance, Inventory, Parameter

ADMIN_PASSWORD = "S3cret-admin"
KEMP_ID = "ops@example.com"
KEMP_PASSWORD = "kemp-pass"


def make_inventory(*appliances: Appliance, parameters: list[Parameter] | None = None) -> Inventory:
    """Build an Inventory from appliances."""
    return Inventory(appliances=list(appliances), parameters=list(parameters or []))


LICENSING_COMMANDS = frozenset(
    {"readeula", "accepteula", "accepteula2", "alsilicense", "set_initial_passwd"}
)
