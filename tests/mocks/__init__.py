"""Test mocks for lm-bootstrap.

Provides mock implementations for testing:
- MockLoadMaster: Simulates a fleet of appliances serving the access API
"""

from .mock_loadmaster import MockLoadMaster, RecordedCall, SimulatedAppliance

__all__ = ["MockLoadMaster", "RecordedCall", "SimulatedAppliance"]
