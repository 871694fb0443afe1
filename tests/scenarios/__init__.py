"""Scenario tests for lm-bootstrap.

End-to-end bootstrap runs against the in-process mock appliance fleet,
asserting on the exact API traffic each appliance receives.
"""
