"""Shared modules for lm-bootstrap.

This module provides functionality used across the CLI and the bootstrap
engine:
- Paths (~/.lm-bootstrap)
- Logging (structlog)
- Run-scoped secrets
"""

from .logging import configure_logging, get_logger
from .paths import CONFIG_FILE, LM_BOOTSTRAP_DIR
from .secrets import ActivationCredentials, BootstrapSecrets, resolve_secret

__all__ = [
    # Paths
    "LM_BOOTSTRAP_DIR",
    "CONFIG_FILE",
    # Logging
    "configure_logging",
    "get_logger",
    # Secrets
    "ActivationCredentials",
    "BootstrapSecrets",
    "resolve_secret",
]
