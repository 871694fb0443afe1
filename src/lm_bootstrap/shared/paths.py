"""Path management for lm-bootstrap.

Manages the ~/.lm-bootstrap/ directory holding CLI configuration.
"""

from pathlib import Path

# Base directory for all lm-bootstrap data
LM_BOOTSTRAP_DIR = Path.home() / ".lm-bootstrap"

# Persistent CLI configuration
CONFIG_FILE = LM_BOOTSTRAP_DIR / "config.yaml"
