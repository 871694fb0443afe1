"""CLI configuration management.

Handles persistent CLI configuration stored in ~/.lm-bootstrap/config.yaml.
Supports environment variable overrides and CLI flag precedence.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .bootstrap.connection import FACTORY_PASSWORD
from .bootstrap.parameters import ParameterFailurePolicy
from .shared.paths import CONFIG_FILE

# Default values
DEFAULT_PORT = 443
DEFAULT_TIMEOUT = 30
DEFAULT_VERIFY_TLS = False
DEFAULT_ON_PARAMETER_ERROR = ParameterFailurePolicy.ABORT.value
DEFAULT_LOG_LEVEL = "warning"
DEFAULT_DETECT_ATTEMPTS = 1

# Environment variable mappings
ENV_VARS = {
    "port": "LM_BOOTSTRAP_PORT",
    "timeout": "LM_BOOTSTRAP_TIMEOUT",
    "verify_tls": "LM_BOOTSTRAP_VERIFY_TLS",
    "on_parameter_error": "LM_BOOTSTRAP_ON_PARAMETER_ERROR",
    "factory_password": "LM_BOOTSTRAP_FACTORY_PASSWORD",
    "log_level": "LM_BOOTSTRAP_LOG_LEVEL",
    "detect_attempts": "LM_BOOTSTRAP_DETECT_ATTEMPTS",
}

CONFIG_KEYS = tuple(ENV_VARS)

# Keys whose values are masked by `config show`
SECRET_KEYS = frozenset({"factory_password"})

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def _parse_policy(value: Any) -> str:
    return ParameterFailurePolicy(str(value).strip().lower()).value


def _parse_level(value: Any) -> str:
    level = str(value).strip().lower()
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {value!r}")
    return level


def _parse_positive_int(value: Any) -> int:
    number = int(value)
    if number < 1:
        raise ValueError(f"Must be >= 1: {value!r}")
    return number


# Converters per key; each raises ValueError on invalid input
PARSERS = {
    "port": _parse_positive_int,
    "timeout": _parse_positive_int,
    "verify_tls": _parse_bool,
    "on_parameter_error": _parse_policy,
    "factory_password": str,
    "log_level": _parse_level,
    "detect_attempts": _parse_positive_int,
}


@dataclass
class CLIConfig:
    """CLI configuration."""

    port: int = DEFAULT_PORT
    timeout: int = DEFAULT_TIMEOUT
    verify_tls: bool = DEFAULT_VERIFY_TLS
    on_parameter_error: str = DEFAULT_ON_PARAMETER_ERROR
    factory_password: str = FACTORY_PASSWORD
    log_level: str = DEFAULT_LOG_LEVEL
    detect_attempts: int = DEFAULT_DETECT_ATTEMPTS

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")

    @property
    def parameter_policy(self) -> ParameterFailurePolicy:
        return ParameterFailurePolicy(self.on_parameter_error)

    def override(self, key: str, value: Any) -> None:
        """Apply a CLI flag value (highest precedence)."""
        if value is None:
            return
        setattr(self, key, PARSERS[key](value))
        self._sources[key] = "command line"

    def to_dict(self, mask_secrets: bool = True) -> dict[str, Any]:
        values = {key: getattr(self, key) for key in CONFIG_KEYS}
        if mask_secrets:
            for key in SECRET_KEYS:
                values[key] = "***"
        return values


def get_config_path() -> Path:
    """Get the CLI config file path.

    Returns:
        Path to ~/.lm-bootstrap/config.yaml
    """
    return CONFIG_FILE


def load_config(config_path: str | Path | None = None) -> CLIConfig:
    """Load CLI configuration.

    Precedence (highest to lowest):
    1. Environment variables
    2. Config file (~/.lm-bootstrap/config.yaml or config_path)
    3. Defaults

    Command-line flags are applied afterwards with CLIConfig.override().

    Returns:
        CLIConfig with values and sources
    """
    config = CLIConfig()
    sources: dict[str, str] = {key: "default" for key in CONFIG_KEYS}

    # Load from config file
    path = Path(config_path) if config_path else get_config_path()
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            file_config = {}  # Ignore unreadable config file, use defaults
        if isinstance(file_config, dict):
            for key in CONFIG_KEYS:
                if key not in file_config:
                    continue
                try:
                    setattr(config, key, PARSERS[key](file_config[key]))
                    sources[key] = "config file"
                except ValueError:
                    pass  # Ignore invalid values, keep defaults

    # Override with environment variables
    for key, env_var in ENV_VARS.items():
        if os.environ.get(env_var):
            try:
                setattr(config, key, PARSERS[key](os.environ[env_var]))
                sources[key] = "environment"
            except ValueError:
                pass

    config._sources = sources
    return config


def save_config(key: str, value: Any, config_path: str | Path | None = None) -> None:
    """Save a config value to the config file.

    Args:
        key: Config key (one of CONFIG_KEYS)
        value: Value to save
        config_path: File to write instead of ~/.lm-bootstrap/config.yaml

    Raises:
        KeyError: If key is unknown
        ValueError: If value is invalid for key
    """
    if key not in PARSERS:
        raise KeyError(key)
    parsed = PARSERS[key](value)

    config_path = Path(config_path) if config_path else get_config_path()

    # Load existing config
    existing: dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                existing = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            existing = {}

    existing[key] = parsed

    # Ensure directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False)


def unset_config(key: str, config_path: str | Path | None = None) -> bool:
    """Remove a config value from the config file.

    Args:
        key: Config key to remove
        config_path: File to edit instead of ~/.lm-bootstrap/config.yaml

    Returns:
        True if key was removed, False if not found
    """
    config_path = Path(config_path) if config_path else get_config_path()
    if not config_path.exists():
        return False

    try:
        with open(config_path) as f:
            existing = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return False

    if key not in existing:
        return False

    del existing[key]

    with open(config_path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False)

    return True
