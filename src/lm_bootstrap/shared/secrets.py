"""Run-scoped secrets for appliance bootstrap.

Three secrets are needed per run: the administrative password for the
``bal`` principal and the KEMP ID / password pair used for online
activation. Each is resolved at most once per run, in priority order:

1. Explicit CLI argument
2. Environment variable
3. Interactive hidden prompt

The admin password is resolved before orchestration begins. The KEMP ID
pair is resolved the first time an unlicensed appliance needs it, so a run
over an already-licensed fleet never asks for it. Values are held in memory
only and never logged.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable

import click

from ..errors import ValidationError
from .logging import get_logger

logger = get_logger(__name__)

ADMIN_PASSWORD_ENV = "LM_BOOTSTRAP_ADMIN_PASSWORD"
KEMP_ID_ENV = "LM_BOOTSTRAP_KEMP_ID"
KEMP_PASSWORD_ENV = "LM_BOOTSTRAP_KEMP_PASSWORD"

Prompter = Callable[[str, bool], str]


def click_prompt(label: str, hide_input: bool) -> str:
    """Prompt on the terminal, confirming hidden values."""
    return click.prompt(label, hide_input=hide_input, confirmation_prompt=hide_input, err=True)


def resolve_secret(
    label: str,
    arg: str | None = None,
    env_var: str | None = None,
    prompter: Prompter | None = None,
    hide_input: bool = True,
) -> str:
    """Resolve a secret from: CLI arg > env var > prompt.

    Args:
        label: Human-readable name used for the prompt and errors
        arg: Value passed via CLI argument
        env_var: Environment variable name to check
        prompter: Prompt function, or None when running non-interactively
        hide_input: Whether the prompt echoes input

    Returns:
        The secret value

    Raises:
        ValidationError: If no source yields a value
    """
    if arg:
        return arg

    if env_var and os.environ.get(env_var):
        return os.environ[env_var]

    if prompter is not None:
        value = prompter(label, hide_input)
        if value:
            return value

    hint = f" (set {env_var})" if env_var else ""
    raise ValidationError(message=f"{label} is required{hint}")


@dataclass(frozen=True)
class ActivationCredentials:
    """KEMP ID identity used for online license activation."""

    kemp_id: str
    password: str

    def __repr__(self) -> str:
        return f"ActivationCredentials(kemp_id={self.kemp_id!r})"


class BootstrapSecrets:
    """Once-initialised secrets shared read-only by every appliance in a run."""

    def __init__(
        self,
        admin_password: str | None = None,
        kemp_id: str | None = None,
        kemp_password: str | None = None,
        prompter: Prompter | None = click_prompt,
    ):
        """Initialize secrets.

        Args:
            admin_password: Admin password from the command line, if given
            kemp_id: KEMP ID from the command line, if given
            kemp_password: KEMP ID password from the command line, if given
            prompter: Prompt function; None disables prompting
        """
        self._admin_arg = admin_password
        self._kemp_id_arg = kemp_id
        self._kemp_password_arg = kemp_password
        self._prompter = prompter
        self._admin_password: str | None = None
        self._activation: ActivationCredentials | None = None
        self._activation_error: ValidationError | None = None
        self.prompts = 0

    def _prompt(self, label: str, hide_input: bool) -> str:
        if self._prompter is None:
            raise ValidationError(message=f"{label} is required and prompting is disabled")
        self.prompts += 1
        return self._prompter(label, hide_input)

    def _resolve(self, label: str, arg: str | None, env_var: str, hide_input: bool = True) -> str:
        return resolve_secret(
            label,
            arg=arg,
            env_var=env_var,
            prompter=self._prompt if self._prompter is not None else None,
            hide_input=hide_input,
        )

    @property
    def admin_password(self) -> str:
        """Administrative password for the ``bal`` principal."""
        if self._admin_password is None:
            self._admin_password = self._resolve(
                "Administrative password for 'bal'", self._admin_arg, ADMIN_PASSWORD_ENV
            )
            logger.debug("admin password resolved")
        return self._admin_password

    @property
    def activation_resolved(self) -> bool:
        return self._activation is not None

    def activation(self) -> ActivationCredentials:
        """KEMP ID pair, resolved on first use and reused afterwards."""
        if self._activation_error is not None:
            raise self._activation_error
        if self._activation is None:
            try:
                kemp_id = self._resolve("KEMP ID", self._kemp_id_arg, KEMP_ID_ENV, hide_input=False)
                password = self._resolve(
                    "KEMP ID password", self._kemp_password_arg, KEMP_PASSWORD_ENV
                )
            except ValidationError as e:
                # Asked once per run; later appliances fail with the same error
                self._activation_error = e
                raise
            self._activation = ActivationCredentials(kemp_id=kemp_id, password=password)
            logger.debug("activation credentials resolved")
        return self._activation
