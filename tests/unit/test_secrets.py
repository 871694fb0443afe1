"""Unit tests for run-scoped secret resolution."""

import pytest

from lm_bootstrap.errors import ValidationError
from lm_bootstrap.shared.secrets import (
    ADMIN_PASSWORD_ENV,
    KEMP_ID_ENV,
    KEMP_PASSWORD_ENV,
    ActivationCredentials,
    BootstrapSecrets,
    resolve_secret,
)


class FakePrompter:
    """Records prompts and answers from a fixed mapping."""

    def __init__(self, answers: dict[str, str]):
        self.answers = answers
        self.asked: list[tuple[str, bool]] = []

    def __call__(self, label: str, hide_input: bool) -> str:
        self.asked.append((label, hide_input))
        return self.answers.get(label, "")


class TestResolveSecret:
    """Tests for resolve_secret priority."""

    def test_arg_wins(self, monkeypatch):
        monkeypatch.setenv("MY_SECRET", "from-env")
        assert resolve_secret("Secret", arg="from-arg", env_var="MY_SECRET") == "from-arg"

    def test_env_before_prompt(self, monkeypatch):
        monkeypatch.setenv("MY_SECRET", "from-env")
        prompter = FakePrompter({"Secret": "typed"})
        assert resolve_secret("Secret", env_var="MY_SECRET", prompter=prompter) == "from-env"
        assert prompter.asked == []

    def test_prompt_last(self):
        prompter = FakePrompter({"Secret": "typed"})
        assert resolve_secret("Secret", env_var="MY_SECRET", prompter=prompter) == "typed"
        assert prompter.asked == [("Secret", True)]

    def test_nothing_available(self):
        """No source and no prompter is a validation error naming the env var."""
        with pytest.raises(ValidationError, match="MY_SECRET"):
            resolve_secret("Secret", env_var="MY_SECRET")

    def test_empty_prompt_answer(self):
        with pytest.raises(ValidationError, match="Secret is required"):
            resolve_secret("Secret", prompter=FakePrompter({}))


class TestBootstrapSecrets:
    """Tests for BootstrapSecrets."""

    def test_admin_password_from_env(self, monkeypatch):
        monkeypatch.setenv(ADMIN_PASSWORD_ENV, "env-admin")
        assert BootstrapSecrets(prompter=None).admin_password == "env-admin"

    def test_admin_password_prompted_once(self):
        """Resolved once per run no matter how many appliances read it."""
        prompter = FakePrompter({"Administrative password for 'bal'": "typed-admin"})
        secrets = BootstrapSecrets(prompter=prompter)

        for _ in range(3):
            assert secrets.admin_password == "typed-admin"

        assert secrets.prompts == 1

    def test_non_interactive_never_prompts(self):
        secrets = BootstrapSecrets(prompter=None)
        with pytest.raises(ValidationError, match="LM_BOOTSTRAP_ADMIN_PASSWORD"):
            secrets.admin_password
        assert secrets.prompts == 0

    def test_prompt_without_prompter(self):
        with pytest.raises(ValidationError, match="prompting is disabled"):
            BootstrapSecrets(prompter=None)._prompt("Secret", True)

    def test_activation_lazy(self):
        """The KEMP ID pair is not touched until asked for."""
        prompter = FakePrompter(
            {
                "Administrative password for 'bal'": "admin",
                "KEMP ID": "ops@example.com",
                "KEMP ID password": "kemp",
            }
        )
        secrets = BootstrapSecrets(prompter=prompter)
        _ = secrets.admin_password

        assert secrets.activation_resolved is False
        assert secrets.prompts == 1

        activation = secrets.activation()
        assert activation == ActivationCredentials("ops@example.com", "kemp")
        assert secrets.activation() is activation
        assert secrets.prompts == 3
        assert ("KEMP ID", False) in prompter.asked

    def test_activation_from_env(self, monkeypatch):
        monkeypatch.setenv(KEMP_ID_ENV, "env-id")
        monkeypatch.setenv(KEMP_PASSWORD_ENV, "env-pass")
        activation = BootstrapSecrets(prompter=None).activation()
        assert activation.kemp_id == "env-id"
        assert activation.password == "env-pass"

    def test_activation_failure_is_cached(self):
        """A missing KEMP ID is reported for every appliance without re-prompting."""
        prompter = FakePrompter({})
        secrets = BootstrapSecrets(admin_password="admin", prompter=prompter)

        with pytest.raises(ValidationError) as first:
            secrets.activation()
        with pytest.raises(ValidationError) as second:
            secrets.activation()

        assert first.value is second.value
        assert len(prompter.asked) == 1

    def test_repr_hides_password(self):
        activation = ActivationCredentials("ops@example.com", "kemp-secret")
        assert "kemp-secret" not in repr(activation)
