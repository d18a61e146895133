"""Shared fixtures: an in-memory secret store and a temporary home directory."""
from pathlib import Path

import pytest

from secrets_browser.secrets.domains import preferences
from secrets_browser.secrets.domains.errors import NotFoundError, TransportError
from secrets_browser.secrets.domains.models import SecretSummary


class FakeStoreClient:
    """In-memory SecretStoreClient that records calls and can be told to fail."""

    def __init__(self, secrets=None, values=None):
        self.secrets = list(secrets or [])
        self.values = dict(values or {})
        self.list_calls = 0
        self.get_calls = []
        self.fail_list = None
        self.fail_get = None

    def list_secrets(self):
        self.list_calls += 1
        if self.fail_list is not None:
            raise self.fail_list
        return list(self.secrets)

    def get_secret_value(self, secret_id):
        self.get_calls.append(secret_id)
        if self.fail_get is not None:
            raise self.fail_get
        if secret_id not in self.values:
            raise NotFoundError(secret_id)
        return self.values[secret_id]

    def canonical_id(self, secret_id):
        return secret_id


DB_ARN = "arn:aws:secretsmanager:eu-west-1:123456789012:secret:prod/db-AbCdEf"
TOKEN_ARN = "arn:aws:secretsmanager:eu-west-1:123456789012:secret:prod/token-GhIjKl"


@pytest.fixture
def store():
    """A store with one structured and one plain text secret, listed in non-alphabetical order."""
    return FakeStoreClient(
        secrets=[
            SecretSummary(name="prod/token", id=TOKEN_ARN),
            SecretSummary(name="prod/db", id=DB_ARN),
        ],
        values={
            DB_ARN: '{"user": "admin", "pass": "x1"}',
            TOKEN_ARN: "plain-secret-123",
        },
    )


@pytest.fixture
def broken_transport():
    return TransportError("list-secrets failed (exit code 255): Unable to locate credentials")


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Fixture to create a temporary home directory for testing."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setattr(Path, "home", lambda: fake_home)
    monkeypatch.delenv("GCP_PROJECT", raising=False)
    monkeypatch.delenv("SECRETS_BROWSER_BACKEND", raising=False)

    fake_config_dir = fake_home / ".config" / "secrets-browser"
    monkeypatch.setattr(preferences, "PREFERENCES_DIR", fake_config_dir)
    monkeypatch.setattr(preferences, "PREFERENCES_FILE", fake_config_dir / "preferences.json")

    return fake_home
