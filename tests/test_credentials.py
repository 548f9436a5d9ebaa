# Tests for integrations/credentials.py
# Created: 2026-10-19

import json

import pytest

from gmailbridge.config import Settings
from gmailbridge.errors import ConfigError
from gmailbridge.integrations.credentials import ClientCredentials, CredentialStore


def _settings(tmp_path, **overrides):
    values = {
        "credentials_file": tmp_path / "credentials.json",
        "token_file": tmp_path / "token.json",
        "upload_dir": tmp_path / "uploads",
        "client_id": None,
        "client_secret": None,
        "redirect_uri": None,
        "refresh_token": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _write(tmp_path, data):
    path = tmp_path / "credentials.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return path


class TestFromEnvironment:
    def test_all_three_keys_win(self, tmp_path):
        settings = _settings(
            tmp_path,
            client_id="env-id",
            client_secret="env-secret",
            redirect_uri="http://localhost:3001/oauth/callback",
        )
        creds = CredentialStore(settings).load()
        assert creds == ClientCredentials(
            "env-id", "env-secret", "http://localhost:3001/oauth/callback"
        )

    def test_partial_env_falls_back_to_file(self, tmp_path):
        _write(
            tmp_path,
            {
                "web": {
                    "client_id": "f-id",
                    "client_secret": "f-secret",
                    "redirect_uris": ["http://x"],
                }
            },
        )
        settings = _settings(tmp_path, client_id="env-id")
        assert CredentialStore(settings).load().client_id == "f-id"


class TestFromFile:
    def test_web_section(self, tmp_path):
        _write(
            tmp_path,
            {
                "web": {
                    "client_id": "web-id",
                    "client_secret": "web-secret",
                    "redirect_uris": ["http://localhost:3001/cb", "http://other"],
                }
            },
        )
        creds = CredentialStore(_settings(tmp_path)).load()
        assert creds.client_id == "web-id"
        assert creds.client_secret == "web-secret"
        assert creds.redirect_uri == "http://localhost:3001/cb"

    def test_installed_section(self, tmp_path):
        _write(
            tmp_path,
            {"installed": {"client_id": "i", "client_secret": "s", "redirect_uris": ["urn:x"]}},
        )
        assert CredentialStore(_settings(tmp_path)).load().redirect_uri == "urn:x"

    def test_flat_layout_with_redirect_uri(self, tmp_path):
        _write(tmp_path, {"client_id": "i", "client_secret": "s", "redirect_uri": "http://r"})
        assert CredentialStore(_settings(tmp_path)).load().redirect_uri == "http://r"

    def test_credentials_are_immutable(self, tmp_path):
        _write(tmp_path, {"client_id": "i", "client_secret": "s", "redirect_uri": "http://r"})
        creds = CredentialStore(_settings(tmp_path)).load()
        with pytest.raises(AttributeError):
            creds.client_id = "other"


class TestErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            CredentialStore(_settings(tmp_path)).load()

    def test_invalid_json(self, tmp_path):
        _write(tmp_path, "{not json")
        with pytest.raises(ConfigError):
            CredentialStore(_settings(tmp_path)).load()

    def test_not_an_object(self, tmp_path):
        _write(tmp_path, [1, 2, 3])
        with pytest.raises(ConfigError, match="JSON object"):
            CredentialStore(_settings(tmp_path)).load()

    @pytest.mark.parametrize("missing", ["client_id", "client_secret", "redirect_uris"])
    def test_missing_required_field(self, tmp_path, missing):
        client = {"client_id": "i", "client_secret": "s", "redirect_uris": ["http://r"]}
        del client[missing]
        _write(tmp_path, {"web": client})
        with pytest.raises(ConfigError, match="missing required field"):
            CredentialStore(_settings(tmp_path)).load()

    def test_empty_redirect_uris(self, tmp_path):
        _write(tmp_path, {"web": {"client_id": "i", "client_secret": "s", "redirect_uris": []}})
        with pytest.raises(ConfigError, match="redirect_uri"):
            CredentialStore(_settings(tmp_path)).load()
