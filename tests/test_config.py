# Tests for config.py
# Created: 2026-10-19

from pathlib import Path

from gmailbridge.config import Settings, get_settings, reset_settings


def _settings(tmp_path, **overrides):
    return Settings(
        _env_file=None,
        token_file=tmp_path / "token.json",
        upload_dir=tmp_path / "uploads",
        **overrides,
    )


class TestSettings:
    def test_defaults(self, tmp_path, monkeypatch):
        for key in ("CLIENT_ID", "CLIENT_SECRET", "REDIRECT_URI", "REFRESH_TOKEN"):
            monkeypatch.delenv(key, raising=False)
        s = _settings(tmp_path)
        assert s.port == 3001
        assert s.consent_mode == "console"
        assert s.credentials_file == Path("credentials.json")
        assert s.client_id is None
        assert s.refresh_token is None

    def test_legacy_keys_are_unprefixed(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CLIENT_ID", "env-id")
        monkeypatch.setenv("CLIENT_SECRET", "env-secret")
        monkeypatch.setenv("REDIRECT_URI", "http://localhost:3001/oauth/callback")
        monkeypatch.setenv("REFRESH_TOKEN", "1//refresh")
        s = _settings(tmp_path)
        assert s.client_id == "env-id"
        assert s.client_secret == "env-secret"
        assert s.redirect_uri == "http://localhost:3001/oauth/callback"
        assert s.refresh_token == "1//refresh"

    def test_prefixed_keys(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GMAILBRIDGE_PORT", "4000")
        monkeypatch.setenv("GMAILBRIDGE_CONSENT_MODE", "callback")
        monkeypatch.setenv("GMAILBRIDGE_CONSENT_TIMEOUT", "30")
        s = _settings(tmp_path)
        assert s.port == 4000
        assert s.consent_mode == "callback"
        assert s.consent_timeout == 30.0

    def test_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("CLIENT_ID", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("CLIENT_ID=from-dotenv\nGMAILBRIDGE_PORT=5000\n")
        s = Settings(
            _env_file=env_file,
            token_file=tmp_path / "token.json",
            upload_dir=tmp_path / "uploads",
        )
        assert s.client_id == "from-dotenv"
        assert s.port == 5000


class TestSingleton:
    def test_get_settings_is_cached_until_reset(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GMAILBRIDGE_TOKEN_FILE", str(tmp_path / "token.json"))
        monkeypatch.setenv("GMAILBRIDGE_UPLOAD_DIR", str(tmp_path / "uploads"))
        reset_settings()

        first = get_settings()
        assert get_settings() is first

        reset_settings()
        assert get_settings() is not first
        reset_settings()

