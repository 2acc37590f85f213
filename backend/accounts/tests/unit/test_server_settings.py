import pytest
from pydantic import ValidationError

from accounts.server.settings import AccountsServerSettings


class TestAccountsServerSettings:
    def test_defaults(self, monkeypatch):
        for name in ("LOG_DIR", "CORS_ORIGINS", "LEADERBOARD_DEFAULT_LIMIT", "LEADERBOARD_MAX_LIMIT", "MAX_BODY_BYTES"):
            monkeypatch.delenv(f"ACCOUNTS_{name}", raising=False)
        settings = AccountsServerSettings()
        assert settings.log_dir == "backend/logs/accounts"
        assert settings.cors_origins == []
        assert settings.leaderboard_default_limit == 10
        assert settings.leaderboard_max_limit == 50
        assert settings.max_body_bytes == 16384

    def test_log_dir_override(self, monkeypatch):
        monkeypatch.setenv("ACCOUNTS_LOG_DIR", "custom/accounts-logs")
        assert AccountsServerSettings().log_dir == "custom/accounts-logs"

    def test_cors_origins_json_array(self, monkeypatch):
        monkeypatch.setenv("ACCOUNTS_CORS_ORIGINS", '["http://x.com","http://y.com"]')
        assert AccountsServerSettings().cors_origins == ["http://x.com", "http://y.com"]

    def test_cors_origins_csv(self, monkeypatch):
        monkeypatch.setenv("ACCOUNTS_CORS_ORIGINS", "http://x.com,http://y.com")
        assert AccountsServerSettings().cors_origins == ["http://x.com", "http://y.com"]

    def test_cors_origins_empty_string_means_none(self, monkeypatch):
        monkeypatch.setenv("ACCOUNTS_CORS_ORIGINS", "")
        assert AccountsServerSettings().cors_origins == []

    def test_cors_origins_invalid_json_raises(self, monkeypatch):
        monkeypatch.setenv("ACCOUNTS_CORS_ORIGINS", "[not json")
        with pytest.raises(ValidationError, match="cors_origins"):
            AccountsServerSettings()

    def test_leaderboard_limits_from_env(self, monkeypatch):
        monkeypatch.setenv("ACCOUNTS_LEADERBOARD_DEFAULT_LIMIT", "5")
        monkeypatch.setenv("ACCOUNTS_LEADERBOARD_MAX_LIMIT", "20")
        settings = AccountsServerSettings()
        assert (settings.leaderboard_default_limit, settings.leaderboard_max_limit) == (5, 20)

    def test_rejects_tiny_body_limit(self):
        with pytest.raises(ValidationError, match="max_body_bytes"):
            AccountsServerSettings(max_body_bytes=10)

    def test_source_hook_annotations_stay_unevaluated(self):
        annotations = AccountsServerSettings.settings_customise_sources.__annotations__
        assert annotations["init_settings"] == "PydanticBaseSettingsSource"
