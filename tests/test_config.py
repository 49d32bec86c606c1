"""Tests for src.config — .env loading and validation."""

import pytest

from src.config import Settings, load_settings


class TestSettings:
    def test_user_ids_from_comma_string(self):
        s = Settings(
            LINE_CHANNEL_ACCESS_TOKEN="t", LINE_CHANNEL_SECRET="s",
            AUTHORIZED_USER_IDS=" U1, U2 ,,",
        )
        assert s.AUTHORIZED_USER_IDS == ["U1", "U2"]

    def test_empty_user_ids(self):
        s = Settings(LINE_CHANNEL_ACCESS_TOKEN="t", LINE_CHANNEL_SECRET="s", AUTHORIZED_USER_IDS="")
        assert s.AUTHORIZED_USER_IDS == []

    def test_defaults(self):
        s = Settings(LINE_CHANNEL_ACCESS_TOKEN="t", LINE_CHANNEL_SECRET="s")
        assert s.TIMEZONE == "Asia/Taipei"
        assert s.LINE_RETRY_ATTEMPTS == 3

    def test_log_level_uppercased(self):
        s = Settings(LINE_CHANNEL_ACCESS_TOKEN="t", LINE_CHANNEL_SECRET="s", LOG_LEVEL="debug")
        assert s.LOG_LEVEL == "DEBUG"


class TestLoadSettings:
    def test_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LINE_CHANNEL_ACCESS_TOKEN", "real-token")
        monkeypatch.setenv("LINE_CHANNEL_SECRET", "real-secret")
        monkeypatch.setenv("AUTHORIZED_USER_IDS", "U1,U2")
        monkeypatch.setenv("GROUP_SEND_DELAY_SECONDS", "0.5")
        s = load_settings(tmp_path / "missing.env")
        assert s.LINE_CHANNEL_ACCESS_TOKEN == "real-token"
        assert s.AUTHORIZED_USER_IDS == ["U1", "U2"]
        assert s.GROUP_SEND_DELAY_SECONDS == 0.5

    def test_placeholder_token_exits(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LINE_CHANNEL_ACCESS_TOKEN", "your-token-here")
        monkeypatch.setenv("LINE_CHANNEL_SECRET", "real-secret")
        with pytest.raises(SystemExit):
            load_settings(tmp_path / "missing.env")

    def test_missing_secret_exits(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LINE_CHANNEL_ACCESS_TOKEN", "real-token")
        monkeypatch.setenv("LINE_CHANNEL_SECRET", "")
        with pytest.raises(SystemExit):
            load_settings(tmp_path / "missing.env")
