"""Tests for settings defaults and derived values."""

import pytest

from vinted_watch.config import Settings


class TestSettings:
    def test_dev_server_defaults(self, monkeypatch):
        monkeypatch.delenv("RELOAD", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        s = Settings(_env_file=None)
        assert s.reload is False
        assert s.log_level == "INFO"

    def test_reload_from_env(self, monkeypatch):
        monkeypatch.setenv("RELOAD", "true")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        s = Settings(_env_file=None)
        assert s.reload is True
        assert s.log_level == "DEBUG"

    @pytest.mark.parametrize("configured,expected", [(0, 1), (15, 15), (500, 96)])
    def test_page_size_clamped(self, configured, expected):
        assert Settings(_env_file=None, check_page_size=configured).page_size == expected
