"""Tests for settings."""

from reqcache.config.settings import CacheSettings, Settings, settings


def test_conftest_forces_test_env():
    """Test that the suite runs in test mode."""
    assert settings.env == "test"
    assert settings.is_test is True


def test_defaults():
    """Test cache defaults."""
    cache = CacheSettings()
    assert cache.default_ttl > 0
    assert cache.sweep_interval > 0


def test_non_test_env():
    """Test that other environments are not test mode."""
    assert Settings(env="production").is_test is False
