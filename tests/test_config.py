"""
test_config.py — Tests for app/config.py

Verifies the cached settings accessor and the production check.

Called by: pytest
Depends on: app/config.py
"""

from app import config
from app.config import Settings, get_settings


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_module_settings_come_from_cache():
    assert config.settings is get_settings()


def test_is_production_from_app_url():
    assert Settings(app_url="http://localhost:8000").is_production is False
    assert Settings(app_url="https://studio.inventright.com").is_production is True
