from __future__ import annotations

from decimal import Decimal

import pytest

import contractflow.core.config as config_module
from contractflow.core.exceptions import ConfigurationError


def test_defaults(monkeypatch):
    for name in ("DEFAULT_TAX_RATE", "DEFAULT_WARRANTY_MONTHS", "SEQUENCE_MAX_VALUE", "ENV", "DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)
    config = config_module._build_config()
    assert config.DEFAULT_TAX_RATE == Decimal("5")
    assert config.DEFAULT_WARRANTY_MONTHS == 12
    assert config.SEQUENCE_MAX_VALUE == 9999
    assert config.DATABASE_URL.startswith("sqlite")
    assert config.is_production is False


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("DEFAULT_TAX_RATE", "101"),
        ("DEFAULT_TAX_RATE", "five"),
        ("DEFAULT_RETENTION_RATE", "-1"),
        ("SEQUENCE_MAX_VALUE", "10000"),
        ("LOG_LEVEL", "chatty"),
        ("DB_POOL_SIZE", "0"),
        ("DATABASE_URL", "mysql://user@host/db"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError):
        config_module._build_config()


def test_production_rejects_placeholder_credentials(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://change_me:change_me@db:5432/contractflow")
    with pytest.raises(ConfigurationError):
        config_module._build_config(env="production")


def test_production_disables_debug(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("DATABASE_URL", "postgresql://app:secret@db:5432/contractflow")
    config = config_module._build_config(env="production")
    assert config.DEBUG is False
    assert config.DB_CONNECTIVITY_REQUIRED is True
