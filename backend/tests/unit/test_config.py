"""Tests for environment parsing and config selection."""

from __future__ import annotations

import pytest
from foodapp.core import config as cfg


def test_env_helpers_treat_blank_as_unset(monkeypatch):
    monkeypatch.setenv("FOODAPP_TEST_INT", "  ")
    monkeypatch.setenv("FOODAPP_TEST_FLOAT", "2.5")
    monkeypatch.setenv("FOODAPP_TEST_BOOL", "Yes")

    assert cfg.env_int("FOODAPP_TEST_INT", 7) == 7
    assert cfg.env_float("FOODAPP_TEST_FLOAT") == 2.5
    assert cfg.env_bool("FOODAPP_TEST_BOOL") is True
    assert cfg.env_bool("FOODAPP_TEST_MISSING", default=True) is True


@pytest.mark.parametrize(
    ("value", "expected"),
    [("testing", cfg.TestingConfig), ("PRODUCTION", cfg.ProductionConfig), ("bogus", cfg.DevelopmentConfig)],
)
def test_get_config_selects_by_app_env(monkeypatch, value, expected):
    monkeypatch.setenv(cfg.ENV_VAR, value)
    assert cfg.get_config() is expected


def test_production_rejects_placeholder_secrets():
    class Prod(cfg.ProductionConfig):
        SECRET_KEY = "real-secret"
        JWT_SECRET_KEY = "CHANGE_ME_JWT"

    with pytest.raises(RuntimeError, match="JWT_SECRET_KEY"):
        Prod.validate()


def test_production_accepts_real_secrets():
    class Prod(cfg.ProductionConfig):
        SECRET_KEY = "real-secret"
        JWT_SECRET_KEY = "another-real-secret"

    Prod.validate()
