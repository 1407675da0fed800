"""Tests for the versioned configuration tables."""

import dataclasses

import pytest

from financial_health.config import ConfigError, default_config, load_config


def test_load_default_year():
    cfg = load_config()
    assert cfg.year == 2024
    assert cfg.national_insurance.min_contribution_months == 144
    assert sum(cfg.scoring.weights.values()) == 100


def test_factor_weights_order():
    """The eight factors keep their canonical order and weights."""
    weights = default_config().scoring.weights
    assert list(weights.items()) == [
        ("savingsRate", 25),
        ("retirementReadiness", 20),
        ("timeHorizon", 15),
        ("riskAlignment", 12),
        ("diversification", 10),
        ("taxEfficiency", 8),
        ("emergencyFund", 7),
        ("debtManagement", 3),
    ]


def test_country_fallback():
    cfg = default_config()
    assert cfg.country("Israel").name == "israel"
    assert cfg.country("atlantis").name == "default"
    assert cfg.country(None).name == "default"


def test_average_wage_nearest_year():
    ni = default_config().national_insurance
    assert ni.average_wage_for(2024) == 12113
    assert ni.average_wage_for(2040) == 15100
    assert ni.average_wage_for(2000) == 12113


def test_config_is_immutable():
    cfg = default_config()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.year = 2030
    with pytest.raises(TypeError):
        cfg.scoring.weights["savingsRate"] = 50


def test_unknown_year_raises():
    with pytest.raises(ConfigError):
        load_config(1999)


def test_tables_dir_from_environment(monkeypatch, tmp_path):
    """An override directory without tables is reported as a config error."""
    monkeypatch.setenv("FINHEALTH_TABLES_DIR", str(tmp_path))
    with pytest.raises(ConfigError):
        load_config()
