"""Tests for configuration defaults and environment overrides."""

from __future__ import annotations

from pathlib import Path

from featurescope.core.config import FeatureScopeConfig, get_config, set_config


def test_paths_derive_from_data_dir():
    config = FeatureScopeConfig(data_dir=Path("/srv/features"))
    assert config.index_path == Path("/srv/features/features-index.json")
    assert config.has_data_path == Path("/srv/features/features-with-data.json")
    assert config.features_dir == Path("/srv/features/features")
    assert config.csv_path == Path("/srv/features/Feature_output.csv")


def test_explicit_paths_win():
    config = FeatureScopeConfig(data_dir=Path("d"), index_path=Path("elsewhere/index.json"))
    assert config.index_path == Path("elsewhere/index.json")
    assert config.has_data_path == Path("d/features-with-data.json")


def test_defaults():
    config = FeatureScopeConfig()
    assert config.per_page == 100
    assert config.default_sort == "rank-ctrl"
    assert config.detail_filename.format(feature_index=5) == "feature_5.json"


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("FEATURESCOPE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FEATURESCOPE_FEATURES_DIR", str(tmp_path / "details"))
    monkeypatch.setenv("FEATURESCOPE_PER_PAGE", "25")
    monkeypatch.setenv("FEATURESCOPE_DEFAULT_SORT", "id-desc")
    monkeypatch.setenv("FEATURESCOPE_SERVER_PORT", "9000")
    monkeypatch.setenv("FEATURESCOPE_LOG_LEVEL", "debug")

    config = FeatureScopeConfig.from_env()
    assert config.data_dir == tmp_path
    assert config.index_path == tmp_path / "features-index.json"
    assert config.features_dir == tmp_path / "details"
    assert config.per_page == 25
    assert config.default_sort == "id-desc"
    assert config.server_port == 9000
    assert config.log_level == "DEBUG"


def test_get_and_set_config():
    custom = FeatureScopeConfig(per_page=7)
    set_config(custom)
    assert get_config() is custom
    set_config(None)
    assert get_config() is not custom
    assert get_config() is get_config()
